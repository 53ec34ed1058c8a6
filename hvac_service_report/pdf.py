"""
Serialize page images into the final PDF and write the export manifest.
"""

# Standard Library
import io
import json
import pathlib

# PIP3 modules
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.assemble
import hvac_service_report.config
import hvac_service_report.paginate


ExportConfig = hsr.config.ExportConfig
ExportResult = hsr.config.ExportResult
PageSet = hsr.paginate.PageSet
DocumentDescription = hsr.assemble.DocumentDescription

REPORT_TITLE = hsr.config.REPORT_TITLE
APP_NAME = hsr.config.APP_NAME


#============================================
def page_pixel_size(config: ExportConfig) -> tuple[int, int]:
	"""
	Compute the raster size of one output page.

	Args:
		config: Export configuration.

	Returns:
		Tuple of (width, height) in pixels.
	"""
	width = hsr.config.points_to_pixels(config.page_width, config.render_scale)
	height = hsr.config.points_to_pixels(config.page_height, config.render_scale)
	return (width, height)


#============================================
def write_pages_pdf(
	page_set: PageSet,
	output: pathlib.Path | io.BytesIO,
	config: ExportConfig,
	subject: str = "",
) -> int:
	"""
	Write one PDF page per page image.

	The canvas runs in invariant mode so the same pages always produce the
	same bytes.

	Args:
		page_set: Paginated page images.
		output: Output path or binary buffer.
		config: Export configuration.
		subject: Optional PDF subject metadata.

	Returns:
		Number of pages written.
	"""
	target = str(output) if isinstance(output, pathlib.Path) else output
	pdf = reportlab.pdfgen.canvas.Canvas(
		target,
		pagesize=(config.page_width, config.page_height),
		invariant=1,
	)
	pdf.setTitle(REPORT_TITLE)
	pdf.setCreator(APP_NAME)
	if subject:
		pdf.setSubject(subject)
	for page in page_set.pages:
		image_reader = reportlab.lib.utils.ImageReader(page)
		pdf.drawImage(
			image_reader,
			0,
			0,
			width=config.page_width,
			height=config.page_height,
			mask=None,
			preserveAspectRatio=False,
			anchor="sw",
		)
		pdf.showPage()
	pdf.save()
	return len(page_set.pages)


#============================================
def render_pdf_bytes(page_set: PageSet, config: ExportConfig, subject: str = "") -> bytes:
	"""
	Serialize page images to PDF bytes in memory.

	Args:
		page_set: Paginated page images.
		config: Export configuration.
		subject: Optional PDF subject metadata.

	Returns:
		PDF file bytes.
	"""
	buffer = io.BytesIO()
	write_pages_pdf(page_set, buffer, config, subject=subject)
	return buffer.getvalue()


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	description: DocumentDescription,
	page_set: PageSet,
	result: ExportResult,
	config: ExportConfig,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		description: Assembled document.
		page_set: Paginated pages.
		result: Export result.
		config: Export configuration.
	"""
	data = {
		"output": result.output_path,
		"pages": result.pages,
		"units": result.units,
		"images": result.images,
		"surface": {
			"width": result.surface_width,
			"height": result.surface_height,
			"scaled_height": page_set.source_height,
		},
		"slices": [
			{"index": page_slice.index, "offset": page_slice.offset, "height": page_slice.height}
			for page_slice in page_set.slices
		],
		"layout": {
			"page_width": config.page_width,
			"page_height": config.page_height,
			"page_width_px": page_set.page_width,
			"page_height_px": page_set.page_height,
			"render_scale": config.render_scale,
			"margin": config.margin,
			"photo_columns": config.photo_columns,
		},
		"document": hsr.assemble.describe_document(description),
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
