"""
Editing session state and the export pipeline.

A ReportSession holds the client info, the unit collection and the
export-in-progress flag, and is passed explicitly to every operation.
"""

# Standard Library
import dataclasses
import datetime
import pathlib
import threading
import time
import typing

# PIP3 modules
import PIL.Image

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.assemble
import hvac_service_report.config
import hvac_service_report.errors
import hvac_service_report.image_codec
import hvac_service_report.paginate
import hvac_service_report.pdf
import hvac_service_report.render
import hvac_service_report.units


ClientInfo = hsr.assemble.ClientInfo
ExportConfig = hsr.config.ExportConfig
ExportResult = hsr.config.ExportResult
UnitCollection = hsr.units.UnitCollection
UnitDraft = hsr.units.UnitDraft
UnitRecord = hsr.units.UnitRecord
BatchEncodeResult = hsr.image_codec.BatchEncodeResult
ImageSource = hsr.image_codec.ImageSource
SurfaceRenderer = hsr.render.SurfaceRenderer
RenderError = hsr.errors.RenderError
ExportInProgressError = hsr.errors.ExportInProgressError

DEFAULT_ENCODE_WORKERS = hsr.config.DEFAULT_ENCODE_WORKERS


#============================================
def render_surface(renderer: SurfaceRenderer, description: hsr.assemble.DocumentDescription) -> PIL.Image.Image:
	"""
	Run the surface renderer and check its output.

	Args:
		renderer: Surface renderer.
		description: Assembled document.

	Returns:
		Rendered surface.
	"""
	try:
		surface = renderer.render(description)
	except RenderError:
		raise
	except (OSError, ValueError, MemoryError) as error:
		raise RenderError(f"Surface renderer failed: {error}") from error
	if not isinstance(surface, PIL.Image.Image) or surface.size[0] <= 0:
		raise RenderError("Surface renderer returned no usable surface")
	return surface


#============================================
def export_report(
	client: ClientInfo,
	units: tuple[UnitRecord, ...],
	output_dir: pathlib.Path,
	config: ExportConfig,
	renderer: SurfaceRenderer | None = None,
	generated_on: datetime.date | None = None,
	verbose: bool = False,
) -> ExportResult:
	"""
	Assemble, render, paginate and write the report PDF.

	Args:
		client: Client info copy.
		units: Unit snapshot in collection order.
		output_dir: Directory for the PDF.
		config: Export configuration.
		renderer: Surface renderer, Pillow renderer when None.
		generated_on: Report date, today when None.
		verbose: Print progress and timing.

	Returns:
		ExportResult.
	"""
	start_time = time.perf_counter()
	if renderer is None:
		renderer = hsr.render.PillowSurfaceRenderer(config)
	output_dir = pathlib.Path(output_dir)
	output_path = output_dir / config.file_name
	if verbose:
		print("HVAC service report export")
		print(f"Output PDF: {output_path}")
		print(f"Units: {len(units)}")

	description = hsr.assemble.assemble(client, units, generated_on)

	render_start = time.perf_counter()
	surface = render_surface(renderer, description)
	render_end = time.perf_counter()
	surface_width, surface_height = surface.size
	if verbose:
		print(f"Surface rendered: {surface_width}x{surface_height}")

	page_width, page_height = hsr.pdf.page_pixel_size(config)
	page_set = hsr.paginate.paginate_surface(surface, page_width, page_height)
	if verbose:
		print(f"Page slices: {page_set.slice_heights}")

	# serialize fully before touching the output file
	data = hsr.pdf.render_pdf_bytes(page_set, config, subject=client.name)
	output_dir.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(data)
	write_end = time.perf_counter()

	manifest_path = None
	if config.write_manifest:
		manifest_path = f"{output_path}.json"
	result = ExportResult(
		output_path=str(output_path),
		manifest_path=manifest_path,
		pages=len(page_set),
		slice_heights=page_set.slice_heights,
		surface_width=surface_width,
		surface_height=surface_height,
		units=len(description.sections),
		images=description.image_count,
	)
	if manifest_path is not None:
		hsr.pdf.write_manifest(pathlib.Path(manifest_path), description, page_set, result, config)

	if verbose:
		print(f"Pages written: {result.pages}")
		if manifest_path is not None:
			print(f"Manifest written: {manifest_path}")
		print(
			"Timing: render={:.2f}s paginate+write={:.2f}s total={:.2f}s".format(
				render_end - render_start,
				write_end - render_end,
				write_end - start_time,
			)
		)
	return result


class ReportSession:
	"""
	One technician's editing session for a client site.
	"""

	def __init__(self, client: ClientInfo | None = None, units: UnitCollection | None = None):
		self.client = client if client is not None else ClientInfo()
		self.units = units if units is not None else UnitCollection()
		self._export_lock = threading.Lock()

	@property
	def is_exporting(self) -> bool:
		return self._export_lock.locked()

	def set_client_info(self, name: str | None = None, address: str | None = None) -> ClientInfo:
		if name is not None:
			self.client.name = name
		if address is not None:
			self.client.address = address
		return self.client

	def new_draft(self) -> UnitDraft:
		return UnitDraft.for_new_unit()

	def edit_draft(self, unit_id: str) -> UnitDraft:
		return UnitDraft.from_record(self.units.get(unit_id))

	def add_unit(self, draft: UnitDraft) -> UnitRecord:
		"""
		Commit a new-unit draft and append it.

		Args:
			draft: Draft for a unit not yet in the collection.

		Returns:
			The stored record.
		"""
		record = draft.commit()
		return self.units.add(record)

	def save_unit(self, draft: UnitDraft) -> UnitRecord | None:
		"""
		Commit an edit draft over its record.

		Args:
			draft: Draft created by edit_draft().

		Returns:
			The stored record, or None if the unit was deleted meanwhile.
		"""
		if draft.unit_id is None:
			raise ValueError("Draft has no unit id; use add_unit() for new units")
		record = draft.commit()
		if not self.units.update(record.id, record):
			return None
		return record

	def delete_unit(self, unit_id: str) -> bool:
		return self.units.delete(unit_id)

	def upload_images(
		self,
		unit_id: str,
		sources: typing.Sequence[ImageSource],
		max_workers: int = DEFAULT_ENCODE_WORKERS,
		verbose: bool = False,
	) -> BatchEncodeResult:
		"""
		Encode photos and append them to a stored unit.

		Files that fail to encode are reported in the result; the rest are
		appended in selection order. When the unit does not exist, or is
		deleted before encoding finishes, nothing is stored and the result
		has stored=False.

		Args:
			unit_id: Target unit id.
			sources: Image paths or binary handles in selection order.
			max_workers: Encoder thread count.
			verbose: Print progress.

		Returns:
			BatchEncodeResult.
		"""
		if self.units.find(unit_id) is None:
			return BatchEncodeResult(images=[], failures=[], stored=False)
		result = hsr.image_codec.encode_batch(sources, max_workers=max_workers, verbose=verbose)
		if result.images:
			stored = self.units.modify(
				unit_id,
				lambda unit: dataclasses.replace(unit, images=unit.images + tuple(result.images)),
			)
			result.stored = stored is not None
		return result

	def remove_image(self, unit_id: str, index: int) -> UnitRecord | None:
		def drop(unit: UnitRecord) -> UnitRecord:
			if index < 0 or index >= len(unit.images):
				raise IndexError(f"Image {index} out of range (images={len(unit.images)})")
			images = unit.images[:index] + unit.images[index + 1:]
			return dataclasses.replace(unit, images=images)
		return self.units.modify(unit_id, drop)

	def export(
		self,
		output_dir: pathlib.Path,
		config: ExportConfig | None = None,
		renderer: SurfaceRenderer | None = None,
		generated_on: datetime.date | None = None,
		verbose: bool = False,
	) -> ExportResult:
		"""
		Export the report PDF from a snapshot of the session.

		Only one export runs at a time; the flag is released whether the
		export succeeds or fails, and session state is never modified.

		Args:
			output_dir: Directory for the PDF.
			config: Export configuration, A4 defaults when None.
			renderer: Surface renderer, Pillow renderer when None.
			generated_on: Report date, today when None.
			verbose: Print progress and timing.

		Returns:
			ExportResult.
		"""
		if not self._export_lock.acquire(blocking=False):
			raise ExportInProgressError("An export is already running")
		try:
			if config is None:
				config = hsr.config.build_export_config()
			client = dataclasses.replace(self.client)
			units = self.units.snapshot()
			return export_report(
				client,
				units,
				pathlib.Path(output_dir),
				config,
				renderer=renderer,
				generated_on=generated_on,
				verbose=verbose,
			)
		finally:
			self._export_lock.release()
