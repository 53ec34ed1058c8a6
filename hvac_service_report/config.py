"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.lib.pagesizes


PAGE_WIDTH, PAGE_HEIGHT = reportlab.lib.pagesizes.A4
RENDER_SCALE = 2.0

REPORT_FILE_NAME = "hvac-service-report.pdf"
REPORT_TITLE = "HVAC Service Report"
APP_NAME = "HVAC Service Reporter"
FOOTER_LINES = (
	"Thank you for your business.",
	f"Generated by {APP_NAME}",
)
PHOTOS_HEADING = "Maintenance Photos"
FILTERS_HEADING = "Filters:"
CLIENT_HEADING = "Client Information"
DATE_FORMAT = "%m/%d/%Y"

DEFAULT_MARGIN = 24.0
DEFAULT_SECTION_GAP = 20.0
DEFAULT_LINE_GAP = 6.0
DEFAULT_PHOTO_COLUMNS = 2
DEFAULT_PHOTO_GAP = 8.0
TITLE_TEXT_SIZE = 24.0
HEADING_TEXT_SIZE = 16.0
BODY_TEXT_SIZE = 10.0
FOOTER_TEXT_SIZE = 8.0

BACKGROUND_COLOR = "#FFFFFF"
TEXT_COLOR = "#1F2937"
ACCENT_COLOR = "#2563EB"
MUTED_COLOR = "#6B7280"
RULE_COLOR = "#D1D5DB"
BAND_COLOR = "#F3F4F6"

DEFAULT_ENCODE_WORKERS = 4
PROGRESS_BAR_WIDTH = 20
FALLBACK_MIME_TYPE = "application/octet-stream"


@dataclasses.dataclass
class ExportConfig:
	page_width: float
	page_height: float
	render_scale: float
	margin: float
	section_gap: float
	line_gap: float
	photo_columns: int
	photo_gap: float
	file_name: str
	write_manifest: bool


@dataclasses.dataclass
class ExportResult:
	output_path: str
	manifest_path: str | None
	pages: int
	slice_heights: list[int]
	surface_width: int
	surface_height: int
	units: int
	images: int


#============================================
def points_to_pixels(value: float, scale: float) -> int:
	"""
	Convert a point length to whole raster pixels at a render scale.

	Args:
		value: Length in points.
		scale: Pixels per point.

	Returns:
		Pixel count, rounded.
	"""
	return int(round(value * scale))


#============================================
def build_export_config(
	render_scale: float = RENDER_SCALE,
	file_name: str = REPORT_FILE_NAME,
	write_manifest: bool = False,
) -> ExportConfig:
	"""
	Build the default A4 portrait export config.

	Args:
		render_scale: Raster pixels per PDF point.
		file_name: Output PDF file name.
		write_manifest: Whether to write a JSON manifest next to the PDF.

	Returns:
		ExportConfig.
	"""
	if render_scale <= 0.0:
		raise ValueError(f"render_scale must be positive, got {render_scale}")
	return ExportConfig(
		page_width=PAGE_WIDTH,
		page_height=PAGE_HEIGHT,
		render_scale=render_scale,
		margin=DEFAULT_MARGIN,
		section_gap=DEFAULT_SECTION_GAP,
		line_gap=DEFAULT_LINE_GAP,
		photo_columns=DEFAULT_PHOTO_COLUMNS,
		photo_gap=DEFAULT_PHOTO_GAP,
		file_name=file_name,
		write_manifest=write_manifest,
	)
