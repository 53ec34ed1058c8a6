"""
Compose the logical report document from client info and units.
"""

# Standard Library
import dataclasses
import datetime
import hashlib

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.config
import hvac_service_report.filters
import hvac_service_report.units


UnitRecord = hsr.units.UnitRecord

REPORT_TITLE = hsr.config.REPORT_TITLE
FOOTER_LINES = hsr.config.FOOTER_LINES
PHOTOS_HEADING = hsr.config.PHOTOS_HEADING
FILTERS_HEADING = hsr.config.FILTERS_HEADING
CLIENT_HEADING = hsr.config.CLIENT_HEADING
DATE_FORMAT = hsr.config.DATE_FORMAT


@dataclasses.dataclass
class ClientInfo:
	name: str = ""
	address: str = ""


@dataclasses.dataclass(frozen=True)
class HeaderBlock:
	title: str
	date_text: str


@dataclasses.dataclass(frozen=True)
class ClientBlock:
	heading: str
	rows: tuple[tuple[str, str], ...]


@dataclasses.dataclass(frozen=True)
class FilterBlock:
	heading: str
	lines: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class PhotoBlock:
	heading: str
	images: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class UnitSection:
	unit_id: str
	title: str
	fields: tuple[tuple[str, str], ...]
	filters: FilterBlock | None
	photos: PhotoBlock | None


@dataclasses.dataclass(frozen=True)
class DocumentDescription:
	header: HeaderBlock
	client: ClientBlock
	sections: tuple[UnitSection, ...]
	footer: tuple[str, ...]

	@property
	def image_count(self) -> int:
		return sum(len(section.photos.images) for section in self.sections if section.photos)


#============================================
def format_report_date(value: datetime.date) -> str:
	"""
	Format the generation date for the header.

	Args:
		value: Report date.

	Returns:
		Date text like "Date: 10/19/2026".
	"""
	return f"Date: {value.strftime(DATE_FORMAT)}"


#============================================
def build_unit_section(unit: UnitRecord) -> UnitSection:
	"""
	Build the report section for one unit.

	Args:
		unit: Committed unit record.

	Returns:
		UnitSection with empty filter and photo blocks left out.
	"""
	fields = (
		("Area Served", unit.area_served),
		("Model #", unit.model_number),
		("Serial #", unit.serial_number),
		("Drive Type", unit.drive_type.label),
		("Economizer", "Yes" if unit.economizer else "No"),
	)
	filters = hsr.filters.compact_filters(unit.filters)
	filter_block = None
	if filters:
		filter_block = FilterBlock(
			heading=FILTERS_HEADING,
			lines=tuple(entry.display_text() for entry in filters),
		)
	photo_block = None
	if unit.images:
		photo_block = PhotoBlock(heading=PHOTOS_HEADING, images=tuple(unit.images))
	return UnitSection(
		unit_id=unit.id,
		title=f"Unit: {unit.location}",
		fields=fields,
		filters=filter_block,
		photos=photo_block,
	)


#============================================
def assemble(
	client: ClientInfo,
	units: list[UnitRecord] | tuple[UnitRecord, ...],
	generated_on: datetime.date | None = None,
) -> DocumentDescription:
	"""
	Assemble the report document.

	The result depends only on the arguments; pass generated_on to pin the
	header date.

	Args:
		client: Client name and address.
		units: Units in collection order.
		generated_on: Report date, today when None.

	Returns:
		DocumentDescription.
	"""
	if generated_on is None:
		generated_on = datetime.date.today()
	header = HeaderBlock(title=REPORT_TITLE, date_text=format_report_date(generated_on))
	client_block = ClientBlock(
		heading=CLIENT_HEADING,
		rows=(
			("Client Name", client.name),
			("Address", client.address),
		),
	)
	sections = tuple(build_unit_section(unit) for unit in units)
	return DocumentDescription(
		header=header,
		client=client_block,
		sections=sections,
		footer=tuple(FOOTER_LINES),
	)


#============================================
def describe_document(description: DocumentDescription) -> dict:
	"""
	Summarize a document as JSON-ready data.

	Photos are listed by position and content hash instead of inline data.

	Args:
		description: Assembled document.

	Returns:
		Dictionary summary.
	"""
	sections = []
	for section in description.sections:
		photos = []
		if section.photos is not None:
			for index, image in enumerate(section.photos.images):
				photos.append(
					{
						"index": index,
						"sha256": hashlib.sha256(image.encode("utf-8")).hexdigest(),
						"length": len(image),
					}
				)
		sections.append(
			{
				"unit_id": section.unit_id,
				"title": section.title,
				"fields": [list(row) for row in section.fields],
				"filters": list(section.filters.lines) if section.filters else [],
				"photos": photos,
			}
		)
	return {
		"title": description.header.title,
		"date": description.header.date_text,
		"client": [list(row) for row in description.client.rows],
		"sections": sections,
		"footer": list(description.footer),
	}
