import datetime
import json

import hvac_service_report.assemble as assemble
import hvac_service_report.filters as filters
import hvac_service_report.units as units


REPORT_DATE = datetime.date(2026, 10, 19)


#============================================
def test_single_unit_without_images() -> None:
	"""
	One unit with one filter and no photos gives one section and no photo block.
	"""
	unit = units.new_unit("Rooftop 1", filters=[filters.FilterEntry("20x20x1", "2")])
	document = assemble.assemble(assemble.ClientInfo("Acme", "1 Main St"), [unit], REPORT_DATE)
	assert len(document.sections) == 1
	section = document.sections[0]
	assert section.title == "Unit: Rooftop 1"
	assert section.filters is not None
	assert section.filters.lines == ("2x - 20x20x1",)
	assert section.photos is None
	assert document.image_count == 0


#============================================
def test_header_client_and_footer() -> None:
	document = assemble.assemble(assemble.ClientInfo("Acme", "1 Main St"), [], REPORT_DATE)
	assert document.header.title == "HVAC Service Report"
	assert document.header.date_text == "Date: 10/19/2026"
	assert document.client.rows == (("Client Name", "Acme"), ("Address", "1 Main St"))
	assert document.sections == ()
	assert document.footer[-1] == "Generated by HVAC Service Reporter"


#============================================
def test_field_summary_labels() -> None:
	unit = units.new_unit(
		"RTU-3",
		area_served="Office",
		model_number="48TC",
		serial_number="SN-9",
		drive_type="dd",
		economizer=True,
	)
	section = assemble.build_unit_section(unit)
	assert section.fields == (
		("Area Served", "Office"),
		("Model #", "48TC"),
		("Serial #", "SN-9"),
		("Drive Type", "Direct Drive"),
		("Economizer", "Yes"),
	)
	assert section.filters is None


#============================================
def test_blank_filters_and_photo_order() -> None:
	unit = units.UnitRecord(
		id="u1",
		location="RTU-4",
		filters=(filters.FilterEntry("", "2"), filters.FilterEntry("16x25x2", "4")),
		images=("data:image/png;base64,AA==", "data:image/png;base64,AQ=="),
	)
	section = assemble.build_unit_section(unit)
	assert section.filters.lines == ("4x - 16x25x2",)
	assert section.photos.heading == "Maintenance Photos"
	assert section.photos.images == unit.images


#============================================
def test_sections_follow_collection_order() -> None:
	collection = units.UnitCollection()
	for location in ["C", "A", "B"]:
		collection.add(units.new_unit(location))
	document = assemble.assemble(assemble.ClientInfo(), collection.snapshot(), REPORT_DATE)
	assert [section.title for section in document.sections] == ["Unit: C", "Unit: A", "Unit: B"]


#============================================
def test_assembly_is_deterministic() -> None:
	unit = units.new_unit(
		"Rooftop 1",
		filters=[filters.FilterEntry("20x20x1", "2")],
		images=["data:image/png;base64,AA=="],
	)
	client = assemble.ClientInfo("Acme", "1 Main St")
	first = assemble.assemble(client, [unit], REPORT_DATE)
	second = assemble.assemble(client, [unit], REPORT_DATE)
	assert first == second
	first_text = json.dumps(assemble.describe_document(first), sort_keys=True)
	second_text = json.dumps(assemble.describe_document(second), sort_keys=True)
	assert first_text == second_text
	summary = assemble.describe_document(first)
	assert summary["sections"][0]["filters"] == ["2x - 20x20x1"]
	assert summary["sections"][0]["photos"][0]["index"] == 0
