import io

import PIL.Image
import pytest

import hvac_service_report.assemble as assemble
import hvac_service_report.config as config
import hvac_service_report.errors as errors
import hvac_service_report.image_codec as image_codec
import hvac_service_report.render as render
import hvac_service_report.units as units


#============================================
def _png_data_url(width: int, height: int, color: tuple[int, int, int]) -> str:
	"""
	Build a PNG data URL of a solid color.

	Args:
		width: Image width.
		height: Image height.
		color: RGB fill.

	Returns:
		Data URL string.
	"""
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (width, height), color).save(buffer, format="PNG")
	return image_codec.encode_bytes(buffer.getvalue(), "image/png")


#============================================
def _render(unit_list: list[units.UnitRecord]) -> PIL.Image.Image:
	export_config = config.build_export_config()
	renderer = render.PillowSurfaceRenderer(export_config)
	document = assemble.assemble(assemble.ClientInfo("Acme", "1 Main St"), unit_list)
	return renderer.render(document)


#============================================
def test_surface_width_matches_page_width() -> None:
	surface = _render([])
	expected_width = config.points_to_pixels(config.PAGE_WIDTH, config.RENDER_SCALE)
	assert surface.size[0] == expected_width
	assert surface.size[1] > 0
	# the header draws ink near the top
	top = surface.crop((0, 0, surface.size[0], 200)).convert("L")
	assert min(top.getdata()) < 128


#============================================
def test_photos_grow_the_surface() -> None:
	plain = units.new_unit("Rooftop 1")
	with_photos = units.new_unit(
		"Rooftop 1",
		images=[_png_data_url(40, 30, (200, 0, 0)), _png_data_url(30, 40, (0, 0, 200))],
	)
	assert _render([with_photos]).size[1] > _render([plain]).size[1]


#============================================
def test_photo_pixels_land_on_surface() -> None:
	unit = units.new_unit("Rooftop 1", images=[_png_data_url(50, 50, (255, 0, 0))])
	surface = _render([unit])
	colors = surface.getcolors(maxcolors=surface.size[0] * surface.size[1])
	assert any(color == (255, 0, 0) for _count, color in colors)


#============================================
def test_tall_photo_spans_several_pages() -> None:
	unit = units.new_unit("Boiler room", images=[_png_data_url(10, 80, (0, 120, 0))])
	surface = _render([unit])
	page_height = config.points_to_pixels(config.PAGE_HEIGHT, config.RENDER_SCALE)
	assert surface.size[1] > 2 * page_height


#============================================
def test_unsupported_image_data_raises_render_error() -> None:
	unit = units.new_unit("Rooftop 1", images=[image_codec.encode_bytes(b"not an image", "image/png")])
	with pytest.raises(errors.RenderError):
		_render([unit])
	broken = units.new_unit("Rooftop 2", images=["garbage"])
	with pytest.raises(errors.RenderError):
		_render([broken])


#============================================
def test_transparent_photo_is_flattened_on_white() -> None:
	buffer = io.BytesIO()
	PIL.Image.new("RGBA", (8, 8), (0, 0, 0, 0)).save(buffer, format="PNG")
	photo = render.decode_photo(image_codec.encode_bytes(buffer.getvalue(), "image/png"))
	assert photo.mode == "RGB"
	assert photo.getpixel((0, 0)) == (255, 255, 255)


#============================================
def test_wrap_text_splits_long_values() -> None:
	renderer = render.PillowSurfaceRenderer(config.build_export_config())
	text = "Area Served: " + " ".join(["warehouse"] * 40)
	lines = renderer.wrap_text(text, config.BODY_TEXT_SIZE, 200.0)
	assert len(lines) > 1
	assert " ".join(lines) == text


#============================================
def test_parse_hex_color() -> None:
	assert render.parse_hex_color("#2563EB") == (0x25, 0x63, 0xEB)
	assert render.parse_hex_color("blue") == (0, 0, 0)


#============================================
def test_oversized_photo_raises_render_error(monkeypatch: pytest.MonkeyPatch) -> None:
	unit = units.new_unit("Rooftop 1", images=[_png_data_url(30, 30, (10, 10, 10))])
	monkeypatch.setattr(PIL.Image, "MAX_IMAGE_PIXELS", 100)
	with pytest.raises(errors.RenderError):
		render.decode_photo(unit.images[0])
	with pytest.raises(errors.RenderError):
		_render([unit])


#============================================
def test_wrap_text_breaks_unbroken_serial() -> None:
	renderer = render.PillowSurfaceRenderer(config.build_export_config())
	serial = "SN" + "7" * 80
	lines = renderer.wrap_text(serial, config.BODY_TEXT_SIZE, 100.0)
	assert len(lines) > 1
	assert "".join(lines) == serial
	for line in lines:
		assert renderer.text_width(line, config.BODY_TEXT_SIZE) <= 100.0


#============================================
def test_wrap_text_keeps_explicit_line_breaks() -> None:
	renderer = render.PillowSurfaceRenderer(config.build_export_config())
	lines = renderer.wrap_text("1 Main St\nSuite 200", config.BODY_TEXT_SIZE, 400.0)
	assert lines == ["1 Main St", "Suite 200"]
	assert renderer.wrap_text("", config.BODY_TEXT_SIZE, 400.0) == [""]
