"""
Flatten an assembled report into one tall raster surface.

Layout is computed in PDF points and drawn at the export render scale, so
the surface width always equals the page width in raster pixels.
"""

# Standard Library
import dataclasses
import io
import typing

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import PIL.ImageOps

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.assemble
import hvac_service_report.config
import hvac_service_report.errors
import hvac_service_report.image_codec


DocumentDescription = hsr.assemble.DocumentDescription
UnitSection = hsr.assemble.UnitSection
ExportConfig = hsr.config.ExportConfig
EncodeError = hsr.errors.EncodeError
RenderError = hsr.errors.RenderError

TITLE_TEXT_SIZE = hsr.config.TITLE_TEXT_SIZE
HEADING_TEXT_SIZE = hsr.config.HEADING_TEXT_SIZE
BODY_TEXT_SIZE = hsr.config.BODY_TEXT_SIZE
FOOTER_TEXT_SIZE = hsr.config.FOOTER_TEXT_SIZE
BACKGROUND_COLOR = hsr.config.BACKGROUND_COLOR
TEXT_COLOR = hsr.config.TEXT_COLOR
ACCENT_COLOR = hsr.config.ACCENT_COLOR
MUTED_COLOR = hsr.config.MUTED_COLOR
RULE_COLOR = hsr.config.RULE_COLOR
BAND_COLOR = hsr.config.BAND_COLOR

FONT_REGULAR_FILES = ("DejaVuSans.ttf", "Arial.ttf", "Helvetica.ttc")
FONT_BOLD_FILES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "Helvetica.ttc")


class SurfaceRenderer(typing.Protocol):
	def render(self, description: DocumentDescription) -> PIL.Image.Image:
		...


@dataclasses.dataclass
class DrawOp:
	kind: str
	x: float
	y: float
	width: float = 0.0
	height: float = 0.0
	text: str = ""
	font_size: float = BODY_TEXT_SIZE
	bold: bool = False
	color: str = TEXT_COLOR
	image: PIL.Image.Image | None = None


#============================================
def parse_hex_color(value: str) -> tuple[int, int, int]:
	"""
	Parse a hex color string into RGB bytes.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0-255 range.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0, 0, 0)
	return (int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))


#============================================
def load_font(size_px: int, bold: bool = False) -> PIL.ImageFont.FreeTypeFont:
	"""
	Load a TrueType font, falling back to Pillow's bundled font.

	Args:
		size_px: Font size in pixels.
		bold: Use a bold face.

	Returns:
		Pillow font.
	"""
	size_px = max(1, size_px)
	candidates = FONT_BOLD_FILES if bold else FONT_REGULAR_FILES
	for name in candidates:
		try:
			return PIL.ImageFont.truetype(name, size_px)
		except OSError:
			continue
	return PIL.ImageFont.load_default(size=size_px)


#============================================
def decode_photo(portable: str) -> PIL.Image.Image:
	"""
	Decode an embedded photo into an RGB image.

	Args:
		portable: Data URL string.

	Returns:
		Loaded RGB image, EXIF orientation applied.
	"""
	try:
		data = hsr.image_codec.decode(portable)
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
		image = PIL.ImageOps.exif_transpose(image)
	except (
		EncodeError,
		PIL.UnidentifiedImageError,
		PIL.Image.DecompressionBombError,
		OSError,
		ValueError,
	) as error:
		raise RenderError(f"Unsupported embedded image data: {error}") from error
	if image.mode in ("RGBA", "LA", "P"):
		image = image.convert("RGBA")
		background = PIL.Image.new("RGB", image.size, BACKGROUND_COLOR)
		background.paste(image, mask=image.getchannel("A"))
		return background
	return image.convert("RGB")


class PillowSurfaceRenderer:
	"""
	Default surface renderer built on Pillow.
	"""

	def __init__(self, config: ExportConfig):
		self.config = config
		self.scale = config.render_scale
		self._fonts: dict[tuple[int, bool], PIL.ImageFont.FreeTypeFont] = {}
		self._measure = PIL.ImageDraw.Draw(PIL.Image.new("RGB", (1, 1)))

	@property
	def surface_width(self) -> int:
		return hsr.config.points_to_pixels(self.config.page_width, self.scale)

	def font(self, size: float, bold: bool = False) -> PIL.ImageFont.FreeTypeFont:
		key = (hsr.config.points_to_pixels(size, self.scale), bold)
		if key not in self._fonts:
			self._fonts[key] = load_font(key[0], bold)
		return self._fonts[key]

	def text_width(self, text: str, size: float, bold: bool = False) -> float:
		bbox = self._measure.textbbox((0, 0), text, font=self.font(size, bold))
		return (bbox[2] - bbox[0]) / self.scale

	def line_height(self, size: float) -> float:
		return size * 1.3

	def wrap_text(self, text: str, size: float, max_width: float, bold: bool = False) -> list[str]:
		"""
		Wrap text to fit within a max width.

		Lines are broken at explicit newlines first, then at spaces; a single
		word wider than the column is split between characters.

		Args:
			text: Input text.
			size: Font size in points.
			max_width: Maximum line width in points.
			bold: Measure with the bold face.

		Returns:
			Wrapped lines, at least one.
		"""
		lines: list[str] = []
		for paragraph in text.split("\n"):
			lines.extend(self.wrap_paragraph(paragraph, size, max_width, bold))
		return lines

	def wrap_paragraph(self, text: str, size: float, max_width: float, bold: bool = False) -> list[str]:
		words = text.split()
		if not words:
			return [""]
		lines: list[str] = []
		current = ""
		for word in words:
			candidate = word if not current else f"{current} {word}"
			if self.text_width(candidate, size, bold) <= max_width:
				current = candidate
				continue
			if current:
				lines.append(current)
			current = word
			if self.text_width(word, size, bold) > max_width:
				pieces = self.break_word(word, size, max_width, bold)
				lines.extend(pieces[:-1])
				current = pieces[-1]
		if current:
			lines.append(current)
		return lines

	def break_word(self, word: str, size: float, max_width: float, bold: bool = False) -> list[str]:
		"""
		Split one oversized word into chunks that fit the width.

		Args:
			word: Word wider than max_width.
			size: Font size in points.
			max_width: Maximum line width in points.
			bold: Measure with the bold face.

		Returns:
			Chunks in order, each at least one character.
		"""
		pieces: list[str] = []
		current = ""
		for char in word:
			candidate = current + char
			if current and self.text_width(candidate, size, bold) > max_width:
				pieces.append(current)
				current = char
			else:
				current = candidate
		pieces.append(current)
		return pieces

	def render(self, description: DocumentDescription) -> PIL.Image.Image:
		"""
		Render a document into one tall surface.

		Args:
			description: Assembled document.

		Returns:
			RGB image whose width is the page width in pixels.
		"""
		ops, height = self.layout(description)
		surface_height = hsr.config.points_to_pixels(height, self.scale)
		try:
			surface = PIL.Image.new("RGB", (self.surface_width, surface_height), BACKGROUND_COLOR)
		except (ValueError, MemoryError) as error:
			raise RenderError(f"Cannot allocate surface: {error}") from error
		draw = PIL.ImageDraw.Draw(surface)
		for op in ops:
			self.draw_op(surface, draw, op)
		return surface

	def draw_op(self, surface: PIL.Image.Image, draw: PIL.ImageDraw.ImageDraw, op: DrawOp) -> None:
		x = hsr.config.points_to_pixels(op.x, self.scale)
		y = hsr.config.points_to_pixels(op.y, self.scale)
		if op.kind == "text":
			font = self.font(op.font_size, op.bold)
			draw.text((x, y), op.text, font=font, fill=parse_hex_color(op.color))
		elif op.kind == "rect":
			x1 = hsr.config.points_to_pixels(op.x + op.width, self.scale)
			y1 = hsr.config.points_to_pixels(op.y + op.height, self.scale)
			draw.rectangle((x, y, max(x, x1 - 1), max(y, y1 - 1)), fill=parse_hex_color(op.color))
		elif op.kind == "image" and op.image is not None:
			width = max(1, hsr.config.points_to_pixels(op.width, self.scale))
			height = max(1, hsr.config.points_to_pixels(op.height, self.scale))
			resized = op.image.resize((width, height), PIL.Image.Resampling.LANCZOS)
			surface.paste(resized, (x, y))
		else:
			raise RenderError(f"Unknown draw op: {op.kind}")

	def layout(self, description: DocumentDescription) -> tuple[list[DrawOp], float]:
		"""
		Place every block of the document.

		Args:
			description: Assembled document.

		Returns:
			Tuple of (draw ops, total height in points).
		"""
		config = self.config
		left = config.margin
		content_width = config.page_width - 2.0 * config.margin
		ops: list[DrawOp] = []
		y = config.margin

		# header
		title_width = self.text_width(description.header.title, TITLE_TEXT_SIZE, True)
		ops.append(DrawOp(
			"text", left + (content_width - title_width) / 2.0, y,
			text=description.header.title, font_size=TITLE_TEXT_SIZE, bold=True,
		))
		y += self.line_height(TITLE_TEXT_SIZE)
		date_width = self.text_width(description.header.date_text, BODY_TEXT_SIZE)
		ops.append(DrawOp(
			"text", left + (content_width - date_width) / 2.0, y,
			text=description.header.date_text, color=MUTED_COLOR,
		))
		y += self.line_height(BODY_TEXT_SIZE) + config.line_gap
		ops.append(DrawOp("rect", left, y, width=content_width, height=1.5, color=RULE_COLOR))
		y += config.section_gap

		# client
		ops.append(DrawOp(
			"text", left, y, text=description.client.heading,
			font_size=HEADING_TEXT_SIZE, bold=True,
		))
		y += self.line_height(HEADING_TEXT_SIZE)
		ops.append(DrawOp("rect", left, y, width=content_width, height=0.75, color=RULE_COLOR))
		y += config.line_gap
		for label, value in description.client.rows:
			y = self.layout_text(ops, f"{label}: {value}", left, y, content_width, BODY_TEXT_SIZE)
		y += config.section_gap

		for section in description.sections:
			y = self.layout_section(ops, section, left, y, content_width)
			y += config.section_gap

		# footer
		ops.append(DrawOp("rect", left, y, width=content_width, height=1.5, color=RULE_COLOR))
		y += config.line_gap
		for line in description.footer:
			line_width = self.text_width(line, FOOTER_TEXT_SIZE)
			ops.append(DrawOp(
				"text", left + (content_width - line_width) / 2.0, y,
				text=line, font_size=FOOTER_TEXT_SIZE, color=MUTED_COLOR,
			))
			y += self.line_height(FOOTER_TEXT_SIZE)
		y += config.margin
		return ops, y

	def layout_text(
		self,
		ops: list[DrawOp],
		text: str,
		x: float,
		y: float,
		max_width: float,
		size: float,
		bold: bool = False,
		color: str = TEXT_COLOR,
	) -> float:
		for line in self.wrap_text(text, size, max_width, bold):
			ops.append(DrawOp("text", x, y, text=line, font_size=size, bold=bold, color=color))
			y += self.line_height(size)
		return y

	def layout_section(
		self,
		ops: list[DrawOp],
		section: UnitSection,
		left: float,
		y: float,
		content_width: float,
	) -> float:
		"""
		Place one unit section: title band, fields, filters, photos.

		Args:
			ops: Draw op list to extend.
			section: Unit section.
			left: Left edge in points.
			y: Top of the section in points.
			content_width: Available width in points.

		Returns:
			Y position below the section.
		"""
		config = self.config
		padding = config.line_gap
		inner_left = left + padding + 3.0
		inner_width = content_width - 2.0 * padding - 3.0

		title_lines = self.wrap_text(section.title, HEADING_TEXT_SIZE, inner_width, True)
		band_height = len(title_lines) * self.line_height(HEADING_TEXT_SIZE) + 2.0 * padding
		ops.append(DrawOp("rect", left, y, width=content_width, height=band_height, color=BAND_COLOR))
		ops.append(DrawOp("rect", left, y, width=3.0, height=band_height, color=ACCENT_COLOR))
		self.layout_text(
			ops, section.title, inner_left, y + padding, inner_width,
			HEADING_TEXT_SIZE, bold=True, color=ACCENT_COLOR,
		)
		y += band_height + padding

		# fields in two columns
		column_width = (inner_width - padding) / 2.0
		for row_start in range(0, len(section.fields), 2):
			row_bottom = y
			for column, (label, value) in enumerate(section.fields[row_start:row_start + 2]):
				x = inner_left + column * (column_width + padding)
				bottom = self.layout_text(ops, f"{label}: {value}", x, y, column_width, BODY_TEXT_SIZE)
				row_bottom = max(row_bottom, bottom)
			y = row_bottom + 2.0

		if section.filters is not None:
			y += padding
			ops.append(DrawOp("text", inner_left, y, text=section.filters.heading, bold=True))
			y += self.line_height(BODY_TEXT_SIZE)
			for line in section.filters.lines:
				y = self.layout_text(ops, f"• {line}", inner_left + 8.0, y, inner_width - 8.0, BODY_TEXT_SIZE)

		if section.photos is not None:
			y += padding
			ops.append(DrawOp(
				"text", inner_left, y, text=section.photos.heading,
				font_size=HEADING_TEXT_SIZE * 0.85, bold=True,
			))
			y += self.line_height(HEADING_TEXT_SIZE * 0.85) + padding
			y = self.layout_photos(ops, section.photos.images, inner_left, y, inner_width)
		return y + padding

	def layout_photos(
		self,
		ops: list[DrawOp],
		images: tuple[str, ...],
		left: float,
		y: float,
		width: float,
	) -> float:
		config = self.config
		columns = max(1, config.photo_columns)
		gap = config.photo_gap
		cell_width = (width - gap * (columns - 1)) / columns
		photos = [decode_photo(image) for image in images]
		for row_start in range(0, len(photos), columns):
			row_height = 0.0
			for column, photo in enumerate(photos[row_start:row_start + columns]):
				photo_width, photo_height = photo.size
				scaled_height = cell_width * photo_height / photo_width
				x = left + column * (cell_width + gap)
				ops.append(DrawOp("image", x, y, width=cell_width, height=scaled_height, image=photo))
				row_height = max(row_height, scaled_height)
			y += row_height + gap
		return y
