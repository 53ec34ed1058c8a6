"""
Slice a tall rendered surface into fixed-size pages.
"""

# Standard Library
import dataclasses

# PIP3 modules
import PIL.Image

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.config


BACKGROUND_COLOR = hsr.config.BACKGROUND_COLOR


@dataclasses.dataclass(frozen=True)
class PageSlice:
	index: int
	offset: int
	height: int

	@property
	def end(self) -> int:
		return self.offset + self.height


@dataclasses.dataclass
class PageSet:
	page_width: int
	page_height: int
	source_height: int
	slices: list[PageSlice]
	pages: list[PIL.Image.Image]

	def __len__(self) -> int:
		return len(self.slices)

	@property
	def slice_heights(self) -> list[int]:
		return [page_slice.height for page_slice in self.slices]


#============================================
def scale_height_to_width(width: int, height: int, page_width: int) -> int:
	"""
	Compute the surface height after scaling its width to the page width.

	Args:
		width: Surface width in pixels.
		height: Surface height in pixels.
		page_width: Target page width in pixels.

	Returns:
		Scaled height in whole pixels.
	"""
	if width <= 0 or page_width <= 0:
		raise ValueError(f"Widths must be positive (width={width}, page_width={page_width})")
	if height < 0:
		raise ValueError(f"Height must not be negative, got {height}")
	if height == 0:
		return 0
	return max(1, int(round(height * page_width / width)))


#============================================
def compute_page_slices(source_height: int, page_height: int) -> list[PageSlice]:
	"""
	Split a source height into page slices.

	Slice i starts at i * page_height and is page_height tall except the
	last, which holds whatever remains. Slices are contiguous, never
	overlap and their heights sum to source_height. A zero-height source
	still yields one empty page.

	Args:
		source_height: Height of the scaled surface.
		page_height: Height of one page.

	Returns:
		List of PageSlice in page order.
	"""
	if page_height <= 0:
		raise ValueError(f"page_height must be positive, got {page_height}")
	if source_height < 0:
		raise ValueError(f"source_height must not be negative, got {source_height}")
	if source_height == 0:
		return [PageSlice(index=0, offset=0, height=0)]

	slices: list[PageSlice] = []
	offset = 0
	remaining = source_height
	while remaining > 0:
		height = min(page_height, remaining)
		slices.append(PageSlice(index=len(slices), offset=offset, height=height))
		offset += height
		remaining -= height
	return slices


#============================================
def scale_surface_to_width(surface: PIL.Image.Image, page_width: int) -> PIL.Image.Image:
	"""
	Uniformly scale a surface so its width equals the page width.

	Args:
		surface: Rendered surface.
		page_width: Target width in pixels.

	Returns:
		Scaled surface, or the input when already page width.
	"""
	width, height = surface.size
	scaled_height = scale_height_to_width(width, height, page_width)
	if width == page_width:
		return surface
	if scaled_height == 0:
		return PIL.Image.new("RGB", (page_width, 0))
	return surface.resize((page_width, scaled_height), PIL.Image.Resampling.LANCZOS)


#============================================
def paginate_surface(
	surface: PIL.Image.Image,
	page_width: int,
	page_height: int,
) -> PageSet:
	"""
	Cut a rendered surface into page images.

	Each page is a white page-sized canvas with its slice pasted at the
	top, so a short final slice is padded rather than stretched.

	Args:
		surface: Rendered surface.
		page_width: Page width in pixels.
		page_height: Page height in pixels.

	Returns:
		PageSet with slices and page images.
	"""
	scaled = scale_surface_to_width(surface, page_width)
	source_height = scaled.size[1]
	slices = compute_page_slices(source_height, page_height)
	pages: list[PIL.Image.Image] = []
	for page_slice in slices:
		page = PIL.Image.new("RGB", (page_width, page_height), BACKGROUND_COLOR)
		if page_slice.height > 0:
			crop = scaled.crop((0, page_slice.offset, page_width, page_slice.end))
			if crop.mode in ("RGBA", "LA", "PA", "P"):
				# transparent areas show the white page
				crop = crop.convert("RGBA")
				page.paste(crop, (0, 0), mask=crop.getchannel("A"))
			else:
				page.paste(crop.convert("RGB"), (0, 0))
		pages.append(page)
	return PageSet(
		page_width=page_width,
		page_height=page_height,
		source_height=source_height,
		slices=slices,
		pages=pages,
	)
