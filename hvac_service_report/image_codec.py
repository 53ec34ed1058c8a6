"""
Portable image encoding for embedded photos.

Photos are carried through the report as base64 data URLs so a unit record
holds plain strings and the renderer can decode them again later.
"""

# Standard Library
import base64
import binascii
import concurrent.futures
import dataclasses
import mimetypes
import pathlib
import re
import typing

# local repo modules
import hvac_service_report as hsr
import hvac_service_report.config
import hvac_service_report.errors


EncodeError = hsr.errors.EncodeError

DEFAULT_ENCODE_WORKERS = hsr.config.DEFAULT_ENCODE_WORKERS
FALLBACK_MIME_TYPE = hsr.config.FALLBACK_MIME_TYPE
PROGRESS_BAR_WIDTH = hsr.config.PROGRESS_BAR_WIDTH

DATA_URL_PATTERN = re.compile(r"^data:([^;,]*);base64,(.*)$", re.S)

ImageSource = typing.Union[str, pathlib.Path, typing.BinaryIO]


@dataclasses.dataclass
class EncodeFailure:
	index: int
	source: str
	error: EncodeError


@dataclasses.dataclass
class BatchEncodeResult:
	images: list[str]
	failures: list[EncodeFailure]
	stored: bool = True


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def describe_source(source: ImageSource) -> str:
	"""
	Describe an image source for messages.

	Args:
		source: Path or binary file handle.

	Returns:
		Display name.
	"""
	if isinstance(source, (str, pathlib.Path)):
		return str(source)
	name = getattr(source, "name", None)
	if isinstance(name, str) and name:
		return name
	return f"<{type(source).__name__}>"


#============================================
def guess_mime_type(name: str) -> str:
	"""
	Guess a mime type from a file name.

	Args:
		name: File name or path.

	Returns:
		Mime type, or the generic binary type when unknown.
	"""
	mime_type, _encoding = mimetypes.guess_type(name)
	if not mime_type:
		return FALLBACK_MIME_TYPE
	return mime_type


#============================================
def encode_bytes(data: bytes, mime_type: str = FALLBACK_MIME_TYPE) -> str:
	"""
	Encode raw bytes as a base64 data URL.

	Args:
		data: Raw image bytes.
		mime_type: Mime type placed in the data URL header.

	Returns:
		Portable data URL string.
	"""
	payload = base64.b64encode(data).decode("ascii")
	return f"data:{mime_type};base64,{payload}"


#============================================
def read_source(source: ImageSource) -> bytes:
	"""
	Read all bytes from a path or binary handle.

	Args:
		source: Path or binary file handle.

	Returns:
		File contents.
	"""
	name = describe_source(source)
	if isinstance(source, (str, pathlib.Path)):
		try:
			return pathlib.Path(source).read_bytes()
		except OSError as error:
			raise EncodeError(f"Cannot read image {name}: {error}") from error
	read = getattr(source, "read", None)
	if not callable(read):
		raise EncodeError(f"Image {name} is not a path or binary handle")
	# any failure inside a handle stays local to that file
	try:
		data = read()
	except Exception as error:
		raise EncodeError(f"Cannot read image {name}: {error}") from error
	if not isinstance(data, (bytes, bytearray)):
		raise EncodeError(f"Image {name} is not a binary handle")
	return bytes(data)


#============================================
def encode_file(source: ImageSource) -> str:
	"""
	Read an image resource and encode it as a data URL.

	Args:
		source: Path or binary file handle.

	Returns:
		Portable data URL string.
	"""
	data = read_source(source)
	mime_type = guess_mime_type(describe_source(source))
	return encode_bytes(data, mime_type)


#============================================
def split_data_url(portable: str) -> tuple[str, str]:
	"""
	Split a data URL into mime type and base64 payload.

	Args:
		portable: Data URL string.

	Returns:
		Tuple of (mime_type, payload).
	"""
	match = DATA_URL_PATTERN.match(portable or "")
	if match is None:
		raise EncodeError("Not a base64 data URL")
	mime_type = match.group(1) or FALLBACK_MIME_TYPE
	return (mime_type, match.group(2))


#============================================
def decode(portable: str) -> bytes:
	"""
	Decode a data URL back to the original bytes.

	Args:
		portable: Data URL string.

	Returns:
		Raw bytes.
	"""
	_mime_type, payload = split_data_url(portable)
	try:
		return base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError) as error:
		raise EncodeError(f"Invalid base64 payload: {error}") from error


#============================================
def encode_batch(
	sources: typing.Sequence[ImageSource],
	max_workers: int = DEFAULT_ENCODE_WORKERS,
	verbose: bool = False,
) -> BatchEncodeResult:
	"""
	Encode several image resources concurrently.

	Each source is encoded in its own task. Successful results keep the
	original selection order even when tasks finish out of order, and a
	failed source is reported on its own without affecting the others.

	Args:
		sources: Paths or binary file handles, in selection order.
		max_workers: Thread pool size.
		verbose: Print progress and failures.

	Returns:
		BatchEncodeResult with ordered images and per-file failures.
	"""
	total = len(sources)
	slots: list[str | None] = [None] * total
	failures: list[EncodeFailure] = []
	if total == 0:
		return BatchEncodeResult(images=[], failures=[])

	workers = max(1, min(max_workers, total))
	done = 0
	if verbose:
		print_progress("Encoding", 0, total)
	with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
		futures = {
			executor.submit(encode_file, source): index
			for index, source in enumerate(sources)
		}
		for future in concurrent.futures.as_completed(futures):
			index = futures[future]
			try:
				slots[index] = future.result()
			except EncodeError as error:
				failures.append(
					EncodeFailure(index=index, source=describe_source(sources[index]), error=error)
				)
			done += 1
			if verbose:
				print_progress("Encoding", done, total)
	if verbose:
		print()

	failures.sort(key=lambda failure: failure.index)
	if verbose:
		for failure in failures:
			print(f"Encode failed for {failure.source}: {failure.error}")
	images = [image for image in slots if image is not None]
	return BatchEncodeResult(images=images, failures=failures)
