import io
import os
import pathlib
import time

import pytest

import hvac_service_report.errors as errors
import hvac_service_report.image_codec as image_codec


class _SlowHandle(io.BytesIO):
	"""
	Binary handle that waits before returning its bytes.
	"""

	def __init__(self, name: str, data: bytes, delay: float):
		super().__init__(data)
		self.name = name
		self.delay = delay

	def read(self, *args, **kwargs) -> bytes:
		time.sleep(self.delay)
		return super().read(*args, **kwargs)


#============================================
@pytest.mark.parametrize(
	"payload",
	[
		b"",
		b"\x89PNG\r\n\x1a\n\x00\x00",
		bytes(range(256)),
		os.urandom(3 * 1024 * 1024 + 17),
	],
)
def test_round_trip_is_lossless(payload: bytes) -> None:
	portable = image_codec.encode_bytes(payload, "image/png")
	assert portable.startswith("data:image/png;base64,")
	assert image_codec.decode(portable) == payload


#============================================
def test_encode_file_guesses_mime_type(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "rooftop.jpg"
	path.write_bytes(b"\xff\xd8\xff\xe0jpeg")
	portable = image_codec.encode_file(path)
	assert portable.startswith("data:image/jpeg;base64,")
	assert image_codec.decode(portable) == b"\xff\xd8\xff\xe0jpeg"

	unknown = tmp_path / "nameplate"
	unknown.write_bytes(b"raw")
	assert image_codec.encode_file(unknown).startswith("data:application/octet-stream;base64,")


#============================================
def test_encode_file_accepts_binary_handle() -> None:
	handle = io.BytesIO(b"photo bytes")
	handle.name = "coil.png"
	portable = image_codec.encode_file(handle)
	assert portable.startswith("data:image/png;base64,")
	assert image_codec.decode(portable) == b"photo bytes"


#============================================
def test_unreadable_sources_raise_encode_error(tmp_path: pathlib.Path) -> None:
	with pytest.raises(errors.EncodeError):
		image_codec.encode_file(tmp_path / "missing.png")
	closed = io.BytesIO(b"data")
	closed.close()
	with pytest.raises(errors.EncodeError):
		image_codec.encode_file(closed)
	text_handle = io.StringIO("not bytes")
	with pytest.raises(errors.EncodeError):
		image_codec.encode_file(text_handle)


#============================================
def test_decode_rejects_malformed_strings() -> None:
	with pytest.raises(errors.EncodeError):
		image_codec.decode("not a data url")
	with pytest.raises(errors.EncodeError):
		image_codec.decode("data:image/png;base64,@@@")


#============================================
def test_batch_failure_is_per_file(tmp_path: pathlib.Path) -> None:
	"""
	A failing second file leaves files one and three appended in order.
	"""
	first = tmp_path / "one.png"
	first.write_bytes(b"one")
	third = tmp_path / "three.png"
	third.write_bytes(b"three")
	sources = [first, tmp_path / "two.png", third]

	result = image_codec.encode_batch(sources)
	assert [image_codec.decode(image) for image in result.images] == [b"one", b"three"]
	assert len(result.failures) == 1
	failure = result.failures[0]
	assert failure.index == 1
	assert failure.source.endswith("two.png")
	assert isinstance(failure.error, errors.EncodeError)


#============================================
def test_batch_keeps_selection_order_when_finishing_out_of_order() -> None:
	sources = [
		_SlowHandle("a.png", b"a", 0.30),
		_SlowHandle("b.png", b"b", 0.15),
		_SlowHandle("c.png", b"c", 0.0),
	]
	result = image_codec.encode_batch(sources, max_workers=3)
	assert result.failures == []
	assert [image_codec.decode(image) for image in result.images] == [b"a", b"b", b"c"]


#============================================
def test_empty_batch() -> None:
	result = image_codec.encode_batch([])
	assert result.images == []
	assert result.failures == []


class _BrokenHandle:
	"""
	Handle whose read fails with a non-IO error.
	"""

	name = "broken.png"

	def read(self, *args, **kwargs) -> bytes:
		raise RuntimeError("device disconnected")


#============================================
def test_batch_survives_handle_that_raises(tmp_path: pathlib.Path) -> None:
	first = tmp_path / "one.png"
	first.write_bytes(b"one")
	third = tmp_path / "three.png"
	third.write_bytes(b"three")
	sources = [first, _BrokenHandle(), third, 42]

	result = image_codec.encode_batch(sources)
	assert [image_codec.decode(image) for image in result.images] == [b"one", b"three"]
	assert [failure.index for failure in result.failures] == [1, 3]
	assert result.failures[0].source == "broken.png"
	assert "device disconnected" in str(result.failures[0].error)
	assert all(isinstance(failure.error, errors.EncodeError) for failure in result.failures)
