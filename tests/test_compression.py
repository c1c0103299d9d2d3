# tests/test_compression.py
import io
import threading
import zlib
from unittest.mock import MagicMock, patch

import pytest

from dirsize.compression import estimate_compressed_size
from dirsize.exceptions import CompressionFailure, ReadFailure, WalkCancelled


def _gzip_length(data: bytes) -> int:
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, 31)
    return len(compressor.compress(data) + compressor.flush())


def test_empty_stream_is_header_and_trailer_only():
    """An empty input yields the 10-byte header, an empty final block and the 8-byte trailer."""
    assert estimate_compressed_size(io.BytesIO(b"")) == 20


def test_small_stream_matches_gzip_output():
    assert estimate_compressed_size(io.BytesIO(b"hello")) == _gzip_length(b"hello")


def test_chunk_size_does_not_change_result():
    data = b"the quick brown fox jumps over the lazy dog\n" * 5000
    expected = _gzip_length(data)

    assert estimate_compressed_size(io.BytesIO(data), chunk_size=7) == expected
    assert estimate_compressed_size(io.BytesIO(data), chunk_size=1 << 20) == expected
    assert expected < len(data)


def test_unreadable_stream_raises_read_failure():
    stream = MagicMock()
    stream.read.side_effect = PermissionError(13, "Permission denied")

    with pytest.raises(ReadFailure) as excinfo:
        estimate_compressed_size(stream)

    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert excinfo.value.kind == "io_error"


@patch("dirsize.compression.zlib.compressobj")
def test_flush_failure_raises_compression_failure(mock_compressobj):
    compressor = mock_compressobj.return_value
    compressor.compress.return_value = b""
    compressor.flush.side_effect = zlib.error("stream error")

    with pytest.raises(CompressionFailure):
        estimate_compressed_size(io.BytesIO(b"data"))


def test_set_cancel_event_stops_reading():
    event = threading.Event()
    event.set()
    stream = MagicMock()

    with pytest.raises(WalkCancelled):
        estimate_compressed_size(stream, cancel_event=event)

    stream.read.assert_not_called()
