# compression.py
import logging
import threading
import zlib
from typing import BinaryIO, Optional

from .exceptions import CompressionFailure, ReadFailure, WalkCancelled

# wbits=31 selects the gzip container (16) around a 32K deflate window (15).
GZIP_WBITS = 16 + zlib.MAX_WBITS
DEFAULT_CHUNK_SIZE = 64 * 1024


def estimate_compressed_size(
    stream: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: Optional[threading.Event] = None,
) -> int:
    """
    Returns the number of bytes ``stream`` would occupy once gzip-compressed
    at the default level.

    The stream is read to EOF in ``chunk_size`` steps. Compressed output is
    counted and dropped as it is produced, so nothing is kept in memory
    beyond the compressor's own window.

    :raises ReadFailure: the stream raised while being read.
    :raises CompressionFailure: the compressor failed to compress or flush.
    :raises WalkCancelled: ``cancel_event`` was set while reading.
    """
    compressor = zlib.compressobj(
        zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, GZIP_WBITS
    )
    total = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise WalkCancelled("Size estimation cancelled.")
        try:
            chunk = stream.read(chunk_size)
        except OSError as e:
            raise ReadFailure(f"Failed to read stream: {e}") from e
        if not chunk:
            break
        try:
            total += len(compressor.compress(chunk))
        except zlib.error as e:
            raise CompressionFailure(f"Compression failed: {e}") from e

    try:
        total += len(compressor.flush(zlib.Z_FINISH))
    except zlib.error as e:
        logging.error(f"Compressor could not finalize its output: {e}")
        raise CompressionFailure(f"Could not finalize compressed output: {e}") from e
    return total
