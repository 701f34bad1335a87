"""
Compression Layer.

Payloads are deflated inside a zlib container before framing. A stream that
fails to inflate is reported as an IntegrityError: for the caller a bad
checksum and a bad deflate stream both mean the payload was damaged.
"""

import logging
import zlib

from .errors import IntegrityError

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 6


def compress(data: bytes, level: int = DEFAULT_LEVEL) -> bytes:
    """Deflate ``data`` into a zlib stream."""
    return zlib.compress(bytes(data), level)


def decompress(data: bytes) -> bytes:
    """
    Inflate a zlib stream.

    Raises:
        IntegrityError: If the stream is corrupt or truncated
    """
    try:
        return zlib.decompress(bytes(data))
    except zlib.error as e:
        raise IntegrityError(
            "Data corrupted during transmission.",
            code=2202,
            details={"reason": str(e)},
        ) from e


def salvage(data: bytes) -> bytes:
    """
    Inflate as much of a damaged stream as possible.

    The stream is fed one byte at a time so output produced before the
    corruption point is kept. Never raises; a stream broken at its header
    yields ``b""``.
    """
    try:
        return zlib.decompress(bytes(data))
    except zlib.error:
        pass

    inflater = zlib.decompressobj()
    recovered = bytearray()
    for offset in range(len(data)):
        try:
            recovered += inflater.decompress(data[offset:offset + 1])
        except zlib.error as e:
            logger.warning(f"Deflate stream broken at byte {offset}: {e}")
            break

    logger.warning(f"Recovered {len(recovered)} bytes from damaged stream")
    return bytes(recovered)
