"""
Framing Layer.

A framed packet is the compressed payload followed by its CRC32 as four
big-endian bytes:

    +----------------------+-----------------+
    | compressed (N bytes) | CRC32 (4 bytes) |
    +----------------------+-----------------+

The checksum is CRC-32/ISO-HDLC (reflected polynomial 0xEDB88320, initial
value and final XOR 0xFFFFFFFF), the variant zlib implements.
"""

import logging
import struct
import zlib

from .errors import FormatError, IntegrityError

logger = logging.getLogger(__name__)

CRC_SIZE = 4


def crc32(data: bytes) -> int:
    """Compute the unsigned CRC32 of ``data``."""
    return zlib.crc32(data) & 0xFFFFFFFF


def frame(compressed: bytes) -> bytes:
    """Append the big-endian CRC32 trailer to ``compressed``."""
    return bytes(compressed) + struct.pack("!I", crc32(compressed))


def split(buffer: bytes):
    """
    Split a framed packet into its body and stored checksum.

    Raises:
        FormatError: If the buffer cannot hold a checksum
    """
    if len(buffer) < CRC_SIZE:
        raise FormatError(
            "Data too short - checksum missing",
            code=2110,
            details={"length": len(buffer)},
        )
    body = bytes(buffer[:-CRC_SIZE])
    (stored,) = struct.unpack("!I", buffer[-CRC_SIZE:])
    return body, stored


def verify(buffer: bytes) -> bool:
    """Return True if the framed packet's trailer matches its body."""
    body, stored = split(buffer)
    return crc32(body) == stored


def unframe(buffer: bytes, lenient: bool = False) -> bytes:
    """
    Validate and strip the CRC32 trailer.

    Args:
        buffer: Framed packet
        lenient: Continue on checksum mismatch instead of failing. Meant for
                 transcriptions where a platform stripped or a user mistyped
                 a few tags.

    Returns:
        The compressed payload

    Raises:
        FormatError: If the buffer is shorter than the trailer
        IntegrityError: On checksum mismatch in strict mode
    """
    body, stored = split(buffer)
    calculated = crc32(body)

    if calculated != stored:
        if not lenient:
            raise IntegrityError(
                "Data corrupted during transmission.",
                code=2201,
                details={"stored": f"{stored:08x}", "calculated": f"{calculated:08x}"},
            )
        logger.warning(
            f"Checksum mismatch (stored={stored:08x}, calculated={calculated:08x}); "
            "some tags may have been stripped. Attempting recovery..."
        )

    return body
