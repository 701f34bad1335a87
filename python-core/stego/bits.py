"""
Bit Packer.

Converts between bytes and base-32 symbols. The byte sequence is treated as a
single big-endian bit stream and cut into 5-bit groups (5 bytes = 8 symbols).

    pack:   the final short group is completed with zero bits on its low end
    unpack: bits are accumulated MSB-first and a byte is emitted for every 8;
            fewer than 8 leftover bits at the tail are padding and dropped
"""

from typing import Iterable, List

import numpy as np

from .errors import FormatError

BITS_PER_SYMBOL = 5

# Place values of the bits inside one symbol, MSB first
_WEIGHTS = np.array([16, 8, 4, 2, 1], dtype=np.int64)
_SHIFTS = np.array([4, 3, 2, 1, 0], dtype=np.int64)


def pack(data: bytes) -> List[int]:
    """
    Pack bytes into 5-bit symbols.

    Args:
        data: Bytes to pack

    Returns:
        List of integers in the range 0..31
    """
    if not data:
        return []

    bits = np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))

    remainder = bits.size % BITS_PER_SYMBOL
    if remainder:
        padding = np.zeros(BITS_PER_SYMBOL - remainder, dtype=np.uint8)
        bits = np.concatenate([bits, padding])

    groups = bits.reshape(-1, BITS_PER_SYMBOL).astype(np.int64)
    return groups.dot(_WEIGHTS).tolist()


def unpack(symbols: Iterable[int]) -> bytes:
    """
    Unpack 5-bit symbols back into bytes.

    Args:
        symbols: Integers in the range 0..31

    Returns:
        The packed bytes; trailing padding bits are discarded

    Raises:
        FormatError: If a symbol is outside the 5-bit range
    """
    values = np.asarray(list(symbols), dtype=np.int64)
    if values.size == 0:
        return b""

    out_of_range = (values < 0) | (values > 31)
    if out_of_range.any():
        bad = int(values[out_of_range][0])
        raise FormatError(f"Invalid 5-bit value: {bad}", code=2101, details={"value": bad})

    bits = ((values[:, None] >> _SHIFTS) & 1).astype(np.uint8).ravel()
    usable = bits.size - bits.size % 8
    return np.packbits(bits[:usable]).tobytes()


def packed_length(byte_count: int) -> int:
    """Number of symbols ``pack`` produces for ``byte_count`` bytes."""
    return -(-byte_count * 8 // BITS_PER_SYMBOL)
