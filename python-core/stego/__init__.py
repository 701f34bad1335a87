"""
Veil Steganography Module - Invisible Tag Codec.

This module hides binary payloads inside visible text using characters from
the Unicode Tags block, framed with a stealth signature and a CRC32 trailer.

Modules:
    alphabet: Tag alphabet and stealth signature
    bits: 8-bit <-> 5-bit symbol packing
    framing: CRC32 framing
    compression: Deflate wrapper
    text: Scanner, encoder and cover text embedding

Usage:
    >>> from stego import TagStego
    >>> stego = TagStego()
    >>> text = stego.embed(payload, "Cover sentence").text
    >>> payload = stego.decode(text)
"""

from .errors import FormatError, IntegrityError, InvalidPayloadError, StegoError
from .text import CodecConfig, TagEmbeddingResult, TagStego

__all__ = [
    "CodecConfig",
    "FormatError",
    "IntegrityError",
    "InvalidPayloadError",
    "StegoError",
    "TagEmbeddingResult",
    "TagStego",
]

__version__ = "1.0.0"
