"""
Tag Text Steganography Module.

This module hides binary payloads inside ordinary text using invisible
characters from the Unicode Tags block, and recovers them later.

Encoding pipeline:
    payload -> deflate -> CRC32 trailer -> 5-bit symbols
            -> stealth signature + symbols -> tag characters

Decoding runs the same steps in reverse after isolating the tag characters
from the surrounding cover text.

Usage:
    >>> from stego import TagStego
    >>> stego = TagStego()
    >>> hidden = stego.embed(b"\\x01secret", "Nice weather today")
    >>> stego.has_stealth(hidden.text)
    True
    >>> stego.decode(hidden.text)
    b'\\x01secret'
    >>> stego.extract_cover_text(hidden.text)
    'Nice weather today'
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from . import bits, compression, framing
from .alphabet import (
    SIGNATURE_LENGTH,
    SIGNATURE_SYMBOLS,
    STEALTH_SIGNATURE,
    TAG_REVERSE_MAP,
    symbols_to_text,
    text_to_symbols,
)
from .errors import FormatError

logger = logging.getLogger(__name__)

# Stealth ratio estimate: deflate halves typical ciphertext-bearing packets and
# every packet carries version (1) + nonce (24) + sender key (32) bytes.
ESTIMATED_COMPRESSION = 0.5
PROTOCOL_OVERHEAD = 57
TAGS_PER_BYTE = 8 / 5
RATIO_MULTIPLIER = 200


@dataclass
class CodecConfig:
    """Configuration for the tag codec."""
    compression_level: int
    tags_per_visible_char: int

    @classmethod
    def default(cls) -> 'CodecConfig':
        """Get default configuration."""
        return cls(
            compression_level=compression.DEFAULT_LEVEL,
            tags_per_visible_char=2,
        )


@dataclass
class TagEmbeddingResult:
    """
    Result of embedding a payload into cover text.

    Attributes:
        text: Cover text with the tag characters interleaved
        tag_count: Number of tag characters embedded (signature included)
        carrier_length: Number of visible code points in the cover text
        overflow: Tags appended after the cover because it was too short
    """

    text: str
    tag_count: int
    carrier_length: int
    overflow: int


class TagStego:
    """
    Invisible tag codec.

    The codec is stateless apart from its configuration, so a single instance
    can be shared between threads.

    Example:
        >>> stego = TagStego()
        >>> fragment = stego.encode(bytes([1, 2, 3]))
        >>> stego.decode("hello" + fragment)
        b'\\x01\\x02\\x03'
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self._config = config or CodecConfig.default()

    @property
    def config(self) -> CodecConfig:
        return self._config

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    @staticmethod
    def extract_tags(text: str) -> List[str]:
        """Return the tag characters of ``text`` in their original order."""
        return [char for char in text if char in TAG_REVERSE_MAP]

    def has_stealth(self, text: str) -> bool:
        """
        Check if text carries tag characters.

        A leading stealth signature confirms a payload. Any other tag
        character still counts, so garbled or partial pastes are detected;
        decoding then applies the strict signature check.
        """
        tags = self.extract_tags(text)
        if not tags:
            return False

        if len(tags) >= SIGNATURE_LENGTH and "".join(tags[:SIGNATURE_LENGTH]) == STEALTH_SIGNATURE:
            return True

        logger.debug(f"Found {len(tags)} tag characters without a stealth signature")
        return True

    @staticmethod
    def extract_cover_text(text: str) -> str:
        """Return the visible text with every tag character removed."""
        return "".join(char for char in text if char not in TAG_REVERSE_MAP)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, payload: bytes) -> str:
        """
        Encode a payload into a string of invisible tag characters.

        Args:
            payload: Arbitrary bytes, may be empty

        Returns:
            Tag characters, starting with the stealth signature
        """
        compressed = compression.compress(payload, self._config.compression_level)
        packet = framing.frame(compressed)
        symbols = list(SIGNATURE_SYMBOLS) + bits.pack(packet)
        return symbols_to_text(symbols)

    def embed(self, payload: bytes, cover_text: str) -> TagEmbeddingResult:
        """
        Hide a payload inside cover text.

        A fixed number of tags is placed after each visible character. The
        cover text itself is never altered; when it is too short to carry
        every tag the rest is appended to its end.

        Args:
            payload: Bytes to hide
            cover_text: Visible text to carry the payload

        Returns:
            TagEmbeddingResult with the combined text
        """
        tags = self.encode(payload)
        per_char = self._config.tags_per_visible_char

        parts = []
        index = 0
        for char in cover_text:
            parts.append(char)
            parts.append(tags[index:index + per_char])
            index += per_char

        overflow = max(0, len(tags) - index)
        if overflow:
            logger.warning(f"Cover text too short. Appending {overflow} remaining tags to end of string.")
            parts.append(tags[index:])

        return TagEmbeddingResult(
            text="".join(parts),
            tag_count=len(tags),
            carrier_length=len(cover_text),
            overflow=overflow,
        )

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, text: str, lenient: bool = False) -> bytes:
        """
        Recover the payload hidden in ``text``.

        Args:
            text: Text containing tag characters anywhere
            lenient: Ignore checksum mismatches and salvage what can be
                     inflated from a damaged stream

        Returns:
            The original payload bytes

        Raises:
            FormatError: If no well-formed stealth stream is present
            IntegrityError: If the stream is damaged (strict mode only)
        """
        tags = self.extract_tags(text)

        if not tags:
            raise FormatError("No valid camouflage data found - no tag characters detected", code=2120)

        if len(tags) < SIGNATURE_LENGTH:
            raise FormatError("Message too short - missing prefix signature", code=2121)

        if "".join(tags[:SIGNATURE_LENGTH]) != STEALTH_SIGNATURE:
            raise FormatError("Invalid stealth message: prefix signature not found", code=2122)

        data_tags = tags[SIGNATURE_LENGTH:]
        if not data_tags:
            raise FormatError("No data after prefix signature", code=2123)

        packet = bits.unpack(text_to_symbols(data_tags))
        compressed = framing.unframe(packet, lenient=lenient)

        if lenient:
            return compression.salvage(compressed)
        return compression.decompress(compressed)

    # ------------------------------------------------------------------
    # Cover planning
    # ------------------------------------------------------------------

    def capacity(self, cover_text: str) -> int:
        """Number of tags the cover can carry without overflow."""
        return len(cover_text) * self._config.tags_per_visible_char

    def stealth_ratio(self, payload_size: int, cover_text: str) -> int:
        """
        Score how well a cover hides a payload of the given size.

        Args:
            payload_size: Size of the payload in bytes, before compression
            cover_text: Candidate cover text

        Returns:
            Integer between 0 and 100; 100 means the cover is long enough
            to interleave every tag
        """
        if not cover_text:
            return 0
        if payload_size == 0:
            return 100

        estimated_compressed = math.ceil(payload_size * ESTIMATED_COMPRESSION)
        total_size = estimated_compressed + PROTOCOL_OVERHEAD
        estimated_tags = math.ceil(total_size * TAGS_PER_BYTE) + SIGNATURE_LENGTH
        required_chars = math.ceil(estimated_tags / self._config.tags_per_visible_char)

        ratio = len(cover_text) / required_chars
        score = min(100, round(ratio * RATIO_MULTIPLIER))

        logger.debug(
            f"Stealth ratio: payload={payload_size} tags={estimated_tags} "
            f"required={required_chars} cover={len(cover_text)} score={score}"
        )
        return score
