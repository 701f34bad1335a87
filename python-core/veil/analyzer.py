"""
Veil Input Analyzer

Turns arbitrary pasted or clipboard text into a typed analysis result.
The analyzer is a single-pass decision procedure that keeps no state
between calls:

    1. StealthCheck     tag characters present?
    2. StealthDecode    strict decode, lenient retry on integrity failure
    3. PlainKeyCheck    ``name+key`` or bare key text (no tags only)
    4. LegacyOrBase64   PGP armor banner, else unframed base64 payload
    5. Classify         key text inside the payload, else version byte

Analysis never raises. Every internal failure degrades to an ``unknown``
result because input analysis must produce a result for any untrusted text.
"""

import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from stego import IntegrityError, StegoError, TagStego

from .keys import UNKNOWN_USERNAME, parse_key_input

logger = logging.getLogger(__name__)

LEGACY_ARMOR_BANNER = "-----BEGIN PGP MESSAGE-----"

_ASCII_WHITESPACE = re.compile(r"[\t\n\f\r ]")
_BASE64_BODY = re.compile(r"[A-Za-z0-9+/]*")


class PayloadKind(Enum):
    """Classification of analyzed input."""

    MESSAGE = "message"
    IDENTITY = "identity"
    MULTI_IDENTITY = "multi_identity"
    BROADCAST = "broadcast"
    UNKNOWN = "unknown"


# Protocol version byte -> payload kind. Version 0x02 covers both single
# and broadcast identities; telling them apart needs the decrypted content.
VERSION_KINDS: Dict[int, PayloadKind] = {
    0x01: PayloadKind.MESSAGE,
    0x02: PayloadKind.IDENTITY,
    0x03: PayloadKind.MULTI_IDENTITY,
}


@dataclass(frozen=True)
class KeyData:
    name: str
    public_key: str


@dataclass
class AnalysisResult:
    """
    Result of analyzing one input.

    Attributes:
        kind: Payload classification, ``UNKNOWN`` until one succeeds
        extracted_binary: Decoded payload bytes, if any
        is_stealth: Whether tag characters were found
        cover_text: Visible text with the tags removed (stealth input only)
        key_data: Name and public key for identity-shaped input
    """

    kind: PayloadKind = PayloadKind.UNKNOWN
    extracted_binary: Optional[bytes] = None
    is_stealth: bool = False
    cover_text: Optional[str] = None
    key_data: Optional[KeyData] = None

    @property
    def protocol_version(self) -> Optional[int]:
        """First byte of the extracted payload."""
        if self.extracted_binary:
            return self.extracted_binary[0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "extracted_binary": self.extracted_binary,
            "is_stealth": self.is_stealth,
            "cover_text": self.cover_text,
            "key_data": (
                {"name": self.key_data.name, "public_key": self.key_data.public_key}
                if self.key_data else None
            ),
            "protocol_version": self.protocol_version,
        }


def decode_base64(text: str) -> bytes:
    """
    Forgiving base64 decode.

    ASCII whitespace is ignored and missing ``=`` padding is tolerated.

    Raises:
        ValueError: If the text is not base64
    """
    data = _ASCII_WHITESPACE.sub("", text)
    if len(data) % 4 == 0 and data.endswith("="):
        data = data[:-2] if data.endswith("==") else data[:-1]

    if len(data) % 4 == 1 or not _BASE64_BODY.fullmatch(data):
        raise ValueError("Invalid base64 input")

    try:
        return base64.b64decode(data + "=" * (-len(data) % 4), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 input: {e}") from e


class InputAnalyzer:
    """
    Classifies text into message, identity or multi-identity payloads.

    Example:
        >>> analyzer = InputAnalyzer()
        >>> result = analyzer.analyze("Hello" + TagStego().encode(b"\\x01abc"))
        >>> result.kind
        <PayloadKind.MESSAGE: 'message'>
    """

    def __init__(self, stego: Optional[TagStego] = None):
        self._stego = stego or TagStego()

    def analyze(self, text: str) -> AnalysisResult:
        """
        Analyze a single input.

        Args:
            text: Arbitrary untrusted text

        Returns:
            A fresh AnalysisResult owned by the caller
        """
        started = time.perf_counter()
        result = AnalysisResult()

        try:
            if self._stego.has_stealth(text):
                self._analyze_stealth(text, result)
            else:
                self._analyze_plain(text, result)
        except Exception as e:
            logger.debug(f"Analysis failed, reporting unknown: {e}")
            result.kind = PayloadKind.UNKNOWN

        logger.debug(
            f"Analysis complete: kind={result.kind.value} stealth={result.is_stealth} "
            f"in {(time.perf_counter() - started) * 1000:.2f}ms"
        )
        return result

    def _analyze_stealth(self, text: str, result: AnalysisResult) -> None:
        result.is_stealth = True
        result.cover_text = self._stego.extract_cover_text(text)

        try:
            try:
                payload = self._stego.decode(text, lenient=False)
            except IntegrityError as e:
                logger.warning(f"Strict decode failed ({e.message}); retrying leniently")
                payload = self._stego.decode(text, lenient=True)
        except StegoError as e:
            logger.debug(f"Stealth decode failed: {e}")
            return

        result.extracted_binary = payload
        self._classify(result)

    def _analyze_plain(self, text: str, result: AnalysisResult) -> None:
        parsed = parse_key_input(text)
        if parsed.is_valid:
            result.kind = PayloadKind.IDENTITY
            result.key_data = KeyData(name=parsed.username or UNKNOWN_USERNAME, public_key=parsed.key)
            return

        trimmed = text.strip()
        if LEGACY_ARMOR_BANNER in trimmed:
            result.kind = PayloadKind.MESSAGE
            return

        try:
            payload = decode_base64(trimmed)
        except ValueError:
            logger.debug("Input is neither a key nor base64")
            return

        if payload:
            result.extracted_binary = payload
            self._classify(result)

    def _classify(self, result: AnalysisResult) -> None:
        payload = result.extracted_binary
        if not payload:
            logger.debug("Decoded payload is empty")
            return

        try:
            parsed = parse_key_input(payload.decode("utf-8"))
        except UnicodeDecodeError:
            parsed = None

        if parsed is not None and parsed.is_valid:
            result.kind = PayloadKind.IDENTITY
            result.key_data = KeyData(name=parsed.username or UNKNOWN_USERNAME, public_key=parsed.key)
            return

        version = payload[0]
        result.kind = VERSION_KINDS.get(version, PayloadKind.UNKNOWN)
        logger.debug(f"Decoded payload: length={len(payload)} version=0x{version:02x} kind={result.kind.value}")


_default_analyzer = InputAnalyzer()


def analyze_input(text: str) -> AnalysisResult:
    """Analyze text with a shared analyzer instance."""
    return _default_analyzer.analyze(text)
