"""
Veil Steganography Errors.

Exception hierarchy shared by the tag codec, the input analyzer and the
processing worker.

Error Codes:
    21xx: Structural problems (missing signature, short buffers, bad symbols)
    22xx: Integrity problems (checksum mismatch, corrupt deflate stream)
    23xx: Malformed worker requests
"""

from typing import Any, Dict, Optional


class StegoError(Exception):
    """
    Base exception for steganography errors.

    Attributes:
        message: Human readable description
        code: Numeric error code
        details: Extra context for logging
    """

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"{type(self).__name__}: {self.message}"
        if self.code:
            base += f" (Code: {self.code})"
        return base


class FormatError(StegoError):
    """Input is structurally malformed: no signature, wrong length, unmapped symbol."""


class IntegrityError(StegoError):
    """Input is well formed but its checksum or deflate stream does not match."""


class InvalidPayloadError(StegoError):
    """A worker request is missing required fields or carries the wrong types."""
