"""
Key-Format Parser.

Recognises the two textual identity encodings:

    name+KEY    a username, a literal '+', then a base64 public key
    KEY         a bare 32-byte public key in base64

A 32-byte key is 43 characters of base64 without padding or 44 with it.
Behind a username the key may also be any canonically padded base64 string
of 32 to 48 bytes (44 to 64 characters).
"""

import re
from dataclasses import dataclass
from typing import Optional

BASE64_KEY_PATTERN = r"[A-Za-z0-9+/=]{43,44}"
PADDED_KEY_PATTERN = (
    r"(?:[A-Za-z0-9+/]{4}){10,15}"
    r"(?:[A-Za-z0-9+/]{4}|[A-Za-z0-9+/]{3}=|[A-Za-z0-9+/]{2}==)"
)

# Greedy name: the longest prefix that still leaves a valid key suffix wins,
# so names may contain '+' themselves.
USERNAME_KEY_REGEX = re.compile(rf"(.+)\+({BASE64_KEY_PATTERN}|{PADDED_KEY_PATTERN})")
BASE64_KEY_REGEX = re.compile(BASE64_KEY_PATTERN)

UNKNOWN_USERNAME = "Unknown"


@dataclass(frozen=True)
class KeyParseResult:
    is_valid: bool
    key: str
    username: Optional[str] = None


def parse_key_input(text: str) -> KeyParseResult:
    """
    Parse text as ``name+key`` or a bare base64 key.

    Args:
        text: Raw input, surrounding whitespace is ignored

    Returns:
        KeyParseResult; ``is_valid`` is False for anything else
    """
    trimmed = text.strip()

    match = USERNAME_KEY_REGEX.fullmatch(trimmed)
    if match:
        return KeyParseResult(is_valid=True, key=match.group(2), username=match.group(1))

    if BASE64_KEY_REGEX.fullmatch(trimmed):
        return KeyParseResult(is_valid=True, key=trimmed)

    return KeyParseResult(is_valid=False, key="")


def format_key_input(key: str, username: Optional[str] = None) -> str:
    """
    Build the shareable text form of an identity.

    Raises:
        ValueError: If the result would not parse back to the same key
    """
    text = f"{username}+{key}" if username else key
    parsed = parse_key_input(text)
    if not parsed.is_valid or parsed.key != key:
        raise ValueError(f"Not a shareable key: {key!r}")
    return text
