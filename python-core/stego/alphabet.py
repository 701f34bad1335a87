"""
Tag Alphabet.

Maps 5-bit values onto 32 consecutive characters of the Unicode Tags block
(Plane 14, U+E0021 to U+E0040). Tag characters render as nothing and survive
the normalisation performed by common messaging platforms, which makes them
usable as an invisible base-32 alphabet.

Every encoded stream starts with the stealth signature, the symbols
(0, 15, 31), so genuine payloads can be told apart from stray tag characters.
"""

from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from .errors import FormatError

TAG_BASE = 0xE0021
ALPHABET_SIZE = 32

TAG_PALETTE: Tuple[str, ...] = tuple(chr(TAG_BASE + i) for i in range(ALPHABET_SIZE))

TAG_REVERSE_MAP: Mapping[str, int] = MappingProxyType(
    {char: index for index, char in enumerate(TAG_PALETTE)}
)

SIGNATURE_SYMBOLS: Tuple[int, ...] = (0, 15, 31)
SIGNATURE_LENGTH = len(SIGNATURE_SYMBOLS)
STEALTH_SIGNATURE: str = "".join(TAG_PALETTE[s] for s in SIGNATURE_SYMBOLS)


def is_tag(char: str) -> bool:
    """Check if a single character belongs to the tag alphabet."""
    return char in TAG_REVERSE_MAP


def symbol_to_char(value: int) -> str:
    """Map a 5-bit value to its tag character."""
    if not 0 <= value < ALPHABET_SIZE:
        raise FormatError(f"Invalid 5-bit value: {value}", code=2101, details={"value": value})
    return TAG_PALETTE[value]


def char_to_symbol(char: str) -> int:
    """Map a tag character back to its 5-bit value."""
    value = TAG_REVERSE_MAP.get(char)
    if value is None:
        raise FormatError(
            "Invalid tag character detected - possible corruption",
            code=2102,
            details={"codepoint": f"U+{ord(char):04X}" if len(char) == 1 else char},
        )
    return value


def symbols_to_text(symbols: Iterable[int]) -> str:
    return "".join(symbol_to_char(s) for s in symbols)


def text_to_symbols(tags: Iterable[str]) -> List[int]:
    return [char_to_symbol(c) for c in tags]
