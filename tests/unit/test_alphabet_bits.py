"""
Unit Tests for the Tag Alphabet and Bit Packer

Covers the mapping between 5-bit values and tag characters, and the
conversion between bytes and 5-bit symbols.
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))


class TestTagAlphabet:
    """Test cases for the tag alphabet."""

    def test_palette_range(self):
        """Test that the palette covers U+E0021 to U+E0040."""
        from stego.alphabet import TAG_PALETTE

        assert len(TAG_PALETTE) == 32
        assert TAG_PALETTE[0] == '\U000E0021'
        assert TAG_PALETTE[31] == '\U000E0040'
        assert len(set(TAG_PALETTE)) == 32

    def test_reverse_map_is_inverse(self):
        """Test that every palette character maps back to its index."""
        from stego.alphabet import TAG_PALETTE, TAG_REVERSE_MAP

        for index, char in enumerate(TAG_PALETTE):
            assert TAG_REVERSE_MAP[char] == index

    def test_reverse_map_is_read_only(self):
        """Test that the reverse map cannot be modified."""
        from stego.alphabet import TAG_REVERSE_MAP

        with pytest.raises(TypeError):
            TAG_REVERSE_MAP['x'] = 1

    def test_stealth_signature(self):
        """Test the signature symbols and their characters."""
        from stego.alphabet import SIGNATURE_SYMBOLS, STEALTH_SIGNATURE

        assert SIGNATURE_SYMBOLS == (0, 15, 31)
        assert STEALTH_SIGNATURE == '\U000E0021\U000E0030\U000E0040'

    def test_is_tag(self):
        """Test tag membership for characters inside and outside the block."""
        from stego.alphabet import is_tag

        assert is_tag('\U000E0021')
        assert is_tag('\U000E0040')
        assert not is_tag('\U000E0020')
        assert not is_tag('\U000E0041')
        assert not is_tag('a')

    def test_symbol_out_of_range(self):
        """Test that values outside 0..31 are rejected."""
        from stego.alphabet import symbol_to_char
        from stego.errors import FormatError

        with pytest.raises(FormatError) as exc_info:
            symbol_to_char(32)
        assert exc_info.value.code == 2101

        with pytest.raises(FormatError):
            symbol_to_char(-1)

    def test_unknown_character(self):
        """Test that non-tag characters cannot be mapped to symbols."""
        from stego.alphabet import char_to_symbol
        from stego.errors import FormatError

        with pytest.raises(FormatError) as exc_info:
            char_to_symbol('z')
        assert exc_info.value.code == 2102
        assert exc_info.value.details['codepoint'] == 'U+007A'

    def test_symbols_text_round_trip(self):
        """Test converting a full symbol range to text and back."""
        from stego.alphabet import symbols_to_text, text_to_symbols

        symbols = list(range(32))
        text = symbols_to_text(symbols)
        assert len(text) == 32
        assert text_to_symbols(text) == symbols


class TestBitPacker:
    """Test cases for 5-bit packing."""

    def test_pack_empty(self):
        """Test that empty input packs to no symbols."""
        from stego.bits import pack

        assert pack(b'') == []

    def test_pack_single_byte(self):
        """Test that the last group is padded with zero bits."""
        from stego.bits import pack

        # 11111111 -> 11111 11100
        assert pack(b'\xff') == [31, 28]
        # 00000001 -> 00000 00100
        assert pack(b'\x01') == [0, 4]

    def test_pack_five_bytes(self):
        """Test that five bytes fill eight symbols exactly."""
        from stego.bits import pack

        assert pack(b'\xff' * 5) == [31] * 8
        assert pack(b'\x00' * 5) == [0] * 8

    def test_pack_is_big_endian(self):
        """Test that the first byte's high bits come first."""
        from stego.bits import pack

        # 10000000 01000000 -> 10000 00001 00000 0(0000)
        assert pack(b'\x80\x40') == [16, 1, 0, 0]

    def test_unpack_drops_padding(self):
        """Test that fewer than eight leftover bits are discarded."""
        from stego.bits import unpack

        assert unpack([31, 28]) == b'\xff'
        assert unpack([31, 31]) == b'\xff'
        assert unpack([31]) == b''

    def test_unpack_empty(self):
        """Test that no symbols unpack to no bytes."""
        from stego.bits import unpack

        assert unpack([]) == b''

    def test_unpack_rejects_large_values(self):
        """Test that symbols above 31 are rejected."""
        from stego.bits import unpack
        from stego.errors import FormatError

        with pytest.raises(FormatError) as exc_info:
            unpack([1, 2, 40])
        assert exc_info.value.details['value'] == 40

    @pytest.mark.parametrize("data", [
        b'\x01\x02\x03',
        bytes(range(256)),
        b'\x00',
        b'hello world',
    ])
    def test_round_trip(self, data):
        """Test that unpack reverses pack."""
        from stego.bits import pack, unpack

        assert unpack(pack(data)) == data

    @pytest.mark.parametrize("count,expected", [(0, 0), (1, 2), (2, 4), (4, 7), (5, 8), (8, 13)])
    def test_packed_length(self, count, expected):
        """Test the predicted symbol count."""
        from stego.bits import pack, packed_length

        assert packed_length(count) == expected
        assert len(pack(b'\xaa' * count)) == expected
