"""
Fuzz Tests for the Tag Codec and Input Analyzer

This module uses hypothesis to check the codec's round-trip and tamper
behaviour, and that analysis never raises on arbitrary text.
"""

import pytest
import hypothesis.strategies as st
from hypothesis import given, settings, Verbosity
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))


# Hypothesis strategies for fuzz testing
binary_data = st.binary(min_size=0, max_size=1024)
cover_text = st.text(min_size=0, max_size=200, alphabet=st.characters(
    exclude_categories=['Cs'],
    exclude_characters=[chr(c) for c in range(0xE0021, 0xE0041)],
))
tag_chars = st.sampled_from([chr(c) for c in range(0xE0021, 0xE0041)])
mixed_text = st.text(max_size=300, alphabet=st.one_of(st.characters(exclude_categories=['Cs']), tag_chars))


class TestCodecFuzzing:
    """Fuzz tests for encode, embed and decode."""

    @pytest.fixture(scope="class")
    def stego(self):
        """Create a codec shared by every example."""
        from stego import TagStego
        return TagStego()

    @given(payload=binary_data)
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_round_trip_fuzz(self, stego, payload):
        """Fuzz test that decode reverses encode."""
        assert stego.decode(stego.encode(payload)) == payload

    @given(payload=binary_data, cover=cover_text)
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_embed_fuzz(self, stego, payload, cover):
        """Fuzz test cover purity and recovery after embedding."""
        result = stego.embed(payload, cover)

        assert stego.extract_cover_text(result.text) == cover
        assert stego.decode(result.text) == payload
        assert stego.has_stealth(result.text)

    @given(payload=st.binary(min_size=1, max_size=256), data=st.data())
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_bit_flip_fuzz(self, stego, payload, data):
        """Fuzz test that a flipped packet bit fails strict and survives lenient."""
        from stego import IntegrityError, bits, compression, framing
        from stego.alphabet import SIGNATURE_SYMBOLS, symbols_to_text

        compressed = compression.compress(payload)
        packet = bytearray(framing.frame(compressed))
        position = data.draw(st.integers(min_value=0, max_value=len(packet) * 8 - 1))
        packet[position // 8] ^= 0x80 >> (position % 8)

        text = symbols_to_text(list(SIGNATURE_SYMBOLS) + bits.pack(bytes(packet)))

        with pytest.raises(IntegrityError):
            stego.decode(text)
        assert isinstance(stego.decode(text, lenient=True), bytes)

    @given(text=mixed_text)
    @settings(verbosity=Verbosity.quiet, max_examples=200)
    def test_decode_only_raises_stego_errors(self, stego, text):
        """Fuzz test that decoding garbage fails with codec errors only."""
        from stego import StegoError

        try:
            stego.decode(text, lenient=True)
        except StegoError:
            pass

    @given(payload=binary_data)
    @settings(verbosity=Verbosity.quiet, max_examples=50)
    def test_symbol_count_fuzz(self, stego, payload):
        """Fuzz test the tag count against the packed length."""
        from stego import bits, compression, framing

        expected = bits.packed_length(len(compression.compress(payload)) + framing.CRC_SIZE) + 3
        assert len(stego.encode(payload)) == expected


class TestBitsFuzzing:
    """Fuzz tests for the bit packer."""

    @given(data=binary_data)
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_pack_range_fuzz(self, data):
        from stego.bits import pack, packed_length

        symbols = pack(data)
        assert len(symbols) == packed_length(len(data))
        assert all(0 <= s < 32 for s in symbols)

    @given(symbols=st.lists(st.integers(min_value=0, max_value=31), max_size=200))
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_unpack_length_fuzz(self, symbols):
        from stego.bits import unpack

        assert len(unpack(symbols)) == len(symbols) * 5 // 8


class TestAnalyzerFuzzing:
    """Fuzz tests for input analysis."""

    @pytest.fixture(scope="class")
    def analyzer(self):
        from veil.analyzer import InputAnalyzer
        return InputAnalyzer()

    @given(text=mixed_text)
    @settings(verbosity=Verbosity.quiet, max_examples=200)
    def test_analyze_never_raises(self, analyzer, text):
        """Fuzz test that any text yields a result."""
        from veil.analyzer import PayloadKind

        result = analyzer.analyze(text)
        assert isinstance(result.kind, PayloadKind)
        assert result.kind != PayloadKind.BROADCAST

    @given(text=st.text(max_size=100))
    @settings(verbosity=Verbosity.quiet, max_examples=100)
    def test_key_parser_fuzz(self, text):
        """Fuzz test that parsing never raises and valid keys are substrings."""
        from veil.keys import parse_key_input

        result = parse_key_input(text)
        if result.is_valid:
            assert result.key in text
        else:
            assert result.key == ""

    @given(payload=binary_data)
    @settings(verbosity=Verbosity.quiet, max_examples=50)
    def test_stealth_flag_fuzz(self, analyzer, payload):
        """Fuzz test that stealth input is always flagged as such."""
        from stego import TagStego

        result = analyzer.analyze("cover" + TagStego().encode(payload))
        assert result.is_stealth
        assert result.cover_text == "cover"
        assert result.extracted_binary == payload
