"""
Unit tests for identifier normalization.

Run: pytest tests/unit/test_identifiers.py -v
"""

import pytest

from utils.identifiers import base_prefix, clean, normalize, strip_leading_zeros


class TestClean:
    """Tests for clean()"""

    @pytest.mark.parametrize("value,expected", [
        ("abc-123", "ABC123"),
        ("AB.C/12 3", "ABC123"),
        ("  x_y  ", "XY"),
        ("ABC123", "ABC123"),
        ("---", ""),
    ])
    def test_strips_punctuation_and_uppercases(self, value, expected):
        assert clean(value) == expected

    def test_none_is_empty(self):
        assert clean(None) == ""

    def test_numbers_are_stringified(self):
        assert clean(1234) == "1234"


class TestStripLeadingZeros:
    """Tests for strip_leading_zeros()"""

    def test_strips_zeros(self):
        assert strip_leading_zeros("000123") == "123"

    def test_keeps_inner_zeros(self):
        assert strip_leading_zeros("10203") == "10203"

    def test_all_zeros_becomes_empty(self):
        assert strip_leading_zeros("000") == ""

    def test_none_is_empty(self):
        assert strip_leading_zeros(None) == ""


class TestBasePrefix:
    """Tests for base_prefix()"""

    @pytest.mark.parametrize("value,expected", [
        ("123-RED", "123"),
        ("A-B-C", "A"),
        ("123", "123"),
        ("-X", ""),
        ("", ""),
    ])
    def test_prefix_before_first_dash(self, value, expected):
        assert base_prefix(value) == expected


class TestNormalize:
    """Tests for normalize()"""

    def test_clean_then_strip_zeros(self):
        assert normalize("00-12.3a") == "123A"

    def test_padded_and_unpadded_are_equal(self):
        assert normalize("000456") == normalize("456")

    def test_never_raises_on_odd_input(self):
        for value in (None, "", "   ", 0, 12.5, "ç"):
            assert isinstance(normalize(value), str)
