"""
Identifier normalization for SKU / SIGE code comparison.

SIGE codes and local SKUs drift apart in punctuation, case and zero
padding. These helpers reduce both sides to comparable keys.
"""

import re
from typing import Any


_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def clean(value: Any) -> str:
    """
    Drop every non-alphanumeric character and uppercase.

    Examples:
        "abc-123" → "ABC123"
        " 12.34 / x" → "1234X"
    """
    return _NON_ALNUM.sub("", _text(value)).upper()


def strip_leading_zeros(value: Any) -> str:
    """
    Drop leading "0" characters.

    Examples:
        "000123" → "123"
        "000" → ""
    """
    return _text(value).lstrip("0")


def base_prefix(value: Any) -> str:
    """
    Substring before the first dash, or the value itself when there is none.

    Examples:
        "123-RED" → "123"
        "A-B-C" → "A"
        "123" → "123"
    """
    text = _text(value)
    return text.split("-", 1)[0]


def normalize(value: Any) -> str:
    """Canonical comparison key: clean, then strip leading zeros."""
    return strip_leading_zeros(clean(value))
