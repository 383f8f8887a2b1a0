"""
Shared pure helpers.
"""

from utils.identifiers import (
    clean,
    strip_leading_zeros,
    base_prefix,
    normalize,
)

__all__ = [
    "clean",
    "strip_leading_zeros",
    "base_prefix",
    "normalize",
]
