"""
SIGE payload parsers.
"""

from parsers.balance_parser import (
    resolve_balance,
    locate_items,
    locate_products,
    QUANTITY_FIELDS,
    RESERVED_FIELDS,
)

__all__ = [
    "resolve_balance",
    "locate_items",
    "locate_products",
    "QUANTITY_FIELDS",
    "RESERVED_FIELDS",
]
