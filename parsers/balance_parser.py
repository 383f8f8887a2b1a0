"""
SIGE balance payload parser.

The /product/{id}/balance response has no stable schema: the item list may
be the payload itself or sit under one of several wrapper keys, and the
quantity may live under any of a dozen field names. The field lists and the
auto-detect skip pattern below encode what SIGE has been seen to return;
extend them, do not tidy them.

Parsing never raises. Failures come back as BalanceReading(found=False).
"""

import math
import re
from typing import Any, Optional
import structlog

from models.balance import BalanceDiagnostic, BalanceReading, LocationBalance

logger = structlog.get_logger(__name__)


# Order matters: first present non-zero field wins
QUANTITY_FIELDS = [
    "quantidade", "qtdSaldo", "saldo", "saldoFisico", "saldoAtual", "qtdFisica",
    "qtdEstoque", "qtd", "estoque", "qtde", "qtdAtual", "qtdTotal", "saldoTotal",
    "qtdSaldoFisico", "vlSaldo", "vlrSaldo",
]

RESERVED_FIELDS = [
    "reservado", "qtdReservado", "qtdReserva", "saldoReservado", "qtdReservada",
    "vlReservado",
]

# Fields that look numeric but are never a quantity
AUTO_DETECT_SKIP = re.compile(
    r"^(cod|id|num|pagina|qtdRegistro|qtdPagina|grade|divisao|unidade)",
    re.IGNORECASE,
)

ITEM_WRAPPER_KEYS = ["dados", "data", "items", "content"]

LOCATION_FIELDS = ["descLocal", "nomeLocal", "localEstoque", "codLocal", "local"]
BRANCH_FIELDS = ["descFilial", "nomeFilial", "codFilial", "filial"]

DIAGNOSTIC_MESSAGE = (
    "All quantities are zero and no known quantity field was found; "
    "check the payload keys for a new field name"
)


# ===================
# HELPERS
# ===================

def _to_number(value: Any) -> Optional[float]:
    """Numeric value of a JSON scalar, or None. Booleans are not numbers here."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _first_number(item: dict, fields: list[str], allow_zero: bool) -> float:
    for key in fields:
        number = _to_number(item.get(key))
        if number is None:
            continue
        if number != 0 or allow_zero:
            return number
    return 0.0


def _auto_detect_quantity(item: dict) -> float:
    """First positive numeric field not named like an id/page/grid field."""
    for key, value in item.items():
        if AUTO_DETECT_SKIP.match(str(key)):
            continue
        number = _to_number(value)
        if number is not None and number > 0:
            return number
    return 0.0


def _first_text(item: dict, fields: list[str], default: str) -> str:
    for key in fields:
        value = item.get(key)
        if value not in (None, ""):
            return str(value)
    return default


def known_quantity(item: dict) -> float:
    """First non-zero value among the known quantity fields. No auto-detect."""
    return _first_number(item, QUANTITY_FIELDS, allow_zero=False)


def extract_quantity(item: dict) -> float:
    quantity = known_quantity(item)
    if quantity == 0:
        quantity = _auto_detect_quantity(item)
    return quantity


def extract_reserved(item: dict) -> float:
    return _first_number(item, RESERVED_FIELDS, allow_zero=True)


def has_known_quantity_field(item: dict) -> bool:
    return any(key in item for key in QUANTITY_FIELDS)


def locate_items(raw: Any) -> Optional[list]:
    """
    Find the list of balance records in a payload.

    Returns:
        The record list (possibly empty), or None for an unrecognized shape
    """
    if isinstance(raw, list):
        return raw
    if not isinstance(raw, dict):
        return None

    wrapped = [raw[key] for key in ITEM_WRAPPER_KEYS if isinstance(raw.get(key), list)]
    for items in wrapped:
        if items:
            return items
    if wrapped:
        return []

    if "error" in raw or "message" in raw:
        return None
    return [raw]


def locate_products(raw: Any) -> list[dict]:
    """Product rows in a SIGE search response. Unknown shapes yield []."""
    if isinstance(raw, list):
        return [row for row in raw if isinstance(row, dict)]
    if not isinstance(raw, dict):
        return []
    for key in ITEM_WRAPPER_KEYS:
        rows = raw.get(key)
        if isinstance(rows, list):
            return [row for row in rows if isinstance(row, dict)]
    if raw.get("codProduto") or raw.get("id") or raw.get("descProdutoEst"):
        return [raw]
    return []


def _describe_shape(raw: Any) -> str:
    if raw is None:
        return "Empty balance response"
    if isinstance(raw, dict):
        detail = raw.get("message") or raw.get("error")
        if detail:
            return f"SIGE returned an error: {detail}"
        return f"Unrecognized balance response (keys: {', '.join(map(str, raw.keys()))})"
    return f"Unrecognized balance response of type {type(raw).__name__}"


# ===================
# RESOLVER
# ===================

def resolve_balance(raw: Any) -> BalanceReading:
    """
    Turn a raw SIGE balance payload into a BalanceReading.

    Quantities and reservations are summed over every record; each record
    also yields a LocationBalance. A diagnostic is attached when the total
    is zero and no record carried a known quantity field.

    Args:
        raw: Decoded JSON body of a balance call

    Returns:
        BalanceReading (found=False with error for unrecognized payloads)
    """
    items = locate_items(raw)
    if items is None:
        return BalanceReading.failed(_describe_shape(raw), raw=raw)

    records = [item for item in items if isinstance(item, dict)]
    if items and not records:
        return BalanceReading.failed(_describe_shape(items[0]), raw=raw)

    total_quantity = 0.0
    total_reserved = 0.0
    locations = []
    known_field_seen = False

    for record in records:
        quantity = extract_quantity(record)
        reserved = extract_reserved(record)
        known_field_seen = known_field_seen or has_known_quantity_field(record)

        total_quantity += quantity
        total_reserved += reserved
        locations.append(LocationBalance(
            location=_first_text(record, LOCATION_FIELDS, "Geral"),
            branch=_first_text(record, BRANCH_FIELDS, ""),
            quantity=quantity,
            reserved=reserved,
        ))

    diagnostic = None
    if total_quantity == 0 and not known_field_seen:
        diagnostic = BalanceDiagnostic(
            message=DIAGNOSTIC_MESSAGE,
            top_level_keys=[str(k) for k in raw.keys()] if isinstance(raw, dict) else [],
            item_keys=[str(k) for k in records[0].keys()] if records else [],
        )
        logger.debug(
            "balance_unknown_fields",
            top_level_keys=diagnostic.top_level_keys,
            item_keys=diagnostic.item_keys,
        )

    return BalanceReading(
        found=True,
        quantity=total_quantity,
        reserved=total_reserved,
        raw=raw,
        locations=locations,
        diagnostic=diagnostic,
    )
