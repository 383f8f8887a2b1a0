"""
Catalog matcher: links local SKUs to SIGE products.

Strategies are tried in fixed order and the first hit wins. There is no
scoring inside the cascade; fuzzy suggestions for leftovers are advisory
and never produce a match.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
import structlog

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process

from models.catalog import LocalProduct, RemoteProduct
from models.mapping import MatchType
from models.sync import MatchResult, MatchSuggestion, MatchSummary
from utils.identifiers import base_prefix, clean, normalize, strip_leading_zeros

logger = structlog.get_logger(__name__)

SUGGESTION_MIN_SCORE = 60
SUGGESTION_LIMIT = 3


# ===================
# INDEX
# ===================

@dataclass
class CatalogIndex:
    """Lookup tables over one remote catalog snapshot. First row wins per key."""
    by_code: dict[str, RemoteProduct] = field(default_factory=dict)
    by_clean_code: dict[str, RemoteProduct] = field(default_factory=dict)
    by_normalized_code: dict[str, RemoteProduct] = field(default_factory=dict)
    by_remote_id: dict[str, RemoteProduct] = field(default_factory=dict)
    products: list[RemoteProduct] = field(default_factory=list)


def build_index(remote_products: Iterable[RemoteProduct]) -> CatalogIndex:
    index = CatalogIndex()
    for product in remote_products:
        index.products.append(product)
        keys = (
            (index.by_code, product.code),
            (index.by_clean_code, clean(product.code)),
            (index.by_normalized_code, normalize(product.code)),
            (index.by_remote_id, product.remote_id),
        )
        for table, key in keys:
            if key:
                table.setdefault(key, product)
    return index


def _lookup(table: dict[str, RemoteProduct], key: str) -> Optional[RemoteProduct]:
    if not key:
        return None
    return table.get(key)


# ===================
# STRATEGIES
# ===================

def _exact_code(sku: str, index: CatalogIndex) -> Optional[RemoteProduct]:
    return _lookup(index.by_code, sku)


def _normalized_code(sku: str, index: CatalogIndex) -> Optional[RemoteProduct]:
    return _lookup(index.by_clean_code, clean(sku))


def _no_leading_zeros(sku: str, index: CatalogIndex) -> Optional[RemoteProduct]:
    hit = _lookup(index.by_normalized_code, normalize(sku))
    if hit:
        return hit

    # "00123-A" -> base "00123" -> "123"
    base = clean(base_prefix(sku))
    if base and base.startswith("0"):
        return _lookup(index.by_normalized_code, strip_leading_zeros(base))
    return None


def _remote_id_direct(sku: str, index: CatalogIndex) -> Optional[RemoteProduct]:
    return _lookup(index.by_remote_id, sku)


def _base_before_dash(sku: str, index: CatalogIndex) -> Optional[RemoteProduct]:
    if "-" not in sku:
        return None
    base = base_prefix(sku)
    return _lookup(index.by_code, base) or _lookup(index.by_clean_code, clean(base))


Strategy = Callable[[str, CatalogIndex], Optional[RemoteProduct]]

MATCH_STRATEGIES: tuple[tuple[MatchType, Strategy], ...] = (
    (MatchType.EXACT_CODE, _exact_code),
    (MatchType.NORMALIZED_CODE, _normalized_code),
    (MatchType.NO_LEADING_ZEROS, _no_leading_zeros),
    (MatchType.REMOTE_ID_DIRECT, _remote_id_direct),
    (MatchType.BASE_BEFORE_DASH, _base_before_dash),
)


# ===================
# MATCHING
# ===================

def match_product(product: LocalProduct, index: CatalogIndex) -> MatchResult:
    """Run the strategy cascade for one local product."""
    for match_type, strategy in MATCH_STRATEGIES:
        remote = strategy(product.sku, index)
        if remote is not None:
            return MatchResult(
                sku=product.sku,
                matched=True,
                remote_id=remote.balance_id,
                remote_code=remote.code,
                match_type=match_type,
                local_title=product.title,
                remote_description=remote.description,
            )

    return MatchResult(sku=product.sku, matched=False, local_title=product.title)


def suggest_matches(
    title: str,
    index: CatalogIndex,
    limit: int = SUGGESTION_LIMIT,
    min_score: int = SUGGESTION_MIN_SCORE,
) -> list[MatchSuggestion]:
    """
    Fuzzy suggestions for an unmatched product, by title vs SIGE description.

    Args:
        title: Local product title
        index: Remote catalog index
        limit: Max suggestions to return
        min_score: Minimum token_sort_ratio to keep

    Returns:
        List of MatchSuggestion sorted by score (best first)
    """
    if not title or not index.products:
        return []

    candidates = [product for product in index.products if product.description]
    if not candidates:
        return []

    choices = [product.description for product in candidates]
    hits = process.extract(
        title,
        choices,
        scorer=fuzz.token_sort_ratio,
        processor=default_process,
        limit=limit,
        score_cutoff=min_score,
    )

    suggestions = []
    for _, score, position in hits:
        remote = candidates[position]
        suggestions.append(MatchSuggestion(
            remote_id=remote.balance_id,
            code=remote.code,
            description=remote.description,
            score=int(score),
        ))
    return suggestions


def match_catalog(
    local_products: Iterable[LocalProduct],
    remote_products: Iterable[RemoteProduct],
    with_suggestions: bool = True,
) -> list[MatchResult]:
    """
    Match every local product against the remote catalog.

    Pure over its inputs: nothing is persisted here. Results keep the
    order of local_products.
    """
    index = build_index(remote_products)
    results = []

    for product in local_products:
        result = match_product(product, index)
        if not result.matched and with_suggestions:
            result.suggestions = suggest_matches(product.title, index)
        results.append(result)

    summary = summarize_matches(results)
    logger.info(
        "catalog_matched",
        local=len(results),
        remote=len(index.products),
        matched=summary.matched,
        unmatched=summary.unmatched,
    )
    return results


def summarize_matches(results: list[MatchResult], skipped: int = 0) -> MatchSummary:
    matched = sum(1 for r in results if r.matched)
    return MatchSummary(
        total_results=len(results),
        matched=matched,
        unmatched=len(results) - matched,
        skipped=skipped,
    )
