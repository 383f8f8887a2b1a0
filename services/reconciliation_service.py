"""
Reconciliation between the local catalog and SIGE.

Entry point for the API: sync passes, manual mappings, single-SKU balance
lookups and explorer-style batch balance fetches.
"""

import re
from typing import Any, Optional
import structlog

from config import settings
from exceptions import InvalidMappingError, SigeRequestError
from integrations.sige_client import SigeClient, SigeResponse, balance_path
from models.balance import (
    BalanceBatchResponse,
    BalanceReading,
    MatchedItem,
)
from models.catalog import RemoteProductPage
from models.mapping import Mapping, MatchType
from models.sync import LookupResult, LookupStrategy, SyncResult
from parsers.balance_parser import (
    known_quantity,
    locate_products,
    resolve_balance,
)
from services.balance_batch_service import (
    CancelToken,
    PartialCallback,
    ProgressCallback,
    resolve_balances_batched,
    summarize_balances,
)
from services.balance_cache import BalanceLookupCache
from services.catalog_matcher import match_catalog, summarize_matches
from services.local_catalog_service import LocalCatalogService, get_local_catalog_service
from services.mapping_service import MappingService, get_mapping_service, new_mapping
from utils.identifiers import base_prefix

logger = structlog.get_logger(__name__)

NOT_FOUND_ERROR = "Product not found in SIGE"
PRODUCT_ID_FIELDS = ["id", "codProduto", "codigo", "cod"]
CLEAN_SKU_PATTERN = re.compile(r"[-.\s]")


def _description(row: dict) -> str:
    return str(row.get("descProdutoEst") or row.get("descricao") or row.get("descProduto") or "")


class _LookupTrace:
    """Step log for one lookup. Raw SIGE responses are only kept in debug mode."""

    def __init__(self, query: str, debug: bool):
        self.query = query
        self.debug = debug
        self.lines: list[str] = []
        self.responses: list[dict[str, Any]] = []

    def step(self, message: str) -> None:
        self.lines.append(message)
        logger.debug("lookup_step", query=self.query, step=message)

    def response(self, step: str, response: SigeResponse) -> None:
        self.step(f"{step}: GET {response.path} -> HTTP {response.status}")
        if self.debug:
            self.responses.append(response.to_dict(step))


class ReconciliationService:
    """
    Links local SKUs to SIGE products and reads live stock.

    The SIGE client is created on first use, so a service without SIGE
    configuration still serves mapping reads.
    """

    def __init__(
        self,
        sige_client: Optional[SigeClient] = None,
        mapping_service: Optional[MappingService] = None,
        local_catalog: Optional[LocalCatalogService] = None,
        cache: Optional[BalanceLookupCache] = None,
    ):
        self._sige = sige_client
        self.mappings = mapping_service or get_mapping_service()
        self.local_catalog = local_catalog or get_local_catalog_service()
        self.cache = cache or BalanceLookupCache(
            ttl_found_seconds=settings.balance_cache_ttl_found_seconds,
            ttl_not_found_seconds=settings.balance_cache_ttl_not_found_seconds,
        )

    @property
    def sige(self) -> SigeClient:
        """
        Raises:
            SigeNotConfiguredError: If SIGE_BASE_URL is not set
        """
        if self._sige is None:
            self._sige = SigeClient()
        return self._sige

    async def close(self) -> None:
        if self._sige is not None:
            await self._sige.close()
            self._sige = None

    # ===================
    # SYNC
    # ===================

    async def run_sync(
        self,
        clear_existing: bool = False,
        fetch_balances: bool = True,
        batch_size: int = 500,
    ) -> SyncResult:
        """
        Match the whole local catalog against the SIGE catalog and store new mappings.

        SKUs that already have a mapping are skipped unless clear_existing,
        in which case their mappings are deleted first and re-matched. The
        SIGE catalog is fully loaded before anything is deleted or written.

        Args:
            clear_existing: Delete mappings of local SKUs before matching
            fetch_balances: Fetch balances for new matches (seeds the lookup cache)
            batch_size: SIGE catalog page size, capped at 500

        Returns:
            SyncResult with counts and per-SKU match results

        Raises:
            SigeAuthError: No token, or SIGE rejected it
            SigeNotConfiguredError: SIGE_BASE_URL not set
            CatalogParseError: A catalog page could not be read
        """
        page_size = min(batch_size, settings.sige_catalog_page_size)
        logger.info(
            "sige_sync_started",
            clear_existing=clear_existing,
            fetch_balances=fetch_balances,
            page_size=page_size
        )

        sige = self.sige
        sige.token_provider.get_token()

        local_products = self.local_catalog.get_all()
        remote_products = await sige.list_remote_products(page_size=page_size)

        if clear_existing:
            self.mappings.delete_for_skus(p.sku for p in local_products)
            for product in local_products:
                self.cache.invalidate(product.sku)
            existing = set()
        else:
            existing = self.mappings.get_mapped_skus()

        to_match = [p for p in local_products if p.sku not in existing]
        skipped = len(local_products) - len(to_match)

        results = match_catalog(to_match, remote_products)

        matched = [r for r in results if r.matched]
        self.mappings.bulk_upsert([
            new_mapping(
                sku=r.sku,
                remote_id=r.remote_id,
                match_type=r.match_type,
                remote_code=r.remote_code or "",
                description=r.remote_description or "",
            )
            for r in matched
        ])

        balance_fetched = 0
        if fetch_balances and matched:
            items = [
                MatchedItem(sku=r.sku, remote_id=r.remote_id, description=r.remote_description or "")
                for r in matched
            ]
            balances = await resolve_balances_batched(
                items,
                sige.get_balance,
                concurrency=settings.sige_balance_concurrency,
            )
            for entry in balances:
                if entry.balance is None or not entry.balance.found:
                    continue
                balance_fetched += 1
                self.cache.put(entry.item.sku, LookupResult(
                    query=entry.item.sku,
                    found=True,
                    remote_id=entry.item.remote_id,
                    description=entry.item.description,
                    strategy=LookupStrategy.MAPPING,
                    reading=entry.balance,
                ))

        summary = summarize_matches(results, skipped=skipped)
        logger.info(
            "sige_sync_completed",
            local_products=len(local_products),
            remote_products=len(remote_products),
            matched=summary.matched,
            unmatched=summary.unmatched,
            skipped=summary.skipped,
            balance_fetched=balance_fetched
        )

        return SyncResult(
            **summary.model_dump(),
            match_results=results,
            balance_fetched=balance_fetched,
            local_products=len(local_products),
            remote_products=len(remote_products),
        )

    # ===================
    # MAPPINGS
    # ===================

    def list_mappings(self, match_type: Optional[MatchType] = None) -> list[Mapping]:
        return self.mappings.list_mappings(match_type)

    def set_manual_mapping(
        self,
        sku: str,
        remote_id: str,
        description: str = "",
        remote_code: Optional[str] = None,
        confirmed_by: Optional[str] = None,
    ) -> Mapping:
        """
        Store an operator-entered mapping, replacing any existing one.

        Raises:
            InvalidMappingError: If sku or remote_id is blank
        """
        sku = (sku or "").strip()
        remote_id = (remote_id or "").strip()
        if not sku:
            raise InvalidMappingError("sku", sku)
        if not remote_id:
            raise InvalidMappingError("remote_id", remote_id)

        mapping = self.mappings.upsert_mapping(new_mapping(
            sku=sku,
            remote_id=remote_id,
            match_type=MatchType.MANUAL,
            remote_code=remote_code or remote_id,
            description=description,
            confirmed_by=confirmed_by,
        ))
        self.cache.invalidate(sku)

        logger.info("manual_mapping_saved", sku=sku, remote_id=remote_id, confirmed_by=confirmed_by)
        return mapping

    def remove_mapping(self, sku: str) -> None:
        """
        Raises:
            MappingNotFoundError: If the SKU has no mapping
        """
        self.mappings.delete_mapping(sku)
        self.cache.invalidate(sku)

    # ===================
    # SINGLE LOOKUP
    # ===================

    async def lookup_balance(self, query: str, force: bool = False, debug: bool = False) -> LookupResult:
        """
        Find a SKU (or SIGE id) in SIGE and read its balance.

        Strategies, in order: stored mapping, direct balance call, search by
        code, base before dash (direct then search), code without separators,
        search by reference, search by description.

        Args:
            query: Local SKU or SIGE id
            force: Ignore the lookup cache
            debug: Include raw SIGE responses in the result

        Raises:
            SigeAuthError: No token, or SIGE rejected it
            SigeNotConfiguredError: SIGE_BASE_URL not set
        """
        query = (query or "").strip()
        if not query:
            raise InvalidMappingError("sku", query)

        if not force:
            cached = self.cache.get(query)
            if cached is not None:
                logger.debug("lookup_cache_hit", query=query, found=cached.found)
                return cached.model_copy(update={"cached": True, "remote_responses": []})

        trace = _LookupTrace(query, debug)
        sige = self.sige

        try:
            result = await self._run_lookup(query, sige, trace)
        except SigeRequestError as e:
            trace.step(f"SIGE request failed: {e.message}")
            logger.warning("lookup_failed", query=query, error=e.message)
            return LookupResult(
                query=query,
                found=False,
                reading=BalanceReading.failed(e.message),
                debug_trace=trace.lines,
                remote_responses=trace.responses,
            )

        if result is None:
            trace.step("No strategy found the product")
            result = LookupResult(
                query=query,
                found=False,
                reading=BalanceReading.failed(NOT_FOUND_ERROR),
            )

        result.debug_trace = trace.lines
        result.remote_responses = trace.responses
        self.cache.put(query, result.model_copy(update={"debug_trace": [], "remote_responses": []}))

        logger.info(
            "lookup_completed",
            query=query,
            found=result.found,
            strategy=result.strategy.value if result.strategy else None
        )
        return result

    async def _run_lookup(
        self,
        query: str,
        sige: SigeClient,
        trace: _LookupTrace,
    ) -> Optional[LookupResult]:
        mapping = self.mappings.get_mapping(query)
        if mapping is not None:
            trace.step(f"Mapping found: {query} -> {mapping.remote_id} ({mapping.match_type.value})")
            hit = await self._direct_balance(
                mapping.remote_id, LookupStrategy.MAPPING, sige, trace,
                description=mapping.description, query=query
            )
            if hit:
                return hit

        hit = await self._direct_balance(query, LookupStrategy.DIRECT_BALANCE, sige, trace, query=query)
        if hit:
            return hit

        hit = await self._search(query, {"codProduto": query}, LookupStrategy.CODE_SEARCH, sige, trace)
        if hit:
            return hit

        base = base_prefix(query)
        if "-" in query and base and base != query:
            trace.step(f"Trying base before dash: {base}")
            hit = await self._direct_balance(base, LookupStrategy.BASE_DIRECT, sige, trace, query=query)
            if hit:
                return hit
            hit = await self._search(query, {"codProduto": base}, LookupStrategy.BASE_SEARCH, sige, trace)
            if hit:
                return hit

        cleaned = CLEAN_SKU_PATTERN.sub("", query)
        if cleaned and cleaned != query:
            hit = await self._search(query, {"codProduto": cleaned}, LookupStrategy.CLEAN_SEARCH, sige, trace)
            if hit:
                return hit

        hit = await self._search(query, {"referencia": query}, LookupStrategy.REFERENCE_SEARCH, sige, trace)
        if hit:
            return hit

        return await self._search(query, {"descProduto": query}, LookupStrategy.DESCRIPTION_SEARCH, sige, trace)

    async def _direct_balance(
        self,
        remote_id: str,
        strategy: LookupStrategy,
        sige: SigeClient,
        trace: _LookupTrace,
        query: str,
        description: str = "",
    ) -> Optional[LookupResult]:
        response = await sige.fetch(balance_path(remote_id))
        trace.response(strategy.value, response)
        if not response.ok or response.data is None:
            return None

        reading = resolve_balance(response.data)
        if not reading.found:
            trace.step(f"{strategy.value}: {reading.error}")
            return None

        return LookupResult(
            query=query,
            found=True,
            remote_id=remote_id,
            description=description,
            strategy=strategy,
            reading=reading,
        )

    async def _search(
        self,
        query: str,
        params: dict[str, str],
        strategy: LookupStrategy,
        sige: SigeClient,
        trace: _LookupTrace,
    ) -> Optional[LookupResult]:
        response = await sige.fetch("/product", params=params)
        trace.response(strategy.value, response)
        if not response.ok:
            return None

        products = locate_products(response.data)
        trace.step(f"{strategy.value}: {len(products)} products")
        if not products:
            return None

        product = products[0]
        description = _description(product)

        # Some listings embed stock on the product row itself. Only known
        # quantity fields count here; search rows also carry prices.
        if known_quantity(product) > 0:
            trace.step(f"{strategy.value}: using balance embedded in product row")
            return LookupResult(
                query=query,
                found=True,
                remote_id=str(product.get("id") or product.get("codProduto") or ""),
                description=description,
                strategy=strategy,
                reading=resolve_balance(product),
            )

        tried = set()
        for field in PRODUCT_ID_FIELDS:
            candidate = product.get(field)
            if candidate in (None, "") or str(candidate) in tried:
                continue
            tried.add(str(candidate))
            hit = await self._direct_balance(
                str(candidate), strategy, sige, trace,
                description=description, query=query
            )
            if hit:
                return hit
        return None

    # ===================
    # BATCH / EXPLORER
    # ===================

    async def fetch_balances(
        self,
        items: list[MatchedItem],
        concurrency: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_partial: Optional[PartialCallback] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> BalanceBatchResponse:
        """
        Fetch balances for explorer items in groups.

        Raises:
            SigeAuthError: No token, or SIGE rejected it
        """
        sige = self.sige
        sige.token_provider.get_token()

        results = await resolve_balances_batched(
            items,
            sige.get_balance,
            concurrency=concurrency or settings.sige_balance_concurrency,
            on_progress=on_progress,
            on_partial=on_partial,
            cancel_token=cancel_token,
        )
        return BalanceBatchResponse(
            results=results,
            summary=summarize_balances(results),
            cancelled=bool(cancel_token and cancel_token.cancelled),
        )

    async def list_remote_products(
        self,
        filters: Optional[dict[str, str]] = None,
        limit: int = 50,
        offset: int = 1,
    ) -> RemoteProductPage:
        return await self.sige.list_products_page(limit=limit, offset=offset, filters=filters)

    def clear_balance_cache(self) -> int:
        count = self.cache.clear()
        logger.info("balance_cache_cleared", entries=count)
        return count


# Singleton instance
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create reconciliation service instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service


async def close_reconciliation_service() -> None:
    """Close the singleton's SIGE client, if the service was ever created."""
    if _reconciliation_service is not None:
        await _reconciliation_service.close()
