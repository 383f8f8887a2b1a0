"""
SIGE ERP REST client.

Async, on httpx. Authentication is a bearer token supplied by a
TokenProvider; acquiring or refreshing that token is someone else's job.
A missing token or an HTTP 401/403 raises SigeAuthError, which callers
treat as fatal for the whole pass.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote
import httpx
import structlog

from config import settings
from exceptions import (
    CatalogParseError,
    SigeAuthError,
    SigeNotConfiguredError,
    SigeRequestError,
)
from models.catalog import RemoteProduct, RemoteProductPage
from parsers.balance_parser import ITEM_WRAPPER_KEYS, locate_products

logger = structlog.get_logger(__name__)

MAX_CATALOG_PAGE_SIZE = 500
AUTH_FAILURE_STATUSES = (401, 403)


# ===================
# AUTH
# ===================

class TokenProvider:
    """Supplies the bearer token for SIGE calls."""

    def get_token(self) -> str:
        raise NotImplementedError


class SettingsTokenProvider(TokenProvider):
    """Reads the token from SIGE_API_TOKEN."""

    def get_token(self) -> str:
        token = settings.sige_api_token
        if not token:
            raise SigeAuthError("SIGE API token is not set")
        return token


class StaticTokenProvider(TokenProvider):
    """Fixed token, for scripts and tests."""

    def __init__(self, token: Optional[str]):
        self.token = token

    def get_token(self) -> str:
        if not self.token:
            raise SigeAuthError("SIGE API token is not set")
        return self.token


@dataclass
class SigeResponse:
    """Outcome of one SIGE call, kept even when not ok."""
    path: str
    status: int
    data: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def to_dict(self, step: Optional[str] = None) -> dict:
        entry = {"path": self.path, "status": self.status, "ok": self.ok, "data": self.data}
        if step:
            entry["step"] = step
        return entry


def balance_path(remote_id: str) -> str:
    return f"/product/{quote(str(remote_id), safe='')}/balance"


# ===================
# CLIENT
# ===================

class SigeClient:
    """
    Thin async client for the SIGE endpoints used by reconciliation.

    Usage:
        async with SigeClient() as sige:
            products = await sige.list_remote_products()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        base_url = base_url or settings.sige_base_url
        if not base_url:
            raise SigeNotConfiguredError()

        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or SettingsTokenProvider()
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.sige_timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "SigeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    # ===================
    # TRANSPORT
    # ===================

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def fetch(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        method: str = "GET",
    ) -> SigeResponse:
        """
        Perform one call and return its status and body without judging it.

        Raises:
            SigeAuthError: token missing, or SIGE answered 401/403
            SigeRequestError: timeout or connection failure
        """
        token = self.token_provider.get_token()

        try:
            response = await self.client.request(
                method,
                path,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TimeoutException as e:
            logger.warning("sige_request_timeout", path=path)
            raise SigeRequestError(path, "SIGE request timed out") from e
        except httpx.HTTPError as e:
            logger.warning("sige_request_error", path=path, error=str(e))
            raise SigeRequestError(path, f"SIGE request failed: {e}") from e

        data = self._decode(response)
        logger.debug("sige_request", method=method, path=path, status=response.status_code)

        if response.status_code in AUTH_FAILURE_STATUSES:
            logger.error("sige_auth_rejected", path=path, status=response.status_code)
            raise SigeAuthError(
                details={"path": path, "sige_status": response.status_code}
            )

        return SigeResponse(path=path, status=response.status_code, data=data)

    async def request(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        method: str = "GET",
    ) -> Any:
        """Perform one call and return the decoded body; non-2xx raises SigeRequestError."""
        result = await self.fetch(path, params=params, method=method)
        if not result.ok:
            raise SigeRequestError(
                path,
                f"SIGE returned HTTP {result.status}",
                status=result.status,
                data=result.data,
            )
        return result.data

    # ===================
    # PRODUCTS
    # ===================

    async def list_products_page(
        self,
        limit: int = MAX_CATALOG_PAGE_SIZE,
        offset: int = 1,
        filters: Optional[dict[str, str]] = None,
    ) -> RemoteProductPage:
        """
        One page of the product listing.

        Args:
            limit: Page size (capped at 500)
            offset: 1-based offset
            filters: Extra query params (codProduto, descProdutoEst, tipoProduto)

        Raises:
            CatalogParseError: If the page is not a product list
        """
        limit = min(max(limit, 1), MAX_CATALOG_PAGE_SIZE)
        filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        params = {"limit": limit, "offset": offset, **filters}

        data = await self.request("/product", params=params)
        rows = self._catalog_rows(data, offset)

        return RemoteProductPage(
            data=[RemoteProduct.from_sige(row) for row in rows],
            count=len(rows),
            limit=limit,
            offset=offset,
            filters=filters,
            raw_keys=list(data.keys()) if isinstance(data, dict) and not rows else None,
        )

    @staticmethod
    def _catalog_rows(data: Any, offset: int) -> list[dict]:
        rows = None
        if data is None:
            rows = []
        elif isinstance(data, list):
            rows = data
        elif isinstance(data, dict):
            for key in ITEM_WRAPPER_KEYS:
                if isinstance(data.get(key), list):
                    rows = data[key]
                    break

        if rows is None:
            shape = sorted(data.keys()) if isinstance(data, dict) else type(data).__name__
            raise CatalogParseError(
                "SIGE product listing has no product list",
                details={"offset": offset, "shape": shape}
            )
        if not all(isinstance(row, dict) for row in rows):
            raise CatalogParseError(
                "SIGE product listing contains non-object rows",
                details={"offset": offset}
            )
        return rows

    async def list_remote_products(
        self,
        filters: Optional[dict[str, str]] = None,
        page_size: int = MAX_CATALOG_PAGE_SIZE,
    ) -> list[RemoteProduct]:
        """
        The whole product catalog, page by page.

        Stops on an empty page or one shorter than page_size.
        """
        page_size = min(max(page_size, 1), MAX_CATALOG_PAGE_SIZE)
        products: list[RemoteProduct] = []
        offset = 1
        page_number = 0

        while True:
            page_number += 1
            page = await self.list_products_page(limit=page_size, offset=offset, filters=filters)
            if not page.data:
                break
            products.extend(page.data)
            logger.debug(
                "sige_catalog_page",
                page=page_number,
                count=page.count,
                total=len(products)
            )
            if page.count < page_size:
                break
            offset += page_size

        logger.info("sige_catalog_loaded", products=len(products), pages=page_number)
        return products

    async def search_products(self, **params: str) -> list[dict]:
        """Raw product rows matching query params (codProduto=, referencia=, ...)."""
        data = await self.request("/product", params=params)
        return locate_products(data)

    # ===================
    # BALANCES
    # ===================

    async def get_balance(self, remote_id: str) -> Any:
        """Raw /product/{id}/balance payload."""
        return await self.request(balance_path(remote_id))
