"""
API route tests (FastAPI TestClient).

Run: pytest tests/unit/test_routes.py -v
"""

import httpx
import pytest
from unittest.mock import patch

from services.local_catalog_service import LocalCatalogService
from services.mapping_service import MappingService
from services.reconciliation_service import ReconciliationService
from tests.factories import LocalProductFactory, MappingFactory, RemoteProductFactory

ROUTE_MODULES = ("routes.sige_sync", "routes.mappings", "routes.balances")


@pytest.fixture
def api(mock_db, sige_client):
    """TestClient whose routes use a ReconciliationService wired to the mocks."""
    from fastapi.testclient import TestClient
    from main import app

    service = ReconciliationService(
        sige_client=sige_client,
        mapping_service=MappingService(),
        local_catalog=LocalCatalogService(),
    )
    patches = [
        patch(f"{module}.get_reconciliation_service", return_value=service)
        for module in ROUTE_MODULES
    ]
    for p in patches:
        p.start()
    try:
        yield TestClient(app)
    finally:
        for p in patches:
            p.stop()


class TestSyncRoutes:

    def test_sync(self, api, mock_supabase, sige_api):
        # Arrange
        mock_supabase.set_table_data("products", [LocalProductFactory.create(sku="ABC")])
        sige_api.set_catalog([RemoteProductFactory.create(id=1, codProduto="ABC")])
        sige_api.set_balance("1", {"dados": [{"saldo": 2}]})

        # Act
        response = api.post("/api/sige/sync", json={"fetch_balances": True})

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["matched"] == 1
        assert body["balance_fetched"] == 1
        assert body["match_results"][0]["match_type"] == "exact_code"

    def test_sync_without_body_uses_defaults(self, api, mock_supabase, sige_api):
        mock_supabase.set_table_data("products", [])
        sige_api.set_catalog([])

        response = api.post("/api/sige/sync")

        assert response.status_code == 200
        assert response.json()["total_results"] == 0

    def test_sync_catalog_error_is_502(self, api, sige_api):
        sige_api.handlers.append(lambda request: httpx.Response(200, json={"bad": 1}))

        response = api.post("/api/sige/sync", json={})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "SIGE_CATALOG_PARSE_ERROR"

    def test_products_page(self, api, sige_api):
        sige_api.set_catalog(RemoteProductFactory.create_batch(3))

        response = api.get("/api/sige/products", params={"limit": 2, "codProduto": "SG"})

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert sige_api.requests[0].url.params["codProduto"] == "SG"


class TestMappingRoutes:

    def test_list(self, api, mock_supabase):
        mock_supabase.set_table_data("sige_mappings", MappingFactory.create_batch(2))

        response = api.get("/api/sige/mappings")

        assert response.status_code == 200
        assert response.json()["total"] == 2

    def test_get_missing_is_404(self, api, mock_supabase):
        response = api.get("/api/sige/mappings/NOPE")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "MAPPING_NOT_FOUND"

    def test_put_manual_mapping(self, api, mock_supabase):
        response = api.put("/api/sige/mappings/ABC", json={"remote_id": "77", "description": "Camiseta"})

        assert response.status_code == 200
        assert response.json()["match_type"] == "manual"
        assert mock_supabase.writes("upsert")[0]["rows"][0]["sku"] == "ABC"

    def test_put_requires_remote_id(self, api):
        response = api.put("/api/sige/mappings/ABC", json={"description": "x"})

        assert response.status_code == 422

    def test_delete(self, api, mock_supabase):
        mock_supabase.set_table_data("sige_mappings", [MappingFactory.create(sku="ABC")])

        response = api.delete("/api/sige/mappings/ABC")

        assert response.status_code == 204


class TestBalanceRoutes:

    def test_balance_lookup(self, api, sige_api):
        sige_api.set_balance("SKU1", {"dados": [{"saldoAtual": 42, "qtdReservado": 5}]})

        response = api.get("/api/sige/balance/SKU1")

        body = response.json()
        assert response.status_code == 200
        assert body["found"] is True
        assert body["reading"]["available"] == 37
        assert body["strategy"] == "direct_balance"

    def test_balance_lookup_debug(self, api, sige_api):
        response = api.get("/api/sige/balance/Q-1", params={"debug": "true"})

        body = response.json()
        assert body["found"] is False
        assert len(body["remote_responses"]) == 7

    def test_batch_balances(self, api, sige_api):
        sige_api.set_balance("1", {"dados": [{"saldo": 4}]})

        response = api.post("/api/sige/balances", json={
            "items": [{"sku": "A", "remote_id": "1"}, {"sku": "B"}],
            "concurrency": 2,
        })

        body = response.json()
        assert response.status_code == 200
        assert body["summary"]["in_stock"] == 1
        assert body["summary"]["not_found"] == 1
        assert body["results"][1]["balance"]["error"] == "Missing SIGE id"

    def test_auth_rejection_is_401(self, api, sige_api):
        sige_api.set_balance("1", {"message": "expired"}, status=401)

        response = api.post("/api/sige/balances", json={"items": [{"sku": "A", "remote_id": "1"}]})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "SIGE_AUTH_FAILED"

    def test_clear_cache(self, api, sige_api):
        api.get("/api/sige/balance/Q-9")

        response = api.delete("/api/sige/balance-cache")

        assert response.json() == {"cleared": 1}


class TestHealth:

    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["sync"] == "/api/sige/sync"

    def test_health_reports_counts(self, test_client, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", LocalProductFactory.create_batch(2))
        mock_supabase.set_table_data("sige_mappings", MappingFactory.create_batch(1))

        response = test_client.get("/health")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"]["products_count"] == 2
        assert body["database"]["mappings_count"] == 1
        assert body["sige_configured"] is True

    def test_health_degraded_when_database_fails(self, test_client, mock_db, mock_supabase):
        mock_supabase.fail_with = RuntimeError("down")

        response = test_client.get("/health")

        assert response.json()["status"] == "degraded"
