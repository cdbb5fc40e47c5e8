"""
End-to-end stock movement flow against a real SQLite database.

Drives the FastAPI app through HTTP: catalog setup, stock in, distribution,
usage statistics and guarded deletion.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

import src.infrastructure.storage.sqlite as sqlite_module
import src.infrastructure.storage.sqlite.connection as conn_module
from src.api.main import app
from src.application.services import reset_services
from src.core.exceptions import ServiceError
from src.infrastructure.client import BakestockClient
from src.infrastructure.storage.sqlite import close_pool
from src.infrastructure.storage.sqlite.migrations import initialize_database


def _reset_singletons() -> None:
    conn_module._pool = None
    sqlite_module._product_store = None
    sqlite_module._department_store = None
    sqlite_module._movement_store = None
    reset_services()


@pytest.fixture
async def live_db(tmp_path: Path) -> AsyncGenerator[Path, None]:
    """Migrated database with the global pool and stores pointed at it."""
    db_path = tmp_path / "bakestock.db"
    results = await initialize_database(db_path, create_backup_before=False)
    assert all(r.success for r in results)

    settings = MagicMock()
    settings.storage.db_path = db_path
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000

    _reset_singletons()
    with patch.object(conn_module, "get_settings", return_value=settings):
        try:
            yield db_path
        finally:
            await close_pool()
            _reset_singletons()


@pytest.fixture
async def client(live_db) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def catalog(client) -> dict:
    """Flour (kg) and the pastry department."""
    response = await client.post(
        "/api/products", json={"name": "Flour", "unit": "kg", "unitPrice": 1.2}
    )
    assert response.status_code == 201
    flour = response.json()["data"]

    response = await client.post("/api/departments", json={"id": "pastry", "name": "Pastry"})
    assert response.status_code == 201
    return {"flour": flour, "pastry": response.json()["data"]}


async def _stock(client: AsyncClient, product_id: str) -> float:
    response = await client.get(f"/api/products/{product_id}")
    return response.json()["data"]["quantity"]


def _stock_in(product_id: str, quantity: str) -> dict:
    return {
        "type": "stock_in",
        "supplier": "Mill Co",
        "stockManager": "Ana",
        "products": [{"productId": product_id, "quantity": quantity, "unit": "kg"}],
    }


def _distribution(product_id: str, quantity: str) -> dict:
    return {
        "type": "distribution",
        "department": {"id": "pastry", "name": "Pastry"},
        "stockManager": "Ben",
        "products": [{"productId": product_id, "quantity": quantity, "unit": "kg"}],
    }


class TestMovementFlow:
    async def test_receive_distribute_and_report(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        assert catalog["flour"]["quantity"] == 0.0

        response = await client.post("/api/movements", json=_stock_in(flour_id, "50"))
        assert response.status_code == 201
        receipt = response.json()["data"]
        assert receipt["products"][0]["previousStock"] == 0.0
        assert receipt["products"][0]["newStock"] == 50.0
        assert receipt["totalValue"] == 60.0

        response = await client.post("/api/movements", json=_distribution(flour_id, "15,5"))
        assert response.status_code == 201
        handout = response.json()["data"]
        assert handout["department"] == "pastry"
        assert handout["products"][0]["newStock"] == 34.5

        assert await _stock(client, flour_id) == 34.5

        response = await client.get("/api/movements")
        body = response.json()
        assert [m["id"] for m in body["data"]] == [handout["id"], receipt["id"]]
        assert body["pagination"]["total"] == 2

        response = await client.get(f"/api/products/{flour_id}/usage-stats")
        stats = response.json()["data"]
        assert stats["totalUsed"] == 15.5
        assert stats["usageCount"] == 1
        assert stats["usageEvents"][0]["usedBy"] == "Ben"

        response = await client.get(f"/api/products/{flour_id}/current-month-usage")
        assert response.json()["data"]["currentMonthUsage"] == 15.5

        response = await client.get("/api/movements/department/pastry")
        report = response.json()["data"]
        assert report["productTotals"][0]["totalQuantity"] == 15.5

        response = await client.get("/api/movements/stats/overview", params={"period": "all"})
        overview = response.json()["data"]
        assert overview["totalItemsIn"] == 50.0
        assert overview["totalItemsOut"] == 15.5
        assert overview["itemsByDepartment"] == {"pastry": 15.5}

    async def test_insufficient_stock_rejected_without_side_effects(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        await client.post("/api/movements", json=_stock_in(flour_id, "10"))

        response = await client.post("/api/movements", json=_distribution(flour_id, "12"))

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["reasons"][0]["reason_kind"] == "insufficient_stock"
        assert body["errors"][0].startswith("Insufficient stock for Flour")
        assert await _stock(client, flour_id) == 10.0

        listing = await client.get("/api/movements")
        assert listing.json()["pagination"]["total"] == 1

    async def test_unknown_department_rejected(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        await client.post("/api/movements", json=_stock_in(flour_id, "10"))

        payload = _distribution(flour_id, "1")
        payload["department"] = "nowhere"
        response = await client.post("/api/movements", json=payload)

        assert response.status_code == 400
        assert response.json()["details"]["reasons"][0]["reason_kind"] == "unknown_department"
        assert await _stock(client, flour_id) == 10.0

    async def test_guarded_deletion_restores_stock(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        receipt = (await client.post("/api/movements", json=_stock_in(flour_id, "50"))).json()["data"]
        handout = (await client.post("/api/movements", json=_distribution(flour_id, "30"))).json()["data"]

        check = (await client.get(f"/api/movements/{receipt['id']}/can-delete")).json()["data"]
        assert check["canDelete"] is False
        assert check["conflicts"][0]["conflictingMovementIds"] == [handout["id"]]

        response = await client.delete(f"/api/movements/{receipt['id']}")
        assert response.status_code == 409
        assert response.json()["error_code"] == "REVERSAL_UNSAFE"
        assert await _stock(client, flour_id) == 20.0

        response = await client.delete(f"/api/movements/{handout['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["products"][0]["quantity"] == 50.0

        response = await client.delete(f"/api/movements/{receipt['id']}")
        assert response.status_code == 200
        assert await _stock(client, flour_id) == 0.0

        response = await client.get(f"/api/movements/{receipt['id']}")
        assert response.status_code == 404

    async def test_stock_equals_sum_of_movements(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        steps = [
            _stock_in(flour_id, "12.5"),
            _distribution(flour_id, "2.25"),
            _stock_in(flour_id, "0.1"),
            _stock_in(flour_id, "0.2"),
            _distribution(flour_id, "10.55"),
        ]
        for payload in steps:
            response = await client.post("/api/movements", json=payload)
            assert response.status_code == 201

        movements = (await client.get("/api/movements")).json()["data"]
        net = sum(
            line["quantity"] * (1 if m["type"] == "stock_in" else -1)
            for m in movements
            for line in m["products"]
        )
        assert await _stock(client, flour_id) == pytest.approx(net)
        assert await _stock(client, flour_id) == 0.0

    async def test_unit_locked_once_stock_is_recorded(self, client, catalog):
        flour_id = catalog["flour"]["id"]
        response = await client.post("/api/movements", json=_stock_in(flour_id, "2.5"))
        assert response.status_code == 201

        response = await client.patch(f"/api/products/{flour_id}", json={"unit": "units"})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "unit"
        product = (await client.get(f"/api/products/{flour_id}")).json()["data"]
        assert (product["unit"], product["quantity"]) == ("kg", 2.5)

    async def test_product_with_unknown_unit_rejected(self, client, live_db):
        response = await client.post("/api/products", json={"name": "Boxes", "unit": "crates"})

        assert response.status_code == 400
        assert (await client.get("/api/products")).json()["data"] == []


class TestBakestockClient:
    @pytest.fixture
    async def api(self, live_db) -> AsyncGenerator[BakestockClient, None]:
        async with BakestockClient(
            base_url="http://test", transport=ASGITransport(app=app)
        ) as api:
            yield api

    async def test_round_trip(self, api, client, catalog):
        flour_id = catalog["flour"]["id"]

        movement = await api.create_movement(_stock_in(flour_id, "8"))
        assert movement.id.startswith("MOV")
        assert movement.products[0].new_stock == 8.0

        fetched = await api.get_movement(movement.id)
        assert fetched.total_items == 8.0

        listing = await api.list_movements(product_id=flour_id)
        assert listing.pagination.total == 1

        usage = await api.get_current_month_usage(flour_id)
        assert usage.current_month_usage == 0.0

        analytics = await api.get_usage_analytics(flour_id, previous_months=1)
        assert len(analytics.previous_months) == 1

        assert (await api.can_delete(movement.id)).can_delete is True
        deleted = await api.delete_movement(movement.id)
        assert deleted.movement_id == movement.id

    async def test_error_envelope_raises_service_error(self, api, client, catalog):
        flour_id = catalog["flour"]["id"]

        with pytest.raises(ServiceError) as exc_info:
            await api.create_movement(_distribution(flour_id, "1"))

        error = exc_info.value
        assert error.status_code == 400
        assert error.code == "VALIDATION_ERROR"
        assert error.errors[0].startswith("Insufficient stock")

    async def test_missing_movement(self, api, live_db):
        with pytest.raises(ServiceError) as exc_info:
            await api.get_movement("MOV999999")
        assert exc_info.value.code == "MOVEMENT_NOT_FOUND"
