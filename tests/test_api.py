"""
Tests for the HTTP API (`api/`).

Covers rules:
- Item endpoints: list, add (201), delete with 404 for unknown or malformed ids.
- Prices are returned exactly as stored; fractions of a cent are a 400.
- Sale endpoint status mapping: 400 validation or stock, 404 unknown item,
  409 persistent stock conflict, 500 storage failure; a request id reused for
  a different sale is a 400.
- Report endpoint: file download with Content-Disposition, 404 JSON message
  for an empty range, 400 for a bad format or date.
"""

from __future__ import annotations

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from api.main import create_app
from config import Settings
from fake_supabase import FakeSupabase
from repositories.client import StorageHandle


@pytest.fixture
def api_client(fake_client):
    settings = Settings(
        supabase_url="http://localhost:54321",
        supabase_key="test-key",
        sale_max_attempts=2,
        ledger_page_size=2,
    )
    app = create_app(settings=settings, storage=StorageHandle.from_client(fake_client))
    with TestClient(app) as client:
        yield client


def _add_item(client, name="Soda", price="1.50", stock=10) -> dict:
    response = client.post("/api/items", json={"name": name, "price": price, "stock": stock})
    assert response.status_code == 201
    return response.json()


def test_health(api_client) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["storage_connected"] is True


class TestItems:
    def test_add_and_list(self, api_client):
        created = _add_item(api_client)

        assert created["name"] == "Soda"
        assert created["stock"] == 10
        assert created["id"]

        listed = api_client.get("/api/items").json()
        assert [i["id"] for i in listed] == [created["id"]]

    def test_stock_defaults_to_zero(self, api_client):
        response = api_client.post("/api/items", json={"name": "Gum", "price": 0.5})

        assert response.status_code == 201
        assert response.json()["stock"] == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"price": "1.00"},
            {"name": "", "price": "1.00"},
            {"name": "Soda"},
            {"name": "Soda", "price": "abc"},
            {"name": "Soda", "price": "1.00", "stock": -3},
        ],
    )
    def test_add_rejects_bad_input(self, api_client, payload):
        assert api_client.post("/api/items", json=payload).status_code == 400

    def test_delete(self, api_client):
        created = _add_item(api_client)

        response = api_client.delete(f"/api/items/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Item deleted successfully"}
        assert api_client.get("/api/items").json() == []

    @pytest.mark.parametrize("item_id", ["missing", "abc", "0b6a4f8e-4f7c-4a55-9d1c-2f0d8f1f2a10"])
    def test_delete_unknown(self, api_client, item_id):
        assert api_client.delete(f"/api/items/{item_id}").status_code == 404

    def test_price_returned_as_stored(self, api_client, fake_client):
        created = _add_item(api_client, price="0.5")

        assert created["price"] == "0.50"
        assert fake_client.rows("items")[0]["price"] == "0.50"

    def test_sub_cent_price_rejected(self, api_client):
        response = api_client.post("/api/items", json={"name": "Gum", "price": "0.333"})

        assert response.status_code == 400

    def test_list_storage_failure(self, api_client, fake_client):
        fake_client.fail("items", "select")

        assert api_client.get("/api/items").status_code == 500


class TestSales:
    def test_record_sale(self, api_client):
        item = _add_item(api_client)

        response = api_client.post(
            "/api/sales",
            json={"itemId": item["id"], "quantity": 3, "paymentType": "cash", "buyerType": "Customer"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Sale recorded successfully"
        assert body["sale"]["itemId"] == item["id"]
        assert body["sale"]["quantity"] == 3
        assert body["sale"]["buyerType"] == "Customer"
        assert float(body["sale"]["total"]) == 4.5

        [listed] = api_client.get("/api/items").json()
        assert listed["stock"] == 7

    def test_insufficient_stock(self, api_client):
        item = _add_item(api_client, stock=2)

        response = api_client.post(
            "/api/sales", json={"itemId": item["id"], "quantity": 5, "paymentType": "cash"}
        )

        assert response.status_code == 400
        assert "Not enough stock" in response.json()["detail"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"quantity": 1, "paymentType": "cash"},
            {"itemId": "x", "quantity": 0, "paymentType": "cash"},
            {"itemId": "x", "quantity": 2.5, "paymentType": "cash"},
            {"itemId": "x", "quantity": 1},
            {"itemId": "x", "quantity": 1, "paymentType": "cash", "buyerType": "Manager"},
        ],
    )
    def test_validation(self, api_client, payload):
        assert api_client.post("/api/sales", json=payload).status_code == 400

    @pytest.mark.parametrize("item_id", ["missing", "abc", "0b6a4f8e-4f7c-4a55-9d1c-2f0d8f1f2a10"])
    def test_unknown_item(self, api_client, item_id):
        response = api_client.post(
            "/api/sales", json={"itemId": item_id, "quantity": 1, "paymentType": "cash"}
        )

        assert response.status_code == 404

    def test_persistent_conflict(self, api_client, fake_client):
        item = _add_item(api_client)
        bumps = iter(range(50, 60))

        def _bump(client):
            for row in client.rows("items"):
                row["stock"] = next(bumps)

        fake_client.before("items", "update", _bump, times=None)

        response = api_client.post(
            "/api/sales", json={"itemId": item["id"], "quantity": 1, "paymentType": "cash"}
        )

        assert response.status_code == 409

    def test_ledger_failure_restores_stock(self, api_client, fake_client):
        item = _add_item(api_client)
        fake_client.fail("sales", "insert")

        response = api_client.post(
            "/api/sales", json={"itemId": item["id"], "quantity": 3, "paymentType": "cash"}
        )

        assert response.status_code == 500
        assert api_client.get("/api/items").json()[0]["stock"] == 10

    def test_request_id_reused_for_different_sale(self, api_client):
        item = _add_item(api_client)
        payload = {"itemId": item["id"], "quantity": 3, "paymentType": "cash", "requestId": "kiosk-9"}
        api_client.post("/api/sales", json=payload)

        response = api_client.post("/api/sales", json={**payload, "quantity": 1})

        assert response.status_code == 400
        assert api_client.get("/api/items").json()[0]["stock"] == 7

    def test_request_id_makes_retry_safe(self, api_client):
        item = _add_item(api_client)
        payload = {"itemId": item["id"], "quantity": 3, "paymentType": "cash", "requestId": "kiosk-1"}

        first = api_client.post("/api/sales", json=payload).json()
        second = api_client.post("/api/sales", json=payload).json()

        assert first["sale"]["id"] == second["sale"]["id"]
        assert api_client.get("/api/items").json()[0]["stock"] == 7


class TestReports:
    def test_download_excel(self, api_client):
        item = _add_item(api_client)
        api_client.post("/api/sales", json={"itemId": item["id"], "quantity": 3, "paymentType": "cash"})

        response = api_client.get("/api/reports/excel")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=sales_report.xlsx"
        sheet = load_workbook(BytesIO(response.content))["Sales Report"]
        assert sheet["A2"].value == "Soda"
        assert sheet["B2"].value == 3

    def test_download_pdf(self, api_client):
        item = _add_item(api_client)
        api_client.post("/api/sales", json={"itemId": item["id"], "quantity": 1, "paymentType": "cash"})

        response = api_client.get("/api/reports/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    @pytest.mark.parametrize("report_format", ["excel", "pdf"])
    def test_empty_range(self, api_client, report_format):
        response = api_client.get(
            f"/api/reports/{report_format}", params={"start": "2020-01-01", "end": "2020-01-31"}
        )

        assert response.status_code == 404
        assert response.json() == {"message": "No sales found for selected range"}

    @pytest.mark.parametrize(
        "path, params",
        [
            ("/api/reports/csv", {}),
            ("/api/reports/excel", {"start": "January"}),
            ("/api/reports/pdf", {"start": "2025-02-01", "end": "2025-01-01"}),
        ],
    )
    def test_bad_request(self, api_client, path, params):
        assert api_client.get(path, params=params).status_code == 400


def test_lifespan_closes_storage() -> None:
    storage = StorageHandle.from_client(FakeSupabase())
    app = create_app(settings=Settings(supabase_url="http://x", supabase_key="k"), storage=storage)

    with TestClient(app):
        assert storage.is_connected

    assert not storage.is_connected
