"""HTTP tests for the textile router via TestClient."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from db.database import build_engine, build_session_maker, create_db_and_tables, get_async_session
from main import app

ACTOR = {"X-Actor-Id": "staff-7"}


@pytest.fixture()
def client(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    asyncio.run(create_db_and_tables(eng))
    maker = build_session_maker(eng)

    async def _session():
        async with maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()
    asyncio.run(eng.dispose())


def _init(client, items=None):
    items = items or [
        {"item_type": "sheets", "color": "white", "quantity": 4},
        {"item_type": "duvet_covers", "color": "white", "quantity": 4},
        {"item_type": "pillowcases", "color": "white", "quantity": 8},
        {"item_type": "towels_large", "color": "grey", "quantity": 4},
        {"item_type": "towels_small", "color": "grey", "quantity": 4},
    ]
    response = client.post("/textile/stock/init", json={"items": items}, headers=ACTOR)
    assert response.status_code == 201
    return response.json()


class TestStockEndpoints:
    def test_init_returns_event(self, client):
        body = _init(client)
        assert body["event_type"] == "init_stock"
        assert body["to_location"] == "warehouse"
        assert body["from_location"] is None
        assert body["created_by"] == "staff-7"

    def test_actor_header_required(self, client):
        response = client.post(
            "/textile/stock/init",
            json={"items": [{"item_type": "robes", "color": "grey", "quantity": 1}]},
        )
        assert response.status_code == 400

    def test_unknown_color_rejected_by_schema(self, client):
        response = client.post(
            "/textile/stock/init",
            json={"items": [{"item_type": "robes", "color": "purple", "quantity": 1}]},
            headers=ACTOR,
        )
        assert response.status_code == 422

    def test_list_stock_by_location(self, client):
        _init(client)
        response = client.get("/textile/stock", params={"location": "warehouse"})
        assert response.status_code == 200
        rows = {(r["item_type"], r["color"]): r["quantity"] for r in response.json()}
        assert rows[("pillowcases", "white")] == 8

    def test_adjust_logs_event(self, client):
        response = client.post(
            "/textile/stock/adjust",
            json={"location": "laundry", "item_type": "robes", "color": "grey", "quantity": 2},
            headers=ACTOR,
        )
        assert response.status_code == 200
        assert response.json()["quantity"] == 2

        events = client.get("/textile/events", params={"location": "laundry"}).json()
        assert [e["event_type"] for e in events] == ["adjustment"]
        assert events[0]["notes"] == "Manual correction"


class TestMovementEndpoints:
    def test_check_in_then_summary(self, client):
        _init(client)
        response = client.post(
            "/textile/check-ins",
            json={"unit_code": "D1", "bedding_sets": [{"color": "white", "count": 1}], "towel_sets": 1},
            headers=ACTOR,
        )
        assert response.status_code == 201
        assert response.json()["unit_code"] == "D1"

        summary = client.get("/textile/stock/summary").json()
        assert summary["warehouse"]["sheets_white"] == 3
        assert summary["laundry"] == {}
        assert summary["units"]["D1"] == {
            "sheets_white": 1,
            "duvet_covers_white": 1,
            "pillowcases_white": 2,
            "towels_large_grey": 2,
            "towels_small_grey": 2,
        }

        check_ins = client.get("/textile/check-ins", params={"unit_code": "D1"}).json()
        assert len(check_ins) == 1
        assert check_ins[0]["bedding_sets"] == [{"color": "white", "count": 1}]

    def test_check_in_shortage_is_409(self, client):
        _init(client, [{"item_type": "sheets", "color": "white", "quantity": 1}])
        response = client.post(
            "/textile/check-ins",
            json={"unit_code": "D1", "bedding_sets": [{"color": "white", "count": 5}]},
            headers=ACTOR,
        )
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InsufficientStockError"
        assert {"item_type": "sheets", "color": "white", "required": 5, "available": 1} in body["shortages"]

        warehouse = client.get("/textile/stock/summary").json()["warehouse"]
        assert warehouse == {"sheets_white": 1}

    def test_mark_dirty_empty_unit(self, client):
        response = client.post("/textile/mark-dirty", json={"unit_code": "D2"}, headers=ACTOR)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "moved": False, "event": None}
        assert client.get("/textile/events").json() == []

    def test_full_cycle_and_over_claim(self, client):
        _init(client)
        client.post(
            "/textile/check-ins",
            json={"unit_code": "D1", "bedding_sets": [{"color": "white", "count": 2}]},
            headers=ACTOR,
        )
        dirty = client.post("/textile/mark-dirty", json={"unit_code": "D1", "notes": "checkout"}, headers=ACTOR)
        assert dirty.json()["moved"] is True
        assert dirty.json()["event"]["to_location"] == "laundry"

        over = client.post(
            "/textile/mark-clean",
            json={"items": [{"item_type": "sheets", "color": "white", "quantity": 3}]},
            headers=ACTOR,
        )
        assert over.status_code == 409
        assert over.json()["error"] == "NegativeBalanceError"
        assert over.json()["current"] == 2

        clean = client.post(
            "/textile/mark-clean",
            json={"items": [{"item_type": "sheets", "color": "white", "quantity": 2}]},
            headers=ACTOR,
        )
        assert clean.status_code == 200
        assert clean.json()["event_type"] == "mark_clean"

        assert client.get("/textile/reconcile").json() == []

    def test_unit_code_cannot_be_reserved_location(self, client):
        response = client.post("/textile/mark-dirty", json={"unit_code": "warehouse"}, headers=ACTOR)
        assert response.status_code == 422
        assert response.json()["field"] == "unit_code"


class TestAuditEndpoints:
    def test_create_and_list(self, client):
        _init(client)
        response = client.post(
            "/textile/audits",
            json={
                "location": "warehouse",
                "audit_date": "2026-03-01",
                "items": [{"item_type": "sheets", "color": "white", "count": 3, "condition": "worn"}],
            },
            headers=ACTOR,
        )
        assert response.status_code == 201
        body = response.json()
        discrepancies = {(d["item_type"], d["color"]): d["difference"] for d in body["discrepancies"]}
        assert discrepancies[("sheets", "white")] == -1
        assert discrepancies[("pillowcases", "white")] == -8

        audits = client.get("/textile/audits", params={"location": "warehouse"}).json()
        assert [a["id"] for a in audits] == [body["id"]]
