# tests/test_api.py
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from core.models import Order
from web.api import app, get_store


@pytest.fixture()
def client(table_store):
    table_store.orders["o1"] = Order(id="o1", product_id="table", quantity=2, margin_percent=10)
    app.dependency_overrides[get_store] = lambda: table_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_product_cost(client):
    r = client.get("/products/table/cost")

    assert r.status_code == 200
    body = r.json()
    assert body["kind"] == "calculated"
    assert Decimal(str(body["breakdown"]["total"])) == Decimal("235")
    assert body["last_computed_at"] is not None


def test_unknown_product_is_404(client):
    r = client.get("/products/ghost/cost")
    assert r.status_code == 404
    assert "ghost" in r.json()["detail"]


def test_recalculate(client, table_store):
    r = client.post("/products/top/recalculate")

    assert r.status_code == 200
    assert table_store.products["top"].total_cost == Decimal("115")


def test_dependency_tree_and_circular_check(client):
    tree = client.get("/products/table/dependency-tree").json()
    assert [c["id"] for c in tree["children"]] == ["top", "leg"]

    r = client.post("/products/sheet/dependencies/circular-check", json={"child_id": "table"})
    assert r.json()["has_cycle"] is True


def test_material_requirements(client):
    r = client.get("/products/table/material-requirements", params={"quantity": 2})

    assert r.status_code == 200
    lines = {m["product_id"]: m for m in r.json()}
    assert Decimal(str(lines["leg"]["quantity"])) == Decimal("8")
    assert Decimal(str(lines["sheet"]["quantity"])) == Decimal("4")
    assert Decimal(str(lines["sheet"]["subtotal"])) == Decimal("200")
    assert client.get("/products/ghost/material-requirements").status_code == 404


def test_order_quote(client):
    r = client.get("/orders/o1/quote")

    assert r.status_code == 200
    body = r.json()
    assert body["pedido_id"] == "o1"
    assert Decimal(str(body["subtotal"])) == Decimal("470")
    assert Decimal(str(body["custo_total"])) == Decimal("517")
    assert len(body["detalhes_materiais"]) == 2


def test_order_quote_404_and_503(client, table_store):
    assert client.get("/orders/none/quote").status_code == 404

    table_store.available = False
    assert client.get("/orders/o1/quote").status_code == 503


def test_raw_quote(client):
    r = client.post("/quote", json={
        "materials_total": 100,
        "processes_total": 50,
        "labor_total": 30,
        "extras_total": 20,
        "freight_value": 10,
        "margin_percent": 10,
        "taxes": [{"label": "ICMS", "percent": 18}, {"label": "ISS", "percent": 2}],
    })

    assert r.status_code == 200
    assert Decimal(str(r.json()["custo_total"])) == Decimal("277.2")
