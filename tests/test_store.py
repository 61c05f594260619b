# tests/test_store.py
import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.cache import CostCache
from core.errors import DependencyError
from core.models import CostBreakdown
from core.resolver import CostResolver
from core.store import InMemoryGraphStore, load_catalog


def test_load_catalog(catalog_store):
    assert catalog_store.products["parafuso"].unit_price == Decimal("0.45")
    assert catalog_store.products["mesa-inox"].margin_percent == Decimal("30")
    assert [d.child_id for d in catalog_store.get_dependencies("mesa-inox")] == ["tampo", "pe-mesa", "tinta-epoxi"]
    assert catalog_store.get_order("1001").taxes[1].percent == Decimal("3.65")


def test_null_required_quantity_defaults_to_one(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "products": [{"id": "x", "kind": "simple", "unit_price": 2.5, "required_quantity": None}],
    }), encoding="utf-8")

    store = load_catalog(path)

    assert store.products["x"].required_quantity == Decimal("1")
    assert store.products["x"].leaf_cost == Decimal("2.5")


def test_unavailable_store_raises():
    store = InMemoryGraphStore()
    store.available = False
    with pytest.raises(DependencyError):
        store.get_product("x")


def test_cache_put_mirrors_to_store(table_store):
    when = datetime(2026, 1, 2, tzinfo=timezone.utc)
    cache = CostCache(table_store, clock=lambda: when)

    entry = cache.put("top", CostBreakdown(total=Decimal("7"), materials=Decimal("7")))

    assert entry.computed_at == when
    assert cache.get("top").breakdown.total == Decimal("7")
    assert table_store.products["top"].total_cost == Decimal("7")
    assert table_store.products["top"].last_computed_at == when


def test_cache_invalidate(table_store):
    cache = CostCache(table_store)
    cache.put("top", CostBreakdown.zero())
    cache.put("table", CostBreakdown.zero())

    cache.invalidate("top")
    assert "top" not in cache and len(cache) == 1

    cache.invalidate()
    assert len(cache) == 0


def test_fractional_process_minutes(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "products": [{"id": "p", "kind": "calculated"}],
        "processes": [{"id": "fold", "name": "Fold", "price_per_unit": 8, "estimated_minutes": 7.5}],
        "product_processes": [{"product_id": "p", "process_id": "fold", "quantity": 2}],
    }), encoding="utf-8")

    store = load_catalog(path)
    items = CostResolver(store).itemize("p")

    assert store.get_process("fold").estimated_minutes == Decimal("7.5")
    assert items.processes[0].estimated_minutes == Decimal("7.5")
    assert items.breakdown.processes == Decimal("16")
