# core/store.py
# Dependency graph store: the interface the engine reads/writes through,
# plus an in-memory implementation loadable from a JSON catalog.

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Protocol

from .errors import DependencyError
from .models import (
    CostBreakdown,
    DependencyEdge,
    LaborAttachment,
    LaborType,
    Order,
    Process,
    ProcessAttachment,
    Product,
)

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    def get_product(self, product_id: str) -> Optional[Product]: ...

    def get_dependencies(self, product_id: str) -> list[DependencyEdge]: ...

    def get_process_attachments(self, product_id: str) -> list[ProcessAttachment]: ...

    def get_process(self, process_id: str) -> Optional[Process]: ...

    def get_labor_attachments(self, product_id: str) -> list[LaborAttachment]: ...

    def get_labor_type(self, labor_type_id: str) -> Optional[LaborType]: ...

    def get_order(self, order_id: str) -> Optional[Order]: ...

    def save_cost(self, product_id: str, breakdown: CostBreakdown, computed_at: datetime) -> None: ...


class InMemoryGraphStore:
    """Dict-backed store. `available = False` simulates an unreachable backend."""

    def __init__(
        self,
        products: list[Product] | None = None,
        dependencies: list[DependencyEdge] | None = None,
        processes: list[Process] | None = None,
        process_attachments: list[ProcessAttachment] | None = None,
        labor_types: list[LaborType] | None = None,
        labor_attachments: list[LaborAttachment] | None = None,
        orders: list[Order] | None = None,
    ) -> None:
        self.products: dict[str, Product] = {p.id: p for p in products or []}
        self.dependencies: list[DependencyEdge] = list(dependencies or [])
        self.processes: dict[str, Process] = {p.id: p for p in processes or []}
        self.process_attachments: list[ProcessAttachment] = list(process_attachments or [])
        self.labor_types: dict[str, LaborType] = {lt.id: lt for lt in labor_types or []}
        self.labor_attachments: list[LaborAttachment] = list(labor_attachments or [])
        self.orders: dict[str, Order] = {o.id: o for o in orders or []}
        self.available = True

    # ---------- construction ----------

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> InMemoryGraphStore:
        return cls(
            products=[Product.model_validate(p) for p in raw.get("products", [])],
            dependencies=[DependencyEdge.model_validate(d) for d in raw.get("dependencies", [])],
            processes=[Process.model_validate(p) for p in raw.get("processes", [])],
            process_attachments=[ProcessAttachment.model_validate(a) for a in raw.get("product_processes", [])],
            labor_types=[LaborType.model_validate(lt) for lt in raw.get("labor_types", [])],
            labor_attachments=[LaborAttachment.model_validate(a) for a in raw.get("product_labor", [])],
            orders=[Order.model_validate(o) for o in raw.get("orders", [])],
        )

    # ---------- writes used by callers outside the engine ----------

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def add_dependency(self, parent_id: str, child_id: str, quantity=1) -> DependencyEdge:
        edge = DependencyEdge(parent_id=parent_id, child_id=child_id, quantity=quantity)
        self.dependencies.append(edge)
        return edge

    # ---------- GraphStore ----------

    def _ensure_available(self) -> None:
        if not self.available:
            raise DependencyError("graph store is unreachable")

    def get_product(self, product_id: str) -> Optional[Product]:
        self._ensure_available()
        return self.products.get(product_id)

    def get_dependencies(self, product_id: str) -> list[DependencyEdge]:
        self._ensure_available()
        return [d for d in self.dependencies if d.parent_id == product_id]

    def get_process_attachments(self, product_id: str) -> list[ProcessAttachment]:
        self._ensure_available()
        return [a for a in self.process_attachments if a.product_id == product_id]

    def get_process(self, process_id: str) -> Optional[Process]:
        self._ensure_available()
        return self.processes.get(process_id)

    def get_labor_attachments(self, product_id: str) -> list[LaborAttachment]:
        self._ensure_available()
        return [a for a in self.labor_attachments if a.product_id == product_id]

    def get_labor_type(self, labor_type_id: str) -> Optional[LaborType]:
        self._ensure_available()
        return self.labor_types.get(labor_type_id)

    def get_order(self, order_id: str) -> Optional[Order]:
        self._ensure_available()
        return self.orders.get(order_id)

    def save_cost(self, product_id: str, breakdown: CostBreakdown, computed_at: datetime) -> None:
        self._ensure_available()
        product = self.products.get(product_id)
        if product is None:
            return
        self.products[product_id] = product.model_copy(
            update={
                "materials_cost": breakdown.materials,
                "processes_cost": breakdown.processes,
                "labor_cost": breakdown.labor,
                "total_cost": breakdown.total,
                "last_computed_at": computed_at,
            }
        )


def load_catalog(path: Path) -> InMemoryGraphStore:
    """Reads a JSON catalog (products, dependencies, processes, labor, orders)."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"), parse_float=Decimal)
    store = InMemoryGraphStore.from_dict(raw)
    logger.info(
        "Loaded catalog %s: %d products, %d dependencies, %d orders",
        path, len(store.products), len(store.dependencies), len(store.orders),
    )
    return store
