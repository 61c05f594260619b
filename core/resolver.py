# core/resolver.py
# BOM cost resolver: recursive cost of a product from its dependency graph,
# attached processes and attached labor.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from .cache import CostCache
from .errors import NotFoundError
from .models import (
    CostBreakdown,
    CycleCheckResult,
    DependencyTreeNode,
    Itemization,
    LaborLine,
    MaterialLine,
    ProcessLine,
    Product,
    ProductCost,
    ProductCostWithMargin,
    ZERO,
)
from .rules import percent_of
from .store import GraphStore

logger = logging.getLogger(__name__)

Trail = tuple[str, ...]


@dataclass
class _Evaluation:
    breakdown: CostBreakdown
    materials: list[MaterialLine] = field(default_factory=list)
    processes: list[ProcessLine] = field(default_factory=list)
    labor: list[LaborLine] = field(default_factory=list)

    @classmethod
    def empty(cls) -> _Evaluation:
        return cls(breakdown=CostBreakdown.zero())


class CostResolver:
    """
    Walks the dependency graph of a product and sums its cost.

    Cycle guard: every branch carries its own visited set, so a cycle only
    zeroes the branch that closes it. Detected cycles are logged and kept in
    `self.cycles` (the path, ending with the repeated product id).

    Data gaps (missing product, dangling process/labor reference) count as 0.
    Store connectivity errors (DependencyError) propagate.
    """

    def __init__(self, store: GraphStore, cache: Optional[CostCache] = None) -> None:
        self.store = store
        self.cache = cache if cache is not None else CostCache(store)
        self.cycles: list[Trail] = []

    # ---------- recursion ----------

    def resolve_cost(self, product_id: str, visited: Iterable[str] = frozenset()) -> CostBreakdown:
        # recorded cycle paths start at product_id; ids in `visited` only guard
        _, evaluation = self._visit(product_id, frozenset(visited), ())
        return evaluation.breakdown

    def _visit(self, product_id: str, visited: frozenset[str], path: Trail) -> tuple[Optional[Product], _Evaluation]:
        if product_id in visited:
            cycle = path + (product_id,)
            self.cycles.append(cycle)
            logger.warning("Dependency cycle detected, branch counted as 0: %s", " -> ".join(cycle))
            return None, _Evaluation.empty()

        product = self.store.get_product(product_id)
        if product is None:
            logger.warning("Product %s not found, counted as 0", product_id)
            return None, _Evaluation.empty()

        return product, self._evaluate(product, visited | {product_id}, path + (product_id,))

    def _evaluate(self, product: Product, visited: frozenset[str], path: Trail) -> _Evaluation:
        if product.kind == "simple":
            cost = product.leaf_cost
            line = MaterialLine(
                product_id=product.id,
                name=product.name,
                quantity=product.required_quantity,
                unit_cost=product.unit_price or ZERO,
                subtotal=cost,
            )
            return _Evaluation(breakdown=CostBreakdown.leaf(cost), materials=[line])

        materials: list[MaterialLine] = []
        for edge in self.store.get_dependencies(product.id):
            child, child_eval = self._visit(edge.child_id, visited, path)
            if child is None:
                continue
            unit_cost = child_eval.breakdown.total
            materials.append(MaterialLine(
                product_id=child.id,
                name=child.name,
                quantity=edge.quantity,
                unit_cost=unit_cost,
                subtotal=unit_cost * edge.quantity,
            ))

        processes = self._process_lines(product.id)
        labor = self._labor_lines(product.id)

        materials_cost = sum((m.subtotal for m in materials), ZERO)
        processes_cost = sum((p.subtotal for p in processes), ZERO)
        labor_cost = sum((l.subtotal for l in labor), ZERO)
        breakdown = CostBreakdown(
            total=materials_cost + processes_cost + labor_cost,
            materials=materials_cost,
            processes=processes_cost,
            labor=labor_cost,
        )
        logger.debug(
            "Product %s: materials=%s processes=%s labor=%s total=%s",
            product.id, materials_cost, processes_cost, labor_cost, breakdown.total,
        )

        self.cache.put(product.id, breakdown)
        return _Evaluation(breakdown=breakdown, materials=materials, processes=processes, labor=labor)

    def _process_lines(self, product_id: str) -> list[ProcessLine]:
        lines: list[ProcessLine] = []
        for att in self.store.get_process_attachments(product_id):
            process = self.store.get_process(att.process_id)
            if process is None:
                logger.warning("Process %s attached to %s not found, counted as 0", att.process_id, product_id)
                continue
            lines.append(ProcessLine(
                process_id=process.id,
                name=process.name,
                quantity=att.quantity,
                price_per_unit=process.price_per_unit,
                estimated_minutes=process.estimated_minutes,
                subtotal=process.price_per_unit * att.quantity,
            ))
        return lines

    def _labor_lines(self, product_id: str) -> list[LaborLine]:
        lines: list[LaborLine] = []
        for att in self.store.get_labor_attachments(product_id):
            labor = self.store.get_labor_type(att.labor_type_id)
            if labor is None:
                logger.warning("Labor type %s attached to %s not found, counted as 0", att.labor_type_id, product_id)
                continue
            lines.append(LaborLine(
                labor_type_id=labor.id,
                name=labor.name,
                hours=att.hours,
                price_per_hour=labor.price_per_hour,
                subtotal=labor.price_per_hour * att.hours,
            ))
        return lines

    # ---------- read path ----------

    def _require(self, product_id: str) -> Product:
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        return product

    def itemize(self, product_id: str, quantity: Decimal = Decimal("1")) -> Itemization:
        """Cost of `quantity` units of a product with its direct line items."""
        product = self._require(product_id)
        quantity = Decimal(str(quantity))
        evaluation = self._evaluate(product, frozenset({product.id}), (product.id,))
        return Itemization(
            product_id=product.id,
            quantity=quantity,
            breakdown=evaluation.breakdown.scaled(quantity),
            materials=[m.scaled(quantity) for m in evaluation.materials],
            processes=[p.scaled(quantity) for p in evaluation.processes],
            labor=[l.scaled(quantity) for l in evaluation.labor],
        )

    def product_cost(self, product_id: str) -> ProductCost:
        """
        Simple products are priced fresh from unit_price * required_quantity.
        Calculated products are always recomputed; the cache never answers a read.
        """
        product = self._require(product_id)
        breakdown = self._evaluate(product, frozenset({product.id}), (product.id,)).breakdown

        cached = self.cache.get(product.id)
        return ProductCost(
            product_id=product.id,
            kind=product.kind,
            unit_price=product.unit_price,
            required_quantity=product.required_quantity,
            breakdown=breakdown,
            last_computed_at=cached.computed_at if cached else product.last_computed_at,
        )

    def recalculate(self, product_id: str) -> ProductCost:
        self.cache.invalidate(product_id)
        logger.info("Recalculating cost for product %s", product_id)
        return self.product_cost(product_id)

    def cost_with_margin(self, product_id: str) -> ProductCostWithMargin:
        """Product cost plus the product's own margin (base * margin% / 100)."""
        product = self._require(product_id)
        cost = self.product_cost(product_id)
        base = cost.breakdown.total
        margin_value = percent_of(base, product.margin_percent)
        return ProductCostWithMargin(
            product_id=product.id,
            base_cost=base,
            margin_percent=product.margin_percent,
            margin_value=margin_value,
            cost_with_margin=base + margin_value,
            breakdown=cost.breakdown,
        )

    # ---------- graph views ----------

    def dependency_tree(self, product_id: str) -> DependencyTreeNode:
        product = self._require(product_id)
        return DependencyTreeNode(
            id=product.id,
            name=product.name,
            kind=product.kind,
            unit_price=product.unit_price,
            children=self._subtree(product.id, 1, frozenset({product.id})),
        )

    def _subtree(self, product_id: str, level: int, visited: frozenset[str]) -> list[DependencyTreeNode]:
        nodes: list[DependencyTreeNode] = []
        for edge in self.store.get_dependencies(product_id):
            if edge.child_id in visited:
                logger.warning("Dependency cycle at %s -> %s, subtree truncated", product_id, edge.child_id)
                continue
            child = self.store.get_product(edge.child_id)
            if child is None:
                continue
            nodes.append(DependencyTreeNode(
                id=child.id,
                name=child.name,
                kind=child.kind,
                unit_price=child.unit_price,
                quantity=edge.quantity,
                level=level,
                children=self._subtree(child.id, level + 1, visited | {child.id}),
            ))
        return nodes

    def would_create_cycle(self, parent_id: str, child_id: str) -> bool:
        """True if adding parent -> child closes a cycle (child already reaches parent)."""
        if parent_id == child_id:
            return True

        seen: set[str] = set()
        stack = [child_id]
        while stack:
            current = stack.pop()
            if current == parent_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(d.child_id for d in self.store.get_dependencies(current))
        return False

    def check_dependency(self, parent_id: str, child_id: str) -> CycleCheckResult:
        has_cycle = self.would_create_cycle(parent_id, child_id)
        logger.info("Cycle check %s -> %s: %s", parent_id, child_id, "CYCLE" if has_cycle else "ok")
        return CycleCheckResult(
            parent_id=parent_id,
            child_id=child_id,
            has_cycle=has_cycle,
            message=(
                "This dependency would create a circular reference"
                if has_cycle
                else "Dependency can be added without creating cycles"
            ),
        )

    def material_requirements(self, product_id: str, quantity: Decimal = Decimal("1")) -> list[MaterialLine]:
        """
        Simple (leaf) products needed for `quantity` units of a product, with
        quantities multiplied along each path and merged per product.
        """
        root = self._require(product_id)
        needed: dict[str, Decimal] = {}
        leaves: dict[str, Product] = {}

        def walk(product: Product, multiplier: Decimal, visited: frozenset[str]) -> None:
            if product.kind == "simple":
                needed[product.id] = needed.get(product.id, ZERO) + multiplier * product.required_quantity
                leaves[product.id] = product
                return
            for edge in self.store.get_dependencies(product.id):
                if edge.child_id in visited:
                    continue
                child = self.store.get_product(edge.child_id)
                if child is None:
                    continue
                walk(child, multiplier * edge.quantity, visited | {child.id})

        walk(root, Decimal(str(quantity)), frozenset({root.id}))

        lines = [
            MaterialLine(
                product_id=pid,
                name=leaves[pid].name,
                quantity=qty,
                unit_cost=leaves[pid].unit_price or ZERO,
                subtotal=(leaves[pid].unit_price or ZERO) * qty,
            )
            for pid, qty in needed.items()
        ]
        return sorted(lines, key=lambda m: m.name)
