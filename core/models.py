from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

ProductKind = Literal["simple", "calculated"]

ZERO = Decimal("0")
ONE = Decimal("1")


# ---------- Dependency graph records ----------

class Product(BaseModel):
    id: str
    name: str = ""
    kind: ProductKind = "simple"

    # authoritative only for simple products
    unit_price: Optional[Decimal] = None
    required_quantity: Decimal = ONE
    is_component: bool = False
    margin_percent: Decimal = ZERO

    # cached cost fields, written by the resolver on calculated products
    materials_cost: Optional[Decimal] = None
    processes_cost: Optional[Decimal] = None
    labor_cost: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    last_computed_at: Optional[datetime] = None

    @field_validator("required_quantity", "margin_percent", mode="before")
    @classmethod
    def _default_when_null(cls, value, info):
        if value is None:
            return ONE if info.field_name == "required_quantity" else ZERO
        return value

    @property
    def leaf_cost(self) -> Decimal:
        """Cost of a simple product = unit price * required quantity."""
        return (self.unit_price or ZERO) * self.required_quantity


class DependencyEdge(BaseModel):
    parent_id: str
    child_id: str
    quantity: Decimal = ONE


class Process(BaseModel):
    id: str
    name: str = ""
    price_per_unit: Decimal = ZERO
    estimated_minutes: Decimal = ZERO


class ProcessAttachment(BaseModel):
    product_id: str
    process_id: str
    quantity: Decimal = ZERO


class LaborType(BaseModel):
    id: str
    name: str = ""
    price_per_hour: Decimal = ZERO


class LaborAttachment(BaseModel):
    product_id: str
    labor_type_id: str
    hours: Decimal = ZERO


# ---------- Orders ----------

class TaxEntry(BaseModel):
    label: str
    percent: Decimal = ZERO


class ExtraItem(BaseModel):
    name: str
    description: str = ""
    value: Decimal = ZERO


class Order(BaseModel):
    id: str
    product_id: str
    quantity: Decimal = ONE

    # freight only counts when has_freight is set
    has_freight: bool = True
    freight_value: Decimal = ZERO

    margin_percent: Decimal = ZERO
    taxes: list[TaxEntry] = Field(default_factory=list)
    extras: list[ExtraItem] = Field(default_factory=list)


# ---------- Cost results ----------

class CostBreakdown(BaseModel):
    total: Decimal = ZERO
    materials: Decimal = ZERO
    processes: Decimal = ZERO
    labor: Decimal = ZERO

    @classmethod
    def zero(cls) -> CostBreakdown:
        return cls()

    @classmethod
    def leaf(cls, cost: Decimal) -> CostBreakdown:
        return cls(total=cost, materials=cost)

    def scaled(self, factor: Decimal) -> CostBreakdown:
        return CostBreakdown(
            total=self.total * factor,
            materials=self.materials * factor,
            processes=self.processes * factor,
            labor=self.labor * factor,
        )


class MaterialLine(BaseModel):
    product_id: str
    name: str = ""
    quantity: Decimal
    unit_cost: Decimal
    subtotal: Decimal

    def scaled(self, factor: Decimal) -> MaterialLine:
        return self.model_copy(update={"quantity": self.quantity * factor, "subtotal": self.subtotal * factor})


class ProcessLine(BaseModel):
    process_id: str
    name: str = ""
    quantity: Decimal
    price_per_unit: Decimal
    estimated_minutes: Decimal = ZERO
    subtotal: Decimal

    def scaled(self, factor: Decimal) -> ProcessLine:
        return self.model_copy(update={"quantity": self.quantity * factor, "subtotal": self.subtotal * factor})


class LaborLine(BaseModel):
    labor_type_id: str
    name: str = ""
    hours: Decimal
    price_per_hour: Decimal
    subtotal: Decimal

    def scaled(self, factor: Decimal) -> LaborLine:
        return self.model_copy(update={"hours": self.hours * factor, "subtotal": self.subtotal * factor})


class Itemization(BaseModel):
    """Cost of one product (already scaled by quantity) plus its direct line items."""
    product_id: str
    quantity: Decimal = ONE
    breakdown: CostBreakdown
    materials: list[MaterialLine] = Field(default_factory=list)
    processes: list[ProcessLine] = Field(default_factory=list)
    labor: list[LaborLine] = Field(default_factory=list)


class ProductCost(BaseModel):
    product_id: str
    kind: ProductKind
    unit_price: Optional[Decimal] = None
    required_quantity: Decimal = ONE
    breakdown: CostBreakdown
    last_computed_at: Optional[datetime] = None


class ProductCostWithMargin(BaseModel):
    product_id: str
    base_cost: Decimal
    margin_percent: Decimal
    margin_value: Decimal
    cost_with_margin: Decimal
    breakdown: CostBreakdown


class DependencyTreeNode(BaseModel):
    id: str
    name: str = ""
    kind: ProductKind = "simple"
    unit_price: Optional[Decimal] = None
    quantity: Decimal = ONE
    level: int = 0
    children: list[DependencyTreeNode] = Field(default_factory=list)


class CycleCheckResult(BaseModel):
    parent_id: str
    child_id: str
    has_cycle: bool
    message: str


# ---------- Quote ----------

class QuoteInput(BaseModel):
    """Already-priced totals fed straight into the quote pipeline."""
    materials_total: Decimal = ZERO
    processes_total: Decimal = ZERO
    labor_total: Decimal = ZERO
    extras_total: Decimal = ZERO
    freight_value: Decimal = ZERO
    margin_percent: Decimal = ZERO
    taxes: list[TaxEntry] = Field(default_factory=list)


class QuoteTotals(BaseModel):
    custo_total_materiais: Decimal
    custo_total_processos: Decimal
    custo_total_mao_de_obra: Decimal
    custo_total_itens_extras: Decimal
    valor_frete: Decimal
    subtotal: Decimal
    margem_lucro_percentual: Decimal
    valor_margem_lucro: Decimal
    total_com_margem: Decimal
    impostos_percentual: Decimal
    valor_impostos: Decimal
    custo_total: Decimal


class QuoteBreakdown(QuoteTotals):
    pedido_id: Optional[str] = None
    impostos: list[TaxEntry] = Field(default_factory=list)
    detalhes_materiais: list[MaterialLine] = Field(default_factory=list)
    detalhes_processos: list[ProcessLine] = Field(default_factory=list)
    detalhes_mao_de_obra: list[LaborLine] = Field(default_factory=list)
    detalhes_itens_extras: list[ExtraItem] = Field(default_factory=list)
