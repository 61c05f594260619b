from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from .errors import NotFoundError
from .models import QuoteBreakdown, QuoteInput, QuoteTotals, TaxEntry, ZERO
from .resolver import CostResolver
from .rules import money, percent_of, total_tax_percent
from .store import GraphStore

logger = logging.getLogger(__name__)


def price_quote(
    *,
    materials_total: Decimal,
    processes_total: Decimal,
    labor_total: Decimal,
    extras_total: Decimal,
    freight_value: Decimal,
    margin_percent: Decimal,
    taxes: Iterable[TaxEntry],
) -> QuoteTotals:
    """
    Fixed pipeline: line totals + freight -> margin -> summed taxes.
    Every stage consumes the previous one; nothing is rounded here.
    """
    subtotal = materials_total + processes_total + labor_total + extras_total + freight_value

    margin_value = percent_of(subtotal, margin_percent)
    total_with_margin = subtotal + margin_value

    tax_percent = total_tax_percent(taxes)
    tax_value = percent_of(total_with_margin, tax_percent)

    return QuoteTotals(
        custo_total_materiais=materials_total,
        custo_total_processos=processes_total,
        custo_total_mao_de_obra=labor_total,
        custo_total_itens_extras=extras_total,
        valor_frete=freight_value,
        subtotal=subtotal,
        margem_lucro_percentual=margin_percent,
        valor_margem_lucro=margin_value,
        total_com_margem=total_with_margin,
        impostos_percentual=tax_percent,
        valor_impostos=tax_value,
        custo_total=total_with_margin + tax_value,
    )


def calculate_quote(req: QuoteInput) -> QuoteTotals:
    return price_quote(
        materials_total=req.materials_total,
        processes_total=req.processes_total,
        labor_total=req.labor_total,
        extras_total=req.extras_total,
        freight_value=req.freight_value,
        margin_percent=req.margin_percent,
        taxes=req.taxes,
    )


MONEY_FIELDS = (
    "custo_total_materiais",
    "custo_total_processos",
    "custo_total_mao_de_obra",
    "custo_total_itens_extras",
    "valor_frete",
    "subtotal",
    "valor_margem_lucro",
    "total_com_margem",
    "valor_impostos",
    "custo_total",
)


LINE_MONEY_FIELDS = {
    "detalhes_materiais": ("unit_cost", "subtotal"),
    "detalhes_processos": ("price_per_unit", "subtotal"),
    "detalhes_mao_de_obra": ("price_per_hour", "subtotal"),
    "detalhes_itens_extras": ("value",),
}


def _round_line(line, fields):
    return line.model_copy(update={f: money(getattr(line, f)) for f in fields})


def rounded(quote: QuoteTotals) -> QuoteTotals:
    """
    Copy with every money field rounded to cents, for display/export.
    Line items of a full breakdown are rounded too.
    """
    update = {f: money(getattr(quote, f)) for f in MONEY_FIELDS}
    if isinstance(quote, QuoteBreakdown):
        for attr, fields in LINE_MONEY_FIELDS.items():
            update[attr] = [_round_line(line, fields) for line in getattr(quote, attr)]
    return quote.model_copy(update=update)


class QuoteAssembler:
    def __init__(self, store: GraphStore, resolver: Optional[CostResolver] = None) -> None:
        self.store = store
        self.resolver = resolver if resolver is not None else CostResolver(store)

    def assemble_quote(self, order_id: str) -> QuoteBreakdown:
        order = self.store.get_order(order_id)
        if order is None:
            raise NotFoundError("order", order_id)
        if self.store.get_product(order.product_id) is None:
            raise NotFoundError("product", order.product_id)

        items = self.resolver.itemize(order.product_id, order.quantity)

        extras_total = sum((e.value for e in order.extras), ZERO)
        freight = order.freight_value if order.has_freight else ZERO

        totals = price_quote(
            materials_total=items.breakdown.materials,
            processes_total=items.breakdown.processes,
            labor_total=items.breakdown.labor,
            extras_total=extras_total,
            freight_value=freight,
            margin_percent=order.margin_percent,
            taxes=order.taxes,
        )
        logger.info(
            "Quote for order %s: subtotal=%s margin=%s taxes=%s total=%s",
            order.id, money(totals.subtotal), money(totals.valor_margem_lucro),
            money(totals.valor_impostos), money(totals.custo_total),
        )

        return QuoteBreakdown(
            **totals.model_dump(),
            pedido_id=order.id,
            impostos=list(order.taxes),
            detalhes_materiais=sorted(items.materials, key=lambda m: m.name),
            detalhes_processos=sorted(items.processes, key=lambda p: p.name),
            detalhes_mao_de_obra=sorted(items.labor, key=lambda l: l.name),
            detalhes_itens_extras=list(order.extras),
        )
