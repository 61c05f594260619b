"""Quick runtime checks for the quote engine.
Run: python scripts/quickcheck.py
Exits with code 0 on success, non-zero on failure.
"""
from decimal import Decimal

from core.calculator import QuoteAssembler, calculate_quote
from core.models import Order, Product, QuoteInput, TaxEntry
from core.store import InMemoryGraphStore


def main():
    res = calculate_quote(QuoteInput(
        materials_total=100,
        processes_total=50,
        labor_total=30,
        extras_total=20,
        freight_value=10,
        margin_percent=10,
        taxes=[TaxEntry(label="ICMS", percent=18), TaxEntry(label="ISS", percent=2)],
    ))

    assert res.subtotal == Decimal("210")
    assert res.valor_margem_lucro == Decimal("21")
    assert res.total_com_margem == Decimal("231")
    assert res.valor_impostos == Decimal("46.2")
    assert res.custo_total == Decimal("277.2")

    store = InMemoryGraphStore(
        products=[
            Product(id="A", name="A", kind="calculated"),
            Product(id="B", name="B", kind="calculated"),
            Product(id="C", name="C", kind="simple", unit_price=5),
        ],
        orders=[Order(id="o1", product_id="A", quantity=2)],
    )
    store.add_dependency("A", "B", 1)
    store.add_dependency("B", "A", 1)
    store.add_dependency("B", "C", 3)

    quote = QuoteAssembler(store).assemble_quote("o1")
    assert quote.custo_total_materiais == Decimal("30")

    print("Quickcheck OK")


if __name__ == '__main__':
    main()
