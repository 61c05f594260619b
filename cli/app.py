# cli/app.py
# CLI = temporary UI over the core. It can be swapped for the web API without touching core.

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from core import config
from core.calculator import QuoteAssembler, rounded
from core.errors import DependencyError, NotFoundError
from core.models import QuoteBreakdown
from core.store import load_catalog

logger = logging.getLogger(__name__)


# ---------- input helpers ----------

def ask_yes_no(prompt: str) -> bool:
    while True:
        raw = input(prompt + " (y/n): ").strip().lower()
        if raw in ("y", "yes", "s", "sim"):
            return True
        if raw in ("n", "no", "nao", "não"):
            return False
        print("❌ Enter y or n")


def money(x: Decimal) -> str:
    return f"R$ {x:,.2f}"


# ---------- history (JSON) ----------

def save_quote_json(quote: QuoteBreakdown, history_dir: Path | None = None) -> Path:
    """Writes the quote to data/history/ and returns the file path."""
    history_dir = history_dir or config.HISTORY_DIR
    history_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().isoformat(timespec="seconds").replace(":", "").replace("-", "")
    path = history_dir / f"{ts}_order_{quote.pedido_id}.json"

    payload = {
        "meta": {"created_at": datetime.now().isoformat(timespec="seconds"), "order_id": quote.pedido_id},
        "quote": json.loads(quote.model_dump_json()),
    }
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


# ---------- output ----------

def print_quote(quote: QuoteBreakdown) -> None:
    q = rounded(quote)

    print("\n--- Materials ---")
    for m in q.detalhes_materiais:
        print(f"{m.name or m.product_id:<28} {m.quantity:>10} x {money(m.unit_cost):>14} = {money(m.subtotal)}")
    print("\n--- Processes ---")
    for p in q.detalhes_processos:
        print(f"{p.name or p.process_id:<28} {p.quantity:>10} x {money(p.price_per_unit):>14} = {money(p.subtotal)}")
    print("\n--- Labor ---")
    for l in q.detalhes_mao_de_obra:
        print(f"{l.name or l.labor_type_id:<28} {l.hours:>9}h x {money(l.price_per_hour):>14} = {money(l.subtotal)}")
    if q.detalhes_itens_extras:
        print("\n--- Extras ---")
        for e in q.detalhes_itens_extras:
            print(f"{e.name:<28} {money(e.value)}")

    print("\n--- Breakdown ---")
    print(f"Materials:             {money(q.custo_total_materiais)}")
    print(f"Processes:             {money(q.custo_total_processos)}")
    print(f"Labor:                 {money(q.custo_total_mao_de_obra)}")
    print(f"Extras:                {money(q.custo_total_itens_extras)}")
    print(f"Freight:               {money(q.valor_frete)}")
    print(f"Subtotal:              {money(q.subtotal)}")
    print(f"Margin ({q.margem_lucro_percentual}%):".ljust(23) + f"{money(q.valor_margem_lucro)}")
    print(f"Total w/ margin:       {money(q.total_com_margem)}")
    for t in q.impostos:
        print(f"  tax {t.label}: {t.percent}%")
    print(f"Taxes ({q.impostos_percentual}%):".ljust(23) + f"{money(q.valor_impostos)}")
    print(f"TOTAL:                 {money(q.custo_total)}")
    print("-----------------\n")


# ---------- main CLI flow ----------

def run_cli(order_id: str | None = None, data_file: Path | None = None) -> int:
    print("\n=== Fabrication Quote Builder (CLI) ===\n")

    store = load_catalog(data_file or config.DATA_FILE)

    if order_id is None:
        print("Available orders:")
        for oid, order in store.orders.items():
            print(f" - {oid}: product {order.product_id} x {order.quantity}")
        order_id = input("\nChoose order id: ").strip()

    try:
        quote = QuoteAssembler(store).assemble_quote(order_id)
    except NotFoundError as e:
        print(f"❌ {e}")
        return 1
    except DependencyError as e:
        logger.error("Quote failed: %s", e)
        print("❌ Could not reach the product store, try again")
        return 2

    print_quote(quote)

    if ask_yes_no("Save quote to history (JSON)?"):
        path = save_quote_json(rounded(quote))
        print(f"✅ Saved JSON: {path}\n")
    return 0


def main() -> None:
    config.configure_logging()
    args = sys.argv[1:]
    sys.exit(run_cli(order_id=args[0] if args else None, data_file=Path(args[1]) if len(args) > 1 else None))


if __name__ == "__main__":
    main()
