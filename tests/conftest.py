# tests/conftest.py
import sys
from pathlib import Path

import pytest

# project root on sys.path so core/web/cli import without installing
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.models import LaborAttachment, LaborType, Process, ProcessAttachment, Product  # noqa: E402
from core.store import InMemoryGraphStore, load_catalog  # noqa: E402

CATALOG = ROOT / "data" / "catalog.json"


def simple(pid, price, qty=1, name=None):
    return Product(id=pid, name=name or pid, kind="simple", unit_price=price, required_quantity=qty)


def calculated(pid, name=None, margin=0):
    return Product(id=pid, name=name or pid, kind="calculated", margin_percent=margin)


@pytest.fixture()
def store():
    return InMemoryGraphStore()


@pytest.fixture()
def table_store():
    """
    table (calculated)
      -> top x1     (calculated: sheet x2, process cut x1)
      -> leg x4     (simple 10.00)
      labor: assembler 2h @ 40
    """
    s = InMemoryGraphStore(
        products=[
            calculated("table", "Table"),
            calculated("top", "Top"),
            simple("sheet", 50, name="Sheet"),
            simple("leg", 10, name="Leg"),
        ],
        processes=[Process(id="cut", name="Cut", price_per_unit=15, estimated_minutes=10)],
        process_attachments=[ProcessAttachment(product_id="top", process_id="cut", quantity=1)],
        labor_types=[LaborType(id="assembler", name="Assembler", price_per_hour=40)],
        labor_attachments=[LaborAttachment(product_id="table", labor_type_id="assembler", hours=2)],
    )
    s.add_dependency("table", "top", 1)
    s.add_dependency("table", "leg", 4)
    s.add_dependency("top", "sheet", 2)
    return s


@pytest.fixture()
def catalog_store():
    return load_catalog(CATALOG)
