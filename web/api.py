from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core import config
from core.calculator import QuoteAssembler, calculate_quote
from core.errors import DependencyError, NotFoundError
from core.models import (
    CycleCheckResult,
    DependencyTreeNode,
    MaterialLine,
    ProductCost,
    ProductCostWithMargin,
    QuoteBreakdown,
    QuoteInput,
    QuoteTotals,
)
from core.resolver import CostResolver
from core.store import GraphStore, load_catalog

logger = logging.getLogger(__name__)

app = FastAPI(title="Fabrication Quote API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_store() -> GraphStore:
    return load_catalog(config.DATA_FILE)


def get_resolver(store: GraphStore = Depends(get_store)) -> CostResolver:
    # one resolver per request
    return CostResolver(store)


class CycleCheckRequest(BaseModel):
    child_id: str


@app.exception_handler(NotFoundError)
def not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DependencyError)
def upstream_unavailable(_request: Request, exc: DependencyError) -> JSONResponse:
    logger.error("Upstream unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/products/{product_id}/cost", response_model=ProductCost)
def product_cost(product_id: str, resolver: CostResolver = Depends(get_resolver)) -> ProductCost:
    return resolver.product_cost(product_id)


@app.post("/products/{product_id}/recalculate", response_model=ProductCost)
def recalculate(product_id: str, resolver: CostResolver = Depends(get_resolver)) -> ProductCost:
    return resolver.recalculate(product_id)


@app.get("/products/{product_id}/cost-with-margin", response_model=ProductCostWithMargin)
def cost_with_margin(product_id: str, resolver: CostResolver = Depends(get_resolver)) -> ProductCostWithMargin:
    return resolver.cost_with_margin(product_id)


@app.get("/products/{product_id}/dependency-tree", response_model=DependencyTreeNode)
def dependency_tree(product_id: str, resolver: CostResolver = Depends(get_resolver)) -> DependencyTreeNode:
    return resolver.dependency_tree(product_id)


@app.get("/products/{product_id}/material-requirements", response_model=list[MaterialLine])
def material_requirements(
    product_id: str,
    quantity: Decimal = Query(Decimal("1")),
    resolver: CostResolver = Depends(get_resolver),
) -> list[MaterialLine]:
    """Leaf products to buy for `quantity` units, merged per product."""
    return resolver.material_requirements(product_id, quantity)


@app.post("/products/{product_id}/dependencies/circular-check", response_model=CycleCheckResult)
def circular_check(
    product_id: str,
    req: CycleCheckRequest = Body(...),
    resolver: CostResolver = Depends(get_resolver),
) -> CycleCheckResult:
    return resolver.check_dependency(product_id, req.child_id)


@app.get("/orders/{order_id}/quote", response_model=QuoteBreakdown)
def order_quote(order_id: str, resolver: CostResolver = Depends(get_resolver)) -> QuoteBreakdown:
    """Full itemized quote for an order; every intermediate total is included."""
    return QuoteAssembler(resolver.store, resolver).assemble_quote(order_id)


@app.post("/quote", response_model=QuoteTotals)
def quote(req: QuoteInput = Body(...)) -> QuoteTotals:
    """Runs the pricing pipeline over totals the caller already has."""
    return calculate_quote(req)
