# core/cache.py
# Last computed cost per product, owned by the resolver.
# Every put is mirrored onto the store record (write-through, best-effort).

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .models import CostBreakdown
from .store import GraphStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CachedCost:
    breakdown: CostBreakdown
    computed_at: datetime


class CostCache:
    def __init__(self, store: Optional[GraphStore] = None, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock
        self._entries: dict[str, CachedCost] = {}

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, product_id: str) -> Optional[CachedCost]:
        return self._entries.get(product_id)

    def put(self, product_id: str, breakdown: CostBreakdown) -> CachedCost:
        entry = CachedCost(breakdown=breakdown, computed_at=self._clock())
        self._entries[product_id] = entry

        if self._store is not None:
            try:
                self._store.save_cost(product_id, breakdown, entry.computed_at)
            except Exception:
                # the caller still gets the fresh numbers
                logger.exception("Could not persist computed cost for product %s", product_id)
        return entry

    def invalidate(self, product_id: Optional[str] = None) -> None:
        if product_id is None:
            self._entries.clear()
        else:
            self._entries.pop(product_id, None)
