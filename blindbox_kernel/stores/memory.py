"""
In-memory stores -- process-local implementations of the store contracts.

Responsibility:
    Back the services with plain dictionaries for single-process
    deployments and for the test suite.

Architecture position:
    Kernel > Stores.  Implements ``stores/base.py``.

Invariants enforced:
    S1 -- Stock decrements run under a lock keyed by product id, so the
          check and the decrement of one (product, tier) are one step.
    B2 -- Entry transitions are compare-and-set under the backpack lock.

Failure modes:
    - ProductNotFoundError from stock mutations on unknown products.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any
from uuid import UUID, uuid4

from blindbox_kernel.domain.values import (
    BackpackEntry,
    BackpackEntryDraft,
    EntryState,
    ProbabilityConfig,
    Product,
    StockLevels,
    Tier,
)
from blindbox_kernel.exceptions import ProductNotFoundError
from blindbox_kernel.logging_config import get_logger
from blindbox_kernel.stores.base import (
    BackpackStore,
    CatalogStore,
    ConfigStore,
    check_entry_changes,
)

logger = get_logger("stores.memory")


class InMemoryCatalogStore(CatalogStore):
    """Catalog held in a dict; stock mutations serialized per product."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[int, Product] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self.replace_catalog(products)

    def _lock_for(self, product_id: int) -> threading.Lock:
        """Per-product lock; unknown ids raise without registering one."""
        with self._registry_lock:
            if product_id not in self._products:
                raise ProductNotFoundError(product_id)
            lock = self._locks.get(product_id)
            if lock is None:
                lock = self._locks[product_id] = threading.Lock()
            return lock

    def _require(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def find_product(self, product_id: int) -> Product | None:
        return self._products.get(product_id)

    def list_products(self) -> list[Product]:
        return [self._products[pid] for pid in sorted(self._products)]

    def update_stock(self, product_id: int, stocks: StockLevels) -> None:
        with self._lock_for(product_id):
            product = self._require(product_id)
            self._products[product_id] = replace(product, stocks=stocks)

    def adjust_stock(self, product_id: int, tier: Tier, delta: int) -> StockLevels:
        with self._lock_for(product_id):
            product = self._require(product_id)
            new_count = max(0, product.stocks.get(tier) + delta)
            stocks = product.stocks.with_count(tier, new_count)
            self._products[product_id] = replace(product, stocks=stocks)
            return stocks

    def decrement_if_positive(self, product_id: int, tier: Tier) -> bool:
        with self._lock_for(product_id):
            product = self._require(product_id)
            remaining = product.stocks.get(tier)
            if remaining <= 0:
                return False
            self._products[product_id] = replace(
                product, stocks=product.stocks.with_count(tier, remaining - 1)
            )
            return True

    def replace_catalog(self, products: Iterable[Product]) -> None:
        fresh = {product.product_id: product for product in products}
        with self._registry_lock:
            self._products = fresh
            for stale in set(self._locks) - set(fresh):
                del self._locks[stale]
        logger.debug("catalog_replaced", extra={"product_count": len(fresh)})


class InMemoryConfigStore(ConfigStore):
    """Single config slot."""

    def __init__(self, config: ProbabilityConfig | None = None):
        self._config = config
        self._lock = threading.Lock()

    def get_config(self) -> ProbabilityConfig | None:
        return self._config

    def set_config(self, config: ProbabilityConfig) -> None:
        with self._lock:
            self._config = config


class InMemoryBackpackStore(BackpackStore):
    """Entries in insertion order; transitions are compare-and-set."""

    def __init__(self):
        self._entries: dict[UUID, BackpackEntry] = {}
        self._lock = threading.Lock()

    def insert_many(self, drafts: Sequence[BackpackEntryDraft]) -> list[BackpackEntry]:
        created = [BackpackEntry.from_draft(uuid4(), draft) for draft in drafts]
        with self._lock:
            for entry in created:
                self._entries[entry.entry_id] = entry
        return created

    def find_all(self) -> list[BackpackEntry]:
        with self._lock:
            return list(self._entries.values())

    def find_by_id(self, entry_id: UUID) -> BackpackEntry | None:
        return self._entries.get(entry_id)

    def conditional_update(
        self,
        entry_id: UUID,
        expected_state: EntryState,
        changes: Mapping[str, Any],
    ) -> bool:
        check_entry_changes(changes)
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or entry.state is not expected_state:
                return False
            self._entries[entry_id] = replace(entry, **changes)
            return True

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed
