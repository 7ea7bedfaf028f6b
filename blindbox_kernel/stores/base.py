"""
Store contracts -- the collaborators the blind box core consumes.

Responsibility:
    Declares the three storage interfaces the services depend on: the
    catalog store (products, items and the stock ledger), the config store
    (probability weights) and the backpack store (allocated entries).  The
    services never see an ORM session or a lock; they only see these
    contracts.

Architecture position:
    Kernel > Stores -- boundary between the pure core and persistence.
    Implementations live in ``stores/memory.py`` (process-local, lock
    based) and ``stores/sql.py`` (SQLAlchemy, conditional UPDATEs).

Invariants enforced (by every implementation):
    S1 -- ``decrement_if_positive`` is linearizable per (product, tier):
          two concurrent callers can never both take the last unit and
          the count never drops below zero.
    B2 -- ``conditional_update`` applies its changes only when the entry is
          currently in ``expected_state``; of N concurrent callers with the
          same expectation, exactly one sees True.
    S5 -- ``adjust_stock`` clamps at zero and is applied atomically.

Failure modes:
    - ProductNotFoundError from stock mutations on unknown products.
    - StoreUnavailableError when the backing store fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any
from uuid import UUID

from blindbox_kernel.domain.values import (
    BackpackEntry,
    BackpackEntryDraft,
    EntryState,
    ProbabilityConfig,
    Product,
    StockLevels,
    Tier,
)

# Fields a conditional update may change on a backpack entry
UPDATABLE_ENTRY_FIELDS: frozenset[str] = frozenset({"state", "opened_at", "opened_rarity"})


def check_entry_changes(changes: Mapping[str, Any]) -> None:
    """Reject conditional-update changes outside the lifecycle fields."""
    unknown = set(changes) - UPDATABLE_ENTRY_FIELDS
    if unknown:
        raise ValueError(f"Cannot update backpack entry fields: {sorted(unknown)}")


class CatalogStore(ABC):
    """
    Products, their item pools, and the per-tier stock ledger.

    Contract:
        Products and items are immutable after seeding; only stock moves.
    """

    @abstractmethod
    def find_product(self, product_id: int) -> Product | None:
        """Return the product with its current stock, or None."""

    @abstractmethod
    def list_products(self) -> list[Product]:
        """Return all products ordered by id."""

    @abstractmethod
    def update_stock(self, product_id: int, stocks: StockLevels) -> None:
        """Replace the whole stock row of a product (administrative)."""

    @abstractmethod
    def adjust_stock(self, product_id: int, tier: Tier, delta: int) -> StockLevels:
        """Atomically add ``delta`` to one tier, clamping at zero."""

    @abstractmethod
    def decrement_if_positive(self, product_id: int, tier: Tier) -> bool:
        """Atomically take one unit of ``tier``; False when none is left."""

    @abstractmethod
    def replace_catalog(self, products: Iterable[Product]) -> None:
        """Drop every product and install ``products`` (startup seeding)."""


class ConfigStore(ABC):
    """Persistent probability weights, last-writer-wins."""

    @abstractmethod
    def get_config(self) -> ProbabilityConfig | None:
        """Return the persisted weights, or None when never set."""

    @abstractmethod
    def set_config(self, config: ProbabilityConfig) -> None:
        """Persist ``config``, replacing any previous value."""


class BackpackStore(ABC):
    """
    Allocated entries and their lifecycle state.

    Contract:
        Entry ids are assigned by the store.  Entries are never deleted
        except through ``clear`` (startup reset).
    """

    @abstractmethod
    def insert_many(self, drafts: Sequence[BackpackEntryDraft]) -> list[BackpackEntry]:
        """Insert all drafts as unopened entries in one batch."""

    @abstractmethod
    def find_all(self) -> list[BackpackEntry]:
        """Return every entry, oldest first."""

    @abstractmethod
    def find_by_id(self, entry_id: UUID) -> BackpackEntry | None:
        """Return one entry, or None."""

    @abstractmethod
    def conditional_update(
        self,
        entry_id: UUID,
        expected_state: EntryState,
        changes: Mapping[str, Any],
    ) -> bool:
        """Apply ``changes`` only if the entry is in ``expected_state``."""

    @abstractmethod
    def clear(self) -> int:
        """Delete every entry; return how many were removed."""
