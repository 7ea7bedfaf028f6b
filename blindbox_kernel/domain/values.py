"""
Values -- Immutable domain types for the blind box kernel.

Responsibility:
    Defines the closed ``Tier`` enumeration, probability weights, catalog
    values (``CollectibleItem``, ``StockLevels``, ``Product``) and the
    backpack records (``BackpackEntryDraft`` -> ``BackpackEntry``) that flow
    between engines, services and stores.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies; stores convert rows to these types at the
    persistence boundary.

Invariants enforced:
    - Tier is exhaustive: common, rare, secret.  Fallback order is rarest
      first and defined exactly once (``FALLBACK_ORDER``).
    - ProbabilityConfig weights are integers in 0..100 summing to 100.
    - StockLevels counts are never negative.
    - Every CollectibleItem carries a Tier (never a free string).

Failure modes:
    - UnknownTierError from ``Tier.parse`` on names outside the enumeration.
    - InvalidProbabilityConfigError from ``ProbabilityConfig`` on bad weights.
    - ValueError on negative stock counts or malformed catalog values.

Data flow:
    CheckoutLine -> BackpackEntryDraft -> (store) -> BackpackEntry
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from blindbox_kernel.exceptions import InvalidProbabilityConfigError, UnknownTierError


class Tier(str, Enum):
    """
    Rarity tier of a collectible item.

    Contract:
        Exactly three values.  Any tier-indexed mapping in the system is
        keyed by these members, never by raw strings.
    """

    COMMON = "common"
    RARE = "rare"
    SECRET = "secret"

    @classmethod
    def parse(cls, value: Any) -> Tier:
        """Convert an exact lower-case tier name (or Tier) to a Tier, raising UnknownTierError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise UnknownTierError(value)


# Rarest first.  Used when the rolled tier is out of stock.
FALLBACK_ORDER: tuple[Tier, ...] = (Tier.SECRET, Tier.RARE, Tier.COMMON)


class EntryState(str, Enum):
    """
    Lifecycle state of a backpack entry.

    Contract:
        UNOPENED -> OPENED, exactly once.  OPENED is terminal.
    """

    UNOPENED = "unopened"
    OPENED = "opened"


@dataclass(frozen=True)
class ProbabilityConfig:
    """
    Tier weights used by the draw engine.

    Contract:
        Frozen; a config change installs a new instance rather than
        mutating the current one.
    Guarantees:
        - every weight is an int in 0..100
        - common + rare + secret == 100
    """

    common: int
    rare: int
    secret: int

    TOTAL = 100

    def __post_init__(self) -> None:
        weights = self.as_dict()
        for tier, weight in weights.items():
            if isinstance(weight, bool) or not isinstance(weight, int):
                raise InvalidProbabilityConfigError(
                    f"Weight for {tier} must be an integer, got {weight!r}", weights
                )
            if weight < 0 or weight > self.TOTAL:
                raise InvalidProbabilityConfigError(
                    f"Weight for {tier} must be between 0 and {self.TOTAL}", weights
                )
        if sum(weights.values()) != self.TOTAL:
            raise InvalidProbabilityConfigError(f"Total must be {self.TOTAL}", weights)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProbabilityConfig:
        """
        Build a config from a mapping holding all three tier weights.

        Raises:
            InvalidProbabilityConfigError: a tier is missing or a weight
                is invalid.  No partial updates are accepted.
        """
        if not isinstance(data, Mapping):
            raise InvalidProbabilityConfigError("Probability config must be an object")
        missing = [t.value for t in Tier if t.value not in data]
        if missing:
            raise InvalidProbabilityConfigError(
                f"Missing weight(s) for: {', '.join(missing)}", dict(data)
            )
        return cls(
            common=data[Tier.COMMON.value],
            rare=data[Tier.RARE.value],
            secret=data[Tier.SECRET.value],
        )

    def weight(self, tier: Tier) -> int:
        return getattr(self, tier.value)

    def as_dict(self) -> dict[str, int]:
        return {"common": self.common, "rare": self.rare, "secret": self.secret}


DEFAULT_PROBABILITIES = ProbabilityConfig(common=60, rare=30, secret=10)


@dataclass(frozen=True)
class CollectibleItem:
    """A single collectible design within a product. Immutable after seed."""

    item_id: str
    name: str
    tier: Tier

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValueError("CollectibleItem requires an item_id")
        if not isinstance(self.tier, Tier):
            raise UnknownTierError(self.tier)


@dataclass(frozen=True)
class StockLevels:
    """
    Per-tier remaining stock of one product.

    Guarantees:
        - every count is a non-negative int
    """

    common: int = 0
    rare: int = 0
    secret: int = 0

    def __post_init__(self) -> None:
        for tier, count in self.as_dict().items():
            if isinstance(count, bool) or not isinstance(count, int):
                raise ValueError(f"Stock for {tier} must be an integer, got {count!r}")
            if count < 0:
                raise ValueError(f"Stock for {tier} cannot be negative: {count}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, int] | None) -> StockLevels:
        """Build from a tier-name mapping; absent tiers count as zero."""
        if not data:
            return cls()
        counts = {Tier.parse(name).value: count for name, count in data.items()}
        return cls(**counts)

    def get(self, tier: Tier) -> int:
        return getattr(self, tier.value)

    def with_count(self, tier: Tier, count: int) -> StockLevels:
        return replace(self, **{tier.value: count})

    @property
    def total(self) -> int:
        return self.common + self.rare + self.secret

    def as_dict(self) -> dict[str, int]:
        return {"common": self.common, "rare": self.rare, "secret": self.secret}


@dataclass(frozen=True)
class Product:
    """
    A blind box product: its item pool and current stock.

    Contract:
        ``items`` keeps catalog order.  Item ids are unique within the
        product.
    """

    product_id: int
    name: str
    price: Decimal
    items: tuple[CollectibleItem, ...] = ()
    stocks: StockLevels = field(default_factory=StockLevels)
    image: str | None = None

    def __post_init__(self) -> None:
        ids = [item.item_id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Product {self.product_id} has duplicate item ids")

    def items_of(self, tier: Tier) -> tuple[CollectibleItem, ...]:
        return tuple(item for item in self.items if item.tier is tier)

    @property
    def total_stock(self) -> int:
        return self.stocks.total


@dataclass(frozen=True)
class ProductListing:
    """Product plus its computed total stock, as returned by listings."""

    product: Product
    total_stock: int


@dataclass(frozen=True)
class CheckoutLine:
    """One requested (product, quantity) pair of a checkout."""

    product_id: int
    quantity: int = 1


@dataclass(frozen=True)
class BackpackEntryDraft:
    """
    A backpack entry before the store assigns its identifier.

    Produced by checkout, one per purchased unit.
    """

    product_id: int
    product_name: str
    item_id: str
    item_name: str
    rarity: Tier
    created_at: datetime


@dataclass(frozen=True)
class BackpackEntry:
    """
    A persisted backpack entry.

    Contract:
        ``rarity`` is the checkout-time roll and never changes.
        ``opened_rarity`` is the tier resolved against stock by ``open``;
        it is unrelated to ``rarity``.
    """

    entry_id: UUID
    product_id: int
    product_name: str
    item_id: str
    item_name: str
    rarity: Tier
    state: EntryState
    created_at: datetime
    opened_at: datetime | None = None
    opened_rarity: Tier | None = None

    @classmethod
    def from_draft(cls, entry_id: UUID, draft: BackpackEntryDraft) -> BackpackEntry:
        return cls(
            entry_id=entry_id,
            product_id=draft.product_id,
            product_name=draft.product_name,
            item_id=draft.item_id,
            item_name=draft.item_name,
            rarity=draft.rarity,
            state=EntryState.UNOPENED,
            created_at=draft.created_at,
        )

    @property
    def is_opened(self) -> bool:
        return self.state is EntryState.OPENED
