"""
Pure domain layer.

This module contains immutable value types and the clock / random
abstractions with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O
"""

from blindbox_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from blindbox_kernel.domain.random_source import (
    RandomSource,
    ScriptedRandomSource,
    SeededRandomSource,
    SystemRandomSource,
)
from blindbox_kernel.domain.values import (
    DEFAULT_PROBABILITIES,
    FALLBACK_ORDER,
    BackpackEntry,
    BackpackEntryDraft,
    CheckoutLine,
    CollectibleItem,
    EntryState,
    ProbabilityConfig,
    Product,
    ProductListing,
    StockLevels,
    Tier,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "RandomSource",
    "ScriptedRandomSource",
    "SeededRandomSource",
    "SystemRandomSource",
    "DEFAULT_PROBABILITIES",
    "FALLBACK_ORDER",
    "BackpackEntry",
    "BackpackEntryDraft",
    "CheckoutLine",
    "CollectibleItem",
    "EntryState",
    "ProbabilityConfig",
    "Product",
    "ProductListing",
    "StockLevels",
    "Tier",
]
