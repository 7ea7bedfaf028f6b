"""
Module: blindbox_engines.allocation
Responsibility:
    Reconcile a freshly rolled tier against the product's remaining stock.

Architecture position:
    Engines -- consumes the CatalogStore contract for its single side
    effect, the atomic decrement-if-positive of one (product, tier).

Invariants enforced:
    - Every decrement is one atomic ``decrement_if_positive`` call on the
      store; no check-then-act sequences in Python.
    - Fallback walks FALLBACK_ORDER (secret, rare, common): rarest first.
    - Exhaustion never raises.  With every tier at zero the outcome is
      ``common`` with no decrement (``degraded=True``).

Failure modes:
    - ProductNotFoundError propagated from the store.
    - StoreUnavailableError propagated from the store.

Usage:
    resolver = AllocationResolver(catalog_store)
    outcome = resolver.resolve(product_id=1, requested=Tier.RARE)
    outcome.resolved   # Tier actually granted
"""

from __future__ import annotations

from dataclasses import dataclass

from blindbox_engines.tracer import traced_engine
from blindbox_kernel.domain.values import FALLBACK_ORDER, Tier
from blindbox_kernel.logging_config import get_logger
from blindbox_kernel.stores.base import CatalogStore

logger = get_logger("engines.allocation")


@dataclass(frozen=True)
class AllocationOutcome:
    """
    Result of resolving one rolled tier against stock.

    Guarantees:
        - ``decremented`` is False only when ``degraded`` is True
        - ``degraded`` implies ``resolved`` is COMMON
    """

    requested: Tier
    resolved: Tier
    decremented: bool
    degraded: bool = False

    @property
    def fell_back(self) -> bool:
        return self.resolved is not self.requested


class AllocationResolver:
    """Grants the rolled tier if in stock, otherwise the rarest tier left."""

    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog

    @traced_engine("allocation", "1.0", fingerprint_fields=("product_id", "requested"))
    def resolve(self, product_id: int, requested: Tier) -> AllocationOutcome:
        if self._catalog.decrement_if_positive(product_id, requested):
            outcome = AllocationOutcome(requested, requested, decremented=True)
        else:
            outcome = self._fallback(product_id, requested)

        if outcome.degraded:
            logger.warning("allocation_degraded", extra={
                "product_id": product_id,
                "requested_tier": requested.value,
                "resolved_tier": outcome.resolved.value,
            })
        else:
            logger.info("stock_decremented", extra={
                "product_id": product_id,
                "requested_tier": requested.value,
                "resolved_tier": outcome.resolved.value,
                "fell_back": outcome.fell_back,
            })
        return outcome

    def _fallback(self, product_id: int, requested: Tier) -> AllocationOutcome:
        for tier in FALLBACK_ORDER:
            if self._catalog.decrement_if_positive(product_id, tier):
                return AllocationOutcome(requested, tier, decremented=True)
        return AllocationOutcome(requested, Tier.COMMON, decremented=False, degraded=True)
