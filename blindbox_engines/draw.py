"""
Module: blindbox_engines.draw
Responsibility:
    Weighted rarity-tier roll and uniform item roll within a tier.

Architecture position:
    Engines -- no I/O.  Randomness comes from an injected
    ``RandomSource``; the engine never touches the global PRNG.
    May only import blindbox_kernel/domain and blindbox_kernel/exceptions.

Invariants enforced:
    - Tier boundaries are inclusive toward the rarer tier:
      ``draw <= secret`` -> secret, ``draw <= secret + rare`` -> rare,
      otherwise common.  A draw exactly on a boundary picks the rarer tier.
    - Item selection is uniform over the product's items of the tier
      (``floor(u * n)``).
    - Stock is never consulted here; see blindbox_engines.allocation.

Failure modes:
    - EmptyTierError when a product defines no items for the requested tier.

Usage:
    from blindbox_engines.draw import DrawEngine
    from blindbox_kernel.domain import SeededRandomSource

    engine = DrawEngine(SeededRandomSource(7))
    tier = engine.roll_tier(config)
    item = engine.roll_item(product, tier)
"""

from __future__ import annotations

from blindbox_engines.tracer import traced_engine
from blindbox_kernel.domain.random_source import RandomSource, SystemRandomSource
from blindbox_kernel.domain.values import CollectibleItem, ProbabilityConfig, Product, Tier
from blindbox_kernel.exceptions import EmptyTierError


def tier_for_draw(draw: float, config: ProbabilityConfig) -> Tier:
    """Map a percentage draw in [0, 100) to a tier under ``config``."""
    if draw <= config.secret:
        return Tier.SECRET
    if draw <= config.secret + config.rare:
        return Tier.RARE
    return Tier.COMMON


class DrawEngine:
    """
    Rolls tiers and items.

    Contract:
        Stateless apart from the random source, so one instance is safely
        shared by every request as long as the source is thread-safe.
    Non-goals:
        Does not know about stock or the backpack.
    """

    def __init__(self, rng: RandomSource | None = None):
        self._rng = rng or SystemRandomSource()

    @traced_engine("draw.tier", "1.0", fingerprint_fields=("config",))
    def roll_tier(self, config: ProbabilityConfig) -> Tier:
        """Roll a tier according to the configured weights."""
        return tier_for_draw(self._rng.percent(), config)

    @traced_engine("draw.item", "1.0", fingerprint_fields=("tier",))
    def roll_item(self, product: Product, tier: Tier) -> CollectibleItem:
        """
        Pick one item of ``tier`` uniformly at random.

        Raises:
            EmptyTierError: the product has no items of ``tier``.
        """
        candidates = product.items_of(tier)
        if not candidates:
            raise EmptyTierError(product.product_id, tier.value)
        return candidates[self._rng.index(len(candidates))]
