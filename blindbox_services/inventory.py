"""
InventoryService -- administrative view of the catalog and its stock.

Responsibility:
    Lists products with their total remaining stock and applies manual
    stock adjustments.

Architecture position:
    Services -- imperative shell.  Depends on blindbox_kernel only.

Invariants enforced:
    S1 -- Stock never goes negative: adjustments clamp at zero, and the
          clamp is applied atomically by the store.

Failure modes:
    - UnknownTierError (ValidationError) for a rarity name outside the tiers.
    - ValidationError for a non-integer amount.
    - ProductNotFoundError for an unknown product id.
"""

from __future__ import annotations

from typing import Any

from blindbox_kernel.domain.values import ProductListing, StockLevels, Tier
from blindbox_kernel.exceptions import ProductNotFoundError, ValidationError
from blindbox_kernel.logging_config import LogContext, get_logger
from blindbox_kernel.stores.base import CatalogStore

logger = get_logger("services.inventory")


class InventoryService:
    """Product listing and stock administration."""

    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog

    def list_products(self) -> list[ProductListing]:
        return [
            ProductListing(product=product, total_stock=product.total_stock)
            for product in self._catalog.list_products()
        ]

    def adjust_stock(self, product_id: int, tier: Tier | str, delta: Any) -> StockLevels:
        """
        Add ``delta`` (possibly negative) to one tier of a product.

        The resulting count is ``max(0, current + delta)``.

        Returns:
            The product's stock levels after the adjustment.
        """
        resolved_tier = Tier.parse(tier)
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError(f"Stock amount must be an integer, got {delta!r}")

        with LogContext.bind(product_id=product_id):
            stocks = self._catalog.adjust_stock(product_id, resolved_tier, delta)
            logger.info("stock_adjusted", extra={
                "tier": resolved_tier.value,
                "delta": delta,
                "new_count": stocks.get(resolved_tier),
            })
        return stocks

    def stock_of(self, product_id: int) -> StockLevels:
        product = self._catalog.find_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product.stocks
