"""Tests for InventoryService."""

import pytest

from blindbox_kernel.domain.values import StockLevels, Tier
from blindbox_kernel.exceptions import (
    ProductNotFoundError,
    UnknownTierError,
    ValidationError,
)
from blindbox_kernel.stores.memory import InMemoryCatalogStore
from blindbox_services.inventory import InventoryService


@pytest.fixture
def inventory(product_factory):
    catalog = InMemoryCatalogStore([
        product_factory(1, stocks={"common": 20, "rare": 10, "secret": 2}),
        product_factory(2, stocks={"common": 1, "rare": 0, "secret": 0}),
    ])
    return InventoryService(catalog)


class TestListProducts:
    def test_listing_carries_total_stock(self, inventory):
        listings = inventory.list_products()
        assert [l.product.product_id for l in listings] == [1, 2]
        assert [l.total_stock for l in listings] == [32, 1]

    def test_empty_catalog(self):
        assert InventoryService(InMemoryCatalogStore()).list_products() == []


class TestAdjustStock:
    def test_positive_delta(self, inventory):
        stocks = inventory.adjust_stock(1, "secret", 3)
        assert stocks.secret == 5
        assert inventory.stock_of(1) == StockLevels(common=20, rare=10, secret=5)

    def test_negative_delta(self, inventory):
        assert inventory.adjust_stock(1, Tier.RARE, -4).rare == 6

    def test_clamps_at_zero(self, inventory):
        assert inventory.adjust_stock(2, "common", -5).common == 0
        assert inventory.stock_of(2).total == 0

    @pytest.mark.parametrize("tier", ["legendary", "Rare", "SECRET", " common"])
    def test_unknown_tier(self, inventory, tier):
        with pytest.raises(UnknownTierError, match="Invalid rarity"):
            inventory.adjust_stock(1, tier, 1)
        assert inventory.stock_of(1) == StockLevels(common=20, rare=10, secret=2)

    def test_unknown_tier_checked_before_product(self, inventory):
        with pytest.raises(UnknownTierError):
            inventory.adjust_stock(999, "legendary", 1)

    def test_unknown_product(self, inventory):
        with pytest.raises(ProductNotFoundError, match="Product not found"):
            inventory.adjust_stock(999, "common", 1)

    @pytest.mark.parametrize("bad", [1.5, "3", None, True])
    def test_non_integer_amount(self, inventory, bad):
        with pytest.raises(ValidationError):
            inventory.adjust_stock(1, "common", bad)

    def test_adjustment_logged_with_product_context(self, inventory, captured_logs):
        inventory.adjust_stock(1, "rare", 2)
        record = next(r for r in captured_logs() if r["message"] == "stock_adjusted")
        assert record["product_id"] == "1"
        assert record["new_count"] == 12


class TestStockOf:
    def test_unknown_product(self, inventory):
        with pytest.raises(ProductNotFoundError):
            inventory.stock_of(42)
