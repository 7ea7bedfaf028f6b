"""
Tests for AllocationResolver.

Verifies:
- Rolled tier granted when in stock (one unit decremented)
- Fallback walks secret -> rare -> common
- Exhausted stock degrades to common without decrementing or raising
"""

import pytest

from blindbox_engines.allocation import AllocationOutcome, AllocationResolver
from blindbox_kernel.domain.values import StockLevels, Tier
from blindbox_kernel.exceptions import ProductNotFoundError
from blindbox_kernel.stores.memory import InMemoryCatalogStore


def _resolver(product_factory, stocks):
    catalog = InMemoryCatalogStore([product_factory(stocks=stocks)])
    return AllocationResolver(catalog), catalog


class TestGrantRolledTier:
    def test_in_stock_tier_is_granted(self, product_factory):
        resolver, catalog = _resolver(product_factory, {"common": 5, "rare": 5, "secret": 5})
        outcome = resolver.resolve(1, Tier.RARE)
        assert outcome == AllocationOutcome(Tier.RARE, Tier.RARE, decremented=True)
        assert catalog.find_product(1).stocks == StockLevels(common=5, rare=4, secret=5)
        assert not outcome.fell_back


class TestFallback:
    @pytest.mark.parametrize("stocks,requested,expected", [
        ({"common": 3, "rare": 2, "secret": 1}, Tier.COMMON, Tier.COMMON),
        ({"common": 0, "rare": 2, "secret": 1}, Tier.COMMON, Tier.SECRET),
        ({"common": 0, "rare": 2, "secret": 0}, Tier.COMMON, Tier.RARE),
        ({"common": 4, "rare": 0, "secret": 0}, Tier.RARE, Tier.COMMON),
        ({"common": 4, "rare": 1, "secret": 0}, Tier.SECRET, Tier.RARE),
        ({"common": 4, "rare": 0, "secret": 0}, Tier.SECRET, Tier.COMMON),
    ])
    def test_rarest_available_tier_wins(self, product_factory, stocks, requested, expected):
        resolver, catalog = _resolver(product_factory, stocks)
        before = catalog.find_product(1).stocks

        outcome = resolver.resolve(1, requested)

        assert outcome.resolved is expected
        assert outcome.decremented
        assert not outcome.degraded
        after = catalog.find_product(1).stocks
        assert after.get(expected) == before.get(expected) - 1
        assert after.total == before.total - 1

    def test_fallback_flagged(self, product_factory):
        resolver, _ = _resolver(product_factory, {"common": 1, "rare": 0, "secret": 0})
        assert resolver.resolve(1, Tier.SECRET).fell_back


class TestDegrade:
    @pytest.mark.parametrize("requested", list(Tier))
    def test_all_zero_resolves_common_without_decrement(self, product_factory, requested):
        resolver, catalog = _resolver(product_factory, {"common": 0, "rare": 0, "secret": 0})

        outcome = resolver.resolve(1, requested)

        assert outcome.resolved is Tier.COMMON
        assert outcome.degraded
        assert not outcome.decremented
        assert catalog.find_product(1).stocks.total == 0

    def test_degrade_is_logged(self, product_factory, captured_logs):
        resolver, _ = _resolver(product_factory, {"common": 0, "rare": 0, "secret": 0})
        resolver.resolve(1, Tier.RARE)
        degraded = [r for r in captured_logs() if r["message"] == "allocation_degraded"]
        assert len(degraded) == 1
        assert degraded[0]["level"] == "WARNING"
        assert degraded[0]["requested_tier"] == "rare"


class TestUnknownProduct:
    def test_unknown_product_propagates(self, product_factory):
        resolver, _ = _resolver(product_factory, {"common": 1})
        with pytest.raises(ProductNotFoundError):
            resolver.resolve(404, Tier.COMMON)
