"""
Hypothesis-based property tests.

Properties checked here:
- Stock never goes negative, whatever sequence of tiers is rolled
- Successful decrements never exceed the initial stock
- Every resolved unit is accounted for by a decrement or a degrade
- tier_for_draw is monotone in the draw and never picks a zero-weight tier
- Checkout never touches stock; opens consume exactly min(opens, stock)
"""

from collections import Counter

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from blindbox_engines.allocation import AllocationResolver
from blindbox_engines.draw import tier_for_draw
from blindbox_kernel.domain.random_source import SeededRandomSource
from blindbox_kernel.domain.values import CheckoutLine, ProbabilityConfig, Tier
from blindbox_kernel.stores.memory import InMemoryCatalogStore

counts = st.integers(min_value=0, max_value=6)
tiers = st.sampled_from(list(Tier))

RANK = {Tier.SECRET: 0, Tier.RARE: 1, Tier.COMMON: 2}


@st.composite
def probability_configs(draw):
    secret = draw(st.integers(min_value=0, max_value=100))
    rare = draw(st.integers(min_value=0, max_value=100 - secret))
    return ProbabilityConfig(common=100 - secret - rare, rare=rare, secret=secret)


class TestAllocationProperties:
    @given(
        common=counts,
        rare=counts,
        secret=counts,
        rolled=st.lists(tiers, min_size=0, max_size=25),
    )
    @settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_stock_conserved(self, product_factory, common, rare, secret, rolled):
        initial = {"common": common, "rare": rare, "secret": secret}
        catalog = InMemoryCatalogStore([product_factory(stocks=initial)])
        resolver = AllocationResolver(catalog)

        outcomes = [resolver.resolve(1, tier) for tier in rolled]

        stocks = catalog.find_product(1).stocks
        assert all(stocks.get(t) >= 0 for t in Tier)

        decremented = Counter(o.resolved for o in outcomes if o.decremented)
        for tier in Tier:
            assert decremented[tier] == initial[tier.value] - stocks.get(tier)
            assert decremented[tier] <= initial[tier.value]

        total = common + rare + secret
        assert sum(decremented.values()) == min(len(rolled), total)
        degraded = [o for o in outcomes if o.degraded]
        assert len(degraded) == max(0, len(rolled) - total)
        assert all(o.resolved is Tier.COMMON for o in degraded)

    @given(tier=tiers, common=counts, rare=counts, secret=counts)
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_in_stock_tier_is_granted(self, product_factory, tier, common, rare, secret):
        initial = {"common": common, "rare": rare, "secret": secret}
        catalog = InMemoryCatalogStore([product_factory(stocks=initial)])

        outcome = AllocationResolver(catalog).resolve(1, tier)

        if initial[tier.value] > 0:
            assert outcome.resolved is tier
            assert not outcome.fell_back


class TestDrawProperties:
    @given(
        config=probability_configs(),
        low=st.floats(min_value=0, max_value=100, exclude_max=True),
        high=st.floats(min_value=0, max_value=100, exclude_max=True),
    )
    def test_tier_monotone_in_draw(self, config, low, high):
        low, high = sorted((low, high))
        assert RANK[tier_for_draw(low, config)] <= RANK[tier_for_draw(high, config)]

    @given(
        config=probability_configs(),
        draw=st.floats(min_value=0, max_value=100, exclude_min=True, exclude_max=True),
    )
    def test_zero_weight_tier_never_drawn(self, config, draw):
        assert config.weight(tier_for_draw(draw, config)) > 0


class TestBackpackProperties:
    @given(
        quantity=st.integers(min_value=1, max_value=12),
        opens=st.integers(min_value=0, max_value=12),
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_opens_consume_min_of_opens_and_stock(
        self, memory_system_factory, product_factory, quantity, opens, seed
    ):
        product = product_factory(stocks={"common": 3, "rare": 2, "secret": 1})
        system = memory_system_factory(products=[product], rng=SeededRandomSource(seed))

        system.backpack.checkout([CheckoutLine(1, quantity)])
        assert system.inventory.stock_of(1).total == 6

        entries = system.backpack.list_all()[:opens]
        for entry in entries:
            system.backpack.open(entry.entry_id)

        assert system.inventory.stock_of(1).total == 6 - min(len(entries), 6)


@pytest.mark.parametrize("config", [
    ProbabilityConfig(common=100, rare=0, secret=0),
    ProbabilityConfig(common=0, rare=100, secret=0),
    ProbabilityConfig(common=0, rare=0, secret=100),
])
@given(draw=st.floats(min_value=0, max_value=100, exclude_min=True, exclude_max=True))
def test_single_tier_configs_always_pick_that_tier(config, draw):
    (only,) = [t for t in Tier if config.weight(t) == 100]
    assert tier_for_draw(draw, config) is only
