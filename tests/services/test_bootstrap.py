"""Tests for system wiring and the startup bootstrap."""

from blindbox_kernel.domain.values import (
    DEFAULT_PROBABILITIES,
    CheckoutLine,
    ProbabilityConfig,
)
from blindbox_services.wiring import bootstrap, build_memory_system, build_sql_system


class TestBootstrap:
    def test_installs_catalog_and_default_config(self, default_catalog):
        system = build_memory_system()

        report = bootstrap(system, default_catalog.products)

        assert report.product_count == 3
        assert report.probabilities == DEFAULT_PROBABILITIES
        assert system.config_store.get_config() == DEFAULT_PROBABILITIES
        assert [l.total_stock for l in system.inventory.list_products()] == [32, 32, 32]

    def test_persisted_config_survives_restart(self, default_catalog):
        persisted = ProbabilityConfig(common=40, rare=40, secret=20)
        system = build_memory_system(config=persisted)

        report = bootstrap(system, default_catalog.products)

        assert report.probabilities == persisted
        assert system.probabilities.get() == persisted

    def test_clears_backpack_by_default(self, product_factory):
        system = build_memory_system([product_factory()])
        system.probabilities.load()
        system.backpack.checkout([CheckoutLine(1, 2)])

        report = bootstrap(system, [product_factory()])

        assert report.backpack_entries_cleared == 2
        assert system.backpack.list_all() == []

    def test_keep_backpack_and_catalog(self, product_factory):
        system = build_memory_system([product_factory()])
        system.probabilities.load()
        system.backpack.checkout([CheckoutLine(1)])
        system.inventory.adjust_stock(1, "common", -5)

        report = bootstrap(system, None, reset_backpack=False)

        assert report.product_count == 0
        assert len(system.backpack.list_all()) == 1
        assert system.inventory.stock_of(1).common == 15

    def test_reseed_restores_stock(self, default_catalog):
        system = build_memory_system()
        bootstrap(system, default_catalog.products)
        system.inventory.adjust_stock(1, "secret", -2)

        bootstrap(system, default_catalog.products)

        assert system.inventory.stock_of(1).secret == 2


class TestSqlWiring:
    def test_sql_system_round_trip(self, sql_session_factory, default_catalog, seeded_rng):
        system = build_sql_system(sql_session_factory, rng=seeded_rng)
        bootstrap(system, default_catalog.products)

        assert system.backpack.checkout([CheckoutLine(2, 2)]) == 2
        entries = system.backpack.list_all()
        tier = system.backpack.open(entries[0].entry_id)

        assert system.inventory.stock_of(2).total == 31
        assert system.backpack.get(entries[0].entry_id).opened_rarity is tier
