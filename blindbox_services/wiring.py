"""
Wiring -- assembles stores, engines and services into one system object.

Responsibility:
    Builds a ``BlindBoxSystem`` on either the in-memory stores or the
    SQLAlchemy stores, and runs the startup bootstrap (install the catalog
    seed, load or default the probability config, optionally clear the
    backpack).

Architecture position:
    Services -- composition root used by blindbox_api and scripts/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from blindbox_engines.allocation import AllocationResolver
from blindbox_engines.draw import DrawEngine
from blindbox_kernel.domain.clock import Clock, SystemClock
from blindbox_kernel.domain.random_source import RandomSource, SystemRandomSource
from blindbox_kernel.domain.values import DEFAULT_PROBABILITIES, ProbabilityConfig, Product
from blindbox_kernel.logging_config import get_logger
from blindbox_kernel.stores.base import BackpackStore, CatalogStore, ConfigStore
from blindbox_kernel.stores.memory import (
    InMemoryBackpackStore,
    InMemoryCatalogStore,
    InMemoryConfigStore,
)
from blindbox_kernel.stores.sql import SqlBackpackStore, SqlCatalogStore, SqlConfigStore
from blindbox_services.backpack import BackpackService
from blindbox_services.inventory import InventoryService
from blindbox_services.probability_config import ProbabilityConfigService

logger = get_logger("services.wiring")


@dataclass(frozen=True)
class BlindBoxSystem:
    """Everything a transport layer needs, already wired together."""

    catalog_store: CatalogStore
    config_store: ConfigStore
    backpack_store: BackpackStore
    probabilities: ProbabilityConfigService
    inventory: InventoryService
    backpack: BackpackService
    draw: DrawEngine
    clock: Clock


@dataclass(frozen=True)
class BootstrapReport:
    product_count: int
    probabilities: ProbabilityConfig
    backpack_entries_cleared: int


def build_system(
    catalog_store: CatalogStore,
    config_store: ConfigStore,
    backpack_store: BackpackStore,
    *,
    rng: RandomSource | None = None,
    clock: Clock | None = None,
    default_probabilities: ProbabilityConfig = DEFAULT_PROBABILITIES,
) -> BlindBoxSystem:
    clock = clock or SystemClock()
    draw = DrawEngine(rng or SystemRandomSource())
    probabilities = ProbabilityConfigService(config_store, default=default_probabilities)
    return BlindBoxSystem(
        catalog_store=catalog_store,
        config_store=config_store,
        backpack_store=backpack_store,
        probabilities=probabilities,
        inventory=InventoryService(catalog_store),
        backpack=BackpackService(
            catalog=catalog_store,
            backpack=backpack_store,
            probabilities=probabilities,
            draw=draw,
            resolver=AllocationResolver(catalog_store),
            clock=clock,
        ),
        draw=draw,
        clock=clock,
    )


def build_memory_system(
    products: Iterable[Product] = (),
    *,
    rng: RandomSource | None = None,
    clock: Clock | None = None,
    config: ProbabilityConfig | None = None,
    default_probabilities: ProbabilityConfig = DEFAULT_PROBABILITIES,
) -> BlindBoxSystem:
    """System on process-local stores. ``config`` pre-populates the config store."""
    return build_system(
        InMemoryCatalogStore(products),
        InMemoryConfigStore(config),
        InMemoryBackpackStore(),
        rng=rng,
        clock=clock,
        default_probabilities=default_probabilities,
    )


def build_sql_system(
    session_factory: sessionmaker[Session],
    *,
    rng: RandomSource | None = None,
    clock: Clock | None = None,
    default_probabilities: ProbabilityConfig = DEFAULT_PROBABILITIES,
) -> BlindBoxSystem:
    """System on the SQLAlchemy stores. Tables must already exist."""
    clock = clock or SystemClock()
    return build_system(
        SqlCatalogStore(session_factory),
        SqlConfigStore(session_factory, clock=clock),
        SqlBackpackStore(session_factory),
        rng=rng,
        clock=clock,
        default_probabilities=default_probabilities,
    )


def bootstrap(
    system: BlindBoxSystem,
    products: Iterable[Product] | None = None,
    *,
    reset_backpack: bool = True,
) -> BootstrapReport:
    """
    Startup sequence.

    1. Replace the catalog with ``products`` (skipped when None).
    2. Load the persisted probability config, persisting the default
       when none exists.
    3. Clear the backpack when ``reset_backpack`` is set.
    """
    product_count = 0
    if products is not None:
        products = list(products)
        system.catalog_store.replace_catalog(products)
        product_count = len(products)
    config = system.probabilities.load()
    cleared = system.backpack_store.clear() if reset_backpack else 0
    logger.info("bootstrap_completed", extra={
        "product_count": product_count,
        "probabilities": config.as_dict(),
        "backpack_entries_cleared": cleared,
    })
    return BootstrapReport(
        product_count=product_count,
        probabilities=config,
        backpack_entries_cleared=cleared,
    )
