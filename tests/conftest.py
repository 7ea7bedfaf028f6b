"""
Pytest fixtures for the blind box test suite.

Provides:
- Deterministic clock and scripted / seeded random sources
- Product factories and the bundled default catalog
- Systems wired on in-memory stores
- SQLite-backed session factories for the SQL stores
- Captured structured logs
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import sessionmaker

from blindbox_config import load_catalog
from blindbox_kernel.db.engine import build_engine, create_tables
from blindbox_kernel.domain.clock import DeterministicClock
from blindbox_kernel.domain.random_source import ScriptedRandomSource, SeededRandomSource
from blindbox_kernel.domain.values import (
    CollectibleItem,
    ProbabilityConfig,
    Product,
    StockLevels,
    Tier,
)
from blindbox_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from blindbox_services.wiring import build_memory_system


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture blindbox logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, system):
            system.backpack.checkout([...])
            logs = captured_logs()
            assert any(r["message"] == "checkout_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("blindbox")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def seeded_rng():
    return SeededRandomSource(20240101)


def make_product(
    product_id: int = 1,
    stocks: dict | None = None,
    name: str | None = None,
    items: tuple[CollectibleItem, ...] | None = None,
) -> Product:
    """A product with one secret, two rare and two common items."""
    prefix = f"P{product_id}"
    if items is None:
        items = (
            CollectibleItem(f"{prefix}-001", "Secret One", Tier.SECRET),
            CollectibleItem(f"{prefix}-002", "Rare One", Tier.RARE),
            CollectibleItem(f"{prefix}-003", "Rare Two", Tier.RARE),
            CollectibleItem(f"{prefix}-004", "Common One", Tier.COMMON),
            CollectibleItem(f"{prefix}-005", "Common Two", Tier.COMMON),
        )
    return Product(
        product_id=product_id,
        name=name or f"Test Series {product_id}",
        price=Decimal("999.00"),
        image=f"img/product{product_id}.jpg",
        items=items,
        stocks=StockLevels.from_mapping(
            stocks if stocks is not None else {"common": 20, "rare": 10, "secret": 2}
        ),
    )


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture(scope="session")
def default_catalog():
    return load_catalog()


# =============================================================================
# System fixtures
# =============================================================================


@pytest.fixture
def memory_system_factory(clock):
    """
    Build a system on in-memory stores.

    Args (all optional):
        products: catalog to install (default: one product, id 1)
        rng: random source (default: seeded)
        config: persisted probability config to start from
    """

    def _build(products=None, rng=None, config: ProbabilityConfig | None = None):
        system = build_memory_system(
            products if products is not None else [make_product()],
            rng=rng or SeededRandomSource(7),
            clock=clock,
            config=config,
        )
        system.probabilities.load()
        return system

    return _build


@pytest.fixture
def scripted():
    """Shortcut for percentage-scaled scripted random sources."""
    return ScriptedRandomSource.from_percent


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def sqlite_engine():
    engine = build_engine("sqlite:///:memory:")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_session_factory(sqlite_engine):
    return sessionmaker(bind=sqlite_engine, expire_on_commit=False)
