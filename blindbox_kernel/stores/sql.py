"""
SQL stores -- SQLAlchemy implementations of the store contracts.

Responsibility:
    Persist the catalog, stock ledger, probability weights and backpack
    entries in PostgreSQL (production) or SQLite (tests, local runs).

Architecture position:
    Kernel > Stores.  Implements ``stores/base.py`` on top of the ORM
    models in ``models/``.  Every public method is its own short
    transaction (``session_scope``); there are no cross-call transactions.

Invariants enforced:
    S1 -- Stock decrement is one statement:
          ``UPDATE stock_levels SET quantity = quantity - 1
            WHERE product_id = :p AND tier = :t AND quantity > 0``.
          The affected row count tells the caller whether it got a unit.
          The read-then-write anti-pattern is never used.
    S5 -- Stock adjustment clamps in SQL (``CASE WHEN quantity + :d < 0``).
    B2 -- Entry transition is one statement guarded by
          ``WHERE state = :expected``; affected row count 0 means a
          concurrent caller won (or the entry does not exist).

Failure modes:
    - ProductNotFoundError from stock mutations on unknown products.
    - StoreUnavailableError wrapping any ``SQLAlchemyError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from blindbox_kernel.db.engine import session_scope
from blindbox_kernel.domain.clock import Clock, SystemClock
from blindbox_kernel.domain.values import (
    BackpackEntry,
    BackpackEntryDraft,
    CollectibleItem,
    EntryState,
    ProbabilityConfig,
    Product,
    StockLevels,
    Tier,
)
from blindbox_kernel.exceptions import ProductNotFoundError, StoreUnavailableError
from blindbox_kernel.logging_config import get_logger
from blindbox_kernel.models.backpack import BackpackEntryModel
from blindbox_kernel.models.catalog import CollectibleItemModel, ProductModel, StockLevelModel
from blindbox_kernel.models.settings import ProbabilitySettingModel
from blindbox_kernel.stores.base import (
    BackpackStore,
    CatalogStore,
    ConfigStore,
    check_entry_changes,
)

logger = get_logger("stores.sql")


@contextmanager
def _store_scope(
    factory: sessionmaker[Session], operation: str
) -> Iterator[Session]:
    """session_scope that reports backend failures as StoreUnavailableError."""
    try:
        with session_scope(factory) as session:
            yield session
    except SQLAlchemyError as exc:
        logger.error(
            "store_call_failed",
            extra={"operation": operation},
            exc_info=True,
        )
        raise StoreUnavailableError(operation, str(exc)) from exc


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; all stored times are UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _product_from_model(model: ProductModel) -> Product:
    counts = {row.tier: row.quantity for row in model.stock_levels}
    return Product(
        product_id=model.id,
        name=model.name,
        price=model.price,
        image=model.image,
        items=tuple(
            CollectibleItem(item_id=row.item_id, name=row.name, tier=Tier(row.tier))
            for row in model.items
        ),
        stocks=StockLevels.from_mapping(counts),
    )


def _product_to_model(product: Product) -> ProductModel:
    return ProductModel(
        id=product.product_id,
        name=product.name,
        price=product.price,
        image=product.image,
        items=[
            CollectibleItemModel(
                item_id=item.item_id,
                name=item.name,
                tier=item.tier.value,
                position=position,
            )
            for position, item in enumerate(product.items)
        ],
        stock_levels=[
            StockLevelModel(tier=tier.value, quantity=product.stocks.get(tier))
            for tier in Tier
        ],
    )


def _entry_from_model(model: BackpackEntryModel) -> BackpackEntry:
    return BackpackEntry(
        entry_id=model.id,
        product_id=model.product_id,
        product_name=model.product_name,
        item_id=model.item_id,
        item_name=model.item_name,
        rarity=Tier(model.rarity),
        state=EntryState(model.state),
        created_at=_as_utc(model.created_at),
        opened_at=_as_utc(model.opened_at),
        opened_rarity=Tier(model.opened_rarity) if model.opened_rarity else None,
    )


def _column_value(value: Any) -> Any:
    if isinstance(value, (Tier, EntryState)):
        return value.value
    return value


class SqlCatalogStore(CatalogStore):
    """Catalog and stock ledger tables."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._factory = session_factory

    def find_product(self, product_id: int) -> Product | None:
        with _store_scope(self._factory, "find_product") as session:
            model = session.get(ProductModel, product_id)
            return _product_from_model(model) if model is not None else None

    def list_products(self) -> list[Product]:
        with _store_scope(self._factory, "list_products") as session:
            models = session.execute(
                select(ProductModel).order_by(ProductModel.id)
            ).scalars().all()
            return [_product_from_model(m) for m in models]

    def _ensure_stock_row(self, session: Session, product_id: int, tier: Tier) -> None:
        if session.get(ProductModel, product_id) is None:
            raise ProductNotFoundError(product_id)
        if session.get(StockLevelModel, (product_id, tier.value)) is None:
            session.add(StockLevelModel(product_id=product_id, tier=tier.value, quantity=0))
            session.flush()

    def update_stock(self, product_id: int, stocks: StockLevels) -> None:
        with _store_scope(self._factory, "update_stock") as session:
            for tier in Tier:
                self._ensure_stock_row(session, product_id, tier)
                session.execute(
                    update(StockLevelModel)
                    .where(
                        StockLevelModel.product_id == product_id,
                        StockLevelModel.tier == tier.value,
                    )
                    .values(quantity=stocks.get(tier))
                    .execution_options(synchronize_session=False)
                )

    def adjust_stock(self, product_id: int, tier: Tier, delta: int) -> StockLevels:
        with _store_scope(self._factory, "adjust_stock") as session:
            self._ensure_stock_row(session, product_id, tier)
            adjusted = StockLevelModel.quantity + delta
            session.execute(
                update(StockLevelModel)
                .where(
                    StockLevelModel.product_id == product_id,
                    StockLevelModel.tier == tier.value,
                )
                .values(quantity=case((adjusted < 0, 0), else_=adjusted))
                .execution_options(synchronize_session=False)
            )
            rows = session.execute(
                select(StockLevelModel.tier, StockLevelModel.quantity).where(
                    StockLevelModel.product_id == product_id
                )
            ).all()
            return StockLevels.from_mapping({t: q for t, q in rows})

    def decrement_if_positive(self, product_id: int, tier: Tier) -> bool:
        with _store_scope(self._factory, "decrement_if_positive") as session:
            # INVARIANT S1: check and decrement in one conditional statement
            result = session.execute(
                update(StockLevelModel)
                .where(
                    StockLevelModel.product_id == product_id,
                    StockLevelModel.tier == tier.value,
                    StockLevelModel.quantity > 0,
                )
                .values(quantity=StockLevelModel.quantity - 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return True
            if session.get(ProductModel, product_id) is None:
                raise ProductNotFoundError(product_id)
            return False

    def replace_catalog(self, products: Iterable[Product]) -> None:
        products = list(products)
        with _store_scope(self._factory, "replace_catalog") as session:
            session.execute(delete(StockLevelModel))
            session.execute(delete(CollectibleItemModel))
            session.execute(delete(ProductModel))
            session.add_all([_product_to_model(p) for p in products])
        logger.info("catalog_replaced", extra={"product_count": len(products)})


class SqlConfigStore(ConfigStore):
    """Probability weights stored under a single settings key."""

    KEY = "probabilities"

    def __init__(self, session_factory: sessionmaker[Session], clock: Clock | None = None):
        self._factory = session_factory
        self._clock = clock or SystemClock()

    def get_config(self) -> ProbabilityConfig | None:
        with _store_scope(self._factory, "get_config") as session:
            row = session.get(ProbabilitySettingModel, self.KEY)
            if row is None:
                return None
            return ProbabilityConfig(common=row.common, rare=row.rare, secret=row.secret)

    def set_config(self, config: ProbabilityConfig) -> None:
        with _store_scope(self._factory, "set_config") as session:
            row = session.get(ProbabilitySettingModel, self.KEY)
            if row is None:
                row = ProbabilitySettingModel(key=self.KEY)
                session.add(row)
            row.common = config.common
            row.rare = config.rare
            row.secret = config.secret
            row.updated_at = self._clock.now()


class SqlBackpackStore(BackpackStore):
    """Backpack entries table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._factory = session_factory

    def insert_many(self, drafts: Sequence[BackpackEntryDraft]) -> list[BackpackEntry]:
        created = [BackpackEntry.from_draft(uuid4(), draft) for draft in drafts]
        if not created:
            return created
        with _store_scope(self._factory, "insert_many") as session:
            session.add_all(
                [
                    BackpackEntryModel(
                        id=entry.entry_id,
                        product_id=entry.product_id,
                        product_name=entry.product_name,
                        item_id=entry.item_id,
                        item_name=entry.item_name,
                        rarity=entry.rarity.value,
                        state=entry.state.value,
                        created_at=entry.created_at,
                    )
                    for entry in created
                ]
            )
        return created

    def find_all(self) -> list[BackpackEntry]:
        with _store_scope(self._factory, "find_all") as session:
            models = session.execute(
                select(BackpackEntryModel).order_by(
                    BackpackEntryModel.created_at, BackpackEntryModel.id
                )
            ).scalars().all()
            return [_entry_from_model(m) for m in models]

    def find_by_id(self, entry_id: UUID) -> BackpackEntry | None:
        with _store_scope(self._factory, "find_by_id") as session:
            model = session.get(BackpackEntryModel, entry_id)
            return _entry_from_model(model) if model is not None else None

    def conditional_update(
        self,
        entry_id: UUID,
        expected_state: EntryState,
        changes: Mapping[str, Any],
    ) -> bool:
        check_entry_changes(changes)
        with _store_scope(self._factory, "conditional_update") as session:
            # INVARIANT B2: transition only from the expected state
            result = session.execute(
                update(BackpackEntryModel)
                .where(
                    BackpackEntryModel.id == entry_id,
                    BackpackEntryModel.state == expected_state.value,
                )
                .values({k: _column_value(v) for k, v in changes.items()})
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def clear(self) -> int:
        with _store_scope(self._factory, "clear") as session:
            result = session.execute(
                delete(BackpackEntryModel).execution_options(synchronize_session=False)
            )
            return result.rowcount
