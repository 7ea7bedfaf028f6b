"""
Module: blindbox_kernel.models.catalog
Responsibility: ORM persistence for the product catalog: products, their
    collectible items, and the per-tier stock ledger rows.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from stores/, services/, or outer layers.

Invariants enforced:
    S1 -- Stock counts are non-negative (CHECK constraint).  The draw path
          only ever decrements through ``quantity > 0`` conditional updates.
    S2 -- One stock row per (product, tier) (composite primary key).
    S3 -- Item ids are unique within a product (composite primary key).
    S4 -- Tier columns only hold common / rare / secret (CHECK constraint).

Failure modes:
    - IntegrityError on a negative stock count or unknown tier name.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blindbox_kernel.db.base import Base

_TIER_CHECK = "tier IN ('common', 'rare', 'secret')"


class ProductModel(Base):
    """
    A blind box product.

    Contract:
        The integer id is the catalog's natural key and is assigned by the
        seed, not by the database.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    price: Mapped[Decimal] = mapped_column(nullable=False)

    image: Mapped[str | None] = mapped_column(String(300), nullable=True)

    items: Mapped[list[CollectibleItemModel]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="CollectibleItemModel.position",
        lazy="selectin",
    )

    stock_levels: Mapped[list[StockLevelModel]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name}>"


class CollectibleItemModel(Base):
    """One collectible design of a product. Immutable after seed."""

    __tablename__ = "collectible_items"

    __table_args__ = (
        CheckConstraint(_TIER_CHECK, name="ck_item_tier"),
    )

    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )

    item_id: Mapped[str] = mapped_column(String(50), primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    tier: Mapped[str] = mapped_column(String(10), nullable=False)

    # Catalog order within the product
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped[ProductModel] = relationship(back_populates="items")


class StockLevelModel(Base):
    """
    Remaining stock of one tier of one product.

    Mutated only by single-statement conditional updates issued from
    ``SqlCatalogStore``; never read-modify-written in Python.
    """

    __tablename__ = "stock_levels"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_stock_non_negative"),
        CheckConstraint(_TIER_CHECK, name="ck_stock_tier"),
    )

    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )

    tier: Mapped[str] = mapped_column(String(10), primary_key=True)

    # INVARIANT S1: never negative
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped[ProductModel] = relationship(back_populates="stock_levels")
