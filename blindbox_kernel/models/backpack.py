"""
Module: blindbox_kernel.models.backpack
Responsibility: ORM persistence for backpack entries -- one row per
    purchased unit, carrying snapshots of the product and item names.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    B1 -- state is 'unopened' or 'opened' (CHECK constraint).
    B2 -- The unopened -> opened transition is a conditional UPDATE on
          ``state = 'unopened'`` issued by ``SqlBackpackStore``; rows are
          never deleted by the draw path.
    B3 -- ``rarity`` holds the checkout roll and is never rewritten;
          ``opened_rarity`` holds the tier resolved at open time.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from blindbox_kernel.db.base import Base, UUIDString


class BackpackEntryModel(Base):
    """A single blind box allocated at checkout."""

    __tablename__ = "backpack_entries"

    __table_args__ = (
        CheckConstraint("state IN ('unopened', 'opened')", name="ck_backpack_state"),
        Index("idx_backpack_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)

    # No foreign key: entries keep their snapshots when the catalog is reseeded
    product_id: Mapped[int] = mapped_column(Integer, nullable=False)

    product_name: Mapped[str] = mapped_column(String(200), nullable=False)

    item_id: Mapped[str] = mapped_column(String(50), nullable=False)

    item_name: Mapped[str] = mapped_column(String(200), nullable=False)

    rarity: Mapped[str] = mapped_column(String(10), nullable=False)

    state: Mapped[str] = mapped_column(String(10), nullable=False, default="unopened")

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    opened_at: Mapped[datetime | None] = mapped_column(nullable=True)

    opened_rarity: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<BackpackEntry {self.id} state={self.state}>"
