"""
Module: blindbox_kernel.models.settings
Responsibility: ORM persistence for process-wide settings, currently the
    tier probability weights stored under the ``probabilities`` key.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    P1 -- Stored weights sum to 100 (CHECK constraint), so a half-written
          config can never be loaded back.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from blindbox_kernel.db.base import Base


class ProbabilitySettingModel(Base):
    """Tier weights, last-writer-wins."""

    __tablename__ = "probability_settings"

    __table_args__ = (
        CheckConstraint("common + rare + secret = 100", name="ck_probability_total"),
    )

    key: Mapped[str] = mapped_column(String(50), primary_key=True)

    common: Mapped[int] = mapped_column(Integer, nullable=False)

    rare: Mapped[int] = mapped_column(Integer, nullable=False)

    secret: Mapped[int] = mapped_column(Integer, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(nullable=False)
