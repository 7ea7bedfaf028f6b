"""
Module: blindbox_kernel.db.base
Responsibility: Declarative base for the ORM models and the portable UUID
    column type used for backpack entry ids.
Architecture position: Kernel > DB.  Imported by every file in models/;
    imports nothing from the rest of the kernel.

Column conventions (type_annotation_map):
    - ``Decimal`` prices are Numeric(12, 2).
    - ``datetime`` columns are timezone-aware.
    - ``UUID`` columns are String(36), identical on SQLite and PostgreSQL.

Catalog rows keep their natural keys (integer product ids, item codes), so
Base declares no primary key of its own.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID <-> 36-character string."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, PyUUID) else PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        return PyUUID(value) if value is not None else None


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(12, 2),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }
