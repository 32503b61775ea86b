"""
Module: paytrack_kernel.db.base
Responsibility: Declarative bases shared by every paytrack ORM model.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    MUST NOT import from models/, services/, selectors/, domain/ or outer
    layers.

Two kinds of table live in the store:

* invoices, payments, advances and their master data are written by the
  invoicing application and only read here.  They derive from ``Base``.
* report periods are written by paytrack itself and carry who-and-when
  audit columns.  They derive from ``TrackedBase``.

Invariants enforced:
    - Primary keys are uuid4 values persisted as 36-character strings so the
      same schema runs on PostgreSQL and SQLite.
    - ``Decimal`` annotations map to ``Numeric(38, 9)``; amounts are never
      floats at rest.
    - Every ``TrackedBase`` row names its creator.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID persisted as ``String(36)``.  Binds accept ``UUID`` or its text form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(str(value)))

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Rows paytrack writes.

    ``created_by_id`` is mandatory.  ``updated_by_id`` stays NULL until the
    first change after creation.  Both timestamps come from the database
    clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
