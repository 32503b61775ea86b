"""
Module: paytrack_kernel.models.payment
Responsibility: ORM persistence for invoice payments and advance payments.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A Payment belongs to exactly one invoice.  Only APPROVED payments are
      reportable.
    - Payments of an invoice are listed in (payment_date, created_at, id)
      order.  How much was paid before a payment is decided by payment
      dates or by that listing order, depending on the report variant.
    - An AdvancePayment carries its own reporting_month (first day of the
      month it reports to) and is always reported with status ADVANCE.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paytrack_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from paytrack_kernel.models.invoice import Invoice
    from paytrack_kernel.models.master_data import PaymentType, Vendor


class PaymentStatus(str, Enum):
    """Payment approval status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Payment(Base):
    """A single payment made against an invoice."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payment_invoice", "invoice_id"),
        Index("idx_payment_date", "payment_date"),
        Index("idx_payment_status", "status"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("invoices.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    payment_date: Mapped[date] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
    )

    # Null channel is reported in the Unpaid section
    payment_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("payment_types.id"),
        nullable=True,
    )

    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    invoice: Mapped["Invoice"] = relationship(back_populates="payments")

    payment_type: Mapped["PaymentType | None"] = relationship()

    def __repr__(self) -> str:
        return f"<Payment {self.amount} on {self.payment_date} status={self.status}>"


class AdvancePayment(Base):
    """A payment made before (or without) a concrete invoice."""

    __tablename__ = "advance_payments"

    __table_args__ = (
        Index("idx_advance_payment_reporting_month", "reporting_month"),
    )

    vendor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("vendors.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    payment_date: Mapped[date] = mapped_column(nullable=False)

    reporting_month: Mapped[date] = mapped_column(nullable=False)

    payment_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("payment_types.id"),
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    linked_invoice_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("invoices.id"),
        nullable=True,
    )

    # Relationships
    vendor: Mapped["Vendor"] = relationship()

    payment_type: Mapped["PaymentType | None"] = relationship()

    def __repr__(self) -> str:
        return f"<AdvancePayment {self.amount} on {self.payment_date}>"
