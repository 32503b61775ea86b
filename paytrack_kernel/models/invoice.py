"""
Module: paytrack_kernel.models.invoice
Responsibility: ORM persistence for invoices as read by the monthly report
    engine.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - invoice_amount is the gross amount, stored as Decimal.
    - reporting_month, when set, is always the first day of a month.  It is
      the one column the report engine writes (manual period reassignment).

Audit relevance:
    An invoice is reportable only when it is not soft-deleted, not archived,
    and its status is neither PENDING_APPROVAL nor REJECTED.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paytrack_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from paytrack_kernel.models.master_data import Currency, InvoiceProfile, Vendor
    from paytrack_kernel.models.payment import Payment


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status as maintained by the invoicing subsystem."""

    PENDING_APPROVAL = "pending_approval"
    ON_HOLD = "on_hold"
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    REJECTED = "rejected"


NON_REPORTABLE_STATUSES: tuple[InvoiceStatus, ...] = (
    InvoiceStatus.PENDING_APPROVAL,
    InvoiceStatus.REJECTED,
)


class Invoice(Base):
    """
    A vendor invoice.

    Guarantees:
        - payments are loaded in payment-date order; selectors apply the
          full (date, creation time, id) ordering.

    Non-goals:
        - Does NOT compute tax or settlement; see ``paytrack_engines``.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        Index("idx_invoice_date", "invoice_date"),
        Index("idx_invoice_reporting_month", "reporting_month"),
        Index("idx_invoice_received_date", "received_date"),
        Index("idx_invoice_status", "status"),
    )

    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    invoice_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    vendor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("vendors.id"),
        nullable=False,
    )

    currency_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=True,
    )

    invoice_profile_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("invoice_profiles.id"),
        nullable=True,
    )

    # Gross amount
    invoice_amount: Mapped[Decimal] = mapped_column(nullable=False)

    invoice_date: Mapped[date | None] = mapped_column(nullable=True)

    # Manual period assignment; first day of the assigned month
    reporting_month: Mapped[date | None] = mapped_column(nullable=True)

    received_date: Mapped[date | None] = mapped_column(nullable=True)

    # Withholding tax
    tax_applicable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    tax_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)

    tax_rounded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Payment recorded before the invoice document existed
    is_pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=InvoiceStatus.UNPAID.value,
    )

    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    vendor: Mapped["Vendor"] = relationship()

    currency: Mapped["Currency | None"] = relationship()

    invoice_profile: Mapped["InvoiceProfile | None"] = relationship()

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="invoice",
        order_by="Payment.payment_date",
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} {self.invoice_amount} status={self.status}>"

    @property
    def is_reportable(self) -> bool:
        """Not deleted, not archived, and in a reportable status."""
        return (
            self.deleted_at is None
            and not self.is_archived
            and self.status not in NON_REPORTABLE_STATUSES
        )
