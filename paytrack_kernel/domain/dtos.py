"""
DTOs -- Pure domain data transfer objects for report assembly.

Responsibility:
    Defines the immutable data structures that carry invoice, payment,
    channel and advance-payment data from the selectors into the pure report
    assembler.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  from_model() class methods exist as boundary
    converters but are only invoked from the selector layer (never from
    domain logic).

Invariants enforced:
    - Monetary amounts are Decimal, normalized to two places at the
      boundary so that values read back from any dialect compare exactly.
    - An InvoiceInfo carries the invoice's full APPROVED payment history;
      listing order is (payment_date, created_at, id).
    - ``paid_before`` depends on payment dates only, never on insertion
      time or ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable
from uuid import UUID

if TYPE_CHECKING:
    from paytrack_kernel.models.invoice import Invoice
    from paytrack_kernel.models.master_data import PaymentType
    from paytrack_kernel.models.payment import AdvancePayment, Payment

_CENTS = Decimal("0.01")
_PERCENT_PLACES = Decimal("0.0001")
_ZERO = Decimal("0")

NON_REPORTABLE_INVOICE_STATUSES = frozenset({"pending_approval", "rejected"})


def money(value: Decimal | int | str) -> Decimal:
    """Normalize a monetary amount to two decimal places."""
    return Decimal(value).quantize(_CENTS)


def _enum_value(value: object) -> str:
    return getattr(value, "value", value)


@dataclass(frozen=True)
class ChannelInfo:
    """An active payment channel."""

    id: UUID
    name: str

    @classmethod
    def from_model(cls, model: PaymentType) -> ChannelInfo:
        return cls(id=model.id, name=model.name)


@dataclass(frozen=True)
class PaymentInfo:
    """An approved payment."""

    id: UUID
    amount: Decimal
    payment_date: date
    payment_type_id: UUID | None = None
    payment_reference: str | None = None
    created_at: datetime | None = None

    @property
    def sort_key(self) -> tuple:
        created = self.created_at.timestamp() if self.created_at is not None else 0.0
        return (self.payment_date, created, str(self.id))

    @classmethod
    def from_model(cls, model: Payment) -> PaymentInfo:
        return cls(
            id=model.id,
            amount=money(model.amount),
            payment_date=model.payment_date,
            payment_type_id=model.payment_type_id,
            payment_reference=model.payment_reference,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class InvoiceInfo:
    """An invoice with its full approved payment history."""

    id: UUID
    vendor_name: str
    invoice_amount: Decimal
    invoice_number: str | None = None
    invoice_name: str | None = None
    description: str | None = None
    notes: str | None = None
    is_recurring: bool = False
    profile_name: str | None = None
    currency_code: str | None = None
    invoice_date: date | None = None
    reporting_month: date | None = None
    received_date: date | None = None
    tax_applicable: bool = False
    tax_percentage: Decimal | None = None
    tax_rounded: bool = False
    is_pending: bool = False
    status: str = "unpaid"
    is_archived: bool = False
    is_deleted: bool = False
    payments: tuple[PaymentInfo, ...] = ()

    @property
    def is_reportable(self) -> bool:
        """Not deleted, not archived, not pending approval or rejected."""
        return (
            not self.is_deleted
            and not self.is_archived
            and self.status not in NON_REPORTABLE_INVOICE_STATUSES
        )

    @property
    def ordered_payments(self) -> tuple[PaymentInfo, ...]:
        return tuple(sorted(self.payments, key=lambda p: p.sort_key))

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), _ZERO)

    def paid_before(self, payment: PaymentInfo) -> Decimal:
        """Sum of approved payments dated strictly before ``payment``."""
        return sum(
            (p.amount for p in self.payments if p.payment_date < payment.payment_date),
            _ZERO,
        )

    def running_paid_before(self) -> dict[UUID, Decimal]:
        """Payment id -> running total of the payments listed ahead of it."""
        totals: dict[UUID, Decimal] = {}
        running = _ZERO
        for payment in self.ordered_payments:
            totals[payment.id] = running
            running += payment.amount
        return totals

    @classmethod
    def from_model(
        cls,
        model: Invoice,
        approved_payments: Iterable[Payment],
    ) -> InvoiceInfo:
        """
        Convert an ORM invoice.

        ``approved_payments`` is the full approved history; the relationship
        collection is not consulted so callers control what was loaded.
        """
        payments = tuple(PaymentInfo.from_model(p) for p in approved_payments)
        return cls(
            id=model.id,
            vendor_name=model.vendor.name,
            invoice_amount=money(model.invoice_amount),
            invoice_number=model.invoice_number,
            invoice_name=model.invoice_name,
            description=model.description,
            notes=model.notes,
            is_recurring=model.is_recurring,
            profile_name=model.invoice_profile.name if model.invoice_profile else None,
            currency_code=model.currency.code if model.currency else None,
            invoice_date=model.invoice_date,
            reporting_month=model.reporting_month,
            received_date=model.received_date,
            tax_applicable=model.tax_applicable,
            tax_percentage=(
                Decimal(model.tax_percentage).quantize(_PERCENT_PLACES)
                if model.tax_percentage is not None
                else None
            ),
            tax_rounded=model.tax_rounded,
            is_pending=model.is_pending,
            status=_enum_value(model.status),
            is_archived=model.is_archived,
            is_deleted=model.deleted_at is not None,
            payments=tuple(sorted(payments, key=lambda p: p.sort_key)),
        )


@dataclass(frozen=True)
class OrphanPayment:
    """A payment made in the month for an invoice dated in another month."""

    payment: PaymentInfo
    invoice: InvoiceInfo


@dataclass(frozen=True)
class AdvancePaymentInfo:
    """A payment recorded ahead of (or without) an invoice."""

    id: UUID
    vendor_name: str
    amount: Decimal
    payment_date: date
    reporting_month: date
    payment_type_id: UUID | None = None
    description: str | None = None
    payment_reference: str | None = None
    linked_invoice_id: UUID | None = None

    @classmethod
    def from_model(cls, model: AdvancePayment) -> AdvancePaymentInfo:
        return cls(
            id=model.id,
            vendor_name=model.vendor.name,
            amount=money(model.amount),
            payment_date=model.payment_date,
            reporting_month=model.reporting_month,
            payment_type_id=model.payment_type_id,
            description=model.description,
            payment_reference=model.payment_reference,
            linked_invoice_id=model.linked_invoice_id,
        )
