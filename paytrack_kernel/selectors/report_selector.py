"""
Module: paytrack_kernel.selectors.report_selector
Responsibility: Read-only queries that load everything a monthly report needs:
    active payment channels, invoices attributed to a month, payments made in
    a month for invoices dated elsewhere, and advance payments.
Architecture position: Kernel > Selectors.  Returns DTOs from
    ``paytrack_kernel.domain.dtos``; never returns ORM instances.

Invariants enforced:
    - Only APPROVED payments are ever returned.
    - Non-reportable invoices (soft-deleted, archived, pending approval,
      rejected) are filtered in SQL.
    - Every InvoiceInfo carries the invoice's full approved payment history
      in (payment_date, created_at, id) order, loaded in one extra
      round-trip per query rather than one per invoice.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import joinedload, selectinload

from paytrack_kernel.domain.dtos import (
    AdvancePaymentInfo,
    ChannelInfo,
    InvoiceInfo,
    OrphanPayment,
    PaymentInfo,
)
from paytrack_kernel.logging_config import get_logger
from paytrack_kernel.models.invoice import NON_REPORTABLE_STATUSES, Invoice
from paytrack_kernel.models.master_data import PaymentType
from paytrack_kernel.models.payment import AdvancePayment, Payment, PaymentStatus
from paytrack_kernel.selectors.base import BaseSelector

if TYPE_CHECKING:
    from paytrack_engines.periods import PeriodWindow

logger = get_logger("selectors.report")

_NON_REPORTABLE = [s.value for s in NON_REPORTABLE_STATUSES]


def _payment_order(payment: Payment) -> tuple:
    created = payment.created_at.timestamp() if payment.created_at is not None else 0.0
    return (payment.payment_date, created, str(payment.id))


def _approved(payments: Iterable[Payment]) -> list[Payment]:
    return sorted(
        (p for p in payments if p.status == PaymentStatus.APPROVED.value),
        key=_payment_order,
    )


def _reportable_invoice_filters() -> tuple:
    return (
        Invoice.deleted_at.is_(None),
        Invoice.is_archived.is_(False),
        Invoice.status.notin_(_NON_REPORTABLE),
    )


def _invoice_load_options() -> tuple:
    return (
        joinedload(Invoice.vendor),
        joinedload(Invoice.currency),
        joinedload(Invoice.invoice_profile),
        selectinload(Invoice.payments),
    )


class ReportSelector(BaseSelector[Invoice]):
    """
    Selector for monthly report inputs.

    Date windows are applied to ``Date`` columns through the window's
    ``first_day``/``last_day`` (inclusive).
    """

    def active_channels(self) -> list[ChannelInfo]:
        """Active payment channels ordered by name."""
        stmt = (
            select(PaymentType)
            .where(PaymentType.is_active.is_(True))
            .order_by(PaymentType.name)
        )
        return self._dtos(stmt, ChannelInfo.from_model)

    def invoices_attributed_to(self, window: PeriodWindow) -> list[InvoiceInfo]:
        """
        Reportable invoices anchored to the month by their first set date of
        reporting_month, received_date, invoice_date.
        """
        stmt = (
            select(Invoice)
            .where(
                or_(
                    self._within(Invoice.reporting_month, window),
                    and_(
                        Invoice.reporting_month.is_(None),
                        self._within(Invoice.received_date, window),
                    ),
                    and_(
                        Invoice.reporting_month.is_(None),
                        Invoice.received_date.is_(None),
                        self._within(Invoice.invoice_date, window),
                    ),
                ),
                *_reportable_invoice_filters(),
            )
            .options(*_invoice_load_options())
            .order_by(Invoice.invoice_date, Invoice.id)
        )
        return self._invoice_infos(stmt, window, "attributed")

    def invoices_dated_in(self, window: PeriodWindow) -> list[InvoiceInfo]:
        """Reportable invoices whose invoice_date falls in the month."""
        stmt = (
            select(Invoice)
            .where(
                self._within(Invoice.invoice_date, window),
                *_reportable_invoice_filters(),
            )
            .options(*_invoice_load_options())
            .order_by(Invoice.invoice_date, Invoice.id)
        )
        return self._invoice_infos(stmt, window, "invoice_date")

    def orphan_payments(self, window: PeriodWindow) -> list[OrphanPayment]:
        """
        Approved payments made in the month for reportable invoices whose
        invoice_date is outside the month (or absent).
        """
        stmt = (
            select(Payment)
            .join(Payment.invoice)
            .where(
                Payment.status == PaymentStatus.APPROVED.value,
                self._within(Payment.payment_date, window),
                or_(
                    Invoice.invoice_date.is_(None),
                    Invoice.invoice_date < window.first_day,
                    Invoice.invoice_date > window.last_day,
                ),
                *_reportable_invoice_filters(),
            )
            .options(
                joinedload(Payment.invoice).options(*_invoice_load_options()),
            )
            .order_by(Payment.payment_date, Payment.created_at, Payment.id)
        )
        payments = self.session.scalars(stmt).unique().all()

        invoices: dict[UUID, InvoiceInfo] = {}
        orphans = []
        for payment in payments:
            invoice = payment.invoice
            if invoice.id not in invoices:
                invoices[invoice.id] = InvoiceInfo.from_model(
                    invoice, _approved(invoice.payments),
                )
            orphans.append(OrphanPayment(
                payment=PaymentInfo.from_model(payment),
                invoice=invoices[invoice.id],
            ))

        logger.debug("orphan_payments_loaded", extra={
            "period": window.key,
            "payment_count": len(orphans),
            "invoice_count": len(invoices),
        })
        return orphans

    def advance_payments_for(self, window: PeriodWindow) -> list[AdvancePaymentInfo]:
        """Advance payments whose reporting_month falls in the month."""
        stmt = (
            select(AdvancePayment)
            .where(
                self._within(AdvancePayment.reporting_month, window),
            )
            .options(joinedload(AdvancePayment.vendor))
            .order_by(AdvancePayment.payment_date, AdvancePayment.id)
        )
        return self._dtos(stmt, AdvancePaymentInfo.from_model)

    def _invoice_infos(self, stmt, window: PeriodWindow, query: str) -> list[InvoiceInfo]:
        infos = self._dtos(
            stmt, lambda invoice: InvoiceInfo.from_model(invoice, _approved(invoice.payments)),
        )
        logger.debug("report_invoices_loaded", extra={
            "period": window.key,
            "query": query,
            "invoice_count": len(infos),
        })
        return infos
