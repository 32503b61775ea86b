"""
Monthly Report Assembler (``paytrack_modules.reporting.assembler``).

Responsibility
--------------
Pure functions that turn already-loaded invoice, payment and advance
payment data into a ``MonthlyReport`` for one month, under one
``AttributionPolicy``.  All three report variants run through the single
``assemble_report`` pipeline:

1. one section per active channel (by name) plus the Unpaid section;
2. qualifying invoices contribute one entry per listed payment, or one
   unpaid entry;
3. orphan payments (payments made this month for invoices dated in other
   months) when the policy includes them;
4. advance payments reporting to the month when the policy includes them;
5. empty sections are dropped and serials renumbered from 1.

Architecture position
---------------------
**Modules layer** -- pure functions, ZERO I/O.  Inputs are the kernel
DTOs (``paytrack_kernel.domain.dtos``) returned by ``ReportSelector``.

Invariants enforced
-------------------
* ``section.subtotal == sum(entry.contribution)`` for every section and
  ``grand_total == sum(section.subtotal)``.
* Sections with zero entries are never included.
* ``total_paid_before`` for a payment follows the policy's ``PaidBeforeRule``:
  payments dated strictly earlier (LIVE, orphan payments), or a running
  total down the invoice's listed history (invoice-date variants).  Under
  the first rule the result never depends on insertion order or ids.
* Payments against a pending invoice are always reported as ADVANCE.

Failure modes
-------------
* ``DataIntegrityError`` from the engines (non-positive payable amount,
  tax percentage out of range) excludes only the offending invoice when
  ``ReportingConfig.isolate_invoice_errors`` is set, and propagates
  otherwise.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Sequence
from uuid import UUID

from paytrack_engines.periods import PeriodWindow, month_window
from paytrack_engines.settlement import (
    SettlementStatus,
    invoice_payable,
    is_fully_settled,
    resolve_payment_status,
    settlement_percentage,
)
from paytrack_kernel.domain.dtos import (
    AdvancePaymentInfo,
    ChannelInfo,
    InvoiceInfo,
    OrphanPayment,
    PaymentInfo,
)
from paytrack_kernel.exceptions import DataIntegrityError
from paytrack_kernel.logging_config import LogContext, get_logger
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.models import (
    EntryType,
    MonthlyReport,
    ReportEntry,
    ReportSection,
)
from paytrack_modules.reporting.policies import (
    AttributionPolicy,
    EntryFacts,
    PaidBeforeRule,
    PaymentScope,
    UnpaidRule,
    attribution_date,
)

logger = get_logger("modules.reporting.assembler")

_ZERO = Decimal("0")


# =========================================================================
# Section accumulation
# =========================================================================


SectionKey = UUID | None


class _SectionBuilder:
    """Mutable per-channel buckets; frozen into ReportSections by build()."""

    def __init__(self, channels: Sequence[ChannelInfo], unpaid_label: str):
        self._names: dict[SectionKey, str] = {
            c.id: c.name for c in sorted(channels, key=lambda c: c.name)
        }
        self._names[None] = unpaid_label
        self._entries: dict[SectionKey, list[ReportEntry]] = {k: [] for k in self._names}

    def add(self, key: SectionKey, entry: ReportEntry) -> bool:
        if key not in self._entries:
            logger.warning("entry_dropped_inactive_channel", extra={
                "payment_type_id": str(key),
                "invoice_id": str(entry.invoice_id) if entry.invoice_id else None,
                "payment_id": str(entry.payment_id) if entry.payment_id else None,
                "advance_payment_id": (
                    str(entry.advance_payment_id) if entry.advance_payment_id else None
                ),
            })
            return False
        self._entries[key].append(entry)
        return True

    def build(self) -> tuple[ReportSection, ...]:
        sections = []
        for key, entries in self._entries.items():
            if not entries:
                continue
            numbered = tuple(
                replace(entry, serial=index)
                for index, entry in enumerate(entries, start=1)
            )
            sections.append(ReportSection(
                payment_type_id=key,
                payment_type_name=self._names[key],
                entries=numbered,
                subtotal=sum((e.contribution for e in numbered), _ZERO),
                entry_count=len(numbered),
            ))
        return tuple(sections)


# =========================================================================
# Entry construction
# =========================================================================


def _invoice_entry(
    invoice: InvoiceInfo,
    config: ReportingConfig,
    *,
    status: SettlementStatus,
    percentage: int | None,
    entry_type: EntryType,
    payment: PaymentInfo | None = None,
) -> ReportEntry:
    return ReportEntry(
        serial=0,
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        invoice_name=display_name(invoice, config),
        vendor_name=invoice.vendor_name,
        invoice_date=invoice.invoice_date,
        invoice_amount=invoice.invoice_amount,
        payment_amount=payment.amount if payment else None,
        payment_date=payment.payment_date if payment else None,
        payment_reference=payment.payment_reference if payment else None,
        status=status,
        status_percentage=percentage,
        currency_code=invoice.currency_code or config.default_currency,
        is_advance_payment=invoice.is_pending,
        advance_payment_id=None,
        entry_type=entry_type,
        payment_id=payment.id if payment else None,
    )


def _payment_entry(
    invoice: InvoiceInfo,
    payment: PaymentInfo,
    policy: AttributionPolicy,
    window: PeriodWindow,
    config: ReportingConfig,
    total_paid_before: Decimal,
    is_orphan: bool = False,
) -> ReportEntry:
    result = resolve_payment_status(
        invoice_amount=invoice.invoice_amount,
        tax_applicable=invoice.tax_applicable,
        tax_percentage=invoice.tax_percentage,
        tax_rounded=invoice.tax_rounded,
        total_paid_before=total_paid_before,
        this_payment_amount=payment.amount,
        epsilon=config.settlement_epsilon,
    )
    if invoice.is_pending:
        result = result.as_advance()

    facts = EntryFacts(
        is_pending=invoice.is_pending,
        invoice_in_period=_in_period(window, invoice.invoice_date),
        payment_in_period=window.contains(payment.payment_date),
        is_orphan=is_orphan,
    )
    return _invoice_entry(
        invoice,
        config,
        status=result.status,
        percentage=result.percentage,
        entry_type=policy.entry_type(facts),
        payment=payment,
    )


def _unpaid_entry(
    invoice: InvoiceInfo,
    policy: AttributionPolicy,
    window: PeriodWindow,
    config: ReportingConfig,
) -> ReportEntry | None:
    status, percentage = SettlementStatus.UNPAID, None

    if policy.unpaid_rule is UnpaidRule.HISTORY_AWARE:
        payable = invoice_payable(
            invoice.invoice_amount,
            invoice.tax_applicable,
            invoice.tax_percentage,
            invoice.tax_rounded,
        )
        total_paid = invoice.total_paid
        if is_fully_settled(total_paid, payable, config.settlement_epsilon):
            logger.debug("invoice_settled_in_other_period", extra={
                "invoice_id": str(invoice.id),
                "total_paid": str(total_paid),
                "payable_amount": str(payable),
            })
            return None
        if total_paid > 0:
            status = SettlementStatus.PARTIALLY_PAID
            percentage = settlement_percentage(total_paid, payable)

    facts = EntryFacts(
        is_pending=invoice.is_pending,
        invoice_in_period=_in_period(window, invoice.invoice_date),
        payment_in_period=None,
    )
    return _invoice_entry(
        invoice,
        config,
        status=status,
        percentage=percentage,
        entry_type=policy.entry_type(facts),
    )


def _advance_entry(advance: AdvancePaymentInfo, config: ReportingConfig) -> ReportEntry:
    return ReportEntry(
        serial=0,
        invoice_id=advance.linked_invoice_id,
        invoice_number=config.linked_advance_label if advance.linked_invoice_id else None,
        invoice_name=advance.description,
        vendor_name=advance.vendor_name,
        invoice_date=None,
        invoice_amount=advance.amount,
        payment_amount=advance.amount,
        payment_date=advance.payment_date,
        payment_reference=advance.payment_reference,
        status=SettlementStatus.ADVANCE,
        status_percentage=None,
        currency_code=config.default_currency,
        is_advance_payment=True,
        advance_payment_id=advance.id,
        entry_type=EntryType.ADVANCE_PAYMENT,
    )


def display_name(invoice: InvoiceInfo, config: ReportingConfig) -> str:
    """Recurring: profile name.  Otherwise name, description, notes, fallback."""
    if invoice.is_recurring:
        return invoice.profile_name or config.unknown_profile_label
    return (
        invoice.invoice_name
        or invoice.description
        or invoice.notes
        or config.unnamed_invoice_label
    )


def _in_period(window: PeriodWindow, value: date | None) -> bool | None:
    return None if value is None else window.contains(value)


# =========================================================================
# Invoice selection
# =========================================================================


def invoice_qualifies(
    invoice: InvoiceInfo,
    policy: AttributionPolicy,
    window: PeriodWindow,
) -> bool:
    """Reportable, and anchored to ``window`` by the policy's date-key chain."""
    if not invoice.is_reportable:
        return False
    anchor = attribution_date(
        policy.invoice_keys,
        invoice.reporting_month,
        invoice.received_date,
        invoice.invoice_date,
    )
    return window.contains(anchor)


def orphan_qualifies(orphan: OrphanPayment, window: PeriodWindow) -> bool:
    """Payment made in ``window`` for a reportable invoice dated elsewhere."""
    return (
        orphan.invoice.is_reportable
        and window.contains(orphan.payment.payment_date)
        and not window.contains(orphan.invoice.invoice_date)
    )


def _listed_payments(
    invoice: InvoiceInfo,
    policy: AttributionPolicy,
    window: PeriodWindow,
) -> tuple[PaymentInfo, ...]:
    history = invoice.ordered_payments
    if policy.payment_scope is PaymentScope.ALL:
        return history
    return tuple(p for p in history if window.contains(p.payment_date))


def _paid_before(
    invoice: InvoiceInfo,
    policy: AttributionPolicy,
) -> Callable[[PaymentInfo], Decimal]:
    if policy.paid_before is PaidBeforeRule.RUNNING_TOTAL:
        running = invoice.running_paid_before()
        return lambda payment: running[payment.id]
    return invoice.paid_before


def _entries_for_invoice(
    invoice: InvoiceInfo,
    policy: AttributionPolicy,
    window: PeriodWindow,
    config: ReportingConfig,
) -> list[tuple[SectionKey, ReportEntry]]:
    listed = _listed_payments(invoice, policy, window)
    if not listed:
        entry = _unpaid_entry(invoice, policy, window, config)
        return [] if entry is None else [(None, entry)]
    paid_before = _paid_before(invoice, policy)
    return [
        (
            payment.payment_type_id,
            _payment_entry(
                invoice, payment, policy, window, config,
                total_paid_before=paid_before(payment),
            ),
        )
        for payment in listed
    ]


def _isolated(
    invoice_id: UUID,
    config: ReportingConfig,
    build: Callable[[], list[tuple[SectionKey, ReportEntry]]],
) -> list[tuple[SectionKey, ReportEntry]]:
    """Run ``build``; on a data-integrity error exclude the invoice (if allowed)."""
    with LogContext.bind(invoice_id=str(invoice_id)):
        try:
            return build()
        except DataIntegrityError as exc:
            if not config.isolate_invoice_errors:
                raise
            logger.warning("invoice_excluded_from_report", extra={
                "invoice_id": str(invoice_id),
                "error_code": exc.code,
                "reason": str(exc),
            })
            return []


# =========================================================================
# Pipeline
# =========================================================================


def assemble_report(
    month: int,
    year: int,
    *,
    policy: AttributionPolicy,
    channels: Sequence[ChannelInfo],
    invoices: Sequence[InvoiceInfo],
    generated_at: datetime,
    orphan_payments: Sequence[OrphanPayment] = (),
    advance_payments: Sequence[AdvancePaymentInfo] = (),
    config: ReportingConfig | None = None,
) -> MonthlyReport:
    """
    Assemble the report for ``month``/``year`` under ``policy``.

    Inputs may be a superset of what belongs to the month; every invoice,
    orphan payment and advance payment is re-checked against the policy
    and the month window here.

    Raises:
        InvalidPeriodError: If month/year is not a valid period.
        DataIntegrityError: Only when ``config.isolate_invoice_errors`` is off.
    """
    config = config or ReportingConfig()
    window = month_window(month, year)
    sections = _SectionBuilder(channels, config.unpaid_section_label)
    listed_payment_ids: set[UUID] = set()
    excluded = 0

    for invoice in invoices:
        if not invoice_qualifies(invoice, policy, window):
            continue
        built = _isolated(
            invoice.id,
            config,
            lambda: _entries_for_invoice(invoice, policy, window, config),
        )
        if not built:
            excluded += 1
        for key, entry in built:
            if sections.add(key, entry) and entry.payment_id is not None:
                listed_payment_ids.add(entry.payment_id)

    if policy.include_orphan_payments:
        for orphan in orphan_payments:
            if orphan.payment.id in listed_payment_ids:
                continue
            if not orphan_qualifies(orphan, window):
                continue
            built = _isolated(
                orphan.invoice.id,
                config,
                lambda: [(
                    orphan.payment.payment_type_id,
                    _payment_entry(
                        orphan.invoice, orphan.payment, policy, window, config,
                        total_paid_before=orphan.invoice.paid_before(orphan.payment),
                        is_orphan=True,
                    ),
                )],
            )
            for key, entry in built:
                if sections.add(key, entry):
                    listed_payment_ids.add(orphan.payment.id)

    if policy.include_advance_payments:
        for advance in advance_payments:
            if window.contains(advance.reporting_month):
                sections.add(advance.payment_type_id, _advance_entry(advance, config))

    built_sections = sections.build()
    report = MonthlyReport(
        month=month,
        year=year,
        label=window.label,
        sections=built_sections,
        grand_total=sum((s.subtotal for s in built_sections), _ZERO),
        total_entries=sum(s.entry_count for s in built_sections),
        generated_at=generated_at,
    )

    logger.info("report_assembled", extra={
        "variant": policy.variant.value,
        "period": window.key,
        "section_count": len(report.sections),
        "total_entries": report.total_entries,
        "grand_total": str(report.grand_total),
        "invoices_without_entries": excluded,
    })
    return report
