"""
Tests for the monthly report assembler.

Runs the pure pipeline over hand-built DTOs for each report variant.
NO database required.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from paytrack_engines.settlement import SettlementStatus
from paytrack_kernel.domain.dtos import (
    AdvancePaymentInfo,
    ChannelInfo,
    InvoiceInfo,
    OrphanPayment,
    PaymentInfo,
)
from paytrack_kernel.exceptions import InvalidPeriodError, NonPositivePayableError
from paytrack_modules.reporting.assembler import assemble_report, display_name
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.models import EntryType
from paytrack_modules.reporting.policies import (
    COMBINED_POLICY,
    INVOICE_DATE_POLICY,
    LIVE_POLICY,
)

GENERATED_AT = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)

BANK = ChannelInfo(id=uuid4(), name="Bank Transfer")
CASH = ChannelInfo(id=uuid4(), name="Cash")
CHANNELS = (CASH, BANK)

ALL_POLICIES = (LIVE_POLICY, INVOICE_DATE_POLICY, COMBINED_POLICY)

_created = iter(range(1, 10_000))


def pay(amount, payment_date, channel=BANK, reference=None) -> PaymentInfo:
    return PaymentInfo(
        id=uuid4(),
        amount=Decimal(amount),
        payment_date=payment_date,
        payment_type_id=channel.id if channel else None,
        payment_reference=reference,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc).replace(
            microsecond=next(_created),
        ),
    )


def inv(amount="10000", invoice_date=date(2026, 1, 10), payments=(), **fields) -> InvoiceInfo:
    values = dict(
        id=uuid4(),
        vendor_name="Acme Supplies",
        invoice_amount=Decimal(amount),
        invoice_number="INV-1",
        invoice_name="Office rent",
        currency_code="INR",
        invoice_date=invoice_date,
        payments=tuple(payments),
    )
    values.update(fields)
    return InvoiceInfo(**values)


def build(policy, invoices=(), orphans=(), advances=(), config=None, month=1, year=2026):
    return assemble_report(
        month,
        year,
        policy=policy,
        channels=CHANNELS,
        invoices=invoices,
        generated_at=GENERATED_AT,
        orphan_payments=orphans,
        advance_payments=advances,
        config=config,
    )


class TestSections:

    def test_sections_ordered_by_name_with_unpaid_last(self):
        report = build(LIVE_POLICY, [
            inv(payments=[pay("100", date(2026, 1, 5), channel=CASH)]),
            inv(payments=[pay("100", date(2026, 1, 6), channel=BANK)]),
            inv(),
        ])

        assert [s.payment_type_name for s in report.sections] == [
            "Bank Transfer", "Cash", "Unpaid",
        ]
        assert report.sections[-1].payment_type_id is None

    def test_empty_sections_are_dropped(self):
        report = build(LIVE_POLICY, [inv(payments=[pay("10000", date(2026, 1, 5))])])

        assert [s.payment_type_name for s in report.sections] == ["Bank Transfer"]

    def test_empty_report(self):
        report = build(LIVE_POLICY, [])

        assert report.sections == ()
        assert report.grand_total == Decimal("0")
        assert report.total_entries == 0
        assert report.label == "January 2026"
        assert report.generated_at == GENERATED_AT

    def test_serials_restart_per_section(self):
        report = build(LIVE_POLICY, [
            inv(payments=[pay("100", date(2026, 1, 5))]),
            inv(payments=[pay("100", date(2026, 1, 6))]),
            inv(),
        ])

        bank, unpaid = report.sections
        assert [e.serial for e in bank.entries] == [1, 2]
        assert [e.serial for e in unpaid.entries] == [1]

    def test_totals(self):
        report = build(LIVE_POLICY, [
            inv(payments=[pay("2500", date(2026, 1, 5))]),
            inv(amount="700"),
        ])

        bank, unpaid = report.sections
        assert bank.subtotal == Decimal("2500")
        assert unpaid.subtotal == Decimal("700")
        assert report.grand_total == Decimal("3200")
        assert report.total_entries == 2

    def test_inactive_channel_entries_dropped(self, captured_logs):
        retired = ChannelInfo(id=uuid4(), name="Cheque")
        invoice = inv(payments=[pay("10000", date(2026, 1, 5), channel=retired)])

        report = build(LIVE_POLICY, [invoice])

        assert report.sections == ()
        dropped = [
            r for r in captured_logs() if r["message"] == "entry_dropped_inactive_channel"
        ]
        assert len(dropped) == 1
        assert dropped[0]["payment_type_id"] == str(retired.id)
        assert dropped[0]["invoice_id"] == str(invoice.id)

    def test_assembly_logged(self, captured_logs):
        build(COMBINED_POLICY, [inv()])

        records = [r for r in captured_logs() if r["message"] == "report_assembled"]
        assert records[0]["variant"] == "combined"
        assert records[0]["period"] == "2026-01"
        assert records[0]["total_entries"] == 1

    def test_invalid_month(self):
        with pytest.raises(InvalidPeriodError):
            build(LIVE_POLICY, [], month=13)


class TestPaymentEntries:

    def test_single_full_payment_is_paid(self):
        report = build(LIVE_POLICY, [
            inv(payments=[pay("10000", date(2026, 1, 15), reference="UTR-9")]),
        ])

        (entry,) = report.entries
        assert entry.status is SettlementStatus.PAID
        assert entry.status_percentage is None
        assert entry.payment_amount == Decimal("10000")
        assert entry.payment_reference == "UTR-9"
        assert entry.entry_type is EntryType.STANDARD
        assert entry.currency_code == "INR"

    def test_instalments_with_tax(self):
        invoice = inv(
            tax_applicable=True,
            tax_percentage=Decimal("10"),
            payments=[
                pay("4500", date(2026, 1, 20)),
                pay("4500", date(2026, 1, 5)),
            ],
        )

        report = build(LIVE_POLICY, [invoice])

        first, second = report.entries
        assert first.payment_date == date(2026, 1, 5)
        assert first.status is SettlementStatus.PARTIALLY_PAID
        assert first.status_percentage == 50
        assert second.status is SettlementStatus.PAID_PARTIAL
        assert second.status_percentage == 50

    def test_same_day_payments_listed_by_creation(self):
        early = pay("3000", date(2026, 1, 5))
        late = pay("7000", date(2026, 1, 5))
        report = build(LIVE_POLICY, [inv(payments=[late, early])])

        assert [e.payment_id for e in report.entries] == [early.id, late.id]

    @pytest.mark.parametrize("swap", [False, True])
    def test_same_day_payments_do_not_count_toward_each_other(self, swap):
        payments = [pay("7000", date(2026, 1, 5)), pay("3000", date(2026, 1, 5))]
        if swap:
            payments.reverse()

        report = build(LIVE_POLICY, [inv(payments=payments)])

        by_amount = {e.payment_amount: e for e in report.entries}
        assert by_amount[Decimal("7000")].status is SettlementStatus.PARTIALLY_PAID
        assert by_amount[Decimal("7000")].status_percentage == 70
        assert by_amount[Decimal("3000")].status is SettlementStatus.PARTIALLY_PAID
        assert by_amount[Decimal("3000")].status_percentage == 30

    def test_live_counts_earlier_months_toward_settlement(self):
        invoice = inv(payments=[
            pay("6000", date(2025, 12, 20)),
            pay("4000", date(2026, 1, 8)),
        ])

        (entry,) = build(LIVE_POLICY, [invoice]).entries

        assert entry.payment_amount == Decimal("4000")
        assert entry.status is SettlementStatus.PAID_PARTIAL
        assert entry.status_percentage == 40

    def test_pending_invoice_payment_is_advance(self):
        invoice = inv(is_pending=True, payments=[pay("10000", date(2026, 1, 5))])

        (entry,) = build(LIVE_POLICY, [invoice]).entries

        assert entry.status is SettlementStatus.ADVANCE
        assert entry.status_percentage is None
        assert entry.is_advance_payment is True
        assert entry.entry_type is EntryType.ADVANCE_PAYMENT

    def test_missing_currency_uses_default(self):
        invoice = inv(currency_code=None, payments=[pay("10", date(2026, 1, 5))])
        config = ReportingConfig(default_currency="USD")

        (entry,) = build(LIVE_POLICY, [invoice], config=config).entries

        assert entry.currency_code == "USD"


class TestLiveVariant:

    def test_invoice_settled_in_other_month_is_skipped(self):
        invoice = inv(payments=[pay("10000", date(2025, 12, 20))])

        assert build(LIVE_POLICY, [invoice]).entries == ()

    def test_settled_within_tolerance_is_skipped(self):
        invoice = inv(payments=[pay("9999.995", date(2025, 12, 20))])

        assert build(LIVE_POLICY, [invoice]).entries == ()

    def test_partially_paid_elsewhere_is_listed_as_unpaid_section_entry(self):
        invoice = inv(payments=[pay("2500", date(2025, 12, 20))])

        report = build(LIVE_POLICY, [invoice])

        (section,) = report.sections
        (entry,) = section.entries
        assert section.payment_type_id is None
        assert entry.status is SettlementStatus.PARTIALLY_PAID
        assert entry.status_percentage == 25
        assert entry.payment_amount is None
        assert section.subtotal == Decimal("10000")

    def test_unpaid_invoice(self):
        (entry,) = build(LIVE_POLICY, [inv()]).entries

        assert entry.status is SettlementStatus.UNPAID
        assert entry.status_percentage is None
        assert entry.payment_id is None

    def test_pending_unpaid_invoice_flagged_as_advance(self):
        (entry,) = build(LIVE_POLICY, [inv(is_pending=True)]).entries

        assert entry.status is SettlementStatus.UNPAID
        assert entry.is_advance_payment is True
        assert entry.entry_type is EntryType.ADVANCE_PAYMENT

    def test_payments_outside_month_not_listed(self):
        invoice = inv(payments=[
            pay("3000", date(2026, 1, 10)),
            pay("3000", date(2026, 2, 10)),
        ])

        report = build(LIVE_POLICY, [invoice])

        assert [e.payment_date for e in report.entries] == [date(2026, 1, 10)]

    def test_reporting_month_moves_invoice(self):
        invoice = inv(reporting_month=date(2026, 2, 1))

        assert build(LIVE_POLICY, [invoice]).entries == ()
        (entry,) = build(LIVE_POLICY, [invoice], month=2).entries
        assert entry.entry_type is EntryType.LATE_INVOICE

    def test_received_date_anchors_when_no_reporting_month(self):
        invoice = inv(invoice_date=date(2025, 12, 28), received_date=date(2026, 1, 3))

        (entry,) = build(LIVE_POLICY, [invoice]).entries

        assert entry.entry_type is EntryType.LATE_INVOICE

    def test_invoice_without_any_date_is_never_reported(self):
        assert build(LIVE_POLICY, [inv(invoice_date=None)]).entries == ()


class TestInvoiceDateVariant:

    def test_lists_all_payments_regardless_of_month(self):
        invoice = inv(payments=[
            pay("5000", date(2026, 1, 10)),
            pay("5000", date(2026, 3, 2)),
        ])

        report = build(INVOICE_DATE_POLICY, [invoice])

        assert [e.payment_date for e in report.entries] == [
            date(2026, 1, 10), date(2026, 3, 2),
        ]
        assert all(e.entry_type is EntryType.STANDARD for e in report.entries)
        assert report.entries[1].status is SettlementStatus.PAID_PARTIAL

    def test_same_day_payments_use_running_total(self):
        early = pay("3000", date(2026, 1, 5))
        late = pay("7000", date(2026, 1, 5))

        report = build(INVOICE_DATE_POLICY, [inv(payments=[late, early])])

        first, second = report.entries
        assert first.payment_id == early.id
        assert first.status is SettlementStatus.PARTIALLY_PAID
        assert second.status is SettlementStatus.PAID_PARTIAL
        assert second.status_percentage == 70

    def test_ignores_reporting_month_override(self):
        invoice = inv(reporting_month=date(2026, 2, 1))

        (entry,) = build(INVOICE_DATE_POLICY, [invoice]).entries

        assert entry.status is SettlementStatus.UNPAID

    def test_invoice_without_payments_is_unpaid(self):
        (entry,) = build(INVOICE_DATE_POLICY, [inv()]).entries

        assert entry.status is SettlementStatus.UNPAID
        assert entry.status_percentage is None

    def test_pending_unpaid_invoice_keeps_unpaid_status(self):
        (entry,) = build(INVOICE_DATE_POLICY, [inv(is_pending=True)]).entries

        assert entry.status is SettlementStatus.UNPAID
        assert entry.is_advance_payment is True
        assert entry.entry_type is EntryType.ADVANCE_PAYMENT

    def test_ignores_orphans_and_advances(self):
        orphan_invoice = inv(invoice_date=date(2025, 12, 1))
        orphan = OrphanPayment(
            payment=pay("100", date(2026, 1, 5)),
            invoice=orphan_invoice,
        )
        advance = AdvancePaymentInfo(
            id=uuid4(),
            vendor_name="Acme Supplies",
            amount=Decimal("500"),
            payment_date=date(2026, 1, 5),
            reporting_month=date(2026, 1, 1),
            payment_type_id=BANK.id,
        )

        report = build(INVOICE_DATE_POLICY, orphans=[orphan], advances=[advance])

        assert report.entries == ()


class TestCombinedVariant:

    def test_payment_in_other_month_is_late_payment(self):
        invoice = inv(payments=[
            pay("5000", date(2026, 1, 10)),
            pay("5000", date(2026, 2, 10)),
        ])

        report = build(COMBINED_POLICY, [invoice])

        assert [e.entry_type for e in report.entries] == [
            EntryType.STANDARD, EntryType.LATE_PAYMENT,
        ]

    def test_orphan_payment_is_late_invoice(self):
        payment = pay("3000", date(2026, 1, 5), channel=CASH)
        orphan_invoice = inv(invoice_date=date(2025, 12, 1), payments=[payment])

        report = build(COMBINED_POLICY, orphans=[
            OrphanPayment(payment=payment, invoice=orphan_invoice),
        ])

        (section,) = report.sections
        (entry,) = section.entries
        assert section.payment_type_name == "Cash"
        assert entry.entry_type is EntryType.LATE_INVOICE
        assert entry.payment_id == payment.id
        assert entry.status is SettlementStatus.PARTIALLY_PAID
        assert entry.status_percentage == 30

    def test_same_day_orphans_resolved_against_earlier_dates(self):
        first = pay("6000", date(2026, 1, 5))
        second = pay("4000", date(2026, 1, 5))
        orphan_invoice = inv(invoice_date=date(2025, 12, 1), payments=[first, second])

        report = build(COMBINED_POLICY, orphans=[
            OrphanPayment(payment=second, invoice=orphan_invoice),
            OrphanPayment(payment=first, invoice=orphan_invoice),
        ])

        statuses = {e.payment_id: (e.status, e.status_percentage) for e in report.entries}
        assert statuses == {
            first.id: (SettlementStatus.PARTIALLY_PAID, 60),
            second.id: (SettlementStatus.PARTIALLY_PAID, 40),
        }

    def test_orphans_are_deduplicated(self):
        payment = pay("3000", date(2026, 1, 5))
        orphan = OrphanPayment(
            payment=payment,
            invoice=inv(invoice_date=date(2025, 12, 1), payments=[payment]),
        )

        report = build(COMBINED_POLICY, orphans=[orphan, orphan])

        assert report.total_entries == 1

    def test_orphan_outside_month_ignored(self):
        payment = pay("3000", date(2026, 2, 5))
        orphan = OrphanPayment(
            payment=payment,
            invoice=inv(invoice_date=date(2025, 12, 1), payments=[payment]),
        )

        assert build(COMBINED_POLICY, orphans=[orphan]).entries == ()

    def test_orphan_of_in_month_invoice_ignored(self):
        payment = pay("3000", date(2026, 1, 5))
        invoice = inv(payments=[payment])

        report = build(
            COMBINED_POLICY,
            [invoice],
            orphans=[OrphanPayment(payment=payment, invoice=invoice)],
        )

        assert report.total_entries == 1
        assert report.entries[0].entry_type is EntryType.STANDARD

    def test_advances(self):
        linked_to = uuid4()
        linked = AdvancePaymentInfo(
            id=uuid4(),
            vendor_name="Acme Supplies",
            amount=Decimal("500"),
            payment_date=date(2025, 12, 30),
            reporting_month=date(2026, 1, 1),
            payment_type_id=BANK.id,
            description="Deposit",
            linked_invoice_id=linked_to,
        )
        standalone = AdvancePaymentInfo(
            id=uuid4(),
            vendor_name="Acme Supplies",
            amount=Decimal("200"),
            payment_date=date(2026, 1, 3),
            reporting_month=date(2026, 1, 1),
            payment_type_id=BANK.id,
        )
        other_month = AdvancePaymentInfo(
            id=uuid4(),
            vendor_name="Acme Supplies",
            amount=Decimal("900"),
            payment_date=date(2026, 1, 3),
            reporting_month=date(2026, 2, 1),
            payment_type_id=BANK.id,
        )

        report = build(COMBINED_POLICY, advances=[linked, standalone, other_month])

        first, second = report.entries
        assert first.invoice_number == "Linked"
        assert first.invoice_id == linked_to
        assert first.invoice_name == "Deposit"
        assert second.invoice_number is None
        for entry in (first, second):
            assert entry.status is SettlementStatus.ADVANCE
            assert entry.entry_type is EntryType.ADVANCE_PAYMENT
            assert entry.is_advance_payment is True
        assert report.grand_total == Decimal("700")

    def test_live_includes_advances_too(self):
        advance = AdvancePaymentInfo(
            id=uuid4(),
            vendor_name="Acme Supplies",
            amount=Decimal("200"),
            payment_date=date(2026, 1, 3),
            reporting_month=date(2026, 1, 1),
            payment_type_id=CASH.id,
        )

        report = build(LIVE_POLICY, advances=[advance])

        assert report.sections[0].payment_type_name == "Cash"
        assert report.entries[0].advance_payment_id == advance.id


class TestExclusions:

    @pytest.mark.parametrize("policy", ALL_POLICIES, ids=lambda p: p.variant.value)
    @pytest.mark.parametrize("fields", [
        {"status": "pending_approval"},
        {"status": "rejected"},
        {"is_archived": True},
        {"is_deleted": True},
    ])
    def test_non_reportable_invoices_never_appear(self, policy, fields):
        payment = pay("10000", date(2026, 1, 5))
        invoice = inv(payments=[payment], **fields)
        orphan_invoice = inv(invoice_date=date(2025, 12, 1), payments=[payment], **fields)

        report = build(
            policy,
            [invoice],
            orphans=[OrphanPayment(payment=payment, invoice=orphan_invoice)],
        )

        assert report.entries == ()


class TestErrorIsolation:

    def _full_withholding(self):
        return inv(
            tax_applicable=True,
            tax_percentage=Decimal("100"),
            payments=[pay("1", date(2026, 1, 5))],
        )

    def test_bad_invoice_excluded(self, captured_logs):
        bad = self._full_withholding()
        good = inv(payments=[pay("10000", date(2026, 1, 6))])

        report = build(LIVE_POLICY, [bad, good])

        assert [e.invoice_id for e in report.entries] == [good.id]
        excluded = [
            r for r in captured_logs() if r["message"] == "invoice_excluded_from_report"
        ]
        assert len(excluded) == 1
        assert excluded[0]["invoice_id"] == str(bad.id)
        assert excluded[0]["error_code"] == "NON_POSITIVE_PAYABLE"
        assembled = [r for r in captured_logs() if r["message"] == "report_assembled"]
        assert assembled[0]["invoices_without_entries"] == 1

    def test_zero_amount_unpaid_invoice_excluded_from_live(self):
        assert build(LIVE_POLICY, [inv(amount="0")]).entries == ()

    def test_zero_amount_unpaid_invoice_listed_by_invoice_date(self):
        (entry,) = build(INVOICE_DATE_POLICY, [inv(amount="0")]).entries

        assert entry.invoice_amount == Decimal("0")

    def test_isolation_disabled_propagates(self):
        config = ReportingConfig(isolate_invoice_errors=False)

        with pytest.raises(NonPositivePayableError):
            build(LIVE_POLICY, [self._full_withholding()], config=config)


class TestDisplayName:

    @pytest.mark.parametrize("fields,expected", [
        ({"is_recurring": True, "profile_name": "Monthly Rent"}, "Monthly Rent"),
        ({"is_recurring": True, "profile_name": None}, "Unknown Profile"),
        ({"invoice_name": "Laptop"}, "Laptop"),
        ({"invoice_name": None, "description": "Repairs"}, "Repairs"),
        ({"invoice_name": None, "notes": "see email"}, "see email"),
        ({"invoice_name": None}, "Unnamed Invoice"),
    ])
    def test_display_name(self, fields, expected):
        assert display_name(inv(**fields), ReportingConfig()) == expected

    def test_recurring_name_used_in_entries(self):
        invoice = inv(is_recurring=True, profile_name="Monthly Rent")

        (entry,) = build(LIVE_POLICY, [invoice]).entries

        assert entry.invoice_name == "Monthly Rent"
