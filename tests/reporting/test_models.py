"""
Tests for monthly report models and snapshot serialization.

NO database required.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from paytrack_engines.settlement import SettlementStatus
from paytrack_kernel.exceptions import CorruptSnapshotError, UnsupportedSnapshotVersionError
from paytrack_modules.reporting.models import (
    SNAPSHOT_VERSION,
    EntryType,
    MonthlyReport,
    ReportEntry,
    ReportPeriodInfo,
    ReportSection,
    ReportSnapshot,
    ReportStatus,
    ReportView,
    render_to_dict,
)

GENERATED_AT = datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)


def _entry(**overrides) -> ReportEntry:
    values = dict(
        serial=1,
        invoice_id=uuid4(),
        invoice_number="INV-001",
        invoice_name="Office rent",
        vendor_name="Acme Supplies",
        invoice_date=date(2026, 1, 10),
        invoice_amount=Decimal("10000.00"),
        payment_amount=Decimal("4500.00"),
        payment_date=date(2026, 1, 15),
        payment_reference="UTR-1",
        status=SettlementStatus.PARTIALLY_PAID,
        status_percentage=50,
        currency_code="INR",
        is_advance_payment=False,
        advance_payment_id=None,
        entry_type=EntryType.STANDARD,
        payment_id=uuid4(),
    )
    values.update(overrides)
    return ReportEntry(**values)


def _report() -> MonthlyReport:
    channel_id = uuid4()
    paid = _entry()
    unpaid = _entry(
        payment_amount=None,
        payment_date=None,
        payment_reference=None,
        status=SettlementStatus.UNPAID,
        status_percentage=None,
        payment_id=None,
    )
    sections = (
        ReportSection(
            payment_type_id=channel_id,
            payment_type_name="Bank Transfer",
            entries=(paid,),
            subtotal=Decimal("4500.00"),
            entry_count=1,
        ),
        ReportSection(
            payment_type_id=None,
            payment_type_name="Unpaid",
            entries=(unpaid,),
            subtotal=Decimal("10000.00"),
            entry_count=1,
        ),
    )
    return MonthlyReport(
        month=1,
        year=2026,
        label="January 2026",
        sections=sections,
        grand_total=Decimal("14500.00"),
        total_entries=2,
        generated_at=GENERATED_AT,
    )


class TestReportEntry:

    def test_contribution_is_payment_amount(self):
        assert _entry().contribution == Decimal("4500.00")

    def test_contribution_of_unpaid_entry_is_invoice_amount(self):
        assert _entry(payment_amount=None).contribution == Decimal("10000.00")

    def test_frozen(self):
        entry = _entry()
        with pytest.raises(AttributeError):
            entry.serial = 2


class TestMonthlyReport:

    def test_section_for(self):
        report = _report()

        assert report.section_for(None).payment_type_name == "Unpaid"
        assert report.section_for(None).is_unpaid_section
        assert report.section_for(uuid4()) is None

    def test_entries_in_section_order(self):
        report = _report()

        assert [e.status for e in report.entries] == [
            SettlementStatus.PARTIALLY_PAID,
            SettlementStatus.UNPAID,
        ]


class TestRenderToDict:

    def test_scalar_conversions(self):
        data = render_to_dict(_report())

        assert data["grand_total"] == "14500.00"
        assert data["generated_at"] == "2026-02-01T09:30:00+00:00"
        entry = data["sections"][0]["entries"][0]
        assert entry["status"] == "PARTIALLY_PAID"
        assert entry["entry_type"] == "standard"
        assert entry["invoice_date"] == "2026-01-10"
        assert data["sections"][1]["payment_type_id"] is None

    def test_is_json_serializable(self):
        json.dumps(render_to_dict(_report()))


class TestReportSnapshot:

    def test_round_trip_preserves_report(self):
        snapshot = ReportSnapshot(
            version=SNAPSHOT_VERSION,
            report_data=_report(),
            finalized_at=GENERATED_AT,
            finalized_by_name="Ada Admin",
        )
        stored = json.loads(json.dumps(snapshot.to_dict()))

        assert ReportSnapshot.from_dict(stored) == snapshot

    def test_newer_version_rejected(self):
        data = ReportSnapshot(
            version=SNAPSHOT_VERSION,
            report_data=_report(),
            finalized_at=GENERATED_AT,
            finalized_by_name="Ada Admin",
        ).to_dict()
        data["version"] = SNAPSHOT_VERSION + 1

        with pytest.raises(UnsupportedSnapshotVersionError) as exc_info:
            ReportSnapshot.from_dict(data)

        assert exc_info.value.version == SNAPSHOT_VERSION + 1
        assert exc_info.value.code == "UNSUPPORTED_SNAPSHOT_VERSION"

    @pytest.mark.parametrize("corrupt", [
        lambda d: d.update(finalized_at="not-a-timestamp"),
        lambda d: d.pop("finalized_by_name"),
        lambda d: d["report_data"].update(grand_total="lots"),
        lambda d: d["report_data"].update(sections=None),
        lambda d: d.update(version="one"),
    ], ids=["timestamp", "missing_field", "amount", "sections", "version"])
    def test_corrupt_payload_rejected(self, corrupt):
        data = ReportSnapshot(
            version=SNAPSHOT_VERSION,
            report_data=_report(),
            finalized_at=GENERATED_AT,
            finalized_by_name="Ada Admin",
        ).to_dict()
        corrupt(data)

        with pytest.raises(CorruptSnapshotError) as exc_info:
            ReportSnapshot.from_dict(data)

        assert exc_info.value.code == "CORRUPT_SNAPSHOT"


class TestEnums:

    def test_snapshot_views(self):
        assert ReportView.SUBMITTED.wants_snapshot
        assert ReportView.REPORTED.wants_snapshot
        assert not ReportView.LIVE.wants_snapshot
        assert not ReportView.INVOICE_DATE.wants_snapshot

    def test_period_lock(self):
        period = ReportPeriodInfo(id=uuid4(), month=1, year=2026, status=ReportStatus.DRAFT)
        assert not period.is_locked
        for status in (ReportStatus.FINALIZED, ReportStatus.SUBMITTED):
            assert ReportPeriodInfo(id=uuid4(), month=1, year=2026, status=status).is_locked
