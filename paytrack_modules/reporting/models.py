"""
Monthly Report Domain Models (``paytrack_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing a generated monthly report,
its sections and entries, the versioned snapshot stored at finalization,
and the read-side view of a report period.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Produced by the
report assembler, persisted (as a snapshot) by the lifecycle service and
returned to callers through ``ReportActions``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``ReportSnapshot`` carries a schema version; payloads written by a newer
  schema are rejected rather than misread.

Audit relevance
---------------
A ``ReportSnapshot`` is the exact report a recipient saw.  It is rebuilt
from its stored payload verbatim and never recomputed.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self
from uuid import UUID

from paytrack_engines.settlement import SettlementStatus
from paytrack_kernel.exceptions import CorruptSnapshotError, UnsupportedSnapshotVersionError

SNAPSHOT_VERSION = 1


# =========================================================================
# Enums
# =========================================================================


class EntryType(str, Enum):
    """Why an event appears in this period."""

    STANDARD = "standard"
    LATE_INVOICE = "late_invoice"  # invoice dated in another month
    LATE_PAYMENT = "late_payment"  # payment made in another month
    ADVANCE_PAYMENT = "advance_payment"


class ReportView(str, Enum):
    """Requested presentation of a period."""

    LIVE = "live"
    INVOICE_DATE = "invoice_date"
    SUBMITTED = "submitted"
    REPORTED = "reported"

    @property
    def wants_snapshot(self) -> bool:
        return self in (ReportView.SUBMITTED, ReportView.REPORTED)


class ReportStatus(str, Enum):
    """Lifecycle status of a report period."""

    DRAFT = "draft"
    FINALIZED = "finalized"
    SUBMITTED = "submitted"


# =========================================================================
# Report
# =========================================================================


@dataclass(frozen=True)
class ReportEntry:
    """One reportable line: a payment, an unpaid invoice, or an advance."""

    serial: int
    invoice_id: UUID | None
    invoice_number: str | None
    invoice_name: str | None
    vendor_name: str
    invoice_date: date | None
    invoice_amount: Decimal
    payment_amount: Decimal | None
    payment_date: date | None
    payment_reference: str | None
    status: SettlementStatus
    status_percentage: int | None
    currency_code: str
    is_advance_payment: bool
    advance_payment_id: UUID | None
    entry_type: EntryType
    payment_id: UUID | None = None

    @property
    def contribution(self) -> Decimal:
        """Amount this entry adds to its section subtotal."""
        if self.payment_amount is not None:
            return self.payment_amount
        return self.invoice_amount


@dataclass(frozen=True)
class ReportSection:
    """Entries for one payment channel, or the Unpaid bucket (no channel)."""

    payment_type_id: UUID | None
    payment_type_name: str
    entries: tuple[ReportEntry, ...]
    subtotal: Decimal
    entry_count: int

    @property
    def is_unpaid_section(self) -> bool:
        return self.payment_type_id is None


@dataclass(frozen=True)
class MonthlyReport:
    """A generated monthly report."""

    month: int
    year: int
    label: str
    sections: tuple[ReportSection, ...]
    grand_total: Decimal
    total_entries: int
    generated_at: datetime

    def section_for(self, payment_type_id: UUID | None) -> ReportSection | None:
        for section in self.sections:
            if section.payment_type_id == payment_type_id:
                return section
        return None

    @property
    def entries(self) -> tuple[ReportEntry, ...]:
        """All entries across sections, in section order."""
        return tuple(e for s in self.sections for e in s.entries)


# =========================================================================
# Snapshot
# =========================================================================


@dataclass(frozen=True)
class ReportSnapshot:
    """Versioned, immutable capture of a report taken at finalization."""

    version: int
    report_data: MonthlyReport
    finalized_at: datetime
    finalized_by_name: str

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible payload for storage."""
        return render_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], supported: int = SNAPSHOT_VERSION) -> Self:
        """
        Rebuild a snapshot from its stored payload.

        Raises:
            UnsupportedSnapshotVersionError: If the payload was written by a
                newer schema than ``supported``.
            CorruptSnapshotError: If a field is missing or cannot be parsed.
        """
        try:
            version = int(data.get("version", 1))
        except (AttributeError, TypeError, ValueError) as exc:
            raise CorruptSnapshotError(f"bad version: {exc}") from exc
        if version > supported:
            raise UnsupportedSnapshotVersionError(version, supported)
        try:
            return cls(
                version=version,
                report_data=_report_from_dict(data["report_data"]),
                finalized_at=datetime.fromisoformat(data["finalized_at"]),
                finalized_by_name=data["finalized_by_name"],
            )
        except KeyError as exc:
            raise CorruptSnapshotError(f"missing field {exc}") from exc
        except (AttributeError, TypeError, ValueError, InvalidOperation) as exc:
            raise CorruptSnapshotError(str(exc) or type(exc).__name__) from exc


def _optional(value: Any, parse: Any) -> Any:
    return None if value is None else parse(value)


def _entry_from_dict(data: dict[str, Any]) -> ReportEntry:
    return ReportEntry(
        serial=int(data["serial"]),
        invoice_id=_optional(data.get("invoice_id"), UUID),
        invoice_number=data.get("invoice_number"),
        invoice_name=data.get("invoice_name"),
        vendor_name=data["vendor_name"],
        invoice_date=_optional(data.get("invoice_date"), date.fromisoformat),
        invoice_amount=Decimal(data["invoice_amount"]),
        payment_amount=_optional(data.get("payment_amount"), Decimal),
        payment_date=_optional(data.get("payment_date"), date.fromisoformat),
        payment_reference=data.get("payment_reference"),
        status=SettlementStatus(data["status"]),
        status_percentage=_optional(data.get("status_percentage"), int),
        currency_code=data["currency_code"],
        is_advance_payment=bool(data["is_advance_payment"]),
        advance_payment_id=_optional(data.get("advance_payment_id"), UUID),
        entry_type=EntryType(data["entry_type"]),
        payment_id=_optional(data.get("payment_id"), UUID),
    )


def _report_from_dict(data: dict[str, Any]) -> MonthlyReport:
    sections = tuple(
        ReportSection(
            payment_type_id=_optional(s.get("payment_type_id"), UUID),
            payment_type_name=s["payment_type_name"],
            entries=tuple(_entry_from_dict(e) for e in s["entries"]),
            subtotal=Decimal(s["subtotal"]),
            entry_count=int(s["entry_count"]),
        )
        for s in data["sections"]
    )
    return MonthlyReport(
        month=int(data["month"]),
        year=int(data["year"]),
        label=data["label"],
        sections=sections,
        grand_total=Decimal(data["grand_total"]),
        total_entries=int(data["total_entries"]),
        generated_at=datetime.fromisoformat(data["generated_at"]),
    )


# =========================================================================
# Report period (read side)
# =========================================================================


@dataclass(frozen=True)
class ReportPeriodInfo:
    """Bookkeeping state of one (month, year) report period."""

    id: UUID
    month: int
    year: int
    status: ReportStatus
    finalized_at: datetime | None = None
    finalized_by_id: UUID | None = None
    submitted_at: datetime | None = None
    submitted_by_id: UUID | None = None
    submitted_to: str | None = None
    notes: str | None = None
    has_snapshot: bool = False

    @property
    def is_locked(self) -> bool:
        """Finalized or submitted: the snapshot is authoritative."""
        return self.status in (ReportStatus.FINALIZED, ReportStatus.SUBMITTED)


@dataclass(frozen=True)
class ReportResponse:
    """A report together with the period it belongs to."""

    report_period: ReportPeriodInfo | None
    report_data: MonthlyReport
    view: ReportView
    from_snapshot: bool


@dataclass(frozen=True)
class ReportingMonthAssignment:
    """Result of manually assigning an invoice to a reporting month."""

    invoice_id: UUID
    reporting_month: date


# =========================================================================
# Serialization
# =========================================================================


def render_to_dict(obj: object) -> Any:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date / datetime -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
