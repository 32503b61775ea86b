"""
Module: paytrack_modules.reporting.orm
Responsibility: ORM persistence for report periods -- the bookkeeping row
    that holds a month's lifecycle status, audit fields and frozen snapshot.
Architecture position: Modules > Reporting.  May import from
    paytrack_kernel.db.base and the module's own models.

Invariants enforced:
    - (month, year) is unique (uq_report_period).  Concurrent finalizations
      of the same month are serialized by this constraint; the loser sees
      an IntegrityError and reports "already finalized".
    - snapshot_data is written once per finalization and cleared (never
      edited) on unfinalize.
    - The row itself is never deleted; unfinalize resets it to DRAFT.

Failure modes:
    - IntegrityError on a duplicate (month, year).
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from paytrack_kernel.db.base import TrackedBase, UUIDString
from paytrack_modules.reporting.models import ReportPeriodInfo, ReportStatus


class ReportPeriod(TrackedBase):
    """
    Lifecycle record of one monthly report.

    Contract:
        Created on first finalization.  Mutated only by
        ``ReportLifecycleService`` through ``REPORT_PERIOD_WORKFLOW``.
    """

    __tablename__ = "report_periods"

    __table_args__ = (
        UniqueConstraint("month", "year", name="uq_report_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_report_period_month"),
        Index("idx_report_period_status", "status"),
    )

    month: Mapped[int] = mapped_column(Integer, nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReportStatus.DRAFT.value,
    )

    # Finalization audit
    finalized_at: Mapped[datetime | None] = mapped_column(nullable=True)

    finalized_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Submission audit
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    submitted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    submitted_to: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Versioned ReportSnapshot payload
    snapshot_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ReportPeriod {self.year}-{self.month:02d} status={self.status}>"

    def to_dto(self) -> ReportPeriodInfo:
        return ReportPeriodInfo(
            id=self.id,
            month=self.month,
            year=self.year,
            status=ReportStatus(self.status),
            finalized_at=self.finalized_at,
            finalized_by_id=self.finalized_by_id,
            submitted_at=self.submitted_at,
            submitted_by_id=self.submitted_by_id,
            submitted_to=self.submitted_to,
            notes=self.notes,
            has_snapshot=self.snapshot_data is not None,
        )
