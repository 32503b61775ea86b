"""
Module: paytrack_modules.reporting.lifecycle
Responsibility: Report period lifecycle -- finalize (freeze a snapshot),
    submit, unfinalize -- plus the read side that decides whether a caller
    sees the frozen snapshot or a freshly generated report.
Architecture position: Modules > Reporting.  Write-side service
    (flush-only).  Generates reports through ``ReportAssemblyService``;
    persists ``ReportPeriod`` rows.

Invariants enforced:
    - Every status change is a transition of ``REPORT_PERIOD_WORKFLOW``;
      an action with no transition out of the current state is rejected
      with a typed error.
    - Privilege is checked before any state is read: finalize and submit
      need an administrator, unfinalize needs a super administrator.
    - A FINALIZED or SUBMITTED period always carries a snapshot; a DRAFT
      period never does.
    - The snapshot is written once per finalization and only cleared by
      unfinalize; it is never recomputed in place.
    - Concurrent finalization of the same month is serialized by the
      (month, year) unique constraint; the loser gets
      ReportAlreadyFinalizedError.

Failure modes:
    - InsufficientPrivilegeError: actor role below the action's guard.
    - ReportAlreadyFinalizedError: finalize on FINALIZED/SUBMITTED.
    - ReportNotFinalizedError: submit on DRAFT or a missing period.
    - ReportAlreadySubmittedError: submit on SUBMITTED.
    - ReportPeriodNotFoundError: unfinalize a period that never existed.
    - InvalidReportTransitionError: unfinalize on DRAFT.
    - InvalidReportViewError: view not offered by the requested report.
    - UnsupportedSnapshotVersionError: stored snapshot newer than supported.

Audit relevance:
    Every transition logs the actor, the period and both states.  The
    ``created_by_id``/``updated_by_id`` columns record who created and who
    last changed each period.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paytrack_engines.periods import month_window, reporting_month_start
from paytrack_kernel.domain.actor import Actor
from paytrack_kernel.domain.clock import Clock
from paytrack_kernel.domain.workflow import Guard, Transition
from paytrack_kernel.exceptions import (
    InsufficientPrivilegeError,
    InvalidReportTransitionError,
    InvalidReportViewError,
    InvoiceNotFoundError,
    ReportAlreadyFinalizedError,
    ReportAlreadySubmittedError,
    ReportNotFinalizedError,
    ReportPeriodNotFoundError,
)
from paytrack_kernel.logging_config import get_logger
from paytrack_kernel.models.invoice import Invoice
from paytrack_kernel.services.base import BaseService
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.models import (
    ReportingMonthAssignment,
    ReportPeriodInfo,
    ReportResponse,
    ReportSnapshot,
    ReportStatus,
    ReportView,
)
from paytrack_modules.reporting.orm import ReportPeriod
from paytrack_modules.reporting.policies import ReportVariant
from paytrack_modules.reporting.service import ReportAssemblyService
from paytrack_modules.reporting.workflows import (
    CAN_MANAGE_REPORTS,
    CAN_REVERT_REPORTS,
    FINALIZE,
    REPORT_PERIOD_WORKFLOW,
    SUBMIT,
    UNFINALIZE,
)

logger = get_logger("modules.reporting.lifecycle")

# View -> variant generated when no snapshot is served.
_REPORT_VIEWS: dict[ReportView, ReportVariant] = {
    ReportView.LIVE: ReportVariant.LIVE,
    ReportView.INVOICE_DATE: ReportVariant.INVOICE_DATE,
    ReportView.SUBMITTED: ReportVariant.LIVE,
}

_CONSOLIDATED_VIEWS: dict[ReportView, ReportVariant] = {
    ReportView.LIVE: ReportVariant.COMBINED,
    ReportView.REPORTED: ReportVariant.COMBINED,
}

# Variant frozen into every snapshot.
SNAPSHOT_VARIANT = ReportVariant.COMBINED

_TRANSITION_EVENTS = {
    FINALIZE: "report_finalized",
    SUBMIT: "report_submitted",
    UNFINALIZE: "report_unfinalized",
}

_GUARD_CHECKS = {
    CAN_MANAGE_REPORTS.name: (lambda actor: actor.can_manage_reports, "admin"),
    CAN_REVERT_REPORTS.name: (lambda actor: actor.can_revert_reports, "super_admin"),
}


class ReportLifecycleService(BaseService[ReportPeriod]):
    """
    Manages report period state and snapshots.

    Contract:
        Mutating methods take an explicit ``Actor`` and flush; the caller
        commits.  Read methods return DTOs, never ORM rows.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
        assembly: ReportAssemblyService | None = None,
    ):
        super().__init__(session)
        self._assembly = assembly or ReportAssemblyService(session, clock, config)
        self._clock = self._assembly.clock
        self._config = self._assembly.config

    # =========================================================================
    # Read side
    # =========================================================================

    def get_period(self, month: int, year: int) -> ReportPeriodInfo | None:
        """Bookkeeping state of a period, or None if it was never finalized."""
        period = self._find(month, year)
        return period.to_dto() if period else None

    def get_snapshot(self, month: int, year: int) -> ReportSnapshot | None:
        """The frozen report of a finalized or submitted period."""
        period = self._find(month, year)
        if period is None or period.snapshot_data is None:
            return None
        return self._load_snapshot(period)

    def list_periods(self, year: int | None = None) -> list[ReportPeriodInfo]:
        """All periods, most recent first."""
        stmt = select(ReportPeriod).order_by(
            ReportPeriod.year.desc(), ReportPeriod.month.desc(),
        )
        if year is not None:
            stmt = stmt.where(ReportPeriod.year == year)
        return [p.to_dto() for p in self.session.scalars(stmt)]

    def get_report(
        self,
        month: int,
        year: int,
        view: ReportView | str = ReportView.LIVE,
    ) -> ReportResponse:
        """
        Monthly report in the ``live``, ``invoice_date`` or ``submitted`` view.

        ``submitted`` serves the stored snapshot when one exists and falls
        back to a live report otherwise.
        """
        return self._respond(month, year, view, _REPORT_VIEWS)

    def get_consolidated_report(
        self,
        month: int,
        year: int,
        view: ReportView | str = ReportView.LIVE,
    ) -> ReportResponse:
        """
        Combined report in the ``live`` or ``reported`` view.

        ``reported`` serves the stored snapshot when one exists and falls
        back to a freshly generated combined report otherwise.
        """
        return self._respond(month, year, view, _CONSOLIDATED_VIEWS)

    # =========================================================================
    # Transitions
    # =========================================================================

    def finalize(
        self,
        month: int,
        year: int,
        actor: Actor,
        notes: str | None = None,
    ) -> ReportPeriodInfo:
        """
        Freeze the month: generate the combined report, store it as a
        versioned snapshot and move the period to FINALIZED.

        Creates the period row on first finalization.  ``notes`` replaces
        the stored notes only when given.
        """
        self._authorize(actor, FINALIZE)

        period = self._find(month, year, for_update=True)
        current = period.status if period else REPORT_PERIOD_WORKFLOW.initial_state
        transition = self._transition(month, year, current, FINALIZE)

        report = self._assembly.generate(month, year, SNAPSHOT_VARIANT)
        now = self._clock.now()
        snapshot = ReportSnapshot(
            version=self._config.snapshot_version,
            report_data=report,
            finalized_at=now,
            finalized_by_name=actor.name,
        )

        if period is None:
            period = ReportPeriod(month=month, year=year)
            self.session.add(period)
        self._stamp(period, actor)

        period.status = transition.to_state
        period.finalized_at = now
        period.finalized_by_id = actor.actor_id
        period.snapshot_data = snapshot.to_dict()
        if notes is not None:
            period.notes = notes

        self._flush_unique(
            ReportAlreadyFinalizedError(month, year, ReportStatus.FINALIZED.value),
            "concurrent_report_finalize_conflict",
            month=month,
            year=year,
        )

        self._log_transition(period, actor, transition, extra={
            "total_entries": report.total_entries,
            "grand_total": str(report.grand_total),
            "snapshot_version": snapshot.version,
        })
        return period.to_dto()

    def submit(
        self,
        month: int,
        year: int,
        actor: Actor,
        recipient: str,
    ) -> ReportPeriodInfo:
        """Record that the finalized report was sent to ``recipient``."""
        self._authorize(actor, SUBMIT)

        period = self._find(month, year, for_update=True)
        if period is None:
            raise ReportNotFinalizedError(month, year)
        transition = self._transition(month, year, period.status, SUBMIT)

        period.status = transition.to_state
        period.submitted_at = self._clock.now()
        period.submitted_by_id = actor.actor_id
        period.submitted_to = recipient
        self._stamp(period, actor)
        self.session.flush()

        self._log_transition(period, actor, transition, extra={
            "submitted_to": recipient,
        })
        return period.to_dto()

    def unfinalize(self, month: int, year: int, actor: Actor) -> ReportPeriodInfo:
        """
        Return a FINALIZED or SUBMITTED period to DRAFT.

        Discards the snapshot together with the finalization and submission
        audit fields.  Notes are kept.
        """
        self._authorize(actor, UNFINALIZE)

        period = self._find(month, year, for_update=True)
        if period is None:
            raise ReportPeriodNotFoundError(month, year)
        transition = self._transition(month, year, period.status, UNFINALIZE)

        period.status = transition.to_state
        period.finalized_at = None
        period.finalized_by_id = None
        period.submitted_at = None
        period.submitted_by_id = None
        period.submitted_to = None
        period.snapshot_data = None
        self._stamp(period, actor)
        self.session.flush()

        self._log_transition(period, actor, transition)
        return period.to_dto()

    def set_invoice_reporting_month(
        self,
        invoice_id: UUID,
        month: int,
        year: int,
        actor: Actor,
    ) -> ReportingMonthAssignment:
        """
        Pin an invoice to a reporting month.

        The stored value is the first day of the month; the live report
        prefers it over received and invoice dates.
        """
        self._require(actor, CAN_MANAGE_REPORTS, "set invoice reporting month")
        reporting_month = reporting_month_start(month, year)

        invoice = self.session.get(Invoice, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))

        previous: date | None = invoice.reporting_month
        invoice.reporting_month = reporting_month
        self.session.flush()

        logger.info("invoice_reporting_month_set", extra={
            "invoice_id": str(invoice_id),
            "previous_reporting_month": previous.isoformat() if previous else None,
            "reporting_month": reporting_month.isoformat(),
            "actor_id": str(actor.actor_id),
        })
        return ReportingMonthAssignment(
            invoice_id=invoice.id,
            reporting_month=reporting_month,
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _find(self, month: int, year: int, for_update: bool = False) -> ReportPeriod | None:
        month_window(month, year)
        stmt = select(ReportPeriod).where(
            ReportPeriod.month == month,
            ReportPeriod.year == year,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def _load_snapshot(self, period: ReportPeriod) -> ReportSnapshot:
        return ReportSnapshot.from_dict(period.snapshot_data)

    def _respond(
        self,
        month: int,
        year: int,
        view: ReportView | str,
        views: dict[ReportView, ReportVariant],
    ) -> ReportResponse:
        try:
            requested = ReportView(view)
        except ValueError:
            requested = None
        if requested not in views:
            raise InvalidReportViewError(
                str(getattr(view, "value", view)),
                tuple(v.value for v in views),
            )

        period = self._find(month, year)
        info = period.to_dto() if period else None

        if requested.wants_snapshot and period is not None and period.snapshot_data is not None:
            snapshot = self._load_snapshot(period)
            logger.info("report_served_from_snapshot", extra={
                "period": f"{year}-{month:02d}",
                "view": requested.value,
                "snapshot_version": snapshot.version,
            })
            return ReportResponse(
                report_period=info,
                report_data=snapshot.report_data,
                view=requested,
                from_snapshot=True,
            )

        report = self._assembly.generate(month, year, views[requested])
        return ReportResponse(
            report_period=info,
            report_data=report,
            view=requested,
            from_snapshot=False,
        )

    def _authorize(self, actor: Actor, action: str) -> None:
        self._require(actor, REPORT_PERIOD_WORKFLOW.guard_for(action), f"{action} reports")

    def _require(self, actor: Actor, guard: Guard, action: str) -> None:
        check, required = _GUARD_CHECKS[guard.name]
        if not check(actor):
            logger.warning("report_action_denied", extra={
                "actor_id": str(actor.actor_id),
                "actor_role": actor.role.value,
                "action": action,
                "guard": guard.name,
            })
            raise InsufficientPrivilegeError(str(actor.actor_id), action, required)

    def _transition(self, month: int, year: int, current: str, action: str) -> Transition:
        transition = REPORT_PERIOD_WORKFLOW.find_transition(current, action)
        if transition is not None:
            return transition

        if action == FINALIZE:
            raise ReportAlreadyFinalizedError(month, year, current)
        if action == SUBMIT and current == ReportStatus.SUBMITTED.value:
            raise ReportAlreadySubmittedError(month, year)
        if action == SUBMIT:
            raise ReportNotFinalizedError(month, year)
        raise InvalidReportTransitionError(current, action)

    def _log_transition(
        self,
        period: ReportPeriod,
        actor: Actor,
        transition: Transition,
        extra: dict | None = None,
    ) -> None:
        logger.info(_TRANSITION_EVENTS[transition.action], extra={
            "period": f"{period.year}-{period.month:02d}",
            "action": transition.action,
            "from_status": transition.from_state,
            "to_status": transition.to_state,
            "actor_id": str(actor.actor_id),
            **(extra or {}),
        })
