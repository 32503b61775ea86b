"""
paytrack_services.report_actions -- Public action boundary for monthly reports.

Responsibility:
    The only surface callers (UI handlers, automation, scripts) use to read
    and manage monthly reports.  Each action opens its own session, runs one
    lifecycle operation, commits, and translates the outcome into an
    ``ActionResult``.

Architecture position:
    Services -- stateful orchestration over modules + kernel.  Owns the
    transaction boundary; everything below it only flushes.

Invariants enforced:
    - Nothing escapes the boundary: ``PaytrackError`` and ``SQLAlchemyError``
      are rolled back, logged, and returned as a failed ``ActionResult``
      carrying the error code.
    - Mutations require an authenticated ``Actor``; privilege checks happen
      in ``ReportLifecycleService`` before any state is read.
    - One session per action; a failed action leaves no partial state.

Failure modes:
    - Any typed domain error  -> ``ActionResult(success=False, error_code=e.code)``.
    - Database error  -> ``ActionResult(success=False, error_code="DATABASE_ERROR")``.

Audit relevance:
    Every action runs under ``LogContext`` with the actor and the report
    period, so all log lines it produces carry both.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paytrack_kernel.domain.actor import Actor
from paytrack_kernel.domain.clock import Clock, SystemClock
from paytrack_kernel.exceptions import NotAuthenticatedError, PaytrackError
from paytrack_kernel.logging_config import LogContext, get_logger
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.lifecycle import ReportLifecycleService
from paytrack_modules.reporting.models import ReportView

logger = get_logger("services.report_actions")

T = TypeVar("T")

DATABASE_ERROR = "DATABASE_ERROR"


@dataclass(frozen=True)
class ActionResult:
    """
    Uniform result of every public action.

    ``data`` is set on success; ``error`` and ``error_code`` on failure.
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> ActionResult:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @property
    def is_success(self) -> bool:
        return self.success


def _period_key(month: int | None, year: int | None) -> str | None:
    if month is None or year is None:
        return None
    return f"{year}-{month:02d}"


class ReportActions:
    """
    Report actions for one application.

    Contract:
        ``session_factory`` returns a new ``Session`` per call (a
        ``sessionmaker`` or ``get_session``).  ``clock`` and ``config`` are
        shared by every action.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_report(
        self,
        month: int,
        year: int,
        view: ReportView | str = ReportView.LIVE,
    ) -> ActionResult:
        """Monthly report: ``live``, ``invoice_date`` or ``submitted``."""
        return self._run(
            "get_report",
            lambda svc: svc.get_report(month, year, view),
            month=month, year=year,
        )

    def get_consolidated_report(
        self,
        month: int,
        year: int,
        view: ReportView | str = ReportView.LIVE,
    ) -> ActionResult:
        """Combined report: ``live`` or ``reported``."""
        return self._run(
            "get_consolidated_report",
            lambda svc: svc.get_consolidated_report(month, year, view),
            month=month, year=year,
        )

    def get_report_period(self, month: int, year: int) -> ActionResult:
        """Period state; ``data`` is None when the period was never finalized."""
        return self._run(
            "get_report_period",
            lambda svc: svc.get_period(month, year),
            month=month, year=year,
        )

    def get_report_snapshot(self, month: int, year: int) -> ActionResult:
        """Frozen snapshot; ``data`` is None when there is none."""
        return self._run(
            "get_report_snapshot",
            lambda svc: svc.get_snapshot(month, year),
            month=month, year=year,
        )

    def list_report_periods(self, year: int | None = None) -> ActionResult:
        """All report periods, most recent first."""
        return self._run(
            "list_report_periods",
            lambda svc: svc.list_periods(year),
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def finalize_report(
        self,
        month: int,
        year: int,
        actor: Actor | None,
        notes: str | None = None,
    ) -> ActionResult:
        """Finalize the monthly report and freeze its snapshot."""
        return self._mutate(
            "finalize_report",
            actor,
            lambda svc, a: svc.finalize(month, year, a, notes=notes),
            month=month, year=year,
        )

    def finalize_consolidated_report(
        self,
        month: int,
        year: int,
        actor: Actor | None,
        notes: str | None = None,
    ) -> ActionResult:
        """Finalize the consolidated report; same snapshot as ``finalize_report``."""
        return self._mutate(
            "finalize_consolidated_report",
            actor,
            lambda svc, a: svc.finalize(month, year, a, notes=notes),
            month=month, year=year,
        )

    def submit_report(
        self,
        month: int,
        year: int,
        actor: Actor | None,
        recipient: str,
    ) -> ActionResult:
        """Record submission of a finalized report to ``recipient``."""
        return self._mutate(
            "submit_report",
            actor,
            lambda svc, a: svc.submit(month, year, a, recipient),
            month=month, year=year,
        )

    def unfinalize_report(self, month: int, year: int, actor: Actor | None) -> ActionResult:
        """Return a finalized or submitted period to draft."""
        return self._mutate(
            "unfinalize_report",
            actor,
            lambda svc, a: svc.unfinalize(month, year, a),
            month=month, year=year,
        )

    def set_invoice_reporting_month(
        self,
        invoice_id: UUID,
        month: int,
        year: int,
        actor: Actor | None,
    ) -> ActionResult:
        """Pin an invoice to a reporting month."""
        return self._mutate(
            "set_invoice_reporting_month",
            actor,
            lambda svc, a: svc.set_invoice_reporting_month(invoice_id, month, year, a),
            month=month, year=year,
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @contextmanager
    def _lifecycle(self) -> Iterator[ReportLifecycleService]:
        session = self._session_factory()
        try:
            yield ReportLifecycleService(session, self._clock, self._config)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _mutate(
        self,
        action: str,
        actor: Actor | None,
        operation: Callable[[ReportLifecycleService, Actor], T],
        month: int | None = None,
        year: int | None = None,
    ) -> ActionResult:
        def guarded(svc: ReportLifecycleService) -> T:
            if actor is None:
                raise NotAuthenticatedError(action.replace("_", " "))
            return operation(svc, actor)

        return self._run(action, guarded, actor=actor, month=month, year=year)

    def _run(
        self,
        action: str,
        operation: Callable[[ReportLifecycleService], T],
        actor: Actor | None = None,
        month: int | None = None,
        year: int | None = None,
    ) -> ActionResult:
        with LogContext.bind(
            actor_id=str(actor.actor_id) if actor else None,
            report_period=_period_key(month, year),
        ):
            try:
                with self._lifecycle() as svc:
                    data = operation(svc)
            except PaytrackError as exc:
                logger.warning("report_action_failed", extra={
                    "action": action,
                    "error_code": exc.code,
                    "reason": str(exc),
                })
                return ActionResult.failure(str(exc), error_code=exc.code)
            except SQLAlchemyError:
                logger.error("report_action_database_error", extra={
                    "action": action,
                }, exc_info=True)
                return ActionResult.failure(
                    f"Failed to {action.replace('_', ' ')}",
                    error_code=DATABASE_ERROR,
                )

            logger.debug("report_action_completed", extra={"action": action})
            return ActionResult.ok(data)
