"""
Report Assembly Service (``paytrack_modules.reporting.service``).

Responsibility
--------------
Generates monthly reports for the three variants (live, invoice-date,
combined) by bridging ``ReportSelector`` to the pure ``assemble_report``
pipeline in ``assembler.py``.  This is a **read-only** service: nothing is
written, no period state is consulted.

Architecture position
---------------------
**Modules layer** -- thin glue.  Constructor: ``session`` + ``clock`` +
``config``.  ``ReportLifecycleService`` uses it to build the report that is
snapshotted at finalization; ``ReportActions`` uses it (through the
lifecycle service) for the live views.

Invariants enforced
-------------------
* Read-only -- no mutations.
* ``generated_at`` comes from the injected clock, never from the wall clock
  directly, so reports are reproducible under ``DeterministicClock``.
* The selector query is chosen from the policy's date-key chain; the
  assembler re-checks every candidate against the same policy.

Failure modes
-------------
* Invalid month/year  -> ``InvalidPeriodError`` before any query runs.
* Unknown variant  -> ``ValueError``.
* Selector query failure  -> exception propagates (read-only, no rollback).
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from paytrack_engines.periods import month_window
from paytrack_kernel.domain.clock import Clock, SystemClock
from paytrack_kernel.logging_config import LogContext, get_logger
from paytrack_kernel.selectors.report_selector import ReportSelector
from paytrack_modules.reporting.assembler import assemble_report
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.models import MonthlyReport
from paytrack_modules.reporting.policies import ReportVariant, get_policy

logger = get_logger("modules.reporting.service")


class ReportAssemblyService:
    """
    Monthly report generation service.

    Contract
    --------
    * Every public method returns a ``MonthlyReport``.
    * All methods are read-only.

    Non-goals
    ---------
    * Does NOT read or write report periods or snapshots.
    * Does NOT enforce privileges (reading a report is unrestricted).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._selector = ReportSelector(session)

        logger.info(
            "report_assembly_service_initialized",
            extra={
                "default_currency": self._config.default_currency,
                "isolate_invoice_errors": self._config.isolate_invoice_errors,
            },
        )

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def config(self) -> ReportingConfig:
        return self._config

    def generate(
        self,
        month: int,
        year: int,
        variant: ReportVariant | str = ReportVariant.LIVE,
    ) -> MonthlyReport:
        """
        Generate the report for ``month``/``year`` under ``variant``.

        Raises:
            InvalidPeriodError: If month/year is not a valid period.
            ValueError: If ``variant`` is not a known report variant.
        """
        policy = get_policy(variant)
        window = month_window(month, year)

        with LogContext.bind(report_period=window.key):
            logger.info("report_generation_started", extra={
                "variant": policy.variant.value,
                "period": window.key,
            })

            channels = self._selector.active_channels()
            if policy.anchors_on_invoice_date_only:
                invoices = self._selector.invoices_dated_in(window)
            else:
                invoices = self._selector.invoices_attributed_to(window)
            orphans = (
                self._selector.orphan_payments(window)
                if policy.include_orphan_payments
                else []
            )
            advances = (
                self._selector.advance_payments_for(window)
                if policy.include_advance_payments
                else []
            )

            return assemble_report(
                month,
                year,
                policy=policy,
                channels=channels,
                invoices=invoices,
                generated_at=self._clock.now(),
                orphan_payments=orphans,
                advance_payments=advances,
                config=self._config,
            )

    def live_report(self, month: int, year: int) -> MonthlyReport:
        """Payment-date report with late invoices and advances."""
        return self.generate(month, year, ReportVariant.LIVE)

    def invoice_date_report(self, month: int, year: int) -> MonthlyReport:
        """Invoices dated in the month with their full payment history."""
        return self.generate(month, year, ReportVariant.INVOICE_DATE)

    def combined_report(self, month: int, year: int) -> MonthlyReport:
        """Invoice-date report plus this month's payments for older invoices."""
        return self.generate(month, year, ReportVariant.COMBINED)
