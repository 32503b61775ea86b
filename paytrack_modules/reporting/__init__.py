"""
Monthly Reporting Module (``paytrack_modules.reporting``).

Responsibility
--------------
Generates monthly payment reports (live, invoice-date and combined
variants) and manages the report period lifecycle: finalize with a frozen
snapshot, submit, unfinalize.

Architecture position
---------------------
**Modules layer**.  Report assembly is implemented as pure functions
(``assembler.py``) driven by declarative attribution policies
(``policies.py``); the services only load data and persist period state.

Invariants enforced
-------------------
* Section subtotals and the grand total always equal the sum of their
  entries.
* A finalized or submitted period is served from its snapshot, never
  recomputed.

Failure modes
-------------
* Malformed invoice data -> invoice excluded from the report and logged.
* Illegal lifecycle action -> typed ``ReportPeriodError``.

Audit relevance
---------------
The snapshot stored at finalization is the exact report a recipient saw.
Every lifecycle transition is logged with its actor.
"""

from paytrack_modules.reporting.assembler import assemble_report
from paytrack_modules.reporting.config import ReportingConfig
from paytrack_modules.reporting.lifecycle import ReportLifecycleService
from paytrack_modules.reporting.models import (
    SNAPSHOT_VERSION,
    EntryType,
    MonthlyReport,
    ReportEntry,
    ReportingMonthAssignment,
    ReportPeriodInfo,
    ReportResponse,
    ReportSection,
    ReportSnapshot,
    ReportStatus,
    ReportView,
    render_to_dict,
)
from paytrack_modules.reporting.orm import ReportPeriod
from paytrack_modules.reporting.policies import (
    COMBINED_POLICY,
    INVOICE_DATE_POLICY,
    LIVE_POLICY,
    AttributionPolicy,
    ReportVariant,
    get_policy,
)
from paytrack_modules.reporting.service import ReportAssemblyService
from paytrack_modules.reporting.workflows import REPORT_PERIOD_WORKFLOW

__all__ = [
    # Services
    "ReportAssemblyService",
    "ReportLifecycleService",
    "assemble_report",
    # Config
    "ReportingConfig",
    # Policies
    "AttributionPolicy",
    "ReportVariant",
    "LIVE_POLICY",
    "INVOICE_DATE_POLICY",
    "COMBINED_POLICY",
    "get_policy",
    # Models
    "EntryType",
    "ReportView",
    "ReportStatus",
    "ReportEntry",
    "ReportSection",
    "MonthlyReport",
    "ReportSnapshot",
    "ReportPeriodInfo",
    "ReportResponse",
    "ReportingMonthAssignment",
    "SNAPSHOT_VERSION",
    "render_to_dict",
    # ORM
    "ReportPeriod",
    # Workflows
    "REPORT_PERIOD_WORKFLOW",
]
