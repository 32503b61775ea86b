"""
Report Period Workflows.

State machine for the monthly report lifecycle.  ``ReportLifecycleService``
validates every transition against ``REPORT_PERIOD_WORKFLOW``.
"""

from paytrack_kernel.domain.workflow import Guard, Transition, Workflow
from paytrack_kernel.logging_config import get_logger
from paytrack_modules.reporting.models import ReportStatus

logger = get_logger("modules.reporting.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

CAN_MANAGE_REPORTS = Guard(
    name="can_manage_reports",
    description="Actor is an administrator",
)

CAN_REVERT_REPORTS = Guard(
    name="can_revert_reports",
    description="Actor is a super administrator",
)

logger.info(
    "reporting_workflow_guards_defined",
    extra={
        "guards": [
            CAN_MANAGE_REPORTS.name,
            CAN_REVERT_REPORTS.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Report Period Workflow
# -----------------------------------------------------------------------------

FINALIZE = "finalize"
SUBMIT = "submit"
UNFINALIZE = "unfinalize"

REPORT_PERIOD_WORKFLOW = Workflow(
    name="report_period",
    description="Monthly report lifecycle: draft, finalized snapshot, submission",
    initial_state=ReportStatus.DRAFT.value,
    states=(
        ReportStatus.DRAFT.value,
        ReportStatus.FINALIZED.value,
        ReportStatus.SUBMITTED.value,
    ),
    transitions=(
        Transition(
            ReportStatus.DRAFT.value, ReportStatus.FINALIZED.value,
            action=FINALIZE, guard=CAN_MANAGE_REPORTS,
        ),
        Transition(
            ReportStatus.FINALIZED.value, ReportStatus.SUBMITTED.value,
            action=SUBMIT, guard=CAN_MANAGE_REPORTS,
        ),
        Transition(
            ReportStatus.FINALIZED.value, ReportStatus.DRAFT.value,
            action=UNFINALIZE, guard=CAN_REVERT_REPORTS,
        ),
        Transition(
            ReportStatus.SUBMITTED.value, ReportStatus.DRAFT.value,
            action=UNFINALIZE, guard=CAN_REVERT_REPORTS,
        ),
    ),
)

logger.info(
    "reporting_workflow_registered",
    extra={
        "workflow": REPORT_PERIOD_WORKFLOW.name,
        "state_count": len(REPORT_PERIOD_WORKFLOW.states),
        "transition_count": len(REPORT_PERIOD_WORKFLOW.transitions),
    },
)
