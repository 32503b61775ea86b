"""
paytrack_services -- Package init and public API.

Responsibility:
    The public action boundary.  Owns transaction scope and translates
    typed domain errors into ``ActionResult`` failures.

Architecture position:
    Services -- stateful orchestration over modules + kernel.

    Dependency direction:
        paytrack_services/ -> paytrack_modules/  (allowed)
        paytrack_services/ -> paytrack_kernel/   (allowed)
        paytrack_modules/  -> paytrack_services/ (FORBIDDEN)
        paytrack_kernel/   -> paytrack_services/ (FORBIDDEN)
"""

from paytrack_services.report_actions import ActionResult, ReportActions

__all__ = [
    "ActionResult",
    "ReportActions",
]
