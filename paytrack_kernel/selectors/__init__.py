"""Read-only selectors for the paytrack kernel."""

from paytrack_kernel.selectors.base import BaseSelector
from paytrack_kernel.selectors.report_selector import ReportSelector

__all__ = ["BaseSelector", "ReportSelector"]
