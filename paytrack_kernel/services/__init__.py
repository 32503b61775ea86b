"""Write-side services for the paytrack kernel."""

from paytrack_kernel.services.base import BaseService

__all__ = ["BaseService"]
