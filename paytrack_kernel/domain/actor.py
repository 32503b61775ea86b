"""
Actor -- explicit capability passed into every mutating operation.

Responsibility:
    Represents the authenticated "current user" as a value.  Services never
    look the user up themselves; the caller resolves the session user and
    hands an ``Actor`` in, and the service checks its role before writing.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(str, Enum):
    """Privilege levels, ordered from least to most authority."""
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    def has_authority(self, required: "ActorRole") -> bool:
        """Check if this role has at least the authority of the required role."""
        hierarchy = {
            ActorRole.USER: 0,
            ActorRole.ADMIN: 1,
            ActorRole.SUPER_ADMIN: 2,
        }
        return hierarchy[self] >= hierarchy[required]


@dataclass(frozen=True)
class Actor:
    """The authenticated actor performing an operation."""
    actor_id: UUID
    name: str
    role: ActorRole = ActorRole.USER

    @property
    def can_manage_reports(self) -> bool:
        """Finalize and submit report periods, reassign reporting months."""
        return self.role.has_authority(ActorRole.ADMIN)

    @property
    def can_revert_reports(self) -> bool:
        """Unfinalize a finalized or submitted period."""
        return self.role.has_authority(ActorRole.SUPER_ADMIN)
