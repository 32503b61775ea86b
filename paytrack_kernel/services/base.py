"""
BaseService -- shared write-side plumbing for services that own a tracked row.

Responsibility:
    Holds the caller's session and the two write patterns every paytrack
    mutation repeats: stamping the acting user onto the audit columns of the
    row it touches, and flushing a row guarded by a unique constraint so that
    a lost race surfaces as a typed domain error instead of an
    ``IntegrityError``.

Architecture position:
    Kernel > Services.  Imports from db/, domain/ and exceptions only.

Invariants enforced:
    - Services flush and never commit.  ``ReportActions`` (or the test
      harness) owns the transaction.
    - A unique-constraint conflict rolls the session back before the typed
      error leaves the service, so the caller never sees a half-failed
      transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paytrack_kernel.db.base import TrackedBase
from paytrack_kernel.domain.actor import Actor
from paytrack_kernel.exceptions import PaytrackError
from paytrack_kernel.logging_config import get_logger

logger = get_logger("services.base")

RowType = TypeVar("RowType", bound=TrackedBase)


class BaseService(ABC, Generic[RowType]):
    """Write-side service over rows of one ``TrackedBase`` model."""

    def __init__(self, session: Session):
        self.session = session

    def _stamp(self, row: RowType, actor: Actor) -> None:
        """Record ``actor`` as creator of a new row, or updater of an existing one."""
        if row.created_by_id is None:
            row.created_by_id = actor.actor_id
        else:
            row.updated_by_id = actor.actor_id

    def _flush_unique(self, conflict: PaytrackError, event: str, **context) -> None:
        """
        Flush, translating a unique-constraint violation into ``conflict``.

        The session is rolled back and ``event`` is logged at WARNING with
        ``context`` before ``conflict`` is raised.
        """
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            logger.warning(event, extra={"error_code": conflict.code, **context})
            raise conflict
