"""
Module: paytrack_kernel.selectors.base
Responsibility: Base class for read-only query selectors.  Owns the two
    steps every report query shares: restricting a ``Date`` column to a
    month window, and turning loaded rows into frozen DTOs.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Rows leave a selector only as DTOs, converted while the session that
      loaded them is still open.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from paytrack_kernel.db.base import Base

if TYPE_CHECKING:
    from paytrack_engines.periods import PeriodWindow

ModelType = TypeVar("ModelType", bound=Base)
DTO = TypeVar("DTO")


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only access over a caller-owned session."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _within(column, window: PeriodWindow):
        """Inclusive month filter on a ``Date`` column."""
        return column.between(window.first_day, window.last_day)

    def _dtos(self, stmt: Select, convert: Callable[..., DTO]) -> list[DTO]:
        # unique() is required once a joinedload targets a collection.
        return [convert(row) for row in self.session.scalars(stmt).unique()]
