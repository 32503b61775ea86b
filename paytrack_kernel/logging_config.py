"""
Structured logging for paytrack.

Responsibility:
    Every paytrack logger lives under the ``paytrack`` namespace and emits
    one JSON object per line.  Messages are snake_case event names; the
    facts travel in ``extra``.

Architecture position:
    Kernel.  Imported by every layer; imports nothing from paytrack.

Invariants:
    - The fields bound through ``LogContext`` (correlation id, actor, report
      period, invoice) are stamped on every record emitted while bound, so
      a single ``ReportActions`` call can be followed end to end.
    - ``configure_logging`` installs exactly one handler no matter how many
      times it is called, and the ``paytrack`` logger never propagates to
      the root logger.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID

_NAMESPACE = "paytrack"

_EMPTY: Mapping[str, str] = MappingProxyType({})


class LogContext:
    """Request-scoped log fields, safe across threads and asyncio tasks."""

    FIELDS = frozenset({"correlation_id", "actor_id", "report_period", "invoice_id"})

    _current: ContextVar[Mapping[str, str]] = ContextVar("paytrack_log_context", default=_EMPTY)

    @classmethod
    def _merged(cls, fields: dict[str, Any]) -> Mapping[str, str]:
        merged = dict(cls._current.get())
        merged.update(
            (name, str(value))
            for name, value in fields.items()
            if name in cls.FIELDS and value is not None
        )
        return MappingProxyType(merged)

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        actor_id: str | None = None,
        report_period: str | None = None,
        invoice_id: str | None = None,
    ) -> None:
        """Overwrite the given fields for the rest of the current context."""
        cls._current.set(cls._merged({
            "correlation_id": correlation_id,
            "actor_id": actor_id,
            "report_period": report_period,
            "invoice_id": invoice_id,
        }))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._current.get())

    @classmethod
    def clear(cls) -> None:
        cls._current.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Bind fields for the duration of a ``with`` block.

        ``None`` values and names outside ``FIELDS`` are ignored.  The
        previous binding is restored on exit, including on error.
        """
        token = cls._current.set(cls._merged(fields))
        try:
            yield cls
        finally:
            cls._current.reset(token)


# LogRecord attributes that are not caller-supplied ``extra`` fields.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: base fields, bound context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # PaytrackError subclasses keep their context (month, year, status...)
        # as public attributes.
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``paytrack.<name>``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``paytrack`` logger.

    Only the first call has any effect until ``reset_logging()``.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

        root = logging.getLogger(_NAMESPACE)
        root.setLevel(level)
        root.propagate = False
        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        root.addHandler(target)


def reset_logging() -> None:
    """Drop handlers and configuration state.  Tests only."""
    global _configured
    with _lock:
        _configured = False
        root = logging.getLogger(_NAMESPACE)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
