"""
Module: paytrack_kernel.db.engine
Responsibility: Process-wide engine and session factory for the reporting
    store, plus the commit-or-rollback ``session_scope``.
Architecture position: Kernel > DB.  Imports db/base.py only, except
    ``create_tables`` which loads the ORM registry so module tables (report
    periods) are part of the schema.

Invariants enforced:
    - PostgreSQL connections use READ COMMITTED and a pre-pinging pool.  The
      lifecycle service relies on ``SELECT ... FOR UPDATE`` there to
      serialize transitions of one month.
    - SQLite shares one connection (StaticPool), so an in-memory database
      is the same database for every session of the process.
    - Sessions never expire attributes on commit; DTOs built after a commit
      do not trigger reloads.

Failure modes:
    - RuntimeError from any accessor called before ``init_engine_from_url``.
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from paytrack_kernel.db.base import Base
from paytrack_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool sizing for server databases.  Ignored for SQLite."""

    size: int = 20
    max_overflow: int = 10
    timeout: int = 30
    recycle: int = 1800
    pre_ping: bool = True


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _create_engine(database_url: str, echo: bool, pool: PoolSettings) -> Engine:
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool.size,
        max_overflow=pool.max_overflow,
        pool_timeout=pool.timeout,
        pool_recycle=pool.recycle,
        pool_pre_ping=pool.pre_ping,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool: PoolSettings | None = None,
) -> Engine:
    """
    Bind paytrack to ``database_url`` (``postgresql://...`` or ``sqlite://``).

    Replaces any engine from an earlier call.
    """
    global _engine, _session_factory

    reset_engine()
    _engine = _create_engine(database_url, echo, pool or PoolSettings())
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "echo": echo,
    })
    return _engine


def _require_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _session_factory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    return _require_factory()


def get_session() -> Session:
    return _require_factory()()


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One transaction: commit when the block completes, roll back and re-raise
    when it raises.  The session is always closed.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every kernel and module table that does not exist yet."""
    from paytrack_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop the whole schema.  Tests only."""
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
