"""
Module ORM Registry (``paytrack_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
holds the complete schema before tables are created.  Kernel models
(invoices, payments, master data) are registered first; module tables
(report periods) follow.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``paytrack_kernel.db.engine.create_tables``.

Usage
-----
Entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``paytrack_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    # fmt: off
    import paytrack_kernel.models  # noqa: F401
    import paytrack_modules.reporting.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create every kernel and module table.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from paytrack_kernel.db.engine import create_tables

    create_tables()
