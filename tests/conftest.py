"""
Pytest fixtures for the paytrack test suite.

Provides:
- A fresh in-memory SQLite database per test (StaticPool, so every session
  sees the same data)
- Deterministic clock and actors for each privilege level
- ``report_data``: row factories for vendors, channels, invoices, payments
  and advance payments
- ``captured_logs``: structured log records as parsed JSON dicts
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from paytrack_kernel.db.engine import (
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from paytrack_kernel.domain.actor import Actor, ActorRole
from paytrack_kernel.domain.clock import DeterministicClock
from paytrack_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from paytrack_kernel.models.invoice import Invoice, InvoiceStatus
from paytrack_kernel.models.master_data import Currency, InvoiceProfile, PaymentType, Vendor
from paytrack_kernel.models.payment import AdvancePayment, Payment, PaymentStatus
from paytrack_modules._orm_registry import create_all_tables
from paytrack_modules.reporting.config import ReportingConfig

TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """JSON logging at DEBUG for the whole run, so log assertions see every event."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """No test inherits actor or period bindings from the one before."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture paytrack logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, assembly_service):
            assembly_service.live_report(1, 2026)
            logs = captured_logs()
            assert any(r["message"] == "report_assembled" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("paytrack")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory database with the complete schema."""
    engine = init_engine_from_url("sqlite://")
    create_all_tables()
    yield engine
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Session on the test database.  Rolled back and closed at teardown."""
    sess = get_session()
    yield sess
    try:
        sess.rollback()
    finally:
        sess.close()


@pytest.fixture
def session_factory(db_engine):
    """Session factory for code that opens its own sessions."""
    return get_session_factory()


# =============================================================================
# Clock, actor and config fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Frozen at 2026-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def test_actor_id() -> UUID:
    """Id of the ``admin_actor`` fixture."""
    return TEST_ACTOR_ID


@pytest.fixture
def user_actor() -> Actor:
    return Actor(actor_id=uuid4(), name="Uma User", role=ActorRole.USER)


@pytest.fixture
def admin_actor(test_actor_id) -> Actor:
    return Actor(actor_id=test_actor_id, name="Ada Admin", role=ActorRole.ADMIN)


@pytest.fixture
def super_admin_actor() -> Actor:
    return Actor(actor_id=uuid4(), name="Sam Super", role=ActorRole.SUPER_ADMIN)


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Dataclass defaults; no YAML file is read."""
    return ReportingConfig.with_defaults()


# =============================================================================
# Row factories
# =============================================================================


class ReportData:
    """
    Creates report input rows.  Every call flushes.

    Payments get a strictly increasing ``created_at`` from the clock so
    same-day payments have a deterministic listing order.  Pass
    ``stamp_created=False`` to leave it to the database default.
    """

    def __init__(self, session: Session, clock: DeterministicClock):
        self.session = session
        self.clock = clock
        self._vendor: Vendor | None = None
        self._currencies: dict[str, Currency] = {}

    def _add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def vendor(self, name: str = "Acme Supplies") -> Vendor:
        return self._add(Vendor(name=name))

    def default_vendor(self) -> Vendor:
        if self._vendor is None:
            self._vendor = self.vendor()
        return self._vendor

    def currency(self, code: str = "INR") -> Currency:
        if code not in self._currencies:
            self._currencies[code] = self._add(Currency(code=code, name=code))
        return self._currencies[code]

    def profile(self, name: str = "Monthly Rent") -> InvoiceProfile:
        return self._add(InvoiceProfile(name=name))

    def channel(self, name: str = "Bank Transfer", is_active: bool = True) -> PaymentType:
        return self._add(PaymentType(name=name, is_active=is_active))

    def invoice(
        self,
        amount: str | Decimal = "10000",
        invoice_date: date | None = date(2026, 1, 10),
        *,
        vendor: Vendor | None = None,
        currency: str | None = "INR",
        profile: InvoiceProfile | None = None,
        status: InvoiceStatus = InvoiceStatus.UNPAID,
        **fields,
    ) -> Invoice:
        return self._add(Invoice(
            vendor_id=(vendor or self.default_vendor()).id,
            currency_id=self.currency(currency).id if currency else None,
            invoice_profile_id=profile.id if profile else None,
            invoice_amount=Decimal(amount),
            invoice_date=invoice_date,
            status=status.value,
            **fields,
        ))

    def payment(
        self,
        invoice: Invoice,
        amount: str | Decimal,
        payment_date: date,
        *,
        channel: PaymentType | None = None,
        status: PaymentStatus = PaymentStatus.APPROVED,
        reference: str | None = None,
        id: UUID | None = None,
        stamp_created: bool = True,
    ) -> Payment:
        fields = {}
        if id is not None:
            fields["id"] = id
        if stamp_created:
            fields["created_at"] = self.clock.tick()
        return self._add(Payment(
            invoice_id=invoice.id,
            amount=Decimal(amount),
            payment_date=payment_date,
            payment_type_id=channel.id if channel else None,
            payment_reference=reference,
            status=status.value,
            **fields,
        ))

    def advance(
        self,
        amount: str | Decimal,
        payment_date: date,
        reporting_month: date,
        *,
        channel: PaymentType | None = None,
        vendor: Vendor | None = None,
        description: str | None = "Advance",
        linked_invoice: Invoice | None = None,
    ) -> AdvancePayment:
        return self._add(AdvancePayment(
            vendor_id=(vendor or self.default_vendor()).id,
            amount=Decimal(amount),
            payment_date=payment_date,
            reporting_month=reporting_month,
            payment_type_id=channel.id if channel else None,
            description=description,
            linked_invoice_id=linked_invoice.id if linked_invoice else None,
        ))

    def soft_delete(self, invoice: Invoice) -> Invoice:
        invoice.deleted_at = datetime(2026, 1, 20, tzinfo=timezone.utc)
        self.session.flush()
        return invoice


@pytest.fixture
def report_data(session, deterministic_clock) -> ReportData:
    return ReportData(session, deterministic_clock)
