"""
Module: paytrack_kernel.models.master_data
Responsibility: ORM persistence for the reference data the report engine reads:
    vendors, currencies, recurring invoice profiles and payment channels.
Architecture position: Kernel > Models.  May import from db/base.py only.

These tables are owned by the invoicing subsystem.  The reporting engine only
reads them; rows are created here for local use and the test suite.

Invariants enforced:
    - payment_types.name is unique; is_active controls whether a channel gets
      a section in generated reports.
    - currencies.code is a unique ISO 4217 code.
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from paytrack_kernel.db.base import Base


class Vendor(Base):
    """A supplier that issues invoices."""

    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Vendor {self.name}>"


class Currency(Base):
    """A currency an invoice can be denominated in."""

    __tablename__ = "currencies"

    __table_args__ = (
        UniqueConstraint("code", name="uq_currency_code"),
    )

    code: Mapped[str] = mapped_column(String(3), nullable=False)

    name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Currency {self.code}>"


class InvoiceProfile(Base):
    """Template for recurring invoices; its name labels the generated invoices."""

    __tablename__ = "invoice_profiles"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<InvoiceProfile {self.name}>"


class PaymentType(Base):
    """
    A payment channel (bank transfer, cash, ...).

    Contract:
        Channels group report rows.  Only active channels get a report
        section; the synthetic "Unpaid" section has no row here.
    """

    __tablename__ = "payment_types"

    __table_args__ = (
        UniqueConstraint("name", name="uq_payment_type_name"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<PaymentType {self.name} active={self.is_active}>"
