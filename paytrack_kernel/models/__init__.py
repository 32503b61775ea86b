"""ORM models for the data the report engine reads."""

from paytrack_kernel.models.invoice import (
    NON_REPORTABLE_STATUSES,
    Invoice,
    InvoiceStatus,
)
from paytrack_kernel.models.master_data import (
    Currency,
    InvoiceProfile,
    PaymentType,
    Vendor,
)
from paytrack_kernel.models.payment import AdvancePayment, Payment, PaymentStatus

__all__ = [
    "AdvancePayment",
    "Currency",
    "Invoice",
    "InvoiceProfile",
    "InvoiceStatus",
    "NON_REPORTABLE_STATUSES",
    "Payment",
    "PaymentStatus",
    "PaymentType",
    "Vendor",
]
