"""
Pure domain layer.

Value objects and DTOs with NO dependencies on the ORM, the database or
I/O (``SystemClock`` excepted).
"""

from paytrack_kernel.domain.actor import Actor, ActorRole
from paytrack_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from paytrack_kernel.domain.dtos import (
    AdvancePaymentInfo,
    ChannelInfo,
    InvoiceInfo,
    OrphanPayment,
    PaymentInfo,
)
from paytrack_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Actor",
    "ActorRole",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # DTOs
    "AdvancePaymentInfo",
    "ChannelInfo",
    "InvoiceInfo",
    "OrphanPayment",
    "PaymentInfo",
    # Workflow
    "Guard",
    "Transition",
    "Workflow",
]
