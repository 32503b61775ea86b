"""
Settlement Engine - status of a single payment against an invoice.

Pure functions with no I/O.  Given an invoice's tax terms, the cumulative
amount paid before a payment, and the payment itself, decide whether that
payment left the invoice partially paid, completed it in one shot, or
completed it as the last of several instalments.

Usage:
    from decimal import Decimal
    from paytrack_engines.settlement import resolve_payment_status

    result = resolve_payment_status(
        invoice_amount=Decimal("10000"),
        tax_applicable=True,
        tax_percentage=Decimal("10"),
        tax_rounded=False,
        total_paid_before=Decimal("4500"),
        this_payment_amount=Decimal("4500"),
    )
    print(result.status)      # SettlementStatus.PAID_PARTIAL
    print(result.percentage)  # 50
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from paytrack_engines.tax import calculate_withholding
from paytrack_kernel.exceptions import NonPositivePayableError

# Absorbs sub-cent residue from upstream float conversions.
SETTLEMENT_EPSILON = Decimal("0.01")

_HUNDRED = Decimal("100")


class SettlementStatus(str, Enum):
    """Status of a reportable entry."""

    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID_PARTIAL = "PAID_PARTIAL"  # completed the invoice, but was itself partial
    PAID = "PAID"
    ADVANCE = "ADVANCE"


@dataclass(frozen=True)
class SettlementResult:
    """Resolved status of one payment."""

    status: SettlementStatus
    percentage: int | None
    payable_amount: Decimal
    total_paid_after: Decimal
    is_fully_paid: bool

    def as_advance(self) -> SettlementResult:
        """
        Override for payments against a pending invoice.

        The invoice document does not exist yet, so the entry is reported as
        ADVANCE with no percentage regardless of the resolved status.
        """
        return SettlementResult(
            status=SettlementStatus.ADVANCE,
            percentage=None,
            payable_amount=self.payable_amount,
            total_paid_after=self.total_paid_after,
            is_fully_paid=self.is_fully_paid,
        )


def settlement_percentage(amount: Decimal, payable_amount: Decimal) -> int:
    """``amount`` as a whole percentage of ``payable_amount``, rounded half-up."""
    if payable_amount <= 0:
        raise NonPositivePayableError(str(amount), str(payable_amount))
    return int(
        (amount / payable_amount * _HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )


def is_fully_settled(
    total_paid: Decimal,
    payable_amount: Decimal,
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> bool:
    """True if ``total_paid`` covers ``payable_amount`` within ``epsilon``."""
    return total_paid >= payable_amount - epsilon


def invoice_payable(
    invoice_amount: Decimal,
    tax_applicable: bool,
    tax_percentage: Decimal | None,
    tax_rounded: bool,
) -> Decimal:
    """
    Payable amount of an invoice, guarded against non-positive results.

    Raises:
        NonPositivePayableError: If the payable amount is zero or negative
            (zero-amount invoice, or 100% withholding).
    """
    payable = calculate_withholding(
        invoice_amount, tax_percentage, tax_rounded, tax_applicable,
    ).payable_amount
    if payable <= 0:
        raise NonPositivePayableError(str(invoice_amount), str(payable))
    return payable


def resolve_payment_status(
    invoice_amount: Decimal,
    tax_applicable: bool,
    tax_percentage: Decimal | None,
    tax_rounded: bool,
    total_paid_before: Decimal,
    this_payment_amount: Decimal,
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> SettlementResult:
    """
    Resolve the settlement status of one payment.

    Args:
        invoice_amount: Invoice gross amount.
        tax_applicable: Whether withholding applies to the invoice.
        tax_percentage: Withholding percentage, or None.
        tax_rounded: Ceiling-round the withholding.
        total_paid_before: Approved payments made before this one.
        this_payment_amount: Amount of the payment being evaluated.
        epsilon: Tolerance for the fully-paid comparison.

    Returns:
        PAID (percentage None) when this payment alone covers at least 100%
        of the payable amount and the invoice is settled; PAID_PARTIAL when
        it completed the invoice as a partial contribution; otherwise
        PARTIALLY_PAID.  Percentages are this payment's own share.

    Raises:
        NonPositivePayableError: If the payable amount is zero or negative.
    """
    payable = invoice_payable(invoice_amount, tax_applicable, tax_percentage, tax_rounded)

    total_paid_after = total_paid_before + this_payment_amount
    this_percentage = settlement_percentage(this_payment_amount, payable)
    fully_paid = is_fully_settled(total_paid_after, payable, epsilon)

    if fully_paid:
        if this_percentage >= 100:
            status, percentage = SettlementStatus.PAID, None
        else:
            status, percentage = SettlementStatus.PAID_PARTIAL, this_percentage
    else:
        status, percentage = SettlementStatus.PARTIALLY_PAID, this_percentage

    return SettlementResult(
        status=status,
        percentage=percentage,
        payable_amount=payable,
        total_paid_after=total_paid_after,
        is_fully_paid=fully_paid,
    )
