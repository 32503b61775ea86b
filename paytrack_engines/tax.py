"""
Withholding Tax Engine - tax deducted at source on vendor invoices.

Pure functions with no I/O.  The same ``calculate_withholding`` serves the
report engine and any preview caller, so the two can never disagree on the
payable amount of an invoice.

Rounding policy:
    exact:    10% of 51 = 5.10
    rounded:  10% of 51 = 6      (ceiling to a whole unit, never floor or
                                  half-even, so the payer never under-withholds)

Usage:
    from decimal import Decimal
    from paytrack_engines.tax import calculate_withholding

    result = calculate_withholding(Decimal("10000"), Decimal("10.004"), round_up=True)
    print(result.tax_amount)      # 1001
    print(result.payable_amount)  # 8999
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

from paytrack_kernel.exceptions import InvalidAmountError, InvalidTaxPercentageError
from paytrack_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

MIN_TAX_PERCENTAGE = Decimal("0")
MAX_TAX_PERCENTAGE = Decimal("100")

_HUNDRED = Decimal("100")
_WHOLE_UNIT = Decimal("1")
_PERCENT_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class WithholdingResult:
    """
    Result of a withholding calculation.

    ``tax_amount + payable_amount == gross_amount`` always holds exactly.
    """

    gross_amount: Decimal
    tax_amount: Decimal
    payable_amount: Decimal
    exact_tax_amount: Decimal
    is_rounded: bool

    @property
    def has_tax(self) -> bool:
        return self.tax_amount > 0


def _validate_percentage(percentage: Decimal) -> None:
    if percentage < MIN_TAX_PERCENTAGE or percentage > MAX_TAX_PERCENTAGE:
        logger.warning("tax_percentage_out_of_range", extra={
            "tax_percentage": str(percentage),
        })
        raise InvalidTaxPercentageError(str(percentage))


def _exact_tax(gross_amount: Decimal, percentage: Decimal) -> Decimal:
    return gross_amount * percentage / _HUNDRED


def calculate_withholding(
    gross_amount: Decimal,
    tax_percentage: Decimal | None,
    round_up: bool = False,
    tax_applicable: bool = True,
) -> WithholdingResult:
    """
    Compute withholding tax and the net payable amount.

    Args:
        gross_amount: Invoice gross amount.
        tax_percentage: Percentage in 0-100 (e.g. 10 for 10%), or None.
        round_up: Ceiling the tax to the next whole currency unit.
        tax_applicable: Invoice-level flag; False means no tax at all.

    Returns:
        WithholdingResult.  No tax is withheld when tax is not applicable,
        the percentage is None or zero, or the gross amount is not positive.

    Raises:
        InvalidTaxPercentageError: If the percentage is outside 0-100.
    """
    if not tax_applicable or tax_percentage is None:
        return _no_tax(gross_amount)

    _validate_percentage(tax_percentage)

    if gross_amount <= 0 or tax_percentage == 0:
        return _no_tax(gross_amount)

    exact_tax = _exact_tax(gross_amount, tax_percentage)
    tax_amount = (
        exact_tax.quantize(_WHOLE_UNIT, rounding=ROUND_CEILING)
        if round_up
        else exact_tax
    )

    return WithholdingResult(
        gross_amount=gross_amount,
        tax_amount=tax_amount,
        payable_amount=gross_amount - tax_amount,
        exact_tax_amount=exact_tax,
        is_rounded=round_up and tax_amount != exact_tax,
    )


def _no_tax(gross_amount: Decimal) -> WithholdingResult:
    return WithholdingResult(
        gross_amount=gross_amount,
        tax_amount=Decimal("0"),
        payable_amount=gross_amount,
        exact_tax_amount=Decimal("0"),
        is_rounded=False,
    )


def payable_amount(
    gross_amount: Decimal,
    tax_percentage: Decimal | None,
    round_up: bool = False,
    tax_applicable: bool = True,
) -> Decimal:
    """Shorthand for ``calculate_withholding(...).payable_amount``."""
    return calculate_withholding(
        gross_amount, tax_percentage, round_up, tax_applicable,
    ).payable_amount


def would_rounding_change(gross_amount: Decimal, tax_percentage: Decimal) -> bool:
    """True if ceiling rounding would change the tax amount."""
    exact_tax = _exact_tax(gross_amount, tax_percentage)
    return exact_tax != exact_tax.quantize(_WHOLE_UNIT, rounding=ROUND_CEILING)


def rounding_difference(gross_amount: Decimal, tax_percentage: Decimal) -> Decimal:
    """Extra tax withheld by ceiling rounding (always >= 0 and < 1)."""
    exact_tax = _exact_tax(gross_amount, tax_percentage)
    return exact_tax.quantize(_WHOLE_UNIT, rounding=ROUND_CEILING) - exact_tax


def implied_tax_percentage(gross_amount: Decimal, tax_amount: Decimal) -> Decimal:
    """
    Reverse calculation: the percentage a given tax amount represents.

    Rounded half-up to two decimal places.

    Raises:
        InvalidAmountError: If gross is not positive, or the tax amount is
            negative or exceeds the gross amount.
    """
    if gross_amount <= 0:
        raise InvalidAmountError("gross_amount", str(gross_amount))
    if tax_amount < 0 or tax_amount > gross_amount:
        raise InvalidAmountError("tax_amount", str(tax_amount))

    return (tax_amount / gross_amount * _HUNDRED).quantize(
        _PERCENT_PLACES, rounding=ROUND_HALF_UP,
    )
