"""
Module: paytrack_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines used by the monthly report.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import paytrack_kernel exceptions and logging.
    MUST NOT import paytrack_services or paytrack_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from paytrack_engines import calculate_withholding, resolve_payment_status
    from paytrack_engines import month_window
"""

from paytrack_engines.periods import (
    PeriodWindow,
    month_label,
    month_window,
    parse_reporting_month,
    reporting_month_start,
)
from paytrack_engines.settlement import (
    SETTLEMENT_EPSILON,
    SettlementResult,
    SettlementStatus,
    invoice_payable,
    is_fully_settled,
    resolve_payment_status,
    settlement_percentage,
)
from paytrack_engines.tax import (
    WithholdingResult,
    calculate_withholding,
    implied_tax_percentage,
    payable_amount,
    rounding_difference,
    would_rounding_change,
)

__all__ = [
    # Periods
    "PeriodWindow",
    "month_label",
    "month_window",
    "parse_reporting_month",
    "reporting_month_start",
    # Settlement
    "SETTLEMENT_EPSILON",
    "SettlementResult",
    "SettlementStatus",
    "invoice_payable",
    "is_fully_settled",
    "resolve_payment_status",
    "settlement_percentage",
    # Tax
    "WithholdingResult",
    "calculate_withholding",
    "implied_tax_percentage",
    "payable_amount",
    "rounding_difference",
    "would_rounding_change",
]
