"""
Period Attribution Policies (``paytrack_modules.reporting.policies``).

Responsibility
--------------
Declares, per report variant, which invoices and payments belong to a
month and how each entry is tagged.  The assembler runs one pipeline and
reads every variant-specific decision from an ``AttributionPolicy``:

===============  ======================  =========  ==================  ========
Variant          Invoice date key chain  Payments   Unpaid entries      Extras
===============  ======================  =========  ==================  ========
LIVE             reporting_month,        in month   skip if settled     advances
                 received_date,                     elsewhere, else
                 invoice_date                       UNPAID / PARTIAL
INVOICE_DATE     invoice_date            all        UNPAID              --
COMBINED         invoice_date            all        UNPAID              orphan
                                                                        payments,
                                                                        advances
===============  ======================  =========  ==================  ========

The amount paid before a listed payment comes from ``PaidBeforeRule``.
LIVE counts only payments dated strictly earlier, so two payments made on
the same day are each resolved as if the other had not happened.  The
invoice-date variants carry a running total down the invoice's payments.
Orphan payments are always resolved against strictly earlier dates.

Entry types are decided by a first-match rule table per variant
(``EntryTypeRule``), never by nested conditionals in the assembler.

Architecture position
---------------------
**Modules layer** -- pure declarations, ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable

from paytrack_modules.reporting.models import EntryType


class ReportVariant(str, Enum):
    """The three period-attribution strategies."""

    LIVE = "live"
    INVOICE_DATE = "invoice_date"
    COMBINED = "combined"


class DateKey(str, Enum):
    """Invoice columns that can anchor an invoice to a month."""

    REPORTING_MONTH = "reporting_month"
    RECEIVED_DATE = "received_date"
    INVOICE_DATE = "invoice_date"


class PaymentScope(str, Enum):
    """Which approved payments of a qualifying invoice are listed."""

    IN_PERIOD = "in_period"
    ALL = "all"


class PaidBeforeRule(str, Enum):
    """How much of an invoice counts as paid before one of its payments."""

    # Payments dated strictly earlier; same-day payments never count.
    EARLIER_DATES = "earlier_dates"
    # Running total over the listed history in payment order.
    RUNNING_TOTAL = "running_total"


class UnpaidRule(str, Enum):
    """How an invoice without listed payments is reported."""

    # Skip when settled by payments in other months; otherwise UNPAID, or
    # PARTIALLY_PAID with the share paid so far.
    HISTORY_AWARE = "history_aware"
    # Listed only when it has no approved payment at all, always UNPAID.
    ALWAYS_UNPAID = "always_unpaid"


@dataclass(frozen=True)
class EntryFacts:
    """
    What the entry-type rules may look at.

    ``invoice_in_period`` / ``payment_in_period`` are None when the
    underlying date is absent (no invoice date, or no payment).
    """

    is_pending: bool
    invoice_in_period: bool | None
    payment_in_period: bool | None
    is_orphan: bool = False


@dataclass(frozen=True)
class EntryTypeRule:
    """One row of an entry-type decision table."""

    name: str
    applies: Callable[[EntryFacts], bool]
    entry_type: EntryType


@dataclass(frozen=True)
class AttributionPolicy:
    """Everything that distinguishes one report variant from another."""

    variant: ReportVariant
    invoice_keys: tuple[DateKey, ...]
    payment_scope: PaymentScope
    paid_before: PaidBeforeRule
    unpaid_rule: UnpaidRule
    include_orphan_payments: bool
    include_advance_payments: bool
    entry_type_rules: tuple[EntryTypeRule, ...]

    def entry_type(self, facts: EntryFacts) -> EntryType:
        """First matching rule wins; STANDARD when none match."""
        for rule in self.entry_type_rules:
            if rule.applies(facts):
                return rule.entry_type
        return EntryType.STANDARD

    @property
    def anchors_on_invoice_date_only(self) -> bool:
        return self.invoice_keys == (DateKey.INVOICE_DATE,)


def attribution_date(
    keys: tuple[DateKey, ...],
    reporting_month: date | None,
    received_date: date | None,
    invoice_date: date | None,
) -> date | None:
    """
    The date that anchors an invoice to a month.

    The first key in ``keys`` whose column is set wins; later keys are
    only consulted when every earlier one is empty.
    """
    values = {
        DateKey.REPORTING_MONTH: reporting_month,
        DateKey.RECEIVED_DATE: received_date,
        DateKey.INVOICE_DATE: invoice_date,
    }
    for key in keys:
        if values[key] is not None:
            return values[key]
    return None


# =========================================================================
# Entry-type decision tables
# =========================================================================

_PENDING = EntryTypeRule(
    name="pending_invoice",
    applies=lambda f: f.is_pending,
    entry_type=EntryType.ADVANCE_PAYMENT,
)

_INVOICE_OUTSIDE_PERIOD = EntryTypeRule(
    name="invoice_dated_elsewhere",
    applies=lambda f: f.invoice_in_period is False,
    entry_type=EntryType.LATE_INVOICE,
)

_ORPHAN_PAYMENT = EntryTypeRule(
    name="payment_for_other_month_invoice",
    applies=lambda f: f.is_orphan,
    entry_type=EntryType.LATE_INVOICE,
)

_PAYMENT_OUTSIDE_PERIOD = EntryTypeRule(
    name="payment_made_elsewhere",
    applies=lambda f: f.payment_in_period is False,
    entry_type=EntryType.LATE_PAYMENT,
)


LIVE_POLICY = AttributionPolicy(
    variant=ReportVariant.LIVE,
    invoice_keys=(DateKey.REPORTING_MONTH, DateKey.RECEIVED_DATE, DateKey.INVOICE_DATE),
    payment_scope=PaymentScope.IN_PERIOD,
    paid_before=PaidBeforeRule.EARLIER_DATES,
    unpaid_rule=UnpaidRule.HISTORY_AWARE,
    include_orphan_payments=False,
    include_advance_payments=True,
    entry_type_rules=(_PENDING, _INVOICE_OUTSIDE_PERIOD),
)

INVOICE_DATE_POLICY = AttributionPolicy(
    variant=ReportVariant.INVOICE_DATE,
    invoice_keys=(DateKey.INVOICE_DATE,),
    payment_scope=PaymentScope.ALL,
    paid_before=PaidBeforeRule.RUNNING_TOTAL,
    unpaid_rule=UnpaidRule.ALWAYS_UNPAID,
    include_orphan_payments=False,
    include_advance_payments=False,
    entry_type_rules=(_PENDING,),
)

COMBINED_POLICY = AttributionPolicy(
    variant=ReportVariant.COMBINED,
    invoice_keys=(DateKey.INVOICE_DATE,),
    payment_scope=PaymentScope.ALL,
    paid_before=PaidBeforeRule.RUNNING_TOTAL,
    unpaid_rule=UnpaidRule.ALWAYS_UNPAID,
    include_orphan_payments=True,
    include_advance_payments=True,
    entry_type_rules=(_PENDING, _ORPHAN_PAYMENT, _PAYMENT_OUTSIDE_PERIOD),
)

POLICIES: dict[ReportVariant, AttributionPolicy] = {
    ReportVariant.LIVE: LIVE_POLICY,
    ReportVariant.INVOICE_DATE: INVOICE_DATE_POLICY,
    ReportVariant.COMBINED: COMBINED_POLICY,
}


def get_policy(variant: ReportVariant | str) -> AttributionPolicy:
    """Policy for ``variant``.  Raises ValueError for an unknown variant."""
    return POLICIES[ReportVariant(variant)]
