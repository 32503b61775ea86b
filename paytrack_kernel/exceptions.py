"""
Typed Exception Hierarchy for the Paytrack Kernel.

Every error has a TYPED exception class, a machine-readable ``code`` class
attribute, and carries its context as attributes rather than only inside
the message string.  Callers catch by type and report by code:

    try:
        lifecycle.finalize(month, year, actor)
    except ReportAlreadyFinalizedError as e:
        return ActionResult.failure(str(e), error_code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PaytrackError (base)
    |
    +-- AuthorizationError
    |   +-- NotAuthenticatedError
    |   +-- InsufficientPrivilegeError
    |
    +-- ReportPeriodError
    |   +-- ReportAlreadyFinalizedError
    |   +-- ReportNotFinalizedError
    |   +-- ReportAlreadySubmittedError
    |   +-- ReportPeriodNotFoundError
    |   +-- InvalidReportTransitionError
    |   +-- InvalidReportViewError
    |
    +-- DataIntegrityError
    |   +-- NonPositivePayableError
    |   +-- InvalidTaxPercentageError
    |   +-- InvalidAmountError
    |
    +-- NotFoundError
    |   +-- InvoiceNotFoundError
    |
    +-- SnapshotError
    |   +-- UnsupportedSnapshotVersionError
    |   +-- CorruptSnapshotError
    |
    +-- InvalidPeriodError (also a ValueError)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Authorization   | NOT_AUTHENTICATED           | Mutation without an authenticated actor
                | INSUFFICIENT_PRIVILEGE      | Actor may not perform the mutation
----------------|-----------------------------|-----------------------------------------
Report period   | REPORT_ALREADY_FINALIZED    | Finalize on FINALIZED/SUBMITTED period
                | REPORT_NOT_FINALIZED        | Submit on a DRAFT (or missing) period
                | REPORT_ALREADY_SUBMITTED    | Submit on a SUBMITTED period
                | REPORT_PERIOD_NOT_FOUND     | Unfinalize a period that never existed
                | INVALID_REPORT_TRANSITION   | Action not allowed from current state
                | INVALID_REPORT_VIEW         | View not offered by the requested report
----------------|-----------------------------|-----------------------------------------
Data integrity  | NON_POSITIVE_PAYABLE        | Payable amount <= 0 (e.g. 100% tax)
                | INVALID_TAX_PERCENTAGE      | Tax percentage outside 0-100
                | INVALID_AMOUNT              | Malformed monetary amount
----------------|-----------------------------|-----------------------------------------
Not found       | INVOICE_NOT_FOUND           | Invoice id does not exist
----------------|-----------------------------|-----------------------------------------
Snapshot        | UNSUPPORTED_SNAPSHOT_VERSION| Snapshot written by a newer schema
                | CORRUPT_SNAPSHOT            | Stored snapshot payload cannot be parsed
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD              | Month outside 1-12

Data-integrity errors raised while assembling a report are isolated per
invoice: the offending invoice is logged and excluded, the rest of the
report is still produced.
"""


class PaytrackError(Exception):
    """
    Base exception for all paytrack errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYTRACK_ERROR"


# Authorization exceptions


class AuthorizationError(PaytrackError):
    """Base exception for authorization failures."""

    code: str = "AUTHORIZATION_ERROR"


class NotAuthenticatedError(AuthorizationError):
    """Mutation attempted without an authenticated actor."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unauthorized: sign in to {action}")


class InsufficientPrivilegeError(AuthorizationError):
    """Actor lacks the privilege required for a mutation."""

    code: str = "INSUFFICIENT_PRIVILEGE"

    def __init__(self, actor_id: str, action: str, required: str):
        self.actor_id = actor_id
        self.action = action
        self.required = required
        super().__init__(
            f"Unauthorized: {required} privilege is required to {action}"
        )


# Report period exceptions


class ReportPeriodError(PaytrackError):
    """Base exception for report lifecycle errors."""

    code: str = "REPORT_PERIOD_ERROR"


class ReportAlreadyFinalizedError(ReportPeriodError):
    """Period is already finalized or submitted."""

    code: str = "REPORT_ALREADY_FINALIZED"

    def __init__(self, month: int, year: int, status: str):
        self.month = month
        self.year = year
        self.status = status
        super().__init__(
            f"Report {year}-{month:02d} is already finalized or submitted "
            f"(status: {status})"
        )


class ReportNotFinalizedError(ReportPeriodError):
    """Period must be finalized before it can be submitted."""

    code: str = "REPORT_NOT_FINALIZED"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Report {year}-{month:02d} must be finalized before submitting"
        )


class ReportAlreadySubmittedError(ReportPeriodError):
    """Period has already been submitted."""

    code: str = "REPORT_ALREADY_SUBMITTED"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(f"Report {year}-{month:02d} is already submitted")


class ReportPeriodNotFoundError(ReportPeriodError):
    """No report period row exists for the given month/year."""

    code: str = "REPORT_PERIOD_NOT_FOUND"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(f"Report period {year}-{month:02d} not found")


class InvalidReportTransitionError(ReportPeriodError):
    """The lifecycle workflow has no such transition from the current state."""

    code: str = "INVALID_REPORT_TRANSITION"

    def __init__(self, from_state: str, action: str):
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Action '{action}' is not allowed from report state '{from_state}'"
        )


class InvalidReportViewError(ReportPeriodError):
    """The requested view is not offered for this kind of report."""

    code: str = "INVALID_REPORT_VIEW"

    def __init__(self, view: str, allowed: tuple[str, ...]):
        self.view = view
        self.allowed = allowed
        super().__init__(
            f"Invalid view '{view}' (expected one of: {', '.join(allowed)})"
        )


# Data integrity exceptions


class DataIntegrityError(PaytrackError):
    """Base exception for malformed invoice/payment data."""

    code: str = "DATA_INTEGRITY_ERROR"


class NonPositivePayableError(DataIntegrityError):
    """
    Payable amount after withholding is zero or negative.

    Settlement percentages are undefined for such invoices.
    """

    code: str = "NON_POSITIVE_PAYABLE"

    def __init__(self, invoice_amount: str, payable_amount: str):
        self.invoice_amount = invoice_amount
        self.payable_amount = payable_amount
        super().__init__(
            f"Payable amount {payable_amount} is not positive "
            f"(invoice amount: {invoice_amount})"
        )


class InvalidTaxPercentageError(DataIntegrityError):
    """Tax percentage outside the 0-100 range."""

    code: str = "INVALID_TAX_PERCENTAGE"

    def __init__(self, percentage: str):
        self.percentage = percentage
        super().__init__(
            f"Invalid tax percentage {percentage}: must be between 0 and 100"
        )


class InvalidAmountError(DataIntegrityError):
    """A monetary field is missing or not a valid decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid amount for {field}: {value}")


# Not-found exceptions


class NotFoundError(PaytrackError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given id was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


# Snapshot exceptions


class SnapshotError(PaytrackError):
    """Base exception for frozen report snapshots."""

    code: str = "SNAPSHOT_ERROR"


class UnsupportedSnapshotVersionError(SnapshotError):
    """Snapshot was written by a newer schema than this code understands."""

    code: str = "UNSUPPORTED_SNAPSHOT_VERSION"

    def __init__(self, version: int, supported: int):
        self.version = version
        self.supported = supported
        super().__init__(
            f"Unsupported snapshot version {version} (supported up to {supported})"
        )


class CorruptSnapshotError(SnapshotError):
    """Stored snapshot payload is missing fields or holds unparseable values."""

    code: str = "CORRUPT_SNAPSHOT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Corrupt report snapshot: {reason}")


# Period exceptions


class InvalidPeriodError(PaytrackError, ValueError):
    """Month/year pair does not name a calendar month."""

    code: str = "INVALID_PERIOD"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(f"Invalid reporting period: month={month}, year={year}")
