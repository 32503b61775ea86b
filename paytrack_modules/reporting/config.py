"""
Reporting Configuration Schema.

Labels, defaults and tolerances used when assembling monthly reports.
Loaded from YAML through ``paytrack_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Self

from paytrack_kernel.logging_config import get_logger
from paytrack_modules.reporting.models import SNAPSHOT_VERSION

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls section labels, fallback display values, the settlement
    tolerance and how malformed invoices are handled during assembly.
    """

    # Currency used when an invoice has none, and for all advance payments
    default_currency: str = "INR"

    # Section holding unpaid invoices and payments without a channel
    unpaid_section_label: str = "Unpaid"

    # Tolerance for the fully-paid comparison
    settlement_epsilon: Decimal = Decimal("0.01")

    # Schema version stamped on new snapshots
    snapshot_version: int = 1

    # Log and skip an invoice with malformed data instead of failing the report
    isolate_invoice_errors: bool = True

    # Display fallbacks
    linked_advance_label: str = "Linked"
    unknown_profile_label: str = "Unknown Profile"
    unnamed_invoice_label: str = "Unnamed Invoice"

    def __post_init__(self):
        if not isinstance(self.settlement_epsilon, Decimal):
            self.settlement_epsilon = Decimal(str(self.settlement_epsilon))
        if self.settlement_epsilon < 0:
            raise ValueError("settlement_epsilon cannot be negative")
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")
        if not 1 <= self.snapshot_version <= SNAPSHOT_VERSION:
            raise ValueError(
                f"snapshot_version must be between 1 and {SNAPSHOT_VERSION}"
            )
        if not self.unpaid_section_label:
            raise ValueError("unpaid_section_label cannot be empty")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """
        Create config from dictionary.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown reporting config keys: {', '.join(unknown)}")
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
