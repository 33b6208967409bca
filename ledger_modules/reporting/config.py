"""
Reporting Configuration Schema.

Classification of balance-sheet accounts into current and non-current
sections uses the account ``category`` taxonomy.  Anything not listed as
current is non-current.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Self

from ledger_kernel.exceptions import PolicyConfigurationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")

DEFAULT_CURRENT_ASSET_CATEGORIES = (
    "CASH",
    "CASH_EQUIVALENTS",
    "ACCOUNTS_RECEIVABLE",
    "INVENTORY",
    "PREPAID_EXPENSES",
    "SHORT_TERM_INVESTMENTS",
    "OTHER_CURRENT_ASSETS",
)

DEFAULT_CURRENT_LIABILITY_CATEGORIES = (
    "ACCOUNTS_PAYABLE",
    "ACCRUED_LIABILITIES",
    "SHORT_TERM_DEBT",
    "CURRENT_PORTION_LONG_TERM_DEBT",
    "DEFERRED_REVENUE",
    "OTHER_CURRENT_LIABILITIES",
)


@dataclass(frozen=True)
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls balance sheet classification, zero-row handling and the
    presentation of the synthetic retained earnings line.
    """

    current_asset_categories: tuple[str, ...] = DEFAULT_CURRENT_ASSET_CATEGORIES
    current_liability_categories: tuple[str, ...] = DEFAULT_CURRENT_LIABILITY_CATEGORIES

    # Whether rows with no opening balance and no activity are reported
    include_zero_balances: bool = False

    retained_earnings_code: str = "9999"
    retained_earnings_name: str = "Retained Earnings"

    balance_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        if self.balance_tolerance < 0:
            raise PolicyConfigurationError("reporting.balance_tolerance", "cannot be negative")
        overlap = set(self.current_asset_categories) & set(self.current_liability_categories)
        if overlap:
            raise PolicyConfigurationError(
                "reporting.categories",
                f"categories listed as both asset and liability: {sorted(overlap)}",
            )

    def is_current_asset(self, category: str | None) -> bool:
        return category is not None and category.upper() in self.current_asset_categories

    def is_current_liability(self, category: str | None) -> bool:
        return category is not None and category.upper() in self.current_liability_categories

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a mapping such as the YAML ``reporting`` section."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise PolicyConfigurationError("reporting", f"unknown keys {unknown}")
        kwargs = dict(data)
        for key in ("current_asset_categories", "current_liability_categories"):
            if key in kwargs:
                kwargs[key] = tuple(str(c).upper() for c in kwargs[key])
        if "balance_tolerance" in kwargs:
            kwargs["balance_tolerance"] = Decimal(str(kwargs["balance_tolerance"]))
        if not isinstance(kwargs.get("include_zero_balances", False), bool):
            raise PolicyConfigurationError(
                "reporting.include_zero_balances",
                f"expected true or false, got {kwargs['include_zero_balances']!r}",
            )
        if "retained_earnings_code" in kwargs:
            kwargs["retained_earnings_code"] = str(kwargs["retained_earnings_code"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**kwargs)
