"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for the trial balance and the classified
balance sheet, plus the ``ReportFailure`` returned for invalid requests.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``is_balanced`` is always derived from stored totals, never stored itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from ledger_kernel.domain.accounts import AccountType
from ledger_kernel.domain.amounts import BALANCE_TOLERANCE, ZERO


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"


class SectionType(str, Enum):
    CURRENT_ASSETS = "current_assets"
    NON_CURRENT_ASSETS = "non_current_assets"
    CURRENT_LIABILITIES = "current_liabilities"
    NON_CURRENT_LIABILITIES = "non_current_liabilities"
    EQUITY = "equity"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    report_type: ReportType
    company_id: str
    currency: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    comparative_date: date | None = None
    account_count: int = 0
    accounts_with_activity: int = 0
    oldest_transaction: date | None = None
    newest_transaction: date | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceRow:
    """
    One account in the trial balance.

    Debit/credit columns present the raw net on the side where it falls.
    ``net_*`` columns are expressed on the account's normal side.
    """

    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    category: str | None
    opening_debit: Decimal
    opening_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    closing_debit: Decimal
    closing_credit: Decimal
    net_opening: Decimal
    net_movement: Decimal
    net_closing: Decimal

    @property
    def has_activity(self) -> bool:
        return self.period_debit != 0 or self.period_credit != 0


@dataclass(frozen=True)
class TrialBalanceTotals:
    opening_debit: Decimal = ZERO
    opening_credit: Decimal = ZERO
    period_debit: Decimal = ZERO
    period_credit: Decimal = ZERO
    closing_debit: Decimal = ZERO
    closing_credit: Decimal = ZERO
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    rows: tuple[TrialBalanceRow, ...]
    totals: TrialBalanceTotals
    tolerance: Decimal = BALANCE_TOLERANCE
    comparative: TrialBalanceReport | None = None
    success: Literal[True] = True

    @property
    def difference(self) -> Decimal:
        return self.totals.closing_debit - self.totals.closing_credit

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) <= self.tolerance

    def row_for(self, account_id: str) -> TrialBalanceRow | None:
        for row in self.rows:
            if row.account_id == account_id:
                return row
        return None


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetLine:
    account_id: str
    account_code: str
    account_name: str
    category: str | None
    balance: Decimal
    comparative_balance: Decimal | None = None
    variance: Decimal | None = None
    variance_percent: Decimal | None = None


@dataclass(frozen=True)
class BalanceSheetSection:
    name: str
    section_type: SectionType
    lines: tuple[BalanceSheetLine, ...]
    subtotal: Decimal
    comparative_subtotal: Decimal | None = None


@dataclass(frozen=True)
class BalanceSheetTotals:
    total_assets: Decimal
    total_current_assets: Decimal
    total_non_current_assets: Decimal
    total_liabilities: Decimal
    total_current_liabilities: Decimal
    total_non_current_liabilities: Decimal
    total_equity: Decimal
    retained_earnings: Decimal
    comparative_total_assets: Decimal | None = None
    comparative_total_liabilities: Decimal | None = None
    comparative_total_equity: Decimal | None = None

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity


@dataclass(frozen=True)
class BalanceCheck:
    assets_equals_liabilities_plus_equity: bool
    difference: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Classified balance sheet.

    The accounting equation is checked, not assumed: ``balance_check``
    always reports the signed difference, even when it is zero.
    """

    metadata: ReportMetadata
    sections: tuple[BalanceSheetSection, ...]
    totals: BalanceSheetTotals
    balance_check: BalanceCheck
    success: Literal[True] = True

    @property
    def is_balanced(self) -> bool:
        return self.balance_check.assets_equals_liabilities_plus_equity

    def section(self, section_type: SectionType) -> BalanceSheetSection | None:
        for s in self.sections:
            if s.section_type is section_type:
                return s
        return None


@dataclass(frozen=True)
class ReportFailure:
    error: str
    code: str
    details: dict[str, Any] = field(default_factory=dict)
    success: Literal[False] = False
