"""
Balance sheet classification -- pure function over trial balance reports.

ZERO I/O.  Classification rules:

1. Only ASSET, LIABILITY and EQUITY rows appear as lines.
2. Assets and liabilities split into current / non-current by the account
   category taxonomy of ``ReportingConfig``.
3. Retained earnings is a synthetic equity line equal to cumulative
   revenue minus expense (net closing, normal side).
4. Sections with no lines are omitted; Equity always carries the
   retained earnings line.
5. The accounting equation is verified and the signed difference reported.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ledger_kernel.domain.accounts import AccountType
from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.logging_config import get_logger
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceCheck,
    BalanceSheetLine,
    BalanceSheetReport,
    BalanceSheetSection,
    BalanceSheetTotals,
    ReportMetadata,
    ReportType,
    SectionType,
    TrialBalanceReport,
    TrialBalanceRow,
)

logger = get_logger("modules.reporting.balance_sheet")

RETAINED_EARNINGS_ID = "retained-earnings"
RETAINED_EARNINGS_CATEGORY = "RETAINED_EARNINGS"

_SECTION_NAMES = {
    SectionType.CURRENT_ASSETS: "Current Assets",
    SectionType.NON_CURRENT_ASSETS: "Non-Current Assets",
    SectionType.CURRENT_LIABILITIES: "Current Liabilities",
    SectionType.NON_CURRENT_LIABILITIES: "Non-Current Liabilities",
    SectionType.EQUITY: "Equity",
}

_BALANCE_SHEET_TYPES = frozenset({AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY})


def classify_row(row: TrialBalanceRow, config: ReportingConfig) -> SectionType | None:
    """Section for a trial balance row, or None for profit-and-loss rows."""
    if row.account_type is AccountType.ASSET:
        if config.is_current_asset(row.category):
            return SectionType.CURRENT_ASSETS
        return SectionType.NON_CURRENT_ASSETS
    if row.account_type is AccountType.LIABILITY:
        if config.is_current_liability(row.category):
            return SectionType.CURRENT_LIABILITIES
        return SectionType.NON_CURRENT_LIABILITIES
    if row.account_type is AccountType.EQUITY:
        return SectionType.EQUITY
    return None


def compute_retained_earnings(report: TrialBalanceReport) -> Decimal:
    """Cumulative revenue minus expense from a trial balance."""
    revenue = sum(
        (r.net_closing for r in report.rows if r.account_type is AccountType.REVENUE), ZERO
    )
    expense = sum(
        (r.net_closing for r in report.rows if r.account_type is AccountType.EXPENSE), ZERO
    )
    return revenue - expense


def _variance(balance: Decimal, comparative: Decimal | None) -> tuple[Decimal | None, Decimal | None]:
    if comparative is None:
        return None, None
    variance = balance - comparative
    if comparative == 0:
        return variance, None
    percent = (variance / abs(comparative) * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return variance, percent


def _line(
    account_id: str,
    code: str,
    name: str,
    category: str | None,
    balance: Decimal,
    comparative: Decimal | None,
) -> BalanceSheetLine:
    variance, percent = _variance(balance, comparative)
    return BalanceSheetLine(
        account_id=account_id,
        account_code=code,
        account_name=name,
        category=category,
        balance=balance,
        comparative_balance=comparative,
        variance=variance,
        variance_percent=percent,
    )


def build_balance_sheet(
    current: TrialBalanceReport,
    comparative: TrialBalanceReport | None = None,
    config: ReportingConfig | None = None,
) -> BalanceSheetReport:
    """Classify a trial balance (and optional comparative) into a balance sheet."""
    config = config or ReportingConfig.with_defaults()
    has_comparative = comparative is not None

    rows_by_account: dict[str, TrialBalanceRow] = {}
    current_balance: dict[str, Decimal] = {}
    comparative_balance: dict[str, Decimal] = {}
    for row in current.rows:
        if row.account_type in _BALANCE_SHEET_TYPES:
            rows_by_account[row.account_id] = row
            current_balance[row.account_id] = row.net_closing
    if comparative is not None:
        for row in comparative.rows:
            if row.account_type in _BALANCE_SHEET_TYPES:
                rows_by_account.setdefault(row.account_id, row)
                comparative_balance[row.account_id] = row.net_closing

    grouped: dict[SectionType, list[BalanceSheetLine]] = {s: [] for s in SectionType}
    for account_id, row in sorted(rows_by_account.items(), key=lambda kv: kv[1].account_code):
        section = classify_row(row, config)
        grouped[section].append(_line(
            account_id,
            row.account_code,
            row.account_name,
            row.category,
            current_balance.get(account_id, ZERO),
            comparative_balance.get(account_id, ZERO) if has_comparative else None,
        ))

    retained = compute_retained_earnings(current)
    retained_comparative = compute_retained_earnings(comparative) if comparative else None
    grouped[SectionType.EQUITY].append(_line(
        RETAINED_EARNINGS_ID,
        config.retained_earnings_code,
        config.retained_earnings_name,
        RETAINED_EARNINGS_CATEGORY,
        retained,
        retained_comparative,
    ))

    sections: list[BalanceSheetSection] = []
    subtotals: dict[SectionType, Decimal] = {}
    comparative_subtotals: dict[SectionType, Decimal] = {}
    for section_type in SectionType:
        lines = grouped[section_type]
        subtotal = sum((line.balance for line in lines), ZERO)
        comparative_subtotal = (
            sum((line.comparative_balance or ZERO for line in lines), ZERO)
            if has_comparative else None
        )
        subtotals[section_type] = subtotal
        if comparative_subtotal is not None:
            comparative_subtotals[section_type] = comparative_subtotal
        if lines:
            sections.append(BalanceSheetSection(
                name=_SECTION_NAMES[section_type],
                section_type=section_type,
                lines=tuple(lines),
                subtotal=subtotal,
                comparative_subtotal=comparative_subtotal,
            ))

    def _sum(mapping: dict[SectionType, Decimal], *types: SectionType) -> Decimal:
        return sum((mapping.get(t, ZERO) for t in types), ZERO)

    totals = BalanceSheetTotals(
        total_assets=_sum(subtotals, SectionType.CURRENT_ASSETS, SectionType.NON_CURRENT_ASSETS),
        total_current_assets=subtotals[SectionType.CURRENT_ASSETS],
        total_non_current_assets=subtotals[SectionType.NON_CURRENT_ASSETS],
        total_liabilities=_sum(
            subtotals, SectionType.CURRENT_LIABILITIES, SectionType.NON_CURRENT_LIABILITIES
        ),
        total_current_liabilities=subtotals[SectionType.CURRENT_LIABILITIES],
        total_non_current_liabilities=subtotals[SectionType.NON_CURRENT_LIABILITIES],
        total_equity=subtotals[SectionType.EQUITY],
        retained_earnings=retained,
        comparative_total_assets=(
            _sum(comparative_subtotals, SectionType.CURRENT_ASSETS, SectionType.NON_CURRENT_ASSETS)
            if has_comparative else None
        ),
        comparative_total_liabilities=(
            _sum(
                comparative_subtotals,
                SectionType.CURRENT_LIABILITIES,
                SectionType.NON_CURRENT_LIABILITIES,
            )
            if has_comparative else None
        ),
        comparative_total_equity=(
            comparative_subtotals[SectionType.EQUITY] if has_comparative else None
        ),
    )

    difference = totals.total_assets - totals.total_liabilities_and_equity
    balance_check = BalanceCheck(
        assets_equals_liabilities_plus_equity=abs(difference) <= config.balance_tolerance,
        difference=difference,
    )

    meta = current.metadata
    report = BalanceSheetReport(
        metadata=ReportMetadata(
            report_type=ReportType.BALANCE_SHEET,
            company_id=meta.company_id,
            currency=meta.currency,
            as_of_date=meta.as_of_date,
            generated_at=meta.generated_at,
            period_start=meta.period_start,
            comparative_date=comparative.metadata.as_of_date if comparative else None,
            account_count=len(rows_by_account),
            accounts_with_activity=meta.accounts_with_activity,
            oldest_transaction=meta.oldest_transaction,
            newest_transaction=meta.newest_transaction,
        ),
        sections=tuple(sections),
        totals=totals,
        balance_check=balance_check,
    )
    log = logger.info if balance_check.assets_equals_liabilities_plus_equity else logger.warning
    log(
        "balance_sheet_built",
        extra={
            "company_id": meta.company_id,
            "as_of_date": meta.as_of_date,
            "total_assets": totals.total_assets,
            "difference": difference,
        },
    )
    return report
