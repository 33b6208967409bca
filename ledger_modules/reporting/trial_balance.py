"""
Trial balance aggregation -- pure functions over posted ledger rows.

ZERO I/O. Same accounts and rows in, same report out.

Column semantics per account:
    opening  = rows dated before ``period_start``
    period   = rows with ``period_start <= posting_date <= as_of_date``
    closing  = opening + period

Each signed net is presented in the debit column when positive and the
credit column when negative, so closing debits equal closing credits for a
balanced ledger.  ``net_*`` values are restated on the account's normal side.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.accounts import Account, AccountType
from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.vouchers import PostedEntry
from ledger_kernel.exceptions import InvalidReportParametersError
from ledger_kernel.logging_config import get_logger
from ledger_modules.reporting.models import (
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
    TrialBalanceRow,
    TrialBalanceTotals,
)

logger = get_logger("modules.reporting.trial_balance")


@dataclass(frozen=True)
class TrialBalanceFilter:
    """Optional narrowing of the accounts reported. Empty means no filter."""

    account_types: frozenset[AccountType] = frozenset()
    account_ids: frozenset[str] = frozenset()
    code_from: str | None = None
    code_to: str | None = None

    def __post_init__(self) -> None:
        if self.code_from and self.code_to and self.code_from > self.code_to:
            raise InvalidReportParametersError(
                "code_from", f"{self.code_from} is after code_to {self.code_to}"
            )

    def accepts(self, account: Account) -> bool:
        if self.account_types and account.account_type not in self.account_types:
            return False
        if self.account_ids and account.id not in self.account_ids:
            return False
        if self.code_from and account.code < self.code_from:
            return False
        if self.code_to and account.code > self.code_to:
            return False
        return True


@dataclass
class _Sums:
    opening_debit: Decimal = ZERO
    opening_credit: Decimal = ZERO
    period_debit: Decimal = ZERO
    period_credit: Decimal = ZERO


def _split(net: Decimal) -> tuple[Decimal, Decimal]:
    """Present a signed debit-minus-credit net as (debit, credit) columns."""
    if net >= 0:
        return net, ZERO
    return ZERO, -net


def _build_row(account: Account, sums: _Sums) -> TrialBalanceRow:
    opening_net = sums.opening_debit - sums.opening_credit
    period_net = sums.period_debit - sums.period_credit
    closing_net = opening_net + period_net
    opening_debit, opening_credit = _split(opening_net)
    closing_debit, closing_credit = _split(closing_net)
    return TrialBalanceRow(
        account_id=account.id,
        account_code=account.code,
        account_name=account.name,
        account_type=account.account_type,
        category=account.category,
        opening_debit=opening_debit,
        opening_credit=opening_credit,
        period_debit=sums.period_debit,
        period_credit=sums.period_credit,
        closing_debit=closing_debit,
        closing_credit=closing_credit,
        net_opening=account.natural_balance(opening_debit, opening_credit),
        net_movement=account.natural_balance(sums.period_debit, sums.period_credit),
        net_closing=account.natural_balance(closing_debit, closing_credit),
    )


def _totals(rows: Iterable[TrialBalanceRow]) -> TrialBalanceTotals:
    columns = defaultdict(lambda: ZERO)
    by_type = defaultdict(lambda: ZERO)
    for row in rows:
        for name in (
            "opening_debit", "opening_credit", "period_debit",
            "period_credit", "closing_debit", "closing_credit",
        ):
            columns[name] += getattr(row, name)
        by_type[row.account_type] += row.net_closing
    return TrialBalanceTotals(
        **columns,
        total_assets=by_type[AccountType.ASSET],
        total_liabilities=by_type[AccountType.LIABILITY],
        total_equity=by_type[AccountType.EQUITY],
        total_revenue=by_type[AccountType.REVENUE],
        total_expenses=by_type[AccountType.EXPENSE],
    )


def aggregate_trial_balance(
    accounts: Iterable[Account],
    entries: Iterable[PostedEntry],
    *,
    company_id: str,
    currency: str,
    period_start: date,
    as_of_date: date,
    generated_at: str,
    include_zero_balances: bool = False,
    account_filter: TrialBalanceFilter | None = None,
) -> TrialBalanceReport:
    """
    Aggregate posted rows into a trial balance.

    Cancelled rows, rows of other companies and rows after ``as_of_date``
    are ignored.  Group accounts are never reported.

    Raises:
        InvalidReportParametersError: If ``period_start`` is after
            ``as_of_date``.
    """
    if period_start > as_of_date:
        raise InvalidReportParametersError(
            "period_start", f"{period_start} is after as_of_date {as_of_date}"
        )
    account_filter = account_filter or TrialBalanceFilter()
    company_accounts = [a for a in accounts if a.company_id == company_id]
    known_ids = {a.id for a in company_accounts}
    reportable = {
        a.id: a
        for a in company_accounts
        if not a.is_group and account_filter.accepts(a)
    }

    sums: dict[str, _Sums] = defaultdict(_Sums)
    unknown: set[str] = set()
    oldest: date | None = None
    newest: date | None = None
    for entry in entries:
        if (
            entry.is_cancelled
            or entry.company_id != company_id
            or entry.posting_date > as_of_date
        ):
            continue
        if entry.account_id not in reportable:
            if entry.account_id not in known_ids:
                unknown.add(entry.account_id)
            continue
        s = sums[entry.account_id]
        if entry.posting_date < period_start:
            s.opening_debit += entry.debit
            s.opening_credit += entry.credit
        else:
            s.period_debit += entry.debit
            s.period_credit += entry.credit
        oldest = entry.posting_date if oldest is None else min(oldest, entry.posting_date)
        newest = entry.posting_date if newest is None else max(newest, entry.posting_date)

    if unknown:
        logger.warning(
            "trial_balance_rows_without_account",
            extra={"account_ids": sorted(unknown), "company_id": company_id},
        )

    rows = []
    for account in sorted(reportable.values(), key=lambda a: a.code):
        row = _build_row(account, sums.get(account.id, _Sums()))
        is_zero = row.net_opening == 0 and not row.has_activity
        if is_zero and not include_zero_balances:
            continue
        rows.append(row)

    report = TrialBalanceReport(
        metadata=ReportMetadata(
            report_type=ReportType.TRIAL_BALANCE,
            company_id=company_id,
            currency=currency,
            as_of_date=as_of_date,
            generated_at=generated_at,
            period_start=period_start,
            account_count=len(rows),
            accounts_with_activity=sum(1 for r in rows if r.has_activity),
            oldest_transaction=oldest,
            newest_transaction=newest,
        ),
        rows=tuple(rows),
        totals=_totals(rows),
    )
    logger.info(
        "trial_balance_built",
        extra={
            "company_id": company_id,
            "as_of_date": as_of_date,
            "row_count": len(rows),
            "is_balanced": report.is_balanced,
        },
    )
    return report
