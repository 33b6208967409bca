"""
Reporting Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Validates report requests, loads accounts and posted rows through the
kernel ports, and delegates to the pure functions in ``trial_balance`` and
``balance_sheet``.  No financial logic lives in this class.

Contract
--------
* Invalid requests come back as ``ReportFailure`` values, never exceptions.
* Port failures (``LookupUnavailableError``) propagate.
* Read-only: nothing is written.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.ports import AccountDirectory, CompanyFacts, LedgerQuery
from ledger_kernel.exceptions import InvalidReportParametersError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.reporting.balance_sheet import build_balance_sheet
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    ReportFailure,
    TrialBalanceReport,
)
from ledger_modules.reporting.trial_balance import (
    TrialBalanceFilter,
    aggregate_trial_balance,
)

logger = get_logger("modules.reporting.service")


class ReportingService:
    """Trial balance and balance sheet generation over the kernel ports."""

    def __init__(
        self,
        directory: AccountDirectory,
        company_facts: CompanyFacts,
        ledger: LedgerQuery,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._directory = directory
        self._company_facts = company_facts
        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _period_start(self, company_id: str, as_of_date: date) -> date:
        start = self._company_facts.get_fiscal_year_start(company_id, as_of_date)
        return start if start is not None else date(as_of_date.year, 1, 1)

    def _validate_request(
        self,
        company_id: str,
        as_of_date: date,
        period_start: date | None,
        comparison_date: date | None,
    ) -> ReportFailure | None:
        if not company_id:
            return ReportFailure("Company is required", "INVALID_INPUT", {"field": "company_id"})
        if as_of_date > self._clock.today():
            return ReportFailure(
                "As-of date cannot be in the future",
                "INVALID_INPUT",
                {"field": "as_of_date", "as_of_date": as_of_date},
            )
        if period_start is not None and period_start > as_of_date:
            return ReportFailure(
                "Period start cannot be after the as-of date",
                "INVALID_INPUT",
                {"field": "period_start", "period_start": period_start},
            )
        if comparison_date is not None and comparison_date >= as_of_date:
            return ReportFailure(
                "Comparison date must be before the as-of date",
                "INVALID_INPUT",
                {"field": "comparison_date", "comparison_date": comparison_date},
            )
        return None

    def _aggregate(
        self,
        company_id: str,
        as_of_date: date,
        period_start: date | None,
        include_zero_balances: bool,
        account_filter: TrialBalanceFilter | None,
    ) -> TrialBalanceReport:
        return aggregate_trial_balance(
            self._directory.list_accounts(company_id),
            self._ledger.get_posted_entries(company_id, as_of_date),
            company_id=company_id,
            currency=self._company_facts.get_base_currency(company_id),
            period_start=period_start or self._period_start(company_id, as_of_date),
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            include_zero_balances=include_zero_balances,
            account_filter=account_filter,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(
        self,
        company_id: str,
        as_of_date: date,
        *,
        period_start: date | None = None,
        comparison_date: date | None = None,
        include_zero_balances: bool | None = None,
        account_filter: TrialBalanceFilter | None = None,
    ) -> TrialBalanceReport | ReportFailure:
        failure = self._validate_request(company_id, as_of_date, period_start, comparison_date)
        if failure is not None:
            logger.info("trial_balance_request_rejected", extra={"code": failure.code})
            return failure

        include_zero = (
            self._config.include_zero_balances
            if include_zero_balances is None else include_zero_balances
        )
        with LogContext.bind(company_id=company_id):
            report = self._aggregate(
                company_id, as_of_date, period_start, include_zero, account_filter
            )
            if comparison_date is None:
                return report
            comparative = self._aggregate(
                company_id, comparison_date, None, include_zero, account_filter
            )
            return replace(
                report,
                metadata=replace(report.metadata, comparative_date=comparison_date),
                comparative=comparative,
            )

    def balance_sheet(
        self,
        company_id: str,
        as_of_date: date,
        *,
        comparison_date: date | None = None,
    ) -> BalanceSheetReport | ReportFailure:
        failure = self._validate_request(company_id, as_of_date, None, comparison_date)
        if failure is not None:
            logger.info("balance_sheet_request_rejected", extra={"code": failure.code})
            return failure

        with LogContext.bind(company_id=company_id):
            try:
                current = self._aggregate(company_id, as_of_date, None, False, None)
            except InvalidReportParametersError as exc:
                return ReportFailure(str(exc), "TRIAL_BALANCE_ERROR", {"parameter": exc.parameter})

            comparative = None
            if comparison_date is not None:
                try:
                    comparative = self._aggregate(company_id, comparison_date, None, False, None)
                except InvalidReportParametersError as exc:
                    return ReportFailure(
                        str(exc), "COMPARATIVE_TRIAL_BALANCE_ERROR", {"parameter": exc.parameter}
                    )

            return build_balance_sheet(current, comparative, self._config)
