"""Tests for ReportingService over the in-memory ports."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.exceptions import LookupUnavailableError
from ledger_modules.reporting import (
    BalanceSheetReport,
    ReportFailure,
    ReportingConfig,
    ReportingService,
    TrialBalanceReport,
)


@pytest.fixture
def service(directory, company_facts, seeded_ledger, deterministic_clock):
    return ReportingService(
        directory, company_facts, seeded_ledger, deterministic_clock, ReportingConfig()
    )


class TestRequestValidation:
    def test_future_as_of_date(self, service):
        result = service.trial_balance("C1", date(2024, 7, 1))

        assert isinstance(result, ReportFailure)
        assert result.success is False
        assert result.code == "INVALID_INPUT"
        assert result.details["field"] == "as_of_date"

    def test_period_start_after_as_of(self, service):
        result = service.trial_balance("C1", date(2024, 6, 1), period_start=date(2024, 6, 2))

        assert result.details["field"] == "period_start"

    @pytest.mark.parametrize("comparison", [date(2024, 6, 30), date(2024, 7, 1)])
    def test_comparison_must_precede_as_of(self, service, comparison):
        result = service.balance_sheet("C1", date(2024, 6, 30), comparison_date=comparison)

        assert result.code == "INVALID_INPUT"
        assert result.details["field"] == "comparison_date"

    def test_company_required(self, service):
        assert service.balance_sheet("", date(2024, 6, 30)).code == "INVALID_INPUT"


class TestTrialBalance:
    def test_period_defaults_to_calendar_year(self, service):
        report = service.trial_balance("C1", date(2024, 6, 30))

        assert isinstance(report, TrialBalanceReport)
        assert report.metadata.period_start == date(2024, 1, 1)
        assert report.metadata.currency == "USD"
        assert report.metadata.generated_at == "2024-06-30T12:00:00+00:00"
        assert report.row_for("cash").net_opening == Decimal("0")
        assert report.is_balanced

    def test_period_follows_fiscal_year(self, service, company_facts):
        company_facts.fiscal_year_starts["C1"] = (4, 1)

        report = service.trial_balance("C1", date(2024, 6, 30))

        assert report.metadata.period_start == date(2024, 4, 1)
        assert report.row_for("cash").net_opening == Decimal("10000")

    def test_explicit_period_start(self, service):
        report = service.trial_balance("C1", date(2024, 6, 30), period_start=date(2024, 6, 1))

        assert report.row_for("ar").opening_debit == Decimal("1060")

    def test_comparative(self, service):
        report = service.trial_balance("C1", date(2024, 6, 30), comparison_date=date(2024, 3, 31))

        assert report.metadata.comparative_date == date(2024, 3, 31)
        assert report.comparative.metadata.as_of_date == date(2024, 3, 31)
        assert report.comparative.row_for("ar") is None

    def test_zero_balances_from_config(self, directory, company_facts, seeded_ledger,
                                       deterministic_clock):
        service = ReportingService(
            directory, company_facts, seeded_ledger, deterministic_clock,
            ReportingConfig(include_zero_balances=True),
        )

        report = service.trial_balance("C1", date(2024, 6, 30))

        assert report.row_for("bank") is not None
        assert service.trial_balance(
            "C1", date(2024, 6, 30), include_zero_balances=False
        ).row_for("bank") is None


class TestBalanceSheet:
    def test_balanced_sheet(self, service):
        sheet = service.balance_sheet("C1", date(2024, 6, 30))

        assert isinstance(sheet, BalanceSheetReport)
        assert sheet.is_balanced
        assert sheet.totals.total_assets == Decimal("15760")
        assert sheet.totals.retained_earnings == Decimal("700")

    def test_with_comparison(self, service):
        sheet = service.balance_sheet("C1", date(2024, 6, 30), comparison_date=date(2024, 3, 31))

        assert sheet.metadata.comparative_date == date(2024, 3, 31)
        assert sheet.totals.comparative_total_assets == Decimal("10000")


class TestPortFailures:
    def test_ledger_failure_propagates(self, directory, company_facts, deterministic_clock):
        class BrokenLedger:
            def get_posted_entries(self, company_id, up_to):
                raise LookupUnavailableError("LedgerQuery", "get_posted_entries", "timeout")

        service = ReportingService(directory, company_facts, BrokenLedger(), deterministic_clock)

        with pytest.raises(LookupUnavailableError):
            service.trial_balance("C1", date(2024, 6, 30))
