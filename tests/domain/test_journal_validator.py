"""
Tests for validate_journal.

Covers the fixed check order: segregation of duties, line count, line
shape, balance, currency, future date and the batched chart-of-accounts
policy.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.dtos import IssueKind, Severity
from ledger_kernel.domain.journal import JournalRejected, JournalValidated
from ledger_kernel.domain.journal_validator import (
    check_balance,
    check_line_amounts,
    validate_journal,
)
from ledger_kernel.domain.policy import PostingPolicy, SodRule
from ledger_kernel.services.sod_authority import SodAuthority


class TestBalancedJournal:
    def test_two_line_journal_is_validated(self, make_journal, posting_deps):
        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert isinstance(result, JournalValidated)
        assert result.validated is True
        assert result.total_debit == Decimal("100")
        assert result.total_credit == Decimal("100")
        assert result.requires_approval is False
        assert result.approver_roles == ()
        assert result.coa_warnings == ()
        assert set(result.account_details) == {"cash", "capital"}

    def test_rounding_within_tolerance_is_accepted(self, make_journal, posting_deps):
        journal = make_journal([("cash", "100.005", 0), ("capital", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert result.validated is True

    def test_validation_is_idempotent(self, make_journal, posting_deps):
        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])

        first = validate_journal(journal, **posting_deps)
        second = validate_journal(journal, **posting_deps)

        assert first == second


class TestUnbalancedJournal:
    def test_one_unit_difference_is_rejected(self, make_journal, posting_deps):
        journal = make_journal([("cash", 100, 0), ("capital", 0, 99)])

        result = validate_journal(journal, **posting_deps)

        assert isinstance(result, JournalRejected)
        assert result.validated is False
        assert result.code == "UNBALANCED_JOURNAL"
        assert result.kind is IssueKind.INVARIANT
        assert result.details["difference"] == Decimal("1.00")

    def test_balance_is_checked_before_accounts(self, make_journal, posting_deps):
        journal = make_journal([("nope", 100, 0), ("capital", 0, 50)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "UNBALANCED_JOURNAL"
        assert posting_deps["directory"].batch_calls == []


class TestLineChecks:
    def test_no_lines(self, make_journal, posting_deps):
        result = validate_journal(make_journal([]), **posting_deps)

        assert result.code == "NO_LINES"
        assert result.kind is IssueKind.STRUCTURAL

    def test_too_many_lines(self, make_journal, posting_deps):
        lines = [("cash", 1, 0)] * 60 + [("capital", 0, 1)] * 60

        result = validate_journal(make_journal(lines), **posting_deps)

        assert result.code == "TOO_MANY_LINES"
        assert result.details["line_count"] == 120

    def test_line_with_both_sides(self, make_journal, posting_deps):
        journal = make_journal([("cash", 100, 0), ("capital", 50, 150)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "INVALID_LINE_AMOUNTS"
        assert result.error.startswith("Line 2:")
        assert result.details["line_index"] == 1

    def test_line_with_no_amount(self, make_journal, posting_deps):
        journal = make_journal([("cash", 0, 0), ("capital", 0, 0)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "ZERO_AMOUNTS"
        assert result.error.startswith("Line 1:")

    def test_check_line_amounts_accepts_single_side(self):
        assert check_line_amounts(0, Decimal("5"), Decimal("0")) is None
        assert check_line_amounts(0, Decimal("0"), Decimal("5")) is None

    def test_check_balance_reports_difference(self):
        issue = check_balance(Decimal("10"), Decimal("7.50"))

        assert issue.code == "UNBALANCED_JOURNAL"
        assert issue.details["difference"] == Decimal("2.50")


class TestCurrencyAndDate:
    @pytest.mark.parametrize("currency", ["US", "usd", "USDX", "1SD", "USD\n"])
    def test_bad_currency_code(self, make_journal, posting_deps, currency):
        journal = make_journal([("cash", 10, 0), ("capital", 0, 10)], currency=currency)

        result = validate_journal(journal, **posting_deps)

        assert result.code == "INVALID_CURRENCY"

    def test_future_date(self, make_journal, posting_deps):
        journal = make_journal(
            [("cash", 10, 0), ("capital", 0, 10)], journal_date=date(2024, 7, 1)
        )

        result = validate_journal(journal, **posting_deps)

        assert result.code == "FUTURE_DATE"
        assert result.kind is IssueKind.POLICY

    def test_today_is_not_future(self, make_journal, posting_deps):
        journal = make_journal(
            [("cash", 10, 0), ("capital", 0, 10)], journal_date=date(2024, 6, 30)
        )

        assert validate_journal(journal, **posting_deps).validated is True


class TestSegregationOfDuties:
    def test_clerk_requires_approval(self, make_journal, posting_deps):
        journal = make_journal([("cash", 10, 0), ("capital", 0, 10)], role="clerk")

        result = validate_journal(journal, **posting_deps)

        assert result.validated is True
        assert result.requires_approval is True
        assert result.approver_roles == ("manager", "admin")

    def test_unknown_role_is_refused_first(self, make_journal, posting_deps):
        # Unbalanced too, but SoD runs first.
        journal = make_journal([("cash", 10, 0)], role="intern")

        result = validate_journal(journal, **posting_deps)

        assert result.code == "SOD_VIOLATION"
        assert result.kind is IssueKind.AUTHORIZATION
        assert result.details["role"] == "intern"

    def test_custom_rule_without_approval(self, make_journal, posting_deps):
        policy = PostingPolicy(
            sod_rules=(SodRule(action="journal:post", allowed_roles=frozenset({"clerk"})),)
        )
        deps = dict(posting_deps, policy=policy, authorizer=SodAuthority(policy))
        journal = make_journal([("cash", 10, 0), ("capital", 0, 10)], role="clerk")

        result = validate_journal(journal, **deps)

        assert result.requires_approval is False
        assert result.approver_roles == ()


class TestChartOfAccounts:
    def test_group_account_is_rejected(self, make_journal, posting_deps):
        journal = make_journal([("current-assets", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "GROUP_ACCOUNT_TRANSACTION"
        assert result.kind is IssueKind.POLICY
        assert result.details["account_id"] == "current-assets"

    def test_missing_accounts_are_referential(self, make_journal, posting_deps):
        journal = make_journal([("ghost", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "ACCOUNTS_NOT_FOUND"
        assert result.kind is IssueKind.REFERENTIAL
        assert result.details["missing_account_ids"] == ["ghost"]

    def test_other_company_account_counts_as_missing(self, make_journal, posting_deps,
                                                     chart_with):
        deps = dict(posting_deps, directory=chart_with(capital={"company_id": "C2"}))
        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **deps)

        assert isinstance(result, JournalRejected)
        assert result.code == "ACCOUNTS_NOT_FOUND"
        assert result.kind is IssueKind.REFERENTIAL
        assert result.details["missing_account_ids"] == ["capital"]

    def test_every_violation_is_reported(self, make_journal, posting_deps):
        journal = make_journal(
            [("frozen", 50, 0), ("inactive", 50, 0), ("capital", 0, 100)]
        )

        result = validate_journal(journal, **posting_deps)

        assert result.code == "ACCOUNT_FROZEN"
        codes = [v["code"] for v in result.details["violations"]]
        assert codes == ["ACCOUNT_FROZEN", "ACCOUNT_INACTIVE"]

    def test_accounts_fetched_in_one_batch(self, make_journal, posting_deps):
        journal = make_journal(
            [("cash", 60, 0), ("cash", 40, 0), ("capital", 0, 70), ("revenue", 0, 30)]
        )

        validate_journal(journal, **posting_deps)

        directory = posting_deps["directory"]
        assert directory.batch_calls == [["cash", "capital", "revenue"]]
        assert directory.single_calls == []

    def test_currency_mismatch_blocks_by_default(self, make_journal, posting_deps):
        journal = make_journal([("bank-eur", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert result.code == "CURRENCY_MISMATCH"
        assert result.details["mismatches"] == [
            {"account_id": "bank-eur", "account_currency": "EUR"}
        ]

    def test_currency_mismatch_as_warning(self, make_journal, posting_deps):
        policy = PostingPolicy(currency_mismatch_severity=Severity.WARNING)
        journal = make_journal([("bank-eur", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **dict(posting_deps, policy=policy))

        assert result.validated is True
        assert [w.code for w in result.coa_warnings] == ["CURRENCY_MISMATCH"]

    def test_control_account(self, make_journal, posting_deps, chart_with):
        directory = chart_with(cash={"depth": 0})
        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **dict(posting_deps, directory=directory))

        assert result.code == "CONTROL_ACCOUNT_VIOLATION"

    def test_normal_balance_deviation_is_advisory(self, make_journal, posting_deps):
        journal = make_journal([("revenue", 100, 0), ("cash", 0, 100)])

        result = validate_journal(journal, **posting_deps)

        assert result.validated is True
        assert [w.code for w in result.coa_warnings] == [
            "NORMAL_BALANCE_DEVIATION",
            "NORMAL_BALANCE_DEVIATION",
        ]
        assert result.coa_warnings[0].details["side"] == "debit"

    def test_deprecated_account_is_advisory(self, make_journal, posting_deps, policy):
        policy = replace(policy, deprecated_account_codes=frozenset({"3000"}))
        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])

        result = validate_journal(journal, **dict(posting_deps, policy=policy))

        assert result.validated is True
        assert [w.code for w in result.coa_warnings] == ["DEPRECATED_ACCOUNT"]


class TestValidatorLogging:
    def test_rejection_is_logged_with_context(self, make_journal, posting_deps, captured_logs):
        journal = make_journal([("cash", 100, 0), ("capital", 0, 99)], number="JV-42")

        validate_journal(journal, **posting_deps)

        records = [r for r in captured_logs() if r["message"] == "journal_rejected"]
        assert len(records) == 1
        assert records[0]["code"] == "UNBALANCED_JOURNAL"
        assert records[0]["journal_number"] == "JV-42"
        assert records[0]["company_id"] == "C1"
