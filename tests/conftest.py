"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- Structured logging configuration and ``captured_logs``
- A deterministic clock (2024-06-30 12:00 UTC)
- In-memory fakes for every port (account directory, company facts,
  ledger query) that count their calls
- A small chart of accounts for company ``C1`` (base currency USD)
- An in-memory SQLite session for the reference adapters
"""

import json
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from ledger_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.accounts import (
    Account,
    AccountSubtype,
    AccountType,
)
from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.journal import Journal, JournalLine, PostingContext
from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.domain.ports import EntryAmounts, OpenVoucher, PolicyFlags
from ledger_kernel.domain.vouchers import PostedEntry, VoucherType
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.services.sod_authority import SodAuthority

COMPANY_ID = "C1"
BASE_CURRENCY = "USD"
TODAY = date(2024, 6, 30)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "journal_rejected" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Port fakes
# =============================================================================


class InMemoryAccountDirectory:
    def __init__(self, accounts):
        self.accounts = {a.id: a for a in accounts}
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []

    def get_account(self, account_id):
        self.single_calls.append(account_id)
        return self.accounts.get(account_id)

    def get_accounts(self, account_ids):
        ids = list(account_ids)
        self.batch_calls.append(ids)
        return {i: self.accounts[i] for i in ids if i in self.accounts}

    def list_accounts(self, company_id):
        return [a for a in self.accounts.values() if a.company_id == company_id]


class InMemoryCompanyFacts:
    def __init__(self):
        self.base_currencies = {COMPANY_ID: BASE_CURRENCY}
        self.flags = {COMPANY_ID: PolicyFlags()}
        self.fiscal_year_starts: dict[str, tuple[int, int]] = {}
        self.currency_calls = 0
        self.flag_calls = 0

    def get_base_currency(self, company_id):
        self.currency_calls += 1
        return self.base_currencies[company_id]

    def get_policy_flags(self, company_id):
        self.flag_calls += 1
        return self.flags.get(company_id, PolicyFlags())

    def get_fiscal_year_start(self, company_id, as_of):
        month_day = self.fiscal_year_starts.get(company_id)
        if month_day is None:
            return None
        start = date(as_of.year, *month_day)
        if start > as_of:
            start = date(as_of.year - 1, *month_day)
        return start


class InMemoryLedger:
    def __init__(self):
        self.entries: list[PostedEntry] = []
        self.closed_through: dict[str, date] = {}
        self.open_vouchers: dict[tuple[VoucherType, str, str], OpenVoucher] = {}
        self.history_calls = 0

    def post(self, *entries: PostedEntry) -> None:
        self.entries.extend(entries)

    def get_entries(self, account_id, company_id, as_of_date):
        self.history_calls += 1
        return [
            EntryAmounts(debit=e.debit, credit=e.credit)
            for e in self.entries
            if e.account_id == account_id
            and e.company_id == company_id
            and e.posting_date <= as_of_date
            and not e.is_cancelled
        ]

    def voucher_exists(self, voucher_type, voucher_no, company_id, exclude_cancelled=True):
        return any(
            e.voucher_type is voucher_type
            and e.voucher_no == voucher_no
            and e.company_id == company_id
            and not (exclude_cancelled and e.is_cancelled)
            for e in self.entries
        )

    def latest_closed_period_end(self, company_id):
        return self.closed_through.get(company_id)

    def find_open_voucher(self, voucher_type, voucher_no, company_id):
        return self.open_vouchers.get((voucher_type, voucher_no, company_id))

    def get_posted_entries(self, company_id, up_to):
        return [
            e for e in self.entries
            if e.company_id == company_id and e.posting_date <= up_to and not e.is_cancelled
        ]


# =============================================================================
# Chart of accounts
# =============================================================================


def _account(account_id, code, name, account_type, subtype=AccountSubtype.OTHER, **kwargs):
    return Account(
        id=account_id,
        code=code,
        name=name,
        account_type=account_type,
        company_id=COMPANY_ID,
        account_subtype=subtype,
        **kwargs,
    )


CHART = (
    _account("cash", "1000", "Cash on Hand", AccountType.ASSET, AccountSubtype.CASH, category="CASH"),
    _account("bank", "1010", "Operating Bank", AccountType.ASSET, AccountSubtype.BANK, category="CASH"),
    _account("bank-eur", "1020", "EUR Bank", AccountType.ASSET, AccountSubtype.BANK,
             category="CASH", currency="EUR"),
    _account("ar", "1200", "Accounts Receivable", AccountType.ASSET, AccountSubtype.RECEIVABLE,
             category="ACCOUNTS_RECEIVABLE"),
    _account("equipment", "1500", "Equipment", AccountType.ASSET, category="FIXED_ASSETS"),
    _account("current-assets", "1900", "Current Assets", AccountType.ASSET, is_group=True, depth=0),
    _account("frozen", "1950", "Suspense (frozen)", AccountType.ASSET, is_frozen=True),
    _account("inactive", "1960", "Old Petty Cash", AccountType.ASSET, is_active=False),
    _account("ap", "2000", "Accounts Payable", AccountType.LIABILITY, AccountSubtype.PAYABLE,
             category="ACCOUNTS_PAYABLE"),
    _account("sales-tax", "2100", "Sales Tax Payable", AccountType.LIABILITY, AccountSubtype.TAX,
             category="ACCRUED_LIABILITIES"),
    _account("wht-payable", "2150", "Withholding Tax Payable", AccountType.LIABILITY,
             AccountSubtype.TAX, category="ACCRUED_LIABILITIES"),
    _account("loan", "2500", "Long-term Loan", AccountType.LIABILITY, category="LONG_TERM_DEBT"),
    _account("capital", "3000", "Owner Capital", AccountType.EQUITY),
    _account("revenue", "4000", "Sales Revenue", AccountType.REVENUE, AccountSubtype.INCOME),
    _account("expense", "5000", "Office Expense", AccountType.EXPENSE, AccountSubtype.EXPENSE),
    _account("bank-charges", "5100", "Bank Charges", AccountType.EXPENSE, AccountSubtype.EXPENSE),
    _account("wht-expense", "5200", "Withholding Tax Expense", AccountType.EXPENSE,
             AccountSubtype.EXPENSE),
)


@pytest.fixture
def chart():
    return {a.id: a for a in CHART}


@pytest.fixture
def directory():
    return InMemoryAccountDirectory(CHART)


@pytest.fixture
def company_facts():
    return InMemoryCompanyFacts()


@pytest.fixture
def ledger():
    return InMemoryLedger()


# =============================================================================
# Clock, policy, authorizer
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def policy():
    return PostingPolicy()


@pytest.fixture
def authorizer(policy):
    return SodAuthority(policy)


@pytest.fixture
def posting_deps(directory, authorizer, deterministic_clock, policy):
    """Keyword arguments shared by validate_journal and the posting builders."""
    return {
        "directory": directory,
        "authorizer": authorizer,
        "clock": deterministic_clock,
        "policy": policy,
    }


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def make_journal():
    """
    Build a Journal from (account_id, debit, credit) triples.

    Usage::

        journal = make_journal([("cash", 100, 0), ("capital", 0, 100)])
    """

    def _make(lines, *, role="accountant", currency=BASE_CURRENCY,
              journal_date=TODAY, number="JV-0001"):
        return Journal(
            journal_number=number,
            journal_date=journal_date,
            currency=currency,
            lines=tuple(
                JournalLine(account_id=a, debit=Decimal(str(d)), credit=Decimal(str(c)))
                for a, d, c in lines
            ),
            context=PostingContext(
                tenant_id="T1", company_id=COMPANY_ID, user_id="U1", user_role=role
            ),
        )

    return _make


@pytest.fixture
def make_posted():
    """Build a PostedEntry with sensible defaults."""

    def _make(account_id, posting_date, debit=ZERO, credit=ZERO, *,
              voucher_type=VoucherType.JOURNAL_ENTRY, voucher_no="JV-1", **kwargs):
        return PostedEntry(
            account_id=account_id,
            company_id=kwargs.pop("company_id", COMPANY_ID),
            posting_date=posting_date,
            voucher_type=voucher_type,
            voucher_no=voucher_no,
            debit=Decimal(str(debit)),
            credit=Decimal(str(credit)),
            **kwargs,
        )

    return _make


@pytest.fixture
def chart_with(chart):
    """Return a directory over the chart with some accounts replaced."""

    def _with(**overrides):
        accounts = dict(chart)
        for account_id, changes in overrides.items():
            accounts[account_id] = replace(accounts[account_id], **changes)
        return InMemoryAccountDirectory(accounts.values())

    return _with


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def sqlite_session():
    """Fresh in-memory SQLite database with every reference table."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    try:
        yield session
    finally:
        session.close()
        reset_engine()
