"""
Tests for the SQLAlchemy port adapters against in-memory SQLite.

The same voucher and closing scenarios the in-memory fakes model are
persisted here and read back through the real queries.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.db.engine import (
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.domain.accounts import AccountSubtype, AccountType
from ledger_kernel.domain.ports import EntryAmounts, PolicyFlags
from ledger_kernel.domain.vouchers import PartyType, VoucherType
from ledger_kernel.exceptions import CompanyNotFoundError, LookupUnavailableError
from ledger_kernel.models import AccountRecord, Company, GLEntry, PeriodClosing
from ledger_kernel.selectors import SqlAccountDirectory, SqlCompanyFacts, SqlLedgerQuery


@pytest.fixture
def seeded(sqlite_session, chart, make_posted):
    session = sqlite_session
    session.add_all(AccountRecord.from_domain(a) for a in chart.values())
    session.add_all([
        Company(id="C1", name="Acme Ltd", base_currency="USD",
                fiscal_year_start_month=4, fiscal_year_start_day=1),
        Company(id="C2", name="Beta GmbH", base_currency="EUR",
                require_cost_center_on_pl=True),
        PeriodClosing(company_id="C1", period_end=date(2023, 12, 31)),
        PeriodClosing(company_id="C1", period_end=date(2024, 3, 31)),
        PeriodClosing(company_id="C1", period_end=date(2024, 5, 31), is_cancelled=True),
    ])
    sales = dict(voucher_type=VoucherType.SALES_INVOICE, voucher_no="SINV-1")
    purchase = dict(voucher_type=VoucherType.PURCHASE_INVOICE, voucher_no="PINV-1")
    payment = dict(voucher_type=VoucherType.PAYMENT_ENTRY, voucher_no="PE-1")
    rows = [
        make_posted("ar", date(2024, 5, 10), debit="106", party_type=PartyType.CUSTOMER,
                    party="CUST-1", **sales),
        make_posted("revenue", date(2024, 5, 10), credit="100", **sales),
        make_posted("sales-tax", date(2024, 5, 10), credit="6", **sales),
        make_posted("bank", date(2024, 6, 1), debit="50", **payment),
        make_posted("ar", date(2024, 6, 1), credit="50", party_type=PartyType.CUSTOMER,
                    party="CUST-1", against_voucher_type=VoucherType.SALES_INVOICE,
                    against_voucher="SINV-1", **payment),
        make_posted("expense", date(2024, 5, 15), debit="200", **purchase),
        make_posted("ap", date(2024, 5, 15), credit="200", party_type=PartyType.SUPPLIER,
                    party="SUP-1", **purchase),
        make_posted("cash", date(2024, 6, 20), debit="75", voucher_no="JV-9", is_cancelled=True),
        make_posted("capital", date(2024, 6, 20), credit="75", voucher_no="JV-9", is_cancelled=True),
    ]
    session.add_all(GLEntry.from_domain(r) for r in rows)
    session.commit()
    return session


class TestAccountDirectory:
    def test_get_account_round_trips(self, seeded, chart):
        account = SqlAccountDirectory(seeded).get_account("ar")

        assert account == chart["ar"]

    def test_missing_account(self, seeded):
        assert SqlAccountDirectory(seeded).get_account("ghost") is None

    def test_get_accounts_skips_unknown(self, seeded):
        accounts = SqlAccountDirectory(seeded).get_accounts(["cash", "ghost", "cash", "ap"])

        assert set(accounts) == {"cash", "ap"}
        assert accounts["ap"].account_subtype is AccountSubtype.PAYABLE

    def test_empty_batch(self, seeded):
        assert SqlAccountDirectory(seeded).get_accounts([]) == {}

    def test_list_accounts_ordered_by_code(self, seeded):
        accounts = SqlAccountDirectory(seeded).list_accounts("C1")

        codes = [a.code for a in accounts]
        assert codes == sorted(codes)
        assert accounts[0].account_type is AccountType.ASSET

    def test_frozen_and_group_flags_survive(self, seeded):
        accounts = SqlAccountDirectory(seeded).get_accounts(["frozen", "current-assets"])

        assert accounts["frozen"].is_frozen
        assert accounts["current-assets"].is_group
        assert accounts["current-assets"].depth == 0


class TestCompanyFacts:
    def test_base_currency(self, seeded):
        assert SqlCompanyFacts(seeded).get_base_currency("C2") == "EUR"

    def test_unknown_company(self, seeded):
        with pytest.raises(CompanyNotFoundError) as excinfo:
            SqlCompanyFacts(seeded).get_base_currency("C9")

        assert excinfo.value.code == "COMPANY_NOT_FOUND"

    def test_unset_flags_use_defaults(self, seeded):
        facts = SqlCompanyFacts(seeded, default_flags=PolicyFlags(require_cost_center_on_pl=True))

        assert facts.get_policy_flags("C1").require_cost_center_on_pl is True

    def test_company_flag_overrides(self, seeded):
        assert SqlCompanyFacts(seeded).get_policy_flags("C2").require_cost_center_on_pl is True

    @pytest.mark.parametrize(
        "as_of,expected",
        [
            (date(2024, 6, 30), date(2024, 4, 1)),
            (date(2024, 4, 1), date(2024, 4, 1)),
            (date(2024, 2, 10), date(2023, 4, 1)),
        ],
    )
    def test_fiscal_year_start(self, seeded, as_of, expected):
        assert SqlCompanyFacts(seeded).get_fiscal_year_start("C1", as_of) == expected


class TestLedgerQuery:
    def test_entries_up_to_date(self, seeded):
        rows = SqlLedgerQuery(seeded).get_entries("ar", "C1", date(2024, 5, 31))

        assert rows == [EntryAmounts(debit=Decimal("106"), credit=Decimal("0"))]

    def test_cancelled_entries_invisible(self, seeded):
        assert SqlLedgerQuery(seeded).get_entries("cash", "C1", date(2024, 6, 30)) == []

    def test_voucher_exists(self, seeded):
        query = SqlLedgerQuery(seeded)

        assert query.voucher_exists(VoucherType.SALES_INVOICE, "SINV-1", "C1")
        assert not query.voucher_exists(VoucherType.PURCHASE_INVOICE, "SINV-1", "C1")
        assert not query.voucher_exists(VoucherType.SALES_INVOICE, "SINV-1", "C2")

    def test_cancelled_voucher(self, seeded):
        query = SqlLedgerQuery(seeded)

        assert not query.voucher_exists(VoucherType.JOURNAL_ENTRY, "JV-9", "C1")
        assert query.voucher_exists(
            VoucherType.JOURNAL_ENTRY, "JV-9", "C1", exclude_cancelled=False
        )

    def test_latest_closed_period_ignores_cancelled(self, seeded):
        query = SqlLedgerQuery(seeded)

        assert query.latest_closed_period_end("C1") == date(2024, 3, 31)
        assert query.latest_closed_period_end("C2") is None

    def test_open_sales_invoice(self, seeded):
        voucher = SqlLedgerQuery(seeded).find_open_voucher(
            VoucherType.SALES_INVOICE, "SINV-1", "C1"
        )

        assert voucher.outstanding_amount == Decimal("56")
        assert voucher.party_type is PartyType.CUSTOMER
        assert voucher.party == "CUST-1"
        assert voucher.is_open

    def test_open_purchase_invoice_is_positive(self, seeded):
        voucher = SqlLedgerQuery(seeded).find_open_voucher(
            VoucherType.PURCHASE_INVOICE, "PINV-1", "C1"
        )

        assert voucher.outstanding_amount == Decimal("200")
        assert voucher.party == "SUP-1"

    def test_unknown_voucher(self, seeded):
        assert SqlLedgerQuery(seeded).find_open_voucher(
            VoucherType.SALES_INVOICE, "SINV-404", "C1"
        ) is None

    def test_posted_entries(self, seeded):
        entries = SqlLedgerQuery(seeded).get_posted_entries("C1", date(2024, 5, 31))

        assert {e.voucher_no for e in entries} == {"SINV-1", "PINV-1"}
        assert all(not e.is_cancelled for e in entries)
        assert entries[0].posting_date == date(2024, 5, 10)


class TestLookupFailures:
    def test_driver_error_becomes_lookup_unavailable(self, captured_logs):
        # No tables created: every query fails inside the driver.
        init_engine_from_url("sqlite://")
        session = get_session()
        try:
            with pytest.raises(LookupUnavailableError) as excinfo:
                SqlAccountDirectory(session).get_accounts(["cash"])
        finally:
            session.close()
            reset_engine()

        assert excinfo.value.port == "AccountDirectory"
        assert excinfo.value.operation == "get_accounts"
        assert excinfo.value.__cause__ is not None
        records = [r for r in captured_logs() if r["message"] == "port_lookup_failed"]
        assert records[0]["level"] == "ERROR"


class TestSessionScope:
    def test_commits_on_success(self, sqlite_session):
        with session_scope() as session:
            session.add(Company(id="C3", name="Gamma", base_currency="GBP"))

        assert SqlCompanyFacts(sqlite_session).get_base_currency("C3") == "GBP"

    def test_rolls_back_and_reraises(self, sqlite_session):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Company(id="C4", name="Delta", base_currency="JPY"))
                session.flush()
                raise RuntimeError("abort")

        with pytest.raises(CompanyNotFoundError):
            SqlCompanyFacts(sqlite_session).get_base_currency("C4")
