"""Posted-ledger fixtures shared by the reporting tests."""

from datetime import date

import pytest

from ledger_kernel.domain.vouchers import VoucherType


@pytest.fixture
def posted_rows(make_posted):
    """
    A small, balanced year for company C1.

    Opening (before 2024-04-01): capital injection of 10 000 into cash.
    Period: a 1 060 credit sale, 300 of office expense paid in cash, and
    equipment bought on a 5 000 loan.  Cancelled and post-cutoff rows are
    included to prove they are ignored.
    """
    return [
        make_posted("cash", date(2024, 1, 5), debit=10000, voucher_no="JV-1"),
        make_posted("capital", date(2024, 1, 5), credit=10000, voucher_no="JV-1"),
        make_posted("ar", date(2024, 5, 10), debit=1060,
                    voucher_type=VoucherType.SALES_INVOICE, voucher_no="SINV-1"),
        make_posted("revenue", date(2024, 5, 10), credit=1000,
                    voucher_type=VoucherType.SALES_INVOICE, voucher_no="SINV-1"),
        make_posted("sales-tax", date(2024, 5, 10), credit=60,
                    voucher_type=VoucherType.SALES_INVOICE, voucher_no="SINV-1"),
        make_posted("expense", date(2024, 5, 20), debit=300, voucher_no="JV-2"),
        make_posted("cash", date(2024, 5, 20), credit=300, voucher_no="JV-2"),
        make_posted("equipment", date(2024, 6, 1), debit=5000, voucher_no="JV-3"),
        make_posted("loan", date(2024, 6, 1), credit=5000, voucher_no="JV-3"),
        make_posted("cash", date(2024, 6, 2), debit=999, voucher_no="JV-4", is_cancelled=True),
        make_posted("revenue", date(2024, 6, 2), credit=999, voucher_no="JV-4", is_cancelled=True),
        make_posted("cash", date(2024, 7, 5), debit=40, voucher_no="JV-5"),
        make_posted("capital", date(2024, 7, 5), credit=40, voucher_no="JV-5"),
    ]


@pytest.fixture
def seeded_ledger(ledger, posted_rows):
    ledger.post(*posted_rows)
    return ledger
