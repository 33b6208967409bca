"""
Vouchers -- source documents and the ledger entries they produce.

Responsibility:
    Typed voucher variants for the Ledger Entry Validator, the per-line
    ``LedgerEntryInput`` they carry, and the persisted ``PostedEntry`` form
    that the ledger and the trial balance read back.

Architecture position:
    Kernel > Domain.  Pure, no I/O.

Invariants:
    - Each voucher variant carries a ``voucher_type`` class tag; validators
      dispatch on it through a closed mapping, never on free-form strings.
    - ``make_posted_entries`` only converts; it never validates.  Call it on
      a journal the Journal Validator has already accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Mapping

from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.amounts import ZERO, round_money, to_decimal
from ledger_kernel.domain.journal import Journal


class VoucherType(str, Enum):
    SALES_INVOICE = "Sales Invoice"
    PURCHASE_INVOICE = "Purchase Invoice"
    PAYMENT_ENTRY = "Payment Entry"
    JOURNAL_ENTRY = "Journal Entry"
    PERIOD_CLOSING_VOUCHER = "Period Closing Voucher"


class PartyType(str, Enum):
    CUSTOMER = "Customer"
    SUPPLIER = "Supplier"
    EMPLOYEE = "Employee"


@dataclass(frozen=True)
class LedgerEntryInput:
    """
    One proposed ledger line inside a voucher.

    Unlike ``JournalLine`` the amounts are not range-checked here: the Ledger
    Entry Validator reports negative or two-sided amounts as findings.
    """

    account: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    debit_in_account_currency: Decimal | None = None
    credit_in_account_currency: Decimal | None = None
    account_currency: str | None = None
    transaction_currency: str | None = None
    exchange_rate: Decimal | None = None
    party_type: PartyType | None = None
    party: str | None = None
    cost_center: str | None = None
    project: str | None = None
    against_voucher_type: VoucherType | None = None
    against_voucher: str | None = None
    remarks: str | None = None
    is_opening: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_decimal(self.debit))
        object.__setattr__(self, "credit", to_decimal(self.credit))
        for name in ("debit_in_account_currency", "credit_in_account_currency", "exchange_rate"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, to_decimal(value))


@dataclass(frozen=True)
class Voucher:
    """Common header of every voucher variant."""

    voucher_type: ClassVar[VoucherType]

    voucher_no: str
    company_id: str
    posting_date: date
    entries: tuple[LedgerEntryInput, ...]
    remarks: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))

    @property
    def total_debit(self) -> Decimal:
        return sum((e.debit for e in self.entries), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((e.credit for e in self.entries), ZERO)


@dataclass(frozen=True)
class SalesInvoiceVoucher(Voucher):
    voucher_type: ClassVar[VoucherType] = VoucherType.SALES_INVOICE
    customer: str | None = None


@dataclass(frozen=True)
class PurchaseInvoiceVoucher(Voucher):
    voucher_type: ClassVar[VoucherType] = VoucherType.PURCHASE_INVOICE
    supplier: str | None = None


@dataclass(frozen=True)
class PaymentEntryVoucher(Voucher):
    voucher_type: ClassVar[VoucherType] = VoucherType.PAYMENT_ENTRY
    mode_of_payment: str | None = None


@dataclass(frozen=True)
class JournalEntryVoucher(Voucher):
    voucher_type: ClassVar[VoucherType] = VoucherType.JOURNAL_ENTRY


@dataclass(frozen=True)
class PeriodClosingVoucher(Voucher):
    voucher_type: ClassVar[VoucherType] = VoucherType.PERIOD_CLOSING_VOUCHER
    fiscal_year: str | None = None


@dataclass(frozen=True)
class PostedEntry:
    """A ledger row as persisted. Amounts are in company base currency."""

    account_id: str
    company_id: str
    posting_date: date
    voucher_type: VoucherType
    voucher_no: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    account_currency: str | None = None
    debit_in_account_currency: Decimal = ZERO
    credit_in_account_currency: Decimal = ZERO
    transaction_currency: str | None = None
    exchange_rate: Decimal = Decimal("1")
    party_type: PartyType | None = None
    party: str | None = None
    against_voucher_type: VoucherType | None = None
    against_voucher: str | None = None
    cost_center: str | None = None
    project: str | None = None
    fiscal_year: str | None = None
    remarks: str | None = None
    is_opening: bool = False
    is_cancelled: bool = False


def make_posted_entries(
    journal: Journal,
    voucher_type: VoucherType,
    accounts: Mapping[str, Account],
    base_currency: str,
    exchange_rate: Decimal = Decimal("1"),
) -> list[PostedEntry]:
    """
    Convert an accepted journal into ledger rows.

    ``exchange_rate`` converts the journal currency into ``base_currency``.
    Account-currency amounts equal the base amounts unless the account is
    denominated in the journal's (foreign) currency.

    Raises:
        ValueError: If an account is denominated in a third currency that
            neither the journal nor the base currency can express.
    """
    foreign = journal.currency != base_currency
    rate = to_decimal(exchange_rate) if foreign else Decimal("1")
    rows: list[PostedEntry] = []
    for line in journal.lines:
        account = accounts[line.account_id]
        debit = round_money(line.debit * rate)
        credit = round_money(line.credit * rate)
        account_currency = account.currency or base_currency
        if account_currency == base_currency:
            debit_ac, credit_ac = debit, credit
        elif account_currency == journal.currency:
            debit_ac, credit_ac = line.debit, line.credit
        else:
            raise ValueError(
                f"Account {account.id} is in {account_currency}; cannot derive "
                f"amounts from {journal.currency} at base {base_currency}"
            )
        rows.append(
            PostedEntry(
                account_id=line.account_id,
                company_id=journal.context.company_id,
                posting_date=journal.journal_date,
                voucher_type=voucher_type,
                voucher_no=journal.journal_number,
                debit=debit,
                credit=credit,
                account_currency=account_currency,
                debit_in_account_currency=debit_ac,
                credit_in_account_currency=credit_ac,
                transaction_currency=journal.currency,
                exchange_rate=rate,
                remarks=line.description,
            )
        )
    return rows
