"""
Accounts -- read-only view of the chart of accounts.

Responsibility:
    The immutable ``Account`` value the Account Directory port hands back,
    plus the enums that classify it.  Validators never mutate accounts and
    never see ORM rows; adapters translate storage into this shape.

Architecture position:
    Kernel > Domain.  Pure, no I/O.

Invariants:
    - Asset and expense accounts are debit-normal; liability, equity and
      revenue accounts are credit-normal.
    - Revenue and expense accounts are profit-and-loss accounts; every other
      type reports on the balance sheet.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    """Top-level classification in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountSubtype(str, Enum):
    """Refinement used by voucher-type rules."""

    RECEIVABLE = "receivable"
    PAYABLE = "payable"
    BANK = "bank"
    CASH = "cash"
    INCOME = "income"
    EXPENSE = "expense"
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"
    TAX = "tax"
    OTHER = "other"


class BalanceSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class ReportType(str, Enum):
    BALANCE_SHEET = "balance_sheet"
    PROFIT_AND_LOSS = "profit_and_loss"


_DEBIT_NORMAL = frozenset({AccountType.ASSET, AccountType.EXPENSE})
_PROFIT_AND_LOSS = frozenset({AccountType.REVENUE, AccountType.EXPENSE})

PARTY_SUBTYPES = frozenset({AccountSubtype.RECEIVABLE, AccountSubtype.PAYABLE})
INCOME_SUBTYPES = frozenset({AccountSubtype.INCOME})
EXPENSE_SUBTYPES = frozenset({AccountSubtype.EXPENSE, AccountSubtype.COST_OF_GOODS_SOLD})
CASH_SUBTYPES = frozenset({AccountSubtype.BANK, AccountSubtype.CASH})


def normal_balance_for(account_type: AccountType) -> BalanceSide:
    """Side on which an account of this type carries a positive balance."""
    return BalanceSide.DEBIT if account_type in _DEBIT_NORMAL else BalanceSide.CREDIT


@dataclass(frozen=True)
class Account:
    """
    A chart-of-accounts node as seen by the kernel.

    ``currency`` of ``None`` means the account accepts any currency.
    ``depth`` 0 marks a top-level control account; ``is_group`` marks a
    summary node that only aggregates its children.  Neither may be posted
    to directly.
    """

    id: str
    code: str
    name: str
    account_type: AccountType
    company_id: str
    account_subtype: AccountSubtype = AccountSubtype.OTHER
    category: str | None = None
    currency: str | None = None
    is_group: bool = False
    is_active: bool = True
    is_frozen: bool = False
    balance_must_be: BalanceSide | None = None
    parent_id: str | None = None
    depth: int = 1
    tax_rate: Decimal | None = None

    @property
    def normal_balance(self) -> BalanceSide:
        return normal_balance_for(self.account_type)

    @property
    def report_type(self) -> ReportType:
        if self.account_type in _PROFIT_AND_LOSS:
            return ReportType.PROFIT_AND_LOSS
        return ReportType.BALANCE_SHEET

    @property
    def is_profit_and_loss(self) -> bool:
        return self.report_type is ReportType.PROFIT_AND_LOSS

    def natural_balance(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Net of debit and credit expressed on the normal side."""
        if self.normal_balance is BalanceSide.DEBIT:
            return debit - credit
        return credit - debit
