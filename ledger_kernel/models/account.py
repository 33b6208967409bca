"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts read by the
    ``AccountDirectory`` adapter.
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain value types it converts into.

Invariants enforced:
    - (company_id, code) is unique.
    - ``to_domain()`` is the only way rows leave the model; validators never
      see ORM objects.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase
from ledger_kernel.domain.accounts import (
    Account,
    AccountSubtype,
    AccountType,
    BalanceSide,
)


class AccountRecord(TimestampedBase):
    """Chart-of-accounts row."""

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_company", "company_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(String(20), nullable=False)
    account_subtype: Mapped[str] = mapped_column(
        String(30), nullable=False, default=AccountSubtype.OTHER.value
    )
    # Balance sheet category (CASH, ACCOUNTS_RECEIVABLE, FIXED_ASSETS, ...)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # Null = multi-currency allowed
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    is_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_frozen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    balance_must_be: Mapped[str | None] = mapped_column(String(10), nullable=True)
    parent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    depth: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    tax_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<AccountRecord {self.code}: {self.name}>"

    def to_domain(self) -> Account:
        return Account(
            id=self.id,
            code=self.code,
            name=self.name,
            account_type=AccountType(self.account_type),
            company_id=self.company_id,
            account_subtype=AccountSubtype(self.account_subtype),
            category=self.category,
            currency=self.currency,
            is_group=self.is_group,
            is_active=self.is_active,
            is_frozen=self.is_frozen,
            balance_must_be=BalanceSide(self.balance_must_be) if self.balance_must_be else None,
            parent_id=self.parent_id,
            depth=self.depth,
            tax_rate=self.tax_rate,
        )

    @classmethod
    def from_domain(cls, account: Account) -> "AccountRecord":
        return cls(
            id=account.id,
            company_id=account.company_id,
            code=account.code,
            name=account.name,
            account_type=account.account_type.value,
            account_subtype=account.account_subtype.value,
            category=account.category,
            currency=account.currency,
            is_group=account.is_group,
            is_active=account.is_active,
            is_frozen=account.is_frozen,
            balance_must_be=account.balance_must_be.value if account.balance_must_be else None,
            parent_id=account.parent_id,
            depth=account.depth,
            tax_rate=account.tax_rate,
        )
