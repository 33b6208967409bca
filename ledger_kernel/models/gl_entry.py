"""
Module: ledger_kernel.models.gl_entry
Responsibility: Posted ledger rows.  One row per journal line; a voucher is
    the set of rows sharing (company_id, voucher_type, voucher_no).
Architecture position: Kernel > Models.

Invariants enforced:
    - Amounts are Numeric(38, 9), never float.
    - Rows are never deleted; cancellation flips ``is_cancelled`` and every
      adapter query excludes cancelled rows.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase, UUIDString
from ledger_kernel.domain.vouchers import PartyType, PostedEntry, VoucherType


class GLEntry(TimestampedBase):
    __tablename__ = "gl_entries"

    __table_args__ = (
        Index("idx_gl_account_date", "company_id", "account_id", "posting_date"),
        Index("idx_gl_voucher", "company_id", "voucher_type", "voucher_no"),
        Index("idx_gl_against_voucher", "company_id", "against_voucher_type", "against_voucher"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    posting_date: Mapped[date] = mapped_column(Date, nullable=False)
    voucher_type: Mapped[str] = mapped_column(String(40), nullable=False)
    voucher_no: Mapped[str] = mapped_column(String(100), nullable=False)
    debit: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    credit: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    account_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    debit_in_account_currency: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    credit_in_account_currency: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    transaction_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    exchange_rate: Mapped[Decimal] = mapped_column(default=Decimal("1"), nullable=False)
    party_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    party: Mapped[str | None] = mapped_column(String(100), nullable=True)
    against_voucher_type: Mapped[str | None] = mapped_column(String(40), nullable=True)
    against_voucher: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cost_center: Mapped[str | None] = mapped_column(String(100), nullable=True)
    project: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fiscal_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_opening: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<GLEntry {self.voucher_type} {self.voucher_no} {self.account_id}>"

    def to_domain(self) -> PostedEntry:
        return PostedEntry(
            account_id=self.account_id,
            company_id=self.company_id,
            posting_date=self.posting_date,
            voucher_type=VoucherType(self.voucher_type),
            voucher_no=self.voucher_no,
            debit=self.debit,
            credit=self.credit,
            account_currency=self.account_currency,
            debit_in_account_currency=self.debit_in_account_currency,
            credit_in_account_currency=self.credit_in_account_currency,
            transaction_currency=self.transaction_currency,
            exchange_rate=self.exchange_rate,
            party_type=PartyType(self.party_type) if self.party_type else None,
            party=self.party,
            against_voucher_type=(
                VoucherType(self.against_voucher_type) if self.against_voucher_type else None
            ),
            against_voucher=self.against_voucher,
            cost_center=self.cost_center,
            project=self.project,
            fiscal_year=self.fiscal_year,
            remarks=self.remarks,
            is_opening=self.is_opening,
            is_cancelled=self.is_cancelled,
        )

    @classmethod
    def from_domain(cls, entry: PostedEntry) -> "GLEntry":
        return cls(
            company_id=entry.company_id,
            account_id=entry.account_id,
            posting_date=entry.posting_date,
            voucher_type=entry.voucher_type.value,
            voucher_no=entry.voucher_no,
            debit=entry.debit,
            credit=entry.credit,
            account_currency=entry.account_currency,
            debit_in_account_currency=entry.debit_in_account_currency,
            credit_in_account_currency=entry.credit_in_account_currency,
            transaction_currency=entry.transaction_currency,
            exchange_rate=entry.exchange_rate,
            party_type=entry.party_type.value if entry.party_type else None,
            party=entry.party,
            against_voucher_type=(
                entry.against_voucher_type.value if entry.against_voucher_type else None
            ),
            against_voucher=entry.against_voucher,
            cost_center=entry.cost_center,
            project=entry.project,
            fiscal_year=entry.fiscal_year,
            remarks=entry.remarks,
            is_opening=entry.is_opening,
            is_cancelled=entry.is_cancelled,
        )
