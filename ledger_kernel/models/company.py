"""
Module: ledger_kernel.models.company
Responsibility: Company facts (base currency, posting flags, fiscal year
    start) and period closings, read by the ``CompanyFacts`` and
    ``LedgerQuery`` adapters.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase, UUIDString


class Company(TimestampedBase):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    # Null = fall back to the posting policy default
    require_cost_center_on_pl: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    fiscal_year_start_month: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    fiscal_year_start_day: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"<Company {self.id} ({self.base_currency})>"


class PeriodClosing(TimestampedBase):
    """A submitted period closing: nothing may post on or before period_end."""

    __tablename__ = "period_closings"

    __table_args__ = (
        Index("idx_period_closing_company", "company_id", "period_end"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(String(64), nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    voucher_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
