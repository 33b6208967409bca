"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: ``LedgerQuery`` over ``gl_entries`` and ``period_closings``.

Invariants enforced:
    - Cancelled rows are invisible to every query.
    - Balances are always computed from rows; nothing is stored.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import and_, func, or_, select

from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.ports import EntryAmounts, OpenVoucher
from ledger_kernel.domain.vouchers import PartyType, PostedEntry, VoucherType
from ledger_kernel.models.company import PeriodClosing
from ledger_kernel.models.gl_entry import GLEntry
from ledger_kernel.selectors.base import BaseSelector


class SqlLedgerQuery(BaseSelector):
    port_name = "LedgerQuery"

    def get_entries(
        self, account_id: str, company_id: str, as_of_date: date
    ) -> list[EntryAmounts]:
        with self._lookup("get_entries"):
            rows = self.session.execute(
                select(GLEntry.debit, GLEntry.credit).where(
                    GLEntry.account_id == account_id,
                    GLEntry.company_id == company_id,
                    GLEntry.posting_date <= as_of_date,
                    GLEntry.is_cancelled.is_(False),
                )
            ).all()
        return [EntryAmounts(debit=Decimal(d), credit=Decimal(c)) for d, c in rows]

    def voucher_exists(
        self,
        voucher_type: VoucherType,
        voucher_no: str,
        company_id: str,
        exclude_cancelled: bool = True,
    ) -> bool:
        query = select(GLEntry.id).where(
            GLEntry.company_id == company_id,
            GLEntry.voucher_type == voucher_type.value,
            GLEntry.voucher_no == voucher_no,
        )
        if exclude_cancelled:
            query = query.where(GLEntry.is_cancelled.is_(False))
        with self._lookup("voucher_exists"):
            return self.session.execute(query.limit(1)).first() is not None

    def latest_closed_period_end(self, company_id: str) -> date | None:
        with self._lookup("latest_closed_period_end"):
            return self.session.scalar(
                select(func.max(PeriodClosing.period_end)).where(
                    PeriodClosing.company_id == company_id,
                    PeriodClosing.is_cancelled.is_(False),
                )
            )

    def find_open_voucher(
        self, voucher_type: VoucherType, voucher_no: str, company_id: str
    ) -> OpenVoucher | None:
        """
        Outstanding amount of a party voucher.

        Sums the party rows of the voucher itself plus every row settled
        against it.  Receivable-side vouchers carry a debit balance, payable
        side a credit balance; the outstanding amount is reported positive.
        """
        own_rows = and_(
            GLEntry.voucher_type == voucher_type.value,
            GLEntry.voucher_no == voucher_no,
        )
        settling_rows = and_(
            GLEntry.against_voucher_type == voucher_type.value,
            GLEntry.against_voucher == voucher_no,
        )
        with self._lookup("find_open_voucher"):
            rows = self.session.scalars(
                select(GLEntry).where(
                    GLEntry.company_id == company_id,
                    GLEntry.is_cancelled.is_(False),
                    GLEntry.party_type.is_not(None),
                    or_(own_rows, settling_rows),
                )
            ).all()

        own = [r for r in rows if r.voucher_type == voucher_type.value and r.voucher_no == voucher_no]
        if not own:
            return None
        net = sum((Decimal(r.debit) - Decimal(r.credit) for r in rows), ZERO)
        if voucher_type is VoucherType.PURCHASE_INVOICE:
            net = -net
        head = own[0]
        return OpenVoucher(
            voucher_type=voucher_type,
            voucher_no=voucher_no,
            party_type=PartyType(head.party_type) if head.party_type else None,
            party=head.party,
            outstanding_amount=max(net, ZERO),
        )

    def get_posted_entries(self, company_id: str, up_to: date) -> list[PostedEntry]:
        with self._lookup("get_posted_entries"):
            rows = self.session.scalars(
                select(GLEntry)
                .where(
                    GLEntry.company_id == company_id,
                    GLEntry.posting_date <= up_to,
                    GLEntry.is_cancelled.is_(False),
                )
                .order_by(GLEntry.posting_date, GLEntry.voucher_no)
            ).all()
        return [r.to_domain() for r in rows]
