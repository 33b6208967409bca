"""
Module: ledger_kernel.selectors.account_selector
Responsibility: ``AccountDirectory`` over the ``accounts`` table.
"""

from collections.abc import Iterable

from sqlalchemy import select

from ledger_kernel.domain.accounts import Account
from ledger_kernel.models.account import AccountRecord
from ledger_kernel.selectors.base import BaseSelector


class SqlAccountDirectory(BaseSelector):
    port_name = "AccountDirectory"

    def get_account(self, account_id: str) -> Account | None:
        with self._lookup("get_account"):
            record = self.session.get(AccountRecord, account_id)
        return record.to_domain() if record is not None else None

    def get_accounts(self, account_ids: Iterable[str]) -> dict[str, Account]:
        ids = list(dict.fromkeys(account_ids))
        if not ids:
            return {}
        with self._lookup("get_accounts"):
            records = self.session.scalars(
                select(AccountRecord).where(AccountRecord.id.in_(ids))
            ).all()
        return {r.id: r.to_domain() for r in records}

    def list_accounts(self, company_id: str) -> list[Account]:
        with self._lookup("list_accounts"):
            records = self.session.scalars(
                select(AccountRecord)
                .where(AccountRecord.company_id == company_id)
                .order_by(AccountRecord.code)
            ).all()
        return [r.to_domain() for r in records]
