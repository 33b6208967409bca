"""
Ports (``ledger_kernel.domain.ports``).

Responsibility
--------------
Read-only interfaces to everything the kernel does not own: the chart of
accounts, company facts, posted ledger history and role authorization.
Validators depend on these Protocols only; ``ledger_kernel.selectors``
ships SQLAlchemy adapters and tests use in-memory fakes.

Architecture position
---------------------
**Kernel domain layer**.  ZERO I/O.  Adapters live in ``selectors/`` and
``services/``.

Contract
--------
* Lookups are side-effect free.  An unknown id is ``None`` (or absent from
  the returned mapping), never an exception.
* Infrastructure failure is raised as
  ``ledger_kernel.exceptions.LookupUnavailableError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol, runtime_checkable

from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.amounts import ZERO
from ledger_kernel.domain.vouchers import PartyType, PostedEntry, VoucherType


@dataclass(frozen=True)
class EntryAmounts:
    debit: Decimal = ZERO
    credit: Decimal = ZERO


@dataclass(frozen=True)
class OpenVoucher:
    """A previously posted voucher that later entries may settle against."""

    voucher_type: VoucherType
    voucher_no: str
    party_type: PartyType | None
    party: str | None
    outstanding_amount: Decimal

    @property
    def is_open(self) -> bool:
        return self.outstanding_amount > 0


@dataclass(frozen=True)
class PolicyFlags:
    """Per-company switches that tighten or relax posting rules."""

    require_cost_center_on_pl: bool = False


@dataclass(frozen=True)
class SodDecision:
    allowed: bool
    requires_approval: bool = False
    reason: str | None = None
    approver_roles: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class AccountDirectory(Protocol):

    def get_account(self, account_id: str) -> Account | None:
        ...

    def get_accounts(self, account_ids: Iterable[str]) -> dict[str, Account]:
        """Batched lookup. Unknown ids are simply absent from the result."""
        ...

    def list_accounts(self, company_id: str) -> list[Account]:
        ...


@runtime_checkable
class CompanyFacts(Protocol):

    def get_base_currency(self, company_id: str) -> str:
        ...

    def get_policy_flags(self, company_id: str) -> PolicyFlags:
        ...

    def get_fiscal_year_start(self, company_id: str, as_of: date) -> date | None:
        ...


@runtime_checkable
class LedgerQuery(Protocol):

    def get_entries(
        self, account_id: str, company_id: str, as_of_date: date
    ) -> list[EntryAmounts]:
        """Non-cancelled amounts for an account posted on or before a date."""
        ...

    def voucher_exists(
        self,
        voucher_type: VoucherType,
        voucher_no: str,
        company_id: str,
        exclude_cancelled: bool = True,
    ) -> bool:
        ...

    def latest_closed_period_end(self, company_id: str) -> date | None:
        ...

    def find_open_voucher(
        self, voucher_type: VoucherType, voucher_no: str, company_id: str
    ) -> OpenVoucher | None:
        ...

    def get_posted_entries(self, company_id: str, up_to: date) -> list[PostedEntry]:
        """Non-cancelled ledger rows dated on or before ``up_to``."""
        ...


@runtime_checkable
class Authorizer(Protocol):

    def check_segregation_of_duties(self, action: str, role: str) -> SodDecision:
        ...
