"""
Journal -- the proposed double-entry transaction and its validation outcome.

Responsibility:
    ``Journal`` is what a caller (or a document posting builder) proposes.
    ``JournalValidated`` / ``JournalRejected`` is what the Journal Validator
    answers.  Both outcomes carry a literal ``validated`` flag so callers can
    branch without isinstance checks.

Architecture position:
    Kernel > Domain.  Pure, no I/O.

Invariants:
    - Line amounts are non-negative Decimals (enforced at construction;
      a negative amount is a programming error, not a business finding).
    - Line description is at most 200 characters, reference at most 100.
    - The "exactly one side positive" and balance rules are NOT enforced
      here; they are business findings reported by the validator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Literal, Mapping

from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.amounts import ZERO, to_decimal
from ledger_kernel.domain.dtos import IssueKind, ValidationWarning

MAX_DESCRIPTION_LENGTH = 200
MAX_REFERENCE_LENGTH = 100


@dataclass(frozen=True)
class JournalLine:
    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None
    reference: str | None = None

    def __post_init__(self) -> None:
        debit = to_decimal(self.debit)
        credit = to_decimal(self.credit)
        if debit < 0 or credit < 0:
            raise ValueError(
                f"Journal line amounts must be non-negative "
                f"(account {self.account_id}: debit={debit}, credit={credit})"
            )
        if self.description is not None and len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"Line description exceeds {MAX_DESCRIPTION_LENGTH} characters")
        if self.reference is not None and len(self.reference) > MAX_REFERENCE_LENGTH:
            raise ValueError(f"Line reference exceeds {MAX_REFERENCE_LENGTH} characters")
        object.__setattr__(self, "debit", debit)
        object.__setattr__(self, "credit", credit)

    @property
    def net(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class PostingContext:
    """Who is posting, and for which tenant and company."""

    tenant_id: str
    company_id: str
    user_id: str
    user_role: str


@dataclass(frozen=True)
class Journal:
    journal_number: str
    journal_date: date
    currency: str
    lines: tuple[JournalLine, ...]
    context: PostingContext
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def account_ids(self) -> tuple[str, ...]:
        """Distinct account ids in first-seen order."""
        return tuple(dict.fromkeys(line.account_id for line in self.lines))


@dataclass(frozen=True)
class JournalValidated:
    total_debit: Decimal
    total_credit: Decimal
    requires_approval: bool = False
    approver_roles: tuple[str, ...] = ()
    coa_warnings: tuple[ValidationWarning, ...] = ()
    account_details: Mapping[str, Account] = field(default_factory=dict)
    validated: Literal[True] = True


@dataclass(frozen=True)
class JournalRejected:
    error: str
    code: str
    kind: IssueKind
    details: dict[str, Any] = field(default_factory=dict)
    validated: Literal[False] = False


JournalOutcome = JournalValidated | JournalRejected
