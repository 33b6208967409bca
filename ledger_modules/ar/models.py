"""
Accounts Receivable Posting Models (``ledger_modules.ar.models``).

Responsibility
--------------
Frozen dataclass value objects for turning a customer invoice into a
journal: the invoice header and lines a caller submits, and the
``InvoicePosted`` / ``InvoicePostingFailed`` outcome the builder returns.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.  Numeric inputs are
  coerced through ``str`` on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from ledger_kernel.domain.amounts import ZERO, to_decimal
from ledger_kernel.domain.dtos import ValidationWarning
from ledger_kernel.domain.journal import Journal


class TaxType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    EXEMPT = "exempt"


class InvoicePostingCode(str, Enum):
    """Failure codes raised by the builder itself, before the journal check."""

    INVALID_AMOUNTS = "INVALID_AMOUNTS"
    INVALID_CURRENCY = "INVALID_CURRENCY"
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"


@dataclass(frozen=True)
class InvoiceLineInput:
    """
    A single line on a customer invoice.

    ``tax_account_id`` names the liability account credited with this
    line's tax when the invoice carries no separate ``tax_lines``.
    """

    line_number: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_amount: Decimal
    revenue_account_id: str
    tax_code: str | None = None
    tax_rate: Decimal | None = None
    tax_amount: Decimal = ZERO
    tax_account_id: str | None = None

    def __post_init__(self) -> None:
        for name in ("quantity", "unit_price", "line_amount", "tax_amount"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if self.tax_rate is not None:
            object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate))


@dataclass(frozen=True)
class TaxLineInput:
    """An invoice-level tax posting, already resolved to its account."""

    tax_code: str
    tax_account_id: str
    tax_amount: Decimal
    tax_type: TaxType = TaxType.OUTPUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_amount", to_decimal(self.tax_amount))


@dataclass(frozen=True)
class InvoicePostingInput:
    tenant_id: str
    company_id: str
    invoice_id: str
    invoice_number: str
    customer_id: str
    customer_name: str
    invoice_date: date
    currency: str
    ar_account_id: str
    lines: tuple[InvoiceLineInput, ...]
    exchange_rate: Decimal | None = None
    tax_lines: tuple[TaxLineInput, ...] = ()
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "tax_lines", tuple(self.tax_lines))
        if self.exchange_rate is not None:
            object.__setattr__(self, "exchange_rate", to_decimal(self.exchange_rate))


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class LineCheck:
    """Outcome of the arithmetic checks on invoice lines."""

    errors: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class InvoicePosted:
    """
    An invoice whose journal the Journal Validator accepted.

    Totals are in invoice currency; the journal is in base currency.
    """

    journal: Journal
    total_revenue: Decimal
    total_tax: Decimal
    total_amount: Decimal
    exchange_rate: Decimal
    requires_approval: bool = False
    approver_roles: tuple[str, ...] = ()
    coa_warnings: tuple[ValidationWarning, ...] = ()
    validated: Literal[True] = True


@dataclass(frozen=True)
class InvoicePostingFailed:
    error: str
    code: str
    details: dict[str, Any] = field(default_factory=dict)
    validated: Literal[False] = False


InvoicePostingOutcome = InvoicePosted | InvoicePostingFailed
