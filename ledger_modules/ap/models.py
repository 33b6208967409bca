"""
Payment Processing Models (``ledger_modules.ap.models``).

Responsibility
--------------
Frozen dataclass value objects for a payment run: the payment header, its
allocations against bills and invoices, bank charges and withholding tax,
and the ``PaymentProcessed`` / ``PaymentProcessingFailed`` outcome.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``payment_method`` is kept as submitted; whether it names a
  ``PaymentMethod`` is a business-rule finding, not a construction error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from ledger_kernel.domain.amounts import to_decimal
from ledger_kernel.domain.dtos import ValidationWarning
from ledger_kernel.domain.journal import Journal


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    OTHER = "OTHER"


class AllocationType(str, Enum):
    BILL = "BILL"  # outgoing, settles a supplier bill
    INVOICE = "INVOICE"  # incoming, settles a customer invoice


class PaymentDirection(str, Enum):
    OUT = "OUT"
    IN = "IN"


class PaymentProcessingCode(str, Enum):
    EXCHANGE_RATE_REQUIRED = "EXCHANGE_RATE_REQUIRED"
    INVALID_EXCHANGE_RATE = "INVALID_EXCHANGE_RATE"
    PAYMENT_VALIDATION_FAILED = "PAYMENT_VALIDATION_FAILED"
    JOURNAL_VALIDATION_FAILED = "JOURNAL_VALIDATION_FAILED"


@dataclass(frozen=True)
class PaymentAllocationInput:
    allocation_type: AllocationType
    document_id: str
    document_number: str
    allocated_amount: Decimal
    supplier_id: str | None = None
    customer_id: str | None = None
    ap_account_id: str | None = None
    ar_account_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "allocated_amount", to_decimal(self.allocated_amount))


@dataclass(frozen=True)
class BankChargeInput:
    account_id: str
    amount: Decimal
    description: str = "Bank charge"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class WithholdingTaxInput:
    """
    Tax withheld from the payment.

    Posted as Dr ``expense_account_id`` / Cr ``payable_account_id``;
    ``rate`` is a fraction (0.10 for 10%).
    """

    expense_account_id: str
    payable_account_id: str
    rate: Decimal
    amount: Decimal
    description: str = "Withholding tax"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", to_decimal(self.rate))
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class PaymentProcessingInput:
    tenant_id: str
    company_id: str
    payment_id: str
    payment_number: str
    payment_date: date
    payment_method: PaymentMethod | str
    bank_account_id: str
    currency: str
    amount: Decimal
    allocations: tuple[PaymentAllocationInput, ...]
    exchange_rate: Decimal | None = None
    reference: str | None = None
    description: str | None = None
    bank_charges: tuple[BankChargeInput, ...] = ()
    withholding_tax: tuple[WithholdingTaxInput, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        for name in ("allocations", "bank_charges", "withholding_tax"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if self.exchange_rate is not None:
            object.__setattr__(self, "exchange_rate", to_decimal(self.exchange_rate))

    @property
    def method_name(self) -> str:
        if isinstance(self.payment_method, PaymentMethod):
            return self.payment_method.value
        return str(self.payment_method)


@dataclass(frozen=True)
class RuleCheck:
    """Collected business-rule findings. ``valid`` iff no errors."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PaymentSummary:
    bill_payments: Decimal
    invoice_receipts: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class FxApplied:
    from_currency: str
    to_currency: str
    exchange_rate: Decimal
    converted_amount: Decimal


@dataclass(frozen=True)
class PaymentProcessed:
    """A payment whose journal the Journal Validator accepted. Base currency."""

    journal: Journal
    journal_number: str
    total_amount: Decimal
    allocations_processed: int
    requires_approval: bool = False
    approver_roles: tuple[str, ...] = ()
    coa_warnings: tuple[ValidationWarning, ...] = ()
    fx_applied: FxApplied | None = None
    success: Literal[True] = True


@dataclass(frozen=True)
class PaymentProcessingFailed:
    error: str
    code: str
    details: dict[str, Any] = field(default_factory=dict)
    success: Literal[False] = False


PaymentProcessingOutcome = PaymentProcessed | PaymentProcessingFailed
