"""
Payment Processing (``ledger_modules.ap.payment_processing``).

Responsibility
--------------
Turns a payment with its allocations into a balanced base-currency journal
and hands it to the Journal Validator.

Journal layout::

    Bill payments (outgoing)        Invoice receipts (incoming)
    Dr  AP          per bill        Dr  Bank        total receipts
        Cr  Bank    total bills         Cr  AR      per invoice

    Bank charge                     Withholding tax
    Dr  Charge expense              Dr  Withholding expense
        Cr  Bank                        Cr  Withholding payable

Architecture position
---------------------
**Modules layer**.  Pure builder over the kernel's ``validate_journal``.
Nothing is persisted.

Reconciliation
--------------
allocated + charges + withholding must equal the payment amount within
0.01.  Allocations that *exceed* the payment get their own message: an
overpayment belongs on an advance account and is never absorbed silently.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.amounts import (
    BALANCE_TOLERANCE,
    ZERO,
    format_amount,
    is_currency_code,
    round_money,
)
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.journal import (
    MAX_DESCRIPTION_LENGTH,
    MAX_REFERENCE_LENGTH,
    Journal,
    JournalLine,
    JournalRejected,
    PostingContext,
)
from ledger_kernel.domain.journal_validator import validate_journal
from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.domain.ports import AccountDirectory, Authorizer
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_modules.ap.models import (
    AllocationType,
    FxApplied,
    PaymentAllocationInput,
    PaymentDirection,
    PaymentMethod,
    PaymentProcessed,
    PaymentProcessingCode,
    PaymentProcessingFailed,
    PaymentProcessingInput,
    PaymentProcessingOutcome,
    PaymentSummary,
    RuleCheck,
)

logger = get_logger("modules.ap.payment_processing")

_VALID_METHODS = frozenset(m.value for m in PaymentMethod)


# =========================================================================
# Helpers
# =========================================================================


def generate_payment_number(
    company_code: str,
    sequence: int,
    direction: PaymentDirection = PaymentDirection.OUT,
    *,
    year: int,
) -> str:
    """``PAY-<company>-<year>-<000042>`` for outgoing, ``REC-...`` for incoming."""
    prefix = "PAY" if direction is PaymentDirection.OUT else "REC"
    return f"{prefix}-{company_code}-{year}-{sequence:06d}"


def calculate_payment_summary(allocations: Iterable[PaymentAllocationInput]) -> PaymentSummary:
    bills = ZERO
    invoices = ZERO
    for allocation in allocations:
        if allocation.allocation_type is AllocationType.BILL:
            bills += allocation.allocated_amount
        else:
            invoices += allocation.allocated_amount
    return PaymentSummary(
        bill_payments=round_money(bills),
        invoice_receipts=round_money(invoices),
        total_amount=round_money(bills + invoices),
    )


def validate_payment_allocations(
    allocations: Iterable[PaymentAllocationInput],
    outstanding_balances: Mapping[str, Decimal],
) -> RuleCheck:
    """
    Compare allocations with the documents' outstanding balances.

    Allocating to a settled document is an error; allocating more than is
    outstanding is a warning.
    """
    errors: list[str] = []
    warnings: list[str] = []
    for allocation in allocations:
        outstanding = outstanding_balances.get(allocation.document_id, ZERO)
        if allocation.allocated_amount <= outstanding:
            continue
        if outstanding <= 0:
            errors.append(f"Document {allocation.document_number} has no outstanding balance")
        else:
            warnings.append(
                f"Document {allocation.document_number}: Allocated amount "
                f"({format_amount(allocation.allocated_amount)}) exceeds outstanding "
                f"balance ({format_amount(outstanding)})"
            )
    return RuleCheck(errors=tuple(errors), warnings=tuple(warnings))


def validate_payment_business_rules(payment: PaymentProcessingInput, *, today: date) -> RuleCheck:
    """Every header, allocation, charge and reconciliation rule. Collects all findings."""
    errors: list[str] = []

    if payment.payment_date > today:
        errors.append("Payment date cannot be in the future")
    if not is_currency_code(payment.currency):
        errors.append("Currency must be a valid 3-letter ISO code")
    if payment.amount <= 0:
        errors.append("Payment amount must be positive")
    if payment.method_name not in _VALID_METHODS:
        errors.append(f"Invalid payment method: {payment.method_name}")
    if not payment.allocations:
        errors.append("Payment must have at least one allocation")

    for i, allocation in enumerate(payment.allocations, start=1):
        if allocation.allocated_amount <= 0:
            errors.append(f"Allocation {i}: Amount must be positive")
        if allocation.allocation_type is AllocationType.BILL:
            if not allocation.ap_account_id:
                errors.append(f"Allocation {i}: AP account required for bill payments")
            if not allocation.supplier_id:
                errors.append(f"Allocation {i}: Supplier ID required for bill payments")
        else:
            if not allocation.ar_account_id:
                errors.append(f"Allocation {i}: AR account required for invoice receipts")
            if not allocation.customer_id:
                errors.append(f"Allocation {i}: Customer ID required for invoice receipts")

    for i, charge in enumerate(payment.bank_charges, start=1):
        if charge.amount <= 0:
            errors.append(f"Bank charge {i}: Amount must be positive")
        if not charge.account_id:
            errors.append(f"Bank charge {i}: Expense account required")

    for i, tax in enumerate(payment.withholding_tax, start=1):
        if tax.amount <= 0:
            errors.append(f"Withholding tax {i}: Amount must be positive")
        if not tax.expense_account_id or not tax.payable_account_id:
            errors.append(f"Withholding tax {i}: Expense and payable accounts required")
        if not ZERO <= tax.rate <= 1:
            errors.append(f"Withholding tax {i}: Rate must be between 0 and 1")

    if payment.allocations:
        allocated = sum((a.allocated_amount for a in payment.allocations), ZERO)
        charges = sum((c.amount for c in payment.bank_charges), ZERO)
        withheld = sum((t.amount for t in payment.withholding_tax), ZERO)
        accounted = allocated + charges + withheld
        difference = accounted - payment.amount
        if difference > BALANCE_TOLERANCE:
            errors.append(
                f"Total allocated amount ({format_amount(accounted)}) exceeds payment "
                f"amount ({format_amount(payment.amount)}); route the overpayment to an "
                f"advance account"
            )
        elif difference < -BALANCE_TOLERANCE:
            errors.append(
                f"Total allocated amount ({format_amount(accounted)}) does not match "
                f"payment amount ({format_amount(payment.amount)})"
            )

    return RuleCheck(errors=tuple(errors))


# =========================================================================
# Journal construction
# =========================================================================


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]


def build_payment_journal(
    payment: PaymentProcessingInput,
    *,
    user_id: str,
    user_role: str,
    base_currency: str,
    exchange_rate: Decimal,
) -> Journal:
    """Lay out the payment lines. Assumes the business rules already passed."""
    number = payment.payment_number
    reference = _clip(payment.reference or number, MAX_REFERENCE_LENGTH)
    method = payment.method_name

    def line(account_id: str, *, debit: Decimal = ZERO, credit: Decimal = ZERO, text: str) -> JournalLine:
        return JournalLine(
            account_id=account_id,
            debit=debit,
            credit=credit,
            description=_clip(text, MAX_DESCRIPTION_LENGTH),
            reference=reference,
        )

    def base(amount: Decimal) -> Decimal:
        return round_money(amount * exchange_rate)

    lines: list[JournalLine] = []
    bills = [a for a in payment.allocations if a.allocation_type is AllocationType.BILL]
    invoices = [a for a in payment.allocations if a.allocation_type is AllocationType.INVOICE]

    if bills:
        debits = [
            line(a.ap_account_id, debit=base(a.allocated_amount),
                 text=f"Payment {number} - Bill {a.document_number}")
            for a in bills
        ]
        lines.extend(debits)
        lines.append(line(
            payment.bank_account_id,
            credit=sum((d.debit for d in debits), ZERO),
            text=f"Payment {number} - {method}",
        ))

    if invoices:
        credits = [
            line(a.ar_account_id, credit=base(a.allocated_amount),
                 text=f"Receipt {number} - Invoice {a.document_number}")
            for a in invoices
        ]
        lines.append(line(
            payment.bank_account_id,
            debit=sum((c.credit for c in credits), ZERO),
            text=f"Receipt {number} - {method}",
        ))
        lines.extend(credits)

    for charge in payment.bank_charges:
        amount = base(charge.amount)
        lines.append(line(charge.account_id, debit=amount, text=f"Bank charge - {charge.description}"))
        lines.append(line(payment.bank_account_id, credit=amount, text=f"Bank charge - {number}"))

    for tax in payment.withholding_tax:
        amount = base(tax.amount)
        lines.append(line(tax.expense_account_id, debit=amount, text=f"Withholding tax - {tax.description}"))
        lines.append(line(tax.payable_account_id, credit=amount, text=f"Withholding tax payable - {number}"))

    return Journal(
        journal_number=f"PAY-{number}",
        journal_date=payment.payment_date,
        currency=base_currency,
        lines=tuple(lines),
        context=PostingContext(
            tenant_id=payment.tenant_id,
            company_id=payment.company_id,
            user_id=user_id,
            user_role=user_role,
        ),
        description=payment.description or f"Payment {number} - {method}",
    )


# =========================================================================
# Public API
# =========================================================================


def validate_payment_processing(
    payment: PaymentProcessingInput,
    *,
    user_id: str,
    user_role: str,
    base_currency: str,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> PaymentProcessingOutcome:
    """
    Validate a payment and prepare its journal for posting.

    Returns ``PaymentProcessed`` or ``PaymentProcessingFailed``.  Business
    rule failures carry every message in ``details["errors"]``; a journal
    rejection is wrapped under ``details["journal"]``.
    """
    with LogContext.bind(
        company_id=payment.company_id,
        voucher_no=payment.payment_number,
        actor_id=user_id,
    ):
        logger.info("ap_payment_processing_started", extra={
            "amount": payment.amount,
            "currency": payment.currency,
            "allocation_count": len(payment.allocations),
        })
        outcome = _process(
            payment, user_id, user_role, base_currency, directory, authorizer, clock, policy
        )
        if isinstance(outcome, PaymentProcessingFailed):
            logger.info("ap_payment_processing_rejected", extra={"code": outcome.code})
        else:
            logger.info("ap_payment_processing_validated", extra={
                "journal_number": outcome.journal_number,
                "total_amount": outcome.total_amount,
                "requires_approval": outcome.requires_approval,
            })
        return outcome


def _process(
    payment: PaymentProcessingInput,
    user_id: str,
    user_role: str,
    base_currency: str,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> PaymentProcessingOutcome:
    foreign = payment.currency != base_currency
    if foreign and payment.exchange_rate is None:
        return PaymentProcessingFailed(
            error="Exchange rate is required for foreign currency payments",
            code=PaymentProcessingCode.EXCHANGE_RATE_REQUIRED.value,
            details={"base_currency": base_currency, "transaction_currency": payment.currency},
        )
    if foreign and payment.exchange_rate <= 0:
        return PaymentProcessingFailed(
            error="Exchange rate must be positive",
            code=PaymentProcessingCode.INVALID_EXCHANGE_RATE.value,
            details={"exchange_rate": payment.exchange_rate},
        )
    exchange_rate = payment.exchange_rate if foreign else Decimal("1")

    rules = validate_payment_business_rules(payment, today=clock.today())
    if not rules.valid:
        return PaymentProcessingFailed(
            error=f"Payment validation failed: {', '.join(rules.errors)}",
            code=PaymentProcessingCode.PAYMENT_VALIDATION_FAILED.value,
            details={"errors": list(rules.errors)},
        )

    journal = build_payment_journal(
        payment,
        user_id=user_id,
        user_role=user_role,
        base_currency=base_currency,
        exchange_rate=exchange_rate,
    )
    result = validate_journal(
        journal, directory=directory, authorizer=authorizer, clock=clock, policy=policy
    )
    if isinstance(result, JournalRejected):
        return PaymentProcessingFailed(
            error=f"Journal validation failed: {result.error}",
            code=PaymentProcessingCode.JOURNAL_VALIDATION_FAILED.value,
            details={
                "journal": {
                    "code": result.code,
                    "error": result.error,
                    "kind": result.kind.value,
                    "details": result.details,
                },
            },
        )

    converted = round_money(payment.amount * exchange_rate)
    return PaymentProcessed(
        journal=journal,
        journal_number=journal.journal_number,
        total_amount=converted,
        allocations_processed=len(payment.allocations),
        requires_approval=result.requires_approval,
        approver_roles=result.approver_roles,
        coa_warnings=result.coa_warnings,
        fx_applied=(
            FxApplied(
                from_currency=payment.currency,
                to_currency=base_currency,
                exchange_rate=exchange_rate,
                converted_amount=converted,
            )
            if foreign else None
        ),
    )
