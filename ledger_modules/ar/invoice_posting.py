"""
Invoice Posting (``ledger_modules.ar.invoice_posting``).

Responsibility
--------------
Turns a customer invoice into a balanced base-currency journal and hands it
to the Journal Validator:

    Dr  Accounts Receivable      total (converted)
        Cr  Revenue              per line (converted)
        Cr  Output tax           per tax account (converted)

Architecture position
---------------------
**Modules layer**.  Pure builder over the kernel's ``validate_journal``;
reads only through the ports it is given.  Nothing is persisted.

Check order
-----------
1. Required header fields                       -> INVALID_AMOUNTS
2. Line arithmetic (qty x price, amount x rate) -> INVALID_AMOUNTS
3. Positive revenue                             -> INVALID_AMOUNTS
4. Currency code and exchange rate              -> INVALID_CURRENCY
5. Tax routing (every tax has an account)       -> BUSINESS_RULE_VIOLATION
6. Journal Validator                            -> its own code, passed through

Invariants
----------
* Every converted amount is rounded to cents; the AR debit is the sum of
  the rounded credits, so the built journal is balanced exactly.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from ledger_kernel.domain.amounts import (
    ZERO,
    format_amount,
    is_currency_code,
    round_money,
    within_tolerance,
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
from ledger_modules.ar.models import (
    InvoiceLineInput,
    InvoicePosted,
    InvoicePostingCode,
    InvoicePostingFailed,
    InvoicePostingInput,
    InvoicePostingOutcome,
    InvoiceTotals,
    LineCheck,
)

logger = get_logger("modules.ar.invoice_posting")


def calculate_invoice_totals(lines: Iterable[InvoiceLineInput]) -> InvoiceTotals:
    """Subtotal, tax and total of the lines, rounded to cents."""
    lines = list(lines)
    subtotal = sum((line.line_amount for line in lines), ZERO)
    tax = sum((line.tax_amount for line in lines), ZERO)
    return InvoiceTotals(
        subtotal=round_money(subtotal),
        tax_amount=round_money(tax),
        total_amount=round_money(subtotal + tax),
    )


def validate_invoice_lines(lines: Iterable[InvoiceLineInput]) -> LineCheck:
    """Check each line's arithmetic and signs. Collects every problem."""
    errors: list[str] = []
    for line in lines:
        expected_amount = line.quantity * line.unit_price
        if not within_tolerance(expected_amount, line.line_amount):
            errors.append(
                f"Line {line.line_number}: Line amount {line.line_amount} does not "
                f"match quantity x unit price {expected_amount}"
            )
        if line.tax_rate is not None and line.tax_rate > 0:
            expected_tax = line.line_amount * line.tax_rate
            if not within_tolerance(expected_tax, line.tax_amount):
                errors.append(
                    f"Line {line.line_number}: Tax amount {line.tax_amount} does not "
                    f"match line amount x tax rate {expected_tax}"
                )
        if line.quantity <= 0:
            errors.append(f"Line {line.line_number}: Quantity must be positive")
        if line.unit_price < 0:
            errors.append(f"Line {line.line_number}: Unit price cannot be negative")
        if line.line_amount < 0:
            errors.append(f"Line {line.line_number}: Line amount cannot be negative")
        if line.tax_amount < 0:
            errors.append(f"Line {line.line_number}: Tax amount cannot be negative")
    return LineCheck(errors=tuple(errors))


def generate_invoice_description(
    invoice_number: str, customer_name: str, total_amount: Decimal, currency: str
) -> str:
    return f"Invoice {invoice_number} - {customer_name} - {currency} {format_amount(total_amount)}"


def _fail(code: InvoicePostingCode, error: str, **details) -> InvoicePostingFailed:
    return InvoicePostingFailed(error=error, code=code.value, details=details)


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]


def _tax_credits(
    invoice: InvoicePostingInput,
) -> tuple[list[tuple[str, str, Decimal]], InvoicePostingFailed | None]:
    """
    Resolve tax into (account_id, label, amount) credits in invoice currency.

    Explicit ``tax_lines`` win; they must add up to the tax carried on the
    lines whenever the lines carry any.  Otherwise each taxed line must name
    its tax account, and credits are grouped per account.
    """
    line_tax = sum((line.tax_amount for line in invoice.lines), ZERO)

    if invoice.tax_lines:
        tax_line_total = sum((t.tax_amount for t in invoice.tax_lines), ZERO)
        if line_tax > 0 and not within_tolerance(line_tax, tax_line_total):
            return [], _fail(
                InvoicePostingCode.BUSINESS_RULE_VIOLATION,
                f"Tax lines total {format_amount(tax_line_total)} does not match "
                f"line tax {format_amount(line_tax)}",
                line_tax=line_tax,
                tax_line_total=tax_line_total,
            )
        if any(t.tax_amount < 0 for t in invoice.tax_lines):
            return [], _fail(
                InvoicePostingCode.BUSINESS_RULE_VIOLATION,
                "Tax line amounts cannot be negative",
            )
        return [
            (t.tax_account_id, f"{t.tax_code} Tax", t.tax_amount)
            for t in invoice.tax_lines
            if t.tax_amount > 0
        ], None

    grouped: dict[str, tuple[str, Decimal]] = {}
    for line in invoice.lines:
        if line.tax_amount <= 0:
            continue
        if not line.tax_account_id:
            return [], _fail(
                InvoicePostingCode.BUSINESS_RULE_VIOLATION,
                f"Line {line.line_number}: tax of {format_amount(line.tax_amount)} "
                f"has no tax account",
                line_number=line.line_number,
            )
        label, amount = grouped.get(line.tax_account_id, (f"{line.tax_code or 'Output'} Tax", ZERO))
        grouped[line.tax_account_id] = (label, amount + line.tax_amount)
    return [(account_id, label, amount) for account_id, (label, amount) in grouped.items()], None


def build_invoice_journal(
    invoice: InvoicePostingInput,
    *,
    user_id: str,
    user_role: str,
    base_currency: str,
    exchange_rate: Decimal,
    tax_credits: list[tuple[str, str, Decimal]],
) -> Journal:
    """Lay out the AR/revenue/tax lines. Assumes the input already passed checks."""
    reference = _clip(invoice.invoice_number, MAX_REFERENCE_LENGTH)
    credits: list[JournalLine] = []
    for line in invoice.lines:
        # Zero-priced lines carry no ledger movement.
        if round_money(line.line_amount * exchange_rate) == 0:
            continue
        credits.append(JournalLine(
            account_id=line.revenue_account_id,
            credit=round_money(line.line_amount * exchange_rate),
            description=_clip(f"Revenue - {line.description}", MAX_DESCRIPTION_LENGTH),
            reference=reference,
        ))
    for account_id, label, amount in tax_credits:
        credits.append(JournalLine(
            account_id=account_id,
            credit=round_money(amount * exchange_rate),
            description=_clip(f"{label} - {invoice.invoice_number}", MAX_DESCRIPTION_LENGTH),
            reference=reference,
        ))
    receivable = JournalLine(
        account_id=invoice.ar_account_id,
        debit=sum((c.credit for c in credits), ZERO),
        description=_clip(
            f"AR - {invoice.customer_name} - {invoice.invoice_number}", MAX_DESCRIPTION_LENGTH
        ),
        reference=reference,
    )
    return Journal(
        journal_number=invoice.invoice_number,
        journal_date=invoice.invoice_date,
        currency=base_currency,
        lines=(receivable, *credits),
        context=PostingContext(
            tenant_id=invoice.tenant_id,
            company_id=invoice.company_id,
            user_id=user_id,
            user_role=user_role,
        ),
        description=invoice.description
        or f"Invoice {invoice.invoice_number} - {invoice.customer_name}",
    )


def validate_invoice_posting(
    invoice: InvoicePostingInput,
    *,
    user_id: str,
    user_role: str,
    base_currency: str,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> InvoicePostingOutcome:
    """
    Validate an AR invoice and prepare its journal for posting.

    Returns ``InvoicePosted`` with the accepted journal, or
    ``InvoicePostingFailed``.  A Journal Validator rejection keeps its own
    code (``GROUP_ACCOUNT_TRANSACTION``, ``UNBALANCED_JOURNAL``, ...).
    """
    with LogContext.bind(
        company_id=invoice.company_id,
        voucher_no=invoice.invoice_number,
        actor_id=user_id,
    ):
        outcome = _validate(
            invoice, user_id, user_role, base_currency, directory, authorizer, clock, policy
        )
        if isinstance(outcome, InvoicePostingFailed):
            logger.info("ar_invoice_posting_rejected", extra={"code": outcome.code})
        else:
            logger.info("ar_invoice_posting_validated", extra={
                "total_amount": outcome.total_amount,
                "currency": invoice.currency,
                "requires_approval": outcome.requires_approval,
            })
        return outcome


def _validate(
    invoice: InvoicePostingInput,
    user_id: str,
    user_role: str,
    base_currency: str,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> InvoicePostingOutcome:
    if not invoice.invoice_id or not invoice.ar_account_id or not invoice.lines:
        return _fail(
            InvoicePostingCode.INVALID_AMOUNTS,
            "Missing required fields: invoice_id, ar_account_id, or lines",
        )

    line_check = validate_invoice_lines(invoice.lines)
    if not line_check.valid:
        return _fail(
            InvoicePostingCode.INVALID_AMOUNTS,
            f"Invoice line validation failed: {'; '.join(line_check.errors)}",
            errors=list(line_check.errors),
        )

    total_revenue = sum((line.line_amount for line in invoice.lines), ZERO)
    if total_revenue <= 0:
        return _fail(InvoicePostingCode.INVALID_AMOUNTS, "Invoice revenue must be positive")

    if not is_currency_code(invoice.currency):
        return _fail(
            InvoicePostingCode.INVALID_CURRENCY,
            "Currency must be a valid 3-letter ISO code",
            currency=invoice.currency,
        )
    if invoice.currency != base_currency:
        if invoice.exchange_rate is None or invoice.exchange_rate <= 0:
            return _fail(
                InvoicePostingCode.INVALID_CURRENCY,
                f"Exchange rate required for {invoice.currency} to {base_currency} conversion",
                currency=invoice.currency,
                base_currency=base_currency,
            )
        exchange_rate = invoice.exchange_rate
    else:
        exchange_rate = Decimal("1")

    tax_credits, failure = _tax_credits(invoice)
    if failure is not None:
        return failure
    total_tax = sum((amount for _, _, amount in tax_credits), ZERO)

    journal = build_invoice_journal(
        invoice,
        user_id=user_id,
        user_role=user_role,
        base_currency=base_currency,
        exchange_rate=exchange_rate,
        tax_credits=tax_credits,
    )
    logger.debug("ar_invoice_journal_built", extra={
        "line_count": len(journal.lines),
        "exchange_rate": exchange_rate,
        "total_debit": journal.total_debit,
    })

    result = validate_journal(
        journal, directory=directory, authorizer=authorizer, clock=clock, policy=policy
    )
    if isinstance(result, JournalRejected):
        return InvoicePostingFailed(
            error=f"Journal validation failed: {result.error}",
            code=result.code,
            details={**result.details, "kind": result.kind.value},
        )

    return InvoicePosted(
        journal=journal,
        total_revenue=total_revenue,
        total_tax=total_tax,
        total_amount=total_revenue + total_tax,
        exchange_rate=exchange_rate,
        requires_approval=result.requires_approval,
        approver_roles=result.approver_roles,
        coa_warnings=result.coa_warnings,
    )


__all__ = [
    "build_invoice_journal",
    "calculate_invoice_totals",
    "generate_invoice_description",
    "validate_invoice_lines",
    "validate_invoice_posting",
]
