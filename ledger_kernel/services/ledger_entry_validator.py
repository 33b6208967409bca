"""
LedgerEntryValidator -- voucher-level rules on top of the journal checks.

Responsibility:
    Validates a typed voucher (sales invoice, purchase invoice, payment
    entry, journal entry, period closing voucher) against the ledger as it
    stands: balance, duplicate numbers, closed periods, per-account posting
    rules, dual-currency consistency, against-voucher links and the
    per-voucher-type expectations.  Returns a ``ValidationResult`` with
    errors, warnings and suggestions; never raises for business findings.

Architecture position:
    Kernel > Services.  Reads through ``AccountDirectory``, ``CompanyFacts``
    and ``LedgerQuery``; owns one ``ExpiringCache`` per lookup family.

Invariants enforced:
    - A voucher is valid iff no finding has severity ERROR.
    - Account metadata is fetched with one batched directory call per
      validation (cache hits excluded).
    - Cached lookups expire on their own timestamp; an expired entry is
      always re-read from the port.

Failure modes:
    - ``LookupUnavailableError`` from an adapter propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import date
from decimal import Decimal

from ledger_kernel.domain.accounts import (
    CASH_SUBTYPES,
    EXPENSE_SUBTYPES,
    INCOME_SUBTYPES,
    PARTY_SUBTYPES,
    Account,
    AccountSubtype,
    BalanceSide,
)
from ledger_kernel.domain.amounts import ZERO, format_amount
from ledger_kernel.domain.cache import MISSING, ExpiringCache
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import (
    Impact,
    IssueCategory,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)
from ledger_kernel.domain.journal_validator import check_balance, check_line_amounts
from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.domain.ports import (
    AccountDirectory,
    CompanyFacts,
    LedgerQuery,
    PolicyFlags,
)
from ledger_kernel.domain.vouchers import LedgerEntryInput, Voucher, VoucherType
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.ledger_entry_validator")

_Rule = Callable[
    [Voucher, Mapping[str, Account], list[ValidationIssue], list[ValidationWarning]],
    None,
]

REMARKS_SUGGESTION = "Consider adding detailed remarks to explain the journal entry purpose"
COST_CENTER_SUGGESTION = "Adding cost centers will improve financial reporting and analysis"


class LedgerEntryValidator:
    """
    Validates vouchers for one set of ports.

    Create one instance per unit of work; call ``clear_cache()`` when
    reusing an instance across unrelated operations.
    """

    def __init__(
        self,
        directory: AccountDirectory,
        company_facts: CompanyFacts,
        ledger: LedgerQuery,
        clock: Clock,
        policy: PostingPolicy | None = None,
    ):
        self._directory = directory
        self._company_facts = company_facts
        self._ledger = ledger
        self._clock = clock
        self._policy = policy or PostingPolicy()
        ttl = self._policy.cache_ttl
        self._accounts = ExpiringCache(ttl.accounts, clock)
        self._currencies = ExpiringCache(ttl.company_currency, clock)
        self._flags = ExpiringCache(ttl.policy_flags, clock)
        self._voucher_rules: dict[VoucherType, _Rule] = {
            VoucherType.SALES_INVOICE: self._sales_invoice_rules,
            VoucherType.PURCHASE_INVOICE: self._purchase_invoice_rules,
            VoucherType.PAYMENT_ENTRY: self._payment_entry_rules,
            VoucherType.JOURNAL_ENTRY: self._journal_entry_rules,
            VoucherType.PERIOD_CLOSING_VOUCHER: _no_rules,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_voucher(self, voucher: Voucher) -> ValidationResult:
        with LogContext.bind(voucher_no=voucher.voucher_no, company_id=voucher.company_id):
            logger.debug(
                "voucher_validation_started",
                extra={
                    "voucher_type": voucher.voucher_type.value,
                    "entry_count": len(voucher.entries),
                },
            )
            accounts = self._prefetch_accounts(
                (e.account for e in voucher.entries), voucher.company_id
            )

            errors: list[ValidationIssue] = []
            warnings: list[ValidationWarning] = []
            suggestions: list[str] = []

            self._check_voucher_level(voucher, errors)
            for index, entry in enumerate(voucher.entries):
                self._check_entry(
                    voucher, index, entry, accounts.get(entry.account),
                    errors, warnings, suggestions,
                )
            self._voucher_rules[voucher.voucher_type](voucher, accounts, errors, warnings)
            suggestions.extend(self._suggestions(voucher, errors, warnings))

            result = ValidationResult.of(errors, warnings, suggestions)
            logger.info(
                "voucher_validated",
                extra={
                    "voucher_type": voucher.voucher_type.value,
                    "is_valid": result.is_valid,
                    "error_codes": [e.code for e in result.errors],
                    "warning_codes": [w.code for w in result.warnings],
                },
            )
            return result

    def validate_field(
        self,
        field: str,
        value: str | date,
        *,
        voucher_type: VoucherType,
        company_id: str,
    ) -> ValidationResult:
        """
        Check a single form field as the user types.

        Supported fields: ``account_id``, ``voucher_no``, ``posting_date``.
        Any other field validates clean.
        """
        errors: list[ValidationIssue] = []
        if field == "account_id":
            account = self._prefetch_accounts([str(value)], company_id).get(str(value))
            if account is None:
                errors.append(ValidationIssue(
                    code="ACCOUNT_NOT_FOUND",
                    message="Account not found",
                    field=field,
                    category=IssueCategory.DATA_INTEGRITY,
                ))
            elif account.is_group:
                errors.append(ValidationIssue(
                    code="GROUP_ACCOUNT_SELECTED",
                    message="Cannot select group account for transactions",
                    field=field,
                ))
        elif field == "voucher_no":
            if self._ledger.voucher_exists(voucher_type, str(value), company_id):
                errors.append(ValidationIssue(
                    code="DUPLICATE_VOUCHER_NUMBER",
                    message="Voucher number already exists",
                    field=field,
                    category=IssueCategory.DATA_INTEGRITY,
                ))
        elif field == "posting_date":
            message = None
            if not isinstance(value, date):
                try:
                    value = date.fromisoformat(str(value))
                except ValueError:
                    message = "Invalid date format"
            if message is None:
                message = self._posting_date_problem(company_id, value)
            if message is not None:
                errors.append(ValidationIssue(
                    code="INVALID_POSTING_DATE",
                    message=message,
                    field=field,
                    category=IssueCategory.COMPLIANCE,
                ))
        return ValidationResult.of(errors)

    def clear_cache(self) -> None:
        self._accounts.clear()
        self._currencies.clear()
        self._flags.clear()
        logger.debug("validation_cache_cleared")

    # ------------------------------------------------------------------
    # Cached lookups
    # ------------------------------------------------------------------

    def _prefetch_accounts(
        self, account_ids: Iterable[str], company_id: str
    ) -> dict[str, Account]:
        """Accounts by id, restricted to those owned by ``company_id``."""
        found: dict[str, Account] = {}
        to_fetch: list[str] = []
        for account_id in dict.fromkeys(account_ids):
            cached = self._accounts.get(account_id)
            if cached is MISSING:
                to_fetch.append(account_id)
            else:
                found[account_id] = cached
        if to_fetch:
            fetched = self._directory.get_accounts(to_fetch)
            for account_id, account in fetched.items():
                self._accounts.put(account_id, account)
            found.update(fetched)
        return {
            account_id: account
            for account_id, account in found.items()
            if account.company_id == company_id
        }

    def _base_currency(self, company_id: str) -> str:
        return self._currencies.get_or_load(
            company_id, lambda: self._company_facts.get_base_currency(company_id)
        )

    def _policy_flags(self, company_id: str) -> PolicyFlags:
        return self._flags.get_or_load(
            company_id, lambda: self._company_facts.get_policy_flags(company_id)
        )

    # ------------------------------------------------------------------
    # Voucher-level checks
    # ------------------------------------------------------------------

    def _check_voucher_level(self, voucher: Voucher, errors: list[ValidationIssue]) -> None:
        total_debit, total_credit = voucher.total_debit, voucher.total_credit
        issue = check_balance(
            total_debit, total_credit, self._policy.balance_tolerance,
            code="VOUCHER_NOT_BALANCED",
        )
        if issue is not None:
            errors.append(replace(
                issue,
                field="entries",
                message=(
                    f"Voucher is not balanced. Debit: {format_amount(total_debit)}, "
                    f"Credit: {format_amount(total_credit)}, "
                    f"Difference: {format_amount(total_debit - total_credit)}"
                ),
            ))

        if len(voucher.entries) < self._policy.min_voucher_entries:
            errors.append(ValidationIssue(
                code="INSUFFICIENT_ENTRIES",
                message=(
                    f"Voucher must have at least {self._policy.min_voucher_entries} "
                    f"GL entries"
                ),
                field="entries",
            ))

        if self._ledger.voucher_exists(
            voucher.voucher_type, voucher.voucher_no, voucher.company_id
        ):
            errors.append(ValidationIssue(
                code="DUPLICATE_VOUCHER_NUMBER",
                message=(
                    f"Voucher number {voucher.voucher_no} already exists for "
                    f"{voucher.voucher_type.value}"
                ),
                field="voucher_no",
                category=IssueCategory.DATA_INTEGRITY,
            ))

        message = self._posting_date_problem(voucher.company_id, voucher.posting_date)
        if message is not None:
            errors.append(ValidationIssue(
                code="INVALID_POSTING_DATE",
                message=message,
                field="posting_date",
                category=IssueCategory.COMPLIANCE,
            ))

    def _posting_date_problem(self, company_id: str, posting_date: date) -> str | None:
        closed_through = self._ledger.latest_closed_period_end(company_id)
        if closed_through is not None and posting_date <= closed_through:
            return f"Cannot post to closed period (closed through {closed_through.isoformat()})."
        if posting_date > self._clock.today():
            return "Cannot post to future dates"
        return None

    # ------------------------------------------------------------------
    # Per-entry checks
    # ------------------------------------------------------------------

    def _check_entry(
        self,
        voucher: Voucher,
        index: int,
        entry: LedgerEntryInput,
        account: Account | None,
        errors: list[ValidationIssue],
        warnings: list[ValidationWarning],
        suggestions: list[str],
    ) -> None:
        prefix = f"entries[{index}]"
        if account is None:
            errors.append(ValidationIssue(
                code="ACCOUNT_NOT_FOUND",
                message=f"Account {entry.account} not found",
                field=f"{prefix}.account",
                category=IssueCategory.DATA_INTEGRITY,
            ))
            return

        if not account.is_active:
            errors.append(ValidationIssue(
                code="ACCOUNT_INACTIVE",
                message=f"Account {account.name} is inactive or disabled",
                field=f"{prefix}.account",
            ))
        if account.is_frozen:
            errors.append(ValidationIssue(
                code="ACCOUNT_FROZEN",
                message=f"Account {account.name} is frozen for transactions",
                field=f"{prefix}.account",
                category=IssueCategory.COMPLIANCE,
            ))
        if account.is_group:
            errors.append(ValidationIssue(
                code="GROUP_ACCOUNT_TRANSACTION",
                message=f"Cannot post transactions to group account {account.name}",
                field=f"{prefix}.account",
            ))

        if entry.debit < 0 or entry.credit < 0:
            errors.append(ValidationIssue(
                code="NEGATIVE_AMOUNT",
                message="Debit and credit amounts cannot be negative",
                field=f"{prefix}.debit",
                category=IssueCategory.DATA_INTEGRITY,
            ))
        else:
            shape = check_line_amounts(index, entry.debit, entry.credit, "entries")
            if shape is not None:
                errors.append(replace(shape, category=IssueCategory.DATA_INTEGRITY))

        if account.balance_must_be is not None:
            self._check_balance_constraint(voucher, prefix, entry, account, errors)

        if account.account_subtype in PARTY_SUBTYPES and not (entry.party_type and entry.party):
            errors.append(ValidationIssue(
                code="PARTY_REQUIRED",
                message=(
                    f"Party Type and Party are required for "
                    f"{account.account_subtype.value} account"
                ),
                field=f"{prefix}.party",
            ))

        if (
            account.is_profit_and_loss
            and not entry.cost_center
            and voucher.voucher_type is not VoucherType.PERIOD_CLOSING_VOUCHER
        ):
            if self._policy_flags(voucher.company_id).require_cost_center_on_pl:
                errors.append(ValidationIssue(
                    code="COST_CENTER_REQUIRED",
                    message=f"Cost Center is required for Profit and Loss account {account.name}",
                    field=f"{prefix}.cost_center",
                ))
            else:
                warnings.append(ValidationWarning(
                    code="COST_CENTER_RECOMMENDED",
                    message=f"Cost Center is recommended for Profit and Loss account {account.name}",
                    field=f"{prefix}.cost_center",
                    impact=Impact.MEDIUM,
                ))

        self._check_currency(voucher, prefix, entry, account, errors)

        if entry.against_voucher:
            message = self._against_voucher_problem(voucher.company_id, entry)
            if message is not None:
                errors.append(ValidationIssue(
                    code="INVALID_AGAINST_VOUCHER",
                    message=message,
                    field=f"{prefix}.against_voucher",
                ))

        if account.tax_rate is not None and account.tax_rate > 0:
            suggestions.append(
                f"Account {account.name} has a tax rate of {account.tax_rate}%. "
                f"Consider if tax calculation is needed."
            )

    def _check_balance_constraint(
        self,
        voucher: Voucher,
        prefix: str,
        entry: LedgerEntryInput,
        account: Account,
        errors: list[ValidationIssue],
    ) -> None:
        history = self._ledger.get_entries(account.id, voucher.company_id, voucher.posting_date)
        current = sum((row.debit - row.credit for row in history), ZERO)
        new_balance = current + entry.debit - entry.credit
        if account.balance_must_be is BalanceSide.DEBIT:
            ok = new_balance >= 0
        else:
            ok = new_balance <= 0
        if not ok:
            errors.append(ValidationIssue(
                code="BALANCE_CONSTRAINT_VIOLATION",
                message=(
                    f"Account {account.name} balance must be "
                    f"{account.balance_must_be.value.capitalize()}"
                ),
                field=f"{prefix}.account",
                details={"current_balance": current, "new_balance": new_balance},
            ))

    def _check_currency(
        self,
        voucher: Voucher,
        prefix: str,
        entry: LedgerEntryInput,
        account: Account,
        errors: list[ValidationIssue],
    ) -> None:
        if (
            entry.account_currency
            and account.currency is not None
            and entry.account_currency != account.currency
        ):
            errors.append(ValidationIssue(
                code="CURRENCY_MISMATCH",
                message=(
                    f"Entry currency {entry.account_currency} does not match "
                    f"account currency {account.currency}"
                ),
                field=f"{prefix}.account_currency",
                category=IssueCategory.DATA_INTEGRITY,
            ))

        if account.currency is None or account.currency == self._base_currency(voucher.company_id):
            return
        in_account_currency = (entry.debit_in_account_currency or ZERO) + (
            entry.credit_in_account_currency or ZERO
        )
        if in_account_currency <= 0:
            errors.append(ValidationIssue(
                code="MISSING_ACCOUNT_CURRENCY_AMOUNT",
                message="Provide amounts in account currency for foreign currency accounts",
                field=f"{prefix}.debit_in_account_currency",
            ))
        if entry.transaction_currency and entry.transaction_currency != account.currency:
            if entry.exchange_rate is None or entry.exchange_rate <= Decimal("0"):
                errors.append(ValidationIssue(
                    code="MISSING_EXCHANGE_RATE",
                    message=(
                        "Positive exchange rate required when transaction currency "
                        "differs from account currency"
                    ),
                    field=f"{prefix}.exchange_rate",
                ))

    def _against_voucher_problem(self, company_id: str, entry: LedgerEntryInput) -> str | None:
        if entry.against_voucher_type is None:
            return f"Against voucher type is required for {entry.against_voucher}"
        target = self._ledger.find_open_voucher(
            entry.against_voucher_type, entry.against_voucher, company_id
        )
        if target is None:
            return (
                f"Against voucher {entry.against_voucher_type.value} "
                f"{entry.against_voucher} not found"
            )
        if not target.is_open:
            return (
                f"Against voucher {entry.against_voucher_type.value} "
                f"{entry.against_voucher} has no outstanding amount"
            )
        if entry.party and target.party and entry.party != target.party:
            return "Party mismatch with against voucher"
        return None

    # ------------------------------------------------------------------
    # Voucher-type rules
    # ------------------------------------------------------------------

    def _sales_invoice_rules(self, voucher, accounts, errors, warnings) -> None:
        subtypes = _subtypes(voucher, accounts)
        if AccountSubtype.RECEIVABLE not in subtypes:
            errors.append(ValidationIssue(
                code="SALES_INVOICE_NO_RECEIVABLE",
                message="Sales Invoice must have at least one Receivable account entry",
                field="voucher",
            ))
        if not subtypes & INCOME_SUBTYPES:
            warnings.append(ValidationWarning(
                code="SALES_INVOICE_NO_INCOME",
                message="Sales Invoice typically includes Income account entries",
                field="voucher",
            ))

    def _purchase_invoice_rules(self, voucher, accounts, errors, warnings) -> None:
        subtypes = _subtypes(voucher, accounts)
        if AccountSubtype.PAYABLE not in subtypes:
            errors.append(ValidationIssue(
                code="PURCHASE_INVOICE_NO_PAYABLE",
                message="Purchase Invoice must have at least one Payable account entry",
                field="voucher",
            ))
        if not subtypes & EXPENSE_SUBTYPES:
            warnings.append(ValidationWarning(
                code="PURCHASE_INVOICE_NO_EXPENSE",
                message="Purchase Invoice typically includes Expense account entries",
                field="voucher",
            ))

    def _payment_entry_rules(self, voucher, accounts, errors, warnings) -> None:
        if not _subtypes(voucher, accounts) & CASH_SUBTYPES:
            errors.append(ValidationIssue(
                code="PAYMENT_ENTRY_NO_CASH_BANK",
                message="Payment Entry must have at least one Bank or Cash account entry",
                field="voucher",
            ))
        if not any(e.against_voucher for e in voucher.entries):
            warnings.append(ValidationWarning(
                code="PAYMENT_ENTRY_NO_AGAINST_VOUCHER",
                message="Payment Entry typically links to outstanding invoices",
                field="voucher",
                impact=Impact.LOW,
            ))

    def _journal_entry_rules(self, voucher, accounts, errors, warnings) -> None:
        if len(voucher.entries) > self._policy.long_journal_threshold:
            warnings.append(ValidationWarning(
                code="JOURNAL_ENTRY_MANY_LINES",
                message="Journal Entry has many lines. Consider breaking into multiple entries.",
                field="voucher",
                impact=Impact.LOW,
            ))

    @staticmethod
    def _suggestions(
        voucher: Voucher,
        errors: list[ValidationIssue],
        warnings: list[ValidationWarning],
    ) -> list[str]:
        suggestions: list[str] = []
        if (
            voucher.voucher_type is VoucherType.JOURNAL_ENTRY
            and not any(e.severity is Severity.ERROR for e in errors)
            and not voucher.remarks
        ):
            suggestions.append(REMARKS_SUGGESTION)
        if any(w.code == "COST_CENTER_RECOMMENDED" for w in warnings):
            suggestions.append(COST_CENTER_SUGGESTION)
        return suggestions


def _subtypes(voucher: Voucher, accounts: Mapping[str, Account]) -> set[AccountSubtype]:
    return {
        accounts[e.account].account_subtype
        for e in voucher.entries
        if e.account in accounts
    }


def _no_rules(voucher, accounts, errors, warnings) -> None:
    # Period closing vouchers carry no type-specific expectations.
    return None
