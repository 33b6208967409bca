"""
Chart-of-accounts policy checks.

Pure functions over already-fetched ``Account`` values.  Hard blocks
(missing, inactive, frozen, group) are always errors; currency mismatch and
control-account postings take their severity from ``PostingPolicy``;
normal-balance direction and deprecated codes are advisories only.
"""

from collections.abc import Iterable, Mapping

from ledger_kernel.domain.accounts import Account, BalanceSide
from ledger_kernel.domain.dtos import (
    Impact,
    IssueCategory,
    Severity,
    ValidationIssue,
    ValidationWarning,
)
from ledger_kernel.domain.journal import JournalLine
from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.coa_policy")


def check_chart_of_accounts(
    lines: Iterable[JournalLine],
    accounts: Mapping[str, Account],
    journal_currency: str,
    policy: PostingPolicy,
) -> tuple[list[ValidationIssue], list[ValidationWarning]]:
    """Return (errors, warnings) for every line against its account."""
    lines = list(lines)
    errors: list[ValidationIssue] = []
    warnings: list[ValidationWarning] = []

    requested = list(dict.fromkeys(line.account_id for line in lines))
    missing = [account_id for account_id in requested if account_id not in accounts]
    if missing:
        errors.append(
            ValidationIssue(
                code="ACCOUNTS_NOT_FOUND",
                message=f"Accounts not found: {', '.join(missing)}",
                field="lines",
                category=IssueCategory.DATA_INTEGRITY,
                details={"missing_account_ids": missing},
            )
        )

    known = [accounts[account_id] for account_id in requested if account_id in accounts]
    errors.extend(_check_posting_status(known))
    mismatches = check_currency(known, journal_currency)
    if mismatches:
        issue = ValidationIssue(
            code="CURRENCY_MISMATCH",
            message=(
                f"Journal currency {journal_currency} does not match "
                f"account currency for {len(mismatches)} account(s)"
            ),
            field="currency",
            severity=policy.currency_mismatch_severity,
            details={"journal_currency": journal_currency, "mismatches": mismatches},
        )
        _route(issue, errors, warnings)
    for issue in check_control_accounts(known, policy.control_account_severity):
        _route(issue, errors, warnings)

    warnings.extend(check_normal_balance(lines, accounts))
    warnings.extend(check_deprecated(known, policy.deprecated_account_codes))

    if errors or warnings:
        logger.debug(
            "coa_findings",
            extra={
                "error_codes": [e.code for e in errors],
                "warning_codes": [w.code for w in warnings],
            },
        )
    return errors, warnings


def _route(
    issue: ValidationIssue,
    errors: list[ValidationIssue],
    warnings: list[ValidationWarning],
) -> None:
    if issue.severity is Severity.ERROR:
        errors.append(issue)
    else:
        warnings.append(
            ValidationWarning(
                code=issue.code,
                message=issue.message,
                field=issue.field,
                impact=Impact.HIGH,
                details=issue.details,
            )
        )


def _check_posting_status(accounts: Iterable[Account]) -> list[ValidationIssue]:
    errors: list[ValidationIssue] = []
    for account in accounts:
        if not account.is_active:
            errors.append(
                ValidationIssue(
                    code="ACCOUNT_INACTIVE",
                    message=f"Account {account.code} - {account.name} is inactive",
                    field="lines",
                    details={"account_id": account.id},
                )
            )
        if account.is_frozen:
            errors.append(
                ValidationIssue(
                    code="ACCOUNT_FROZEN",
                    message=f"Account {account.code} - {account.name} is frozen",
                    field="lines",
                    category=IssueCategory.COMPLIANCE,
                    details={"account_id": account.id},
                )
            )
        if account.is_group:
            errors.append(
                ValidationIssue(
                    code="GROUP_ACCOUNT_TRANSACTION",
                    message=(
                        f"Account {account.code} - {account.name} is a group "
                        f"account and cannot be posted to"
                    ),
                    field="lines",
                    details={"account_id": account.id},
                )
            )
    return errors


def check_currency(accounts: Iterable[Account], journal_currency: str) -> list[dict[str, str]]:
    """Accounts whose fixed currency differs from the journal's."""
    return [
        {"account_id": account.id, "account_currency": account.currency}
        for account in accounts
        if account.currency is not None and account.currency != journal_currency
    ]


def check_control_accounts(
    accounts: Iterable[Account], severity: Severity
) -> list[ValidationIssue]:
    # Group accounts are already blocked by the posting-status check.
    return [
        ValidationIssue(
            code="CONTROL_ACCOUNT_VIOLATION",
            message=(
                f"Top-level control account {account.code} (level 0) "
                f"cannot be posted to directly"
            ),
            field="lines",
            severity=severity,
            category=IssueCategory.COMPLIANCE,
            details={"account_id": account.id},
        )
        for account in accounts
        if account.depth == 0 and not account.is_group
    ]


def check_normal_balance(
    lines: Iterable[JournalLine], accounts: Mapping[str, Account]
) -> list[ValidationWarning]:
    """Advise when a line moves an account away from its normal side."""
    warnings: list[ValidationWarning] = []
    for line in lines:
        account = accounts.get(line.account_id)
        if account is None:
            continue
        against_normal = line.credit if account.normal_balance is BalanceSide.DEBIT else line.debit
        if against_normal <= 0:
            continue
        side = "credit" if line.credit > 0 else "debit"
        warnings.append(
            ValidationWarning(
                code="NORMAL_BALANCE_DEVIATION",
                message=(
                    f"{account.account_type.name} account {account.code} normally "
                    f"has {account.normal_balance.value} balance"
                ),
                field="lines",
                impact=Impact.LOW,
                details={
                    "account_id": account.id,
                    "account_type": account.account_type.value,
                    "amount": against_normal,
                    "side": side,
                },
            )
        )
    return warnings


def check_deprecated(
    accounts: Iterable[Account], deprecated_codes: frozenset[str]
) -> list[ValidationWarning]:
    return [
        ValidationWarning(
            code="DEPRECATED_ACCOUNT",
            message=f"Account {account.code} is deprecated; use its replacement",
            field="lines",
            impact=Impact.MEDIUM,
            details={"account_id": account.id},
        )
        for account in accounts
        if account.code in deprecated_codes
    ]
