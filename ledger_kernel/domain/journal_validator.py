"""
JournalValidator -- gatekeeper for every proposed journal.

Responsibility:
    Decide whether a ``Journal`` may be posted.  Answers with
    ``JournalValidated`` (totals, approval requirement, advisories, the
    account records it looked up) or ``JournalRejected`` (message, code,
    details, rule family).

Architecture position:
    Kernel > Domain.  Reads through the ``AccountDirectory`` and
    ``Authorizer`` ports; no writes, no other side effects.

Check order:
    1. Segregation of duties for ``journal:post``
    2. Line count (1..max_journal_lines)
    3. Line shape, exactly one positive side per line
    4. Balance within tolerance
    5. Currency code format
    6. Journal date not in the future
    7. Chart-of-accounts policy (one batched directory lookup)

    Steps 1 to 6 stop at the first failure.  Step 7 collects every finding
    and rejects with the first error's code when any finding is an error.

Invariants:
    - |total debit - total credit| <= tolerance for every accepted journal.
    - Validation is idempotent: same journal, same port state, same answer.
"""

from collections.abc import Mapping
from decimal import Decimal

from ledger_kernel.domain.accounts import Account
from ledger_kernel.domain.amounts import BALANCE_TOLERANCE, is_currency_code
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.coa_policy import check_chart_of_accounts
from ledger_kernel.domain.dtos import IssueCategory, IssueKind, ValidationIssue
from ledger_kernel.domain.journal import (
    Journal,
    JournalOutcome,
    JournalRejected,
    JournalValidated,
)
from ledger_kernel.domain.policy import JOURNAL_POST_ACTION, PostingPolicy
from ledger_kernel.domain.ports import AccountDirectory, Authorizer
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("domain.journal_validator")


def check_line_amounts(
    index: int, debit: Decimal, credit: Decimal, field_prefix: str = "lines"
) -> ValidationIssue | None:
    """Exactly one of debit/credit must be positive. ``index`` is 0-based."""
    if debit > 0 and credit > 0:
        return ValidationIssue(
            code="INVALID_LINE_AMOUNTS",
            message=f"Line {index + 1}: cannot have both debit and credit amounts",
            field=f"{field_prefix}[{index}]",
            details={"line_index": index},
        )
    if debit <= 0 and credit <= 0:
        return ValidationIssue(
            code="ZERO_AMOUNTS",
            message=f"Line {index + 1}: must have either debit or credit amount",
            field=f"{field_prefix}[{index}]",
            details={"line_index": index},
        )
    return None


def check_balance(
    total_debit: Decimal,
    total_credit: Decimal,
    tolerance: Decimal = BALANCE_TOLERANCE,
    code: str = "UNBALANCED_JOURNAL",
) -> ValidationIssue | None:
    difference = total_debit - total_credit
    if abs(difference) <= tolerance:
        return None
    return ValidationIssue(
        code=code,
        message=(
            f"Total debits ({total_debit}) must equal total credits "
            f"({total_credit}); difference {difference}"
        ),
        category=IssueCategory.DATA_INTEGRITY,
        details={
            "total_debit": total_debit,
            "total_credit": total_credit,
            "difference": difference,
        },
    )


def validate_journal(
    journal: Journal,
    *,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> JournalOutcome:
    """Validate a proposed journal. See module docstring for check order."""
    context = journal.context
    with LogContext.bind(
        journal_number=journal.journal_number,
        company_id=context.company_id,
        actor_id=context.user_id,
    ):
        logger.debug(
            "journal_validation_started",
            extra={"line_count": len(journal.lines), "currency": journal.currency},
        )
        outcome = _validate(journal, directory, authorizer, clock, policy)
        if isinstance(outcome, JournalRejected):
            logger.info(
                "journal_rejected",
                extra={"code": outcome.code, "kind": outcome.kind.value},
            )
        else:
            logger.info(
                "journal_validated",
                extra={
                    "total_debit": outcome.total_debit,
                    "requires_approval": outcome.requires_approval,
                    "warning_count": len(outcome.coa_warnings),
                },
            )
        return outcome


def _reject(issue: ValidationIssue, kind: IssueKind) -> JournalRejected:
    return JournalRejected(
        error=issue.message,
        code=issue.code,
        kind=kind,
        details=dict(issue.details or {}),
    )


def _validate(
    journal: Journal,
    directory: AccountDirectory,
    authorizer: Authorizer,
    clock: Clock,
    policy: PostingPolicy,
) -> JournalOutcome:
    decision = authorizer.check_segregation_of_duties(
        JOURNAL_POST_ACTION, journal.context.user_role
    )
    if not decision.allowed:
        return JournalRejected(
            error=decision.reason or (
                f"Role {journal.context.user_role} may not post journals"
            ),
            code="SOD_VIOLATION",
            kind=IssueKind.AUTHORIZATION,
            details={"action": JOURNAL_POST_ACTION, "role": journal.context.user_role},
        )

    if not journal.lines:
        return JournalRejected(
            error="Journal must have at least one line",
            code="NO_LINES",
            kind=IssueKind.STRUCTURAL,
        )
    if len(journal.lines) > policy.max_journal_lines:
        return JournalRejected(
            error=f"Journal cannot have more than {policy.max_journal_lines} lines",
            code="TOO_MANY_LINES",
            kind=IssueKind.STRUCTURAL,
            details={"line_count": len(journal.lines)},
        )

    for index, line in enumerate(journal.lines):
        issue = check_line_amounts(index, line.debit, line.credit)
        if issue is not None:
            return _reject(issue, IssueKind.STRUCTURAL)

    total_debit, total_credit = journal.total_debit, journal.total_credit
    issue = check_balance(total_debit, total_credit, policy.balance_tolerance)
    if issue is not None:
        return _reject(issue, IssueKind.INVARIANT)

    if not is_currency_code(journal.currency):
        return JournalRejected(
            error="Currency must be a valid 3-letter ISO code",
            code="INVALID_CURRENCY",
            kind=IssueKind.STRUCTURAL,
            details={"currency": journal.currency},
        )

    today = clock.today()
    if journal.journal_date > today:
        return JournalRejected(
            error="Journal date cannot be in the future",
            code="FUTURE_DATE",
            kind=IssueKind.POLICY,
            details={"journal_date": journal.journal_date, "today": today},
        )

    # Another company's account is as good as missing.
    accounts: Mapping[str, Account] = {
        account_id: account
        for account_id, account in directory.get_accounts(journal.account_ids).items()
        if account.company_id == journal.context.company_id
    }
    errors, warnings = check_chart_of_accounts(
        journal.lines, accounts, journal.currency, policy
    )
    if errors:
        first = errors[0]
        kind = (
            IssueKind.REFERENTIAL
            if first.code == "ACCOUNTS_NOT_FOUND"
            else IssueKind.POLICY
        )
        details = dict(first.details or {})
        details["violations"] = [
            {"code": e.code, "message": e.message, **(e.details or {})}
            for e in errors
        ]
        return JournalRejected(
            error=first.message, code=first.code, kind=kind, details=details
        )

    return JournalValidated(
        total_debit=total_debit,
        total_credit=total_credit,
        requires_approval=decision.requires_approval,
        approver_roles=decision.approver_roles if decision.requires_approval else (),
        coa_warnings=tuple(warnings),
        account_details=dict(accounts),
    )
