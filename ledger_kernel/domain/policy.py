"""
Posting policy -- the tunable knobs of the validators.

Responsibility:
    One immutable ``PostingPolicy`` value carries tolerances, line limits,
    cache lifetimes, segregation-of-duties rules and the severity of
    configurable chart-of-accounts checks.  ``ledger_config`` builds it
    from YAML; the defaults here match the packaged ``defaults.yaml``.

Architecture position:
    Kernel > Domain.  Pure, no I/O.  The kernel never imports the config
    package; the config package imports this module.

Failure modes:
    ``PolicyConfigurationError`` from ``__post_init__`` on out-of-range values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.dtos import Severity
from ledger_kernel.domain.ports import PolicyFlags
from ledger_kernel.exceptions import PolicyConfigurationError

JOURNAL_POST_ACTION = "journal:post"


@dataclass(frozen=True)
class SodRule:
    """
    Which roles may perform an action, and which of them need sign-off.

    A role outside ``allowed_roles`` is refused.  A role in
    ``approval_required_roles`` is allowed but the posting is flagged for
    one of ``approver_roles``.
    """

    action: str
    allowed_roles: frozenset[str]
    approval_required_roles: frozenset[str] = frozenset()
    approver_roles: tuple[str, ...] = ("manager", "admin")

    def __post_init__(self) -> None:
        stray = self.approval_required_roles - self.allowed_roles
        if stray:
            raise PolicyConfigurationError(
                f"sod.{self.action}",
                f"approval_required_roles not in allowed_roles: {sorted(stray)}",
            )


@dataclass(frozen=True)
class CacheTtl:
    """Lookup cache lifetimes in seconds."""

    accounts: float = 300.0
    company_currency: float = 600.0
    policy_flags: float = 300.0

    def __post_init__(self) -> None:
        for name in ("accounts", "company_currency", "policy_flags"):
            if getattr(self, name) < 0:
                raise PolicyConfigurationError(f"cache_ttl.{name}", "must be >= 0")


def _default_sod_rules() -> tuple[SodRule, ...]:
    return (
        SodRule(
            action=JOURNAL_POST_ACTION,
            allowed_roles=frozenset({"admin", "manager", "accountant", "clerk"}),
            approval_required_roles=frozenset({"clerk"}),
        ),
    )


@dataclass(frozen=True)
class PostingPolicy:
    balance_tolerance: Decimal = Decimal("0.01")
    max_journal_lines: int = 100
    min_voucher_entries: int = 2
    long_journal_threshold: int = 10
    currency_mismatch_severity: Severity = Severity.ERROR
    control_account_severity: Severity = Severity.ERROR
    deprecated_account_codes: frozenset[str] = frozenset()
    cache_ttl: CacheTtl = field(default_factory=CacheTtl)
    sod_rules: tuple[SodRule, ...] = field(default_factory=_default_sod_rules)
    default_policy_flags: PolicyFlags = field(default_factory=PolicyFlags)

    def __post_init__(self) -> None:
        if self.balance_tolerance < 0:
            raise PolicyConfigurationError("balance_tolerance", "must be >= 0")
        if self.max_journal_lines < 1:
            raise PolicyConfigurationError("max_journal_lines", "must be >= 1")
        if self.min_voucher_entries < 1:
            raise PolicyConfigurationError("min_voucher_entries", "must be >= 1")
        if self.currency_mismatch_severity is Severity.INFO:
            raise PolicyConfigurationError(
                "currency_mismatch_severity", "must be error or warning"
            )
        if self.control_account_severity is Severity.INFO:
            raise PolicyConfigurationError(
                "control_account_severity", "must be error or warning"
            )
        actions = [rule.action for rule in self.sod_rules]
        if len(actions) != len(set(actions)):
            raise PolicyConfigurationError("sod_rules", "duplicate action")

    def sod_rule(self, action: str) -> SodRule | None:
        for rule in self.sod_rules:
            if rule.action == action:
                return rule
        return None
