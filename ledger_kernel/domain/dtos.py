"""
Validation DTOs -- the result values every validator returns.

Responsibility:
    Business findings travel as data, not exceptions.  A validator collects
    ``ValidationIssue`` and ``ValidationWarning`` values and hands back one
    ``ValidationResult`` so a caller can show every problem at once.

Architecture position:
    Kernel > Domain.  Pure, no I/O.

Invariants:
    - ``ValidationResult.is_valid`` is True iff no issue has severity ERROR.
      Warnings and info-level issues never block posting.
    - Suggestions are de-duplicated with first-seen order kept.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    BUSINESS_RULE = "business_rule"
    DATA_INTEGRITY = "data_integrity"
    COMPLIANCE = "compliance"
    PERFORMANCE = "performance"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueKind(str, Enum):
    """Which family of rule produced a rejection."""

    STRUCTURAL = "structural"
    INVARIANT = "invariant"
    POLICY = "policy"
    AUTHORIZATION = "authorization"
    REFERENTIAL = "referential"


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single validation finding with a machine-readable code.

    ``field`` names the offending input (``"entries[2].account"``,
    ``"voucher_no"``) so a form can highlight it.
    """

    code: str
    message: str
    field: str | None = None
    severity: Severity = Severity.ERROR
    category: IssueCategory = IssueCategory.BUSINESS_RULE
    details: dict[str, Any] | None = None

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass(frozen=True)
class ValidationWarning:
    """An advisory finding. Never blocks posting."""

    code: str
    message: str
    field: str | None = None
    impact: Impact = Impact.MEDIUM
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Aggregated outcome of a voucher or field validation.

    Guarantees:
        - errors, warnings and suggestions are always tuples (never None)
        - bool(result) == result.is_valid
    """

    errors: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    warnings: tuple[ValidationWarning, ...] = field(default_factory=tuple)
    suggestions: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def of(
        cls,
        errors: Iterable[ValidationIssue] = (),
        warnings: Iterable[ValidationWarning] = (),
        suggestions: Iterable[str] = (),
    ) -> ValidationResult:
        """Build a result, de-duplicating suggestions in first-seen order."""
        return cls(
            errors=tuple(errors),
            warnings=tuple(warnings),
            suggestions=tuple(dict.fromkeys(suggestions)),
        )

    @property
    def is_valid(self) -> bool:
        return not self.has_blocking_errors()

    def __bool__(self) -> bool:
        return self.is_valid

    def has_blocking_errors(self) -> bool:
        return any(e.is_blocking for e in self.errors)

    def format_errors(self) -> str:
        """One ``field: message`` line per error, for display."""
        return "\n".join(
            f"{e.field}: {e.message}" if e.field else e.message
            for e in self.errors
        )

    def errors_by_field(self, field_name: str) -> tuple[ValidationIssue, ...]:
        return tuple(e for e in self.errors if e.field == field_name)

    def group_errors_by_category(self) -> dict[IssueCategory, list[ValidationIssue]]:
        grouped: dict[IssueCategory, list[ValidationIssue]] = defaultdict(list)
        for e in self.errors:
            grouped[e.category].append(e)
        return dict(grouped)
