"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Reads the posting policy YAML and parses it into the kernel's frozen
``PostingPolicy`` dataclass.  The ``reporting`` section is returned as a
plain mapping for ``ReportingConfig.from_dict``.

Architecture position
---------------------
**Config layer**.  Imports the kernel's policy types; the kernel never
imports this package.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or mistyped values  -> ``PolicyConfigurationError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_kernel.domain.dtos import Severity
from ledger_kernel.domain.policy import CacheTtl, PostingPolicy, SodRule
from ledger_kernel.domain.ports import PolicyFlags
from ledger_kernel.exceptions import PolicyConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise PolicyConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_decimal(value: Any, setting: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise PolicyConfigurationError(setting, f"not a decimal: {value!r}") from exc


def parse_severity(value: Any, setting: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError as exc:
        raise PolicyConfigurationError(setting, f"unknown severity {value!r}") from exc


def parse_bool(value: Any, setting: str) -> bool:
    if not isinstance(value, bool):
        raise PolicyConfigurationError(setting, f"expected true or false, got {value!r}")
    return value


def parse_sod_rule(data: dict[str, Any]) -> SodRule:
    try:
        action = data["action"]
        allowed = data["allowed_roles"]
    except KeyError as exc:
        raise PolicyConfigurationError("sod", f"missing key {exc.args[0]!r}") from exc
    return SodRule(
        action=action,
        allowed_roles=frozenset(allowed),
        approval_required_roles=frozenset(data.get("approval_required_roles", ())),
        approver_roles=tuple(data.get("approver_roles", ("manager", "admin"))),
    )


def parse_posting_policy(data: dict[str, Any]) -> PostingPolicy:
    """Build a ``PostingPolicy`` from the parsed YAML mapping."""
    posting = data.get("posting", {}) or {}
    ttl = data.get("cache_ttl_seconds", {}) or {}
    defaults = PostingPolicy()
    kwargs: dict[str, Any] = {}

    if "balance_tolerance" in posting:
        kwargs["balance_tolerance"] = parse_decimal(
            posting["balance_tolerance"], "posting.balance_tolerance"
        )
    for key in ("max_journal_lines", "min_voucher_entries", "long_journal_threshold"):
        if key in posting:
            kwargs[key] = int(posting[key])
    for key in ("currency_mismatch_severity", "control_account_severity"):
        if key in posting:
            kwargs[key] = parse_severity(posting[key], f"posting.{key}")
    if "deprecated_account_codes" in posting:
        kwargs["deprecated_account_codes"] = frozenset(
            str(code) for code in posting["deprecated_account_codes"] or ()
        )
    if "require_cost_center_on_pl" in posting:
        kwargs["default_policy_flags"] = PolicyFlags(
            require_cost_center_on_pl=parse_bool(
                posting["require_cost_center_on_pl"], "posting.require_cost_center_on_pl"
            )
        )
    if ttl:
        kwargs["cache_ttl"] = CacheTtl(
            accounts=float(ttl.get("accounts", defaults.cache_ttl.accounts)),
            company_currency=float(
                ttl.get("company_currency", defaults.cache_ttl.company_currency)
            ),
            policy_flags=float(ttl.get("policy_flags", defaults.cache_ttl.policy_flags)),
        )
    if "sod" in data:
        kwargs["sod_rules"] = tuple(parse_sod_rule(rule) for rule in data["sod"] or ())

    return PostingPolicy(**kwargs)
