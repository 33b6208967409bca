"""
ledger_config -- posting policy and reporting settings from YAML.

Responsibility:
    ``load_settings()`` is the single entry point: it reads the packaged
    ``defaults.yaml`` (or a caller-supplied file) and returns the kernel's
    ``PostingPolicy`` plus the raw reporting section.

Architecture position:
    Configuration layer.  Sits above ``ledger_kernel``; the kernel MUST
    NEVER import from ``ledger_config``.

Failure modes:
    - ``FileNotFoundError`` for a missing override file.
    - ``PolicyConfigurationError`` for malformed values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ledger_config.loader import load_yaml_file, parse_posting_policy
from ledger_kernel.domain.policy import PostingPolicy
from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


@dataclass(frozen=True)
class LedgerSettings:
    policy: PostingPolicy
    reporting: dict[str, Any] = field(default_factory=dict)
    source: str = ""


def settings_from_dict(data: dict[str, Any], source: str = "<dict>") -> LedgerSettings:
    return LedgerSettings(
        policy=parse_posting_policy(data),
        reporting=dict(data.get("reporting", {}) or {}),
        source=source,
    )


def load_settings(path: Path | str | None = None) -> LedgerSettings:
    """Load settings from ``path``, or from the packaged defaults."""
    resolved = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = settings_from_dict(load_yaml_file(resolved), source=str(resolved))
    logger.info(
        "ledger_settings_loaded",
        extra={
            "source": settings.source,
            "sod_actions": [rule.action for rule in settings.policy.sod_rules],
            "balance_tolerance": settings.policy.balance_tolerance,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "LedgerSettings",
    "load_settings",
    "settings_from_dict",
]
