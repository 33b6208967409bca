"""Trial balance and balance sheet reporting."""

from ledger_modules.reporting.balance_sheet import build_balance_sheet
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    ReportFailure,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.trial_balance import (
    TrialBalanceFilter,
    aggregate_trial_balance,
)

__all__ = [
    "BalanceSheetReport",
    "ReportFailure",
    "ReportingConfig",
    "ReportingService",
    "TrialBalanceFilter",
    "TrialBalanceReport",
    "aggregate_trial_balance",
    "build_balance_sheet",
]
