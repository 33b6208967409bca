"""Read-only SQLAlchemy adapters implementing the kernel's ports."""

from ledger_kernel.selectors.account_selector import SqlAccountDirectory
from ledger_kernel.selectors.company_selector import SqlCompanyFacts
from ledger_kernel.selectors.ledger_selector import SqlLedgerQuery

__all__ = ["SqlAccountDirectory", "SqlCompanyFacts", "SqlLedgerQuery"]
