"""Reference ORM models backing the kernel's ports."""

from ledger_kernel.models.account import AccountRecord
from ledger_kernel.models.company import Company, PeriodClosing
from ledger_kernel.models.gl_entry import GLEntry

__all__ = ["AccountRecord", "Company", "GLEntry", "PeriodClosing"]
