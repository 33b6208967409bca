"""
Ledger Kernel

Double-entry posting core:
- Journal validation (balance, line shape, currency, chart-of-accounts policy)
- Voucher-level ledger entry validation with per-voucher-type rules
- Read-only ports to the account directory, company facts and the ledger
- Reference SQLAlchemy adapters for those ports
"""

__version__ = "0.1.0"
