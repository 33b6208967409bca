"""
Ledger Modules

Document posting builders and financial reporting built on ledger_kernel:
- ar: customer invoice posting
- ap: payment processing (bill payments and invoice receipts)
- reporting: trial balance and balance sheet
"""
