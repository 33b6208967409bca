"""
Accounts Receivable posting.

Builds the journal for a customer invoice (Dr AR, Cr revenue, Cr output
tax) and validates it through the kernel's Journal Validator.
"""

from ledger_modules.ar.invoice_posting import (
    build_invoice_journal,
    calculate_invoice_totals,
    generate_invoice_description,
    validate_invoice_lines,
    validate_invoice_posting,
)
from ledger_modules.ar.models import (
    InvoiceLineInput,
    InvoicePosted,
    InvoicePostingCode,
    InvoicePostingFailed,
    InvoicePostingInput,
    InvoiceTotals,
    TaxLineInput,
    TaxType,
)

__all__ = [
    "InvoiceLineInput",
    "InvoicePosted",
    "InvoicePostingCode",
    "InvoicePostingFailed",
    "InvoicePostingInput",
    "InvoiceTotals",
    "TaxLineInput",
    "TaxType",
    "build_invoice_journal",
    "calculate_invoice_totals",
    "generate_invoice_description",
    "validate_invoice_lines",
    "validate_invoice_posting",
]
