"""
Payment processing.

Builds the journal for bill payments and invoice receipts, including bank
charges and withholding tax, and validates it through the kernel's
Journal Validator.
"""

from ledger_modules.ap.models import (
    AllocationType,
    BankChargeInput,
    PaymentAllocationInput,
    PaymentDirection,
    PaymentMethod,
    PaymentProcessed,
    PaymentProcessingCode,
    PaymentProcessingFailed,
    PaymentProcessingInput,
    WithholdingTaxInput,
)
from ledger_modules.ap.payment_processing import (
    build_payment_journal,
    calculate_payment_summary,
    generate_payment_number,
    validate_payment_allocations,
    validate_payment_business_rules,
    validate_payment_processing,
)

__all__ = [
    "AllocationType",
    "BankChargeInput",
    "PaymentAllocationInput",
    "PaymentDirection",
    "PaymentMethod",
    "PaymentProcessed",
    "PaymentProcessingCode",
    "PaymentProcessingFailed",
    "PaymentProcessingInput",
    "WithholdingTaxInput",
    "build_payment_journal",
    "calculate_payment_summary",
    "generate_payment_number",
    "validate_payment_allocations",
    "validate_payment_business_rules",
    "validate_payment_processing",
]
