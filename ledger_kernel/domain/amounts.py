"""
Amounts -- Decimal helpers shared by every validator and builder.

Money in this kernel is always ``Decimal``.  Inputs that arrive as ``int``,
``str`` or ``float`` are coerced through ``str`` so that ``0.1`` stays
``Decimal("0.1")`` and never becomes ``0.1000000000000000055...``.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Absolute tolerance for balance and reconciliation checks.
BALANCE_TOLERANCE = Decimal("0.01")

ZERO = Decimal("0")

_CENT = Decimal("0.01")
_CURRENCY_CODE = re.compile(r"[A-Z]{3}")


def to_decimal(value: Decimal | int | str | float | None) -> Decimal:
    """Coerce a monetary input to Decimal. ``None`` becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a valid amount: {value!r}") from exc


def round_money(value: Decimal) -> Decimal:
    """Round to two decimal places, half-up."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
    return abs(a - b) <= tolerance


def is_currency_code(code: str | None) -> bool:
    """True for exactly three upper-case letters."""
    return bool(code) and _CURRENCY_CODE.fullmatch(code) is not None


def format_amount(value: Decimal) -> str:
    return f"{round_money(value):.2f}"
