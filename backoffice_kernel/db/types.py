"""
Module: backoffice_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money,
    percentage and hour columns.  Centralizes precision and rounding so that
    every model and calculation uses identical definitions.
Architecture position: Kernel > DB.  May be imported by domain helpers,
    modules and services.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats in stored or computed amounts.  All monetary amounts use
      Decimal, and round_money() is the only sanctioned rounding function.

Failure modes:
    - ValidationError when a value cannot be converted to Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import Numeric

from backoffice_kernel.exceptions import ValidationError

# Column types.  Pass explicitly to mapped_column() where the default
# Decimal mapping (money with cents) is not the right precision.
MONEY = Numeric(18, 2)

# Percentages as entered by users (5 means 5 %)
PERCENTAGE = Numeric(9, 4)

# Rates as fractions (0.0065 means 0.65 %)
RATE = Numeric(12, 6)

# Durations in hours with two decimals
HOURS = Numeric(9, 2)

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value, field: str = "value") -> Decimal:
    """
    Convert user or database input to Decimal.

    ``None`` and empty strings become zero.  Floats go through ``str`` so
    that 0.1 stays 0.1.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(field, "boolean is not a number")
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(field, f"not a number: {value!r}") from None


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def percent_to_rate(percentage: Decimal) -> Decimal:
    """Convert a user-facing percentage (5) to a fraction (0.05)."""
    return to_decimal(percentage, "percentage") / HUNDRED
