# storefront/core/money.py
from decimal import Decimal, InvalidOperation

# Cents: 2 fraction digits.
MINOR_UNITS_PER_MAJOR = 100
_QUANTUM = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
    """
    Convert a decimal amount (e.g. Decimal("5.50")) into integer minor units (550).

    Raises:
        ValueError: if the amount is not finite or has more than two
          fraction digits.
    """
    try:
        if not amount.is_finite():
            raise ValueError("amount must be a finite number")
        scaled = amount * MINOR_UNITS_PER_MAJOR
        if scaled != scaled.to_integral_value():
            raise ValueError("amount cannot have more than 2 decimal places")
    except InvalidOperation as exc:
        raise ValueError("amount is not a valid number") from exc
    return int(scaled)


def from_minor_units(minor: int) -> Decimal:
    """550 -> Decimal("5.50")"""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(_QUANTUM)
