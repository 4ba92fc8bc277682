"""Money and period constants shared by every calculator."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# The only weeks-per-year figure used anywhere in the engine.
DAYS_PER_YEAR = Decimal("365.25")
WEEKS_PER_YEAR = DAYS_PER_YEAR / Decimal(7)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to cents using ROUND_HALF_UP."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a numeric input to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def percent_of(amount: Decimal, rate_percent: Decimal) -> Decimal:
    """Apply a percentage rate (1.5 means 1.5%) and round to cents."""
    return round_to_cents(amount * rate_percent / HUNDRED)
