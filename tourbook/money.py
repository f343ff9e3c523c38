"""Money helpers shared by every price computation."""

from decimal import ROUND_HALF_UP, ROUND_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Noise below this precision is dropped before rounding away from zero
_NOISE_PRECISION = Decimal("1e-10")


def to_decimal(value: Any) -> Decimal:
    """Convert ints, floats and numeric strings to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(value: Any, default: str = "0") -> Decimal:
    """Parse an optional backend amount, falling back to `default` instead of raising."""
    if value is None or isinstance(value, bool):
        return Decimal(default)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return Decimal(default)
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal(default)
    if not amount.is_finite():
        return Decimal(default)
    return amount


def round_up(amount: Any, places: int = 2) -> Decimal:
    """Round away from zero at `places` decimals.

    Commission must never be under-collected, so 5.341 becomes 5.35 and
    -5.341 becomes -5.35. The value is first normalised to ten decimals
    so representation noise (0.1 + 0.2) cannot push it over a boundary.
    """
    places = max(places, 0)
    value = to_decimal(amount).quantize(_NOISE_PRECISION, rounding=ROUND_HALF_UP)
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_UP)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    return round_up(amount * percentage / 100)
