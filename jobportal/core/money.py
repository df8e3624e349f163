"""
Decimal helpers for settlement amounts.

All amounts are kept as Decimal and rounded half-up to cents.
"""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Coerce int/float/str/None to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value if value is not None else "0"))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    """Render an amount the way the API returns it, e.g. "80.00"."""
    return str(round_money(value))


def percentage_of(amount, percentage) -> Decimal:
    """amount × percentage / 100, rounded to cents."""
    return round_money(to_decimal(amount) * to_decimal(percentage) / Decimal(100))
