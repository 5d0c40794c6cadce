"""Minor-unit money helpers"""

from decimal import Decimal, ROUND_HALF_UP


def to_major_units(amount_minor: int) -> Decimal:
    """Convert kobo/cents to naira/dollars (100 minor units per major unit)"""
    return (Decimal(amount_minor) / 100).quantize(Decimal("0.01"))


def format_amount(amount_minor: int) -> str:
    """Render minor units as a fixed two-decimal string, e.g. 12345 -> '123.45'"""
    return f"{to_major_units(amount_minor):.2f}"


def to_minor_units(amount_major) -> int:
    """Convert a provider major-unit amount (e.g. 123.45) to minor units, rounding half up"""
    return int((Decimal(str(amount_major)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
