from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MAX_DECIMAL_PLACES = 8


def _check_decimal_places(decimal_places: int) -> None:
    if not 0 <= decimal_places <= MAX_DECIMAL_PLACES:
        msg = f"decimal_places must be between 0 and {MAX_DECIMAL_PLACES}, got {decimal_places}"
        raise ValueError(msg)


def to_subunits(amount: Decimal, decimal_places: int) -> int:
    _check_decimal_places(decimal_places)
    return int((Decimal(amount) * (Decimal(10) ** decimal_places)).to_integral_value(rounding=ROUND_HALF_UP))


def from_subunits(subunits: int, decimal_places: int) -> Decimal:
    _check_decimal_places(decimal_places)
    return (Decimal(subunits) / (Decimal(10) ** decimal_places)).quantize(Decimal(1).scaleb(-decimal_places))
