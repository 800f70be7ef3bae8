from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from utils.subunits import MAX_DECIMAL_PLACES, from_subunits, to_subunits


class Asset(BaseModel):
    """An asset ticker and the precision its amounts are stored with.

    Pools only ever handle integer subunits (``10 ** decimal_places`` per unit),
    so precision must not change once transactions reference the asset.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    decimal_places: int
    is_fiat: bool = False

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker must be non-empty")
        return ticker

    @field_validator("decimal_places")
    @classmethod
    def _validate_decimal_places(cls, value: int) -> int:
        if not 0 <= value <= MAX_DECIMAL_PLACES:
            raise ValueError(f"decimal_places must be between 0 and {MAX_DECIMAL_PLACES}")
        return value

    def to_subunits(self, amount: Decimal) -> int:
        return to_subunits(amount, self.decimal_places)

    def from_subunits(self, subunits: int) -> Decimal:
        return from_subunits(subunits, self.decimal_places)

    def __str__(self) -> str:
        return self.ticker
