from __future__ import annotations

from collections import defaultdict

from .assets import Asset


class BalanceError(Exception):
    def __init__(
        self,
        *,
        asset: Asset,
        attempted_subunits: int,
        available_subunits: int,
    ) -> None:
        self.asset = asset
        self.attempted_subunits = attempted_subunits
        self.available_subunits = available_subunits
        message = (
            f"Insufficient balance for asset={asset} "
            f"attempted={asset.from_subunits(-attempted_subunits)} "
            f"available={asset.from_subunits(available_subunits)}"
        )
        super().__init__(message)


class BalanceTracker:
    """Running per-asset balance in subunits; rejects movements that would go negative."""

    def __init__(self) -> None:
        self._balances: dict[Asset, int] = defaultdict(int)

    def apply_movement(self, *, asset: Asset, subunits: int) -> None:
        current_balance = self._balances[asset]
        new_balance = current_balance + subunits
        if new_balance < 0:
            raise BalanceError(
                asset=asset,
                attempted_subunits=subunits,
                available_subunits=current_balance,
            )
        self._balances[asset] = new_balance

    def get_balance(self, asset: Asset) -> int:
        return self._balances[asset]

    def has_available(self, *, asset: Asset, subunits: int) -> bool:
        return self._balances[asset] >= subunits

    def balances(self) -> dict[Asset, int]:
        return {asset: balance for asset, balance in self._balances.items() if balance != 0}
