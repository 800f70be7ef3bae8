from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import NewType
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .closed_pool_lot import ClosedPoolLot, MatchRule
from .pool_transaction import POOLED, PoolDeposit

ClosedLotId = NewType("ClosedLotId", UUID)
OpenPositionId = NewType("OpenPositionId", UUID)


class ClosedLotRecord(BaseModel):
    """Decimal view of a closed pool lot for storage and downstream valuation."""

    id: ClosedLotId = ClosedLotId(Field(default_factory=uuid4))
    asset_id: str
    disposal_date: date
    acquisition_date: date | None
    rule: MatchRule
    action: str | None
    quantity: Decimal
    cost_asset_id: str | None
    acquisition_cost: Decimal
    proceeds_asset_id: str | None
    disposal_proceeds: Decimal

    @classmethod
    def from_lot(cls, lot: ClosedPoolLot) -> ClosedLotRecord:
        deposit = lot.pool_deposit
        withdrawal = lot.pool_withdrawal
        if withdrawal.date is POOLED:
            raise ValueError(f"Closed lot without a disposal date: {withdrawal.describe()}")
        cost_asset = deposit.debit_asset
        proceeds_asset = withdrawal.credit_asset
        return cls(
            asset_id=lot.asset.ticker,
            disposal_date=withdrawal.date,
            acquisition_date=None if deposit.date is POOLED else deposit.date,
            rule=lot.rule,
            action=withdrawal.action.value if withdrawal.action else None,
            quantity=lot.quantity,
            cost_asset_id=cost_asset.ticker if cost_asset else None,
            acquisition_cost=cost_asset.from_subunits(lot.acquisition_cost_subunits) if cost_asset else Decimal(0),
            proceeds_asset_id=proceeds_asset.ticker if proceeds_asset else None,
            disposal_proceeds=(
                proceeds_asset.from_subunits(lot.disposal_proceeds_subunits) if proceeds_asset else Decimal(0)
            ),
        )


class OpenPositionRecord(BaseModel):
    id: OpenPositionId = OpenPositionId(Field(default_factory=uuid4))
    asset_id: str
    quantity: Decimal
    cost_asset_id: str | None
    cost: Decimal

    @classmethod
    def from_deposit(cls, deposit: PoolDeposit) -> OpenPositionRecord:
        cost_asset = deposit.debit_asset
        cost_subunits = deposit.debit_amount_subunits + deposit.debit_fee_subunits
        return cls(
            asset_id=deposit.asset.ticker,
            quantity=deposit.quantity,
            cost_asset_id=cost_asset.ticker if cost_asset else None,
            cost=cost_asset.from_subunits(cost_subunits) if cost_asset else Decimal(0),
        )
