from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from .assets import Asset
from .pool_transaction import POOLED, PoolDate, PoolDeposit, PoolWithdrawal


class MatchRule(StrEnum):
    SAME_DAY = "SAME_DAY"
    THIRTY_DAY = "THIRTY_DAY"
    POOL = "POOL"


@dataclass(frozen=True, eq=False)
class ClosedPoolLot:
    """A realized disposal: the acquisition fragment matched to the disposal fragment.

    Acquisition cost is read from the deposit's debit leg, disposal proceeds
    from the withdrawal's credit leg.
    """

    pool_deposit: PoolDeposit
    pool_withdrawal: PoolWithdrawal

    @property
    def asset(self) -> Asset:
        return self.pool_withdrawal.asset

    @property
    def date(self) -> PoolDate:
        return self.pool_withdrawal.date

    @property
    def rule(self) -> MatchRule:
        if self.pool_deposit.date is POOLED:
            return MatchRule.POOL
        if self.pool_deposit.date == self.pool_withdrawal.date:
            return MatchRule.SAME_DAY
        return MatchRule.THIRTY_DAY

    @property
    def subunits(self) -> int:
        return self.pool_withdrawal.subunits

    @property
    def quantity(self) -> Decimal:
        return self.asset.from_subunits(self.subunits)

    @property
    def acquisition_cost_subunits(self) -> int:
        return self.pool_deposit.debit_amount_subunits + self.pool_deposit.debit_fee_subunits

    @property
    def disposal_proceeds_subunits(self) -> int:
        return self.pool_withdrawal.credit_amount_subunits - self.pool_withdrawal.credit_fee_subunits
