from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from domain.assets import Asset
from domain.ledger import Action, LedgerRecord
from domain.pool_transaction import PoolDeposit, PoolWithdrawal
from tests.constants import BTC, GBP

DAY_ZERO = date(2024, 4, 6)


def day(offset: int) -> date:
    return DAY_ZERO + timedelta(days=offset)


def make_deposit(
    day_offset: int,
    quantity: str,
    cost: str = "0",
    *,
    fee: str = "0",
    action: Action | None = Action.TRADE,
    asset: Asset = BTC,
) -> PoolDeposit:
    """Acquisition of ``quantity`` for ``cost`` GBP on DAY_ZERO + ``day_offset``."""
    return PoolDeposit.create(
        day(day_offset), GBP, Decimal(cost), Decimal(0), asset, Decimal(quantity), Decimal(fee), action
    )


def make_withdrawal(
    day_offset: int,
    quantity: str,
    proceeds: str = "0",
    *,
    fee: str = "0",
    action: Action | None = Action.TRADE,
    asset: Asset = BTC,
) -> PoolWithdrawal:
    """Disposal of ``quantity`` for ``proceeds`` GBP on DAY_ZERO + ``day_offset``."""
    return PoolWithdrawal.create(
        day(day_offset), asset, Decimal(quantity), Decimal(fee), GBP, Decimal(proceeds), Decimal(0), action
    )


def make_record(day_offset: int, action: Action | str, *, hour: int = 12, **fields: object) -> LedgerRecord:
    timestamp = datetime.combine(day(day_offset), time(hour), tzinfo=timezone.utc)
    return LedgerRecord(timestamp=timestamp, action=action, **fields)
