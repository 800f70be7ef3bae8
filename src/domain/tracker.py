from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping

from .asset_pool import AssetPool
from .assets import Asset
from .balance_tracker import BalanceError, BalanceTracker
from .closed_pool_lot import ClosedPoolLot
from .ledger import Action, LedgerRecord
from .pool_transaction import PoolDeposit, PoolTransaction, PoolWithdrawal

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


class LedgerError(Exception):
    def __init__(self, message: str, *, record: LedgerRecord | None = None) -> None:
        super().__init__(message)
        self.record = record


@dataclass
class PoolResult:
    pools: dict[str, AssetPool] = field(default_factory=dict)

    @property
    def closed_pool_lots(self) -> list[ClosedPoolLot]:
        return [lot for ticker in sorted(self.pools) for lot in self.pools[ticker].closed_pool_lots]

    @property
    def open_positions(self) -> list[PoolDeposit]:
        positions = (self.pools[ticker].open_position for ticker in sorted(self.pools))
        return [position for position in positions if position is not None]


class PoolTracker:
    """Feed ledger records into one asset pool per non-fiat asset and match them.

    The counter leg of every pool transaction is expressed in the base
    currency, so all transactions in a pool share the same asset pair.
    """

    def __init__(self, *, assets: Mapping[str, Asset], base_currency: str) -> None:
        self._assets = {asset.ticker: asset for asset in assets.values()}
        base = self._assets.get(base_currency.upper())
        if base is None:
            raise ValueError(f"Base currency {base_currency} is not a known asset")
        if not base.is_fiat:
            raise ValueError(f"Base currency {base_currency} must be a fiat asset")
        self._base = base

    def process(self, records: Iterable[LedgerRecord]) -> PoolResult:
        """Caller must provide records in chronological order."""
        result = PoolResult()
        balances = BalanceTracker()
        previous: datetime | None = None
        count = 0

        for record in records:
            if previous is not None and record.timestamp < previous:
                raise LedgerError(f"Ledger records out of order at {record.describe()}", record=record)
            previous = record.timestamp
            count += 1

            self._apply_balances(record, balances)

            for transaction in self._pool_transactions(record):
                pool = result.pools.get(transaction.asset.ticker)
                if pool is None:
                    pool = result.pools[transaction.asset.ticker] = AssetPool(transaction.asset)
                if isinstance(transaction, PoolDeposit):
                    pool.add_pool_deposit(transaction)
                else:
                    pool.add_pool_withdrawal(transaction)

        for pool in result.pools.values():
            pool.match()

        logger.info(
            "Processed %d ledger records into %d pools: %d closed lots, %d open positions",
            count,
            len(result.pools),
            len(result.closed_pool_lots),
            len(result.open_positions),
        )
        return result

    def _asset(self, ticker: str | None, record: LedgerRecord) -> Asset | None:
        if ticker is None:
            return None
        asset = self._assets.get(ticker)
        if asset is None:
            raise LedgerError(f"Unknown asset {ticker} in {record.describe()}", record=record)
        return asset

    def _apply_balances(self, record: LedgerRecord, balances: BalanceTracker) -> None:
        debit = self._asset(record.debit_asset, record)
        credit = self._asset(record.credit_asset, record)

        movements: list[tuple[Asset, Decimal]] = []
        if record.action == Action.TRANSFER:
            if credit is not None and credit != debit:
                raise LedgerError(f"Transfer between different assets in {record.describe()}", record=record)
            # Moving between own wallets only costs the fee.
            movements.append((debit, -record.debit_fee))  # type: ignore[arg-type]
        else:
            if debit is not None:
                movements.append((debit, -(record.debit_amount + record.debit_fee)))
            if credit is not None:
                movements.append((credit, record.credit_amount - record.credit_fee))

        for asset, quantity in movements:
            if asset.is_fiat or quantity == 0:
                continue
            try:
                balances.apply_movement(asset=asset, subunits=asset.to_subunits(quantity))
            except BalanceError as err:
                raise LedgerError(f"{err} at {record.describe()}", record=record) from err

    def _pool_transactions(self, record: LedgerRecord) -> list[PoolTransaction]:
        day = record.timestamp.date()
        action = record.action
        debit = self._asset(record.debit_asset, record)
        credit = self._asset(record.credit_asset, record)
        transactions: list[PoolTransaction] = []

        if action in (Action.TRANSFER, Action.FEE):
            if debit is None or debit.is_fiat:
                return transactions
            fee = record.debit_fee if action == Action.TRANSFER else record.debit_amount + record.debit_fee
            if fee == 0:
                return transactions
            transactions.append(PoolWithdrawal.create(day, debit, ZERO, fee, self._base, ZERO, ZERO, action))
            return transactions

        if debit is not None and not debit.is_fiat:
            counter_amount, counter_fee = self._counter_leg(
                record, credit, record.credit_amount, record.credit_fee
            )
            transactions.append(
                PoolWithdrawal.create(
                    day,
                    debit,
                    record.debit_amount,
                    record.debit_fee,
                    self._base,
                    counter_amount,
                    counter_fee,
                    action,
                )
            )

        if credit is not None and not credit.is_fiat:
            counter_amount, counter_fee = self._counter_leg(record, debit, record.debit_amount, record.debit_fee)
            transactions.append(
                PoolDeposit.create(
                    day,
                    self._base,
                    counter_amount,
                    counter_fee,
                    credit,
                    record.credit_amount,
                    record.credit_fee,
                    action,
                )
            )

        kept: list[PoolTransaction] = []
        for transaction in transactions:
            if transaction.subunits == 0 and action != Action.TRADE:
                logger.debug("Skipping zero-balance %s", record.describe())
                continue
            kept.append(transaction)
        return kept

    def _counter_leg(
        self,
        record: LedgerRecord,
        counter_asset: Asset | None,
        amount: Decimal,
        fee: Decimal,
    ) -> tuple[Decimal, Decimal]:
        """Base-currency amount and fee on the other side of a pool movement."""
        if record.action == Action.SPLIT:
            return ZERO, ZERO
        if counter_asset == self._base:
            return amount, fee
        if record.value is not None:
            return record.value, ZERO
        if record.action == Action.TRADE:
            raise LedgerError(
                f"Trade against {counter_asset} needs a {self._base} value in {record.describe()}",
                record=record,
            )
        return ZERO, ZERO
