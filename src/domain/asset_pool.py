from __future__ import annotations

import logging
from decimal import Decimal
from typing import TypeVar

from .assets import Asset
from .closed_pool_lot import ClosedPoolLot
from .ledger import NON_MATCHING_DEPOSIT_ACTIONS, NON_MERGING_WITHDRAWAL_ACTIONS, Action
from .pool_transaction import (
    POOLED,
    PoolDate,
    PoolDeposit,
    PoolError,
    PoolTransaction,
    PoolWithdrawal,
    pool_date_label,
)

logger = logging.getLogger(__name__)

BED_AND_BREAKFAST_DAYS = 30

T = TypeVar("T", bound=PoolTransaction)


class InsufficientFundsError(PoolError):
    def __init__(
        self,
        message: str,
        *,
        asset: Asset,
        quantity_needed: Decimal,
        available: Decimal,
        withdrawal: PoolWithdrawal | None = None,
    ) -> None:
        super().__init__(message)
        self.asset = asset
        self.quantity_needed = quantity_needed
        self.available = available
        self.withdrawal = withdrawal


def _days_between(earlier: PoolDate, later: PoolDate) -> int | None:
    if earlier is POOLED or later is POOLED:
        return None
    return (later - earlier).days


def _replace(transactions: list[T], old: T, new: T) -> None:
    transactions[transactions.index(old)] = new


class AssetPool:
    """Deposit and withdrawal history of one asset and the lots closed by matching.

    Disposals are identified in the UK order: acquisitions on the same day,
    then acquisitions within the following 30 days, then the pooled average
    of everything acquired on or before the disposal date.
    """

    def __init__(self, asset: Asset) -> None:
        self.asset = asset
        self.pool_deposits: list[PoolDeposit] = []
        self.pool_withdrawals: list[PoolWithdrawal] = []
        self.closed_pool_lots: list[ClosedPoolLot] = []
        self._matched = False

    @property
    def matched(self) -> bool:
        return self._matched

    @property
    def balance_subunits(self) -> int:
        deposited = sum(deposit.subunits for deposit in self.pool_deposits)
        withdrawn = sum(withdrawal.subunits for withdrawal in self.pool_withdrawals)
        return deposited - withdrawn

    @property
    def balance(self) -> Decimal:
        return self.asset.from_subunits(self.balance_subunits)

    @property
    def open_position(self) -> PoolDeposit | None:
        return self._pooled_deposit()

    def add_pool_deposit(self, deposit: PoolDeposit) -> None:
        self._check_accepts(deposit)

        if deposit.action == Action.TRADE and deposit.subunits == 0:
            stand_in = PoolWithdrawal(
                date=deposit.date,
                debit_asset=deposit.credit_asset,
                debit_amount_subunits=0,
                debit_fee_subunits=0,
                credit_asset=deposit.debit_asset,
                credit_amount_subunits=0,
                credit_fee_subunits=0,
                action=deposit.action,
            )
            self._close(deposit, stand_in)
            return

        if deposit.action != Action.SPLIT:
            for existing in reversed(self.pool_deposits):
                if existing.date != deposit.date:
                    break
                if existing.action != Action.SPLIT:
                    existing.merge(deposit)
                    return

        self.pool_deposits.append(deposit)

    def add_pool_withdrawal(self, withdrawal: PoolWithdrawal) -> None:
        self._check_accepts(withdrawal)

        if withdrawal.action == Action.TRADE and withdrawal.subunits == 0:
            stand_in = PoolDeposit(
                date=withdrawal.date,
                debit_asset=withdrawal.credit_asset,
                debit_amount_subunits=0,
                debit_fee_subunits=0,
                credit_asset=withdrawal.debit_asset,
                credit_amount_subunits=0,
                credit_fee_subunits=0,
                action=withdrawal.action,
            )
            self._close(stand_in, withdrawal)
            return

        if withdrawal.action not in NON_MERGING_WITHDRAWAL_ACTIONS:
            for existing in reversed(self.pool_withdrawals):
                if existing.date != withdrawal.date:
                    break
                if existing.action == withdrawal.action:
                    existing.merge(withdrawal)
                    return

        self.pool_withdrawals.append(withdrawal)

    def match(self) -> None:
        """Close every withdrawal against deposits; the rest is folded into one pooled deposit.

        Runs once per pool. Later calls are no-ops.
        """
        if self._matched:
            logger.debug("Pool %s already matched; skipping", self.asset)
            return

        same_day = 0
        while self._match_same_day():
            same_day += 1
        thirty_days = 0
        while self._match_30_days():
            thirty_days += 1
        pooled = 0
        while self._match_pool():
            pooled += 1
        self.merge_pool_deposits()
        self._matched = True

        logger.debug(
            "Pool %s matched: same-day=%d 30-day=%d pool=%d closed lots=%d open deposits=%d",
            self.asset,
            same_day,
            thirty_days,
            pooled,
            len(self.closed_pool_lots),
            len(self.pool_deposits),
        )

    def merge_pool_deposits(self, on_or_before: PoolDate | None = None) -> None:
        """Fold pooled deposits and those dated on or before ``on_or_before`` into one pooled deposit.

        Without a date every deposit is folded. Later deposits keep their dates
        and order after the pooled one.
        """
        selected: list[PoolDeposit] = []
        remaining: list[PoolDeposit] = []
        for deposit in self.pool_deposits:
            if on_or_before is None or on_or_before is POOLED or deposit.date is POOLED:
                selected.append(deposit)
            elif deposit.date <= on_or_before:
                selected.append(deposit)
            else:
                remaining.append(deposit)

        if not selected:
            return

        first, *rest = selected
        pooled = first if first.date is POOLED else first.pooled()
        for deposit in rest:
            pooled.merge(deposit if deposit.date is POOLED else deposit.pooled())

        self.pool_deposits = [pooled, *remaining]

    def _match_same_day(self) -> bool:
        for withdrawal in self.pool_withdrawals:
            if withdrawal.action in NON_MERGING_WITHDRAWAL_ACTIONS:
                continue
            for deposit in self.pool_deposits:
                if deposit.action in NON_MATCHING_DEPOSIT_ACTIONS:
                    continue
                if deposit.date == withdrawal.date:
                    self._match_found(withdrawal, deposit)
                    return True
        return False

    def _match_30_days(self) -> bool:
        for withdrawal in self.pool_withdrawals:
            if withdrawal.action in NON_MERGING_WITHDRAWAL_ACTIONS:
                continue
            for deposit in self.pool_deposits:
                if deposit.action in NON_MATCHING_DEPOSIT_ACTIONS:
                    continue
                days = _days_between(withdrawal.date, deposit.date)
                if days is not None and 0 < days <= BED_AND_BREAKFAST_DAYS:
                    self._match_found(withdrawal, deposit)
                    return True
        return False

    def _match_pool(self) -> bool:
        if not self.pool_withdrawals:
            return False

        withdrawal = self.pool_withdrawals[0]
        self.merge_pool_deposits(withdrawal.date)
        pooled = self._pooled_deposit()
        if pooled is None:
            raise self._insufficient_funds(withdrawal, needed=withdrawal.subunits, available=0)

        if withdrawal.action in (Action.TRANSFER, Action.FEE):
            # Fees consume no principal; they only reduce what the pool holds.
            if withdrawal.debit_fee_subunits > pooled.subunits:
                raise self._insufficient_funds(
                    withdrawal, needed=withdrawal.debit_fee_subunits, available=pooled.subunits
                )
            pooled.credit_fee_subunits += withdrawal.debit_fee_subunits
            del self.pool_withdrawals[0]
            self._close_if_empty(pooled, withdrawal)
        elif withdrawal.action == Action.SPLIT:
            if withdrawal.debit_amount_subunits > pooled.subunits:
                raise self._insufficient_funds(
                    withdrawal, needed=withdrawal.debit_amount_subunits, available=pooled.subunits
                )
            pooled.credit_amount_subunits -= withdrawal.debit_amount_subunits
            del self.pool_withdrawals[0]
            self._close_if_empty(pooled, withdrawal)
        else:
            self._match_found(withdrawal, pooled)
        return True

    def _match_found(self, withdrawal: PoolWithdrawal, deposit: PoolDeposit) -> None:
        withdrawal_subunits = withdrawal.subunits
        deposit_subunits = deposit.subunits

        if withdrawal_subunits == deposit_subunits:
            self.pool_withdrawals.remove(withdrawal)
            self.pool_deposits.remove(deposit)
            self._close(deposit, withdrawal)
        elif withdrawal_subunits > deposit_subunits:
            matched, remainder = withdrawal.split(deposit_subunits)
            _replace(self.pool_withdrawals, withdrawal, remainder)
            self.pool_deposits.remove(deposit)
            self._close(deposit, matched)
        else:
            matched, remainder = deposit.split(withdrawal_subunits)
            _replace(self.pool_deposits, deposit, remainder)
            self.pool_withdrawals.remove(withdrawal)
            self._close(matched, withdrawal)

    def _close(self, deposit: PoolDeposit, withdrawal: PoolWithdrawal) -> None:
        self.closed_pool_lots.append(ClosedPoolLot(pool_deposit=deposit, pool_withdrawal=withdrawal))

    def _close_if_empty(self, pooled: PoolDeposit, withdrawal: PoolWithdrawal) -> None:
        if pooled.subunits != 0:
            return
        self.pool_deposits.remove(pooled)
        stand_in = PoolWithdrawal(
            date=withdrawal.date,
            debit_asset=pooled.credit_asset,
            debit_amount_subunits=0,
            debit_fee_subunits=0,
            credit_asset=pooled.debit_asset,
            credit_amount_subunits=0,
            credit_fee_subunits=0,
            action=withdrawal.action,
        )
        self._close(pooled, stand_in)

    def _pooled_deposit(self) -> PoolDeposit | None:
        for deposit in self.pool_deposits:
            if deposit.date is POOLED:
                return deposit
        return None

    def _check_accepts(self, transaction: PoolTransaction) -> None:
        if self._matched:
            raise PoolError(f"Pool {self.asset} is already matched; cannot add {transaction.describe()}")
        if transaction.asset != self.asset:
            raise PoolError(f"{transaction.describe()} does not belong to pool {self.asset}")
        if transaction.subunits < 0:
            raise PoolError(f"Negative balance for {transaction.describe()} in pool {self.asset}")
        if transaction.subunits == 0 and transaction.action != Action.TRADE:
            raise PoolError(f"Zero balance for {transaction.describe()} in pool {self.asset}")

    def _insufficient_funds(self, withdrawal: PoolWithdrawal, *, needed: int, available: int) -> InsufficientFundsError:
        quantity_needed = self.asset.from_subunits(needed)
        quantity_available = self.asset.from_subunits(available)
        return InsufficientFundsError(
            f"Insufficient funds: attempted to withdraw {quantity_needed} {self.asset} "
            f"({withdrawal.action or 'mixed'} @{pool_date_label(withdrawal.date)}) "
            f"from pool balance {quantity_available} {self.asset}",
            asset=self.asset,
            quantity_needed=quantity_needed,
            available=quantity_available,
            withdrawal=withdrawal,
        )
