from __future__ import annotations

from decimal import Decimal
from itertools import permutations

import pytest

from domain.ledger import Action
from domain.pool_transaction import (
    POOLED,
    InvalidSplitError,
    MergeConflictError,
    PoolDeposit,
    PoolWithdrawal,
)
from tests.constants import BTC, ETH, GBP
from tests.helpers.pool_utils import day, make_deposit, make_withdrawal

NUMERIC_FIELDS = (
    "debit_amount_subunits",
    "debit_fee_subunits",
    "credit_amount_subunits",
    "credit_fee_subunits",
)


def test_create_converts_amounts_to_subunits() -> None:
    deposit = PoolDeposit.create(
        day(0), GBP, Decimal("1000.005"), Decimal("2.5"), BTC, Decimal("0.123456785"), Decimal("0.0001"), Action.TRADE
    )

    assert deposit.debit_amount_subunits == 100001
    assert deposit.debit_fee_subunits == 250
    assert deposit.credit_amount_subunits == 12345679
    assert deposit.credit_fee_subunits == 10000
    assert deposit.asset == BTC
    assert deposit.subunits == 12345679 - 10000


def test_withdrawal_balance_includes_fee() -> None:
    withdrawal = make_withdrawal(0, "0.5", "10000", fee="0.001")

    assert withdrawal.asset == BTC
    assert withdrawal.subunits == 50_000_000 + 100_000
    assert withdrawal.quantity == Decimal("0.501")


def test_negative_subunits_rejected() -> None:
    with pytest.raises(ValueError):
        PoolDeposit(
            date=day(0),
            debit_asset=GBP,
            debit_amount_subunits=-1,
            debit_fee_subunits=0,
            credit_asset=BTC,
            credit_amount_subunits=1,
            credit_fee_subunits=0,
            action=Action.TRADE,
        )


def test_amount_without_asset_rejected() -> None:
    with pytest.raises(ValueError):
        PoolWithdrawal.create(day(0), BTC, Decimal("1"), Decimal(0), None, Decimal("5"), Decimal(0), Action.GIFT)


def test_merge_sums_fields() -> None:
    first = make_deposit(0, "0.5", "1000", fee="0.01")
    second = make_deposit(0, "0.25", "600")

    first.merge(second)

    assert first.debit_amount_subunits == 160000
    assert first.credit_amount_subunits == 75_000_000
    assert first.credit_fee_subunits == 1_000_000
    assert first.action == Action.TRADE


def test_merge_with_different_action_clears_action() -> None:
    first = make_deposit(0, "0.5", "1000")
    first.merge(make_deposit(0, "0.1", "0", action=Action.INCOME))

    assert first.action is None


def test_merge_conflict_on_date() -> None:
    first = make_deposit(0, "0.5", "1000")
    with pytest.raises(MergeConflictError):
        first.merge(make_deposit(1, "0.5", "1000"))
    assert first.credit_amount_subunits == 50_000_000


def test_merge_conflict_on_asset() -> None:
    with pytest.raises(MergeConflictError):
        make_deposit(0, "0.5", "1000").merge(make_deposit(0, "0.5", "1000", asset=ETH))


def test_merge_conflict_between_directions() -> None:
    with pytest.raises(MergeConflictError):
        make_withdrawal(0, "0.5").merge(make_deposit(0, "0.5"))


@pytest.mark.parametrize(
    "actions, expected_action",
    [
        ((Action.TRADE, Action.TRADE, Action.TRADE), Action.TRADE),
        ((Action.TRADE, Action.INCOME, Action.TRADE), None),
    ],
)
def test_merge_is_order_independent(actions: tuple[Action, Action, Action], expected_action: Action | None) -> None:
    quantities = ("0.1", "0.22", "0.333")
    costs = ("100", "250.55", "333.33")
    fees = ("0", "0.0001", "0.002")

    totals = set()
    for order in permutations(range(3)):
        transactions = [
            make_deposit(0, quantities[i], costs[i], fee=fees[i], action=actions[i]) for i in order
        ]
        merged, *rest = transactions
        for transaction in rest:
            merged.merge(transaction)
        assert merged.action == expected_action
        totals.add(tuple(getattr(merged, name) for name in NUMERIC_FIELDS))

    assert len(totals) == 1


def _awkward_deposit() -> PoolDeposit:
    return PoolDeposit.create(
        day(0), GBP, Decimal("1000.00"), Decimal("3.33"), BTC, Decimal("0.3"), Decimal("0.0001"), Action.TRADE
    )


@pytest.mark.parametrize("subunits", [1, 10_000_000, 14_995_000, 29_989_999])
def test_deposit_split_is_exact(subunits: int) -> None:
    deposit = _awkward_deposit()

    first, second = deposit.split(subunits)

    assert isinstance(first, PoolDeposit)
    assert isinstance(second, PoolDeposit)
    assert first.subunits == subunits
    assert second.subunits == deposit.subunits - subunits
    for name in NUMERIC_FIELDS:
        assert getattr(first, name) + getattr(second, name) == getattr(deposit, name)
        assert getattr(first, name) >= 0
        assert getattr(second, name) >= 0
    assert first.date == second.date == deposit.date
    assert first.action == second.action == deposit.action


def test_deposit_split_apportions_cost() -> None:
    first, second = _awkward_deposit().split(10_000_000)

    # 100000 * 10000000 / 29990000 = 33344.4...
    assert first.debit_amount_subunits == 33344
    assert second.debit_amount_subunits == 100000 - 33344


@pytest.mark.parametrize("subunits", [1, 33_333_333, 50_050_000, 100_099_999])
def test_withdrawal_split_is_exact(subunits: int) -> None:
    withdrawal = PoolWithdrawal.create(
        day(3), BTC, Decimal("1"), Decimal("0.001"), GBP, Decimal("20000.01"), Decimal("7.77"), Action.TRADE
    )

    first, second = withdrawal.split(subunits)

    assert first.subunits == subunits
    assert second.subunits == withdrawal.subunits - subunits
    for name in NUMERIC_FIELDS:
        assert getattr(first, name) + getattr(second, name) == getattr(withdrawal, name)
        assert getattr(first, name) >= 0
        assert getattr(second, name) >= 0


def test_split_leaves_original_untouched() -> None:
    deposit = _awkward_deposit()
    snapshot = tuple(getattr(deposit, name) for name in NUMERIC_FIELDS)

    deposit.split(5)

    assert tuple(getattr(deposit, name) for name in NUMERIC_FIELDS) == snapshot


@pytest.mark.parametrize("subunits", [0, -1, 50_000_000, 60_000_000])
def test_split_outside_range_raises(subunits: int) -> None:
    withdrawal = make_withdrawal(0, "0.5")

    with pytest.raises(InvalidSplitError) as exc_info:
        withdrawal.split(subunits)

    assert exc_info.value.subunits == subunits


def test_pooled_copy_drops_date() -> None:
    deposit = make_deposit(2, "1", "500")

    pooled = deposit.pooled()

    assert pooled.date is POOLED
    assert deposit.date == day(2)
    assert pooled is not deposit
    assert pooled.credit_amount_subunits == deposit.credit_amount_subunits
