from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Self, TypeAlias

from .assets import Asset
from .ledger import Action


class Pooled(Enum):
    """Marker date of a transaction folded into the running pool."""

    POOLED = "POOLED"

    def __repr__(self) -> str:
        return "POOLED"


POOLED = Pooled.POOLED

PoolDate: TypeAlias = "date | Pooled"

_NUMERIC_FIELDS = (
    "debit_amount_subunits",
    "debit_fee_subunits",
    "credit_amount_subunits",
    "credit_fee_subunits",
)


def pool_date_label(value: PoolDate) -> str:
    if value is POOLED:
        return "pooled"
    return value.isoformat()


class PoolError(Exception):
    pass


class MergeConflictError(PoolError):
    def __init__(self, message: str, *, transaction: PoolTransaction, other: PoolTransaction) -> None:
        super().__init__(message)
        self.transaction = transaction
        self.other = other


class InvalidSplitError(PoolError):
    def __init__(self, message: str, *, transaction: PoolTransaction, subunits: int) -> None:
        super().__init__(message)
        self.transaction = transaction
        self.subunits = subunits


def _apportion(value: int, numerator: int, denominator: int) -> int:
    # value * numerator / denominator, rounded half up
    return (2 * value * numerator + denominator) // (2 * denominator)


@dataclass(eq=False)
class PoolTransaction(ABC):
    """A pool movement with a debit leg and a credit leg held in integer subunits.

    Instances compare by identity: pools locate and replace the exact objects
    they hold.
    """

    date: PoolDate
    debit_asset: Asset | None
    debit_amount_subunits: int
    debit_fee_subunits: int
    credit_asset: Asset | None
    credit_amount_subunits: int
    credit_fee_subunits: int
    action: Action | None

    def __post_init__(self) -> None:
        for name in _NUMERIC_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer number of subunits, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if self.debit_asset is None and (self.debit_amount_subunits or self.debit_fee_subunits):
            raise ValueError("debit amounts given without a debit asset")
        if self.credit_asset is None and (self.credit_amount_subunits or self.credit_fee_subunits):
            raise ValueError("credit amounts given without a credit asset")

    @classmethod
    def create(
        cls,
        date: PoolDate,
        debit_asset: Asset | None,
        debit_amount: Decimal,
        debit_fee: Decimal,
        credit_asset: Asset | None,
        credit_amount: Decimal,
        credit_fee: Decimal,
        action: Action | None,
    ) -> Self:
        """Build from decimal amounts, converted with each leg's asset precision."""
        return cls(
            date=date,
            debit_asset=debit_asset,
            debit_amount_subunits=debit_asset.to_subunits(debit_amount) if debit_asset else _zero(debit_amount),
            debit_fee_subunits=debit_asset.to_subunits(debit_fee) if debit_asset else _zero(debit_fee),
            credit_asset=credit_asset,
            credit_amount_subunits=credit_asset.to_subunits(credit_amount) if credit_asset else _zero(credit_amount),
            credit_fee_subunits=credit_asset.to_subunits(credit_fee) if credit_asset else _zero(credit_fee),
            action=action,
        )

    @property
    @abstractmethod
    def asset(self) -> Asset:
        """The pool asset this transaction moves."""

    @property
    @abstractmethod
    def subunits(self) -> int:
        """Net pool balance change in subunits of :attr:`asset`."""

    @abstractmethod
    def _first_part(self, subunits: int, total: int) -> Self: ...

    @property
    def quantity(self) -> Decimal:
        return self.asset.from_subunits(self.subunits)

    def pooled(self) -> Self:
        return replace(self, date=POOLED)

    def can_merge(self, other: PoolTransaction) -> bool:
        return (
            type(self) is type(other)
            and self.date == other.date
            and self.debit_asset == other.debit_asset
            and self.credit_asset == other.credit_asset
        )

    def merge(self, other: PoolTransaction) -> None:
        if not self.can_merge(other):
            raise MergeConflictError(
                f"Cannot merge {type(other).__name__} {other.describe()} "
                f"into {type(self).__name__} {self.describe()}",
                transaction=self,
                other=other,
            )
        for name in _NUMERIC_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        if self.action != other.action:
            self.action = None

    def split(self, subunits: int) -> tuple[Self, Self]:
        """Partition into two transactions, the first worth exactly ``subunits``.

        Every numeric field of the two parts sums back to the original.
        """
        total = self.subunits
        if not 0 < subunits < total:
            raise InvalidSplitError(
                f"Split of {subunits} subunits outside (0, {total}) for {self.describe()}",
                transaction=self,
                subunits=subunits,
            )
        first = self._first_part(subunits, total)
        second = replace(self, **{name: getattr(self, name) - getattr(first, name) for name in _NUMERIC_FIELDS})
        return first, second

    def describe(self) -> str:
        debit = self.debit_asset.ticker if self.debit_asset else "-"
        credit = self.credit_asset.ticker if self.credit_asset else "-"
        return (
            f"{self.action or 'mixed'} @{pool_date_label(self.date)} "
            f"debit={debit}:{self.debit_amount_subunits}/{self.debit_fee_subunits} "
            f"credit={credit}:{self.credit_amount_subunits}/{self.credit_fee_subunits}"
        )


def _zero(amount: Decimal) -> int:
    if amount:
        raise ValueError("amount given for a missing asset leg")
    return 0


@dataclass(eq=False)
class PoolDeposit(PoolTransaction):
    def __post_init__(self) -> None:
        super().__post_init__()
        if self.credit_asset is None:
            raise ValueError("PoolDeposit requires a credit asset")

    @property
    def asset(self) -> Asset:
        return self.credit_asset  # type: ignore[return-value]

    @property
    def subunits(self) -> int:
        return self.credit_amount_subunits - self.credit_fee_subunits

    def _first_part(self, subunits: int, total: int) -> Self:
        credit_fee = _apportion(self.credit_fee_subunits, subunits, total)
        return replace(
            self,
            debit_amount_subunits=_apportion(self.debit_amount_subunits, subunits, total),
            debit_fee_subunits=_apportion(self.debit_fee_subunits, subunits, total),
            credit_amount_subunits=subunits + credit_fee,
            credit_fee_subunits=credit_fee,
        )


@dataclass(eq=False)
class PoolWithdrawal(PoolTransaction):
    def __post_init__(self) -> None:
        super().__post_init__()
        if self.debit_asset is None:
            raise ValueError("PoolWithdrawal requires a debit asset")

    @property
    def asset(self) -> Asset:
        return self.debit_asset  # type: ignore[return-value]

    @property
    def subunits(self) -> int:
        # Fees paid in the pool asset are part of what leaves the pool.
        return self.debit_amount_subunits + self.debit_fee_subunits

    def _first_part(self, subunits: int, total: int) -> Self:
        debit_fee = _apportion(self.debit_fee_subunits, subunits, total)
        return replace(
            self,
            debit_amount_subunits=subunits - debit_fee,
            debit_fee_subunits=debit_fee,
            credit_amount_subunits=_apportion(self.credit_amount_subunits, subunits, total),
            credit_fee_subunits=_apportion(self.credit_fee_subunits, subunits, total),
        )
