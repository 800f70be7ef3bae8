from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, field_validator, model_validator


class Action(StrEnum):
    TRADE = "Trade"
    TRANSFER = "Transfer"
    INCOME = "Income"
    STAKE = "Stake"
    REWARD = "Reward"
    GIFT = "Gift"
    DONATION = "Donation"
    PAYMENT = "Payment"
    FEE = "Fee"
    SPLIT = "Split"


# Withdrawals that must stay individually traceable and never take part in
# same-day or 30-day matching.
NON_MERGING_WITHDRAWAL_ACTIONS = frozenset({Action.TRANSFER, Action.FEE, Action.SPLIT})

# Deposits that only ever enter the pool.
NON_MATCHING_DEPOSIT_ACTIONS = frozenset({Action.SPLIT, Action.GIFT, Action.INCOME})

# Actions that only move an asset in, or only move it out.
INBOUND_ACTIONS = frozenset({Action.INCOME, Action.STAKE, Action.REWARD})
OUTBOUND_ACTIONS = frozenset({Action.DONATION, Action.PAYMENT})


class LedgerRecord(BaseModel):
    """One parsed ledger row.

    Amounts are positive decimals; direction is given by the leg: the debit
    asset leaves the account, the credit asset arrives. ``value`` is the
    base-currency value of the row when it is known upstream.
    """

    timestamp: datetime
    action: Action
    debit_asset: str | None = None
    debit_amount: Decimal = Decimal(0)
    debit_fee: Decimal = Decimal(0)
    credit_asset: str | None = None
    credit_amount: Decimal = Decimal(0)
    credit_fee: Decimal = Decimal(0)
    value: Decimal | None = None
    row: int | None = None

    @field_validator("timestamp")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, value: str | Action) -> str | Action:
        if isinstance(value, str) and not isinstance(value, Action):
            return value.strip().capitalize()
        return value

    @field_validator("debit_asset", "credit_asset", mode="before")
    @classmethod
    def _normalize_asset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        code = value.strip().upper()
        return code or None

    @field_validator("debit_amount", "debit_fee", "credit_amount", "credit_fee", mode="before")
    @classmethod
    def _blank_amount(cls, value: str | Decimal | None) -> str | Decimal:
        if value is None or value == "":
            return "0"
        return value

    @field_validator("value", mode="before")
    @classmethod
    def _blank_value(cls, value: str | Decimal | None) -> str | Decimal | None:
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _validate_fields(self) -> LedgerRecord:
        for name in ("debit_amount", "debit_fee", "credit_amount", "credit_fee"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.value is not None and self.value < 0:
            raise ValueError("value must be >= 0")

        if self.debit_asset is None and self.credit_asset is None:
            raise ValueError("LedgerRecord must have a debit or credit asset")
        if self.debit_asset is None and (self.debit_amount or self.debit_fee):
            raise ValueError("debit amount given without debit asset")
        if self.credit_asset is None and (self.credit_amount or self.credit_fee):
            raise ValueError("credit amount given without credit asset")
        if self.credit_fee > self.credit_amount:
            raise ValueError("credit_fee must not exceed credit_amount")

        if self.action == Action.TRADE:
            if self.debit_asset is None or self.credit_asset is None:
                raise ValueError("Trade requires both debit and credit assets")
            if self.debit_asset == self.credit_asset:
                raise ValueError("Trade debit and credit assets must differ")
        elif self.action in (Action.TRANSFER, Action.FEE):
            if self.debit_asset is None:
                raise ValueError(f"{self.action} requires a debit asset")
        elif self.action in INBOUND_ACTIONS:
            if self.credit_asset is None:
                raise ValueError(f"{self.action} requires a credit asset")
        elif self.action in OUTBOUND_ACTIONS:
            if self.debit_asset is None:
                raise ValueError(f"{self.action} requires a debit asset")
        return self

    def describe(self) -> str:
        location = f"row {self.row}" if self.row is not None else "record"
        return (
            f"{location} {self.action} @{self.timestamp.isoformat()} "
            f"debit={self.debit_asset}:{self.debit_amount}/{self.debit_fee} "
            f"credit={self.credit_asset}:{self.credit_amount}/{self.credit_fee}"
        )
