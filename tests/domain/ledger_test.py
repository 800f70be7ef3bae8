from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.ledger import Action, LedgerRecord


def test_record_normalizes_fields() -> None:
    record = LedgerRecord(
        timestamp=datetime(2024, 5, 1, 10, 30),
        action="trade",
        debit_asset=" gbp ",
        debit_amount="",
        credit_asset="btc",
        credit_amount="0.25",
        credit_fee=None,
        value="",
    )

    assert record.action == Action.TRADE
    assert record.timestamp.tzinfo == timezone.utc
    assert record.debit_asset == "GBP"
    assert record.debit_amount == Decimal(0)
    assert record.credit_asset == "BTC"
    assert record.credit_amount == Decimal("0.25")
    assert record.credit_fee == Decimal(0)
    assert record.value is None


@pytest.mark.parametrize(
    "fields",
    [
        {"action": "Trade", "debit_asset": "GBP", "debit_amount": "10"},
        {"action": "Trade", "debit_asset": "BTC", "credit_asset": "BTC"},
        {"action": "Transfer", "credit_asset": "BTC", "credit_amount": "1"},
        {"action": "Income", "debit_asset": "BTC", "debit_amount": "1"},
        {"action": "Donation", "credit_asset": "BTC", "credit_amount": "1"},
        {"action": "Gift", "debit_amount": "1", "credit_asset": "BTC"},
        {"action": "Gift", "debit_asset": "BTC", "debit_amount": "-1"},
        {"action": "Reward", "credit_asset": "BTC", "credit_amount": "1", "value": "-5"},
        {"action": "Airdrop", "credit_asset": "BTC", "credit_amount": "1"},
        {"action": "Gift"},
        {
            "action": "Trade",
            "debit_asset": "GBP",
            "debit_amount": "100",
            "credit_asset": "BTC",
            "credit_amount": "0.1",
            "credit_fee": "0.2",
        },
    ],
)
def test_invalid_records_rejected(fields: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        LedgerRecord(timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc), **fields)


def test_describe_mentions_row() -> None:
    record = LedgerRecord(
        timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
        action=Action.FEE,
        debit_asset="ETH",
        debit_fee=Decimal("0.002"),
        row=7,
    )

    assert record.describe().startswith("row 7 Fee @2024-05-01")


def test_offset_timestamp_is_converted_to_utc() -> None:
    record = LedgerRecord(
        timestamp=datetime(2024, 1, 2, 3, 0, tzinfo=timezone(timedelta(hours=5))),
        action=Action.INCOME,
        credit_asset="BTC",
        credit_amount=Decimal("1"),
    )

    assert record.timestamp == datetime(2024, 1, 1, 22, 0, tzinfo=timezone.utc)
    assert record.timestamp.utcoffset() == timedelta(0)
    assert record.timestamp.date().day == 1
