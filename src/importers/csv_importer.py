from __future__ import annotations

import logging
from csv import DictReader
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, field_validator

from domain.assets import Asset
from domain.ledger import LedgerRecord

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")


class LedgerCsvRow(BaseModel):
    date: datetime
    action: str
    debit_asset: str | None = None
    debit_amount: str | None = None
    debit_fee: str | None = None
    credit_asset: str | None = None
    credit_amount: str | None = None
    credit_fee: str | None = None
    value: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: str | datetime) -> datetime:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value
        text = value.strip()
        for fmt in _TIMESTAMP_FORMATS:
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
        raise ValueError(f"Unsupported timestamp format: {value!r}")

    def to_record(self, row: int) -> LedgerRecord:
        return LedgerRecord(
            timestamp=self.date,
            action=self.action,
            debit_asset=self.debit_asset,
            debit_amount=self.debit_amount,
            debit_fee=self.debit_fee,
            credit_asset=self.credit_asset,
            credit_amount=self.credit_amount,
            credit_fee=self.credit_fee,
            value=self.value,
            row=row,
        )


class AssetCsvRow(BaseModel):
    ticker: str
    decimal_places: int
    is_fiat: bool = False

    @field_validator("is_fiat", mode="before")
    @classmethod
    def _blank_is_fiat(cls, value: str | bool | None) -> str | bool:
        if value is None or value == "":
            return False
        return value


def load_assets(source_path: str | Path) -> dict[str, Asset]:
    assets: dict[str, Asset] = {}
    with Path(source_path).open(encoding="utf-8") as handle:
        for row in DictReader(handle):
            parsed = AssetCsvRow.model_validate(row)
            asset = Asset(ticker=parsed.ticker, decimal_places=parsed.decimal_places, is_fiat=parsed.is_fiat)
            if asset.ticker in assets:
                raise ValueError(f"Duplicate asset {asset.ticker} in {source_path}")
            assets[asset.ticker] = asset
    logger.info("Loaded %d assets from %s", len(assets), source_path)
    return assets


class LedgerCsvImporter:
    def __init__(self, source_path: str | Path) -> None:
        self._source_path = Path(source_path)

    def load_records(self) -> list[LedgerRecord]:
        records: list[LedgerRecord] = []
        with self._source_path.open(encoding="utf-8") as handle:
            reader = DictReader(handle)
            # Line 1 is the header.
            for line_number, row in enumerate(reader, start=2):
                records.append(LedgerCsvRow.model_validate(row).to_record(line_number))

        # Stable, so same-timestamp rows keep their ledger order.
        records.sort(key=lambda record: record.timestamp)
        logger.info("Loaded %d ledger records from %s", len(records), self._source_path)
        return records
