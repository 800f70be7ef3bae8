from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from config import config
from db.db import init_db
from db.repositories import ClosedPoolLotRepository, OpenPositionRepository
from domain.records import ClosedLotRecord, OpenPositionRecord
from domain.tracker import PoolResult, PoolTracker
from importers.csv_importer import LedgerCsvImporter, load_assets
from utils.formatting import format_decimal

logger = logging.getLogger(__name__)


def run(
    ledger_csv: Path,
    assets_csv: Path,
    *,
    base_currency: str,
    db_file: Path | None,
) -> PoolResult:
    assets = load_assets(assets_csv)
    records = LedgerCsvImporter(ledger_csv).load_records()

    tracker = PoolTracker(assets=assets, base_currency=base_currency)
    result = tracker.process(records)

    if db_file is not None:
        logger.info("Storing results in %s", db_file)
        session = init_db(db_file, reset=True)
        try:
            ClosedPoolLotRepository(session).create_many(
                ClosedLotRecord.from_lot(lot) for lot in result.closed_pool_lots
            )
            OpenPositionRepository(session).create_many(
                OpenPositionRecord.from_deposit(position) for position in result.open_positions
            )
        finally:
            session.close()

    print(f"Imported {len(records)} ledger records from {ledger_csv}")
    print_pool_summary(result)
    return result


def print_pool_summary(result: PoolResult) -> None:
    print("Pool summary:")
    for ticker in sorted(result.pools):
        pool = result.pools[ticker]
        print(f"  {ticker}: {len(pool.closed_pool_lots)} closed lots, open balance {format_decimal(pool.balance)}")


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    parser = argparse.ArgumentParser(description="Match ledger withdrawals against asset pools.")
    parser.add_argument("--ledger", type=Path, default=Path("data/ledger.csv"))
    parser.add_argument("--assets", type=Path, default=Path("data/assets.csv"))
    parser.add_argument("--base-currency", default=settings.base_currency)
    parser.add_argument("--db", type=Path, default=settings.db_file)
    parser.add_argument("--no-db", action="store_true", help="Skip storing closed lots and open positions.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    run(
        args.ledger,
        args.assets,
        base_currency=args.base_currency,
        db_file=None if args.no_db else args.db,
    )


if __name__ == "__main__":
    main()
