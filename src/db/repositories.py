from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.closed_pool_lot import MatchRule
from domain.records import ClosedLotId, ClosedLotRecord, OpenPositionId, OpenPositionRecord


class ClosedPoolLotRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, records: Iterable[ClosedLotRecord]) -> None:
        offset = self._session.query(models.ClosedPoolLotOrm).count()
        orm_lots = [
            models.ClosedPoolLotOrm(
                id=record.id,
                position=offset + index,
                asset_id=record.asset_id,
                disposal_date=record.disposal_date,
                acquisition_date=record.acquisition_date,
                rule=record.rule.value,
                action=record.action,
                quantity=record.quantity,
                cost_asset_id=record.cost_asset_id,
                acquisition_cost=record.acquisition_cost,
                proceeds_asset_id=record.proceeds_asset_id,
                disposal_proceeds=record.disposal_proceeds,
            )
            for index, record in enumerate(records)
        ]
        self._session.add_all(orm_lots)
        self._session.commit()

    def list(self, asset_id: str | None = None) -> list[ClosedLotRecord]:
        stmt = select(models.ClosedPoolLotOrm).order_by(models.ClosedPoolLotOrm.position.asc())
        if asset_id is not None:
            stmt = stmt.where(models.ClosedPoolLotOrm.asset_id == asset_id)
        return [self._to_domain(orm_lot) for orm_lot in self._session.scalars(stmt)]

    @staticmethod
    def _to_domain(orm_lot: models.ClosedPoolLotOrm) -> ClosedLotRecord:
        return ClosedLotRecord(
            id=ClosedLotId(orm_lot.id),
            asset_id=orm_lot.asset_id,
            disposal_date=orm_lot.disposal_date,
            acquisition_date=orm_lot.acquisition_date,
            rule=MatchRule(orm_lot.rule),
            action=orm_lot.action,
            quantity=orm_lot.quantity,
            cost_asset_id=orm_lot.cost_asset_id,
            acquisition_cost=orm_lot.acquisition_cost,
            proceeds_asset_id=orm_lot.proceeds_asset_id,
            disposal_proceeds=orm_lot.disposal_proceeds,
        )


class OpenPositionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_many(self, records: Iterable[OpenPositionRecord]) -> None:
        orm_positions = [
            models.OpenPositionOrm(
                id=record.id,
                asset_id=record.asset_id,
                quantity=record.quantity,
                cost_asset_id=record.cost_asset_id,
                cost=record.cost,
            )
            for record in records
        ]
        self._session.add_all(orm_positions)
        self._session.commit()

    def list(self) -> list[OpenPositionRecord]:
        stmt = select(models.OpenPositionOrm).order_by(models.OpenPositionOrm.asset_id.asc())
        return [
            OpenPositionRecord(
                id=OpenPositionId(orm_position.id),
                asset_id=orm_position.asset_id,
                quantity=orm_position.quantity,
                cost_asset_id=orm_position.cost_asset_id,
                cost=orm_position.cost,
            )
            for orm_position in self._session.scalars(stmt)
        ]
