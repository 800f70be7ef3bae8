from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Date, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class ClosedPoolLotOrm(Base):
    __tablename__ = "closed_pool_lots"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    position: Mapped[int] = mapped_column(nullable=False)
    asset_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    disposal_date: Mapped[date] = mapped_column(Date, nullable=False)
    acquisition_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rule: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str | None] = mapped_column(String, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cost_asset_id: Mapped[str | None] = mapped_column(String, nullable=True)
    acquisition_cost: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    proceeds_asset_id: Mapped[str | None] = mapped_column(String, nullable=True)
    disposal_proceeds: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)


class OpenPositionOrm(Base):
    __tablename__ = "open_positions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    asset_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    quantity: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cost_asset_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cost: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
