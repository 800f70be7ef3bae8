from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from domain.asset_pool import AssetPool
from domain.tracker import PoolTracker
from tests.constants import ASSETS, BTC

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def btc_pool() -> AssetPool:
    return AssetPool(BTC)


@pytest.fixture(scope="function")
def pool_tracker() -> PoolTracker:
    return PoolTracker(assets=ASSETS, base_currency="GBP")
