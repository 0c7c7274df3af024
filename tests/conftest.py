"""
Pytest configuration and fixtures for stock rewards tests
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from stock_rewards.db import Database
from stock_rewards.providers import PriceOracleABC
from stock_rewards.schemas import RewardRequest
from stock_rewards.services import (PortfolioService, PriceCache,
                                    RewardService, UserService)
from stock_rewards.utils import utcnow


class FixedPriceOracle(PriceOracleABC):
    """Deterministic oracle: fixed price per symbol, records every call."""

    def __init__(self, prices: dict[str, str] | None = None, default: str = "1000.00") -> None:
        self.prices = {k: Decimal(v) for k, v in (prices or {}).items()}
        self.default = Decimal(default)
        self.calls: list[str] = []
        self.failing: set[str] = set()

    def get_price(self, symbol: str) -> Decimal:
        self.calls.append(symbol)
        if symbol in self.failing:
            raise TimeoutError(f"quote for {symbol} timed out")
        return self.prices.get(symbol, self.default)


@pytest.fixture
def engine():
    """
    In-memory SQLite engine shared by every session of one test
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def database(engine) -> Database:
    return Database(engine)


@pytest.fixture
def oracle() -> FixedPriceOracle:
    return FixedPriceOracle({"TCS": "3500.00", "INFY": "1500.00", "RELIANCE": "2500.00"})


@pytest.fixture
def price_cache(database, oracle) -> PriceCache:
    return PriceCache(database, oracle)


@pytest.fixture
def reward_service(database, price_cache) -> RewardService:
    return RewardService(database, price_cache)


@pytest.fixture
def portfolio_service(database, price_cache) -> PortfolioService:
    return PortfolioService(database, price_cache)


@pytest.fixture
def user_service(database) -> UserService:
    return UserService(database)


@pytest.fixture
def user(user_service):
    return user_service.create_user("investor@example.com")


@pytest.fixture
def now() -> datetime:
    return utcnow()


@pytest.fixture
def make_request(user, now):
    """Factory for reward requests for the default user."""

    def _make(
        symbol: str = "TCS",
        quantity: str = "10",
        reference_id: str | None = None,
        timestamp: datetime | None = None,
        user_id: str | None = None,
    ) -> RewardRequest:
        return RewardRequest(
            user_id=user_id or str(user.id),
            stock_symbol=symbol,
            quantity=Decimal(quantity),
            reward_timestamp=timestamp or now,
            event_type="signup_bonus",
            reference_id=reference_id or str(uuid.uuid4()),
        )

    return _make


@pytest.fixture
def yesterday(now) -> datetime:
    return now - timedelta(days=1)
