"""Pydantic schemas for API and service use. Not persisted to DB."""
import datetime as dt
import uuid
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Decimals travel as JSON numbers, not strings.
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class RewardRequest(BaseModel):
    """Inbound reward: grant quantity of stock_symbol to user_id, keyed by reference_id."""

    user_id: str
    stock_symbol: str
    quantity: Decimal
    reward_timestamp: dt.datetime
    event_type: str
    reference_id: str


class RewardEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    stock_symbol: str
    quantity: JsonDecimal
    reward_timestamp: dt.datetime
    event_type: str
    reference_id: str
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime


class RewardCreated(BaseModel):
    message: str = "Reward created successfully"
    reward: RewardEventRead


class TodayRewards(BaseModel):
    user_id: uuid.UUID
    rewards: list[RewardEventRead]


class PortfolioItem(BaseModel):
    """Holding joined with its resolved price. Read model, not persisted."""

    stock_symbol: str
    quantity: JsonDecimal
    price: JsonDecimal
    current_value: JsonDecimal
    last_updated: dt.datetime


class Portfolio(BaseModel):
    user_id: uuid.UUID
    holdings: list[PortfolioItem]
    total_value: JsonDecimal


class HistoricalValue(BaseModel):
    """Portfolio value as of the end of one UTC calendar day."""

    date: dt.date
    value: JsonDecimal


class HistoricalValues(BaseModel):
    user_id: uuid.UUID
    historical_values: list[HistoricalValue]


class PortfolioStats(BaseModel):
    today_stocks: dict[str, JsonDecimal] = Field(default_factory=dict)
    current_portfolio_value_inr: JsonDecimal


class Stats(BaseModel):
    user_id: uuid.UUID
    stats: PortfolioStats


class UserCreate(BaseModel):
    email: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    created_at: dt.datetime


__all__ = [
    "HistoricalValue",
    "HistoricalValues",
    "Portfolio",
    "PortfolioItem",
    "PortfolioStats",
    "RewardCreated",
    "RewardEventRead",
    "RewardRequest",
    "Stats",
    "TodayRewards",
    "UserCreate",
    "UserRead",
]
