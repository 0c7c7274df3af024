"""Database models for the stock rewards service.

Reward events are the immutable source of truth; ledger entries record each
reward as a balanced double-entry transaction; user holdings are a running
aggregate of reward quantities. Current and per-day prices are cached in
stock_prices / stock_price_history. Timestamps are naive UTC in plain DateTime
columns.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

from stock_rewards.utils import utcnow

MONEY_DIGITS = 18
MONEY_PLACES = 4
QUANTITY_PLACES = 6


class RewardStatus(str, Enum):
    ACTIVE = "active"
    REVERSED = "reversed"


class AccountType(str, Enum):
    STOCK_INVENTORY = "stock_inventory"
    CASH = "cash"
    FEES_EXPENSE = "fees_expense"


class User(SQLModel, table=True):
    """User directory entry. Rewards may only be issued to non-deleted users."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    deleted_at: datetime | None = Field(default=None, sa_type=DateTime)


class RewardEvent(SQLModel, table=True):
    """One user's claim to a quantity of a stock at a point in time."""

    __tablename__ = "reward_events"
    __table_args__ = (
        # Idempotency key: unique among live (non-deleted) events.
        Index(
            "uq_reward_events_reference_id_live",
            "reference_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("ix_reward_events_user_timestamp", "user_id", "reward_timestamp"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id")
    stock_symbol: str = Field(max_length=32)
    quantity: Decimal = Field(max_digits=MONEY_DIGITS, decimal_places=QUANTITY_PLACES)
    reward_timestamp: datetime = Field(sa_type=DateTime)
    event_type: str = Field(max_length=64)
    reference_id: str = Field(max_length=255)
    status: str = Field(default=RewardStatus.ACTIVE.value, max_length=32)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    deleted_at: datetime | None = Field(default=None, sa_type=DateTime)


class LedgerEntry(SQLModel, table=True):
    """One debit or credit leg of a double-entry transaction."""

    __tablename__ = "ledger_entries"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    transaction_id: uuid.UUID = Field(index=True)
    account_type: str = Field(max_length=32)  # AccountType value
    account_symbol: str = Field(default="", max_length=32)
    debit_amount: Decimal = Field(
        default=Decimal("0"), max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    credit_amount: Decimal = Field(
        default=Decimal("0"), max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES
    )
    stock_quantity: Decimal = Field(
        default=Decimal("0"), max_digits=MONEY_DIGITS, decimal_places=QUANTITY_PLACES
    )
    description: str = ""
    reference_id: str = Field(default="", max_length=255, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class UserHolding(SQLModel, table=True):
    """Cumulative quantity of one stock owned by one user."""

    __tablename__ = "user_holdings"
    __table_args__ = (
        UniqueConstraint("user_id", "stock_symbol", name="uq_user_holdings_user_symbol"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    stock_symbol: str = Field(max_length=32)
    quantity: Decimal = Field(
        default=Decimal("0"), max_digits=MONEY_DIGITS, decimal_places=QUANTITY_PLACES
    )
    last_updated: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class StockPrice(SQLModel, table=True):
    """Latest known price for a symbol; is_stale is flipped by the refresh sweep."""

    __tablename__ = "stock_prices"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stock_symbol: str = Field(unique=True, index=True, max_length=32)
    price: Decimal = Field(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    last_updated: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    is_stale: bool = False
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class StockPriceHistory(SQLModel, table=True):
    """Price for a symbol pinned to a calendar day."""

    __tablename__ = "stock_price_history"
    __table_args__ = (
        UniqueConstraint("stock_symbol", "price_date", name="uq_price_history_symbol_date"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stock_symbol: str = Field(max_length=32)
    price: Decimal = Field(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    price_date: date
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
