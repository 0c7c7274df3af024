"""Database package: models and session management."""
from stock_rewards.db.models import (AccountType, LedgerEntry, RewardEvent,
                                     RewardStatus, StockPrice,
                                     StockPriceHistory, User, UserHolding)
from stock_rewards.db.sessions import Database, read_best_effort, upsert_insert

__all__ = [
    "AccountType",
    "Database",
    "LedgerEntry",
    "RewardEvent",
    "RewardStatus",
    "StockPrice",
    "StockPriceHistory",
    "User",
    "UserHolding",
    "read_best_effort",
    "upsert_insert",
]
