"""Core provider abstractions."""
from stock_rewards.providers.core.price_oracle_abc import (
    PRICE_ORACLE_EXCEPTIONS, PriceOracleABC)
from stock_rewards.providers.core.utils import (normalize_stock_symbol,
                                                round_price)

__all__ = [
    "PRICE_ORACLE_EXCEPTIONS",
    "PriceOracleABC",
    "normalize_stock_symbol",
    "round_price",
]
