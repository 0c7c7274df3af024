"""Price oracles for stock rewards.

All providers implement PriceOracleABC and return Decimal prices rounded to
2 decimal places:

- SimulatedPriceProvider: random walk (+/-5%) around per-symbol base prices

Example:
    with SimulatedPriceProvider() as oracle:
        price = oracle.get_price("TCS")
"""
from stock_rewards.providers.core import (PRICE_ORACLE_EXCEPTIONS,
                                          PriceOracleABC,
                                          normalize_stock_symbol, round_price)
from stock_rewards.providers.stocks import SimulatedPriceProvider

__all__ = [
    "PRICE_ORACLE_EXCEPTIONS",
    "PriceOracleABC",
    "SimulatedPriceProvider",
    "normalize_stock_symbol",
    "round_price",
]
