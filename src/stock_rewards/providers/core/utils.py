"""Shared utilities for price providers."""
from decimal import ROUND_HALF_UP, Decimal

PRICE_QUANT = Decimal("0.01")


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock symbol (strip + uppercase)."""
    return symbol.strip().upper()


def round_price(x: Decimal | float | str) -> Decimal:
    """Round a price to 2 decimal places (half up)."""
    return Decimal(str(x)).quantize(PRICE_QUANT, rounding=ROUND_HALF_UP)
