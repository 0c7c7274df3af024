"""Simulated stock price provider: random walk around fixed base prices."""
import logging
import random
from decimal import Decimal

from stock_rewards.providers.core import PriceOracleABC, round_price

logger = logging.getLogger(__name__)


class SimulatedPriceProvider(PriceOracleABC):
    """Price oracle that quotes a base price with up to +/-5% random variation.

    Stands in for a real market-data feed. Unknown symbols use DEFAULT_BASE_PRICE.
    Pass a seeded random.Random for reproducible quotes.
    """

    BASE_PRICES: dict[str, float] = {
        "RELIANCE": 2500.0,
        "TCS": 3500.0,
        "INFY": 1500.0,
        "HDFCBANK": 1700.0,
        "ICICIBANK": 950.0,
        "BHARTIARTL": 1200.0,
        "SBIN": 600.0,
        "BAJFINANCE": 7000.0,
        "WIPRO": 450.0,
        "HINDUNILVR": 2500.0,
    }
    DEFAULT_BASE_PRICE = 1000.0
    MAX_VARIATION = 0.05

    def __init__(
        self,
        base_prices: dict[str, float] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            base_prices: Override the built-in base price table.
            rng: Random source; defaults to a fresh unseeded Random.
        """
        self._base_prices = dict(base_prices or self.BASE_PRICES)
        self._rng = rng or random.Random()

    def base_price(self, symbol: str) -> float:
        return self._base_prices.get(symbol, self.DEFAULT_BASE_PRICE)

    def get_price(self, symbol: str) -> Decimal:
        """Quote base price * (1 + u), u uniform in [-5%, +5%), rounded to 2dp."""
        variation = (self._rng.random() - 0.5) * 2 * self.MAX_VARIATION
        price = round_price(self.base_price(symbol) * (1 + variation))
        logger.info("Fetched stock price %s=%s", symbol, price)
        return price
