"""Background loop that re-primes the price cache and sweeps stale prices."""
import asyncio
import logging

from stock_rewards.errors import RewardsError
from stock_rewards.services.price_cache import PriceCache

logger = logging.getLogger(__name__)


class PriceRefresher:
    """Runs PriceCache.refresh_all_prices once at start, then every interval.

    The cache does blocking database I/O, so each pass runs in a worker thread.
    The loop exits when stop_event is set (process shutdown).
    """

    def __init__(
        self,
        price_cache: PriceCache,
        *,
        interval_seconds: float = 3600.0,
        record_history: bool = True,
    ) -> None:
        self._prices = price_cache
        self._interval = interval_seconds
        self._record_history = record_history

    async def refresh_once(self) -> list[str]:
        """One refresh + stale sweep. Errors are logged, never raised."""
        try:
            return await asyncio.to_thread(
                self._prices.refresh_all_prices, record_history=self._record_history
            )
        except RewardsError as exc:
            logger.error("Error updating stock prices: %s", exc)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error in price refresh")
        return []

    async def run(self, stop_event: asyncio.Event) -> None:
        """Refresh until stop_event is set."""
        logger.info("Running initial stock price update")
        while not stop_event.is_set():
            await self.refresh_once()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                logger.info("Running scheduled stock price update")
        logger.info("Price update job stopped")
