"""Price cache: current prices with staleness, per-day history, oracle fallback.

Staleness is advisory. A periodic sweep (mark_stale_prices) flips is_stale on
rows older than the threshold; readers only ask for non-stale rows and fall
through to the oracle otherwise.
"""
import logging
import uuid
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import update
from sqlmodel import Session, col, select

from stock_rewards.db import (Database, RewardEvent, StockPrice,
                              StockPriceHistory, upsert_insert)
from stock_rewards.errors import (HistoryUnavailableError,
                                  PriceUnavailableError, RewardsError,
                                  TransientStoreError)
from stock_rewards.providers import (PRICE_ORACLE_EXCEPTIONS, PriceOracleABC,
                                    normalize_stock_symbol)
from stock_rewards.services.money import q_money
from stock_rewards.utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = timedelta(hours=1)


class PriceCache:
    """Current and historical stock prices backed by the database and a price oracle."""

    def __init__(
        self,
        database: Database,
        oracle: PriceOracleABC,
        *,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        history_fallback: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the cache.

        Args:
            database: Store-session abstraction.
            oracle: Source of live prices.
            stale_after: Age after which mark_stale_prices flags a row.
            history_fallback: When no history row exists, quote the oracle
                (True) or raise HistoryUnavailableError (False).
            clock: Returns "now" as naive UTC.
        """
        self._db = database
        self._oracle = oracle
        self._stale_after = stale_after
        self._history_fallback = history_fallback
        self._clock = clock

    @property
    def stale_after(self) -> timedelta:
        return self._stale_after

    @contextmanager
    def _scope(self, session: Session | None) -> Generator[Session, None, None]:
        """Join the caller's unit of work, or open a new atomic one."""
        if session is not None:
            yield session
            return
        with self._db.write_atomic() as own:
            yield own

    def get_price(self, symbol: str) -> Decimal:
        """Quote the oracle. Does not read or write the cache."""
        return self._oracle.get_price(normalize_stock_symbol(symbol))

    def get_cached_price(
        self, symbol: str, *, session: Session | None = None
    ) -> Decimal | None:
        """Return the stored non-stale price for symbol, or None."""
        stmt = select(StockPrice.price).where(
            StockPrice.stock_symbol == normalize_stock_symbol(symbol),
            col(StockPrice.is_stale).is_(False),
        )
        if session is not None:
            return session.exec(stmt).first()
        with self._db.read_session() as own:
            return own.exec(stmt).first()

    def resolve_price(self, symbol: str, *, session: Session | None = None) -> Decimal:
        """Prefer a fresh cached price; otherwise quote the oracle and store the quote."""
        with self._scope(session) as scoped:
            price = self.get_cached_price(symbol, session=scoped)
            if price is not None:
                return price
            try:
                price = self.get_price(symbol)
            except PRICE_ORACLE_EXCEPTIONS as exc:
                raise PriceUnavailableError(f"No price for {symbol}: {exc}") from exc
            self.update_price(symbol, price, session=scoped)
            return price

    def update_price(
        self,
        symbol: str,
        price: Decimal,
        observed_at: datetime | None = None,
        *,
        session: Session | None = None,
    ) -> None:
        """Upsert the current price for symbol and clear its stale flag."""
        sym = normalize_stock_symbol(symbol)
        observed_at = observed_at or self._clock()
        now = utcnow()
        with self._scope(session) as scoped:
            stmt = upsert_insert(scoped, StockPrice).values(
                id=uuid.uuid4(),
                stock_symbol=sym,
                price=q_money(price),
                last_updated=observed_at,
                is_stale=False,
                created_at=now,
                updated_at=now,
            )
            scoped.exec(
                stmt.on_conflict_do_update(
                    index_elements=["stock_symbol"],
                    set_={
                        "price": stmt.excluded.price,
                        "last_updated": stmt.excluded.last_updated,
                        "is_stale": False,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
            )

    def mark_stale_prices(self, now: datetime | None = None) -> int:
        """Flag every price last updated before now - stale_after. Returns rows newly flagged."""
        cutoff = (now or self._clock()) - self._stale_after
        with self._db.write_atomic() as session:
            result = session.exec(
                update(StockPrice)
                .where(
                    col(StockPrice.last_updated) < cutoff,
                    col(StockPrice.is_stale).is_(False),
                )
                .values(is_stale=True)
                .execution_options(synchronize_session=False)
            )
            marked = result.rowcount
        if marked:
            logger.info("Marked %d stock prices stale (cutoff %s)", marked, cutoff)
        return marked

    def get_historical_price(self, symbol: str, day: date) -> Decimal:
        """Price pinned to day, falling back to a live quote when none is stored.

        With fallback the value for past days is not truly historical; it is
        today's quote. With history_fallback=False a missing row raises
        HistoryUnavailableError instead.
        """
        sym = normalize_stock_symbol(symbol)
        price = None
        try:
            with self._db.read_session() as session:
                price = session.exec(
                    select(StockPriceHistory.price).where(
                        StockPriceHistory.stock_symbol == sym,
                        StockPriceHistory.price_date == day,
                    )
                ).first()
        except TransientStoreError as exc:
            if not self._history_fallback:
                raise
            logger.warning("Historical price lookup failed for %s on %s: %s", sym, day, exc)
        if price is not None:
            return price
        if not self._history_fallback:
            raise HistoryUnavailableError(f"No price stored for {sym} on {day.isoformat()}")
        logger.warning("No historical price for %s on %s; using current price", sym, day)
        try:
            return self.get_price(sym)
        except PRICE_ORACLE_EXCEPTIONS as exc:
            raise PriceUnavailableError(f"No price for {sym}: {exc}") from exc

    def save_historical_price(
        self,
        symbol: str,
        day: date,
        price: Decimal,
        *,
        session: Session | None = None,
    ) -> None:
        """Upsert the (symbol, day) history row."""
        sym = normalize_stock_symbol(symbol)
        with self._scope(session) as scoped:
            stmt = upsert_insert(scoped, StockPriceHistory).values(
                id=uuid.uuid4(),
                stock_symbol=sym,
                price=q_money(price),
                price_date=day,
                created_at=utcnow(),
            )
            scoped.exec(
                stmt.on_conflict_do_update(
                    index_elements=["stock_symbol", "price_date"],
                    set_={"price": stmt.excluded.price},
                )
            )

    def tracked_symbols(self) -> list[str]:
        """Symbols with live reward events or a cached price."""
        with self._db.read_session() as session:
            rewarded = session.exec(
                select(RewardEvent.stock_symbol)
                .where(col(RewardEvent.deleted_at).is_(None))
                .distinct()
            ).all()
            cached = session.exec(select(StockPrice.stock_symbol)).all()
        return sorted(set(rewarded) | set(cached))

    def refresh_all_prices(
        self, now: datetime | None = None, *, record_history: bool = False
    ) -> list[str]:
        """Re-quote every tracked symbol, then sweep stale rows.

        Each symbol is its own unit of work; a failure is logged and the
        symbol skipped. Returns the symbols that were refreshed.
        """
        now = now or self._clock()
        refreshed: list[str] = []
        for symbol in self.tracked_symbols():
            try:
                price = self.get_price(symbol)
                with self._db.write_atomic() as session:
                    self.update_price(symbol, price, now, session=session)
                    if record_history:
                        self.save_historical_price(symbol, now.date(), price, session=session)
            except (RewardsError, *PRICE_ORACLE_EXCEPTIONS) as exc:
                logger.error("Error refreshing price for %s: %s", symbol, exc)
                continue
            refreshed.append(symbol)
        self.mark_stale_prices(now)
        logger.info("Updated %d stock prices", len(refreshed))
        return refreshed
