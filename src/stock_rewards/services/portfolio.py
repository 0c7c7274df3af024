"""Portfolio valuation: current holdings value and point-in-time replay.

Current value joins holdings with fresh cached prices. Past values are not
snapshotted; they are rebuilt by replaying the reward-event log up to each
day and pricing the cumulative quantities with that day's historical price.
"""
import logging
import uuid
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_
from sqlmodel import col, select

from stock_rewards.db import (Database, RewardEvent, RewardStatus, StockPrice,
                              UserHolding, read_best_effort)
from stock_rewards.errors import TransientStoreError
from stock_rewards.providers import PRICE_ORACLE_EXCEPTIONS
from stock_rewards.schemas import HistoricalValue, PortfolioItem, PortfolioStats
from stock_rewards.services.money import ZERO, q_money
from stock_rewards.services.price_cache import PriceCache
from stock_rewards.services.rewards import parse_user_id
from stock_rewards.utils import day_bounds, start_of_day, utcnow

logger = logging.getLogger(__name__)

# (stock_symbol, quantity, reward_timestamp)
RewardRow = tuple[str, Decimal, datetime]


class PortfolioService:
    """Read-side valuation over holdings, cached prices and the reward log."""

    def __init__(
        self,
        database: Database,
        price_cache: PriceCache,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db = database
        self._prices = price_cache
        self._clock = clock

    def get_portfolio(self, user_id: uuid.UUID | str) -> list[PortfolioItem]:
        """Holdings with quantity > 0, valued at fresh prices, highest value first.

        A holding without a fresh cached price is valued at a live oracle
        quote, which is then stored in the cache.
        """
        uid = parse_user_id(user_id)
        with self._db.read_session() as session:
            rows = session.exec(
                select(UserHolding, StockPrice)
                .join(
                    StockPrice,
                    and_(
                        col(StockPrice.stock_symbol) == col(UserHolding.stock_symbol),
                        col(StockPrice.is_stale).is_(False),
                    ),
                    isouter=True,
                )
                .where(UserHolding.user_id == uid, col(UserHolding.quantity) > 0)
            ).all()

        items = [item for _, item in read_best_effort(rows, self._to_item, label="holding")]
        items.sort(key=lambda item: item.current_value, reverse=True)
        return items

    def _to_item(self, row: tuple[UserHolding, StockPrice | None]) -> PortfolioItem:
        holding, cached = row
        price = cached.price if cached is not None else ZERO
        if price == ZERO:
            price = self._live_price(holding.stock_symbol)
        return PortfolioItem(
            stock_symbol=holding.stock_symbol,
            quantity=holding.quantity,
            price=price,
            current_value=q_money(holding.quantity * price),
            last_updated=holding.last_updated,
        )

    def _live_price(self, symbol: str) -> Decimal:
        try:
            price = self._prices.get_price(symbol)
        except PRICE_ORACLE_EXCEPTIONS as exc:
            logger.warning("No live price for %s, valuing at 0: %s", symbol, exc)
            return ZERO
        try:
            self._prices.update_price(symbol, price)
        except TransientStoreError as exc:
            logger.warning("Could not cache live price for %s: %s", symbol, exc)
        return price

    def get_current_portfolio_value(self, user_id: uuid.UUID | str) -> Decimal:
        """Sum of current_value over get_portfolio()."""
        return q_money(sum((item.current_value for item in self.get_portfolio(user_id)), ZERO))

    def get_today_stocks(
        self, user_id: uuid.UUID | str, *, today: date | None = None
    ) -> dict[str, Decimal]:
        """Quantity per symbol rewarded during the current UTC day."""
        uid = parse_user_id(user_id)
        start, end = day_bounds(today or self._clock().date())
        with self._db.read_session() as session:
            rows = session.exec(
                select(RewardEvent.stock_symbol, RewardEvent.quantity).where(
                    RewardEvent.user_id == uid,
                    col(RewardEvent.reward_timestamp) >= start,
                    col(RewardEvent.reward_timestamp) < end,
                    col(RewardEvent.deleted_at).is_(None),
                )
            ).all()
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for symbol, quantity in rows:
            totals[symbol] += quantity
        return dict(totals)

    def get_stats(self, user_id: uuid.UUID | str) -> PortfolioStats:
        return PortfolioStats(
            today_stocks=self.get_today_stocks(user_id),
            current_portfolio_value_inr=self.get_current_portfolio_value(user_id),
        )

    def get_historical_inr(self, user_id: uuid.UUID | str) -> list[HistoricalValue]:
        """Portfolio value at the end of every past UTC day that has an active reward.

        Newest day first. A day whose valuation fails is logged and left out.
        """
        uid = parse_user_id(user_id)
        today = self._clock().date()
        with self._db.read_session() as session:
            rewards: list[RewardRow] = list(
                session.exec(
                    select(
                        RewardEvent.stock_symbol,
                        RewardEvent.quantity,
                        RewardEvent.reward_timestamp,
                    )
                    .where(
                        RewardEvent.user_id == uid,
                        RewardEvent.status == RewardStatus.ACTIVE.value,
                        col(RewardEvent.deleted_at).is_(None),
                        col(RewardEvent.reward_timestamp) < start_of_day(today),
                    )
                    .order_by(col(RewardEvent.reward_timestamp))
                ).all()
            )

        days = sorted({ts.date() for _, _, ts in rewards}, reverse=True)
        return [
            HistoricalValue(date=day, value=value)
            for day, value in read_best_effort(
                days,
                lambda day: self._value_as_of(rewards, day),
                label="historical value for",
            )
        ]

    def _value_as_of(self, rewards: Sequence[RewardRow], day: date) -> Decimal:
        """Value of cumulative quantities rewarded on or before day, at day's prices."""
        quantities: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for symbol, quantity, ts in rewards:
            if ts.date() <= day:
                quantities[symbol] += quantity
        total = ZERO
        for symbol, quantity in sorted(quantities.items()):
            if quantity <= ZERO:
                continue
            total += quantity * self._prices.get_historical_price(symbol, day)
        return q_money(total)
