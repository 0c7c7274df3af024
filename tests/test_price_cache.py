"""
Tests for PriceCache: current prices, staleness sweep, history and refresh
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlmodel import select

from stock_rewards.db import StockPrice, StockPriceHistory
from stock_rewards.errors import HistoryUnavailableError, PriceUnavailableError
from stock_rewards.services import PriceCache, RewardService


def _price_rows(database) -> dict[str, StockPrice]:
    with database.read_session() as session:
        return {row.stock_symbol: row for row in session.exec(select(StockPrice)).all()}


def _stale_symbols(database) -> set[str]:
    return {s for s, row in _price_rows(database).items() if row.is_stale}


class TestCurrentPrices:
    """Tests for get_price / update_price / resolve_price."""

    def test_get_price_does_not_touch_cache(self, price_cache, database, oracle):
        assert price_cache.get_price("tcs") == Decimal("3500.00")
        assert oracle.calls == ["TCS"]
        assert _price_rows(database) == {}

    def test_update_price_inserts_then_overwrites(self, price_cache, database, now):
        price_cache.update_price("TCS", Decimal("3400"), observed_at=now - timedelta(hours=3))
        price_cache.mark_stale_prices(now)
        assert _stale_symbols(database) == {"TCS"}

        price_cache.update_price("TCS", Decimal("3600.5"), observed_at=now)
        rows = _price_rows(database)
        assert len(rows) == 1
        assert rows["TCS"].price == Decimal("3600.5")
        assert rows["TCS"].last_updated == now
        assert rows["TCS"].is_stale is False

    def test_cached_price_ignores_stale_rows(self, price_cache, now):
        price_cache.update_price("INFY", Decimal("1490"), observed_at=now - timedelta(hours=2))
        assert price_cache.get_cached_price("INFY") == Decimal("1490")
        price_cache.mark_stale_prices(now)
        assert price_cache.get_cached_price("INFY") is None

    def test_resolve_prefers_fresh_cached_price(self, price_cache, oracle):
        price_cache.update_price("TCS", Decimal("3333.33"))
        assert price_cache.resolve_price("TCS") == Decimal("3333.33")
        assert oracle.calls == []

    def test_resolve_fetches_and_stores_when_missing(self, price_cache, database, oracle):
        assert price_cache.resolve_price("RELIANCE") == Decimal("2500.00")
        assert oracle.calls == ["RELIANCE"]
        assert _price_rows(database)["RELIANCE"].price == Decimal("2500.00")

    def test_resolve_reports_oracle_failure(self, price_cache, oracle):
        oracle.failing.add("TCS")
        with pytest.raises(PriceUnavailableError):
            price_cache.resolve_price("TCS")


class TestMarkStalePrices:
    """Tests for the staleness sweep."""

    def test_only_rows_older_than_threshold(self, price_cache, database, now):
        price_cache.update_price("OLD", Decimal("10"), observed_at=now - timedelta(minutes=61))
        price_cache.update_price("NEW", Decimal("10"), observed_at=now - timedelta(minutes=59))
        assert price_cache.mark_stale_prices(now) == 1
        assert _stale_symbols(database) == {"OLD"}

    def test_idempotent(self, price_cache, database, now):
        """Sweeping twice with the same now gives the same stale set."""
        price_cache.update_price("A", Decimal("1"), observed_at=now - timedelta(hours=5))
        price_cache.update_price("B", Decimal("1"), observed_at=now)
        price_cache.mark_stale_prices(now)
        first = _stale_symbols(database)
        assert price_cache.mark_stale_prices(now) == 0
        assert _stale_symbols(database) == first == {"A"}

    def test_custom_threshold(self, database, oracle, now):
        cache = PriceCache(database, oracle, stale_after=timedelta(minutes=5))
        cache.update_price("TCS", Decimal("1"), observed_at=now - timedelta(minutes=10))
        assert cache.mark_stale_prices(now) == 1


class TestHistoricalPrices:
    """Tests for per-day prices and their fallback."""

    def test_stored_price_for_exact_day(self, price_cache, oracle, yesterday):
        day = yesterday.date()
        price_cache.save_historical_price("INFY", day, Decimal("1450.25"))
        assert price_cache.get_historical_price("INFY", day) == Decimal("1450.25")
        assert oracle.calls == []

    def test_other_day_falls_back_to_oracle(self, price_cache, oracle, yesterday):
        price_cache.save_historical_price("INFY", yesterday.date(), Decimal("1450.25"))
        older = yesterday.date() - timedelta(days=1)
        assert price_cache.get_historical_price("INFY", older) == Decimal("1500.00")
        assert oracle.calls == ["INFY"]

    def test_strict_mode_raises(self, database, oracle, yesterday):
        cache = PriceCache(database, oracle, history_fallback=False)
        with pytest.raises(HistoryUnavailableError):
            cache.get_historical_price("INFY", yesterday.date())
        assert oracle.calls == []

    def test_save_is_upsert(self, price_cache, database, yesterday):
        day = yesterday.date()
        price_cache.save_historical_price("TCS", day, Decimal("3000"))
        price_cache.save_historical_price("tcs", day, Decimal("3100"))
        with database.read_session() as session:
            rows = session.exec(select(StockPriceHistory)).all()
        assert len(rows) == 1
        assert rows[0].stock_symbol == "TCS"
        assert rows[0].price == Decimal("3100")


class TestRefreshAllPrices:
    """Tests for the refresh pass used by the background loop."""

    def test_refreshes_rewarded_and_cached_symbols(
        self, price_cache, database, reward_service: RewardService, make_request, now
    ):
        reward_service.create_reward(make_request(symbol="INFY", quantity="1"))
        price_cache.update_price("WIPRO", Decimal("400"), observed_at=now - timedelta(hours=2))

        refreshed = price_cache.refresh_all_prices(now, record_history=True)

        assert refreshed == ["INFY", "WIPRO"]
        rows = _price_rows(database)
        assert rows["WIPRO"].price == Decimal("1000.00")
        assert not any(row.is_stale for row in rows.values())
        with database.read_session() as session:
            history = session.exec(select(StockPriceHistory)).all()
        assert {(h.stock_symbol, h.price_date) for h in history} == {
            ("INFY", now.date()),
            ("WIPRO", now.date()),
        }

    def test_failed_symbol_is_skipped_and_left_to_go_stale(
        self, price_cache, database, oracle, now
    ):
        price_cache.update_price("TCS", Decimal("3400"), observed_at=now - timedelta(hours=2))
        price_cache.update_price("INFY", Decimal("1400"), observed_at=now - timedelta(hours=2))
        oracle.failing.add("TCS")

        assert price_cache.refresh_all_prices(now) == ["INFY"]
        assert _stale_symbols(database) == {"TCS"}
