"""
Tests for PortfolioService: current valuation, today's stocks and historical replay
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlmodel import select

from stock_rewards.db import RewardEvent, RewardStatus, StockPriceHistory
from stock_rewards.errors import ValidationError
from stock_rewards.services import PortfolioService, PriceCache


def _mark_all_stale(price_cache: PriceCache, now) -> None:
    """Age every cached price past the threshold and sweep."""
    assert price_cache.mark_stale_prices(now + price_cache.stale_after + timedelta(minutes=1)) > 0


class TestCurrentPortfolio:
    """Tests for get_portfolio and get_current_portfolio_value."""

    def test_single_holding(self, reward_service, portfolio_service, make_request, user):
        reward_service.create_reward(make_request(symbol="TCS", quantity="10"))

        items = portfolio_service.get_portfolio(user.id)

        assert len(items) == 1
        assert items[0].stock_symbol == "TCS"
        assert items[0].quantity == Decimal("10")
        assert items[0].price == Decimal("3500")
        assert items[0].current_value == Decimal("35000")

    def test_sorted_by_value_descending(self, reward_service, portfolio_service, make_request, user):
        reward_service.create_reward(make_request(symbol="TCS", quantity="10"))
        reward_service.create_reward(make_request(symbol="INFY", quantity="1"))
        reward_service.create_reward(make_request(symbol="RELIANCE", quantity="20"))

        items = portfolio_service.get_portfolio(user.id)

        assert [item.stock_symbol for item in items] == ["RELIANCE", "TCS", "INFY"]
        assert portfolio_service.get_current_portfolio_value(user.id) == Decimal("86500")

    def test_empty_portfolio(self, portfolio_service, user):
        assert portfolio_service.get_portfolio(user.id) == []
        assert portfolio_service.get_current_portfolio_value(user.id) == Decimal("0")

    def test_stale_price_replaced_by_live_quote(
        self, reward_service, portfolio_service, price_cache, make_request, user, now
    ):
        reward_service.create_reward(make_request(symbol="TCS", quantity="2"))
        price_cache.update_price("TCS", Decimal("3000"), observed_at=now - timedelta(hours=2))
        price_cache.mark_stale_prices(now)
        assert price_cache.get_cached_price("TCS") is None

        items = portfolio_service.get_portfolio(user.id)

        assert items[0].price == Decimal("3500")
        assert items[0].current_value == Decimal("7000")
        # The live quote is written back to the cache.
        assert price_cache.get_cached_price("TCS") == Decimal("3500")

    def test_unpriceable_holding_valued_at_zero(
        self, reward_service, portfolio_service, price_cache, make_request, oracle, user, now
    ):
        reward_service.create_reward(make_request(symbol="TCS", quantity="2"))
        reward_service.create_reward(make_request(symbol="INFY", quantity="1"))
        _mark_all_stale(price_cache, now)
        oracle.failing.add("TCS")

        items = {item.stock_symbol: item for item in portfolio_service.get_portfolio(user.id)}

        assert items["TCS"].price == Decimal("0")
        assert items["TCS"].current_value == Decimal("0")
        assert items["INFY"].current_value == Decimal("1500")

    def test_oracle_bug_propagates(
        self, reward_service, portfolio_service, price_cache, make_request, oracle, user, now, monkeypatch
    ):
        reward_service.create_reward(make_request(symbol="TCS", quantity="2"))
        _mark_all_stale(price_cache, now)

        def broken(symbol):
            raise KeyError(symbol)

        monkeypatch.setattr(oracle, "get_price", broken)

        with pytest.raises(KeyError):
            portfolio_service.get_portfolio(user.id)

    def test_other_users_not_included(
        self, reward_service, portfolio_service, user_service, make_request, user
    ):
        other = user_service.create_user("other@example.com")
        reward_service.create_reward(make_request(user_id=str(other.id)))

        assert portfolio_service.get_portfolio(user.id) == []

    def test_invalid_user_id(self, portfolio_service):
        with pytest.raises(ValidationError):
            portfolio_service.get_portfolio("not-a-uuid")


class TestStats:
    """Tests for get_today_stocks and get_stats."""

    def test_today_stocks_grouped_by_symbol(
        self, reward_service, portfolio_service, make_request, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="TCS", quantity="10"))
        reward_service.create_reward(make_request(symbol="TCS", quantity="1.5"))
        reward_service.create_reward(make_request(symbol="INFY", quantity="3"))
        reward_service.create_reward(make_request(symbol="RELIANCE", quantity="7", timestamp=yesterday))

        today = portfolio_service.get_today_stocks(user.id)

        assert today == {"TCS": Decimal("11.5"), "INFY": Decimal("3")}

    def test_stats_combine_today_and_total_value(
        self, reward_service, portfolio_service, make_request, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="TCS", quantity="10"))
        reward_service.create_reward(make_request(symbol="INFY", quantity="2", timestamp=yesterday))

        stats = portfolio_service.get_stats(user.id)

        assert stats.today_stocks == {"TCS": Decimal("10")}
        assert stats.current_portfolio_value_inr == Decimal("38000")


class TestHistoricalValues:
    """Tests for get_historical_inr."""

    def test_uses_stored_history(
        self, reward_service, portfolio_service, price_cache, make_request, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="INFY", quantity="3", timestamp=yesterday))
        price_cache.save_historical_price("INFY", yesterday.date(), Decimal("1450"))

        history = portfolio_service.get_historical_inr(user.id)

        assert len(history) == 1
        assert history[0].date == yesterday.date()
        assert history[0].value == Decimal("4350")

    def test_falls_back_to_current_price(
        self, reward_service, portfolio_service, make_request, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="INFY", quantity="3", timestamp=yesterday))

        history = portfolio_service.get_historical_inr(user.id)

        assert [(h.date, h.value) for h in history] == [(yesterday.date(), Decimal("4500"))]

    def test_strict_history_skips_unpriced_days(
        self, database, oracle, reward_service, make_request, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="INFY", quantity="3", timestamp=yesterday))
        strict = PortfolioService(database, PriceCache(database, oracle, history_fallback=False))

        assert strict.get_historical_inr(user.id) == []

    def test_cumulative_across_days_newest_first(
        self, reward_service, portfolio_service, price_cache, make_request, user, now
    ):
        three_days_ago = now - timedelta(days=3)
        one_day_ago = now - timedelta(days=1)
        reward_service.create_reward(make_request(symbol="TCS", quantity="1", timestamp=three_days_ago))
        reward_service.create_reward(make_request(symbol="TCS", quantity="2", timestamp=one_day_ago))
        reward_service.create_reward(make_request(symbol="TCS", quantity="5", timestamp=now))
        price_cache.save_historical_price("TCS", three_days_ago.date(), Decimal("3000"))
        price_cache.save_historical_price("TCS", one_day_ago.date(), Decimal("3200"))

        history = portfolio_service.get_historical_inr(user.id)

        # Today is never reported; quantities accumulate up to each day.
        assert [(h.date, h.value) for h in history] == [
            (one_day_ago.date(), Decimal("9600")),
            (three_days_ago.date(), Decimal("3000")),
        ]

    def test_reversed_rewards_excluded(
        self, reward_service, portfolio_service, price_cache, make_request, database, user, yesterday
    ):
        kept = reward_service.create_reward(make_request(symbol="INFY", quantity="1", timestamp=yesterday))
        reversed_ = reward_service.create_reward(
            make_request(symbol="INFY", quantity="10", timestamp=yesterday)
        )
        with database.write_atomic() as session:
            row = session.get(RewardEvent, reversed_.id)
            row.status = RewardStatus.REVERSED.value
            session.add(row)
        price_cache.save_historical_price("INFY", yesterday.date(), Decimal("1400"))

        history = portfolio_service.get_historical_inr(kept.user_id)

        assert [h.value for h in history] == [Decimal("1400")]

    def test_no_past_rewards(self, reward_service, portfolio_service, make_request, user):
        reward_service.create_reward(make_request())
        assert portfolio_service.get_historical_inr(user.id) == []

    def test_fallback_does_not_cache_history(
        self, reward_service, portfolio_service, make_request, database, user, yesterday
    ):
        reward_service.create_reward(make_request(symbol="INFY", quantity="1", timestamp=yesterday))
        portfolio_service.get_historical_inr(user.id)
        with database.read_session() as session:
            rows = session.exec(select(StockPriceHistory)).all()
        assert rows == []
