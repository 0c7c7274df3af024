"""Service layer: reward ledger, price cache, portfolio valuation, price refresh."""
from stock_rewards.services.error_mapper import ServiceErrorMapper
from stock_rewards.services.fees import FeeBreakdown, FeeSchedule
from stock_rewards.services.portfolio import PortfolioService
from stock_rewards.services.price_cache import PriceCache
from stock_rewards.services.price_refresher import PriceRefresher
from stock_rewards.services.rewards import RewardService
from stock_rewards.services.users import UserService

__all__ = [
    "FeeBreakdown",
    "FeeSchedule",
    "PortfolioService",
    "PriceCache",
    "PriceRefresher",
    "RewardService",
    "ServiceErrorMapper",
    "UserService",
]
