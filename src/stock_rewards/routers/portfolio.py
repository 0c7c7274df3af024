"""Portfolio valuation routes."""
import logging

from dependency_injector.wiring import inject
from fastapi import APIRouter

from stock_rewards.container import PortfolioServiceDep
from stock_rewards.errors import RewardsError
from stock_rewards.schemas import HistoricalValues, Portfolio, Stats
from stock_rewards.services import ServiceErrorMapper
from stock_rewards.services.money import ZERO
from stock_rewards.services.rewards import parse_user_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["portfolio"])

_errors = ServiceErrorMapper(resource_name="Portfolio")


@router.get("/historical-inr/{user_id}", response_model=HistoricalValues)
@inject
def get_historical_inr(user_id: str, service: PortfolioServiceDep) -> HistoricalValues:
    """INR value of the user's portfolio at the end of each past day with rewards."""
    try:
        uid = parse_user_id(user_id)
        values = service.get_historical_inr(uid)
    except RewardsError as exc:
        logger.warning("Error fetching historical INR data: %s", exc)
        _errors.raise_http(exc)
    return HistoricalValues(user_id=uid, historical_values=values)


@router.get("/stats/{user_id}", response_model=Stats)
@inject
def get_stats(user_id: str, service: PortfolioServiceDep) -> Stats:
    """Today's rewarded quantities per stock and the current portfolio value."""
    try:
        uid = parse_user_id(user_id)
        stats = service.get_stats(uid)
    except RewardsError as exc:
        logger.warning("Error fetching stats: %s", exc)
        _errors.raise_http(exc)
    return Stats(user_id=uid, stats=stats)


@router.get("/portfolio/{user_id}", response_model=Portfolio)
@inject
def get_portfolio(user_id: str, service: PortfolioServiceDep) -> Portfolio:
    """Current holdings with prices and values, highest value first."""
    try:
        uid = parse_user_id(user_id)
        holdings = service.get_portfolio(uid)
    except RewardsError as exc:
        logger.warning("Error fetching portfolio: %s", exc)
        _errors.raise_http(exc)
    total = sum((item.current_value for item in holdings), ZERO)
    return Portfolio(user_id=uid, holdings=holdings, total_value=total)
