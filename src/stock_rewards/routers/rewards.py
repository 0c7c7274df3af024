"""Reward issuance routes."""
import logging

from dependency_injector.wiring import inject
from fastapi import APIRouter, status

from stock_rewards.container import RewardServiceDep
from stock_rewards.errors import RewardsError
from stock_rewards.schemas import (RewardCreated, RewardEventRead,
                                   RewardRequest, TodayRewards)
from stock_rewards.services import ServiceErrorMapper
from stock_rewards.services.rewards import parse_user_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["rewards"])

_errors = ServiceErrorMapper(resource_name="Reward ledger")


@router.post("/reward", response_model=RewardCreated, status_code=status.HTTP_201_CREATED)
@inject
def create_reward(payload: RewardRequest, service: RewardServiceDep) -> RewardCreated:
    """Grant a stock reward to a user.

    Returns 409 when reference_id was already used, 404 for an unknown user.
    """
    try:
        reward = service.create_reward(payload)
    except RewardsError as exc:
        logger.warning("Error creating reward: %s", exc)
        _errors.raise_http(exc)
    return RewardCreated(reward=RewardEventRead.model_validate(reward))


@router.get("/today-stocks/{user_id}", response_model=TodayRewards)
@inject
def get_today_stocks(user_id: str, service: RewardServiceDep) -> TodayRewards:
    """Reward events granted to the user during the current UTC day."""
    try:
        uid = parse_user_id(user_id)
        rewards = service.get_today_rewards(uid)
    except RewardsError as exc:
        logger.warning("Error fetching today's stocks: %s", exc)
        _errors.raise_http(exc)
    return TodayRewards(
        user_id=uid,
        rewards=[RewardEventRead.model_validate(r) for r in rewards],
    )
