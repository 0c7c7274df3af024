"""User directory routes."""
import logging

from dependency_injector.wiring import inject
from fastapi import APIRouter, status

from stock_rewards.container import UserServiceDep
from stock_rewards.errors import RewardsError
from stock_rewards.schemas import UserCreate, UserRead
from stock_rewards.services import ServiceErrorMapper

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])

_errors = ServiceErrorMapper(resource_name="User directory")


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@inject
def create_user(payload: UserCreate, service: UserServiceDep) -> UserRead:
    try:
        user = service.create_user(payload.email)
    except RewardsError as exc:
        _errors.raise_http(exc)
    return UserRead.model_validate(user)


@router.get("/{user_id}", response_model=UserRead)
@inject
def get_user(user_id: str, service: UserServiceDep) -> UserRead:
    try:
        user = service.get_user(user_id)
    except RewardsError as exc:
        _errors.raise_http(exc)
    return UserRead.model_validate(user)
