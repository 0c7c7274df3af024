"""DI container. Wire via init_container(); endpoints use Depends(Provide[Container.*])."""
from datetime import timedelta
from typing import Annotated

from dependency_injector import containers, providers
from dependency_injector.wiring import Provide
from fastapi import Depends

from stock_rewards.config import Settings
from stock_rewards.db import Database
from stock_rewards.providers import SimulatedPriceProvider
from stock_rewards.services import (PortfolioService, PriceCache,
                                    PriceRefresher, RewardService, UserService)


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(
        modules=[
            "stock_rewards.routers.rewards",
            "stock_rewards.routers.portfolio",
            "stock_rewards.routers.users",
        ]
    )

    settings = providers.Singleton(Settings.from_env)

    database = providers.Singleton(
        Database.from_url,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )
    price_oracle = providers.Singleton(SimulatedPriceProvider)

    price_cache = providers.Singleton(
        PriceCache,
        database,
        price_oracle,
        stale_after=providers.Callable(
            timedelta, seconds=settings.provided.price_stale_after_seconds
        ),
        history_fallback=settings.provided.history_price_fallback,
    )

    reward_service = providers.Singleton(RewardService, database, price_cache)
    portfolio_service = providers.Singleton(PortfolioService, database, price_cache)
    user_service = providers.Singleton(UserService, database)

    price_refresher = providers.Singleton(
        PriceRefresher,
        price_cache,
        interval_seconds=settings.provided.price_refresh_interval_seconds,
        record_history=settings.provided.record_price_history,
    )


# Type aliases for route injection (avoid repeating Annotated[...] in every route)
RewardServiceDep = Annotated[RewardService, Depends(Provide[Container.reward_service])]
PortfolioServiceDep = Annotated[
    PortfolioService, Depends(Provide[Container.portfolio_service])
]
UserServiceDep = Annotated[UserService, Depends(Provide[Container.user_service])]


def init_container() -> Container:
    """Create container and wire to router modules."""
    container = Container()
    container.wire()
    return container
