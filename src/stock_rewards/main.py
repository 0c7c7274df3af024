"""Main module for the stock rewards service."""
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stock_rewards.container import Container, init_container
from stock_rewards.routers import (portfolio_router, rewards_router,
                                   users_router)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create tables and start the price refresh loop; stop it and release resources on shutdown."""
    container: Container = fastapi_app.state.container
    settings = container.settings()
    database = container.database()
    await asyncio.to_thread(database.init_db)

    stop_event = asyncio.Event()
    refresh_task: asyncio.Task | None = None
    if settings.price_refresh_enabled:
        refresher = container.price_refresher()
        refresh_task = asyncio.create_task(refresher.run(stop_event))

    yield

    stop_event.set()
    if refresh_task is not None:
        await refresh_task
    try:
        container.price_oracle().close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing price oracle: %s", exc)
    database.dispose()


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around a (wired) container."""
    fastapi_app = FastAPI(
        title="Stock Rewards",
        description="Stock reward ledger and portfolio valuation",
        version="0.1.0",
        lifespan=lifespan,
    )
    container = container or init_container()
    fastapi_app.state.container = container

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(container.settings().cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    )

    fastapi_app.include_router(rewards_router)
    fastapi_app.include_router(portfolio_router)
    fastapi_app.include_router(users_router)

    @fastapi_app.get("/health")
    def health():
        """Return health check status."""
        return {"status": "healthy"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `stock-rewards` script."""
    logging.basicConfig(level=logging.INFO)
    settings = app.state.container.settings()
    uvicorn.run("stock_rewards.main:app", host=settings.api_host, port=settings.api_port)
