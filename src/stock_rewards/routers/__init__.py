"""API routers for the stock rewards service.

Includes routes for:
- /api/v1/reward, /api/v1/today-stocks/{user_id} - reward issuance and today's rewards
- /api/v1/portfolio, /api/v1/stats, /api/v1/historical-inr - portfolio valuation
- /api/v1/users - user directory

Handlers are thin: they call one service method and map service errors to HTTP.
"""
from stock_rewards.routers.portfolio import router as portfolio_router
from stock_rewards.routers.rewards import router as rewards_router
from stock_rewards.routers.users import router as users_router

__all__ = [
    "portfolio_router",
    "rewards_router",
    "users_router",
]
