"""Stock price providers."""
from stock_rewards.providers.stocks.simulated import SimulatedPriceProvider

__all__ = ["SimulatedPriceProvider"]
