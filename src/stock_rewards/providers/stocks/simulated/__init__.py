from stock_rewards.providers.stocks.simulated.simulated_provider import \
    SimulatedPriceProvider

__all__ = ["SimulatedPriceProvider"]
