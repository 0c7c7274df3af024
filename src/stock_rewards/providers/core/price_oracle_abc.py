"""Abstract base class for price oracles."""
from abc import ABC, abstractmethod
from decimal import Decimal

# Per-quote failures; callers degrade per symbol on these.
# Other exceptions are oracle bugs and propagate.
PRICE_ORACLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    TimeoutError,
    OSError,
)


class PriceOracleABC(ABC):
    """Base interface for anything that can quote a current stock price.

    The reward ledger and portfolio valuator depend only on get_price(); they
    never look at how a provider produces its numbers.
    """

    @abstractmethod
    def get_price(self, symbol: str) -> Decimal:
        """Return the current price for a normalized stock symbol.

        Args:
            symbol: Upper-case stock symbol (e.g. "TCS", "INFY").

        Returns:
            Price in INR, rounded to 2 decimal places.
        """

    def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    def __enter__(self) -> "PriceOracleABC":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
