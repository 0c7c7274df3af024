"""Domain concept for mapping service exceptions to HTTP responses."""
from dataclasses import dataclass

from fastapi import HTTPException

from stock_rewards.errors import (ConflictError, HistoryUnavailableError,
                                  NotFoundError, PriceUnavailableError,
                                  RewardsError, TransientStoreError,
                                  ValidationError)


@dataclass(frozen=True)
class ServiceErrorMapper:
    """Maps service exceptions to HTTP (status_code, detail).

    Inject this into routers so every endpoint reports the same status for
    the same error kind.
    """

    resource_name: str = "Resource"

    def to_http(self, exc: Exception) -> tuple[int, str]:
        """Map a service exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by the service.

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, ValidationError):
            return (400, exc.detail)
        if isinstance(exc, NotFoundError):
            return (404, exc.detail)
        if isinstance(exc, ConflictError):
            return (409, exc.detail)
        if isinstance(exc, HistoryUnavailableError):
            return (404, exc.detail)
        if isinstance(exc, TransientStoreError):
            return (503, f"{self.resource_name} temporarily unavailable")
        if isinstance(exc, PriceUnavailableError):
            return (503, exc.detail)
        if isinstance(exc, RewardsError):
            return (500, exc.detail)
        return (500, "Internal server error")

    def raise_http(self, exc: Exception) -> None:
        """Map service exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc)
        raise HTTPException(status_code=status_code, detail=detail) from exc
