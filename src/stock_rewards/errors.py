"""Typed errors raised by the reward ledger, price cache and portfolio valuator.

Routers translate these to HTTP via ServiceErrorMapper; services never raise
HTTPException themselves.
"""


class RewardsError(Exception):
    """Base class for all service-level errors."""

    default_detail = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(RewardsError):
    """Malformed identifier or out-of-range value in a request."""

    default_detail = "Invalid request"


class NotFoundError(RewardsError):
    """Referenced entity (e.g. user) does not exist or is soft-deleted."""

    default_detail = "Not found"


class ConflictError(RewardsError):
    """Duplicate reward event (reference id already used)."""

    default_detail = "duplicate reward event"


class TransientStoreError(RewardsError):
    """Database I/O failed during a read, write or commit."""

    default_detail = "Database unavailable"


class ConstraintViolationError(TransientStoreError):
    """The store rejected a write because of an integrity constraint."""

    default_detail = "Constraint violation"


class HistoryUnavailableError(RewardsError):
    """No historical price is stored for a symbol/day and fallback is disabled."""

    default_detail = "Historical price unavailable"


class LedgerImbalanceError(RewardsError):
    """Debits and credits of a ledger transaction do not match."""

    default_detail = "Ledger transaction is not balanced"


class PriceUnavailableError(RewardsError):
    """The price oracle could not quote a symbol."""

    default_detail = "Price unavailable"
