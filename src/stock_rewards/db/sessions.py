"""Database engine and session management.

Two named policies govern how services touch the store:

- WriteAtomic (Database.write_atomic): one commit-or-rollback unit of work;
  any failure rolls back everything and no partial state is visible.
- ReadBestEffort (read_best_effort): per-row/per-item failures in read paths
  are logged and the item is skipped instead of failing the whole response.
"""
import logging
from collections.abc import Callable, Generator, Iterable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import Engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from stock_rewards.db.models import (  # noqa: F401  # pylint: disable=unused-import
    LedgerEntry, RewardEvent, StockPrice, StockPriceHistory, User, UserHolding)
from stock_rewards.errors import (ConstraintViolationError, RewardsError,
                                  TransientStoreError)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Database:
    """Store-session abstraction injected into every service.

    Wraps one SQLAlchemy engine. Services never hold a module-level handle;
    they receive a Database at construction time (tests pass one bound to an
    in-memory SQLite engine).
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> "Database":
        """Create a Database from a SQLAlchemy URL."""
        if url.startswith("sqlite"):
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each session sees an empty database.
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, echo=echo, **kwargs)
        else:
            engine = create_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
            )
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_db(self) -> None:
        """Create all tables. Safe to call on startup (idempotent for existing tables)."""
        SQLModel.metadata.create_all(self._engine)

    def dispose(self) -> None:
        """Close pooled connections."""
        self._engine.dispose()

    @contextmanager
    def write_atomic(self) -> Generator[Session, None, None]:
        """Yield a session for one unit of work; commit on success, roll back on any error.

        Service errors (RewardsError) propagate unchanged. Store failures are
        wrapped: IntegrityError -> ConstraintViolationError, any other
        SQLAlchemyError -> TransientStoreError.
        """
        session = Session(self._engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConstraintViolationError(f"Constraint violated: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise TransientStoreError(f"Database error: {exc}") from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def read_session(self) -> Generator[Session, None, None]:
        """Yield a session for read-only queries; never commits."""
        session = Session(self._engine, expire_on_commit=False)
        try:
            yield session
        except SQLAlchemyError as exc:
            raise TransientStoreError(f"Database error: {exc}") from exc
        finally:
            # close() ends the transaction without expiring loaded rows.
            session.close()


def upsert_insert(session: Session, model: type[SQLModel]):
    """INSERT for the session's dialect that supports on_conflict_do_update().

    Upserts run as one statement so concurrent first writes for the same key
    merge instead of failing on the unique constraint.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert is not supported on {dialect}")


def read_best_effort(
    items: Iterable[T],
    func: Callable[[T], R],
    *,
    label: str,
) -> Iterator[tuple[T, R]]:
    """Apply func to each item, yielding (item, result); log and skip items that fail.

    Only service errors and driver-level store errors are skipped; ORM misuse
    and other programming errors propagate.
    """
    for item in items:
        try:
            result = func(item)
        except (RewardsError, DBAPIError, ArithmeticError) as exc:
            logger.warning("Skipping %s %r: %s", label, item, exc)
            continue
        yield item, result
