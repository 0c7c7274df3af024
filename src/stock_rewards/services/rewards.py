"""Reward ledger writer.

CreateReward records a reward as one unit of work: the reward event, four
balanced ledger legs and the holdings delta are committed together or not at
all. Idempotency rests on the partial unique index on reward_events.reference_id;
the pre-insert lookup only short-circuits the common duplicate case.
"""
import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal

from sqlmodel import Session, col, select

from stock_rewards.db import (Database, RewardEvent, RewardStatus, User,
                              UserHolding, upsert_insert)
from stock_rewards.errors import (ConflictError, ConstraintViolationError,
                                  NotFoundError, TransientStoreError,
                                  ValidationError)
from stock_rewards.providers import normalize_stock_symbol
from stock_rewards.schemas import RewardRequest
from stock_rewards.services.fees import FeeSchedule
from stock_rewards.services.ledger import build_reward_entries, ensure_balanced
from stock_rewards.services.money import ZERO, q_quantity, to_decimal
from stock_rewards.services.price_cache import PriceCache
from stock_rewards.utils import day_bounds, to_utc_naive, utcnow

logger = logging.getLogger(__name__)


def parse_user_id(user_id: uuid.UUID | str) -> uuid.UUID:
    """Parse a user id; raises ValidationError if malformed."""
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except (ValueError, AttributeError, TypeError) as exc:
        raise ValidationError(f"invalid user_id: {user_id!r}") from exc


def user_exists(session: Session, user_id: uuid.UUID) -> bool:
    """True when the user is present and not soft-deleted."""
    found = session.exec(
        select(User.id).where(User.id == user_id, col(User.deleted_at).is_(None))
    ).first()
    return found is not None


def reference_taken(session: Session, reference_id: str) -> bool:
    """True when a live reward event already uses reference_id."""
    found = session.exec(
        select(RewardEvent.id).where(
            RewardEvent.reference_id == reference_id,
            col(RewardEvent.deleted_at).is_(None),
        )
    ).first()
    return found is not None


class RewardService:
    """Issues stock rewards and lists today's rewards."""

    def __init__(
        self,
        database: Database,
        price_cache: PriceCache,
        *,
        fee_schedule: FeeSchedule | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db = database
        self._prices = price_cache
        self._fees = fee_schedule or FeeSchedule()
        self._clock = clock

    def _validate(self, request: RewardRequest) -> tuple[uuid.UUID, str, Decimal, datetime]:
        user_id = parse_user_id(request.user_id)
        symbol = normalize_stock_symbol(request.stock_symbol or "")
        if not symbol:
            raise ValidationError("stock_symbol is required")
        if not request.reference_id or not request.reference_id.strip():
            raise ValidationError("reference_id is required")
        if not request.event_type or not request.event_type.strip():
            raise ValidationError("event_type is required")
        try:
            quantity = q_quantity(to_decimal(request.quantity))
        except (ValueError, ArithmeticError) as exc:
            raise ValidationError(f"invalid quantity: {request.quantity!r}") from exc
        if not quantity.is_finite() or quantity <= ZERO:
            raise ValidationError("quantity must be greater than 0")
        return user_id, symbol, quantity, to_utc_naive(request.reward_timestamp)

    def create_reward(self, request: RewardRequest) -> RewardEvent:
        """Record a reward event with its ledger legs and holdings delta.

        Raises:
            ValidationError: malformed user id or field.
            NotFoundError: user missing or soft-deleted.
            ConflictError: reference id already used by a live event.
            TransientStoreError: the unit of work failed and was rolled back.
        """
        user_id, symbol, quantity, reward_ts = self._validate(request)
        reference_id = request.reference_id.strip()
        reward_id = uuid.uuid4()
        transaction_id = uuid.uuid4()

        try:
            with self._db.write_atomic() as session:
                if not user_exists(session, user_id):
                    raise NotFoundError("user not found")
                if reference_taken(session, reference_id):
                    raise ConflictError("duplicate reward event")

                price = self._prices.resolve_price(symbol, session=session)
                fees = self._fees.compute(price, quantity)

                session.add(
                    RewardEvent(
                        id=reward_id,
                        user_id=user_id,
                        stock_symbol=symbol,
                        quantity=quantity,
                        reward_timestamp=reward_ts,
                        event_type=request.event_type.strip(),
                        reference_id=reference_id,
                        status=RewardStatus.ACTIVE.value,
                    )
                )
                # A duplicate reference id that slipped past the lookup fails here.
                session.flush()

                entries = build_reward_entries(
                    transaction_id, symbol, quantity, fees, reference_id
                )
                ensure_balanced(entries)
                session.add_all(entries)
                self._add_to_holding(session, user_id, symbol, quantity)
        except ConstraintViolationError as exc:
            with self._db.read_session() as session:
                if reference_taken(session, reference_id):
                    raise ConflictError("duplicate reward event") from exc
            raise

        reward = self._get_reward(reward_id)
        logger.info(
            "Reward created user_id=%s stock_symbol=%s quantity=%s reference_id=%s price=%s fees=%s",
            user_id,
            symbol,
            quantity,
            reference_id,
            price,
            fees.total_fees,
        )
        return reward

    def _add_to_holding(
        self, session: Session, user_id: uuid.UUID, symbol: str, quantity: Decimal
    ) -> None:
        """Add quantity to the (user, symbol) holding in one upsert statement."""
        now = utcnow()
        stmt = upsert_insert(session, UserHolding).values(
            id=uuid.uuid4(),
            user_id=user_id,
            stock_symbol=symbol,
            quantity=quantity,
            last_updated=now,
            created_at=now,
            updated_at=now,
        )
        session.exec(
            stmt.on_conflict_do_update(
                index_elements=["user_id", "stock_symbol"],
                set_={
                    "quantity": UserHolding.quantity + stmt.excluded.quantity,
                    "last_updated": stmt.excluded.last_updated,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
        )

    def _get_reward(self, reward_id: uuid.UUID) -> RewardEvent:
        with self._db.read_session() as session:
            reward = session.get(RewardEvent, reward_id)
        if reward is None:
            raise TransientStoreError(f"reward {reward_id} missing after commit")
        return reward

    def get_today_rewards(
        self, user_id: uuid.UUID | str, *, today: date | None = None
    ) -> list[RewardEvent]:
        """Live reward events with reward_timestamp in the current UTC day, newest first."""
        uid = parse_user_id(user_id)
        start, end = day_bounds(today or self._clock().date())
        with self._db.read_session() as session:
            return list(
                session.exec(
                    select(RewardEvent)
                    .where(
                        RewardEvent.user_id == uid,
                        col(RewardEvent.reward_timestamp) >= start,
                        col(RewardEvent.reward_timestamp) < end,
                        col(RewardEvent.deleted_at).is_(None),
                    )
                    .order_by(col(RewardEvent.reward_timestamp).desc())
                ).all()
            )
