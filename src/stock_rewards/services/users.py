"""User directory: registration and existence checks for reward issuance."""
import logging
import uuid

from sqlmodel import col, select

from stock_rewards.db import Database, User
from stock_rewards.errors import (ConflictError, ConstraintViolationError,
                                  NotFoundError, ValidationError)
from stock_rewards.services.rewards import parse_user_id, user_exists

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, database: Database) -> None:
        self._db = database

    def create_user(self, email: str) -> User:
        """Register a user by email. Raises ConflictError if the email is taken."""
        email = (email or "").strip().lower()
        if "@" not in email:
            raise ValidationError(f"invalid email: {email!r}")
        user = User(email=email)
        try:
            with self._db.write_atomic() as session:
                session.add(user)
        except ConstraintViolationError as exc:
            raise ConflictError(f"user {email} already exists") from exc
        logger.info("User created id=%s email=%s", user.id, email)
        return user

    def get_user(self, user_id: uuid.UUID | str) -> User:
        uid = parse_user_id(user_id)
        with self._db.read_session() as session:
            user = session.exec(
                select(User).where(User.id == uid, col(User.deleted_at).is_(None))
            ).first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def user_exists(self, user_id: uuid.UUID | str) -> bool:
        """Soft-delete aware existence check."""
        with self._db.read_session() as session:
            return user_exists(session, parse_user_id(user_id))
