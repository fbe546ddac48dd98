"""
User directory: registration and name + id login.

Login is a plain lookup of the (name, user_id) pair. The generated id acts
as the only credential; there is no password or token.
"""

import logging
import secrets
import string
import time
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import settings
from app.core.errors import DuplicateUserError, NotFoundError, PersistenceError, ValidationError
from app.models.conversation import Conversation
from app.models.user import User
from app.services.conversation_store import ConversationStore
from app.services.database import Database

logger = logging.getLogger("chatapp.users")

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_user_id() -> str:
    """Millisecond timestamp plus 6 random chars, both base-36."""
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{timestamp}-{suffix}"


def normalize_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required and must be a non-empty string")
    name = name.strip()
    if len(name) > settings.MAX_NAME_LENGTH:
        raise ValidationError(f"Name exceeds maximum length of {settings.MAX_NAME_LENGTH} characters")
    return name


class UserDirectory:
    """Registers users and resolves logins together with recent conversations."""

    def __init__(self, db: Database, conversations: ConversationStore):
        self.db = db
        self.conversations = conversations

    async def register(self, name: Any) -> User:
        """
        Register a new user under a trimmed, unique name.

        Raises:
            ValidationError: If the name is missing or blank.
            DuplicateUserError: If the trimmed name is already taken.
            PersistenceError: If the database is unavailable.
        """
        name = normalize_name(name)
        logger.info("Registering user %s", name)

        try:
            async with self.db.sessions()() as session:
                existing = await session.execute(select(User).where(User.name == name))
                if existing.scalar_one_or_none() is not None:
                    raise DuplicateUserError()

                user = User(user_id=generate_user_id(), name=name)
                session.add(user)
                await session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration of the same name
            raise DuplicateUserError() from e
        except SQLAlchemyError as e:
            logger.error("Database error registering user %s: %s", name, e)
            raise PersistenceError("Failed to register user") from e

        logger.info("Registered user %s with id %s", user.name, user.user_id)
        return user

    async def get(self, name: str, user_id: str) -> User | None:
        try:
            async with self.db.sessions()() as session:
                result = await session.execute(select(User).where(User.name == name, User.user_id == user_id))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user %s: %s", user_id, e)
            raise PersistenceError("Failed to look up user") from e

    async def login(self, name: str, user_id: str) -> tuple[User, list[Conversation]]:
        """
        Look up a user by exact (name, user_id) and load recent conversations.

        Returns:
            Tuple of (user, conversations) with conversations newest first.

        Raises:
            NotFoundError: If no user matches the pair.
        """
        user = await self.get(name, user_id)
        if user is None:
            raise NotFoundError("User not found")

        conversations = await self.conversations.list_for_user(user.user_id, limit=settings.LOGIN_CONVERSATION_LIMIT)
        return user, conversations
