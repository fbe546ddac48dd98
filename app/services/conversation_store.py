"""
Conversation store.

Persists one conversation document per user. Saves overwrite the full
message log rather than appending a delta, so concurrent writers resolve
as last-write-wins.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PersistenceError
from app.models.conversation import Conversation
from app.services.database import Database

logger = logging.getLogger("chatapp.conversations")


class ConversationStore:
    """Async CRUD for conversations keyed by user id."""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    async def _get(session: AsyncSession, user_id: str) -> Conversation | None:
        result = await session.execute(select(Conversation).where(Conversation.user_id == user_id))
        return result.scalar_one_or_none()

    async def find_by_user(self, user_id: str) -> Conversation | None:
        """
        Retrieve the conversation for a user.

        Returns:
            Conversation if one exists, None otherwise (not an error).
        """
        try:
            async with self.db.sessions()() as session:
                return await self._get(session, user_id)
        except SQLAlchemyError as e:
            logger.error("Database get error for user %s: %s", user_id, e)
            raise PersistenceError("Failed to load conversation") from e

    async def create_empty(self, user_id: str) -> Conversation:
        """
        Persist and return a new conversation with an empty log.

        The unique index on user_id rejects a second conversation for the
        same user; that surfaces as PersistenceError.
        """
        conversation = Conversation.empty(user_id)
        try:
            async with self.db.sessions()() as session:
                session.add(conversation)
                await session.commit()
                return conversation
        except SQLAlchemyError as e:
            logger.error("Database create error for user %s: %s", user_id, e)
            raise PersistenceError("Failed to create conversation") from e

    async def save(self, conversation: Conversation) -> Conversation:
        """
        Overwrite the stored message log and bump last_updated.

        Inserts the row if the conversation has never been persisted. If a
        concurrent writer inserted it first, the write is retried as an
        overwrite of that row.

        Returns:
            The caller's conversation, with persisted timestamps filled in.
        """
        try:
            try:
                stored = await self._write(conversation)
            except IntegrityError:
                logger.warning("Conversation for user %s created concurrently, overwriting", conversation.user_id)
                stored = await self._write(conversation)
        except SQLAlchemyError as e:
            logger.error("Database save error for user %s: %s", conversation.user_id, e)
            raise PersistenceError("Failed to save conversation") from e

        conversation.id = stored.id
        conversation.created_at = stored.created_at
        conversation.last_updated = stored.last_updated
        return conversation

    async def _write(self, conversation: Conversation) -> Conversation:
        now = datetime.now(UTC)
        messages = [dict(m) for m in conversation.messages or []]

        async with self.db.sessions()() as session:
            stored = await self._get(session, conversation.user_id)
            if stored is None:
                stored = Conversation(
                    user_id=conversation.user_id,
                    messages=messages,
                    created_at=now,
                    last_updated=now,
                )
                session.add(stored)
            else:
                stored.messages = messages
                stored.last_updated = now
            await session.commit()
            return stored

    async def list_for_user(self, user_id: str, limit: int = 20) -> list[Conversation]:
        """Return up to `limit` conversations for a user, newest first."""
        try:
            async with self.db.sessions()() as session:
                result = await session.execute(
                    select(Conversation)
                    .where(Conversation.user_id == user_id)
                    .order_by(Conversation.created_at.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database list error for user %s: %s", user_id, e)
            raise PersistenceError("Failed to list conversations") from e
