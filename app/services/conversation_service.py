"""
Conversation service: the chat exchange flow.

One exchange loads (or starts) the user's conversation, appends the user's
message, replays the whole log to the completion gateway, appends the reply
and saves the full document. Nothing is written unless the provider call
succeeds.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.models.conversation import Conversation
from app.services.completion_gateway import CompletionGateway
from app.services.conversation_store import ConversationStore

logger = logging.getLogger("chatapp.conversation")


@dataclass
class ExchangeResult:
    reply: str
    messages: list[dict[str, Any]]


class UserLocks:
    """Per-user asyncio locks, discarded once nobody holds or waits on them."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._users[user_id] = self._users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if not self._users[user_id]:
                del self._users[user_id]
                del self._locks[user_id]


class ConversationService:
    """
    Orchestrates chat exchanges against the store and the completion gateway.

    When `serialize` is on, exchanges for the same user run one at a time
    within this process. Across processes the store stays last-write-wins.
    """

    def __init__(
        self,
        store: ConversationStore,
        gateway: CompletionGateway,
        serialize: bool | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.serialize = settings.SERIALIZE_USER_EXCHANGES if serialize is None else serialize
        self._locks = UserLocks()

    @staticmethod
    def _validate(user_id: Any, user_message: Any) -> None:
        if not isinstance(user_id, str) or not user_id:
            raise ValidationError("Message and userId are required")
        if not isinstance(user_message, str) or not user_message:
            raise ValidationError("Message and userId are required")

    async def exchange(self, user_id: str, user_message: str) -> ExchangeResult:
        """
        Run one user -> assistant round trip and persist it.

        Returns:
            ExchangeResult with the reply and the full updated log.

        Raises:
            ValidationError: If user_id or user_message is missing or empty.
            ProviderError: If the completion call fails (nothing persisted).
            ConfigurationError: If no provider is configured (nothing persisted).
            PersistenceError: If the store is unavailable.
        """
        self._validate(user_id, user_message)

        if not self.serialize:
            return await self._exchange(user_id, user_message)

        async with self._locks.hold(user_id):
            return await self._exchange(user_id, user_message)

    async def _exchange(self, user_id: str, user_message: str) -> ExchangeResult:
        conversation = await self.store.find_by_user(user_id)
        if conversation is None:
            logger.info("Starting new conversation for user %s", user_id)
            conversation = Conversation.empty(user_id)

        conversation.append("user", user_message)

        # The full history is replayed every turn; no truncation
        reply = await self.gateway.complete(conversation.messages)

        conversation.append("assistant", reply)
        await self.store.save(conversation)

        logger.info("Exchange saved for user %s (%d messages)", user_id, len(conversation.messages))
        return ExchangeResult(reply=reply, messages=list(conversation.messages))

    async def get_history(self, user_id: str) -> list[dict[str, Any]]:
        """
        Return the stored message log for a user.

        Raises:
            NotFoundError: If the user has no conversation.
        """
        conversation = await self.store.find_by_user(user_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return list(conversation.messages)
