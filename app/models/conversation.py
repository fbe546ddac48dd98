"""
SQLAlchemy models for conversation persistence.

Each user owns at most one conversation. The whole message log is stored as
a single JSON document and rewritten on every save (last writer wins).
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MESSAGE_ROLES = ("user", "assistant")


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models with async support."""

    pass


class Conversation(Base):
    """
    Ordered message log for a single user.

    Attributes:
        id: Surrogate primary key (UUID)
        user_id: Owning user's id, unique (one conversation per user)
        messages: JSON array of {"role", "content"} entries in conversation order
        created_at: Timestamp when the conversation was first persisted
        last_updated: Timestamp of the most recent save
    """

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    messages: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        default=list,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    @classmethod
    def empty(cls, user_id: str) -> "Conversation":
        """Build an unsaved conversation with an empty log."""
        return cls(user_id=user_id, messages=[])

    def append(self, role: str, content: str) -> None:
        """Append a message, reassigning the list so the ORM sees the change."""
        if role not in MESSAGE_ROLES:
            raise ValueError(f"Invalid message role: {role}")
        self.messages = [*(self.messages or []), {"role": role, "content": content}]

    def __repr__(self) -> str:
        return f"<Conversation(user_id={self.user_id}, messages={len(self.messages or [])})>"
