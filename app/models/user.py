"""
SQLAlchemy model for registered chat users.

A user is identified by a unique display name plus a generated id that the
client presents again at login.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.conversation import Base


class User(Base):
    """
    Registered user.

    Attributes:
        user_id: Opaque generated identifier (primary key)
        name: Trimmed display name, unique across all users
        created_at: Registration timestamp
    """

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, name={self.name})>"
