"""Database models for users and their conversation history."""

from app.models.conversation import Base, Conversation
from app.models.user import User

__all__ = ["Base", "Conversation", "User"]
