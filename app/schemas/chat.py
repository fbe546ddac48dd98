"""
Pydantic schemas for the chat API.

Field names are snake_case in Python and camelCase on the wire
(`userId`, `lastUpdated`). Request fields are optional at the schema level
so that missing values reach the services and come back as 400s with the
application's error body.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ChatMessage(CamelModel):
    """A single entry in a conversation log."""

    role: Literal["user", "assistant"]
    content: str


# =============================================================================
# Registration / Login
# =============================================================================


class RegisterRequest(CamelModel):
    name: str | None = None


class RegisterResponse(CamelModel):
    message: str = "Registration successful!"
    user_id: str
    name: str


class LoginRequest(CamelModel):
    name: str | None = None
    user_id: str | None = None


class UserInfo(CamelModel):
    user_id: str
    name: str
    created_at: datetime | None = None


class ConversationInfo(CamelModel):
    user_id: str
    messages: list[ChatMessage]
    created_at: datetime | None = None
    last_updated: datetime | None = None


class LoginResponse(CamelModel):
    user: UserInfo
    conversations: list[ConversationInfo]
    message: str = "Conversation retrieved successfully!"


# =============================================================================
# Chat
# =============================================================================


class ChatRequest(CamelModel):
    """A new user message for the caller's conversation."""

    message: str | None = None
    user_id: str | None = None


class ChatResponse(CamelModel):
    response: str
    conversation: list[ChatMessage]


class HistoryResponse(CamelModel):
    conversation: list[ChatMessage]


# =============================================================================
# Service status
# =============================================================================


class StatusBanner(CamelModel):
    message: str
    status: str


class HealthResponse(CamelModel):
    status: Literal["ok"] = "ok"
    timestamp: datetime
