"""
FastAPI dependencies resolving the services built during application startup.

Services live on ``app.state`` so tests can swap them through
``app.dependency_overrides``.
"""

from fastapi import Request

from app.core.errors import ConfigurationError
from app.services.conversation_service import ConversationService
from app.services.user_directory import UserDirectory


def _state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise ConfigurationError(f"{name} not initialized")
    return service


def get_user_directory(request: Request) -> UserDirectory:
    return _state(request, "user_directory")


def get_conversation_service(request: Request) -> ConversationService:
    return _state(request, "conversation_service")
