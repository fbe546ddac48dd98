"""
Application error taxonomy.

Services raise these instead of HTTPException so they stay usable outside a
request. The API layer maps each class to an HTTP status and a JSON body of
the form ``{"error": ..., "details": ...}``.
"""

from typing import Any


class ChatAppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    message: str = "Internal server error"
    # Whether `details` may be shown outside development
    expose_details: bool = False

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None and (self.expose_details or include_details):
            body["details"] = self.details
        return body


class ValidationError(ChatAppError):
    """Bad or missing input."""

    status_code = 400
    message = "Invalid request"
    expose_details = True


class DuplicateUserError(ChatAppError):
    status_code = 400
    message = "A user with this name already exists"


class NotFoundError(ChatAppError):
    status_code = 404
    message = "Not found"


class ProviderError(ChatAppError):
    """The completion provider call failed or returned nothing usable."""

    status_code = 500
    message = "Error processing the request"
    expose_details = True


class ConfigurationError(ChatAppError):
    """A required collaborator was never configured (e.g. missing API key)."""

    status_code = 500
    message = "Service not configured"
    expose_details = True


class PersistenceError(ChatAppError):
    """The database is unreachable or rejected an operation."""

    status_code = 500
    message = "Storage unavailable"
