"""
Completion gateway over the OpenAI chat-completions API.

Turns a full message log into a single assistant reply. The gateway is built
once at startup and injected into the conversation service; without an API
key it stays unconfigured and refuses every call.
"""

import enum
import logging
from typing import Any

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.errors import ConfigurationError, ProviderError

logger = logging.getLogger("chatapp.completion")


class GatewayStatus(enum.Enum):
    CONFIGURED = "configured"
    NOT_CONFIGURED = "not_configured"


class CompletionGateway:
    """
    Stateless wrapper around a chat-completion client.

    No retries happen here: one failed call fails the whole exchange.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.client = client
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout or settings.OPENAI_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls) -> "CompletionGateway":
        """Build the gateway from environment configuration."""
        if not settings.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not configured - chat completion disabled")
            return cls(client=None)

        client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        logger.info("OpenAI client configured (model=%s)", settings.OPENAI_MODEL)
        return cls(client=client)

    @property
    def status(self) -> GatewayStatus:
        return GatewayStatus.CONFIGURED if self.client is not None else GatewayStatus.NOT_CONFIGURED

    @property
    def is_configured(self) -> bool:
        return self.status is GatewayStatus.CONFIGURED

    async def complete(self, messages: list[dict[str, Any]]) -> str:
        """
        Send the conversation to the provider and return the reply text.

        Args:
            messages: Full ordered list of {"role", "content"} entries.

        Raises:
            ConfigurationError: If no provider client is configured.
            ProviderError: If the call fails, times out, or returns no content.
        """
        if self.client is None:
            raise ConfigurationError(details="OpenAI API key not configured")

        payload = [{"role": m["role"], "content": m["content"]} for m in messages]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=payload,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error("OpenAI API Error: %s", e)
            raise ProviderError(details=str(e)) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            logger.error("Malformed completion response: %s", e)
            raise ProviderError(details="Malformed completion response") from e

        if not isinstance(content, str) or not content.strip():
            logger.error("Completion response contained no content")
            raise ProviderError(details="Empty completion response")

        return content
