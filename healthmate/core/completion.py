"""Client for the OpenAI-compatible chat-completion API."""

from typing import Any

import httpx
import structlog

from healthmate.config import settings

logger = structlog.get_logger(__name__)

EMPTY_RESPONSE_FALLBACK = "Sorry, I couldn't process your request."
CONNECTION_FALLBACK = "I'm having trouble connecting right now. Please try again later."


class CompletionClient:
    """
    Stateless "send messages, get text back" wrapper.

    Every failure (transport error, non-2xx status, malformed body) is logged
    and replaced with a fixed fallback string; callers never see an exception.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self.api_url = api_url or settings.completion_api_url
        self.api_key = api_key if api_key is not None else settings.completion_api_key
        self.model = model or settings.completion_model
        self.temperature = (
            temperature if temperature is not None else settings.completion_temperature
        )
        self.max_tokens = max_tokens or settings.completion_max_tokens
        self.timeout = timeout or settings.completion_timeout_seconds
        self._transport = transport

    def _payload(self, messages: list[dict[str, str]], model: str | None) -> dict[str, Any]:
        return {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def complete(self, messages: list[dict[str, str]], model: str | None = None) -> str:
        """
        Send ``messages`` and return the generated text.

        Args:
            messages: ``[{"role": ..., "content": ...}]`` in conversation order
            model: Optional model override

        Returns:
            The first choice's content, or a fallback string
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json=self._payload(messages, model),
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("completion_request_failed", error=str(e), url=self.api_url)
            return CONNECTION_FALLBACK

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content:
            logger.warning("completion_empty_response", model=model or self.model)
            return EMPTY_RESPONSE_FALLBACK

        return str(content)


def get_completion_client() -> CompletionClient:
    """Dependency returning a client built from settings."""
    return CompletionClient()
