"""LLM completion client.

Talks to any OpenAI-compatible ``/chat/completions`` endpoint and asks for
JSON-object responses. Failures are raised as ``LLMError``; nothing is
retried.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from callmate.config import LLMSettings, get_settings
from callmate.core.exceptions import LLMError
from callmate.core.log import get_logger
from callmate.integrations.base import upstream_error_text

log = get_logger(__name__)


class LLMClient:
    """Chat completion client returning parsed JSON objects.

    Attributes:
        model: Model name sent with every request
        temperature: Sampling temperature
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token for the completion API
            base_url: API root (``.../v1``)
            model: Model name
            temperature: Sampling temperature
            timeout: HTTP request timeout in seconds
            client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self.model = model
        self.temperature = temperature
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: LLMSettings | None = None) -> "LLMClient":
        settings = settings or get_settings().llm
        return cls(
            settings.api_key,
            base_url=settings.base_url,
            model=settings.model,
            temperature=settings.temperature,
            timeout=settings.timeout_seconds,
        )

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
    ) -> dict[str, Any]:
        """Run one chat completion and parse the reply as a JSON object.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The user turn

        Returns:
            Parsed JSON object from the first choice

        Raises:
            LLMError: On transport errors, non-2xx responses or non-JSON content
        """
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        try:
            response = await self._client.post("/chat/completions", json=payload)
        except httpx.TimeoutException as e:
            log.error("LLM timeout", model=self.model)
            raise LLMError("Request timeout", cause=e)
        except httpx.HTTPError as e:
            log.error("LLM HTTP error", error=str(e), model=self.model)
            raise LLMError(str(e), cause=e)

        if response.status_code >= 400:
            message = upstream_error_text(response)
            log.error("LLM request rejected", status_code=response.status_code, error=message)
            raise LLMError(message, status=response.status_code)

        try:
            content = response.json()["choices"][0]["message"]["content"]
            parsed = json.loads(content)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            log.error("LLM returned unusable content", error=str(e))
            raise LLMError("Response was not a JSON object", cause=e)

        if not isinstance(parsed, dict):
            raise LLMError("Response was not a JSON object")

        log.debug("LLM completion", model=self.model, keys=sorted(parsed))
        return parsed

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

