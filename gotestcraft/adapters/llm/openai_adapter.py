"""OpenAI chat completions adapter."""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import OpenAI

from ...config.credentials import CredentialError, CredentialManager
from ...ports.llm_error import LLMError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert Go engineer writing unit tests. "
    "Reply with a single ```go fenced code block."
)


class OpenAIAdapter:
    """
    LLM adapter for OpenAI compatible chat completion APIs.

    Implements ``LLMPort``. Retries are left to the SDK's own ``max_retries``.
    """

    provider = "openai"

    def __init__(
        self,
        model: str = "gpt-4.1",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        timeout: float = 60.0,
        max_retries: int = 3,
        base_url: str | None = None,
        credential_manager: CredentialManager | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            model: Model name
            max_tokens: Completion token limit
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            max_retries: Retry attempts performed by the SDK
            base_url: Custom API base URL (optional)
            credential_manager: Source of the API key
            client: Pre-built client, mainly for tests

        Raises:
            LLMError: If no API key is available
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        self._owns_client = client is None
        if client is not None:
            self._client = client
            return

        credential_manager = credential_manager or CredentialManager()
        try:
            credentials = credential_manager.get_provider_credentials("openai")
        except CredentialError as e:
            raise LLMError(str(e), provider=self.provider, model=model) from e

        client_kwargs: dict[str, Any] = {
            "api_key": credentials["api_key"],
            "timeout": timeout,
            "max_retries": max_retries,
        }
        if base_url or credentials.get("base_url"):
            client_kwargs["base_url"] = base_url or credentials["base_url"]

        self._client = OpenAI(**client_kwargs)
        logger.debug("OpenAI client initialized with model: %s", self.model)

    def close(self) -> None:
        """Close the SDK client when this adapter created it."""
        if self._owns_client:
            self._client.close()

    def generate(self, prompt: str) -> str:
        """Send ``prompt`` as a user message and return the reply text."""
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIError as e:
            raise LLMError(
                f"OpenAI API error: {e}",
                provider=self.provider,
                model=self.model,
                status_code=getattr(e, "status_code", None),
            ) from e

        if not response.choices:
            raise LLMError(
                "OpenAI returned no choices", provider=self.provider, model=self.model
            )
        content = response.choices[0].message.content
        if not content:
            raise LLMError(
                "OpenAI returned an empty message",
                provider=self.provider,
                model=self.model,
                metadata={"finish_reason": response.choices[0].finish_reason},
            )
        return content
