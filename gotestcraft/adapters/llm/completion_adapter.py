"""
Adapter for plain JSON completion endpoints.

The endpoint receives ``{"prompt": "..."}`` and answers with
``{"completion": "..."}``. Uses the same ``httpx`` client library the OpenAI
SDK is built on.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...ports.llm_error import LLMError

logger = logging.getLogger(__name__)


class CompletionAdapter:
    """LLM adapter for a JSON completion endpoint; implements ``LLMPort``."""

    provider = "completion"

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.token = token
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def __enter__(self) -> CompletionAdapter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client when this adapter created it."""
        if self._owns_client and not self._client.is_closed:
            self._client.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def generate(self, prompt: str) -> str:
        """
        POST the prompt and return the completion text.

        Raises:
            LLMError: On transport errors, error statuses or malformed replies
        """
        try:
            response = self._client.post(
                self.url,
                json={"prompt": prompt},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"Completion endpoint returned an error: {e}",
                provider=self.provider,
                status_code=e.response.status_code,
                metadata={"endpoint": self.url},
            ) from e
        except httpx.HTTPError as e:
            raise LLMError(
                f"Completion request failed: {e}",
                provider=self.provider,
                metadata={"endpoint": self.url},
            ) from e
        except ValueError as e:
            raise LLMError(
                f"Completion endpoint returned invalid JSON: {e}",
                provider=self.provider,
                metadata={"endpoint": self.url},
            ) from e

        completion = payload.get("completion") if isinstance(payload, dict) else None
        if not isinstance(completion, str):
            raise LLMError(
                "Completion endpoint response has no completion text",
                provider=self.provider,
                metadata={"endpoint": self.url},
            )
        logger.debug("Completion endpoint answered with %d characters", len(completion))
        return completion
