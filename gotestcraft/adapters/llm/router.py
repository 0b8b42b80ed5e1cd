"""
Provider router for LLM adapters.

Picks the adapter named by ``llm.default_provider`` and builds it lazily.
"""

from __future__ import annotations

import logging
from typing import Callable

from ...config.credentials import CredentialManager
from ...config.models import LLMProviderConfig
from ...ports.llm_error import LLMError
from ...ports.llm_port import LLMPort
from .completion_adapter import CompletionAdapter
from .openai_adapter import OpenAIAdapter

logger = logging.getLogger(__name__)


class LLMRouter:
    """
    Routes generation requests to the configured provider adapter.

    Adapters are built on first use so that commands which never call the
    model do not need credentials.
    """

    def __init__(
        self,
        factories: dict[str, Callable[[], LLMPort]],
        default_provider: str,
    ) -> None:
        if default_provider not in factories:
            raise LLMError(f"Unknown LLM provider: {default_provider}")
        self._factories = factories
        self.default_provider = default_provider
        self._adapter: LLMPort | None = None

    @classmethod
    def from_config(
        cls,
        config: LLMProviderConfig,
        credential_manager: CredentialManager | None = None,
    ) -> LLMRouter:
        credential_manager = credential_manager or CredentialManager(
            {
                "openai_api_key": config.openai_api_key,
                "openai_base_url": config.openai_base_url,
            }
        )

        def build_openai() -> LLMPort:
            return OpenAIAdapter(
                model=config.openai_model,
                max_tokens=config.openai_max_tokens,
                temperature=config.temperature,
                timeout=config.openai_timeout,
                max_retries=config.max_retries,
                base_url=config.openai_base_url,
                credential_manager=credential_manager,
            )

        def build_completion() -> LLMPort:
            if not config.completion_url:
                raise LLMError(
                    "llm.completion_url must be set for the completion provider",
                    provider="completion",
                )
            token = credential_manager.get_provider_credentials("completion")["token"]
            return CompletionAdapter(
                url=config.completion_url,
                token=token,
                timeout=config.completion_timeout,
            )

        return cls(
            {"openai": build_openai, "completion": build_completion},
            config.default_provider,
        )

    def _get_adapter(self) -> LLMPort:
        if self._adapter is None:
            self._adapter = self._factories[self.default_provider]()
        return self._adapter

    def close(self) -> None:
        """Release the adapter built so far, if it holds resources."""
        close = getattr(self._adapter, "close", None)
        if close is not None:
            close()
        self._adapter = None

    def generate(self, prompt: str) -> str:
        """Send ``prompt`` to the default provider; prompt and reply are logged at DEBUG."""
        logger.debug("Prompt sent to %s:\n%s", self.default_provider, prompt)
        response = self._get_adapter().generate(prompt)
        logger.debug("Response from %s:\n%s", self.default_provider, response)
        return response
