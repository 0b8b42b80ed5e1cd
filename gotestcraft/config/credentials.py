"""Secure credential management for gotestcraft LLM providers."""

import logging
import os
from typing import Any

from pydantic import BaseModel, Field, SecretStr

logger = logging.getLogger(__name__)


class LLMCredentials(BaseModel):
    """Secure credential storage for LLM providers."""

    # OpenAI compatible chat completions
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)

    # Plain JSON completion endpoint
    completion_token: SecretStr | None = Field(default=None)

    def get_openai_api_key(self) -> str | None:
        """Get OpenAI API key as plain string."""
        return self.openai_api_key.get_secret_value() if self.openai_api_key else None

    def get_completion_token(self) -> str | None:
        """Get completion endpoint bearer token as plain string."""
        return (
            self.completion_token.get_secret_value() if self.completion_token else None
        )

    def has_openai_credentials(self) -> bool:
        return self.get_openai_api_key() is not None

    def get_available_providers(self) -> list[str]:
        """Get list of providers with usable credentials."""
        providers = []
        if self.has_openai_credentials():
            providers.append("openai")
        # The completion endpoint may be unauthenticated.
        providers.append("completion")
        return providers


class CredentialError(Exception):
    """Raised when credential loading or validation fails."""

    pass


class CredentialManager:
    """Manages secure loading of LLM provider credentials."""

    ENV_MAPPINGS = {
        "openai_api_key": ["OPENAI_API_KEY"],
        "openai_base_url": ["OPENAI_BASE_URL"],
        "completion_token": ["GOTESTCRAFT_COMPLETION_TOKEN"],
    }

    SECRET_FIELDS = frozenset({"openai_api_key", "completion_token"})

    def __init__(self, config_overrides: dict[str, Any] | None = None) -> None:
        """Initialize credential manager.

        Args:
            config_overrides: Optional values from the config file; environment
                variables take precedence over them
        """
        self.config_overrides = config_overrides or {}
        self._credentials_cache: LLMCredentials | None = None

    def load_credentials(self, reload: bool = False) -> LLMCredentials:
        """Load credentials from environment variables and configuration.

        Raises:
            CredentialError: If credential loading fails
        """
        if self._credentials_cache is not None and not reload:
            return self._credentials_cache

        credential_data: dict[str, Any] = {}
        for field_name, env_vars in self.ENV_MAPPINGS.items():
            value = self._load_from_env(env_vars)
            if value is None:
                override = self.config_overrides.get(field_name)
                if override and str(override).strip():
                    value = str(override).strip()
            if value is None:
                continue
            credential_data[field_name] = (
                SecretStr(value) if field_name in self.SECRET_FIELDS else value
            )

        try:
            self._credentials_cache = LLMCredentials(**credential_data)
        except ValueError as e:
            raise CredentialError(f"Failed to load credentials: {e}") from e

        logger.debug(
            "Loaded credentials for LLM providers: %s",
            ", ".join(self._credentials_cache.get_available_providers()),
        )
        return self._credentials_cache

    def _load_from_env(self, env_vars: list[str]) -> str | None:
        for env_var in env_vars:
            value = os.getenv(env_var)
            if value and value.strip():
                return value.strip()
        return None

    def get_provider_credentials(self, provider: str) -> dict[str, Any]:
        """Get credentials and settings for a specific provider.

        Raises:
            CredentialError: If provider is unknown or credentials are missing
        """
        credentials = self.load_credentials()

        if provider == "openai":
            if not credentials.has_openai_credentials():
                raise CredentialError(
                    "OpenAI credentials not found. Set OPENAI_API_KEY environment variable."
                )
            return {
                "api_key": credentials.get_openai_api_key(),
                "base_url": credentials.openai_base_url,
            }

        if provider == "completion":
            return {"token": credentials.get_completion_token()}

        raise CredentialError(f"Unknown provider: {provider}")
