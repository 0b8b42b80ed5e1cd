"""Configuration management for gotestcraft."""

from .credentials import CredentialError, CredentialManager, LLMCredentials
from .loader import ConfigLoader, ConfigurationError
from .models import GoTestCraftConfig, LLMProviderConfig

__all__ = [
    "GoTestCraftConfig",
    "LLMProviderConfig",
    "ConfigLoader",
    "ConfigurationError",
    "CredentialManager",
    "LLMCredentials",
    "CredentialError",
]
