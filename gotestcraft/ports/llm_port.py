"""LLM port: the synchronous text-generation boundary."""

from abc import abstractmethod
from typing import Protocol


class LLMPort(Protocol):
    """Port interface for AI test generation."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Return the raw response text for a prompt.

        Raises:
            LLMError: If the provider call fails
        """
        ...
