"""Unified error type for LLM provider failures.

This module defines `LLMError`, a provider-agnostic exception that all
LLM adapters raise at their public boundary. It preserves the original
provider exception via exception chaining (``from e``) and carries the
context needed to report a failed generation for one source file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass
class LLMError(Exception):
    """Provider-agnostic LLM error with normalized context.

    Attributes:
        message: Human-friendly error summary.
        provider: Provider key (e.g., "openai", "completion").
        model: The model identifier used for the request.
        status_code: Optional HTTP status code if available.
        metadata: Additional structured details (request ids, endpoint, etc.).
    """

    message: str
    provider: str | None = None
    model: str | None = None
    status_code: int | None = None
    metadata: Mapping[str, Any] | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts: list[str] = []
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        ctx = " ".join(parts)
        if ctx:
            return f"LLMError({ctx}): {self.message}"
        return f"LLMError: {self.message}"
