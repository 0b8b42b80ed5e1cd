from .completion_adapter import CompletionAdapter
from .openai_adapter import OpenAIAdapter
from .router import LLMRouter

__all__ = [
    "CompletionAdapter",
    "OpenAIAdapter",
    "LLMRouter",
]
