"""
Ports (interfaces) used by the gotestcraft application layer.

Adapters implement these protocols; services only depend on them.
"""

from .formatter_port import FormatterPort
from .llm_error import LLMError
from .llm_port import LLMPort
from .parser_port import ParserPort
from .writer_port import WriterPort

__all__ = ["FormatterPort", "LLMError", "LLMPort", "ParserPort", "WriterPort"]
