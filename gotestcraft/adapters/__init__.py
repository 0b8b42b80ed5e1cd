"""
Adapters for the gotestcraft system.

This module contains all adapter implementations that provide concrete
implementations of the port interfaces defined in the ports module.
"""

from . import io, llm, parsing

__all__ = [
    "io",
    "llm",
    "parsing",
]
