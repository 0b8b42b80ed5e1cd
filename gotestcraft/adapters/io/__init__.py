"""
IO adapters for file operations.

This module provides adapters for discovering Go sources, writing and
formatting test files, running subprocesses and configuring logging.
"""

from .file_discovery import (
    FileDiscoveryError,
    FileDiscoveryService,
    companion_test_path,
)
from .go_formatters import FormatterDetector, GoFormatter
from .logging_setup import GOTESTCRAFT_THEME, LoggerManager, resolve_log_level
from .writer_go import GoTestWriter, WriterError
from . import subprocess_safe

__all__ = [
    "FileDiscoveryService",
    "FileDiscoveryError",
    "companion_test_path",
    "FormatterDetector",
    "GoFormatter",
    "GOTESTCRAFT_THEME",
    "LoggerManager",
    "resolve_log_level",
    "GoTestWriter",
    "WriterError",
    "subprocess_safe",
]
