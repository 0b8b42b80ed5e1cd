"""
Go code formatting utilities.

Formats written test files in place with ``goimports`` (which also fixes the
import block of generated tests) and falls back to ``gofmt`` when goimports
is not installed or fails. Formatting problems never fail a generation run.
"""

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .subprocess_safe import (
    SubprocessExecutionError,
    SubprocessTimeoutError,
    run_subprocess_safe,
)

logger = logging.getLogger(__name__)

DEFAULT_FORMATTERS = ("goimports", "gofmt")


class FormatterDetector:
    """Detects available Go formatters on PATH, once per process."""

    _available: dict[str, bool] = {}

    @classmethod
    def is_available(cls, tool: str) -> bool:
        if tool not in cls._available:
            cls._available[tool] = shutil.which(tool) is not None
            logger.debug(
                "%s formatter %s",
                tool,
                "detected" if cls._available[tool] else "not available",
            )
        return cls._available[tool]

    @classmethod
    def reset(cls) -> None:
        cls._available = {}


class GoFormatter:
    """
    Formatter adapter running Go formatters on a file.

    Implements ``FormatterPort``. Tools are tried in order and the first one
    that succeeds wins.
    """

    def __init__(
        self,
        tools: Iterable[str] = DEFAULT_FORMATTERS,
        timeout: int = 30,
        enabled: bool = True,
    ) -> None:
        self.tools = tuple(tools)
        self.timeout = timeout
        self.enabled = enabled

    def format_file(self, file_path: str | Path) -> bool:
        """
        Format ``file_path`` in place.

        Returns:
            True if one of the configured tools formatted the file
        """
        if not self.enabled:
            return False

        for tool in self.tools:
            if not FormatterDetector.is_available(tool):
                continue
            try:
                with run_subprocess_safe([tool, "-w", str(file_path)], self.timeout):
                    pass
                logger.debug("Formatted %s with %s", file_path, tool)
                return True
            except (SubprocessTimeoutError, SubprocessExecutionError, OSError) as e:
                logger.warning("Failed to run %s for %s due to %s", tool, file_path, e)

        logger.warning("No Go formatter succeeded for %s", file_path)
        return False
