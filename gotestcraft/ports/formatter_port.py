"""Formatter port: post-write source formatting and import cleanup."""

from abc import abstractmethod
from pathlib import Path
from typing import Protocol


class FormatterPort(Protocol):
    """Port interface for formatting a written Go file in place."""

    @abstractmethod
    def format_file(self, file_path: Path) -> bool:
        """Format the file; return False when no formatter succeeded."""
        ...
