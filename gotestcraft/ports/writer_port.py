"""Writer port: persistence of generated test files."""

from abc import abstractmethod
from pathlib import Path
from typing import Any, Protocol


class WriterPort(Protocol):
    """Port interface for reading and writing test files."""

    @abstractmethod
    def read_file(self, file_path: Path) -> str | None:
        """Return the file content, or None when the file does not exist."""
        ...

    @abstractmethod
    def write_file(self, file_path: Path, content: str) -> dict[str, Any]:
        """Write content to a file, replacing what was there."""
        ...
