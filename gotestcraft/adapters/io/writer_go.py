"""
Writer adapter for Go test files.

Reads existing ``_test.go`` files and writes the merged result back,
creating parent directories as needed and formatting the written file.
Only ``_test.go`` targets may be written.
"""

import logging
from pathlib import Path
from typing import Any

from ...domain.models import GoTestCraftError
from ...ports.formatter_port import FormatterPort


class WriterError(GoTestCraftError):
    """Exception raised when test file writing fails."""

    pass


class GoTestWriter:
    """
    Writer adapter that replaces test files with merged content.

    Implements ``WriterPort``. In dry-run mode nothing is written and the
    returned result carries a preview of the content instead.
    """

    def __init__(
        self,
        formatter: FormatterPort | None = None,
        dry_run: bool = False,
    ) -> None:
        """
        Initialize the writer.

        Args:
            formatter: Optional formatter run on each written file
            dry_run: Whether to run in dry-run mode (no actual writing)
        """
        self.formatter = formatter
        self.dry_run = dry_run
        self.logger = logging.getLogger(__name__)

    def read_file(self, file_path: str | Path) -> str | None:
        """Return the file content, or None when the file does not exist."""
        file_path = Path(file_path)
        if not file_path.exists():
            return None
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise WriterError(f"Failed to read file {file_path}: {e}") from e

    def write_file(self, file_path: str | Path, content: str) -> dict[str, Any]:
        """
        Write ``content`` to ``file_path``, replacing any previous content.

        Returns:
            Dictionary containing write operation results

        Raises:
            WriterError: If the target is not a test file or writing fails
        """
        file_path = Path(file_path)
        if not file_path.name.endswith("_test.go"):
            raise WriterError(f"Refusing to write non-test file {file_path}")

        file_existed = file_path.exists()
        if self.dry_run:
            return {
                "success": True,
                "dry_run": True,
                "file_path": str(file_path),
                "bytes_written": len(content.encode("utf-8")),
                "content_preview": (
                    content[:500] + "..." if len(content) > 500 else content
                ),
                "file_existed": file_existed,
            }

        try:
            self.ensure_directory(file_path.parent)
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            self.logger.error("File write failed for %s: %s", file_path, e)
            raise WriterError(f"Failed to write file {file_path}: {e}") from e

        formatted = False
        if self.formatter is not None:
            formatted = self.formatter.format_file(file_path)

        return {
            "success": True,
            "bytes_written": len(content.encode("utf-8")),
            "file_path": str(file_path),
            "file_existed": file_existed,
            "formatted": formatted,
        }

    def ensure_directory(self, directory_path: str | Path) -> bool:
        """Create ``directory_path`` if missing; returns True when it was created."""
        directory_path = Path(directory_path)
        if directory_path.exists():
            return False
        directory_path.mkdir(parents=True, exist_ok=True)
        return True
