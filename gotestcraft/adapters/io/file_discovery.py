"""
File discovery for Go source trees.

Walks a file or directory depth-first in name order and yields the Go source
files tests should be generated for. ``_test.go`` files are never returned.
"""

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = ("vendor", "testdata")


class FileDiscoveryError(Exception):
    """Exception raised when file discovery fails."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


def is_go_source(path: Path) -> bool:
    return path.suffix == ".go" and not path.name.endswith("_test.go")


def companion_test_path(source_path: str | Path) -> Path:
    """``pkg/foo.go`` -> ``pkg/foo_test.go``."""
    source_path = Path(source_path)
    return source_path.with_name(source_path.stem + "_test.go")


class FileDiscoveryService:
    """
    Service for discovering Go source files.

    Directories listed in ``exclude_dirs`` and directories whose name starts
    with ``.`` or ``_`` are not entered, mirroring the go tool's own rules.
    """

    def __init__(self, exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS) -> None:
        self.exclude_dirs = frozenset(exclude_dirs)

    def discover_source_files(self, path: str | Path) -> list[Path]:
        """
        Return the Go source files under ``path`` in walk order.

        A single file path yields itself when it is a Go source file.

        Raises:
            FileDiscoveryError: If ``path`` does not exist or cannot be listed
        """
        path = Path(path)
        if not path.exists():
            raise FileDiscoveryError(f"Path does not exist: {path}")

        if path.is_file():
            return [path] if is_go_source(path) else []

        try:
            files = list(self._walk(path))
        except OSError as e:
            raise FileDiscoveryError(f"Failed to walk {path}: {e}", cause=e) from e

        logger.debug("Discovered %d Go source files under %s", len(files), path)
        return files

    def _walk(self, directory: Path):
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.is_dir():
                if self._should_exclude_directory(entry):
                    logger.debug("Skipping directory %s", entry)
                    continue
                yield from self._walk(entry)
            elif entry.is_file() and is_go_source(entry):
                yield entry

    def _should_exclude_directory(self, directory: Path) -> bool:
        name = directory.name
        return name in self.exclude_dirs or name.startswith((".", "_"))
