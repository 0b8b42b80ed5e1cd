"""Parser port: turns Go source into the engine's syntax model."""

from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from ..domain.syntax import SourceFile


class ParserPort(Protocol):
    """Port interface for Go parsing operations."""

    @abstractmethod
    def parse_file(self, file_path: Path) -> SourceFile:
        """
        Parse a Go source file.

        Raises:
            SourceParseError: If the file cannot be read or contains syntax errors
        """
        ...

    @abstractmethod
    def parse_source(
        self, text: str, file_path: Path | None = None, strict: bool = True
    ) -> SourceFile:
        """
        Parse Go source held in memory.

        With ``strict`` unset, syntax errors are tolerated and whatever
        declarations could be recovered are returned.
        """
        ...

    @abstractmethod
    def rename_identifier(self, text: str, old: str, new: str) -> str:
        """
        Rename every identifier ``old`` in ``text`` to ``new``.

        Declarations and uses are renamed; field names, selectors, strings
        and comments are left untouched.
        """
        ...
