"""
Symbol locator service.

Finds the declaring source text of a Go type or function/method, searching
the current file first, then the rest of its package, then the package an
import qualifier resolves to. Standard-library packages are never scanned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from ....domain.models import PackageKind, QualifierNotFoundError
from ....domain.syntax import FuncDecl, SourceFile, innermost_type_name
from ....ports.parser_port import ParserPort
from .import_resolver import ImportResolver

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({"testdata", "vendor"})

_TYPE = "type"
_FUNC = "func"


def is_candidate_source(path: Path) -> bool:
    """Non-test Go source files only."""
    return path.suffix == ".go" and not path.name.endswith("_test.go")


def _skip_directory(name: str) -> bool:
    return name in _SKIPPED_DIRS or name.startswith((".", "_"))


def receiver_type_name(decl: FuncDecl) -> str | None:
    """Base type of a method receiver, ignoring pointers and type parameters."""
    if decl.receiver is None:
        return None
    return innermost_type_name(decl.receiver.type)


def find_type_in(source: SourceFile, name: str) -> str:
    for spec in source.types:
        if spec.name == name:
            return spec.text
    return ""


def find_function_in(source: SourceFile, type_name: str, func_name: str) -> str:
    for decl in source.funcs:
        if decl.name != func_name:
            continue
        if type_name:
            if receiver_type_name(decl) == type_name:
                return decl.text
        elif not decl.is_method:
            return decl.text
    return ""


class SymbolLocator:
    """
    Service for locating Go declarations by (qualifier, name).

    Lookups that scan a package directory are memoised by
    ``(scope, directory, kind, key)``, where the scope separates the flat
    same-package scan from the recursive walk of an imported package.
    """

    def __init__(self, parser: ParserPort, import_resolver: ImportResolver) -> None:
        """
        Initialize the symbol locator.

        Args:
            parser: Parser port used for every candidate file
            import_resolver: Resolver for package qualifiers and directories
        """
        self._parser = parser
        self._import_resolver = import_resolver
        self._cache: dict[tuple[str, str, str, tuple[str, ...]], str] = {}

    def find_type(self, source: SourceFile, qualifier: str, name: str) -> str:
        """
        Return ``type <spec>`` for the named type, or "" when not found.

        Raises:
            QualifierNotFoundError: If ``qualifier`` matches no import of ``source``
            SourceParseError: If a candidate file cannot be parsed
        """
        if not qualifier:
            found = find_type_in(source, name)
            if found:
                return found
            return self._search_siblings(source, _TYPE, (name,))

        package_dir = self._package_directory(source, qualifier, strict=True)
        if package_dir is None:
            return ""
        return self._search_package(package_dir, _TYPE, (name,))

    def find_function(
        self, source: SourceFile, qualifier: str, type_name: str, func_name: str
    ) -> str:
        """
        Return the full declaration of a function or method, or "".

        Unlike types, an unknown qualifier is not an error here: not every
        callee is resolvable.

        Raises:
            SourceParseError: If a candidate file cannot be parsed
        """
        key = (type_name, func_name)
        if not qualifier:
            found = find_function_in(source, type_name, func_name)
            if found:
                return found
            return self._search_siblings(source, _FUNC, key)

        package_dir = self._package_directory(source, qualifier, strict=False)
        if package_dir is None:
            return ""
        return self._search_package(package_dir, _FUNC, key)

    def _package_directory(
        self, source: SourceFile, qualifier: str, strict: bool
    ) -> Path | None:
        bindings = self._import_resolver.bindings_for(source.imports)
        import_path = self._import_resolver.resolve(qualifier, bindings)
        if import_path is None:
            if strict:
                raise QualifierNotFoundError(qualifier, str(source.path))
            logger.debug("Qualifier %s not imported by %s", qualifier, source.path)
            return None

        package_dir = self._import_resolver.locate_package(
            import_path, source.directory
        )
        if package_dir is None:
            logger.warning(
                "Package %s imported by %s is not available locally",
                import_path,
                source.path,
            )
            return None

        if self._import_resolver.classify(package_dir) == PackageKind.STDLIB:
            logger.debug("Skipping standard library package %s", import_path)
            return None
        return package_dir

    def _search_siblings(
        self, source: SourceFile, kind: str, key: tuple[str, ...]
    ) -> str:
        directory = source.directory
        cache_key = ("siblings", str(directory), kind, key)
        if cache_key in self._cache:
            return self._cache[cache_key]

        found = ""
        own_path = source.path.resolve() if source.path.exists() else source.path
        for path in sorted(directory.glob("*.go")):
            if not is_candidate_source(path) or path.resolve() == own_path:
                continue
            found = self._find_in_file(path, kind, key)
            if found:
                break

        self._cache[cache_key] = found
        return found

    def _search_package(self, package_dir: Path, kind: str, key: tuple[str, ...]) -> str:
        cache_key = ("package", str(package_dir), kind, key)
        if cache_key in self._cache:
            return self._cache[cache_key]

        found = ""
        for path in _walk_sources(package_dir):
            found = self._find_in_file(path, kind, key)
            if found:
                logger.debug("Found %s %s in %s", kind, ".".join(key), path)
                break

        self._cache[cache_key] = found
        return found

    def _find_in_file(self, path: Path, kind: str, key: tuple[str, ...]) -> str:
        parsed = self._parser.parse_file(path)
        if kind == _TYPE:
            return find_type_in(parsed, key[0])
        return find_function_in(parsed, key[0], key[1])


def _walk_sources(root: Path) -> Iterator[Path]:
    """Depth-first walk in name order over candidate Go files under ``root``."""
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.warning("Cannot list %s: %s", root, e)
        return

    for entry in entries:
        if entry.is_dir():
            if not _skip_directory(entry.name):
                yield from _walk_sources(entry)
        elif entry.is_file() and is_candidate_source(entry):
            yield entry
