"""
Import resolver service for Go package qualifiers.

Maps the short package name used inside a Go file (``foo`` in ``foo.Bar``) to
the full import path declared by the file, locates that package's directory
the way ``go/build`` does in find-only mode, and tells standard-library
directories apart from project and dependency code.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ....adapters.io.subprocess_safe import run_subprocess_simple
from ....domain.models import ImportBinding, PackageKind
from ....domain.syntax import ImportSpec

logger = logging.getLogger(__name__)

_VERSION_SUFFIX = re.compile(r"/v\d+$")
_FALLBACK_GOROOT = Path("/usr/local/go")


def default_alias(import_path: str) -> str:
    """Conventional package name: last path segment without a ``/vN`` suffix."""
    path = _VERSION_SUFFIX.sub("", import_path)
    return path.rsplit("/", 1)[-1]


def escape_module_path(module_path: str) -> str:
    """Case-encode a module path for the module cache (``A`` becomes ``!a``)."""
    return "".join(f"!{c.lower()}" if c.isupper() else c for c in module_path)


@dataclass(frozen=True)
class GoModule:
    """The parts of a ``go.mod`` file needed to locate packages."""

    root: Path
    path: str
    requires: dict[str, str] = field(default_factory=dict)
    replaces: dict[str, str] = field(default_factory=dict)


def parse_go_mod(text: str, root: Path) -> GoModule:
    """
    Parse ``module``, ``require`` and ``replace`` directives of a go.mod file.

    Both single-line and parenthesised block forms are accepted; comments and
    other directives are ignored.
    """
    module_path = ""
    requires: dict[str, str] = {}
    replaces: dict[str, str] = {}
    block: str | None = None

    for raw_line in text.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        if not line:
            continue
        if block is not None:
            if line == ")":
                block = None
                continue
            _apply_directive(block, line, requires, replaces)
            continue

        verb, _, rest = line.partition(" ")
        rest = rest.strip()
        if verb == "module":
            module_path = rest.strip('"')
        elif verb in ("require", "replace"):
            if rest == "(":
                block = verb
            else:
                _apply_directive(verb, rest, requires, replaces)

    return GoModule(root=root, path=module_path, requires=requires, replaces=replaces)


def _apply_directive(
    verb: str, line: str, requires: dict[str, str], replaces: dict[str, str]
) -> None:
    if verb == "require":
        parts = line.split()
        if len(parts) >= 2:
            requires[parts[0]] = parts[1]
    elif verb == "replace" and "=>" in line:
        old, new = (side.split() for side in line.split("=>", 1))
        if old and new:
            replaces[old[0]] = new[0] if len(new) == 1 else f"{new[0]}@{new[1]}"


def _longest_prefix(import_path: str, candidates: Iterable[str]) -> str | None:
    best = None
    for candidate in candidates:
        if import_path == candidate or import_path.startswith(candidate + "/"):
            if best is None or len(candidate) > len(best):
                best = candidate
    return best


def _subpath(import_path: str, prefix: str) -> str:
    return import_path[len(prefix) :].lstrip("/")


class ImportResolver:
    """
    Service for resolving Go package qualifiers and package directories.

    Provides the two operations the symbol locator needs:
    ``resolve(short_name, bindings) -> import path | None`` and
    ``classify(directory) -> PackageKind``, plus ``locate_package`` to turn an
    import path into a directory on disk.
    """

    def __init__(
        self,
        goroot: str | Path | None = None,
        gopath: str | Path | None = None,
        gomodcache: str | Path | None = None,
    ) -> None:
        """
        Initialize the import resolver.

        Args:
            goroot: Go installation root; discovered from the environment when None
            gopath: GOPATH root; defaults to ``$GOPATH`` or ``~/go``
            gomodcache: Module cache; defaults to ``$GOMODCACHE`` or ``<gopath>/pkg/mod``
        """
        self._goroot = Path(goroot) if goroot else None
        self._gopath = Path(gopath) if gopath else None
        self._gomodcache = Path(gomodcache) if gomodcache else None
        self._module_cache: dict[Path, GoModule | None] = {}

    @property
    def goroot(self) -> Path:
        if self._goroot is None:
            self._goroot = self._discover_goroot()
        return self._goroot

    @property
    def gopath(self) -> Path:
        if self._gopath is None:
            env_value = os.environ.get("GOPATH", "")
            first = env_value.split(os.pathsep)[0] if env_value else ""
            self._gopath = Path(first) if first else Path.home() / "go"
        return self._gopath

    @property
    def gomodcache(self) -> Path:
        if self._gomodcache is None:
            env_value = os.environ.get("GOMODCACHE")
            self._gomodcache = (
                Path(env_value) if env_value else self.gopath / "pkg" / "mod"
            )
        return self._gomodcache

    def _discover_goroot(self) -> Path:
        env_value = os.environ.get("GOROOT")
        if env_value:
            return Path(env_value)
        stdout, stderr, code = run_subprocess_simple(
            ["go", "env", "GOROOT"], timeout=10, raise_on_error=False
        )
        if code == 0 and stdout and stdout.strip():
            return Path(stdout.strip())
        logger.debug(
            "go env GOROOT unavailable (%s), assuming %s", stderr, _FALLBACK_GOROOT
        )
        return _FALLBACK_GOROOT

    # Qualifier resolution

    def bindings_for(self, imports: Iterable[ImportSpec]) -> list[ImportBinding]:
        """Derive the import bindings of a file, in declaration order."""
        bindings = []
        for spec in imports:
            alias = spec.alias if spec.alias else default_alias(spec.path)
            bindings.append(ImportBinding(local_alias=alias, qualified_path=spec.path))
        return bindings

    def resolve(self, short_name: str, bindings: Iterable[ImportBinding]) -> str | None:
        """
        Return the import path bound to ``short_name``, or None.

        The first matching binding wins. Blank and dot imports never match.
        """
        for binding in bindings:
            if binding.local_alias in ("_", "."):
                continue
            if binding.local_alias == short_name:
                return binding.qualified_path
        return None

    def classify(self, directory: str | Path) -> PackageKind:
        """Return STDLIB when the directory lies under the Go installation root."""
        directory = Path(os.path.abspath(directory))
        root = Path(os.path.abspath(self.goroot))
        if directory == root or directory.is_relative_to(root):
            return PackageKind.STDLIB
        return PackageKind.PROJECT

    # Package location

    def locate_package(self, import_path: str, from_dir: str | Path) -> Path | None:
        """
        Locate the directory of ``import_path`` as seen from ``from_dir``.

        Search order: the enclosing module, its local replacements, its vendor
        tree, the module cache, ``$GOPATH/src`` and finally the standard
        library. Standard-library paths are returned even when GOROOT is not
        present on disk so that callers can still classify them.
        """
        from_dir = Path(from_dir)
        module = self._find_module(from_dir)
        if module is not None:
            located = self._locate_in_module(import_path, module)
            if located is not None:
                logger.debug("Located %s at %s", import_path, located)
                return located

        gopath_dir = self.gopath / "src" / import_path
        if gopath_dir.is_dir():
            return gopath_dir

        first_element = import_path.split("/", 1)[0]
        if "." not in first_element:
            return self.goroot / "src" / import_path

        logger.debug("Could not locate package %s from %s", import_path, from_dir)
        return None

    def _locate_in_module(self, import_path: str, module: GoModule) -> Path | None:
        if module.path and _longest_prefix(import_path, [module.path]):
            candidate = module.root / _subpath(import_path, module.path)
            return candidate if candidate.is_dir() else None

        replaced = _longest_prefix(import_path, module.replaces)
        if replaced is not None:
            target = module.replaces[replaced]
            rest = _subpath(import_path, replaced)
            if target.startswith(("./", "../", "/")):
                candidate = (module.root / target / rest).resolve()
                if candidate.is_dir():
                    return candidate
            elif "@" in target:
                new_path, version = target.split("@", 1)
                candidate = self._module_cache_dir(new_path, version) / rest
                if candidate.is_dir():
                    return candidate

        vendored = module.root / "vendor" / import_path
        if vendored.is_dir():
            return vendored

        required = _longest_prefix(import_path, module.requires)
        if required is not None:
            version = module.requires[required]
            candidate = self._module_cache_dir(required, version) / _subpath(
                import_path, required
            )
            if candidate.is_dir():
                return candidate

        return None

    def _module_cache_dir(self, module_path: str, version: str) -> Path:
        return self.gomodcache / f"{escape_module_path(module_path)}@{version}"

    def _find_module(self, start: Path) -> GoModule | None:
        """Find and parse the nearest go.mod at or above ``start``."""
        current = start.resolve()
        visited: list[Path] = []
        module: GoModule | None = None

        while True:
            if current in self._module_cache:
                module = self._module_cache[current]
                break
            visited.append(current)
            go_mod = current / "go.mod"
            if go_mod.is_file():
                try:
                    module = parse_go_mod(go_mod.read_text(encoding="utf-8"), current)
                except OSError as e:
                    logger.warning("Failed to read %s: %s", go_mod, e)
                    module = None
                break
            if current.parent == current:
                break
            current = current.parent

        for directory in visited:
            self._module_cache[directory] = module
        return module
