"""Global fixtures for the gotestcraft test suite.

Provides a small Go module on disk (with a fake GOROOT next to it) that the
resolver, locator, collector and use case tests share.
"""

from pathlib import Path

import pytest

from gotestcraft.adapters.parsing.go_parser import GoParser
from gotestcraft.application.generation.services.import_resolver import ImportResolver
from gotestcraft.application.generation.services.symbol_locator import SymbolLocator

GO_MOD = """module example.com/proj

go 1.21

require (
\tgithub.com/Acme/widgets/v2 v2.3.0
\tgolang.org/x/text v0.14.0 // indirect
)

replace example.com/legacy => ./third_party/legacy
"""

GREETER_GO = """package greeter

import (
\t"fmt"

\t"example.com/proj/model"
)

type Greeter struct {
\tPrefix string
}

func (g *Greeter) Greet(u *model.User) string {
\tname := normalize(u.Name)
\treturn fmt.Sprintf("%s %s", g.Prefix, name)
}

func Process(items []model.Item) int {
\ttotal := 0
\tfor _, it := range items {
\t\ttotal += it.Count
\t}
\treturn total
}
"""

HELPERS_GO = """package greeter

import "strings"

func normalize(s string) string {
\treturn strings.TrimSpace(s)
}
"""

MODEL_USER_GO = """package model

type User struct {
\tName string
}

func NewUser(name string) *User {
\treturn &User{Name: name}
}
"""

MODEL_ITEM_GO = """package model

type Item struct {
\tCount int
}
"""

FMT_PRINT_GO = """package fmt

func Sprintf(format string, a ...any) string {
\treturn format
}
"""


# ================================================================================
# Go workspace fixtures
# ================================================================================


@pytest.fixture
def go_workspace(tmp_path) -> dict[str, Path]:
    """Create a Go module with two packages and a fake GOROOT.

    Layout::

        proj/go.mod
        proj/greeter/{greeter.go,helpers.go}
        proj/model/{user.go,item.go}
        goroot/src/fmt/print.go
    """
    proj = tmp_path / "proj"
    greeter = proj / "greeter"
    model = proj / "model"
    goroot = tmp_path / "goroot"
    gopath = tmp_path / "gopath"
    for directory in (greeter, model, goroot / "src" / "fmt", gopath):
        directory.mkdir(parents=True)

    (proj / "go.mod").write_text(GO_MOD)
    (greeter / "greeter.go").write_text(GREETER_GO)
    (greeter / "helpers.go").write_text(HELPERS_GO)
    (model / "user.go").write_text(MODEL_USER_GO)
    (model / "item.go").write_text(MODEL_ITEM_GO)
    (goroot / "src" / "fmt" / "print.go").write_text(FMT_PRINT_GO)

    return {
        "root": tmp_path,
        "proj": proj,
        "greeter": greeter,
        "model": model,
        "goroot": goroot,
        "gopath": gopath,
        "gomodcache": gopath / "pkg" / "mod",
    }


@pytest.fixture
def go_parser():
    """Return a real tree-sitter backed Go parser."""
    return GoParser()


@pytest.fixture
def import_resolver(go_workspace):
    """Return an import resolver pinned to the fake toolchain locations."""
    return ImportResolver(
        goroot=go_workspace["goroot"],
        gopath=go_workspace["gopath"],
        gomodcache=go_workspace["gomodcache"],
    )


@pytest.fixture
def symbol_locator(go_parser, import_resolver):
    return SymbolLocator(go_parser, import_resolver)


@pytest.fixture
def greeter_source(go_parser, go_workspace):
    """Parsed ``greeter/greeter.go``."""
    return go_parser.parse_file(go_workspace["greeter"] / "greeter.go")


def find_func(source, name):
    """Return the declaration named ``name`` from a parsed source file."""
    for decl in source.funcs:
        if decl.name == name:
            return decl
    raise AssertionError(f"{name} not declared in {source.path}")
