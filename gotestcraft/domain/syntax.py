"""
Closed syntax model for the parts of Go source the engine inspects.

The parser adapter lowers a full concrete syntax tree into these few node
kinds. Everything the resolver does not read (literals, statements, operators)
collapses into ``Group`` so walkers only need to handle this module's variants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union


@dataclass(frozen=True)
class Ident:
    """A bare identifier; ``is_type`` is set when it appeared in type position."""

    name: str
    is_type: bool = False


@dataclass(frozen=True)
class Selector:
    """``operand.name``; ``is_type`` marks a qualified type such as ``pkg.T``."""

    operand: Expr
    name: str
    is_type: bool = False


@dataclass(frozen=True)
class Call:
    func: Expr
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Pointer:
    """``*T`` in type position, ``&x`` in expression position."""

    elem: Expr


@dataclass(frozen=True)
class ArrayOf:
    """Arrays and slices."""

    elem: Expr


@dataclass(frozen=True)
class MapOf:
    key: Expr
    value: Expr


@dataclass(frozen=True)
class CompositeLit:
    type: Expr
    elems: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class VarDecl:
    """
    Local names introduced by ``var``, ``const``, ``:=``, ``range`` or the
    parameters of a function literal.
    """

    names: tuple[str, ...]
    type: Expr | None = None
    values: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class Group:
    """Any other node; only its children matter."""

    children: tuple[Expr, ...] = ()


Expr = Union[Ident, Selector, Call, Pointer, ArrayOf, MapOf, CompositeLit, VarDecl, Group]


def children(node: Expr) -> tuple[Expr, ...]:
    """Direct children of a node in source order."""
    if isinstance(node, Selector):
        return (node.operand,)
    if isinstance(node, Call):
        return (node.func, *node.args)
    if isinstance(node, (Pointer, ArrayOf)):
        return (node.elem,)
    if isinstance(node, MapOf):
        return (node.key, node.value)
    if isinstance(node, CompositeLit):
        return (node.type, *node.elems)
    if isinstance(node, VarDecl):
        if node.type is None:
            return node.values
        return (node.type, *node.values)
    if isinstance(node, Group):
        return node.children
    return ()


def walk(nodes: tuple[Expr, ...] | list[Expr]) -> Iterator[Expr]:
    """Pre-order traversal over a sequence of nodes."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


@dataclass(frozen=True)
class Field:
    """A parameter, result or receiver: zero or more names sharing a type."""

    names: tuple[str, ...]
    type: Expr


@dataclass(frozen=True)
class ImportSpec:
    path: str
    alias: str | None = None


@dataclass(frozen=True)
class TypeSpec:
    name: str
    text: str
    line: int = 0


@dataclass(frozen=True)
class FuncDecl:
    """A top-level function or method declaration."""

    name: str
    receiver: Field | None
    params: tuple[Field, ...]
    results: tuple[Field, ...]
    body: tuple[Expr, ...]
    text: str
    type_params: tuple[str, ...] = ()
    line: int = 0

    @property
    def is_method(self) -> bool:
        return self.receiver is not None


@dataclass(frozen=True)
class SourceFile:
    """A parsed Go compilation unit. Never mutated after parsing."""

    path: Path
    package: str
    imports: tuple[ImportSpec, ...]
    types: tuple[TypeSpec, ...]
    funcs: tuple[FuncDecl, ...]
    text: str = field(repr=False, default="")

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def type_names(self) -> frozenset[str]:
        return frozenset(t.name for t in self.types)

    @property
    def is_test_file(self) -> bool:
        return self.path.name.endswith("_test.go")


def base_type_names(expr: Expr) -> list[tuple[str, str]]:
    """
    Named types reachable from a type expression as ``(qualifier, name)``.

    Pointer, array/slice and map wrappers are unwrapped; maps contribute both
    key and value. Anything else (struct or func literals, channels,
    interfaces) contributes nothing.
    """
    if isinstance(expr, Ident):
        return [("", expr.name)]
    if isinstance(expr, Selector):
        if isinstance(expr.operand, Ident):
            return [(expr.operand.name, expr.name)]
        return []
    if isinstance(expr, (Pointer, ArrayOf)):
        return base_type_names(expr.elem)
    if isinstance(expr, MapOf):
        return base_type_names(expr.key) + base_type_names(expr.value)
    return []


def innermost_type_name(expr: Expr) -> str | None:
    """
    The innermost named type of a wrapped type expression.

    For maps the value side is followed, so ``*[]map[string]Greeter`` yields
    ``Greeter``.
    """
    if isinstance(expr, (Ident, Selector)):
        return expr.name
    if isinstance(expr, (Pointer, ArrayOf)):
        return innermost_type_name(expr.elem)
    if isinstance(expr, MapOf):
        return innermost_type_name(expr.value)
    return None
