"""
Reference collector service.

Walks the signature and body of a target Go function, collects the types and
functions it refers to, and materialises their declarations into the context
blob handed to the prompt builder.

Variable types are inferred with a deliberately bounded heuristic: only the
receiver, parameters, ``var v T`` declarations and ``v := T{...}`` /
``v := &T{...}`` literals are understood. Anything else leaves the variable
unresolved and its method calls are dropped.
"""

from __future__ import annotations

import logging

from ....domain.models import CallReference, TypeReference
from ....domain.syntax import (
    Call,
    CompositeLit,
    Expr,
    Field,
    FuncDecl,
    Ident,
    Pointer,
    Selector,
    SourceFile,
    VarDecl,
    base_type_names,
    children,
    walk,
)
from .import_resolver import ImportResolver
from .symbol_locator import SymbolLocator, receiver_type_name

logger = logging.getLogger(__name__)

PREDECLARED_TYPES = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)

BUILTIN_FUNCS = frozenset(
    {
        "append",
        "cap",
        "clear",
        "close",
        "complex",
        "copy",
        "delete",
        "imag",
        "len",
        "make",
        "max",
        "min",
        "new",
        "panic",
        "print",
        "println",
        "real",
        "recover",
    }
)

# Unresolvable variable type
_UNKNOWN = ("", "")


def _type_sort_key(ref: TypeReference) -> tuple:
    return (ref.package_qualifier != "", ref.package_qualifier, ref.type_name)


def _call_sort_key(ref: CallReference) -> tuple:
    return (
        ref.package_qualifier != "",
        ref.package_qualifier,
        ref.type_name,
        ref.func_name,
    )


def _literal_type(value: Expr) -> Expr | None:
    if isinstance(value, Pointer):
        value = value.elem
    if isinstance(value, CompositeLit):
        return value.type
    return None


def _named_type(expr: Expr) -> tuple[str, str]:
    """``(qualifier, name)`` of ``T``, ``*T``, ``pkg.T`` or ``*pkg.T``."""
    if isinstance(expr, Pointer):
        expr = expr.elem
    if isinstance(expr, Ident):
        return ("", expr.name)
    if isinstance(expr, Selector) and isinstance(expr.operand, Ident):
        return (expr.operand.name, expr.name)
    return _UNKNOWN


class _FunctionScope:
    """Names and cheaply known variable types of one function."""

    def __init__(self, func: FuncDecl) -> None:
        self.type_params = frozenset(func.type_params)
        self.locals: set[str] = set()
        self._var_types: dict[str, tuple[str, str]] = {}

        fields: list[Field] = list(func.params) + list(func.results)
        if func.receiver is not None:
            fields.insert(0, func.receiver)
        for item in fields:
            for name in item.names:
                self._declare(name, _named_type(item.type))

        for node in walk(func.body):
            if isinstance(node, VarDecl):
                self._declare_var(node)

    def _declare_var(self, decl: VarDecl) -> None:
        if decl.type is not None:
            known = _named_type(decl.type)
            for name in decl.names:
                self._declare(name, known)
            return
        for index, name in enumerate(decl.names):
            known = _UNKNOWN
            if len(decl.values) == len(decl.names):
                literal = _literal_type(decl.values[index])
                if literal is not None:
                    known = _named_type(literal)
            self._declare(name, known)

    def _declare(self, name: str, known: tuple[str, str]) -> None:
        if not name or name == "_":
            return
        if name in self.locals and self._var_types.get(name) != known:
            # Redeclared with a different type somewhere in the body.
            known = _UNKNOWN
        self.locals.add(name)
        self._var_types[name] = known

    def variable_type(self, name: str) -> tuple[str, str]:
        return self._var_types.get(name, _UNKNOWN)


class ReferenceCollector:
    """
    Service collecting type and call references of a Go function.

    Uses the import resolver to tell package qualifiers apart from other
    identifiers and the symbol locator to materialise declarations.
    """

    def __init__(
        self, import_resolver: ImportResolver, symbol_locator: SymbolLocator
    ) -> None:
        self._import_resolver = import_resolver
        self._locator = symbol_locator

    def collect_references(
        self, func: FuncDecl, source: SourceFile
    ) -> tuple[list[TypeReference], list[CallReference]]:
        """
        Collect the deduplicated, deterministically ordered references of ``func``.

        Returns:
            Tuple of (type references, call references); empty qualifiers sort
            first, then by qualifier, then by name.
        """
        scope = _FunctionScope(func)
        aliases = {
            b.local_alias
            for b in self._import_resolver.bindings_for(source.imports)
            if b.local_alias not in (None, "_", ".")
        }
        file_types = source.type_names

        types: dict[tuple, TypeReference] = {}
        calls: dict[tuple, CallReference] = {}

        def add_type(qualifier: str, name: str) -> None:
            if not qualifier and (
                name in PREDECLARED_TYPES or name in scope.type_params
            ):
                return
            ref = TypeReference(package_qualifier=qualifier, type_name=name)
            types.setdefault(ref.key, ref)

        def add_call(qualifier: str, type_name: str, name: str) -> None:
            ref = CallReference(
                package_qualifier=qualifier, type_name=type_name, func_name=name
            )
            calls.setdefault(ref.key, ref)

        def is_package(name: str) -> bool:
            return name in aliases and name not in scope.locals

        # Signature
        fields: list[Field] = list(func.params) + list(func.results)
        if func.receiver is not None:
            fields.insert(0, func.receiver)
        for item in fields:
            for qualifier, name in base_type_names(item.type):
                add_type(qualifier, name)

        # Body
        stack: list[Expr] = list(reversed(func.body))
        while stack:
            node = stack.pop()

            if isinstance(node, Call):
                target = node.func
                if isinstance(target, Ident):
                    name = target.name
                    if name in scope.locals or name in BUILTIN_FUNCS:
                        pass
                    elif name in file_types:
                        add_type("", name)
                    else:
                        add_call("", "", name)
                elif isinstance(target, Selector) and isinstance(target.operand, Ident):
                    operand = target.operand.name
                    if is_package(operand):
                        add_call(operand, "", target.name)
                    elif operand in scope.locals:
                        qualifier, type_name = scope.variable_type(operand)
                        if type_name:
                            add_call(qualifier, type_name, target.name)
                else:
                    stack.append(target)
                stack.extend(reversed(node.args))
                continue

            if isinstance(node, Ident):
                if node.is_type or (
                    node.name in file_types and node.name not in scope.locals
                ):
                    add_type("", node.name)
                continue

            if isinstance(node, Selector):
                if isinstance(node.operand, Ident):
                    if is_package(node.operand.name):
                        add_type(node.operand.name, node.name)
                        continue
                    if node.is_type:
                        add_type(node.operand.name, node.name)
                        continue
                stack.append(node.operand)
                continue

            stack.extend(reversed(children(node)))

        own_key = ("", receiver_type_name(func) or "", func.name)
        calls.pop(own_key, None)

        return (
            sorted(types.values(), key=_type_sort_key),
            sorted(calls.values(), key=_call_sort_key),
        )

    def build_context(self, func: FuncDecl, source: SourceFile) -> str:
        """
        Materialise the declarations referenced by ``func`` into one text blob.

        Local references are resolved before external ones; inside each pass
        types come before calls. References that resolve to nothing are left
        out.

        Raises:
            QualifierNotFoundError: If a referenced type's qualifier is not imported
            SourceParseError: If a searched file cannot be parsed
        """
        types, calls = self.collect_references(func, source)
        logger.debug(
            "Collected %d type and %d call references for %s",
            len(types),
            len(calls),
            func.name,
        )

        parts: list[str] = []
        for local_pass in (True, False):
            for ref in types:
                if ref.is_local != local_pass:
                    continue
                text = self._locator.find_type(
                    source, ref.package_qualifier, ref.type_name
                )
                if text:
                    parts.append(format_type_entry(ref, text))
            for call in calls:
                if call.is_local != local_pass:
                    continue
                text = self._locator.find_function(
                    source, call.package_qualifier, call.type_name, call.func_name
                )
                if text:
                    parts.append("\n\n" + text)

        return "".join(parts)


def format_type_entry(ref: TypeReference, text: str) -> str:
    if ref.is_local:
        return f"Model: {ref.type_name}\nDefinition:\n{text}\n"
    return (
        f"Package: {ref.package_qualifier} Model: {ref.type_name}\n"
        f"Definition:\n{text}\n"
    )
