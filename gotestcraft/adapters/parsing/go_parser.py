"""
Go parser adapter built on tree-sitter.

Parses Go source with the tree-sitter Go grammar and lowers the concrete
syntax tree into the small syntax model in ``domain.syntax``. Only the node
kinds the resolver reads are kept; everything else becomes a ``Group`` so the
rest of the engine never touches tree-sitter types.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from tree_sitter_language_pack import get_parser

from ...domain.models import SourceParseError
from ...domain.syntax import (
    ArrayOf,
    Call,
    CompositeLit,
    Expr,
    Field,
    FuncDecl,
    Group,
    Ident,
    ImportSpec,
    MapOf,
    Pointer,
    Selector,
    SourceFile,
    TypeSpec,
    VarDecl,
)

logger = logging.getLogger(__name__)

_EMPTY = Group()

# Node kinds whose subtree never contains anything the resolver reads.
_LEAF_KINDS = frozenset(
    {
        "comment",
        "interpreted_string_literal",
        "raw_string_literal",
        "rune_literal",
        "int_literal",
        "float_literal",
        "imaginary_literal",
        "true",
        "false",
        "nil",
        "iota",
        "field_identifier",
        "label_name",
        "blank_identifier",
        "dot",
    }
)

_ARRAY_KINDS = frozenset({"slice_type", "array_type", "implicit_length_array_type"})


class GoParser:
    """
    Parser adapter for Go source files.

    Implements ``ParserPort``. A single tree-sitter parser is reused for
    every file handled by the instance.
    """

    def __init__(self) -> None:
        self._parser = get_parser("go")

    def parse_file(self, file_path: Path) -> SourceFile:
        """Parse a Go file from disk."""
        file_path = Path(file_path)
        try:
            source = file_path.read_bytes()
        except OSError as e:
            raise SourceParseError(str(file_path), f"cannot read file: {e}") from e
        return self._parse(source, file_path, strict=True)

    def parse_source(
        self, text: str, file_path: Path | None = None, strict: bool = True
    ) -> SourceFile:
        """Parse Go source held in memory."""
        return self._parse(text.encode("utf-8"), file_path or Path("<memory>"), strict)

    def rename_identifier(self, text: str, old: str, new: str) -> str:
        """Rename every ``identifier`` node spelled ``old``; other node kinds are kept."""
        source = text.encode("utf-8")
        target = old.encode("utf-8")
        spans = []
        stack = [self._parser.parse(source).root_node]
        while stack:
            node = stack.pop()
            if node.type == "identifier":
                if source[node.start_byte : node.end_byte] == target:
                    spans.append((node.start_byte, node.end_byte))
                continue
            stack.extend(node.children)

        replacement = new.encode("utf-8")
        for start, end in sorted(spans, reverse=True):
            source = source[:start] + replacement + source[end:]
        return source.decode("utf-8")

    def _parse(self, source: bytes, file_path: Path, strict: bool) -> SourceFile:
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            location = _first_error_line(root)
            if strict:
                raise SourceParseError(str(file_path), f"syntax error near line {location}")
            logger.debug("Tolerating syntax error in %s near line %s", file_path, location)

        lowering = _Lowering(source)
        try:
            return lowering.source_file(root, file_path)
        except RecursionError as e:
            raise SourceParseError(
                str(file_path), "expression nesting too deep to analyse"
            ) from e


def _first_error_line(node: Any) -> int:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        if current.has_error:
            stack.extend(reversed(current.children))
    return node.start_point[0] + 1


class _Lowering:
    """Converts tree-sitter nodes of one source buffer into syntax nodes."""

    def __init__(self, source: bytes) -> None:
        self._source = source

    def text(self, node: Any) -> str:
        return self._source[node.start_byte : node.end_byte].decode(
            "utf-8", errors="replace"
        )

    # Declarations

    def source_file(self, root: Any, file_path: Path) -> SourceFile:
        package = ""
        imports: list[ImportSpec] = []
        types: list[TypeSpec] = []
        funcs: list[FuncDecl] = []

        for node in root.named_children:
            kind = node.type
            if kind == "package_clause":
                for child in node.named_children:
                    if child.type == "package_identifier":
                        package = self.text(child)
            elif kind == "import_declaration":
                imports.extend(self.imports(node))
            elif kind == "type_declaration":
                types.extend(self.type_specs(node))
            elif kind in ("function_declaration", "method_declaration"):
                decl = self.func_decl(node)
                if decl is not None:
                    funcs.append(decl)

        return SourceFile(
            path=file_path,
            package=package,
            imports=tuple(imports),
            types=tuple(types),
            funcs=tuple(funcs),
            text=self._source.decode("utf-8", errors="replace"),
        )

    def imports(self, node: Any) -> list[ImportSpec]:
        specs = []
        for child in node.named_children:
            if child.type == "import_spec":
                specs.append(self._import_spec(child))
            elif child.type == "import_spec_list":
                specs.extend(
                    self._import_spec(spec)
                    for spec in child.named_children
                    if spec.type == "import_spec"
                )
        return specs

    def _import_spec(self, node: Any) -> ImportSpec:
        path_node = node.child_by_field_name("path")
        name_node = node.child_by_field_name("name")
        path = self.text(path_node).strip('"`') if path_node is not None else ""
        alias = self.text(name_node) if name_node is not None else None
        return ImportSpec(path=path, alias=alias)

    def type_specs(self, node: Any) -> list[TypeSpec]:
        specs = []
        for child in node.named_children:
            if child.type not in ("type_spec", "type_alias"):
                continue
            name_node = child.child_by_field_name("name")
            if name_node is None:
                continue
            specs.append(
                TypeSpec(
                    name=self.text(name_node),
                    text="type " + self.text(child),
                    line=child.start_point[0] + 1,
                )
            )
        return specs

    def func_decl(self, node: Any) -> FuncDecl | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None

        receiver = None
        receiver_node = node.child_by_field_name("receiver")
        if receiver_node is not None:
            fields = self._fields(receiver_node)
            receiver = fields[0] if fields else None

        params_node = node.child_by_field_name("parameters")
        params = self._fields(params_node) if params_node is not None else ()

        results: tuple[Field, ...] = ()
        result_node = node.child_by_field_name("result")
        if result_node is not None:
            if result_node.type == "parameter_list":
                results = self._fields(result_node)
            else:
                results = (Field(names=(), type=self.expr(result_node)),)

        type_params: list[str] = []
        type_params_node = node.child_by_field_name("type_parameters")
        if type_params_node is not None:
            for decl in type_params_node.named_children:
                type_params.extend(
                    self.text(n) for n in decl.children_by_field_name("name")
                )

        body: tuple[Expr, ...] = ()
        body_node = node.child_by_field_name("body")
        if body_node is not None:
            body = self._lower_children(body_node)

        return FuncDecl(
            name=self.text(name_node),
            receiver=receiver,
            params=params,
            results=results,
            body=body,
            text=self.text(node),
            type_params=tuple(type_params),
            line=node.start_point[0] + 1,
        )

    def _fields(self, node: Any) -> tuple[Field, ...]:
        fields = []
        for child in node.named_children:
            if child.type not in (
                "parameter_declaration",
                "variadic_parameter_declaration",
            ):
                continue
            type_node = child.child_by_field_name("type")
            if type_node is None:
                continue
            names = tuple(self.text(n) for n in child.children_by_field_name("name"))
            fields.append(Field(names=names, type=self.expr(type_node)))
        return tuple(fields)

    # Expressions and types

    def expr(self, node: Any) -> Expr:
        kind = node.type
        if kind in _LEAF_KINDS:
            return _EMPTY
        if kind in ("identifier", "package_identifier"):
            return Ident(self.text(node))
        if kind == "type_identifier":
            return Ident(self.text(node), is_type=True)
        if kind == "qualified_type":
            package = node.child_by_field_name("package")
            name = node.child_by_field_name("name")
            return Selector(Ident(self.text(package)), self.text(name), is_type=True)
        if kind == "selector_expression":
            operand = node.child_by_field_name("operand")
            field = node.child_by_field_name("field")
            return Selector(self.expr(operand), self.text(field))
        if kind == "call_expression":
            function = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            args = self._lower_children(arguments) if arguments is not None else ()
            return Call(self.expr(function), args)
        if kind == "pointer_type":
            inner = _first_named(node)
            return Pointer(self.expr(inner)) if inner is not None else _EMPTY
        if kind == "unary_expression":
            operand = node.child_by_field_name("operand")
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type == "&" and operand is not None:
                return Pointer(self.expr(operand))
            return self._group(node)
        if kind in _ARRAY_KINDS:
            element = node.child_by_field_name("element")
            return ArrayOf(self.expr(element)) if element is not None else _EMPTY
        if kind == "map_type":
            key = node.child_by_field_name("key")
            value = node.child_by_field_name("value")
            return MapOf(self.expr(key), self.expr(value))
        if kind == "generic_type":
            base = node.child_by_field_name("type")
            return self.expr(base) if base is not None else _EMPTY
        if kind == "parenthesized_type":
            inner = _first_named(node)
            return self.expr(inner) if inner is not None else _EMPTY
        if kind == "composite_literal":
            type_node = node.child_by_field_name("type")
            body = node.child_by_field_name("body")
            elems = (self.expr(body),) if body is not None else ()
            type_expr = self.expr(type_node) if type_node is not None else _EMPTY
            return CompositeLit(type_expr, elems)
        if kind in ("var_spec", "const_spec"):
            return self._var_spec(node)
        if kind == "short_var_declaration":
            return self._short_var(node)
        if kind == "range_clause":
            return self._range_clause(node)
        if kind == "type_switch_statement":
            return self._type_switch(node)
        if kind == "binary_expression":
            return self._binary_chain(node)
        if kind == "func_literal":
            return self._func_literal(node)
        return self._group(node)

    def _binary_chain(self, node: Any) -> Expr:
        """Flatten nested binary operators into one group of operands, left to right."""
        operands: list[Expr] = []
        pending = [node]
        while pending:
            current = pending.pop()
            if current.type == "binary_expression":
                pending.extend(
                    reversed([c for c in current.named_children if c.type != "comment"])
                )
            else:
                operands.append(self.expr(current))
        return Group(tuple(operands)) if operands else _EMPTY

    def _group(self, node: Any) -> Expr:
        kids = self._lower_children(node)
        return Group(kids) if kids else _EMPTY

    def _lower_children(self, node: Any) -> tuple[Expr, ...]:
        return tuple(
            self.expr(child) for child in node.named_children if child.type != "comment"
        )

    def _var_spec(self, node: Any) -> Expr:
        names = tuple(self.text(n) for n in node.children_by_field_name("name"))
        type_node = node.child_by_field_name("type")
        value_node = node.child_by_field_name("value")
        values = self._lower_children(value_node) if value_node is not None else ()
        type_expr = self.expr(type_node) if type_node is not None else None
        return VarDecl(names=names, type=type_expr, values=values)

    def _short_var(self, node: Any) -> Expr:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        names = self._identifier_names(left)
        values = self._lower_children(right) if right is not None else ()
        return VarDecl(names=names, values=values)

    def _range_clause(self, node: Any) -> Expr:
        right = node.child_by_field_name("right")
        ranged = (self.expr(right),) if right is not None else ()
        declares = any(child.type == ":=" for child in node.children)
        left = node.child_by_field_name("left")
        if not declares or left is None:
            return Group(ranged)
        # Ranged values are element types of the right side, not its type.
        return Group((VarDecl(names=self._identifier_names(left)), *ranged))

    def _type_switch(self, node: Any) -> Expr:
        aliases: tuple[str, ...] = ()
        alias_node = node.child_by_field_name("alias")
        if alias_node is not None:
            aliases = self._identifier_names(alias_node)
        rest = tuple(
            self.expr(child)
            for child in node.named_children
            if child.type != "comment" and child != alias_node
        )
        if aliases:
            return Group((VarDecl(names=aliases), *rest))
        return Group(rest)

    def _func_literal(self, node: Any) -> Expr:
        kids: list[Expr] = []
        for field_name in ("parameters", "result"):
            part = node.child_by_field_name(field_name)
            if part is None:
                continue
            if part.type == "parameter_list":
                for param in self._fields(part):
                    kids.append(VarDecl(names=param.names, type=param.type))
            else:
                kids.append(self.expr(part))
        body = node.child_by_field_name("body")
        if body is not None:
            kids.extend(self._lower_children(body))
        return Group(tuple(kids))

    def _identifier_names(self, node: Any) -> tuple[str, ...]:
        if node is None:
            return ()
        if node.type == "identifier":
            return (self.text(node),)
        return tuple(
            self.text(child) for child in node.named_children if child.type == "identifier"
        )


def _first_named(node: Any) -> Any:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None
