"""
Tests for the tree-sitter Go parser adapter.

Covers package/import/type/function extraction and the lowering of
receivers, signatures and bodies into the syntax model.
"""

from pathlib import Path

import pytest

from gotestcraft.domain.models import SourceParseError
from gotestcraft.domain.syntax import (
    ArrayOf,
    Call,
    Ident,
    ImportSpec,
    Pointer,
    Selector,
    VarDecl,
    innermost_type_name,
    walk,
)

from conftest import find_func


class TestGoParser:
    """Test suite for GoParser."""

    def test_parse_file_reads_declarations(self, greeter_source):
        """Package, imports, types and functions are extracted in source order."""
        assert greeter_source.package == "greeter"
        assert greeter_source.imports == (
            ImportSpec(path="fmt"),
            ImportSpec(path="example.com/proj/model"),
        )
        assert [t.name for t in greeter_source.types] == ["Greeter"]
        assert [f.name for f in greeter_source.funcs] == ["Greet", "Process"]
        assert not greeter_source.is_test_file

    def test_type_text_includes_keyword(self, greeter_source):
        spec = greeter_source.types[0]
        assert spec.text == "type Greeter struct {\n\tPrefix string\n}"
        assert spec.line == 9

    def test_method_receiver_and_params(self, greeter_source):
        greet = find_func(greeter_source, "Greet")

        assert greet.is_method
        assert greet.receiver.names == ("g",)
        assert greet.receiver.type == Pointer(Ident("Greeter", is_type=True))
        assert greet.params[0].names == ("u",)
        assert greet.params[0].type == Pointer(
            Selector(Ident("model"), "User", is_type=True)
        )
        assert greet.text.startswith("func (g *Greeter) Greet(u *model.User) string {")
        assert greet.text.endswith("}")

    def test_slice_parameter(self, greeter_source):
        process = find_func(greeter_source, "Process")

        assert not process.is_method
        assert process.params[0].type == ArrayOf(
            Selector(Ident("model"), "Item", is_type=True)
        )

    def test_body_lowering_keeps_calls_and_declarations(self, greeter_source):
        greet = find_func(greeter_source, "Greet")
        nodes = list(walk(greet.body))

        decls = [n for n in nodes if isinstance(n, VarDecl)]
        assert [d.names for d in decls] == [("name",)]

        callees = [n.func for n in nodes if isinstance(n, Call)]
        assert Ident("normalize") in callees
        assert Selector(Ident("fmt"), "Sprintf") in callees

    def test_aliased_and_blank_imports(self, go_parser):
        source = go_parser.parse_source(
            'package p\n\nimport (\n\tyaml "gopkg.in/yaml.v3"\n\t_ "embed"\n\t. "strings"\n)\n'
        )

        assert source.imports == (
            ImportSpec(path="gopkg.in/yaml.v3", alias="yaml"),
            ImportSpec(path="embed", alias="_"),
            ImportSpec(path="strings", alias="."),
        )

    def test_generic_receiver_lowers_to_base_type(self, go_parser):
        source = go_parser.parse_source(
            "package p\n\ntype Stack[T any] struct{ items []T }\n\n"
            "func (s *Stack[T]) Push(v T) {\n\ts.items = append(s.items, v)\n}\n"
        )
        push = find_func(source, "Push")

        assert innermost_type_name(push.receiver.type) == "Stack"

    def test_generic_function_type_params(self, go_parser):
        source = go_parser.parse_source(
            "package p\n\nfunc Map[K comparable, V any](m map[K]V) []K {\n\treturn nil\n}\n"
        )

        assert find_func(source, "Map").type_params == ("K", "V")

    def test_syntax_error_raises_in_strict_mode(self, go_parser):
        with pytest.raises(SourceParseError) as exc_info:
            go_parser.parse_source("package p\n\nfunc broken( {\n", Path("broken.go"))

        assert "broken.go" in str(exc_info.value)

    def test_syntax_error_tolerated_when_not_strict(self, go_parser):
        source = go_parser.parse_source(
            "func Test_A(t *testing.T) {}\n\nfunc broken( {\n", strict=False
        )

        assert "Test_A" in [f.name for f in source.funcs]

    def test_parse_missing_file_raises(self, go_parser, tmp_path):
        with pytest.raises(SourceParseError):
            go_parser.parse_file(tmp_path / "missing.go")

    def test_test_file_detection(self, go_parser):
        source = go_parser.parse_source("package p\n", Path("x_test.go"))
        assert source.is_test_file

    def test_long_operator_chain_is_lowered(self, go_parser):
        terms = " + ".join(['"a"'] * 450)
        source = go_parser.parse_source(
            f"package p\n\nfunc Long(s string) string {{\n\treturn normalize(s) + {terms}\n}}\n"
        )

        calls = [n for n in walk(find_func(source, "Long").body) if isinstance(n, Call)]
        assert calls == [Call(Ident("normalize"), (Ident("s"),))]

    def test_excessive_nesting_is_a_parse_error(self, go_parser):
        depth = 3000
        body = "(" * depth + "1" + ")" * depth
        with pytest.raises(SourceParseError) as exc_info:
            go_parser.parse_source(f"package p\n\nfunc Deep() int {{\n\treturn {body}\n}}\n")

        assert "<memory>" in str(exc_info.value)
