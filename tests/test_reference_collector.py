"""
Tests for the reference collector service.

Covers signature and body reference collection, the bounded variable-type
heuristic, deterministic ordering and the assembled context blob.
"""

import pytest

from gotestcraft.application.generation.services.reference_collector import (
    ReferenceCollector,
    format_type_entry,
)
from gotestcraft.domain.models import CallReference, QualifierNotFoundError, TypeReference

from conftest import find_func


@pytest.fixture
def collector(import_resolver, symbol_locator):
    return ReferenceCollector(import_resolver, symbol_locator)


def parse_in_greeter(go_parser, go_workspace, body):
    """Parse in-memory source as if it lived in the greeter package."""
    text = (
        "package greeter\n\n"
        'import (\n\t"fmt"\n\n\t"example.com/proj/model"\n)\n\n' + body
    )
    return go_parser.parse_source(text, go_workspace["greeter"] / "scratch.go")


class TestCollectReferences:
    """Test reference collection for single functions."""

    def test_method_references(self, collector, greeter_source):
        types, calls = collector.collect_references(
            find_func(greeter_source, "Greet"), greeter_source
        )

        assert types == [
            TypeReference(package_qualifier="", type_name="Greeter"),
            TypeReference(package_qualifier="model", type_name="User"),
        ]
        assert calls == [
            CallReference(func_name="normalize"),
            CallReference(package_qualifier="fmt", func_name="Sprintf"),
        ]

    def test_slice_parameter_and_range_variables(self, collector, greeter_source):
        types, calls = collector.collect_references(
            find_func(greeter_source, "Process"), greeter_source
        )

        assert types == [TypeReference(package_qualifier="model", type_name="Item")]
        assert calls == []

    def test_ordering_is_deterministic(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "func Build(b *model.User, a model.Item, z Zed, y *Greeter) (Alpha, error) {\n"
            "\treturn Alpha{}, nil\n"
            "}\n",
        )
        func = find_func(source, "Build")

        types, calls = collector.collect_references(func, source)

        assert [(t.package_qualifier, t.type_name) for t in types] == [
            ("", "Alpha"),
            ("", "Greeter"),
            ("", "Zed"),
            ("model", "Item"),
            ("model", "User"),
        ]
        assert collector.collect_references(func, source) == (types, calls)

    def test_variable_method_calls_use_known_types(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "func Run() {\n"
            "\tg := &Greeter{}\n"
            "\tg.Greet(nil)\n"
            "\tvar u model.User\n"
            "\tu.Validate()\n"
            "\tx := load()\n"
            "\tx.Do()\n"
            "}\n",
        )

        types, calls = collector.collect_references(find_func(source, "Run"), source)

        assert types == [
            TypeReference(package_qualifier="", type_name="Greeter"),
            TypeReference(package_qualifier="model", type_name="User"),
        ]
        assert calls == [
            CallReference(func_name="load"),
            CallReference(type_name="Greeter", func_name="Greet"),
            CallReference(package_qualifier="model", type_name="User", func_name="Validate"),
        ]

    def test_builtins_predeclared_types_and_recursion_are_ignored(
        self, collector, go_parser, go_workspace
    ):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "func Fact(n int, names []string) int {\n"
            "\tif len(names) > 0 {\n"
            "\t\tpanic(\"unexpected\")\n"
            "\t}\n"
            "\tif n <= 1 {\n"
            "\t\treturn 1\n"
            "\t}\n"
            "\treturn n * Fact(n-1, names)\n"
            "}\n",
        )

        assert collector.collect_references(find_func(source, "Fact"), source) == ([], [])

    def test_type_parameters_are_not_types(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "func First[T any](items []T) T {\n\treturn items[0]\n}\n",
        )

        assert collector.collect_references(find_func(source, "First"), source) == ([], [])

    def test_local_variable_shadows_package_name(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "func Shadow(fmt *Greeter) string {\n\treturn fmt.Greet(nil)\n}\n",
        )

        _, calls = collector.collect_references(find_func(source, "Shadow"), source)

        assert calls == [CallReference(type_name="Greeter", func_name="Greet")]

    def test_conversion_to_file_type_is_a_type_reference(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser,
            go_workspace,
            "type Level int\n\n"
            "func Parse(v int) Level {\n\treturn Level(v)\n}\n",
        )

        types, calls = collector.collect_references(find_func(source, "Parse"), source)

        assert types == [TypeReference(type_name="Level")]
        assert calls == []


class TestBuildContext:
    """Test the assembled context blob."""

    def test_context_for_method(self, collector, greeter_source):
        context = collector.build_context(find_func(greeter_source, "Greet"), greeter_source)

        greeter_entry = "Model: Greeter\nDefinition:\ntype Greeter struct {\n\tPrefix string\n}\n"
        normalize_entry = "\n\nfunc normalize(s string) string {\n\treturn strings.TrimSpace(s)\n}"
        user_entry = "Package: model Model: User\nDefinition:\ntype User struct {\n\tName string\n}\n"

        assert context == greeter_entry + normalize_entry + user_entry

    def test_context_is_byte_identical_across_runs(self, import_resolver, symbol_locator, greeter_source):
        greet = find_func(greeter_source, "Greet")

        first = ReferenceCollector(import_resolver, symbol_locator).build_context(greet, greeter_source)
        second = ReferenceCollector(import_resolver, symbol_locator).build_context(greet, greeter_source)

        assert first == second

    def test_unresolved_references_are_left_out(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser, go_workspace, "func Lonely() {\n\tmissing()\n}\n"
        )

        assert collector.build_context(find_func(source, "Lonely"), source) == ""

    def test_unknown_qualifier_in_signature_fails(self, collector, go_parser, go_workspace):
        source = parse_in_greeter(
            go_parser, go_workspace, "func Bad(x nosuch.Thing) {}\n"
        )

        with pytest.raises(QualifierNotFoundError):
            collector.build_context(find_func(source, "Bad"), source)


def test_format_type_entry():
    local = TypeReference(type_name="T")
    external = TypeReference(package_qualifier="pkg", type_name="T")

    assert format_type_entry(local, "type T int") == "Model: T\nDefinition:\ntype T int\n"
    assert (
        format_type_entry(external, "type T int")
        == "Package: pkg Model: T\nDefinition:\ntype T int\n"
    )
