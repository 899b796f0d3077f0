# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the wRPC recursive-descent parser."""

import pytest

from wrpc.model.region import Position
from wrpc.model.source import (
    Data,
    Enum,
    KeywordExpr,
    ListExpr,
    MapExpr,
    Module,
    NumberExpr,
    Service,
    StringExpr,
    SymbolExpr,
)
from wrpc.parser.errors import MAX_EXPR_DEPTH, GrammarError, GrammarErrorKind, ParseError
from wrpc.parser.lexer import TokenError, TokenErrorKind
from wrpc.parser.parser import parse

K = GrammarErrorKind

# ###############
# Test Helpers
# ###############


def _parse(source: str) -> Module:
    return parse(source)


def _errors(source: str) -> list[GrammarError]:
    with pytest.raises(ParseError) as exc_info:
        parse(source)
    return exc_info.value.errors


def _single_error(source: str) -> GrammarError:
    errors = _errors(source)
    assert len(errors) == 1, errors
    return errors[0]


def _kinds(error: GrammarError) -> list[GrammarErrorKind]:
    return [e.kind for e in error.chain()]


def _data(source: str) -> Data:
    decl = _parse(source).declarations[0]
    assert isinstance(decl, Data)
    return decl


ADDRESS = """\
data Address {
  #(check (or (= .country "DE") (= .country "CH")))
  country: String,
}
"""

# ###############
# Empty Input
# ###############


class TestEmptyInput:
    def test_empty_source(self) -> None:
        assert _parse("").declarations == []

    def test_only_comments(self) -> None:
        assert _parse("// nothing here\n// at all\n").declarations == []

    def test_idempotent(self) -> None:
        assert _parse(ADDRESS) == _parse(ADDRESS)


# ###############
# Data Declarations
# ###############


class TestDataDeclarations:
    def test_without_braces(self) -> None:
        data = _data("data Test")
        assert data.name.value == "Test"
        assert data.properties == []

    def test_with_empty_braces(self) -> None:
        assert _data("data Test {}").properties == []

    def test_unterminated_body(self) -> None:
        error = _single_error("data Test {")
        assert _kinds(error) == [K.DATA_END, K.UNEXPECTED_EOF]
        assert error.name == "Test"

    def test_properties_with_and_without_commas(self) -> None:
        data = _data("data User {\n  id: Int64,\n  name: String\n  email: String,\n}")
        assert [p.name.value for p in data.properties] == ["id", "name", "email"]
        assert [p.type.name.value for p in data.properties] == ["Int64", "String", "String"]

    def test_name_region(self) -> None:
        data = _data("data  Test")
        assert data.name.region.start == Position(line=1, column=7)
        assert data.name.region.end == Position(line=1, column=11)

    def test_type_variables(self) -> None:
        data = _data("data Page<T, U> { items: List<T> }")
        assert [v.value for v in data.type_variables] == ["T", "U"]

    def test_nested_type_arguments(self) -> None:
        data = _data("data A { lookup: Map<String, List<Int32>> }")
        type_ = data.properties[0].type
        assert type_.name.value == "Map"
        assert [v.name.value for v in type_.variables] == ["String", "List"]
        assert type_.variables[1].variables[0].name.value == "Int32"

    def test_trailing_comment_in_body_is_ignored(self) -> None:
        data = _data("data A {\n  x: String\n  // trailing\n}")
        assert len(data.properties) == 1


# ###############
# Doc Comments
# ###############


class TestDocComments:
    def test_declaration_doc_comment_is_trimmed_and_joined(self) -> None:
        data = _data("// Line one\n//\n//   Line two  \ndata A")
        assert data.doc_comment == "Line one\nLine two"

    def test_property_doc_comment(self) -> None:
        data = _data("data A {\n  // The identifier.\n  id: Int64\n}")
        assert data.properties[0].doc_comment == "The identifier."

    def test_no_doc_comment(self) -> None:
        assert _data("data A").doc_comment is None


# ###############
# Enum Declarations
# ###############


class TestEnumDeclarations:
    def test_simple_enum(self) -> None:
        decl = _parse("enum Color { Red, Green Blue }").declarations[0]
        assert isinstance(decl, Enum)
        assert [v.name.value for v in decl.variants] == ["Red", "Green", "Blue"]
        assert all(not v.properties for v in decl.variants)

    def test_variants_with_payload(self) -> None:
        decl = _parse("enum Shape {\n  Circle { radius: Float64 }\n  Square { side: Float64 },\n}").declarations[0]
        assert isinstance(decl, Enum)
        assert [v.properties[0].name.value for v in decl.variants] == ["radius", "side"]

    def test_generic_enum(self) -> None:
        decl = _parse("enum Maybe<T> { Some { value: T } None }").declarations[0]
        assert isinstance(decl, Enum)
        assert [v.value for v in decl.type_variables] == ["T"]

    def test_variant_annotation_and_comment(self) -> None:
        decl = _parse("enum E {\n  // First.\n  #deprecated\n  A\n}").declarations[0]
        assert isinstance(decl, Enum)
        variant = decl.variants[0]
        assert variant.doc_comment == "First."
        assert str(variant.annotations[0].expr) == "deprecated"

    def test_enum_requires_braces(self) -> None:
        error = _single_error("enum E")
        assert _kinds(error) == [K.ENUM_START, K.UNEXPECTED_EOF]

    def test_bad_variant(self) -> None:
        error = _single_error("enum E { A { x } }")
        assert _kinds(error) == [K.ENUM_BAD_VARIANT, K.VARIANT_BAD_PROPERTY, K.PROPERTY_MISSING_COLON]


# ###############
# Service Declarations
# ###############


class TestServiceDeclarations:
    def test_methods(self) -> None:
        decl = _parse("service RandomService {\n  def random(seed: Int32): Int32\n  def ping()\n}").declarations[0]
        assert isinstance(decl, Service)
        random, ping = decl.methods
        assert random.name.value == "random"
        assert [p.name.value for p in random.parameters] == ["seed"]
        assert random.return_type is not None
        assert random.return_type.name.value == "Int32"
        assert ping.parameters == []
        assert ping.return_type is None

    def test_method_doc_comment_and_annotation(self) -> None:
        decl = _parse('service S {\n  // Says hi.\n  #(http :get "/hi")\n  def hi()\n}').declarations[0]
        assert isinstance(decl, Service)
        method = decl.methods[0]
        assert method.doc_comment == "Says hi."
        assert str(method.annotations[0].expr) == '(http :get "/hi")'

    def test_missing_def(self) -> None:
        error = _single_error("service S { random() }")
        assert _kinds(error) == [K.SERVICE_BAD_METHOD, K.METHOD_MISSING_DEF]
        assert error.name == "S"
        assert error.position == Position(line=1, column=13)

    def test_missing_parameter_list(self) -> None:
        error = _single_error("service S { def random: Int32 }")
        assert _kinds(error) == [K.SERVICE_BAD_METHOD, K.METHOD_MISSING_PARAM_START]
        assert error.chain()[1].name == "random"

    def test_unclosed_parameter_list(self) -> None:
        error = _single_error("service S { def random(seed: Int32 }")
        assert _kinds(error) == [K.SERVICE_BAD_METHOD, K.METHOD_MISSING_PARAM_END]

    def test_service_requires_braces(self) -> None:
        error = _single_error("service S def x()")
        assert _kinds(error) == [K.SERVICE_START]


# ###############
# Annotations
# ###############


class TestAnnotations:
    def test_check_annotation_structure(self) -> None:
        prop = _data(ADDRESS).properties[0]
        expr = prop.annotations[0].expr
        assert isinstance(expr, ListExpr)
        assert isinstance(expr.items[0], SymbolExpr)
        assert expr.items[0].value == "check"
        assert str(expr) == '(check (or (= .country "DE") (= .country "CH")))'

    def test_literals(self) -> None:
        data = _data('#(x 1 -2.5 "s" :k true)\ndata A')
        expr = data.annotations[0].expr
        assert isinstance(expr, ListExpr)
        number, negative, string, keyword, boolean = expr.items[1:]
        assert isinstance(number, NumberExpr) and number.value == 1
        assert isinstance(negative, NumberExpr) and negative.value == -2.5
        assert isinstance(string, StringExpr) and string.value == "s"
        assert isinstance(keyword, KeywordExpr) and keyword.value == "k"
        assert str(expr) == '(x 1 -2.5 "s" :k true)'

    def test_angle_brackets_are_symbols_in_expressions(self) -> None:
        data = _data("data A {\n  #(check (< 0 .age))\n  age: Int32\n}")
        expr = data.properties[0].annotations[0].expr
        assert str(expr) == "(check (< 0 .age))"

    def test_map_expression(self) -> None:
        data = _data("#{:a 1 :b 2}\ndata A")
        expr = data.annotations[0].expr
        assert isinstance(expr, MapExpr)
        assert len(expr.entries) == 2
        assert str(expr) == "{:a 1 :b 2}"

    def test_list_region_spans_brackets(self) -> None:
        expr = _data("#(a b)\ndata A").annotations[0].expr
        assert expr.region.start == Position(line=1, column=2)
        assert expr.region.end == Position(line=1, column=7)

    def test_multiple_annotations_keep_order(self) -> None:
        data = _data("#first\n// Doc.\n#second\ndata A")
        assert [str(a.expr) for a in data.annotations] == ["first", "second"]
        assert data.doc_comment == "Doc."

    def test_map_missing_value(self) -> None:
        error = _single_error("#{:a}\ndata A")
        assert _kinds(error) == [K.DECL_BAD_ANNOTATION, K.EXPR_MAP_MISSING_VALUE]

    def test_unclosed_list_points_at_opening_parenthesis(self) -> None:
        error = _single_error("#(check (len .x)")
        assert _kinds(error) == [K.DECL_BAD_ANNOTATION, K.EXPR_UNCLOSED_LIST, K.UNEXPECTED_EOF]
        assert error.position == Position(line=1, column=2)

    def test_dangling_annotation_at_end_of_file(self) -> None:
        errors = _errors("data A\n#(x)")
        assert len(errors) == 1
        assert _kinds(errors[0]) == [K.DECL_START, K.UNEXPECTED_EOF]


# ###############
# Errors and Recovery
# ###############


class TestErrorRecovery:
    def test_one_error_per_broken_declaration(self) -> None:
        errors = _errors("data A {\n  x: \n}\ndata B {\n  y:\n}")
        assert len(errors) == 2
        assert [e.name for e in errors] == ["A", "B"]
        for error in errors:
            assert _kinds(error) == [K.DATA_BAD_PROPERTY, K.PROPERTY_BAD_TYPE, K.TYPE_NAME]
        assert errors[0].position == Position(line=3, column=1)
        assert errors[1].position == Position(line=6, column=1)

    def test_valid_declarations_around_broken_one(self) -> None:
        errors = _errors("data A\nnonsense here\ndata B")
        assert len(errors) == 1
        assert errors[0].kind == K.DECL_START
        assert errors[0].position == Position(line=2, column=1)

    def test_missing_data_name(self) -> None:
        error = _single_error("data { }")
        assert _kinds(error) == [K.DATA_NAME]

    def test_missing_colon_carries_property_name(self) -> None:
        error = _single_error("data A { x String }")
        inner = error.chain()[-1]
        assert inner.kind == K.PROPERTY_MISSING_COLON
        assert inner.name == "x"

    def test_token_error_at_declaration_start(self) -> None:
        error = _single_error("@\ndata A")
        assert error.kind == K.DECL_START
        assert isinstance(error.cause, TokenError)
        assert error.cause.kind == TokenErrorKind.BAD_CHAR

    def test_token_error_is_root_cause(self) -> None:
        error = _single_error("data A { x: 1.2.3 }")
        root = error.root_cause()
        assert isinstance(root, TokenError)
        assert root.kind == TokenErrorKind.BAD_NUMBER

    def test_unclosed_type_arguments(self) -> None:
        error = _single_error("data A { x: Map<String, Int32 }")
        assert _kinds(error) == [K.DATA_BAD_PROPERTY, K.PROPERTY_BAD_TYPE, K.TYPE_ARGUMENTS_END]

    def test_parse_error_message_and_filename(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("data", filename="api.wrpc")
        assert exc_info.value.filename == "api.wrpc"
        assert "1 syntax error(s)" in str(exc_info.value)

    def test_expression_nesting_limit(self) -> None:
        # The surrounding `check` list counts as the first level.
        nested = "(not " * MAX_EXPR_DEPTH + ".a" + ")" * MAX_EXPR_DEPTH
        errors = _errors(f"data A {{\n  #(check {nested})\n  a: Boolean\n}}\ndata B")
        assert len(errors) == 1
        assert _kinds(errors[0])[-1] == K.EXPR_TOO_DEEP
        assert errors[0].chain()[-1].position == Position(line=2, column=11 + 5 * (MAX_EXPR_DEPTH - 1))

    def test_expression_at_nesting_limit(self) -> None:
        nested = "(not " * (MAX_EXPR_DEPTH - 1) + ".a" + ")" * (MAX_EXPR_DEPTH - 1)
        data = _data(f"data A {{\n  #(check {nested})\n  a: Boolean\n}}")
        assert len(data.properties[0].annotations) == 1


# ###############
# Reports
# ###############


class TestGrammarErrorReports:
    def test_report_uses_innermost_message_and_context(self) -> None:
        error = _errors("data A {\n  x: \n}")[0]
        report = error.to_report("api.wrpc")
        assert report.title == "MISSING TYPE"
        texts = [block.text for block in report.blocks if block.kind == "text"]
        assert any("the type of property `x`, inside the data declaration `A`" in text for text in texts)
        assert report.regions[0].start == Position(line=3, column=1)

    def test_end_of_file_is_explained_by_enclosing_production(self) -> None:
        report = _single_error("data Test {").to_report()
        assert report.title == "UNEXPECTED END OF DATA DECLARATION"

    def test_token_error_text_is_included(self) -> None:
        report = _single_error('data A { x: "open').to_report()
        texts = [block.text for block in report.blocks if block.kind == "text"]
        assert any("never closed" in text for text in texts)


# ###############
# Serialization
# ###############


class TestSerialization:
    def test_module_json_round_trip(self) -> None:
        module = _parse(ADDRESS + "enum E { A { x: Int32 } }\nservice S { def f(a: List<E>): E }")
        assert Module.model_validate_json(module.model_dump_json()) == module
