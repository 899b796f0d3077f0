# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for canonicalization of parsed wRPC modules."""

import pytest

from wrpc.compiler.canonicalize import canonicalize
from wrpc.compiler.errors import CanonicalizeError, ConstructKind, SemanticError, SemanticErrorKind
from wrpc.model import canonical
from wrpc.model.constraints import (
    Access,
    And,
    Blank,
    BooleanLiteral,
    Eq,
    Ge,
    Gt,
    Len,
    Lt,
    MapConstraint,
    Not,
    NumberLiteral,
    Or,
    StringLiteral,
    Xor,
)
from wrpc.parser.parser import parse

E = SemanticErrorKind

# ###############
# Test Helpers
# ###############


def _canon(source: str) -> canonical.Module:
    return canonicalize(parse(source))


def _errors(source: str) -> list[SemanticError]:
    with pytest.raises(CanonicalizeError) as exc_info:
        _canon(source)
    return exc_info.value.errors


def _single_error(source: str) -> SemanticError:
    errors = _errors(source)
    assert len(errors) == 1, errors
    return errors[0]


def _context(error: SemanticError) -> list[tuple[ConstructKind, str]]:
    return [(ctx.kind, ctx.name.value) for ctx in error.context]


def _property_constraints(source: str) -> list:
    record = next(iter(_canon(source).records.values()))
    return record.properties[0].constraints


def _prop_type(type_source: str) -> canonical.TypeRef:
    record = _canon(f"data A {{ x: {type_source} }}").records["A"]
    return record.properties[0].type


def _string() -> canonical.PrimitiveTypeRef:
    return canonical.PrimitiveTypeRef(primitive=canonical.PrimitiveType.STRING)


def _int32() -> canonical.PrimitiveTypeRef:
    return canonical.PrimitiveTypeRef(primitive=canonical.PrimitiveType.INT32)


ADDRESS = """\
data Address {
  #(check (or (= .country "DE") (= .country "CH")))
  country: String,
}
"""

ZIPCODE = """\
data Address {
  #(check (or (= .country "DE") (<= (len .zipcode) 5)))
  zipcode: String,
  country: String,
}
"""

# ###############
# Records
# ###############


class TestRecords:
    def test_address_end_to_end(self) -> None:
        module = _canon(ADDRESS)
        record = module.records["Address"]
        assert record.name.value == "Address"
        assert [p.name.value for p in record.properties] == ["country"]
        assert record.properties[0].type == _string()
        expected = Or(
            operands=[
                Eq(operands=[Access(property="country"), StringLiteral(value="DE")]),
                Eq(operands=[Access(property="country"), StringLiteral(value="CH")]),
            ]
        )
        assert record.properties[0].constraints == [expected]
        assert record.constraints == [expected]
        assert record.property_validation_order == ["country"]

    def test_dependency_comes_before_dependent(self) -> None:
        record = _canon(ZIPCODE).records["Address"]
        assert record.get_property("zipcode") is not None
        assert record.get_property("zipcode").deps == ("country",)
        order = record.property_validation_order
        assert order.index("country") < order.index("zipcode")

    def test_self_reference_is_not_a_dependency(self) -> None:
        record = _canon(ADDRESS).records["Address"]
        assert record.properties[0].deps == ()

    def test_deps_follow_declaration_order(self) -> None:
        source = "data A {\n  #(check (< .e .c .a .d .b))\n  a: Int32, b: Int32, c: Int32, d: Int32, e: Int32\n}"
        record = _canon(source).records["A"]
        assert record.properties[0].deps == ("b", "c", "d", "e")

    def test_order_without_dependencies_follows_declaration(self) -> None:
        record = _canon("data A { c: Int32, a: Int32, b: Int32 }").records["A"]
        assert record.property_validation_order == ["c", "a", "b"]

    def test_record_level_constraints_are_appended(self) -> None:
        source = "#(check (< .min .max))\ndata Range {\n  #(check (>= .min 0))\n  min: Int32\n  max: Int32\n}"
        record = _canon(source).records["Range"]
        assert record.constraints == [
            Ge(operands=[Access(property="min"), NumberLiteral(value=0)]),
            Lt(operands=[Access(property="min"), Access(property="max")]),
        ]
        assert isinstance(record.annotations[0], canonical.CheckAnnotation)

    def test_comment_and_type_variables(self) -> None:
        record = _canon("// A page of results.\ndata Page<T> { items: List<T> }").records["Page"]
        assert record.comment == "A page of results."
        assert record.type_variables == ["T"]
        assert record.properties[0].type == canonical.ListTypeRef(
            element_type=canonical.NamedTypeRef(name="T", arguments=[])
        )

    def test_forward_declaration(self) -> None:
        record = _canon("data Empty").records["Empty"]
        assert record.properties == []
        assert record.property_validation_order == []


# ###############
# Types
# ###############


class TestTypes:
    @pytest.mark.parametrize(
        ("name", "primitive"),
        [
            ("String", canonical.PrimitiveType.STRING),
            ("Boolean", canonical.PrimitiveType.BOOLEAN),
            ("Int32", canonical.PrimitiveType.INT32),
            ("Int64", canonical.PrimitiveType.INT64),
            ("Float32", canonical.PrimitiveType.FLOAT32),
            ("Float64", canonical.PrimitiveType.FLOAT64),
        ],
    )
    def test_primitives(self, name: str, primitive: canonical.PrimitiveType) -> None:
        assert _prop_type(name) == canonical.PrimitiveTypeRef(primitive=primitive)

    def test_map(self) -> None:
        assert _prop_type("Map<String, Int32>") == canonical.MapTypeRef(key_type=_string(), value_type=_int32())

    def test_result_error_type_comes_first(self) -> None:
        assert _prop_type("Result<Failure, Int32>") == canonical.ResultTypeRef(
            error_type=canonical.NamedTypeRef(name="Failure"),
            value_type=_int32(),
        )

    def test_single_argument_builtins(self) -> None:
        assert _prop_type("List<String>") == canonical.ListTypeRef(element_type=_string())
        assert _prop_type("Set<String>") == canonical.SetTypeRef(element_type=_string())
        assert _prop_type("Option<String>") == canonical.OptionTypeRef(inner_type=_string())

    def test_unknown_name_becomes_reference(self) -> None:
        assert _prop_type("Foo") == canonical.NamedTypeRef(name="Foo", arguments=[])

    def test_reference_keeps_arbitrary_arguments(self) -> None:
        assert _prop_type("Pair<String, Int32, Foo>") == canonical.NamedTypeRef(
            name="Pair",
            arguments=[_string(), _int32(), canonical.NamedTypeRef(name="Foo")],
        )

    def test_nested(self) -> None:
        assert _prop_type("Option<List<Map<String, Int32>>>") == canonical.OptionTypeRef(
            inner_type=canonical.ListTypeRef(
                element_type=canonical.MapTypeRef(key_type=_string(), value_type=_int32())
            )
        )

    def test_builtin_arity_is_checked(self) -> None:
        error = _single_error("data A { x: Map<String> }")
        assert error.kind == E.TYPE_ARITY
        assert (error.symbol, error.expected, error.actual) == ("Map", 2, 1)
        assert _context(error) == [(ConstructKind.RECORD, "A"), (ConstructKind.PROPERTY, "x")]

    def test_primitive_takes_no_arguments(self) -> None:
        error = _single_error("data A { x: String<Int32> }")
        assert error.kind == E.TYPE_ARITY
        assert error.expected == 0


# ###############
# Enums
# ###############


class TestEnums:
    def test_simple_enum(self) -> None:
        enum = _canon("enum Color { Red Green Blue }").enums["Color"]
        assert enum.is_simple
        assert not enum.is_sealed
        assert [v.name.value for v in enum.variants] == ["Red", "Green", "Blue"]

    def test_sealed_enum(self) -> None:
        enum = _canon("enum Shape { Circle { radius: Float64 } Unknown }").enums["Shape"]
        assert enum.is_sealed
        assert not enum.is_simple

    def test_variant_constraints_and_order(self) -> None:
        source = """\
enum Shape {
  Rect {
    #(check (> .width .height))
    height: Float64
    width: Float64
  }
}
"""
        variant = _canon(source).enums["Shape"].variants[0]
        assert variant.constraints == [Gt(operands=[Access(property="width"), Access(property="height")])]
        assert variant.property_validation_order == ["width", "height"]

    def test_generic_enum(self) -> None:
        enum = _canon("enum Maybe<T> { Some { value: T } Nothing }").enums["Maybe"]
        assert enum.type_variables == ["T"]


# ###############
# Services
# ###############


class TestServices:
    def test_get_method(self) -> None:
        module = _canon("service RandomService {\n  def random(seed: Int32): Int32\n}")
        method = module.get_method("RandomService", "random")
        assert method is not None
        assert method.parameters[0].name.value == "seed"
        assert method.parameters[0].type == _int32()
        assert method.return_type == _int32()
        assert module.get_method("RandomService", "missing") is None
        assert module.get_method("Missing", "random") is None

    def test_parameter_constraints(self) -> None:
        module = _canon("service S {\n  def f(\n    #(check (> .n 0))\n    n: Int32\n  )\n}")
        parameter = module.get_method("S", "f").parameters[0]
        assert parameter.constraints == [Gt(operands=[Access(property="n"), NumberLiteral(value=0)])]

    def test_custom_service_annotation_is_kept(self) -> None:
        service = _canon('#(path "/api")\nservice S {}').services["S"]
        assert isinstance(service.annotations[0], canonical.CustomAnnotation)
        assert str(service.annotations[0].expr) == '(path "/api")'

    def test_check_on_service_is_rejected(self) -> None:
        error = _single_error("#(check true)\nservice S {}")
        assert error.kind == E.INVALID_ANNOTATION
        assert _context(error) == [(ConstructKind.SERVICE, "S")]


# ###############
# Annotations and Constraints
# ###############


class TestConstraints:
    def test_literals(self) -> None:
        constraints = _property_constraints(
            'data A {\n  #(check (= .x :tag) (= .x "s") (= .x true) (= .x 1.5))\n  x: String\n}'
        )
        assert constraints == [
            Eq(operands=[Access(property="x"), StringLiteral(value="tag")]),
            Eq(operands=[Access(property="x"), StringLiteral(value="s")]),
            Eq(operands=[Access(property="x"), BooleanLiteral(value=True)]),
            Eq(operands=[Access(property="x"), NumberLiteral(value=1.5)]),
        ]

    def test_boolean_and_unary_constraints(self) -> None:
        source = "data A {\n  #(check (xor (not (blank .x)) (and (> (len .x) 3))))\n  x: String\n}"
        assert _property_constraints(source) == [
            Xor(
                operands=[
                    Not(operand=Blank(operand=Access(property="x"))),
                    And(operands=[Gt(operands=[Len(operand=Access(property="x")), NumberLiteral(value=3)])]),
                ]
            )
        ]

    def test_map_literal(self) -> None:
        source = "data A {\n  #(check (= .x {:a 1}))\n  x: Map<String, Int32>\n}"
        assert _property_constraints(source) == [
            Eq(
                operands=[
                    Access(property="x"),
                    MapConstraint(entries=[(StringLiteral(value="a"), NumberLiteral(value=1))]),
                ]
            )
        ]

    def test_custom_annotations_are_kept_verbatim(self) -> None:
        record = _canon("data A {\n  #deprecated\n  #(json :rename \"b\")\n  a: String\n}").records["A"]
        annotations = record.properties[0].annotations
        assert all(isinstance(a, canonical.CustomAnnotation) for a in annotations)
        assert [str(a.expr) for a in annotations] == ["deprecated", '(json :rename "b")']
        assert record.properties[0].constraints == []

    @pytest.mark.parametrize(
        ("check", "kind", "symbol"),
        [
            ("(foo .x)", E.UNKNOWN_CONSTRAINT, "foo"),
            ("(= x 1)", E.UNKNOWN_SYMBOL, "x"),
            ("(= .missing 1)", E.UNKNOWN_PROPERTY, "missing"),
            ("()", E.EMPTY_CONSTRAINT, None),
            ("(1 2)", E.INVALID_CONSTRAINT, None),
        ],
    )
    def test_invalid_constraint(self, check: str, kind: SemanticErrorKind, symbol: str | None) -> None:
        error = _single_error(f"data A {{\n  #(check {check})\n  x: String\n}}")
        assert error.kind == kind
        assert error.symbol == symbol
        assert _context(error) == [(ConstructKind.RECORD, "A"), (ConstructKind.PROPERTY, "x")]

    def test_unary_arity(self) -> None:
        error = _single_error("data A {\n  #(check (len .x .y))\n  x: String\n  y: String\n}")
        assert error.kind == E.CONSTRAINT_ARITY
        assert (error.symbol, error.expected, error.actual, error.at_least) == ("len", 1, 2, False)

    def test_comparison_needs_two_operands(self) -> None:
        error = _single_error("data A {\n  #(check (< .x))\n  x: Int32\n}")
        assert error.kind == E.CONSTRAINT_ARITY
        assert (error.expected, error.actual, error.at_least) == (2, 1, True)

    def test_empty_annotation(self) -> None:
        error = _single_error("data A {\n  #()\n  x: String\n}")
        assert error.kind == E.EMPTY_ANNOTATION

    def test_every_bad_operand_is_reported(self) -> None:
        errors = _errors("data A {\n  #(check (and (= a 1) (= b 2)))\n  x: String\n}")
        assert [(e.kind, e.symbol) for e in errors] == [(E.UNKNOWN_SYMBOL, "a"), (E.UNKNOWN_SYMBOL, "b")]


# ###############
# Cycles and Duplicates
# ###############


class TestCyclesAndDuplicates:
    def test_dependency_cycle_is_reported(self) -> None:
        source = "data A {\n  #(check (< .a .b))\n  a: Int32\n  #(check (> .b .a))\n  b: Int32\n}"
        error = _single_error(source)
        assert error.kind == E.DEPENDENCY_CYCLE
        assert error.names == ("a", "b", "a")
        assert error.region.start.line == 3
        assert _context(error) == [(ConstructKind.RECORD, "A")]

    def test_duplicate_declarations(self) -> None:
        error = _single_error("data A\nenum A { X }")
        assert error.kind == E.DUPLICATE_NAME
        assert error.symbol == "A"
        assert error.context == ()
        assert error.region.start.line == 2

    def test_duplicate_properties(self) -> None:
        error = _single_error("data A { x: Int32, x: String }")
        assert error.kind == E.DUPLICATE_NAME
        assert _context(error) == [(ConstructKind.RECORD, "A")]

    def test_duplicate_variants(self) -> None:
        error = _single_error("enum E { A B A }")
        assert error.kind == E.DUPLICATE_NAME
        assert _context(error) == [(ConstructKind.ENUM, "E")]

    def test_duplicate_methods_and_parameters(self) -> None:
        errors = _errors("service S {\n  def f()\n  def f()\n  def g(a: Int32, a: Int32)\n}")
        assert [(e.kind, e.symbol) for e in errors] == [(E.DUPLICATE_NAME, "f"), (E.DUPLICATE_NAME, "a")]
        assert _context(errors[1]) == [(ConstructKind.SERVICE, "S"), (ConstructKind.METHOD, "g")]


# ###############
# Error Collection
# ###############


class TestErrorCollection:
    def test_errors_from_all_declarations_are_collected(self) -> None:
        source = "data A { x: Map<String> }\ndata Ok { y: Int32 }\nenum B { V { z: List } }"
        errors = _errors(source)
        assert [_context(e)[0] for e in errors] == [(ConstructKind.RECORD, "A"), (ConstructKind.ENUM, "B")]

    def test_report_names_context(self) -> None:
        error = _single_error("data A {\n  #(check (= .missing 1))\n  x: String\n}")
        report = error.to_report("api.wrpc")
        assert report.title == "UNKNOWN PROPERTY"
        texts = [block.text for block in report.blocks if block.kind == "text"]
        assert "This happened in the property `x`, inside the record `A`." in texts
        assert report.regions == [error.region]

    def test_error_message_carries_count(self) -> None:
        with pytest.raises(CanonicalizeError) as exc_info:
            _canon("data A { x: Map }\ndata B { y: List }")
        assert "2 canonicalization error(s)" in str(exc_info.value)


# ###############
# Module Accessors
# ###############


class TestModuleAccessors:
    def test_sorted_accessors(self) -> None:
        module = _canon("data B\ndata A\nenum Z { X }\nenum Y { X }\nservice T {}\nservice S {}")
        assert [r.name.value for r in module.get_sorted_records()] == ["A", "B"]
        assert [e.name.value for e in module.get_sorted_enums()] == ["Y", "Z"]
        assert [s.name.value for s in module.get_sorted_services()] == ["S", "T"]
