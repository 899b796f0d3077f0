# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Canonicalization of parsed modules.

Turns the source AST into the canonical model generators consume:

- ``check`` annotations become typed constraints; other annotations are
  kept verbatim as custom annotations.
- Type references are resolved to built-in types or named references.
- Each property gets the set of sibling properties its constraints read,
  and every record and variant gets a validation order derived from those
  dependencies.
- Duplicate names, unknown property accesses and dependency cycles are
  reported.

Declarations are canonicalized independently and every error in the module
is collected before :class:`CanonicalizeError` is raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from wrpc.compiler.errors import (
    CanonicalizeError,
    ConstructKind,
    Context,
    SemanticError,
    SemanticErrorKind,
)
from wrpc.compiler.ordering import DependencyCycle, topological_order
from wrpc.model import canonical, source
from wrpc.model import constraints as c
from wrpc.model.region import Region

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def canonicalize(module: source.Module, filename: str | None = None) -> canonical.Module:
    """Canonicalize a parsed module.

    Args:
        module: The source module returned by :func:`wrpc.parser.parse`.
        filename: Name of the file, attached to the raised error for reporting.

    Returns:
        The canonical module.

    Raises:
        CanonicalizeError: If any declaration fails. The exception carries
            every error found in the module.
    """
    result, errors = _Canonicalizer().module(module)
    if errors:
        logger.debug("canonicalized %s with %d error(s)", filename or "<string>", len(errors))
        raise CanonicalizeError(errors, filename)
    logger.debug(
        "canonicalized %s: %d record(s), %d enum(s), %d service(s)",
        filename or "<string>",
        len(result.records),
        len(result.enums),
        len(result.services),
    )
    return result


# ################
# Implementation
# ################

E = SemanticErrorKind

_PRIMITIVES: dict[str, canonical.PrimitiveType] = {primitive.value: primitive for primitive in canonical.PrimitiveType}

# Built-in generic types and the number of type arguments each takes.
_BUILTIN_ARITY: dict[str, int] = {
    "Map": 2,
    "Result": 2,
    "List": 1,
    "Set": 1,
    "Option": 1,
}

_VARIADIC: dict[str, tuple[type, int]] = {
    "<": (c.Lt, 2),
    "<=": (c.Le, 2),
    "=": (c.Eq, 2),
    ">=": (c.Ge, 2),
    ">": (c.Gt, 2),
    "or": (c.Or, 1),
    "and": (c.And, 1),
    "xor": (c.Xor, 1),
}

_UNARY: dict[str, type] = {
    "len": c.Len,
    "blank": c.Blank,
    "not": c.Not,
}

_CHECK = "check"


class _Canonicalizer:
    """Walks one source module, collecting errors instead of stopping at the first."""

    def __init__(self) -> None:
        self._errors: list[SemanticError] = []
        self._context: list[Context] = []

    def module(self, module: source.Module) -> tuple[canonical.Module, list[SemanticError]]:
        self._check_duplicates([decl.name for decl in module.declarations])

        records: dict[str, canonical.Record] = {}
        enums: dict[str, canonical.Enum] = {}
        services: dict[str, canonical.Service] = {}
        for decl in module.declarations:
            if isinstance(decl, source.Data):
                record = self._record(decl)
                if record is not None:
                    records.setdefault(decl.name.value, record)
            elif isinstance(decl, source.Enum):
                enum = self._enum(decl)
                if enum is not None:
                    enums.setdefault(decl.name.value, enum)
            else:
                service = self._service(decl)
                if service is not None:
                    services.setdefault(decl.name.value, service)

        result = canonical.Module(records=records, enums=enums, services=services)
        return result, self._errors

    # ------------------------------------------------------------------
    # Error bookkeeping
    # ------------------------------------------------------------------

    def _error(self, kind: SemanticErrorKind, region: Region, **fields: object) -> None:
        self._errors.append(SemanticError(kind, region, tuple(self._context), **fields))

    @contextmanager
    def _within(self, kind: ConstructKind, name: source.Name) -> Iterator[int]:
        """Tag errors raised inside the block with *kind* and *name*.

        Yields the error count at entry so callers can tell whether the
        construct produced new errors.
        """
        self._context.append(Context(kind, name))
        try:
            yield len(self._errors)
        finally:
            self._context.pop()

    def _failed_since(self, mark: int) -> bool:
        return len(self._errors) > mark

    def _check_duplicates(self, names: Sequence[source.Name]) -> None:
        """Report every name that repeats an earlier one in *names*."""
        seen: set[str] = set()
        for name in names:
            if name.value in seen:
                self._error(E.DUPLICATE_NAME, name.region, symbol=name.value)
            seen.add(name.value)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _record(self, data: source.Data) -> canonical.Record | None:
        with self._within(ConstructKind.RECORD, data.name) as mark:
            properties, order = self._property_block(data.properties)
            scope = {prop.name.value for prop in data.properties}
            annotations, own_constraints = self._annotations(data.annotations, scope)
            if self._failed_since(mark):
                return None

        flattened = [constraint for prop in properties for constraint in prop.constraints]
        return canonical.Record(
            name=data.name,
            comment=data.doc_comment,
            annotations=annotations,
            properties=properties,
            constraints=flattened + own_constraints,
            property_validation_order=order,
            type_variables=[var.value for var in data.type_variables],
        )

    def _enum(self, enum: source.Enum) -> canonical.Enum | None:
        with self._within(ConstructKind.ENUM, enum.name) as mark:
            self._check_duplicates([variant.name for variant in enum.variants])
            variants = [self._variant(variant) for variant in enum.variants]
            annotations, constraints = self._annotations(enum.annotations, set())
            if self._failed_since(mark):
                return None

        return canonical.Enum(
            name=enum.name,
            comment=enum.doc_comment,
            annotations=annotations,
            variants=[variant for variant in variants if variant is not None],
            constraints=constraints,
            type_variables=[var.value for var in enum.type_variables],
        )

    def _variant(self, variant: source.Variant) -> canonical.Variant | None:
        with self._within(ConstructKind.VARIANT, variant.name) as mark:
            properties, order = self._property_block(variant.properties)
            scope = {prop.name.value for prop in variant.properties}
            annotations, own_constraints = self._annotations(variant.annotations, scope)
            if self._failed_since(mark):
                return None

        flattened = [constraint for prop in properties for constraint in prop.constraints]
        return canonical.Variant(
            name=variant.name,
            comment=variant.doc_comment,
            annotations=annotations,
            properties=properties,
            constraints=flattened + own_constraints,
            property_validation_order=order,
        )

    def _service(self, service: source.Service) -> canonical.Service | None:
        with self._within(ConstructKind.SERVICE, service.name) as mark:
            self._check_duplicates([method.name for method in service.methods])
            methods = [self._method(method) for method in service.methods]
            for annotation in service.annotations:
                if _is_check(annotation.expr):
                    self._error(E.INVALID_ANNOTATION, annotation.expr.region, symbol=_CHECK)
            annotations, _ = self._annotations(
                [annotation for annotation in service.annotations if not _is_check(annotation.expr)],
                set(),
            )
            if self._failed_since(mark):
                return None

        return canonical.Service(
            name=service.name,
            comment=service.doc_comment,
            annotations=annotations,
            methods={method.name.value: method for method in methods if method is not None},
        )

    def _method(self, method: source.Method) -> canonical.Method | None:
        with self._within(ConstructKind.METHOD, method.name) as mark:
            self._check_duplicates([param.name for param in method.parameters])
            scope = {param.name.value for param in method.parameters}
            parameters = [self._parameter(param, scope) for param in method.parameters]
            annotations, _ = self._annotations(method.annotations, scope)
            return_type = self._type(method.return_type) if method.return_type is not None else None
            if self._failed_since(mark):
                return None

        return canonical.Method(
            name=method.name,
            comment=method.doc_comment,
            annotations=annotations,
            parameters=[param for param in parameters if param is not None],
            return_type=return_type,
        )

    def _parameter(self, param: source.Parameter, scope: set[str]) -> canonical.Parameter | None:
        with self._within(ConstructKind.PARAMETER, param.name) as mark:
            type_ = self._type(param.type)
            annotations, constraints = self._annotations(param.annotations, scope)
            if self._failed_since(mark) or type_ is None:
                return None

        return canonical.Parameter(
            name=param.name,
            type=type_,
            comment=param.doc_comment,
            annotations=annotations,
            constraints=constraints,
        )

    # ------------------------------------------------------------------
    # Properties and validation order
    # ------------------------------------------------------------------

    def _property_block(self, props: list[source.Property]) -> tuple[list[canonical.Property], list[str]]:
        """Canonicalize the properties of a record or variant and order them by dependency."""
        self._check_duplicates([prop.name for prop in props])
        declared = list(dict.fromkeys(prop.name.value for prop in props))
        scope = set(declared)
        properties = [self._property(prop, scope, declared) for prop in props]
        resolved = [prop for prop in properties if prop is not None]
        if len(resolved) != len(properties):
            return resolved, []

        graph = {prop.name.value: list(prop.deps) for prop in resolved}
        try:
            order = topological_order(graph)
        except DependencyCycle as cycle:
            first = next(prop for prop in resolved if prop.name.value == cycle.cycle[0])
            self._error(E.DEPENDENCY_CYCLE, first.name.region, names=tuple(cycle.cycle))
            return resolved, []
        return resolved, order

    def _property(self, prop: source.Property, scope: set[str], declared: list[str]) -> canonical.Property | None:
        with self._within(ConstructKind.PROPERTY, prop.name) as mark:
            type_ = self._type(prop.type)
            annotations, constraints = self._annotations(prop.annotations, scope)
            if self._failed_since(mark) or type_ is None:
                return None

        accessed: set[str] = set()
        for constraint in constraints:
            accessed |= c.collect_accessed_deps(constraint)
        # Declaration order keeps serialized artifacts identical across runs.
        deps = tuple(name for name in declared if name in accessed and name != prop.name.value)
        return canonical.Property(
            name=prop.name,
            type=type_,
            comment=prop.doc_comment,
            annotations=annotations,
            constraints=constraints,
            deps=deps,
        )

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _type(self, type_: source.Type) -> canonical.TypeRef | None:
        """Resolve a source type reference, or report and return None."""
        name = type_.name.value
        arguments = [self._type(var) for var in type_.variables]
        if any(arg is None for arg in arguments):
            return None

        if name in _PRIMITIVES:
            expected = 0
        elif name in _BUILTIN_ARITY:
            expected = _BUILTIN_ARITY[name]
        else:
            return canonical.NamedTypeRef(name=name, arguments=arguments)

        if len(arguments) != expected:
            self._error(
                E.TYPE_ARITY,
                type_.name.region,
                symbol=name,
                expected=expected,
                actual=len(arguments),
            )
            return None

        if name in _PRIMITIVES:
            return canonical.PrimitiveTypeRef(primitive=_PRIMITIVES[name])
        if name == "Map":
            return canonical.MapTypeRef(key_type=arguments[0], value_type=arguments[1])
        if name == "Result":
            return canonical.ResultTypeRef(error_type=arguments[0], value_type=arguments[1])
        if name == "List":
            return canonical.ListTypeRef(element_type=arguments[0])
        if name == "Set":
            return canonical.SetTypeRef(element_type=arguments[0])
        return canonical.OptionTypeRef(inner_type=arguments[0])

    # ------------------------------------------------------------------
    # Annotations and constraints
    # ------------------------------------------------------------------

    def _annotations(
        self,
        annotations: list[source.Annotation],
        scope: set[str],
    ) -> tuple[list[canonical.Annotation], list[c.Constraint]]:
        """Interpret annotations, returning them with the constraints of all ``check``s.

        *scope* holds the names that ``.name`` accessors may refer to.
        """
        result: list[canonical.Annotation] = []
        constraints: list[c.Constraint] = []
        for annotation in annotations:
            parsed = self._annotation(annotation.expr, scope)
            if parsed is None:
                continue
            result.append(parsed)
            if isinstance(parsed, canonical.CheckAnnotation):
                constraints.extend(parsed.constraints)
        return result, constraints

    def _annotation(self, expr: source.Expr, scope: set[str]) -> canonical.Annotation | None:
        if isinstance(expr, source.ListExpr) and not expr.items:
            self._error(E.EMPTY_ANNOTATION, expr.region)
            return None
        if not isinstance(expr, source.ListExpr) or not _is_check(expr):
            return canonical.CustomAnnotation(expr=expr)

        parsed = [self._constraint(item, scope) for item in expr.items[1:]]
        if any(constraint is None for constraint in parsed):
            return None
        return canonical.CheckAnnotation(constraints=parsed)

    def _constraint(self, expr: source.Expr, scope: set[str]) -> c.Constraint | None:
        """Translate one S-expression into a typed constraint, or report and return None."""
        if isinstance(expr, source.NumberExpr):
            return c.NumberLiteral(value=expr.value)
        if isinstance(expr, (source.StringExpr, source.KeywordExpr)):
            return c.StringLiteral(value=expr.value)
        if isinstance(expr, source.BooleanExpr):
            return c.BooleanLiteral(value=expr.value)
        if isinstance(expr, source.SymbolExpr):
            return self._access(expr, scope)
        if isinstance(expr, source.MapExpr):
            entries = [(self._constraint(key, scope), self._constraint(value, scope)) for key, value in expr.entries]
            if any(key is None or value is None for key, value in entries):
                return None
            return c.MapConstraint(entries=entries)
        return self._compound(expr, scope)

    def _access(self, expr: source.SymbolExpr, scope: set[str]) -> c.Access | None:
        if not expr.value.startswith(".") or len(expr.value) < 2:
            self._error(E.UNKNOWN_SYMBOL, expr.region, symbol=expr.value)
            return None
        name = expr.value[1:]
        if name not in scope:
            self._error(E.UNKNOWN_PROPERTY, expr.region, symbol=name)
            return None
        return c.Access(property=name)

    def _compound(self, expr: source.ListExpr, scope: set[str]) -> c.Constraint | None:
        if not expr.items:
            self._error(E.EMPTY_CONSTRAINT, expr.region)
            return None
        head, *rest = expr.items
        if not isinstance(head, source.SymbolExpr):
            self._error(E.INVALID_CONSTRAINT, head.region)
            return None
        if head.value not in _VARIADIC and head.value not in _UNARY:
            self._error(E.UNKNOWN_CONSTRAINT, head.region, symbol=head.value)
            return None

        operands = [self._constraint(item, scope) for item in rest]
        if head.value in _VARIADIC:
            cls, minimum = _VARIADIC[head.value]
            if len(operands) < minimum:
                self._arity_error(head, minimum, len(operands), at_least=True)
                return None
            if any(operand is None for operand in operands):
                return None
            return cls(operands=operands)

        if len(operands) != 1:
            self._arity_error(head, 1, len(operands), at_least=False)
            return None
        if operands[0] is None:
            return None
        return _UNARY[head.value](operand=operands[0])

    def _arity_error(self, head: source.SymbolExpr, expected: int, actual: int, *, at_least: bool) -> None:
        self._error(
            E.CONSTRAINT_ARITY,
            head.region,
            symbol=head.value,
            expected=expected,
            actual=actual,
            at_least=at_least,
        )


def _is_check(expr: source.Expr) -> bool:
    """Return True for a list annotation whose head is the ``check`` symbol."""
    return (
        isinstance(expr, source.ListExpr)
        and bool(expr.items)
        and isinstance(expr.items[0], source.SymbolExpr)
        and expr.items[0].value == _CHECK
    )
