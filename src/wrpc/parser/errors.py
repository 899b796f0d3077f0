# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structured syntax errors.

Every grammar production has its own :class:`GrammarErrorKind`. An error
raised inside a nested production is wrapped by its enclosing productions,
so ``data A { x: }`` yields ``DATA_BAD_PROPERTY(A)`` caused by
``PROPERTY_BAD_TYPE(x)`` caused by ``TYPE_NAME``. Errors never carry message
text; :meth:`GrammarError.to_report` derives it from the structure.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from wrpc.errors import CompileError
from wrpc.model.region import Position, Region
from wrpc.parser.lexer import TokenError
from wrpc.reporting.report import Block, Report, SnippetBlock, TextBlock

# ###############
# Public Interface
# ###############

# Deepest nesting of lists and maps accepted inside one annotation.
MAX_EXPR_DEPTH = 64


class GrammarErrorKind(enum.Enum):
    """One member per way a grammar production can fail."""

    DECL_START = "decl-start"
    DECL_BAD_ANNOTATION = "decl-bad-annotation"

    DATA_NAME = "data-name"
    DATA_BAD_PROPERTY = "data-bad-property"
    DATA_END = "data-end"

    ENUM_NAME = "enum-name"
    ENUM_START = "enum-start"
    ENUM_BAD_VARIANT = "enum-bad-variant"
    ENUM_END = "enum-end"

    VARIANT_BAD_ANNOTATION = "variant-bad-annotation"
    VARIANT_NAME = "variant-name"
    VARIANT_BAD_PROPERTY = "variant-bad-property"
    VARIANT_END = "variant-end"

    SERVICE_NAME = "service-name"
    SERVICE_START = "service-start"
    SERVICE_BAD_METHOD = "service-bad-method"
    SERVICE_END = "service-end"

    METHOD_BAD_ANNOTATION = "method-bad-annotation"
    METHOD_MISSING_DEF = "method-missing-def"
    METHOD_NAME = "method-name"
    METHOD_MISSING_PARAM_START = "method-missing-param-start"
    METHOD_BAD_PARAM = "method-bad-param"
    METHOD_MISSING_PARAM_END = "method-missing-param-end"
    METHOD_BAD_RETURN_TYPE = "method-bad-return-type"

    PROPERTY_BAD_ANNOTATION = "property-bad-annotation"
    PROPERTY_NAME = "property-name"
    PROPERTY_MISSING_COLON = "property-missing-colon"
    PROPERTY_BAD_TYPE = "property-bad-type"

    TYPE_NAME = "type-name"
    TYPE_BAD_ARGUMENT = "type-bad-argument"
    TYPE_ARGUMENTS_END = "type-arguments-end"

    TYPE_PARAMS_NAME = "type-params-name"
    TYPE_PARAMS_END = "type-params-end"

    EXPR_START = "expr-start"
    EXPR_UNCLOSED_LIST = "expr-unclosed-list"
    EXPR_UNCLOSED_MAP = "expr-unclosed-map"
    EXPR_MAP_MISSING_VALUE = "expr-map-missing-value"
    EXPR_TOO_DEEP = "expr-too-deep"

    UNEXPECTED_EOF = "unexpected-eof"


@dataclass(frozen=True)
class GrammarError:
    """A syntax error at a specific position.

    Attributes:
        kind: The grammar production that failed and how.
        position: Where the failure was detected.
        name: Name of the enclosing construct (data, property, method...), if known.
        cause: The nested failure this error wraps, if any.
    """

    kind: GrammarErrorKind
    position: Position
    name: str | None = None
    cause: GrammarError | TokenError | None = None

    def chain(self) -> list[GrammarError]:
        """Return this error followed by its nested grammar errors, outermost first."""
        result: list[GrammarError] = [self]
        current = self.cause
        while isinstance(current, GrammarError):
            result.append(current)
            current = current.cause
        return result

    def root_cause(self) -> GrammarError | TokenError:
        """Return the innermost failure, which may be a malformed token."""
        innermost = self.chain()[-1]
        return innermost.cause if innermost.cause is not None else innermost

    def to_report(self, filename: str | None = None) -> Report:
        """Describe the error as a :class:`Report` pointing at the failure position."""
        chain = self.chain()
        innermost = chain[-1]
        # Reaching the end of input is explained by the production that wanted more.
        if innermost.kind is GrammarErrorKind.UNEXPECTED_EOF and len(chain) > 1:
            innermost = chain[-2]
        title, text = _MESSAGES[innermost.kind]
        blocks: list[Block] = [TextBlock(text=text.format(name=innermost.name or "?"))]

        contexts = [
            _CONTEXTS[error.kind].format(name=error.name or "?")
            for error in chain
            if error is not innermost and error.kind in _CONTEXTS
        ]
        if contexts:
            blocks.append(TextBlock(text="This happened while reading " + ", inside ".join(reversed(contexts)) + "."))

        token_error = chain[-1].cause
        if isinstance(token_error, TokenError):
            token_report = token_error.to_report(filename)
            blocks.extend(block for block in token_report.blocks if isinstance(block, TextBlock))
            blocks.append(SnippetBlock(region=token_error.region))
        else:
            position = chain[-1].position
            blocks.append(SnippetBlock(region=Region.point(position.line, position.column)))
        return Report(title=title, blocks=blocks, filename=filename)


class ParseError(CompileError):
    """Raised when a source file contains syntax errors.

    Attributes:
        errors: Every syntax error found, in source order.
    """

    def __init__(self, errors: list[GrammarError], filename: str | None = None) -> None:
        first = errors[0].position if errors else Position(line=0, column=0)
        super().__init__(
            f"{len(errors)} syntax error(s), first at line {first.line}, column {first.column}",
            filename,
        )
        self.errors = errors


# ################
# Implementation
# ################

_MESSAGES: dict[GrammarErrorKind, tuple[str, str]] = {
    GrammarErrorKind.DECL_START: (
        "UNEXPECTED DECLARATION START",
        "I was expecting a declaration starting with `data`, `enum` or `service`.",
    ),
    GrammarErrorKind.DECL_BAD_ANNOTATION: (
        "BAD ANNOTATION",
        "I could not read the annotation in front of this declaration.",
    ),
    GrammarErrorKind.DATA_NAME: (
        "DATA DECLARATION",
        "I tried to read a `data` declaration, but could not find its name.",
    ),
    GrammarErrorKind.DATA_BAD_PROPERTY: (
        "BAD PROPERTY",
        "I could not read a property of the data declaration `{name}`.",
    ),
    GrammarErrorKind.DATA_END: (
        "UNEXPECTED END OF DATA DECLARATION",
        "I tried to parse the `data` declaration `{name}` but missed an ending curly brace.",
    ),
    GrammarErrorKind.ENUM_NAME: (
        "ENUM DECLARATION",
        "I tried to read an `enum` declaration, but could not find its name.",
    ),
    GrammarErrorKind.ENUM_START: (
        "MISSING ENUM BODY",
        "The enum `{name}` needs a body in curly braces listing its variants.",
    ),
    GrammarErrorKind.ENUM_BAD_VARIANT: (
        "BAD ENUM VARIANT",
        "I could not read a variant of the enum `{name}`.",
    ),
    GrammarErrorKind.ENUM_END: (
        "UNEXPECTED END OF ENUM DECLARATION",
        "I tried to parse the `enum` declaration `{name}` but missed an ending curly brace.",
    ),
    GrammarErrorKind.VARIANT_BAD_ANNOTATION: (
        "BAD ANNOTATION",
        "I could not read the annotation in front of this variant.",
    ),
    GrammarErrorKind.VARIANT_NAME: (
        "MISSING VARIANT NAME",
        "I was expecting the name of an enum variant here.",
    ),
    GrammarErrorKind.VARIANT_BAD_PROPERTY: (
        "BAD PROPERTY",
        "I could not read a property of the variant `{name}`.",
    ),
    GrammarErrorKind.VARIANT_END: (
        "UNEXPECTED END OF VARIANT",
        "The properties of the variant `{name}` are missing an ending curly brace.",
    ),
    GrammarErrorKind.SERVICE_NAME: (
        "SERVICE DECLARATION",
        "I tried to read a `service` declaration, but could not find its name.",
    ),
    GrammarErrorKind.SERVICE_START: (
        "MISSING SERVICE BODY",
        "The service `{name}` needs a body in curly braces listing its methods.",
    ),
    GrammarErrorKind.SERVICE_BAD_METHOD: (
        "BAD METHOD",
        "I could not read a method of the service `{name}`.",
    ),
    GrammarErrorKind.SERVICE_END: (
        "UNEXPECTED END OF SERVICE DECLARATION",
        "I tried to parse the `service` declaration `{name}` but missed an ending curly brace.",
    ),
    GrammarErrorKind.METHOD_BAD_ANNOTATION: (
        "BAD ANNOTATION",
        "I could not read the annotation in front of this method.",
    ),
    GrammarErrorKind.METHOD_MISSING_DEF: (
        "MISSING DEF",
        "Methods are declared in the form of `def name(param: Type): ReturnType`. I am missing the `def`.",
    ),
    GrammarErrorKind.METHOD_NAME: (
        "MISSING METHOD NAME",
        "I found a `def` but no method name after it.",
    ),
    GrammarErrorKind.METHOD_MISSING_PARAM_START: (
        "MISSING PARAMETER LIST",
        "The method `{name}` needs a parameter list in parentheses, even when it is empty.",
    ),
    GrammarErrorKind.METHOD_BAD_PARAM: (
        "BAD PARAMETER",
        "I could not read a parameter of the method `{name}`.",
    ),
    GrammarErrorKind.METHOD_MISSING_PARAM_END: (
        "UNCLOSED PARAMETER LIST",
        "The parameter list of the method `{name}` is missing a closing parenthesis.",
    ),
    GrammarErrorKind.METHOD_BAD_RETURN_TYPE: (
        "BAD RETURN TYPE",
        "I could not read the return type of the method `{name}`.",
    ),
    GrammarErrorKind.PROPERTY_BAD_ANNOTATION: (
        "BAD ANNOTATION",
        "I could not read the annotation in front of this property.",
    ),
    GrammarErrorKind.PROPERTY_NAME: (
        "BAD PROPERTY NAME",
        "I was expecting a property in the form of `name: Type` here.",
    ),
    GrammarErrorKind.PROPERTY_MISSING_COLON: (
        "MISSING PROPERTY NAME AND TYPE SEPARATOR",
        "I found a property with the name `{name}`, but no colon separating it from its type.",
    ),
    GrammarErrorKind.PROPERTY_BAD_TYPE: (
        "MISSING PROPERTY TYPE",
        "I found a property with the name `{name}`, but cannot find a type associated with this property.",
    ),
    GrammarErrorKind.TYPE_NAME: (
        "MISSING TYPE",
        "I was expecting a type name such as `String` or `List<Int32>` here.",
    ),
    GrammarErrorKind.TYPE_BAD_ARGUMENT: (
        "BAD TYPE ARGUMENT",
        "I could not read a type argument of `{name}`.",
    ),
    GrammarErrorKind.TYPE_ARGUMENTS_END: (
        "UNCLOSED TYPE ARGUMENTS",
        "The type arguments of `{name}` are missing a closing `>`.",
    ),
    GrammarErrorKind.TYPE_PARAMS_NAME: (
        "BAD TYPE PARAMETER",
        "I was expecting the name of a type parameter of `{name}` here.",
    ),
    GrammarErrorKind.TYPE_PARAMS_END: (
        "UNCLOSED TYPE PARAMETERS",
        "The type parameters of `{name}` are missing a closing `>`.",
    ),
    GrammarErrorKind.EXPR_START: (
        "BAD EXPRESSION",
        "I was expecting an expression here: a literal, a symbol, a list `( ... )` or a map `{{ ... }}`.",
    ),
    GrammarErrorKind.EXPR_UNCLOSED_LIST: (
        "UNCLOSED LIST",
        "This list is never closed. Add a `)`.",
    ),
    GrammarErrorKind.EXPR_UNCLOSED_MAP: (
        "UNCLOSED MAP",
        "This map is never closed. Add a `}}`.",
    ),
    GrammarErrorKind.EXPR_MAP_MISSING_VALUE: (
        "MAP KEY WITHOUT VALUE",
        "Maps are written as `{{key value key value}}`. The last key has no value.",
    ),
    GrammarErrorKind.EXPR_TOO_DEEP: (
        "EXPRESSION TOO DEEP",
        f"Lists and maps in an annotation can be nested at most {MAX_EXPR_DEPTH} levels deep.",
    ),
    GrammarErrorKind.UNEXPECTED_EOF: (
        "UNEXPECTED END OF FILE",
        "I reached the end of the file while I was still expecting more.",
    ),
}

# How wrapping errors describe the construct they were reading.
_CONTEXTS: dict[GrammarErrorKind, str] = {
    GrammarErrorKind.DECL_BAD_ANNOTATION: "a declaration annotation",
    GrammarErrorKind.DATA_BAD_PROPERTY: "the data declaration `{name}`",
    GrammarErrorKind.ENUM_BAD_VARIANT: "the enum `{name}`",
    GrammarErrorKind.VARIANT_BAD_ANNOTATION: "a variant annotation",
    GrammarErrorKind.VARIANT_BAD_PROPERTY: "the variant `{name}`",
    GrammarErrorKind.SERVICE_BAD_METHOD: "the service `{name}`",
    GrammarErrorKind.METHOD_BAD_ANNOTATION: "a method annotation",
    GrammarErrorKind.METHOD_BAD_PARAM: "the parameters of method `{name}`",
    GrammarErrorKind.METHOD_BAD_RETURN_TYPE: "the return type of method `{name}`",
    GrammarErrorKind.PROPERTY_BAD_ANNOTATION: "a property annotation",
    GrammarErrorKind.PROPERTY_BAD_TYPE: "the type of property `{name}`",
    GrammarErrorKind.TYPE_BAD_ARGUMENT: "the type arguments of `{name}`",
}
