# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structured canonicalization errors.

A :class:`SemanticError` records what went wrong and the chain of
constructs (record, property, ...) it happened in. Message text is only
produced by :meth:`SemanticError.to_report`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from wrpc.errors import CompileError
from wrpc.model.region import Region
from wrpc.model.source import Name
from wrpc.reporting.report import Report, SnippetBlock, TextBlock

# ###############
# Public Interface
# ###############


class ConstructKind(enum.Enum):
    RECORD = "record"
    ENUM = "enum"
    VARIANT = "variant"
    SERVICE = "service"
    METHOD = "method"
    PARAMETER = "parameter"
    PROPERTY = "property"


@dataclass(frozen=True)
class Context:
    """One level of the construct path an error was found in."""

    kind: ConstructKind
    name: Name

    def __str__(self) -> str:
        return f"the {self.kind.value} `{self.name.value}`"


class SemanticErrorKind(enum.Enum):
    EMPTY_ANNOTATION = "empty-annotation"
    INVALID_ANNOTATION = "invalid-annotation"
    UNKNOWN_SYMBOL = "unknown-symbol"
    UNKNOWN_CONSTRAINT = "unknown-constraint"
    INVALID_CONSTRAINT = "invalid-constraint"
    EMPTY_CONSTRAINT = "empty-constraint"
    CONSTRAINT_ARITY = "constraint-arity"
    UNKNOWN_PROPERTY = "unknown-property"
    DEPENDENCY_CYCLE = "dependency-cycle"
    TYPE_ARITY = "type-arity"
    DUPLICATE_NAME = "duplicate-name"


@dataclass(frozen=True)
class SemanticError:
    """A canonicalization error.

    Attributes:
        kind: What went wrong.
        region: The source region the error points at.
        context: The enclosing constructs, outermost first.
        symbol: The offending symbol, constraint head, type or duplicate name.
        names: Property names on a dependency cycle, in dependency order.
        expected: Required operand or type-argument count for arity errors.
        actual: Given operand or type-argument count for arity errors.
        at_least: Whether *expected* is a minimum rather than an exact count.
    """

    kind: SemanticErrorKind
    region: Region
    context: tuple[Context, ...] = ()
    symbol: str | None = None
    names: tuple[str, ...] = ()
    expected: int | None = None
    actual: int | None = None
    at_least: bool = False

    def to_report(self, filename: str | None = None) -> Report:
        """Describe the error as a :class:`Report` pointing at its region."""
        title, text = _MESSAGES[self.kind]
        blocks = [TextBlock(text=text.format(**self._fields()))]
        if self.context:
            where = ", inside ".join(str(ctx) for ctx in reversed(self.context))
            blocks.append(TextBlock(text=f"This happened in {where}."))
        blocks.append(SnippetBlock(region=self.region))
        return Report(title=title, blocks=blocks, filename=filename)

    def _fields(self) -> dict[str, str]:
        count = self.expected if self.expected is not None else 0
        noun = "argument" if count == 1 else "arguments"
        return {
            "symbol": self.symbol or "?",
            "cycle": " -> ".join(f"`{name}`" for name in self.names),
            "expected": f"{'at least' if self.at_least else 'exactly'} {count} {noun}",
            "actual": str(self.actual if self.actual is not None else 0),
            "scope": str(self.context[-1]) if self.context else "this file",
        }


class CanonicalizeError(CompileError):
    """Raised when a parsed module fails canonicalization.

    Attributes:
        errors: Every semantic error found across all declarations.
    """

    def __init__(self, errors: list[SemanticError], filename: str | None = None) -> None:
        super().__init__(f"{len(errors)} canonicalization error(s)", filename)
        self.errors = errors


# ################
# Implementation
# ################

_MESSAGES: dict[SemanticErrorKind, tuple[str, str]] = {
    SemanticErrorKind.EMPTY_ANNOTATION: (
        "EMPTY ANNOTATION",
        "An annotation cannot be an empty list `()`. Write `#(check ...)` or a custom expression.",
    ),
    SemanticErrorKind.INVALID_ANNOTATION: (
        "INVALID ANNOTATION",
        "`check` annotations are not allowed on {scope}. Constraints belong on data, enum and method members.",
    ),
    SemanticErrorKind.UNKNOWN_SYMBOL: (
        "UNKNOWN SYMBOL",
        "I do not know what `{symbol}` refers to. Read a sibling property with `.name`, "
        'or use a literal such as `3`, `"text"` or `:keyword`.',
    ),
    SemanticErrorKind.UNKNOWN_CONSTRAINT: (
        "UNKNOWN CONSTRAINT",
        "`{symbol}` is not a constraint I know. "
        "Available constraints are <, <=, =, >=, >, or, and, xor, len, blank and not.",
    ),
    SemanticErrorKind.INVALID_CONSTRAINT: (
        "INVALID CONSTRAINT",
        "A constraint list has to start with the name of a constraint, such as `(len .name)`.",
    ),
    SemanticErrorKind.EMPTY_CONSTRAINT: (
        "EMPTY CONSTRAINT",
        "I found an empty list `()` where I expected a constraint.",
    ),
    SemanticErrorKind.CONSTRAINT_ARITY: (
        "WRONG NUMBER OF OPERANDS",
        "The constraint `{symbol}` takes {expected}, but I found {actual}.",
    ),
    SemanticErrorKind.UNKNOWN_PROPERTY: (
        "UNKNOWN PROPERTY",
        "This constraint reads the property `{symbol}`, but there is no such property next to it.",
    ),
    SemanticErrorKind.DEPENDENCY_CYCLE: (
        "CONSTRAINT DEPENDENCY CYCLE",
        "The constraints of these properties depend on each other in a cycle: {cycle}. "
        "I cannot decide in which order to validate them.",
    ),
    SemanticErrorKind.TYPE_ARITY: (
        "WRONG NUMBER OF TYPE ARGUMENTS",
        "The type `{symbol}` takes {expected}, but I found {actual}.",
    ),
    SemanticErrorKind.DUPLICATE_NAME: (
        "DUPLICATE NAME",
        "The name `{symbol}` is declared more than once in {scope}.",
    ),
}
