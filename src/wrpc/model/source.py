# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Source-level syntax tree produced by the parser.

The tree mirrors the text closely: type references are still plain names
with nested type variables, and annotations are raw S-expressions. The
canonicalizer turns this tree into :mod:`wrpc.model.canonical`.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from wrpc.model.region import Region

# ###############
# Public Interface
# ###############


class Name(BaseModel):
    """An identifier together with the region it was read from."""

    model_config = ConfigDict(frozen=True)

    region: Region
    value: str

    def capitalized(self) -> str:
        """Return the value with its first character upper-cased."""
        return self.value[:1].upper() + self.value[1:]

    def uncapitalized(self) -> str:
        """Return the value with its first character lower-cased."""
        return self.value[:1].lower() + self.value[1:]

    def request_name(self) -> str:
        """Return the name of the request type generated for a method."""
        return f"{self.capitalized()}Request"

    def __str__(self) -> str:
        return self.value


# ------------------------------------------------------------------
# Annotation expressions
# ------------------------------------------------------------------


class BooleanExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["boolean"] = "boolean"
    region: Region
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


class NumberExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    region: Region
    value: float

    def __str__(self) -> str:
        return _format_number(self.value)


class StringExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    region: Region
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'


class KeywordExpr(BaseModel):
    """A ``:name`` literal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["keyword"] = "keyword"
    region: Region
    value: str

    def __str__(self) -> str:
        return f":{self.value}"


class SymbolExpr(BaseModel):
    """A bare symbol such as ``check``, ``<=`` or ``.country``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["symbol"] = "symbol"
    region: Region
    value: str

    def __str__(self) -> str:
        return self.value


class ListExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    region: Region
    items: list[Expr] = _Field(default_factory=list)

    def __str__(self) -> str:
        return "(" + " ".join(str(item) for item in self.items) + ")"


class MapExpr(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    region: Region
    entries: list[tuple[Expr, Expr]] = _Field(default_factory=list)

    def __str__(self) -> str:
        return "{" + " ".join(f"{key} {value}" for key, value in self.entries) + "}"


# An annotation payload. The `kind` discriminator keeps JSON round-trips exact.
Expr = Annotated[
    BooleanExpr | NumberExpr | StringExpr | KeywordExpr | SymbolExpr | ListExpr | MapExpr,
    _Field(discriminator="kind"),
]


class Annotation(BaseModel):
    """A ``#expr`` attached to a declaration, variant, method or property."""

    model_config = ConfigDict(frozen=True)

    expr: Expr


# ------------------------------------------------------------------
# Declarations
# ------------------------------------------------------------------


class Type(BaseModel):
    """A type reference as written: a name plus nested type variables."""

    model_config = ConfigDict(frozen=True)

    name: Name
    variables: list[Type] = _Field(default_factory=list)


class Property(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    type: Type
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    type: Type
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Data(BaseModel):
    """A ``data`` record declaration."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["data"] = "data"
    name: Name
    type_variables: list[Name] = _Field(default_factory=list)
    properties: list[Property] = _Field(default_factory=list)
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Variant(BaseModel):
    """One case of an enum, optionally carrying payload properties."""

    model_config = ConfigDict(frozen=True)

    name: Name
    properties: list[Property] = _Field(default_factory=list)
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Enum(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["enum"] = "enum"
    name: Name
    type_variables: list[Name] = _Field(default_factory=list)
    variants: list[Variant] = _Field(default_factory=list)
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Method(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    parameters: list[Parameter] = _Field(default_factory=list)
    return_type: Type | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["service"] = "service"
    name: Name
    methods: list[Method] = _Field(default_factory=list)
    annotations: list[Annotation] = _Field(default_factory=list)
    doc_comment: str | None = None


Decl = Annotated[Data | Enum | Service, _Field(discriminator="kind")]


class Module(BaseModel):
    """The parsed contents of a single source file."""

    model_config = ConfigDict(frozen=True)

    declarations: list[Decl] = _Field(default_factory=list)
    doc_comment: str | None = None
    version: str = "1"


# ################
# Implementation
# ################


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


# Resolve forward references in self-referential models.
ListExpr.model_rebuild()
MapExpr.model_rebuild()
Annotation.model_rebuild()
Type.model_rebuild()
