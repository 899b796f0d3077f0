# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Canonical module: the validated representation consumed by generators."""

from __future__ import annotations

from enum import Enum as _PyEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from wrpc.model.constraints import Constraint
from wrpc.model.source import Expr, Name

# ###############
# Public Interface
# ###############


class PrimitiveType(_PyEnum):
    """Built-in scalar types."""

    STRING = "String"
    BOOLEAN = "Boolean"
    INT32 = "Int32"
    INT64 = "Int64"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"


class PrimitiveTypeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["primitive"] = "primitive"
    primitive: PrimitiveType


class MapTypeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    key_type: TypeRef
    value_type: TypeRef


class ResultTypeRef(BaseModel):
    """``Result<E, V>``: the error type comes first."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["result"] = "result"
    error_type: TypeRef
    value_type: TypeRef


class ListTypeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    element_type: TypeRef


class SetTypeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["set"] = "set"
    element_type: TypeRef


class OptionTypeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["option"] = "option"
    inner_type: TypeRef


class NamedTypeRef(BaseModel):
    """Reference to a user-defined record/enum or to a type variable.

    Existence and arity are not checked here; generators resolve the name.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    name: str
    arguments: list[TypeRef] = _Field(default_factory=list)


TypeRef = Annotated[
    PrimitiveTypeRef | MapTypeRef | ResultTypeRef | ListTypeRef | SetTypeRef | OptionTypeRef | NamedTypeRef,
    _Field(discriminator="kind"),
]


class CheckAnnotation(BaseModel):
    """A recognized ``(check ...)`` annotation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["check"] = "check"
    constraints: list[Constraint] = _Field(default_factory=list)


class CustomAnnotation(BaseModel):
    """Any other annotation, kept verbatim for generator-specific use."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    expr: Expr


Annotation = Annotated[CheckAnnotation | CustomAnnotation, _Field(discriminator="kind")]


class Property(BaseModel):
    """A resolved record or variant property.

    Attributes:
        constraints: Constraints from the property's own ``check`` annotations.
        deps: Sibling properties the constraints read, excluding the property
            itself, in declaration order.
    """

    model_config = ConfigDict(frozen=True)

    name: Name
    type: TypeRef
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    constraints: list[Constraint] = _Field(default_factory=list)
    deps: tuple[str, ...] = ()


class Record(BaseModel):
    """A canonical ``data`` declaration.

    Attributes:
        constraints: All constraints of the record and its properties, flattened.
        property_validation_order: Property names ordered so that every property
            comes after the properties its constraints depend on.
        type_variables: Declared generic parameter names.
    """

    model_config = ConfigDict(frozen=True)

    name: Name
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    properties: list[Property] = _Field(default_factory=list)
    constraints: list[Constraint] = _Field(default_factory=list)
    property_validation_order: list[str] = _Field(default_factory=list)
    type_variables: list[str] = _Field(default_factory=list)

    def get_property(self, name: str) -> Property | None:
        for prop in self.properties:
            if prop.name.value == name:
                return prop
        return None


class Variant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    properties: list[Property] = _Field(default_factory=list)
    constraints: list[Constraint] = _Field(default_factory=list)
    property_validation_order: list[str] = _Field(default_factory=list)


class Enum(BaseModel):
    """A canonical enum, either simple (no payloads) or sealed."""

    model_config = ConfigDict(frozen=True)

    name: Name
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    variants: list[Variant] = _Field(default_factory=list)
    constraints: list[Constraint] = _Field(default_factory=list)
    type_variables: list[str] = _Field(default_factory=list)

    @property
    def is_simple(self) -> bool:
        """Return True if no variant carries payload properties."""
        return all(not variant.properties for variant in self.variants)

    @property
    def is_sealed(self) -> bool:
        """Return True if at least one variant carries payload properties."""
        return not self.is_simple


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    type: TypeRef
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    constraints: list[Constraint] = _Field(default_factory=list)


class Method(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    parameters: list[Parameter] = _Field(default_factory=list)
    return_type: TypeRef | None = None


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Name
    comment: str | None = None
    annotations: list[Annotation] = _Field(default_factory=list)
    methods: dict[str, Method] = _Field(default_factory=dict)


class Module(BaseModel):
    """Name-keyed records, enums and services of one compiled file."""

    model_config = ConfigDict(frozen=True)

    records: dict[str, Record] = _Field(default_factory=dict)
    enums: dict[str, Enum] = _Field(default_factory=dict)
    services: dict[str, Service] = _Field(default_factory=dict)

    def get_method(self, service_name: str, method_name: str) -> Method | None:
        """Return the method *method_name* of service *service_name*, if both exist.

        Given ``service RandomService { def random(seed: Int32): Int32 }``,
        ``module.get_method("RandomService", "random")`` returns that method.
        """
        service = self.services.get(service_name)
        if service is None:
            return None
        return service.methods.get(method_name)

    def get_sorted_records(self) -> list[Record]:
        return [self.records[name] for name in sorted(self.records)]

    def get_sorted_enums(self) -> list[Enum]:
        return [self.enums[name] for name in sorted(self.enums)]

    def get_sorted_services(self) -> list[Service]:
        return [self.services[name] for name in sorted(self.services)]


# Resolve forward references for models that use TypeRef.
MapTypeRef.model_rebuild()
ResultTypeRef.model_rebuild()
ListTypeRef.model_rebuild()
SetTypeRef.model_rebuild()
OptionTypeRef.model_rebuild()
NamedTypeRef.model_rebuild()
