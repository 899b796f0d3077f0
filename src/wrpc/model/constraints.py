# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Typed validation constraints extracted from ``check`` annotations.

Semantics, as generators are expected to implement them:

* ``Eq``/``Lt``/``Le``/``Gt``/``Ge`` hold when every adjacent pair of
  operands satisfies the comparison.
* ``Or``/``And`` are n-ary disjunction and conjunction.
* ``Xor`` holds when exactly one operand holds.
* ``Len`` is the length of a string, list, set or map.
* ``Blank`` holds for empty or whitespace-only strings and empty collections.
* ``Access`` reads the value of a sibling property.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class Or(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["or"] = "or"
    operands: list[Constraint]


class And(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["and"] = "and"
    operands: list[Constraint]


class Xor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["xor"] = "xor"
    operands: list[Constraint]


class Eq(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["eq"] = "eq"
    operands: list[Constraint]


class Lt(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["lt"] = "lt"
    operands: list[Constraint]


class Le(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["le"] = "le"
    operands: list[Constraint]


class Gt(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["gt"] = "gt"
    operands: list[Constraint]


class Ge(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ge"] = "ge"
    operands: list[Constraint]


class Len(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["len"] = "len"
    operand: Constraint


class Blank(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["blank"] = "blank"
    operand: Constraint


class Not(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["not"] = "not"
    operand: Constraint


class NumberLiteral(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: float


class StringLiteral(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str


class BooleanLiteral(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["boolean"] = "boolean"
    value: bool


class MapConstraint(BaseModel):
    """A literal map whose keys and values are constraints themselves."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    entries: list[tuple[Constraint, Constraint]] = _Field(default_factory=list)


class Access(BaseModel):
    """A reference to the value of the sibling property *property*."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["access"] = "access"
    property: str


Constraint = Annotated[
    Or
    | And
    | Xor
    | Eq
    | Lt
    | Le
    | Gt
    | Ge
    | Len
    | Blank
    | Not
    | NumberLiteral
    | StringLiteral
    | BooleanLiteral
    | MapConstraint
    | Access,
    _Field(discriminator="kind"),
]

# Constraint classes whose operands form a variadic sequence.
VARIADIC_CONSTRAINTS = (Or, And, Xor, Eq, Lt, Le, Gt, Ge)

# Constraint classes wrapping a single operand.
UNARY_CONSTRAINTS = (Len, Blank, Not)


def collect_accessed_deps(constraint: Constraint) -> set[str]:
    """Return the names of all properties accessed anywhere in *constraint*."""
    names: set[str] = set()
    stack: list[Constraint] = [constraint]
    while stack:
        node = stack.pop()
        if isinstance(node, Access):
            names.add(node.property)
        elif isinstance(node, VARIADIC_CONSTRAINTS):
            stack.extend(node.operands)
        elif isinstance(node, UNARY_CONSTRAINTS):
            stack.append(node.operand)
        elif isinstance(node, MapConstraint):
            for key, value in node.entries:
                stack.append(key)
                stack.append(value)
    return names


# ################
# Implementation
# ################

for _model in (*VARIADIC_CONSTRAINTS, *UNARY_CONSTRAINTS, MapConstraint):
    _model.model_rebuild()
