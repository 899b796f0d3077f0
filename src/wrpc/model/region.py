# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Source positions and regions shared by tokens, AST nodes and reports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############


class Position(BaseModel):
    """A 1-based line/column location in the source text."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int


class Region(BaseModel):
    """A half-open span of source text.

    Attributes:
        start: Position of the first character.
        end: Position just past the last character.
    """

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @classmethod
    def point(cls, line: int, column: int) -> Region:
        """Return an empty region at a single position."""
        position = Position(line=line, column=column)
        return cls(start=position, end=position)

    @classmethod
    def line_span(cls, line: int, start_column: int, end_column: int) -> Region:
        """Return a region on a single line."""
        return cls(
            start=Position(line=line, column=start_column),
            end=Position(line=line, column=end_column),
        )

    def merge(self, other: Region) -> Region:
        """Return the smallest region covering both *self* and *other*."""
        start = min(self.start, other.start, key=_sort_key)
        end = max(self.end, other.end, key=_sort_key)
        return Region(start=start, end=end)


# ################
# Implementation
# ################


def _sort_key(position: Position) -> tuple[int, int]:
    return (position.line, position.column)
