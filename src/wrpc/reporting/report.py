# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Report model and plain-text/terminal rendering.

A :class:`Report` is the only diagnostic shape hosts consume. Its JSON form
(``report.model_dump_json()``) is the wire format; :func:`render_report`
turns it into text with a numbered excerpt of the offending source.
"""

from __future__ import annotations

import textwrap
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field
from yachalk import chalk

from wrpc.model.region import Region

# ###############
# Public Interface
# ###############


class TextBlock(BaseModel):
    """A paragraph of explanatory text, reflowed on rendering."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class SnippetBlock(BaseModel):
    """A pointer into the source text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["snippet"] = "snippet"
    region: Region


Block = Annotated[TextBlock | SnippetBlock, _Field(discriminator="kind")]


class Report(BaseModel):
    """A rendered-on-demand diagnostic.

    Attributes:
        title: Short upper-case headline.
        blocks: Ordered text and snippet blocks.
        filename: Name of the file the snippets point into, if known.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    blocks: list[Block] = _Field(default_factory=list)
    filename: str | None = None

    @property
    def regions(self) -> list[Region]:
        """Return the regions of all snippet blocks in order."""
        return [block.region for block in self.blocks if isinstance(block, SnippetBlock)]


def render_report(report: Report, source: str, *, color: bool = False, width: int = 80) -> str:
    """Render *report* against the *source* text it refers to.

    Args:
        report: The report to render.
        source: Full text of the file the report's regions point into.
        color: Highlight the header and caret markers with ANSI colors.
        width: Column at which text blocks are wrapped.

    Returns:
        The rendered report without a trailing newline.
    """
    lines = source.splitlines()
    parts = [_render_header(report, width, color)]
    for block in report.blocks:
        if isinstance(block, TextBlock):
            parts.append(textwrap.fill(block.text, width=width))
        else:
            parts.append(_render_snippet(block.region, lines, color))
    return "\n\n".join(parts)


# ################
# Implementation
# ################


def _render_header(report: Report, width: int, color: bool) -> str:
    suffix = f" {report.filename}" if report.filename else ""
    head = f"-- {report.title} "
    fill = max(width - len(head) - len(suffix), 3)
    header = head + "-" * fill + suffix
    return chalk.blue(header) if color else header


def _render_snippet(region: Region, lines: list[str], color: bool) -> str:
    first = max(region.start.line, 1)
    last = max(region.end.line, first)
    # A region ending at column 1 of the next line covers nothing there.
    if last > first and region.end.column <= 1:
        last -= 1
    gutter = len(str(last))
    out: list[str] = []
    for number in range(first, last + 1):
        text = lines[number - 1] if number - 1 < len(lines) else ""
        out.append(f"{number:>{gutter}}| {text}")
        start_col = region.start.column if number == region.start.line else 1
        end_col = region.end.column if number == region.end.line else len(text) + 1
        marker = "^" * max(end_col - start_col, 1)
        marker = chalk.red(marker) if color else marker
        out.append(" " * (gutter + 2 + max(start_col - 1, 0)) + marker)
    return "\n".join(out)
