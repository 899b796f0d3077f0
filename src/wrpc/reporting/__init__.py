# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagnostic reports: a renderable title plus text and source-snippet blocks."""

from wrpc.reporting.report import Block, Report, SnippetBlock, TextBlock, render_report

__all__ = [
    "Block",
    "Report",
    "SnippetBlock",
    "TextBlock",
    "render_report",
]
