# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Syntax trees of the wRPC language: source AST, canonical AST, constraints."""

from wrpc.model import canonical, constraints, source
from wrpc.model.region import Position, Region

__all__ = [
    "Position",
    "Region",
    "canonical",
    "constraints",
    "source",
]
