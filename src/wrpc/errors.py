# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Base exception shared by the parsing and canonicalization stages."""

# ###############
# Public Interface
# ###############


class CompileError(Exception):
    """Raised when a source file cannot be compiled into a canonical module.

    Subclasses carry the complete list of structured errors found in one
    pass over the input, never only the first one.

    Attributes:
        filename: Name of the compiled file, if known.
    """

    def __init__(self, message: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename
