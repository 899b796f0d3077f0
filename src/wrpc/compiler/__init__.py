# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for .wrpc files: canonicalization, ordering and artifacts."""

from wrpc.compiler.artifact import ARTIFACT_SUFFIX, deserialize, read_artifact, serialize, write_artifact
from wrpc.compiler.build import compile_file, compile_files, compile_source
from wrpc.compiler.canonicalize import canonicalize
from wrpc.compiler.errors import CanonicalizeError, ConstructKind, Context, SemanticError, SemanticErrorKind
from wrpc.compiler.ordering import DependencyCycle, topological_order

__all__ = [
    "ARTIFACT_SUFFIX",
    "CanonicalizeError",
    "ConstructKind",
    "Context",
    "DependencyCycle",
    "SemanticError",
    "SemanticErrorKind",
    "canonicalize",
    "compile_file",
    "compile_files",
    "compile_source",
    "deserialize",
    "read_artifact",
    "serialize",
    "topological_order",
    "write_artifact",
]
