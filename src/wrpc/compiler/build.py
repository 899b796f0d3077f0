# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for .wrpc files: parsing followed by canonicalization.

Each call owns its own parser and canonicalizer state, so independent
compilations can run side by side. Canonicalization only runs on a module
that parsed cleanly; a caller therefore sees either syntax errors or
canonicalization errors, never both.
"""

from __future__ import annotations

import logging
from pathlib import Path

from wrpc.compiler.artifact import ARTIFACT_SUFFIX, write_artifact
from wrpc.compiler.canonicalize import canonicalize
from wrpc.errors import CompileError
from wrpc.model.canonical import Module
from wrpc.parser.parser import parse

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def compile_source(source: str, filename: str | None = None) -> Module:
    """Compile wRPC source text into a canonical module.

    Args:
        source: The full text of a .wrpc file.
        filename: Name of the file, attached to raised errors for reporting.

    Returns:
        The canonical module.

    Raises:
        ParseError: If the source contains syntax errors.
        CanonicalizeError: If the parsed module fails canonicalization.
    """
    module = parse(source, filename)
    return canonicalize(module, filename)


def compile_file(path: Path) -> Module:
    """Read *path* as UTF-8 and compile it.

    Raises:
        CompileError: If the file cannot be read or is not valid UTF-8.
        ParseError: If the file contains syntax errors.
        CanonicalizeError: If the parsed module fails canonicalization.
    """
    logger.debug("compiling %s", path)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CompileError(f"Cannot read source file '{path}': {exc}", str(path)) from exc
    return compile_source(source, str(path))


def compile_files(files: list[Path]) -> tuple[dict[Path, Module], dict[Path, CompileError]]:
    """Compile every file independently.

    A failing file does not stop the others from being compiled.

    Args:
        files: Paths of the .wrpc files to compile.

    Returns:
        A pair of mappings: successfully compiled modules and the errors of
        the files that failed, both keyed by path.
    """
    modules: dict[Path, Module] = {}
    failures: dict[Path, CompileError] = {}
    for path in files:
        try:
            modules[path] = compile_file(path)
        except CompileError as exc:
            failures[path] = exc
    logger.debug("compiled %d file(s), %d failed", len(files), len(failures))
    return modules, failures


def artifact_path(source_file: Path, root: Path, build_dir: Path) -> Path:
    """Return where the artifact of *source_file* is written below *build_dir*.

    The layout mirrors the source tree below *root*:
    ``root/api/users.wrpc`` becomes ``build_dir/api/users.wrpc.json``.

    Raises:
        CompileError: If *source_file* is not located under *root*.
    """
    try:
        rel = source_file.resolve().relative_to(root.resolve())
    except ValueError:
        raise CompileError(f"Source file {source_file} is not under {root}", str(source_file)) from None
    return build_dir / rel.parent / (rel.stem + ARTIFACT_SUFFIX)


def write_artifacts(modules: dict[Path, Module], root: Path, build_dir: Path) -> list[Path]:
    """Write one artifact per compiled module and return the written paths."""
    written: list[Path] = []
    for source_file, module in modules.items():
        target = artifact_path(source_file, root, build_dir)
        write_artifact(module, target)
        logger.debug("wrote artifact %s", target)
        written.append(target)
    return written
