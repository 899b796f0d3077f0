# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the optional wRPC project file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".wrpc.yaml"

DEFAULT_SOURCES = ("**/*.wrpc",)


class WorkspaceConfigError(Exception):
    """Raised when a project configuration file is invalid or cannot be loaded."""


@dataclass
class WorkspaceConfig:
    """The parsed configuration of a wRPC project.

    Attributes:
        sources: Glob patterns, relative to the project root, selecting the
            files to compile.
        build_directory: Relative path (from the project root) for artifacts.
        color: Whether reports are rendered with ANSI colors.
    """

    sources: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    build_directory: str = "build"
    color: bool = True


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a wRPC project configuration file.

    Args:
        path: Path to the `.wrpc.yaml` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Project config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read project config file: {exc}") from exc

    return _parse_workspace_config(text, source_label=str(path))


def load_project(root: Path) -> WorkspaceConfig:
    """Return the configuration of the project rooted at *root*.

    Falls back to the defaults when *root* has no `.wrpc.yaml`.

    Raises:
        WorkspaceConfigError: If the file exists but is invalid.
    """
    path = root / CONFIG_FILE_NAME
    if not path.exists():
        return WorkspaceConfig()
    return load_workspace_config(path)


def discover_sources(root: Path, config: WorkspaceConfig) -> list[Path]:
    """Return the files matched by the configured glob patterns, sorted and without duplicates.

    Files below the build directory are never returned.
    """
    build_dir = (root / config.build_directory).resolve()
    found: set[Path] = set()
    for pattern in config.sources:
        for path in root.glob(pattern):
            if path.is_file() and not path.resolve().is_relative_to(build_dir):
                found.add(path)
    return sorted(found)


# ################
# Implementation
# ################


def _parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse project config YAML text into a WorkspaceConfig.

    An empty document yields the defaults.

    Raises:
        WorkspaceConfigError: If the YAML is invalid or a field has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return WorkspaceConfig()
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: project config must be a YAML mapping")

    unknown = sorted(set(data) - {"sources", "build-directory", "color"})
    if unknown:
        raise WorkspaceConfigError(f"{source_label}: unknown field(s): {', '.join(map(str, unknown))}")

    config = WorkspaceConfig()
    if "sources" in data:
        config.sources = _parse_sources(data["sources"], source_label)
    if "build-directory" in data:
        value = data["build-directory"]
        if not isinstance(value, str) or not value:
            raise WorkspaceConfigError(f"{source_label}: 'build-directory' must be a non-empty string")
        config.build_directory = value
    if "color" in data:
        value = data["color"]
        if not isinstance(value, bool):
            raise WorkspaceConfigError(f"{source_label}: 'color' must be true or false")
        config.color = value
    return config


def _parse_sources(raw: object, source_label: str) -> list[str]:
    if not isinstance(raw, list) or not raw:
        raise WorkspaceConfigError(f"{source_label}: 'sources' must be a non-empty list of glob patterns")
    for index, pattern in enumerate(raw):
        if not isinstance(pattern, str) or not pattern:
            raise WorkspaceConfigError(f"{source_label}: sources[{index}] must be a non-empty string")
    return list(raw)
