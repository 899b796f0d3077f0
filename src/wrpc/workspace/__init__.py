# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration for wRPC."""

from wrpc.workspace.config import (
    CONFIG_FILE_NAME,
    DEFAULT_SOURCES,
    WorkspaceConfig,
    WorkspaceConfigError,
    discover_sources,
    load_project,
    load_workspace_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_SOURCES",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "discover_sources",
    "load_project",
    "load_workspace_config",
]
