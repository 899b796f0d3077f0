# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of canonical module artifacts.

Artifacts are JSON files wrapping the canonical module in a versioned
envelope so that generators can detect schema changes.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from wrpc.model.canonical import Module

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"
ARTIFACT_SUFFIX = ".wrpc.json"


def serialize(module: Module, *, indent: int | None = None) -> str:
    """Serialize a canonical module to a JSON string."""
    envelope = {"v": ARTIFACT_FORMAT_VERSION, "module": module.model_dump(mode="json")}
    if indent is None:
        return json.dumps(envelope, separators=(",", ":"))
    return json.dumps(envelope, indent=indent)


def deserialize(data: str) -> Module:
    """Deserialize a canonical module from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`~wrpc.model.canonical.Module`.

    Raises:
        ValueError: If the artifact format version is not recognised or the
            payload does not describe a module.
    """
    obj = json.loads(data)
    version = obj.get("v") if isinstance(obj, dict) else None
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")
    try:
        return Module.model_validate(obj.get("module"))
    except ValidationError as exc:
        raise ValueError(f"Invalid artifact payload: {exc}") from exc


def write_artifact(module: Module, path: Path) -> None:
    """Write a compiled artifact to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(module), encoding="utf-8")


def read_artifact(path: Path) -> Module:
    """Read and deserialize a compiled artifact from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))
