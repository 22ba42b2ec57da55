# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the Dynagraph workspace configuration file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".dynagraph.yaml"

DEFAULT_IN_SCHEMA = "schema.graphql"
DEFAULT_BUILD_DIRECTORY = "build"


class WorkspaceConfigError(Exception):
    """Raised when a workspace configuration file is invalid or cannot be loaded."""


@dataclass
class WorkspaceConfig:
    """The parsed configuration of a Dynagraph workspace.

    Attributes:
        in_schema: Path of the annotated input schema, relative to the workspace root.
        build_directory: Relative path (from the workspace root) for compiler output.
        append_only: Keep files that already exist in the build directory.
        types: Type-name allow-list; None leaves every declaration in scope.
    """

    in_schema: str = DEFAULT_IN_SCHEMA
    build_directory: str = DEFAULT_BUILD_DIRECTORY
    append_only: bool = False
    types: list[str] | None = None


@dataclass
class BuildConfig:
    """Settings of one build, combining the workspace file with command-line overrides.

    Attributes:
        base_dir: Workspace root; relative paths are resolved against it.
        in_schema: Input schema path.
        build_directory: Output directory path.
        append_only: Keep files that already exist in the build directory.
        types: Type-name allow-list; None leaves every declaration in scope.
    """

    base_dir: Path
    in_schema: str = DEFAULT_IN_SCHEMA
    build_directory: str = DEFAULT_BUILD_DIRECTORY
    append_only: bool = False
    types: list[str] | None = None

    @property
    def schema_path(self) -> Path:
        return self.base_dir / self.in_schema

    @property
    def build_path(self) -> Path:
        return self.base_dir / self.build_directory

    @classmethod
    def from_workspace(cls, base_dir: Path, config: WorkspaceConfig) -> BuildConfig:
        return cls(
            base_dir=base_dir,
            in_schema=config.in_schema,
            build_directory=config.build_directory,
            append_only=config.append_only,
            types=list(config.types) if config.types is not None else None,
        )


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a Dynagraph workspace configuration file.

    Args:
        path: Path to the `.dynagraph.yaml` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Workspace config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read workspace config file: {exc}") from exc

    return _parse_workspace_config(text, source_label=str(path))


def dump_workspace_config(config: WorkspaceConfig) -> str:
    """Render a workspace configuration as YAML text."""
    data: dict[str, object] = {
        "in-schema": config.in_schema,
        "build-directory": config.build_directory,
        "append-only": config.append_only,
    }
    if config.types is not None:
        data["types"] = list(config.types)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


# ################
# Implementation
# ################


def _parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse workspace config YAML text into a WorkspaceConfig.

    Args:
        text: Raw YAML content.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Returns:
        A WorkspaceConfig instance. Missing keys take their defaults, and an
        empty file yields the default configuration.

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
        raise WorkspaceConfigError(f"{source_label}: workspace config must be a YAML mapping")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise WorkspaceConfigError(f"{source_label}: unknown field(s): {', '.join(map(str, unknown))}")

    config = WorkspaceConfig()
    if "in-schema" in data:
        config.in_schema = _require_string(data, "in-schema", source_label)
    if "build-directory" in data:
        config.build_directory = _require_string(data, "build-directory", source_label)
    if "append-only" in data:
        value = data["append-only"]
        if not isinstance(value, bool):
            raise WorkspaceConfigError(f"{source_label}: 'append-only' must be a boolean")
        config.append_only = value
    if data.get("types") is not None:
        config.types = _parse_types(data["types"], source_label)
    return config


_KNOWN_KEYS = frozenset({"in-schema", "build-directory", "append-only", "types"})


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a string field from a mapping, raising WorkspaceConfigError on any other type."""
    value = mapping[key]
    if not isinstance(value, str):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a string")
    return value


def _parse_types(raw: object, source_label: str) -> list[str]:
    """Parse the type-name allow-list."""
    if not isinstance(raw, list):
        raise WorkspaceConfigError(f"{source_label}: 'types' must be a list")
    for index, entry in enumerate(raw):
        if not isinstance(entry, str):
            raise WorkspaceConfigError(f"{source_label}: types[{index}] must be a string")
    return list(raw)
