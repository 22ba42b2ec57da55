# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the workspace configuration module."""

from pathlib import Path

import pytest
import yaml

from dynagraph.workspace import (
    CONFIG_FILE_NAME,
    BuildConfig,
    WorkspaceConfig,
    WorkspaceConfigError,
    dump_workspace_config,
    load_workspace_config,
)

# ###############
# Helpers
# ###############


def _write_config(tmp_path: Path, content: str) -> Path:
    """Write a workspace config file and return its path."""
    config_file = tmp_path / CONFIG_FILE_NAME
    config_file.write_text(content, encoding="utf-8")
    return config_file


# ###############
# Normal Cases
# ###############


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    """An empty config file parses to the default configuration."""
    config = load_workspace_config(_write_config(tmp_path, ""))
    assert config == WorkspaceConfig()
    assert config.in_schema == "schema.graphql"
    assert config.build_directory == "build"
    assert config.append_only is False
    assert config.types is None


def test_full_config(tmp_path: Path) -> None:
    """Every key is read into its attribute."""
    content = """\
in-schema: api/schema.graphql
build-directory: out
append-only: true
types:
  - Post
  - Author
"""
    config = load_workspace_config(_write_config(tmp_path, content))
    assert config == WorkspaceConfig(
        in_schema="api/schema.graphql",
        build_directory="out",
        append_only=True,
        types=["Post", "Author"],
    )


def test_missing_keys_take_defaults(tmp_path: Path) -> None:
    """Keys that are left out keep their default values."""
    config = load_workspace_config(_write_config(tmp_path, "build-directory: out\n"))
    assert config.build_directory == "out"
    assert config.in_schema == "schema.graphql"


def test_null_types_leave_every_type_in_scope(tmp_path: Path) -> None:
    """An explicit null types entry is the same as leaving it out."""
    config = load_workspace_config(_write_config(tmp_path, "types:\n"))
    assert config.types is None


def test_dump_round_trips(tmp_path: Path) -> None:
    """A dumped config loads back to an equal config."""
    original = WorkspaceConfig(in_schema="s.graphql", build_directory="gen", append_only=True, types=["Post"])
    config = load_workspace_config(_write_config(tmp_path, dump_workspace_config(original)))
    assert config == original


def test_dump_omits_unset_types() -> None:
    """The types key is only written when an allow-list is configured."""
    data = yaml.safe_load(dump_workspace_config(WorkspaceConfig()))
    assert data == {"in-schema": "schema.graphql", "build-directory": "build", "append-only": False}


# ###############
# Build settings
# ###############


class TestBuildConfig:
    def test_paths_are_relative_to_workspace(self, tmp_path: Path) -> None:
        config = BuildConfig(base_dir=tmp_path, in_schema="api/schema.graphql", build_directory="out")
        assert config.schema_path == tmp_path / "api" / "schema.graphql"
        assert config.build_path == tmp_path / "out"

    def test_from_workspace_copies_settings(self, tmp_path: Path) -> None:
        workspace = WorkspaceConfig(append_only=True, types=["Post"])
        config = BuildConfig.from_workspace(tmp_path, workspace)
        assert config.base_dir == tmp_path
        assert config.append_only is True
        assert config.types == ["Post"]
        config.types.append("Author")
        assert workspace.types == ["Post"]


# ###############
# Error Cases
# ###############


def test_file_not_found(tmp_path: Path) -> None:
    """Loading a non-existent file raises WorkspaceConfigError."""
    with pytest.raises(WorkspaceConfigError, match="not found"):
        load_workspace_config(tmp_path / CONFIG_FILE_NAME)


def test_invalid_yaml_syntax(tmp_path: Path) -> None:
    """A file with invalid YAML raises WorkspaceConfigError."""
    config_file = _write_config(tmp_path, "in-schema: [unclosed\n")
    with pytest.raises(WorkspaceConfigError, match="Invalid YAML"):
        load_workspace_config(config_file)


def test_not_a_mapping(tmp_path: Path) -> None:
    """A YAML file that is not a mapping raises WorkspaceConfigError."""
    config_file = _write_config(tmp_path, "- a\n- b\n")
    with pytest.raises(WorkspaceConfigError, match="must be a YAML mapping"):
        load_workspace_config(config_file)


def test_unknown_keys(tmp_path: Path) -> None:
    """Unknown keys are rejected and named in the error."""
    config_file = _write_config(tmp_path, "output: out\nbuild-directory: out\n")
    with pytest.raises(WorkspaceConfigError, match="unknown field\\(s\\): output"):
        load_workspace_config(config_file)


@pytest.mark.parametrize("key", ["in-schema", "build-directory"])
def test_path_not_a_string(tmp_path: Path, key: str) -> None:
    """A non-string path raises WorkspaceConfigError naming the key."""
    config_file = _write_config(tmp_path, f"{key}: 42\n")
    with pytest.raises(WorkspaceConfigError, match=key):
        load_workspace_config(config_file)


def test_append_only_not_a_boolean(tmp_path: Path) -> None:
    """append-only must be a YAML boolean."""
    config_file = _write_config(tmp_path, "append-only: sometimes\n")
    with pytest.raises(WorkspaceConfigError, match="append-only"):
        load_workspace_config(config_file)


def test_types_not_a_list(tmp_path: Path) -> None:
    """A scalar types value raises WorkspaceConfigError."""
    config_file = _write_config(tmp_path, "types: Post\n")
    with pytest.raises(WorkspaceConfigError, match="'types' must be a list"):
        load_workspace_config(config_file)


def test_types_entry_not_a_string(tmp_path: Path) -> None:
    """Every types entry must be a type name."""
    config_file = _write_config(tmp_path, "types:\n  - Post\n  - 3\n")
    with pytest.raises(WorkspaceConfigError, match="types\\[1\\]"):
        load_workspace_config(config_file)
