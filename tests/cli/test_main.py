# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the Dynagraph CLI entry point."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from dynagraph.cli.main import main
from dynagraph.compiler.errors import PatchError
from dynagraph.workspace import CONFIG_FILE_NAME, WorkspaceConfig, load_workspace_config

SCHEMA = "type Post @model {\n  id: ID!\n  title: String\n}\n"

# ###############
# Helpers
# ###############


def _run(monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
    """Invoke main() with the given arguments and return its exit code."""
    monkeypatch.setattr(sys, "argv", ["dynagraph", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


# ###############
# Public Interface
# ###############


def test_main_no_args_prints_help_and_exits(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """main() with no subcommand prints help and exits with code 0."""
    assert _run(monkeypatch) == 0
    assert "usage: dynagraph" in capsys.readouterr().out


# -------- init tests --------


def test_init_creates_workspace(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """init writes a default workspace config into the specified directory."""
    assert _run(monkeypatch, "init", str(tmp_path)) == 0
    config_file = tmp_path / CONFIG_FILE_NAME
    assert config_file.read_text(encoding="utf-8").startswith("# Dynagraph Workspace Configuration\n")
    assert load_workspace_config(config_file) == WorkspaceConfig()
    assert "Initialized Dynagraph workspace" in capsys.readouterr().out


def test_init_default_directory_uses_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """init with no directory argument uses the current working directory."""
    monkeypatch.chdir(tmp_path)
    assert _run(monkeypatch, "init") == 0
    assert (tmp_path / CONFIG_FILE_NAME).exists()


def test_init_fails_if_workspace_already_exists(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """init exits with error code 1 and leaves an existing config alone."""
    (tmp_path / CONFIG_FILE_NAME).write_text("build-directory: out\n")
    assert _run(monkeypatch, "init", str(tmp_path)) == 1
    assert (tmp_path / CONFIG_FILE_NAME).read_text() == "build-directory: out\n"


def test_init_fails_if_directory_does_not_exist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """init exits with error code 1 when target directory does not exist."""
    assert _run(monkeypatch, "init", str(tmp_path / "nonexistent")) == 1


# -------- build tests --------


def test_build_without_workspace_config_uses_defaults(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """build compiles schema.graphql into build/ when no config file exists."""
    (tmp_path / "schema.graphql").write_text(SCHEMA)
    assert _run(monkeypatch, "build", str(tmp_path)) == 0
    assert (tmp_path / "build" / "resources" / "dynamodb" / "Post.resource.yml").is_file()
    assert (tmp_path / "build" / "schema" / "schema.graphql").read_text() == (
        "type Post {\n  id: ID!\n  title: String\n}\n"
    )
    assert "Wrote" in capsys.readouterr().out


def test_build_uses_workspace_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """build reads the input schema and build directory from the workspace config."""
    (tmp_path / CONFIG_FILE_NAME).write_text("in-schema: api.graphql\nbuild-directory: generated\n")
    (tmp_path / "api.graphql").write_text(SCHEMA)
    assert _run(monkeypatch, "build", str(tmp_path)) == 0
    assert (tmp_path / "generated" / "schema" / "api.graphql").is_file()


def test_build_flags_override_workspace_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Command-line options win over the workspace config."""
    (tmp_path / CONFIG_FILE_NAME).write_text("in-schema: missing.graphql\nbuild-directory: generated\n")
    (tmp_path / "api.graphql").write_text(SCHEMA + "type Draft @model { id: ID! }\n")
    code = _run(
        monkeypatch,
        "build",
        str(tmp_path),
        "--in-schema",
        "api.graphql",
        "--build-dir",
        "out",
        "--types",
        "Post",
    )
    assert code == 0
    assert (tmp_path / "out" / "resources" / "dynamodb" / "Post.resource.yml").is_file()
    assert not (tmp_path / "out" / "resources" / "dynamodb" / "Draft.resource.yml").exists()
    assert not (tmp_path / "generated").exists()


def test_build_append_only_keeps_existing_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """--append-only leaves files from a previous build untouched."""
    (tmp_path / "schema.graphql").write_text(SCHEMA)
    template = tmp_path / "build" / "mapping-templates" / "Query.getPost.request.vtl"
    template.parent.mkdir(parents=True)
    template.write_text("## edited by hand\n")
    assert _run(monkeypatch, "build", "--append-only", str(tmp_path)) == 0
    assert template.read_text() == "## edited by hand\n"
    assert (tmp_path / "build" / "mapping-templates" / "Query.getPost.response.vtl").is_file()


def test_build_fails_if_directory_does_not_exist(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """build exits with error code 1 when the directory does not exist."""
    assert _run(monkeypatch, "build", str(tmp_path / "nonexistent")) == 1


def test_build_fails_if_schema_is_missing(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """build exits with error code 1 when the input schema does not exist."""
    assert _run(monkeypatch, "build", str(tmp_path)) == 1
    assert "not found" in capsys.readouterr().err


def test_build_invalid_workspace_config(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """build exits with code 1 when the workspace config is invalid."""
    (tmp_path / CONFIG_FILE_NAME).write_text("bad yaml: [unterminated\n")
    (tmp_path / "schema.graphql").write_text(SCHEMA)
    assert _run(monkeypatch, "build", str(tmp_path)) == 1
    assert "Error" in capsys.readouterr().err


def test_build_reports_compile_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """build exits with code 1 and writes nothing when the schema does not compile."""
    (tmp_path / "schema.graphql").write_text("type Post @model @auth(provider: NOPE) { id: ID! }\n")
    assert _run(monkeypatch, "build", str(tmp_path)) == 1
    assert "Error" in capsys.readouterr().err
    assert not (tmp_path / "build").exists()


def test_build_reports_write_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Errors raised while building are reported on stderr."""
    (tmp_path / "schema.graphql").write_text(SCHEMA)
    with patch("dynagraph.cli.main.build", side_effect=PatchError("broken destination")):
        assert _run(monkeypatch, "build", str(tmp_path)) == 1
    assert "Error: broken destination" in capsys.readouterr().err
