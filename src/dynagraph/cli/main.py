# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the Dynagraph command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from dynagraph.compiler.build import build
from dynagraph.compiler.errors import CompilerError
from dynagraph.workspace.config import (
    CONFIG_FILE_NAME,
    BuildConfig,
    WorkspaceConfig,
    WorkspaceConfigError,
    dump_workspace_config,
    load_workspace_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the Dynagraph CLI."""
    parser = argparse.ArgumentParser(
        prog="dynagraph",
        description="Dynagraph: compile annotated GraphQL schemas into DynamoDB tables and AppSync resolvers",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new Dynagraph workspace",
        description=f"Write a default {CONFIG_FILE_NAME} into a directory.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize the workspace in (default: current directory)",
    )

    # build subcommand
    build_parser = subparsers.add_parser(
        "build",
        help="Compile the schema into tables, resolvers and the published schema",
        description="Compile the workspace schema and write the generated artifacts.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the Dynagraph workspace (default: current directory)",
    )
    build_parser.add_argument(
        "--in-schema",
        dest="in_schema",
        help="Input schema file, relative to the workspace (overrides the workspace config)",
    )
    build_parser.add_argument(
        "--build-dir",
        dest="build_dir",
        help="Output directory, relative to the workspace (overrides the workspace config)",
    )
    build_parser.add_argument(
        "--append-only",
        dest="append_only",
        action="store_true",
        default=None,
        help="Keep files that already exist in the output directory",
    )
    build_parser.add_argument(
        "--types",
        nargs="+",
        metavar="TYPE",
        help="Only let directives act on the named types",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log compilation progress",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "build":
        return _cmd_build(args)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE_NAME

    if config_file.exists():
        print(
            f"Error: workspace already exists at '{config_file}'.",
            file=sys.stderr,
        )
        return 1

    config_content = "# Dynagraph Workspace Configuration\n" + dump_workspace_config(WorkspaceConfig())
    config_file.write_text(config_content, encoding="utf-8")
    print(f"Initialized Dynagraph workspace at '{config_file}'.")
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the build subcommand."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config = WorkspaceConfig()
    config_file = directory / CONFIG_FILE_NAME
    if config_file.exists():
        try:
            config = load_workspace_config(config_file)
        except WorkspaceConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    build_config = BuildConfig.from_workspace(directory, config)
    if args.in_schema is not None:
        build_config.in_schema = args.in_schema
    if args.build_dir is not None:
        build_config.build_directory = args.build_dir
    if args.append_only is not None:
        build_config.append_only = args.append_only
    if args.types is not None:
        build_config.types = list(args.types)

    if not build_config.schema_path.is_file():
        print(f"Error: schema file '{build_config.schema_path}' not found.", file=sys.stderr)
        return 1

    try:
        written = build(build_config)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {len(written)} file(s) to '{build_config.build_path}'.")
    return 0
