# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Workspace configuration for Dynagraph."""

from dynagraph.workspace.config import (
    CONFIG_FILE_NAME,
    BuildConfig,
    WorkspaceConfig,
    WorkspaceConfigError,
    dump_workspace_config,
    load_workspace_config,
)

__all__ = [
    "BuildConfig",
    "CONFIG_FILE_NAME",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "dump_workspace_config",
    "load_workspace_config",
]
