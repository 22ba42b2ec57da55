# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model for dynagraph: directive specifications and artifact fragments."""

from dynagraph.model.artifacts import (
    AddDirective,
    AddField,
    ArtifactFragment,
    DestinationKind,
    ListAppendAtPath,
    MaterializedFile,
    PatchOperation,
    RemoveDirective,
    RemoveField,
    ReplaceAtPath,
    ReplaceField,
    SdlPatch,
    TreePatch,
    destination_kind,
)
from dynagraph.model.specs import (
    KEY_SEPARATOR,
    AuthAction,
    AuthProvider,
    AuthSpec,
    AuthStrategy,
    ConnectionSpec,
    GroupStrategy,
    KeySpec,
    MultiTenancySpec,
    OwnerStrategy,
    RelationKind,
    SecondaryIndex,
    TypeShape,
    lower_first,
    upper_first,
)

__all__ = [
    # Specifications
    "KEY_SEPARATOR",
    "AuthAction",
    "AuthProvider",
    "AuthSpec",
    "AuthStrategy",
    "ConnectionSpec",
    "GroupStrategy",
    "KeySpec",
    "MultiTenancySpec",
    "OwnerStrategy",
    "RelationKind",
    "SecondaryIndex",
    "TypeShape",
    "lower_first",
    "upper_first",
    # Artifacts
    "AddDirective",
    "AddField",
    "ArtifactFragment",
    "DestinationKind",
    "ListAppendAtPath",
    "MaterializedFile",
    "PatchOperation",
    "RemoveDirective",
    "RemoveField",
    "ReplaceAtPath",
    "ReplaceField",
    "SdlPatch",
    "TreePatch",
    "destination_kind",
]
