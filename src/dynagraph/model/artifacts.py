# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Artifact fragments and the closed set of edit operations they may carry.

Every fragment names a destination location (a path relative to the build
directory) and either a payload that seeds the destination or a patch
operation that edits it. Patch operations are plain data: SDL edits carry
SDL text rather than tree nodes so that fragments can be dumped, compared and
replayed without sharing mutable state.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class DestinationKind(Enum):
    """How fragments addressed to a location are folded together."""

    TEXT = "text"
    STRUCTURED = "structured"
    SDL = "sdl"


class ReplaceAtPath(BaseModel):
    """Set the value at a ``#``-delimited path, appending if the target is a list."""

    op: Literal["replace-at-path"] = "replace-at-path"
    path: str
    value: Any


class ListAppendAtPath(BaseModel):
    """Append a value to the list at a ``#``-delimited path, creating it if absent."""

    op: Literal["list-append-at-path"] = "list-append-at-path"
    path: str
    value: Any


class AddField(BaseModel):
    """Append a field, given as SDL text, to a named type."""

    op: Literal["add-field"] = "add-field"
    type_name: str
    field: str


class RemoveField(BaseModel):
    """Remove a field from a named type."""

    op: Literal["remove-field"] = "remove-field"
    type_name: str
    field_name: str


class ReplaceField(BaseModel):
    """Replace a field of a named type in place with new SDL text."""

    op: Literal["replace-field"] = "replace-field"
    type_name: str
    field_name: str
    field: str


class AddDirective(BaseModel):
    """Attach argument-less directives to a named type, or to one of its fields."""

    op: Literal["add-directive"] = "add-directive"
    type_name: str
    field_name: str | None = None
    directives: list[str]


class RemoveDirective(BaseModel):
    """Strip every occurrence of a directive from a named type, or one of its fields."""

    op: Literal["remove-directive"] = "remove-directive"
    type_name: str
    field_name: str | None = None
    directive: str


TreePatch = ReplaceAtPath | ListAppendAtPath
SdlPatch = AddField | RemoveField | ReplaceField | AddDirective | RemoveDirective

PatchOperation = Annotated[
    ReplaceAtPath | ListAppendAtPath | AddField | RemoveField | ReplaceField | AddDirective | RemoveDirective,
    _Field(discriminator="op"),
]


class ArtifactFragment(BaseModel):
    """One unit of output addressed to a destination location.

    Attributes:
        location: Destination path relative to the build directory.
        patch: Edit applied to the destination; None seeds it with ``payload``.
        payload: Text, SDL text or a YAML-like tree, used when ``patch`` is None.
        replaceable: False when an existing file at the location must be kept.
    """

    model_config = ConfigDict(frozen=True)

    location: str
    patch: PatchOperation | None = None
    payload: Any = None
    replaceable: bool = True

    @property
    def kind(self) -> DestinationKind:
        return destination_kind(self.location)


class MaterializedFile(BaseModel):
    """Final text for one destination location."""

    location: str
    body: str
    replaceable: bool = True


def destination_kind(location: str) -> DestinationKind:
    """Classify a destination location by its file extension.

    Args:
        location: Destination path relative to the build directory.

    Returns:
        STRUCTURED for YAML files, SDL for GraphQL files and TEXT otherwise.
    """
    suffix = PurePosixPath(location).suffix
    if suffix in (".yml", ".yaml"):
        return DestinationKind.STRUCTURED
    if suffix in (".graphql", ".gql"):
        return DestinationKind.SDL
    return DestinationKind.TEXT
