# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Merge artifact fragments into final destination documents.

Fragments are grouped by location, preserving first-emission order of the
locations and emission order within each group. Each group is folded against
the destination's pre-existing contents (when supplied) according to the
destination kind:

* text destinations concatenate payloads;
* structured (YAML) destinations replay tree patches, where a fragment without
  a patch replaces the whole tree;
* SDL destinations append parsed declarations or replay structural edits and
  print the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import yaml
from graphql import GraphQLSyntaxError, parse, print_ast
from graphql.language import DefinitionNode, DocumentNode

from dynagraph.compiler.digger import append_definitions, apply_sdl_patch, apply_tree_patch, empty_document
from dynagraph.compiler.errors import PatchError, SchemaSyntaxError
from dynagraph.model.artifacts import (
    ArtifactFragment,
    DestinationKind,
    ListAppendAtPath,
    MaterializedFile,
    ReplaceAtPath,
    destination_kind,
)

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def group_fragments(fragments: Iterable[ArtifactFragment]) -> dict[str, list[ArtifactFragment]]:
    """Group fragments by destination location in emission order."""
    groups: dict[str, list[ArtifactFragment]] = {}
    for fragment in fragments:
        groups.setdefault(fragment.location, []).append(fragment)
    return groups


def materialize(
    fragments: Iterable[ArtifactFragment],
    existing: Mapping[str, str] | None = None,
) -> list[MaterializedFile]:
    """Resolve a fragment stream into one document per destination location.

    Args:
        fragments: Fragments in emission order.
        existing: Current contents of destinations that already exist, keyed by
            location. Structured and SDL destinations start from these.

    Returns:
        One MaterializedFile per location, in first-emission order. A file is
        replaceable only if every fragment addressed to it is.

    Raises:
        PatchError: If a fragment cannot be applied to its destination.
        SchemaSyntaxError: If an SDL payload or existing SDL document is malformed.
    """
    existing = existing or {}
    files: list[MaterializedFile] = []
    for location, group in group_fragments(fragments).items():
        kind = destination_kind(location)
        base = existing.get(location)
        if kind is DestinationKind.STRUCTURED:
            body = _materialize_structured(location, group, base)
        elif kind is DestinationKind.SDL:
            body = _materialize_sdl(location, group, base)
        else:
            body = _materialize_text(group)
        logger.debug("Materialized %s from %d fragment(s)", location, len(group))
        files.append(
            MaterializedFile(
                location=location,
                body=body,
                replaceable=all(f.replaceable for f in group),
            )
        )
    return files


def dump_yaml(tree: Any) -> str:
    """Render a YAML-like tree with stable key order."""
    return yaml.safe_dump(tree, default_flow_style=False, sort_keys=False, width=100)


def parse_sdl(text: str, label: str = "<string>") -> DocumentNode:
    """Parse SDL text, reporting syntax errors as SchemaSyntaxError.

    Args:
        text: The SDL text to parse.
        label: Human-readable origin of the text, used in error messages.

    Raises:
        SchemaSyntaxError: If the text is not valid SDL.
    """
    if not text.strip():
        return empty_document()
    try:
        return parse(text, no_location=True)
    except GraphQLSyntaxError as exc:
        raise SchemaSyntaxError(f"Syntax error in {label}: {exc.message}", text) from exc


def print_sdl(document: DocumentNode) -> str:
    """Print a document, terminated by a single newline unless it is empty."""
    text = print_ast(document)
    return f"{text}\n" if text else ""


# ################
# Implementation
# ################


def _materialize_text(group: list[ArtifactFragment]) -> str:
    return "\n".join(str(f.payload) for f in group if f.payload is not None)


def _materialize_structured(location: str, group: list[ArtifactFragment], base: str | None) -> str:
    tree: Any = {}
    if base is not None:
        try:
            tree = yaml.safe_load(base)
        except yaml.YAMLError as exc:
            raise PatchError(f"Existing file {location} is not valid YAML: {exc}") from exc
        if tree is None:
            tree = {}
    for fragment in group:
        if fragment.patch is None:
            tree = fragment.payload
        elif isinstance(fragment.patch, (ReplaceAtPath, ListAppendAtPath)):
            tree = apply_tree_patch(tree, fragment.patch)
        else:
            raise PatchError(f"{location}: '{fragment.patch.op}' cannot be applied to a YAML destination")
    return dump_yaml(tree)


def _materialize_sdl(location: str, group: list[ArtifactFragment], base: str | None) -> str:
    document = parse_sdl(base, location) if base is not None else empty_document()
    for fragment in group:
        if fragment.patch is None:
            document = append_definitions(document, _payload_definitions(location, fragment.payload))
        elif isinstance(fragment.patch, (ReplaceAtPath, ListAppendAtPath)):
            raise PatchError(f"{location}: '{fragment.patch.op}' cannot be applied to an SDL destination")
        else:
            document = apply_sdl_patch(document, fragment.patch)
    return print_sdl(document)


def _payload_definitions(location: str, payload: Any) -> tuple[DefinitionNode, ...]:
    if isinstance(payload, str):
        return tuple(parse_sdl(payload, location).definitions)
    if isinstance(payload, DocumentNode):
        return tuple(payload.definitions)
    if isinstance(payload, DefinitionNode):
        return (payload,)
    raise PatchError(f"{location}: unsupported SDL payload of type {type(payload).__name__}")
