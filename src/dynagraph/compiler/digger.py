# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Pure edit operations over YAML-like trees and SDL documents.

None of the functions here mutate their inputs: trees are deep-copied and SDL
nodes are rebuilt along the edited path, leaving every sibling declaration in
its original position.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any, TypeVar

from graphql import GraphQLSyntaxError, parse, print_ast
from graphql.language import (
    DefinitionNode,
    DirectiveNode,
    DocumentNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    ListTypeNode,
    NamedTypeNode,
    NameNode,
    Node,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    TypeNode,
)

from dynagraph.compiler.errors import PatchError, TypeShapeError
from dynagraph.model.artifacts import (
    AddDirective,
    AddField,
    ListAppendAtPath,
    RemoveDirective,
    RemoveField,
    ReplaceField,
    SdlPatch,
    TreePatch,
)
from dynagraph.model.specs import TypeShape

# ###############
# Public Interface
# ###############

PATH_SEPARATOR = "#"

_N = TypeVar("_N", bound=Node)


def type_shape(node: TypeNode) -> TypeShape:
    """Reduce an AST type reference to a TypeShape.

    Args:
        node: A named, list or non-null type node.

    Returns:
        The equivalent TypeShape.

    Raises:
        TypeShapeError: If the wrapping nests deeper than one list and one
            non-null marker on each side of it.
    """
    required = isinstance(node, NonNullTypeNode)
    inner = node.type if required else node
    if isinstance(inner, NamedTypeNode):
        return TypeShape(base=inner.name.value, required=required)
    if isinstance(inner, ListTypeNode):
        item = inner.type
        item_required = isinstance(item, NonNullTypeNode)
        if item_required:
            item = item.type
        if isinstance(item, NamedTypeNode):
            return TypeShape(
                base=item.name.value,
                is_list=True,
                required=required,
                item_required=item_required,
            )
    raise TypeShapeError(f"Unsupported type wrapping '{print_ast(node)}'")


def type_node(shape: TypeShape) -> TypeNode:
    """Rebuild an AST type reference from a TypeShape."""
    result: TypeNode = NamedTypeNode(name=NameNode(value=shape.base))
    if shape.is_list:
        if shape.item_required:
            result = NonNullTypeNode(type=result)
        result = ListTypeNode(type=result)
    if shape.required:
        result = NonNullTypeNode(type=result)
    return result


def print_type(shape: TypeShape) -> str:
    """Render a TypeShape as SDL, e.g. ``[String!]!``."""
    return print_ast(type_node(shape))


def apply_tree_patch(tree: Any, patch: TreePatch) -> Any:
    """Apply a path-addressed edit to a YAML-like tree and return the new tree."""
    if isinstance(patch, ListAppendAtPath):
        return list_append_at_path(tree, patch.path, patch.value)
    return replace_at_path(tree, patch.path, patch.value)


def replace_at_path(tree: Any, path: str, value: Any) -> Any:
    """Set ``value`` at a ``#``-delimited path, creating intermediate mappings.

    If the existing value at the path is a list the new value is appended to
    it instead. An empty path replaces the whole tree.

    Raises:
        PatchError: If an intermediate path segment is not a mapping.
    """
    if not path:
        return copy.deepcopy(value)
    result, parent, leaf = _descend(tree, path)
    existing = parent.get(leaf)
    if isinstance(existing, list):
        parent[leaf] = [*existing, copy.deepcopy(value)]
    else:
        parent[leaf] = copy.deepcopy(value)
    return result


def list_append_at_path(tree: Any, path: str, value: Any) -> Any:
    """Append ``value`` to the list at a ``#``-delimited path.

    A missing leaf becomes a one-element list; a non-list leaf is an error.

    Raises:
        PatchError: If the path is empty or addresses a non-list value.
    """
    if not path:
        raise PatchError("List append requires a non-empty path")
    result, parent, leaf = _descend(tree, path)
    existing = parent.get(leaf)
    if existing is None:
        parent[leaf] = [copy.deepcopy(value)]
    elif isinstance(existing, list):
        parent[leaf] = [*existing, copy.deepcopy(value)]
    else:
        raise PatchError(f"Cannot append to non-list value at '{path}'")
    return result


def empty_document() -> DocumentNode:
    return DocumentNode(definitions=())


def append_definitions(document: DocumentNode, definitions: Iterable[DefinitionNode]) -> DocumentNode:
    """Append top-level declarations to a document.

    A declaration with the same kind and name as an existing one replaces it in
    place, so appending the same fragment twice leaves a single copy.
    """
    result = list(document.definitions or ())
    for definition in definitions:
        key = _definition_key(definition)
        for index, existing in enumerate(result):
            if _definition_key(existing) == key:
                result[index] = definition
                break
        else:
            result.append(definition)
    return _evolve(document, definitions=tuple(result))


def apply_sdl_patch(document: DocumentNode, patch: SdlPatch) -> DocumentNode:
    """Apply a structural edit to a named type of an SDL document.

    Args:
        document: The document to edit.
        patch: One of the SDL patch operations.

    Returns:
        A new document; the input is left untouched.

    Raises:
        PatchError: If the named type, or the named field, does not exist.
    """
    definitions = list(document.definitions or ())
    index = _find_type(definitions, patch.type_name)
    definitions[index] = _apply_to_type(definitions[index], patch)
    return _evolve(document, definitions=tuple(definitions))


def parse_field(sdl: str, *, input_field: bool = False) -> FieldDefinitionNode | InputValueDefinitionNode:
    """Parse a single field definition given as SDL text.

    Args:
        sdl: Text such as ``posts(limit: Int): ModelPostConnection``.
        input_field: Parse as an input value definition rather than an output field.

    Raises:
        PatchError: If the text is not a single valid field definition.
    """
    wrapper = "input" if input_field else "type"
    try:
        parsed = parse(f"{wrapper} Wrapper {{ {sdl} }}", no_location=True)
    except GraphQLSyntaxError as exc:
        raise PatchError(f"Invalid field definition '{sdl}': {exc.message}") from exc
    fields = parsed.definitions[0].fields or ()
    if len(fields) != 1:
        raise PatchError(f"Expected exactly one field definition in '{sdl}'")
    return fields[0]


def has_directive(node: Node, name: str) -> bool:
    return any(d.name.value == name for d in getattr(node, "directives", None) or ())


# ################
# Implementation
# ################

_PATCHABLE_TYPES = (ObjectTypeDefinitionNode, InputObjectTypeDefinitionNode, InterfaceTypeDefinitionNode)


def _evolve(node: _N, **changes: Any) -> _N:
    """Return a copy of ``node`` with some attributes replaced."""
    values = {key: getattr(node, key) for key in node.keys}
    values.update(changes)
    return node.__class__(**values)


def _descend(tree: Any, path: str) -> tuple[dict[str, Any], dict[str, Any], str]:
    """Copy the tree and walk to the mapping holding the path's last segment."""
    result = copy.deepcopy(tree) if isinstance(tree, dict) else {}
    *segments, leaf = path.split(PATH_SEPARATOR)
    current = result
    for segment in segments:
        child = current.get(segment)
        if child is None:
            child = {}
            current[segment] = child
        elif not isinstance(child, dict):
            raise PatchError(f"Path segment '{segment}' of '{path}' is not a mapping")
        current = child
    return result, current, leaf


def _definition_key(definition: DefinitionNode) -> tuple[str, str | None]:
    name = getattr(definition, "name", None)
    return definition.kind, name.value if name is not None else None


def _find_type(definitions: list[DefinitionNode], type_name: str) -> int:
    for index, definition in enumerate(definitions):
        if isinstance(definition, _PATCHABLE_TYPES) and definition.name.value == type_name:
            return index
    raise PatchError(f"Type '{type_name}' not found in document")


def _find_field(fields: list[Node], type_name: str, field_name: str) -> int:
    for index, field in enumerate(fields):
        if field.name.value == field_name:
            return index
    raise PatchError(f"Field '{field_name}' not found on type '{type_name}'")


def _apply_to_type(definition: DefinitionNode, patch: SdlPatch) -> DefinitionNode:
    fields = list(definition.fields or ())
    is_input = isinstance(definition, InputObjectTypeDefinitionNode)

    if isinstance(patch, AddField):
        fields.append(parse_field(patch.field, input_field=is_input))
        return _evolve(definition, fields=tuple(fields))

    if isinstance(patch, RemoveField):
        index = _find_field(fields, patch.type_name, patch.field_name)
        del fields[index]
        return _evolve(definition, fields=tuple(fields))

    if isinstance(patch, ReplaceField):
        index = _find_field(fields, patch.type_name, patch.field_name)
        fields[index] = parse_field(patch.field, input_field=is_input)
        return _evolve(definition, fields=tuple(fields))

    if patch.field_name is None:
        return _edit_directives(definition, patch)

    index = _find_field(fields, patch.type_name, patch.field_name)
    fields[index] = _edit_directives(fields[index], patch)
    return _evolve(definition, fields=tuple(fields))


def _edit_directives(node: _N, patch: AddDirective | RemoveDirective) -> _N:
    directives = list(node.directives or ())
    if isinstance(patch, RemoveDirective):
        kept = [d for d in directives if d.name.value != patch.directive]
        return _evolve(node, directives=tuple(kept))
    names = list(dict.fromkeys(patch.directives))
    kept = [d for d in directives if d.name.value not in names]
    added = [DirectiveNode(name=NameNode(value=name), arguments=()) for name in names]
    return _evolve(node, directives=tuple(kept + added))
