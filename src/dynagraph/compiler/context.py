# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Traversal locations used while walking a schema document.

A location is one of three variants: the document itself, a type declaration
within the document, or a field within a type declaration. Each variant keeps
a reference to its owner, so walking ``parent()`` from a field reaches the
type, then the document, then None.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator
from dataclasses import dataclass

from graphql.language import (
    DocumentNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    ObjectTypeDefinitionNode,
)
from graphql.utilities import value_from_ast_untyped

# ###############
# Public Interface
# ###############

TypeDefinition = ObjectTypeDefinitionNode | InputObjectTypeDefinitionNode
FieldDefinition = FieldDefinitionNode | InputValueDefinitionNode


@dataclass(frozen=True)
class DocumentLocation:
    """The walk is positioned on the document root."""

    document: DocumentNode

    def node(self) -> DocumentNode:
        return self.document

    def parent(self) -> None:
        return None


@dataclass(frozen=True)
class TypeLocation:
    """The walk is positioned on a type declaration."""

    definition: TypeDefinition
    owner: DocumentLocation

    def node(self) -> TypeDefinition:
        return self.definition

    def parent(self) -> DocumentLocation:
        return self.owner

    @property
    def type_name(self) -> str:
        return self.definition.name.value


@dataclass(frozen=True)
class FieldLocation:
    """The walk is positioned on a field of a type declaration."""

    field: FieldDefinition
    owner: TypeLocation

    def node(self) -> FieldDefinition:
        return self.field

    def parent(self) -> TypeLocation:
        return self.owner

    @property
    def type_name(self) -> str:
        return self.owner.type_name

    @property
    def field_name(self) -> str:
        return self.field.name.value


Location = DocumentLocation | TypeLocation | FieldLocation


def walk(document: DocumentNode) -> Iterator[TypeLocation | FieldLocation]:
    """Yield every object and input declaration in document order, each followed by its fields."""
    root = DocumentLocation(document)
    for definition in document.definitions or ():
        if not isinstance(definition, (ObjectTypeDefinitionNode, InputObjectTypeDefinitionNode)):
            continue
        type_location = TypeLocation(definition, root)
        yield type_location
        for field in definition.fields or ():
            yield FieldLocation(field, type_location)


def ancestors(location: Location) -> Iterator[Location]:
    """Yield the location itself followed by each of its parents, ending at the document."""
    current: Location | None = location
    while current is not None:
        yield current
        current = current.parent()


def enclosing_type(location: Location) -> TypeDefinition | None:
    """Return the type declaration a location belongs to, if any."""
    for candidate in ancestors(location):
        if isinstance(candidate, TypeLocation):
            return candidate.definition
    return None


def in_scope(location: Location, allowed: Collection[str] | None) -> bool:
    """Check whether directives at a location may act under a type-name allow-list.

    A location is in scope when it, or any enclosing declaration, is named in
    the allow-list. Input types additionally count as the model type named by
    their ``@modelInput(name: ...)`` directive.

    Args:
        location: Position of the directive being dispatched.
        allowed: Permitted type names; None means unrestricted.

    Returns:
        True if directives at this location may act.
    """
    if allowed is None:
        return True
    for candidate in ancestors(location):
        if not isinstance(candidate, TypeLocation):
            continue
        if candidate.type_name in allowed:
            return True
        owner = model_input_owner(candidate.definition)
        if owner is not None and owner in allowed:
            return True
    return False


def model_input_owner(definition: TypeDefinition) -> str | None:
    """Return the model type an input declaration is bound to by ``@modelInput``."""
    if not isinstance(definition, InputObjectTypeDefinitionNode):
        return None
    for directive in definition.directives or ():
        if directive.name.value != "modelInput":
            continue
        for argument in directive.arguments or ():
            if argument.name.value == "name":
                value = value_from_ast_untyped(argument.value)
                return value if isinstance(value, str) else None
    return None
