# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""The compilation context: the table registry and side tables owned by one run."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field

from graphql.language import (
    DocumentNode,
    EnumTypeDefinitionNode,
    InputObjectTypeDefinitionNode,
    InterfaceTypeDefinitionNode,
    ObjectTypeDefinitionNode,
    UnionTypeDefinitionNode,
)

from dynagraph.compiler.errors import DuplicateModelError
from dynagraph.compiler.resources.base import SCALAR_FILTER_INPUTS, Resource, TypeCategory
from dynagraph.compiler.resources.table import TableResource
from dynagraph.model.specs import AuthSpec

# ###############
# Public Interface
# ###############


@dataclass
class CompilationContext:
    """State exclusively owned by one compilation run.

    Attributes:
        document: The document being compiled.
        schema_name: File name of the input schema; the sanitized document is
            published under ``schema/<schema_name>``.
        types: Type-name allow-list; None leaves every declaration in scope.
        tables: Registered tables keyed by name, in registration order.
        resources: Free-standing resources (function bindings, input keys).
        field_auth: Field-scoped auth rules keyed by ``(type, field)``.
    """

    document: DocumentNode
    schema_name: str = "schema.graphql"
    types: Collection[str] | None = None
    tables: dict[str, TableResource] = field(default_factory=dict)
    resources: list[Resource] = field(default_factory=list)
    field_auth: dict[tuple[str, str], list[AuthSpec]] = field(default_factory=dict)

    @property
    def root_location(self) -> str:
        return f"schema/{self.schema_name}"

    def register_table(self, table: TableResource) -> None:
        """Add a table to the registry.

        Raises:
            DuplicateModelError: If a table with the same name is already registered.
        """
        if table.name in self.tables:
            raise DuplicateModelError(f"Type '{table.name}' is declared as @model more than once")
        self.tables[table.name] = table

    def table(self, name: str) -> TableResource | None:
        return self.tables.get(name)

    def add_resource(self, resource: Resource) -> None:
        self.resources.append(resource)

    def add_field_auth(self, type_name: str, field_name: str, rule: AuthSpec) -> None:
        self.field_auth.setdefault((type_name, field_name), []).append(rule)

    def auth_for_field(self, type_name: str, field_name: str) -> list[AuthSpec]:
        return self.field_auth.get((type_name, field_name), [])

    def classify_relations(self) -> None:
        """Resolve every table's relations now that all tables are registered."""
        for table in self.tables.values():
            table.classify(self)

    # -------- type lookups --------

    def declared_names(self, *kinds: type) -> list[str]:
        """Names of top-level declarations of the given node kinds, in document order."""
        return [d.name.value for d in self.document.definitions if isinstance(d, kinds)]

    def has_type(self, name: str) -> bool:
        return name in self.declared_names(ObjectTypeDefinitionNode)

    def definition(self, name: str) -> ObjectTypeDefinitionNode | None:
        for definition in self.document.definitions:
            if isinstance(definition, ObjectTypeDefinitionNode) and definition.name.value == name:
                return definition
        return None

    def type_category(self, name: str) -> TypeCategory:
        if name in self.tables:
            return TypeCategory.MODEL
        if name in self.declared_names(EnumTypeDefinitionNode):
            return TypeCategory.ENUM
        if name in self.declared_names(ObjectTypeDefinitionNode):
            return TypeCategory.OBJECT
        opaque_kinds = (InterfaceTypeDefinitionNode, UnionTypeDefinitionNode, InputObjectTypeDefinitionNode)
        if name in self.declared_names(*opaque_kinds):
            return TypeCategory.OPAQUE
        return TypeCategory.SCALAR

    def filter_input(self, name: str) -> str | None:
        """Filter/condition input type for a field of the named type, or None if not filterable."""
        category = self.type_category(name)
        if category is TypeCategory.SCALAR:
            return SCALAR_FILTER_INPUTS.get(name, "ModelStringInput")
        if category is TypeCategory.ENUM:
            return f"Model{name}Input"
        return None
