# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Relation resolvers and the foreign-key rewriting of relation fields on inputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dynagraph.compiler.resources import templates
from dynagraph.compiler.resources.base import mapping_entry, mapping_fragment, mapping_location, template_pair
from dynagraph.model.artifacts import ArtifactFragment, RemoveField, ReplaceField
from dynagraph.model.specs import ConnectionSpec

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext
    from dynagraph.compiler.resources.table import TableResource

# ###############
# Public Interface
# ###############


class GraphqlConnectionResource:
    """Emits the binding and templates resolving one relation field.

    Unnamed relations cannot be backed by an index, so their templates are
    only seeds: they are emitted as non-replaceable and are expected to be
    edited by hand.
    """

    def __init__(self, table: TableResource, connection: ConnectionSpec) -> None:
        self.table = table
        self.connection = connection

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        table = self.table
        connection = self.connection
        mine, yours = table.relation_keys(connection)
        if connection.has_many:
            request = templates.has_many_request(yours, mine, connection.name)
            response = templates.RESULT_RESPONSE
        else:
            target_key = table.target_key(connection)
            partial_key = (
                target_key is not None and target_key.sort_key is not None and yours == target_key.partition_key
            )
            request = templates.has_one_request(yours, mine, partial_key=partial_key)
            response = templates.has_one_response(partial_key=partial_key)

        fragments = [
            mapping_fragment(
                mapping_location(table.name, connection.field),
                [mapping_entry(connection.target, table.name, connection.field)],
            ),
            *template_pair(table.name, connection.field, request, response, replaceable=not connection.custom),
        ]
        if connection.has_many:
            fragments.append(
                ArtifactFragment(
                    location=context.root_location,
                    patch=ReplaceField(
                        type_name=table.name,
                        field_name=connection.field,
                        field=self.paginated_field(),
                    ),
                )
            )
        return fragments

    def paginated_field(self) -> str:
        """The has-many field rewritten to take pagination arguments and return a connection."""
        connection = self.connection
        target = connection.target
        required = "!" if connection.shape.required else ""
        return (
            f"{connection.field}(filter: Model{target}FilterInput, sortDirection: ModelSortDirection, "
            f"limit: Int, nextToken: String): Model{target}Connection{required}"
        )


class GraphqlConnectedInputResource:
    """Rewrites a relation field of an input type into its foreign-key scalar.

    Attributes:
        type_name: Name of the input type declaring the field.
        field_name: Name of the relation field.
        foreign_key: Name of the foreign-key field replacing it.
        condition: Whether the input is a condition input, whose foreign key
            is filtered with ``ModelStringInput`` rather than set as a string.
    """

    def __init__(self, type_name: str, field_name: str, foreign_key: str, *, condition: bool = False) -> None:
        self.type_name = type_name
        self.field_name = field_name
        self.foreign_key = foreign_key
        self.condition = condition

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        if self.foreign_key == "id":
            patch: RemoveField | ReplaceField = RemoveField(type_name=self.type_name, field_name=self.field_name)
        else:
            scalar = "ModelStringInput" if self.condition else "String"
            patch = ReplaceField(
                type_name=self.type_name,
                field_name=self.field_name,
                field=f"{self.foreign_key}: {scalar}",
            )
        return [ArtifactFragment(location=context.root_location, patch=patch)]
