# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Strip compiler-only directives from the published schema."""

from __future__ import annotations

from typing import TYPE_CHECKING

from graphql.language import InputObjectTypeDefinitionNode

from dynagraph.compiler.context import FieldLocation, in_scope, walk
from dynagraph.model.artifacts import ArtifactFragment, RemoveDirective

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext

# ###############
# Public Interface
# ###############

INTERNAL_DIRECTIVES = frozenset(
    {"model", "key", "connection", "function", "auth", "unique", "multiTenancy", "modelInput"}
)


class SchemaSanitizerResource:
    """Removes every internal directive occurrence on in-scope declarations.

    Relation fields of input types are skipped: they are replaced wholesale
    by their foreign-key field, which carries no directives.
    """

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        fragments = []
        for location in walk(context.document):
            if not in_scope(location, context.types):
                continue
            node = location.node()
            names = [d.name.value for d in node.directives or () if d.name.value in INTERNAL_DIRECTIVES]
            if isinstance(location, FieldLocation):
                if isinstance(location.owner.definition, InputObjectTypeDefinitionNode) and "connection" in names:
                    continue
                field_name: str | None = location.field_name
            else:
                field_name = None
            for name in dict.fromkeys(names):
                fragments.append(
                    ArtifactFragment(
                        location=context.root_location,
                        patch=RemoveDirective(type_name=location.type_name, field_name=field_name, directive=name),
                    )
                )
        return fragments
