# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Pipeline resolvers binding a field to a function datasource."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dynagraph.compiler.resources import auth, templates
from dynagraph.compiler.resources.base import mapping_entry, mapping_fragment, mapping_location, template_pair
from dynagraph.model.artifacts import AddDirective, ArtifactFragment

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext

# ###############
# Public Interface
# ###############


class FunctionResource:
    """Emits a pipeline binding of one field to the function named by ``@function``.

    Field-scoped ``@auth`` rules declared on the same field are looked up in the
    compilation context when emitting, so they may appear before or after
    ``@function``.
    """

    def __init__(self, type_name: str, field_name: str, data_source: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        self.data_source = data_source

    @property
    def record(self) -> str:
        """Template reference of the values owner checks compare against."""
        if self.type_name == "Mutation":
            return "$ctx.args.input"
        if self.type_name == "Query":
            return "$ctx.args"
        return "$ctx.source"

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        rules = context.auth_for_field(self.type_name, self.field_name)
        entry = mapping_entry(
            self.data_source,
            self.type_name,
            self.field_name,
            kind="PIPELINE",
            functions=[self.data_source],
        )
        request = auth.field_check(rules, self.record) + templates.function_request(self.type_name)
        fragments = [
            mapping_fragment(mapping_location(self.type_name, self.field_name), [entry]),
            *template_pair(self.type_name, self.field_name, request, templates.function_response()),
        ]
        annotations = auth.annotations(rule.provider for rule in rules)
        if annotations:
            fragments.append(
                ArtifactFragment(
                    location=context.root_location,
                    patch=AddDirective(type_name=self.type_name, field_name=self.field_name, directives=annotations),
                )
            )
        return fragments
