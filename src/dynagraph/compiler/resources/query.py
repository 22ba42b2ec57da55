# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Query fields derived from named keys carrying ``queryField``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dynagraph.compiler.resources import auth, templates
from dynagraph.compiler.resources.base import (
    KEY_CONDITION_INPUTS,
    mapping_entry,
    mapping_fragment,
    mapping_location,
    schema_location,
    template_pair,
)
from dynagraph.model.artifacts import ArtifactFragment
from dynagraph.model.specs import AuthAction, KeySpec, upper_first

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext
    from dynagraph.compiler.resources.table import TableResource

# ###############
# Public Interface
# ###############

COMPOSITE_OPERATORS = ("eq", "le", "lt", "ge", "gt")


class GraphqlQueryResource:
    """Emits the query field, composite-key inputs, binding and templates of one key."""

    def __init__(self, table: TableResource, key: KeySpec) -> None:
        self.table = table
        self.key = key

    @property
    def query_field(self) -> str:
        return self.key.query_field or ""

    @property
    def composite_prefix(self) -> str:
        return f"Model{self.table.name}{upper_first(self.key.name or '')}"

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        table = self.table
        query_field = self.query_field
        tenancy = table.multi_tenancy
        response = auth.list_filter(table.rules_for(AuthAction.READ)) + templates.RESULT_RESPONSE
        if tenancy is not None:
            response = auth.tenant_items_filter(tenancy) + response
        return [
            ArtifactFragment(location=schema_location(f"{table.name}.{query_field}"), payload=self.schema()),
            mapping_fragment(
                mapping_location(table.name, query_field),
                [mapping_entry(table.name, "Query", query_field)],
            ),
            *template_pair("Query", query_field, templates.key_query_request(self.key), response),
        ]

    def sort_argument_type(self) -> str | None:
        """Input type of the sort-key condition argument, or None for keys without a sort key."""
        key = self.key
        if not key.sort_fields:
            return None
        if key.is_composite:
            return f"{self.composite_prefix}CompositeKeyConditionInput"
        return KEY_CONDITION_INPUTS.get(self.table.key_field_type(key.sort_fields[0]), "ModelStringKeyConditionInput")

    def schema(self) -> str:
        table = self.table
        key = self.key
        args = [f"{key.partition_key}: {table.key_field_type(key.partition_key)}"]
        sort_type = self.sort_argument_type()
        if sort_type is not None:
            args.append(f"{key.sort_argument}: {sort_type}")
        args.extend(
            [
                "sortDirection: ModelSortDirection",
                f"filter: Model{table.name}FilterInput",
                "limit: Int",
                "nextToken: String",
            ]
        )
        annotations = "".join(f" @{name}" for name in auth.annotations(table.providers(AuthAction.READ)))
        signature = f"{self.query_field}({', '.join(args)}): Model{table.name}Connection{annotations}"
        sections = [f"extend type Query {{\n  {signature}\n}}"]
        if key.is_composite:
            sections.extend(self._composite_inputs())
        return "\n\n".join(sections) + "\n"

    # ################
    # Implementation
    # ################

    def _composite_inputs(self) -> list[str]:
        condition = f"{self.composite_prefix}CompositeKeyConditionInput"
        composite = f"{self.composite_prefix}CompositeKeyInput"
        operators = [f"  {op}: {composite}" for op in COMPOSITE_OPERATORS]
        operators.append(f"  between: [{composite}]")
        operators.append(f"  beginsWith: {composite}")
        parts = [f"  {name}: {self.table.key_field_type(name)}" for name in self.key.sort_fields]
        return [
            f"input {condition} {{\n" + "\n".join(operators) + "\n}",
            f"input {composite} {{\n" + "\n".join(parts) + "\n}",
        ]
