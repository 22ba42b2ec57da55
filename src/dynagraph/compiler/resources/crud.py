# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""The get/list/create/update/delete surface of a model type."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dynagraph.compiler.digger import print_type
from dynagraph.compiler.resources import auth, templates
from dynagraph.compiler.resources.base import (
    TypeCategory,
    function_config,
    function_template_pair,
    functions_location,
    mapping_entry,
    mapping_fragment,
    mapping_location,
    schema_location,
    template_pair,
)
from dynagraph.model.artifacts import AddDirective, AddField, ArtifactFragment
from dynagraph.model.specs import AuthAction, TypeShape

if TYPE_CHECKING:
    from graphql.language import FieldDefinitionNode

    from dynagraph.compiler.registry import CompilationContext
    from dynagraph.compiler.resources.table import TableResource

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class GraphqlCrudResource:
    """Emits the operations, input types, bindings and templates of one table."""

    def __init__(self, table: TableResource) -> None:
        self.table = table

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        table = self.table
        fragments = [ArtifactFragment(location=schema_location(table.name), payload=self.schema(context))]
        fragments.extend(self.root_patches(context))
        fragments.append(mapping_fragment(mapping_location(table.name), self.mapping()))
        fragments.extend(self.templates())
        logger.debug("Emitted CRUD surface for %s", table.name)
        return fragments

    # -------- schema --------

    def operation_names(self) -> dict[str, str]:
        name = self.table.name
        return {
            "get": f"get{name}",
            "list": f"list{name}s",
            "create": f"create{name}",
            "update": f"update{name}",
            "delete": f"delete{name}",
        }

    def schema(self, context: CompilationContext) -> str:
        """SDL text of the generated operations and their input types."""
        table = self.table
        name = table.name
        ops = self.operation_names()
        key_args = ", ".join(f"{f}: {table.key_field_type(f)}!" for f in table.primary_key.fields)
        read = self._annotations(AuthAction.READ)
        write_args = f"(input: {{kind}}{name}Input!, condition: Model{name}ConditionInput): {name}"
        mutations = "\n".join(
            f"  {ops[action.value]}{write_args.format(kind=action.value.capitalize())}{self._annotations(action)}"
            for action in (AuthAction.CREATE, AuthAction.UPDATE, AuthAction.DELETE)
        )
        sections = [
            f"""extend type Query {{
  {ops["get"]}({key_args}): {name}{read}
  {ops["list"]}(filter: Model{name}FilterInput, limit: Int, nextToken: String): Model{name}Connection{read}
}}""",
            f"extend type Mutation {{\n{mutations}\n}}",
            f"type Model{name}Connection {{\n  items: [{name}]\n  nextToken: String\n}}",
            _input(f"Model{name}ConditionInput", self.filter_fields(context, f"Model{name}ConditionInput")),
            _input(f"Model{name}FilterInput", self.filter_fields(context, f"Model{name}FilterInput")),
            _input(f"Create{name}Input", self.create_fields(context)),
            _input(f"Update{name}Input", self.update_fields(context)),
            _input(f"Delete{name}Input", self.delete_fields()),
        ]
        return "\n\n".join(sections) + "\n"

    def filter_fields(self, context: CompilationContext, input_name: str) -> list[str]:
        """Fields of a condition or filter input, ending with its ``and``/``or``/``not`` combinators."""
        lines: dict[str, str] = {}
        for field in self._stored_fields():
            field_name = field.name.value
            connection = self.table.connection(field_name)
            if connection is not None:
                if not connection.has_many:
                    mine, _ = self.table.relation_keys(connection)
                    lines.setdefault(mine, f"{mine}: ModelStringInput")
                continue
            shape = self.table.field_shape(field_name)
            filter_input = context.filter_input(shape.base)
            if filter_input is not None:
                lines.setdefault(field_name, f"{field_name}: {filter_input}")
        for foreign_key in self.table.implied_foreign_keys:
            lines.setdefault(foreign_key, f"{foreign_key}: ModelStringInput")
        return [*lines.values(), f"and: [{input_name}]", f"or: [{input_name}]", f"not: {input_name}"]

    def create_fields(self, context: CompilationContext) -> list[str]:
        """Fields of the create input.

        Singular relations are set through their foreign key and has-many
        relations are omitted. A has-many declared on another type with no
        reciprocal field here adds its foreign key. An ``ID`` partition key is
        optional since the resolver generates it when absent.
        """
        table = self.table
        pk = table.primary_key.partition_key
        lines: dict[str, str] = {}
        for field in self._stored_fields():
            field_name = field.name.value
            shape = table.field_shape(field_name)
            connection = table.connection(field_name)
            if connection is not None:
                if not connection.has_many:
                    mine, _ = table.relation_keys(connection)
                    lines.setdefault(mine, f"{mine}: String{'!' if shape.required else ''}")
                continue
            if field_name == pk and self.auto_id:
                shape = shape.optional()
            input_type = self._input_type(context, shape, "Create")
            if input_type is not None:
                lines.setdefault(field_name, f"{field_name}: {input_type}")
        for foreign_key in table.implied_foreign_keys:
            lines.setdefault(foreign_key, f"{foreign_key}: String")
        for key_field in table.primary_key.fields:
            required = "" if key_field == pk and self.auto_id else "!"
            lines.setdefault(key_field, f"{key_field}: {table.key_field_type(key_field)}{required}")
        return list(lines.values())

    def update_fields(self, context: CompilationContext) -> list[str]:
        """Fields of the update input: everything optional except the primary key."""
        table = self.table
        key_fields = table.primary_key.fields
        lines: dict[str, str] = {}
        for field in self._stored_fields():
            field_name = field.name.value
            shape = table.field_shape(field_name)
            connection = table.connection(field_name)
            if connection is not None:
                if not connection.has_many:
                    mine, _ = table.relation_keys(connection)
                    lines.setdefault(mine, f"{mine}: String")
                continue
            if field_name in key_fields:
                lines.setdefault(field_name, f"{field_name}: {shape.base}!")
            else:
                input_type = self._input_type(context, shape.optional(), "Update")
                if input_type is not None:
                    lines.setdefault(field_name, f"{field_name}: {input_type}")
        for foreign_key in table.implied_foreign_keys:
            lines.setdefault(foreign_key, f"{foreign_key}: String")
        for key_field in key_fields:
            lines.setdefault(key_field, f"{key_field}: {table.key_field_type(key_field)}!")
        return list(lines.values())

    def delete_fields(self) -> list[str]:
        return [f"{f}: {self.table.key_field_type(f)}!" for f in self.table.primary_key.fields]

    def root_patches(self, context: CompilationContext) -> list[ArtifactFragment]:
        """Edits to the published schema: provider annotations and the tenant field."""
        table = self.table
        fragments = []
        providers = auth.annotations(table.providers())
        if providers:
            fragments.append(
                ArtifactFragment(
                    location=context.root_location,
                    patch=AddDirective(type_name=table.name, directives=providers),
                )
            )
        tenancy = table.multi_tenancy
        if tenancy is not None and table.field(tenancy.field) is None:
            fragments.append(
                ArtifactFragment(
                    location=context.root_location,
                    patch=AddField(type_name=table.name, field=f"{tenancy.field}: String"),
                )
            )
        return fragments

    # -------- resolvers --------

    @property
    def auto_id(self) -> bool:
        """Whether create generates the partition key value when it is omitted."""
        key = self.table.primary_key
        return self.table.key_field_type(key.partition_key) == "ID"

    def function_names(self) -> dict[str, str]:
        """Pipeline functions of update and delete on tables with unique fields."""
        ops = self.operation_names()
        return {
            "read": f"{self.table.name}ItemRead",
            "update": f"{ops['update']}Write",
            "delete": f"{ops['delete']}Write",
        }

    def mapping(self) -> list[dict[str, Any]]:
        ops = self.operation_names()
        name = self.table.name
        entries = [
            mapping_entry(name, "Query", ops["get"]),
            mapping_entry(name, "Query", ops["list"]),
            mapping_entry(name, "Mutation", ops["create"]),
        ]
        if not self.table.unique_fields:
            entries.append(mapping_entry(name, "Mutation", ops["update"]))
            entries.append(mapping_entry(name, "Mutation", ops["delete"]))
            return entries
        # Update reads the item back once the transaction committed.
        functions = self.function_names()
        entries.append(
            mapping_entry(
                name,
                "Mutation",
                ops["update"],
                kind="PIPELINE",
                functions=[functions["read"], functions["update"], functions["read"]],
            )
        )
        entries.append(
            mapping_entry(
                name,
                "Mutation",
                ops["delete"],
                kind="PIPELINE",
                functions=[functions["read"], functions["delete"]],
            )
        )
        return entries

    def templates(self) -> list[ArtifactFragment]:
        table = self.table
        ops = self.operation_names()
        key = table.primary_key
        tenancy = table.multi_tenancy
        read = table.rules_for(AuthAction.READ)
        unique = table.unique_fields

        get_response = auth.single_item_check(read)
        list_request = templates.list_request()
        create_request = auth.create_check(table.rules_for(AuthAction.CREATE))
        update_request = auth.owner_condition(table.rules_for(AuthAction.UPDATE))
        delete_request = auth.owner_condition(table.rules_for(AuthAction.DELETE))
        if tenancy is not None:
            get_response = auth.tenant_item_check(tenancy) + get_response
            list_request = auth.tenant_list(tenancy) + list_request
            create_request += auth.tenant_create(tenancy)
            update_request += auth.tenant_condition(tenancy)
            delete_request += auth.tenant_condition(tenancy)
        create_request += templates.create_request(
            table.name, key, table.composite_keys, unique, auto_id=self.auto_id
        )
        update_request += templates.update_request(table.name, key, table.composite_keys, unique)
        delete_request += templates.delete_request(table.name, key, unique)

        fragments = [
            *template_pair(
                "Query",
                ops["get"],
                templates.get_request(key),
                get_response + templates.RESULT_RESPONSE,
            ),
            *template_pair(
                "Query",
                ops["list"],
                list_request,
                auth.list_filter(read) + templates.RESULT_RESPONSE,
            ),
        ]
        if not unique:
            fragments.extend(template_pair("Mutation", ops["create"], create_request, templates.RESULT_RESPONSE))
            fragments.extend(template_pair("Mutation", ops["update"], update_request, templates.RESULT_RESPONSE))
            fragments.extend(template_pair("Mutation", ops["delete"], delete_request, templates.RESULT_RESPONSE))
            return fragments

        functions = self.function_names()
        step_response = templates.transact_write_response(table.name, result="$ctx.result")
        fragments.extend(
            template_pair("Mutation", ops["create"], create_request, templates.transact_write_response(table.name))
        )
        for action in ("update", "delete"):
            fragments.extend(
                template_pair(
                    "Mutation",
                    ops[action],
                    templates.PIPELINE_REQUEST,
                    templates.STASHED_ITEM_RESPONSE,
                )
            )
        fragments.extend(
            function_template_pair(functions["read"], templates.item_read_request(key), templates.item_read_response())
        )
        fragments.extend(function_template_pair(functions["update"], update_request, step_response))
        fragments.extend(function_template_pair(functions["delete"], delete_request, step_response))
        fragments.append(
            mapping_fragment(
                functions_location(table.name),
                [function_config(function, table.name) for function in functions.values()],
            )
        )
        return fragments

    # ################
    # Implementation
    # ################

    def _annotations(self, action: AuthAction) -> str:
        return "".join(f" @{name}" for name in auth.annotations(self.table.providers(action)))

    def _stored_fields(self) -> list[FieldDefinitionNode]:
        """Fields persisted on the table: not computed and not the managed tenant field."""
        table = self.table
        tenant = table.multi_tenancy.field if table.multi_tenancy is not None else None
        return [f for f in table.fields if not table.is_computed(f.name.value) and f.name.value != tenant]

    def _input_type(self, context: CompilationContext, shape: TypeShape, prefix: str) -> str | None:
        """SDL type of an input field: nested models and objects become their input types.

        Returns None for interface, union and input types, which cannot be written.
        """
        category = context.type_category(shape.base)
        if category is TypeCategory.OPAQUE:
            return None
        if category is TypeCategory.MODEL:
            shape = shape.renamed(f"{prefix}{shape.base}Input")
        elif category is TypeCategory.OBJECT:
            shape = shape.renamed(f"{shape.base}Input")
        return print_type(shape)


def _input(name: str, fields: list[str]) -> str:
    body = "\n".join(f"  {line}" for line in fields)
    return f"input {name} {{\n{body}\n}}"
