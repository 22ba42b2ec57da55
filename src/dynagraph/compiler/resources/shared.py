# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declarations shared by every generated table: filter inputs, enums and input mirrors."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dynagraph.compiler.digger import print_type, type_shape
from dynagraph.compiler.resources.base import ROOT_FRAGMENT_LOCATION, TypeCategory
from dynagraph.model.artifacts import ArtifactFragment

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext

# ###############
# Public Interface
# ###############

ATTRIBUTE_TYPES = ("binary", "binarySet", "bool", "list", "map", "number", "numberSet", "string", "stringSet", "_null")


class SharedSchemaResource:
    """Emits the root fragment every generated schema file depends on."""

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        return [ArtifactFragment(location=ROOT_FRAGMENT_LOCATION, payload=self.schema(context))]

    def schema(self, context: CompilationContext) -> str:
        sections: list[str] = []
        for root in ("Query", "Mutation"):
            if not context.has_type(root):
                sections.append(f"type {root}")
        sections.append("enum ModelSortDirection {\n  ASC\n  DESC\n}")
        sections.append("enum ModelAttributeTypes {\n" + "\n".join(f"  {t}" for t in ATTRIBUTE_TYPES) + "\n}")
        sections.append(_input("ModelSizeInput", _comparisons("Int")))
        sections.append(_input("ModelStringInput", _string_filter("String")))
        sections.append(_input("ModelIDInput", _string_filter("ID")))
        sections.append(_input("ModelIntInput", _number_filter("Int")))
        sections.append(_input("ModelFloatInput", _number_filter("Float")))
        sections.append(
            _input(
                "ModelBooleanInput",
                ["ne: Boolean", "eq: Boolean", "attributeExists: Boolean", "attributeType: ModelAttributeTypes"],
            )
        )
        for scalar in ("String", "ID"):
            fields = [*_key_condition(scalar), f"beginsWith: {scalar}"]
            sections.append(_input(f"Model{scalar}KeyConditionInput", fields))
        for scalar in ("Int", "Float"):
            sections.append(_input(f"Model{scalar}KeyConditionInput", _key_condition(scalar)))

        enums, objects = self.referenced_types(context)
        for enum in enums:
            sections.append(_input(f"Model{enum}Input", [f"eq: {enum}", f"ne: {enum}"]))
        for name in objects:
            fields = self.mirror_fields(context, name)
            if fields:
                sections.append(_input(f"{name}Input", fields))
        return "\n\n".join(sections) + "\n"

    def referenced_types(self, context: CompilationContext) -> tuple[list[str], list[str]]:
        """Enums and non-model object types reachable from model fields, in first-seen order.

        Object types are followed recursively, so an object nested inside
        another object also gets an input mirror.
        """
        enums: dict[str, None] = {}
        objects: dict[str, None] = {}
        pending = [
            type_shape(field.type).base
            for table in context.tables.values()
            for field in table.fields
            if table.connection(field.name.value) is None
        ]
        while pending:
            name = pending.pop(0)
            category = context.type_category(name)
            if category is TypeCategory.ENUM:
                enums.setdefault(name, None)
            elif category is TypeCategory.OBJECT and name not in objects:
                definition = context.definition(name)
                if definition is None:
                    continue
                objects[name] = None
                pending.extend(type_shape(field.type).base for field in definition.fields or ())
        return list(enums), list(objects)

    def mirror_fields(self, context: CompilationContext, name: str) -> list[str]:
        """Fields of the input mirror of an object type; model-typed fields are left out."""
        definition = context.definition(name)
        if definition is None:
            return []
        lines = []
        for field in definition.fields or ():
            shape = type_shape(field.type)
            category = context.type_category(shape.base)
            if category in (TypeCategory.MODEL, TypeCategory.OPAQUE):
                continue
            if category is TypeCategory.OBJECT:
                shape = shape.renamed(f"{shape.base}Input")
            lines.append(f"{field.name.value}: {print_type(shape)}")
        return lines


# ################
# Implementation
# ################


def _input(name: str, fields: list[str]) -> str:
    body = "\n".join(f"  {line}" for line in fields)
    return f"input {name} {{\n{body}\n}}"


def _comparisons(scalar: str) -> list[str]:
    return [f"{op}: {scalar}" for op in ("ne", "eq", "le", "lt", "ge", "gt")] + [f"between: [{scalar}]"]


def _number_filter(scalar: str) -> list[str]:
    return [*_comparisons(scalar), "attributeExists: Boolean", "attributeType: ModelAttributeTypes"]


def _string_filter(scalar: str) -> list[str]:
    return [
        *_comparisons(scalar),
        f"contains: {scalar}",
        f"notContains: {scalar}",
        f"beginsWith: {scalar}",
        "attributeExists: Boolean",
        "attributeType: ModelAttributeTypes",
        "size: ModelSizeInput",
    ]


def _key_condition(scalar: str) -> list[str]:
    return [f"{op}: {scalar}" for op in ("eq", "le", "lt", "ge", "gt")] + [f"between: [{scalar}]"]
