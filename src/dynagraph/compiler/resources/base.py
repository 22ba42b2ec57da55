# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Shared vocabulary for resources: the emission protocol and artifact locations."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from dynagraph.model.artifacts import ArtifactFragment

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext

# ###############
# Public Interface
# ###############

ROOT_FRAGMENT_LOCATION = "schema/root.graphql"

SCALAR_FILTER_INPUTS = {
    "ID": "ModelIDInput",
    "String": "ModelStringInput",
    "Int": "ModelIntInput",
    "Float": "ModelFloatInput",
    "Boolean": "ModelBooleanInput",
    "AWSTimestamp": "ModelIntInput",
}

KEY_CONDITION_INPUTS = {
    "ID": "ModelIDKeyConditionInput",
    "String": "ModelStringKeyConditionInput",
    "Int": "ModelIntKeyConditionInput",
    "Float": "ModelFloatKeyConditionInput",
    "AWSTimestamp": "ModelIntKeyConditionInput",
}


class TypeCategory(Enum):
    """How a named type referenced by a model field is treated by generated inputs."""

    SCALAR = "scalar"
    ENUM = "enum"
    MODEL = "model"
    OBJECT = "object"
    # Interfaces, unions and input types have no input mirror.
    OPAQUE = "opaque"


class Resource(Protocol):
    """Anything that contributes artifact fragments once the registry is complete."""

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]: ...


def table_definition_location(table_name: str) -> str:
    return f"resources/dynamodb/{table_name}.resource.yml"


def mapping_location(type_name: str, field_name: str | None = None) -> str:
    if field_name is None:
        return f"resources/appsync/{type_name}.mapping.yml"
    return f"resources/appsync/{type_name}.{field_name}.mapping.yml"


def template_location(type_name: str, field_name: str, phase: str) -> str:
    return f"mapping-templates/{type_name}.{field_name}.{phase}.vtl"


def functions_location(type_name: str) -> str:
    return f"resources/appsync/{type_name}.functions.yml"


def schema_location(name: str) -> str:
    return f"schema/{name}.graphql"


def mapping_entry(data_source: str, type_name: str, field_name: str, **extra: Any) -> dict[str, Any]:
    """One datasource-to-operation binding."""
    return {"dataSource": data_source, "type": type_name, "field": field_name, **extra}


def mapping_fragment(location: str, entries: list[dict[str, Any]]) -> ArtifactFragment:
    return ArtifactFragment(location=location, payload=entries)


def function_config(name: str, data_source: str) -> dict[str, str]:
    """A pipeline function definition whose templates live beside the resolver templates."""
    return {
        "name": name,
        "dataSource": data_source,
        "request": f"{name}.request.vtl",
        "response": f"{name}.response.vtl",
    }


def template_pair(
    type_name: str,
    field_name: str,
    request: str,
    response: str,
    *,
    replaceable: bool = True,
) -> list[ArtifactFragment]:
    """Fragments for the request and response templates of one resolver."""
    return [
        ArtifactFragment(
            location=template_location(type_name, field_name, "request"),
            payload=request,
            replaceable=replaceable,
        ),
        ArtifactFragment(
            location=template_location(type_name, field_name, "response"),
            payload=response,
            replaceable=replaceable,
        ),
    ]


def function_template_pair(name: str, request: str, response: str) -> list[ArtifactFragment]:
    """Fragments for the request and response templates of one pipeline function."""
    return [
        ArtifactFragment(location=f"mapping-templates/{name}.request.vtl", payload=request),
        ArtifactFragment(location=f"mapping-templates/{name}.response.vtl", payload=response),
    ]
