# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Resources: the per-table aggregate and the emitters derived from it."""

from dynagraph.compiler.resources.base import ROOT_FRAGMENT_LOCATION, Resource, TypeCategory
from dynagraph.compiler.resources.connection import GraphqlConnectedInputResource, GraphqlConnectionResource
from dynagraph.compiler.resources.crud import GraphqlCrudResource
from dynagraph.compiler.resources.dynamodb import DynamoDBTableResource
from dynagraph.compiler.resources.function import FunctionResource
from dynagraph.compiler.resources.query import GraphqlQueryResource
from dynagraph.compiler.resources.sanitizer import INTERNAL_DIRECTIVES, SchemaSanitizerResource
from dynagraph.compiler.resources.shared import SharedSchemaResource
from dynagraph.compiler.resources.table import TableResource

__all__ = [
    "DynamoDBTableResource",
    "FunctionResource",
    "GraphqlConnectedInputResource",
    "GraphqlConnectionResource",
    "GraphqlCrudResource",
    "GraphqlQueryResource",
    "INTERNAL_DIRECTIVES",
    "ROOT_FRAGMENT_LOCATION",
    "Resource",
    "SchemaSanitizerResource",
    "SharedSchemaResource",
    "TableResource",
    "TypeCategory",
]
