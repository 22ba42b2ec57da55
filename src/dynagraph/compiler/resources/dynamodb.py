# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""DynamoDB table declarations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dynagraph.compiler.digger import PATH_SEPARATOR
from dynagraph.compiler.resources.base import table_definition_location
from dynagraph.model.artifacts import ArtifactFragment, ListAppendAtPath, ReplaceAtPath

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext
    from dynagraph.compiler.resources.table import TableResource

# ###############
# Public Interface
# ###############

PROVISIONED_THROUGHPUT = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}


class DynamoDBTableResource:
    """Emits the infrastructure declaration of one table.

    The base declaration carries the primary key only. Attribute definitions
    for secondary indexes and the indexes themselves are layered on as tree
    patches, so that the table document can also be extended by other tools.
    """

    def __init__(self, table: TableResource) -> None:
        self.table = table

    @property
    def logical_id(self) -> str:
        return f"{self.table.name}Table"

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        table = self.table
        location = table_definition_location(table.name)
        key = table.primary_key
        fragments = [ArtifactFragment(location=location, payload=self.base_declaration())]

        definitions_path = self._path("AttributeDefinitions")
        for attribute in table.key_attributes():
            if attribute in key.attributes:
                continue
            fragments.append(
                ArtifactFragment(
                    location=location,
                    patch=ReplaceAtPath(path=definitions_path, value=self._attribute_definition(attribute)),
                )
            )

        indexes_path = self._path("GlobalSecondaryIndexes")
        for index in table.secondary_indexes():
            declaration: dict[str, Any] = {
                "IndexName": index.name,
                "KeySchema": _key_schema(index.partition_key, index.sort_key),
                "Projection": {"ProjectionType": "ALL"},
                "ProvisionedThroughput": dict(PROVISIONED_THROUGHPUT),
            }
            fragments.append(
                ArtifactFragment(location=location, patch=ListAppendAtPath(path=indexes_path, value=declaration))
            )
        return fragments

    def base_declaration(self) -> dict[str, Any]:
        """The table declaration before any secondary index is added."""
        key = self.table.primary_key
        return {
            "Resources": {
                self.logical_id: {
                    "Type": "AWS::DynamoDB::Table",
                    "Properties": {
                        "TableName": self.table.name,
                        "AttributeDefinitions": [self._attribute_definition(a) for a in key.attributes],
                        "StreamSpecification": {"StreamViewType": "NEW_AND_OLD_IMAGES"},
                        "KeySchema": _key_schema(key.partition_key, key.sort_key),
                        "ProvisionedThroughput": dict(PROVISIONED_THROUGHPUT),
                    },
                }
            }
        }

    # ################
    # Implementation
    # ################

    def _path(self, leaf: str) -> str:
        return PATH_SEPARATOR.join(["Resources", self.logical_id, "Properties", leaf])

    def _attribute_definition(self, attribute: str) -> dict[str, str]:
        return {"AttributeName": attribute, "AttributeType": self.table.attribute_type(attribute)}


def _key_schema(partition_key: str, sort_key: str | None) -> list[dict[str, str]]:
    schema = [{"AttributeName": partition_key, "KeyType": "HASH"}]
    if sort_key is not None:
        schema.append({"AttributeName": sort_key, "KeyType": "RANGE"})
    return schema
