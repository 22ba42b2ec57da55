# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the DynamoDB table declarations."""

import yaml

from dynagraph.compiler.dispatcher import compile_schema
from dynagraph.compiler.materializer import materialize
from dynagraph.compiler.resources import DynamoDBTableResource

# ###############
# Helpers
# ###############

LOCATION = "resources/dynamodb/{}.resource.yml"


def _table_document(sdl: str, name: str) -> dict:
    fragments = [f for f in compile_schema(sdl).fragments if f.location == LOCATION.format(name)]
    [file] = materialize(fragments)
    return yaml.safe_load(file.body)


def _properties(sdl: str, name: str) -> dict:
    return _table_document(sdl, name)["Resources"][f"{name}Table"]["Properties"]


# ###############
# Tests
# ###############


def test_simple_model_has_hash_key_on_id() -> None:
    properties = _properties("type Post @model { id: ID! title: String }", "Post")
    assert properties["TableName"] == "Post"
    assert properties["KeySchema"] == [{"AttributeName": "id", "KeyType": "HASH"}]
    assert properties["AttributeDefinitions"] == [{"AttributeName": "id", "AttributeType": "S"}]
    assert properties["StreamSpecification"] == {"StreamViewType": "NEW_AND_OLD_IMAGES"}
    assert "GlobalSecondaryIndexes" not in properties


def test_declaration_type() -> None:
    document = _table_document("type Post @model { id: ID! }", "Post")
    assert document["Resources"]["PostTable"]["Type"] == "AWS::DynamoDB::Table"


def test_sort_key_is_range_key() -> None:
    properties = _properties(
        'type Event @model @key(fields: ["deviceId", "at"]) { deviceId: String! at: AWSTimestamp! }',
        "Event",
    )
    assert properties["KeySchema"] == [
        {"AttributeName": "deviceId", "KeyType": "HASH"},
        {"AttributeName": "at", "KeyType": "RANGE"},
    ]
    assert {"AttributeName": "at", "AttributeType": "N"} in properties["AttributeDefinitions"]


def test_named_key_yields_exactly_one_index() -> None:
    sdl = """
type Post @model @key(fields: ["authorId", "createdAt"], name: "byAuthor", queryField: "postsByAuthor") {
  id: ID!
  authorId: String
  createdAt: String
}
"""
    properties = _properties(sdl, "Post")
    [index] = properties["GlobalSecondaryIndexes"]
    assert index["IndexName"] == "byAuthor"
    assert index["KeySchema"] == [
        {"AttributeName": "authorId", "KeyType": "HASH"},
        {"AttributeName": "createdAt", "KeyType": "RANGE"},
    ]
    assert index["Projection"] == {"ProjectionType": "ALL"}
    names = [d["AttributeName"] for d in properties["AttributeDefinitions"]]
    assert names == ["id", "authorId", "createdAt"]


def test_attribute_definitions_are_deduplicated() -> None:
    sdl = """
type Post @model
  @key(fields: ["authorId"], name: "byAuthor")
  @key(fields: ["authorId", "title"], name: "byAuthorTitle") {
  id: ID!
  authorId: String
  title: String
}
"""
    properties = _properties(sdl, "Post")
    names = [d["AttributeName"] for d in properties["AttributeDefinitions"]]
    assert names == ["id", "authorId", "title"]
    assert [i["IndexName"] for i in properties["GlobalSecondaryIndexes"]] == ["byAuthor", "byAuthorTitle"]


def test_every_table_has_one_partition_and_at_most_one_sort_key() -> None:
    sdl = 'type A @model @key(fields: ["a", "b", "c"]) { a: String! b: String! c: String! }'
    properties = _properties(sdl, "A")
    kinds = [entry["KeyType"] for entry in properties["KeySchema"]]
    assert kinds == ["HASH", "RANGE"]
    assert properties["KeySchema"][1]["AttributeName"] == "b#c"


def test_logical_id() -> None:
    table = compile_schema("type Post @model { id: ID! }").context.table("Post")
    assert DynamoDBTableResource(table).logical_id == "PostTable"
