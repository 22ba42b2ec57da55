# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the tree and SDL edit operations."""

import pytest
from graphql import parse, print_ast

from dynagraph.compiler.digger import (
    append_definitions,
    apply_sdl_patch,
    empty_document,
    has_directive,
    list_append_at_path,
    parse_field,
    print_type,
    replace_at_path,
    type_shape,
)
from dynagraph.compiler.errors import PatchError, TypeShapeError
from dynagraph.model import (
    AddDirective,
    AddField,
    RemoveDirective,
    RemoveField,
    ReplaceField,
    TypeShape,
)

# ###############
# Helpers
# ###############


def _field_type(sdl: str):
    return parse(f"type T {{ f: {sdl} }}").definitions[0].fields[0].type


def _field_names(document, type_name: str) -> list[str]:
    for definition in document.definitions:
        if definition.name.value == type_name:
            return [field.name.value for field in definition.fields or ()]
    raise AssertionError(f"{type_name} not found")


# ###############
# Type shapes
# ###############


class TestTypeShape:
    @pytest.mark.parametrize(
        ("sdl", "shape"),
        [
            ("Post", TypeShape(base="Post")),
            ("Post!", TypeShape(base="Post", required=True)),
            ("[Post]", TypeShape(base="Post", is_list=True)),
            ("[Post!]!", TypeShape(base="Post", is_list=True, required=True, item_required=True)),
        ],
    )
    def test_supported_wrappings(self, sdl: str, shape: TypeShape) -> None:
        assert type_shape(_field_type(sdl)) == shape
        assert print_type(shape) == sdl

    def test_nested_lists_are_rejected(self) -> None:
        with pytest.raises(TypeShapeError):
            type_shape(_field_type("[[Post]]"))


# ###############
# Tree patches
# ###############


class TestReplaceAtPath:
    def test_creates_intermediate_mappings(self) -> None:
        assert replace_at_path({}, "a#b#c", 1) == {"a": {"b": {"c": 1}}}

    def test_overwrites_scalar_leaf(self) -> None:
        assert replace_at_path({"a": {"b": 1}}, "a#b", 2) == {"a": {"b": 2}}

    def test_appends_when_leaf_is_a_list(self) -> None:
        assert replace_at_path({"a": [1]}, "a", 2) == {"a": [1, 2]}

    def test_does_not_mutate_input(self) -> None:
        tree = {"a": {"b": [1]}}
        replace_at_path(tree, "a#b", 2)
        replace_at_path(tree, "a#c", 3)
        assert tree == {"a": {"b": [1]}}

    def test_empty_path_replaces_tree(self) -> None:
        assert replace_at_path({"a": 1}, "", {"b": 2}) == {"b": 2}

    def test_non_mapping_segment_is_an_error(self) -> None:
        with pytest.raises(PatchError):
            replace_at_path({"a": 1}, "a#b", 2)


class TestListAppendAtPath:
    def test_missing_leaf_becomes_list(self) -> None:
        assert list_append_at_path({}, "a#b", 1) == {"a": {"b": [1]}}

    def test_appends_in_order(self) -> None:
        tree = list_append_at_path({}, "a", 1)
        tree = list_append_at_path(tree, "a", 2)
        assert tree == {"a": [1, 2]}

    def test_non_list_leaf_is_an_error(self) -> None:
        with pytest.raises(PatchError):
            list_append_at_path({"a": 1}, "a", 2)


# ###############
# SDL patches
# ###############

DOCUMENT = """
type Post @model @key(fields: ["id"]) {
  id: ID!
  title: String @unique
  body: String
}

input PostInput {
  id: ID
  author: AuthorInput
}
"""


class TestSdlPatch:
    def test_add_field_appends_last(self) -> None:
        document = apply_sdl_patch(parse(DOCUMENT), AddField(type_name="Post", field="tenantId: String"))
        assert _field_names(document, "Post") == ["id", "title", "body", "tenantId"]

    def test_add_field_to_input(self) -> None:
        document = apply_sdl_patch(parse(DOCUMENT), AddField(type_name="PostInput", field="authorId: String = null"))
        assert _field_names(document, "PostInput") == ["id", "author", "authorId"]

    def test_remove_field_keeps_sibling_order(self) -> None:
        document = apply_sdl_patch(parse(DOCUMENT), RemoveField(type_name="Post", field_name="title"))
        assert _field_names(document, "Post") == ["id", "body"]

    def test_replace_field_in_place(self) -> None:
        patch = ReplaceField(type_name="PostInput", field_name="author", field="authorId: String")
        document = apply_sdl_patch(parse(DOCUMENT), patch)
        assert _field_names(document, "PostInput") == ["id", "authorId"]

    def test_remove_directive_from_type(self) -> None:
        document = apply_sdl_patch(parse(DOCUMENT), RemoveDirective(type_name="Post", directive="model"))
        post = document.definitions[0]
        assert not has_directive(post, "model")
        assert has_directive(post, "key")

    def test_remove_directive_is_idempotent(self) -> None:
        patch = RemoveDirective(type_name="Post", field_name="title", directive="unique")
        once = apply_sdl_patch(parse(DOCUMENT), patch)
        twice = apply_sdl_patch(once, patch)
        assert print_ast(once) == print_ast(twice)

    def test_add_directive_deduplicates(self) -> None:
        patch = AddDirective(type_name="Post", field_name="body", directives=["aws_iam", "aws_iam"])
        document = apply_sdl_patch(parse(DOCUMENT), patch)
        document = apply_sdl_patch(document, patch)
        body = document.definitions[0].fields[2]
        assert [d.name.value for d in body.directives] == ["aws_iam"]

    def test_input_document_is_not_mutated(self) -> None:
        original = parse(DOCUMENT)
        before = print_ast(original)
        apply_sdl_patch(original, RemoveField(type_name="Post", field_name="body"))
        assert print_ast(original) == before

    def test_unknown_type_is_an_error(self) -> None:
        with pytest.raises(PatchError):
            apply_sdl_patch(parse(DOCUMENT), RemoveField(type_name="Missing", field_name="id"))

    def test_unknown_field_is_an_error(self) -> None:
        with pytest.raises(PatchError):
            apply_sdl_patch(parse(DOCUMENT), RemoveField(type_name="Post", field_name="missing"))


class TestAppendDefinitions:
    def test_appends_to_empty_document(self) -> None:
        document = append_definitions(empty_document(), parse("type A { id: ID }").definitions)
        assert print_ast(document) == "type A {\n  id: ID\n}"

    def test_same_kind_and_name_replaces_in_place(self) -> None:
        document = parse("type A { id: ID }\n\ntype B { id: ID }")
        document = append_definitions(document, parse("type A { name: String }").definitions)
        assert [d.name.value for d in document.definitions] == ["A", "B"]
        assert _field_names(document, "A") == ["name"]


def test_parse_field_rejects_multiple_fields() -> None:
    with pytest.raises(PatchError):
        parse_field("a: String b: String")


def test_parse_field_rejects_invalid_sdl() -> None:
    with pytest.raises(PatchError):
        parse_field("a: ")
