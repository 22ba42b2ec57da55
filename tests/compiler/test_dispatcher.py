# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the compilation passes and the fragment stream they produce."""

import logging

import pytest

from dynagraph.compiler.directives import Directive, Phase
from dynagraph.compiler.dispatcher import compile_schema
from dynagraph.compiler.errors import SchemaSyntaxError
from dynagraph.model import RelationKind, RemoveDirective

AUTHOR_FIRST = """
type Author @model {
  id: ID!
  posts: [Post] @connection(name: "Posts")
}

type Post @model {
  id: ID!
  author: Author @connection(name: "Posts")
}
"""

POST_FIRST = """
type Post @model {
  id: ID!
  author: Author @connection(name: "Posts")
}

type Author @model {
  id: ID!
  posts: [Post] @connection(name: "Posts")
}
"""

# ###############
# Passes
# ###############


class TestRelationClassification:
    @pytest.mark.parametrize("sdl", [AUTHOR_FIRST, POST_FIRST], ids=["author-first", "post-first"])
    def test_classification_does_not_depend_on_declaration_order(self, sdl: str) -> None:
        context = compile_schema(sdl).context
        assert context.table("Author").connection("posts").kind is RelationKind.HAS_MANY
        assert context.table("Post").connection("author").kind is RelationKind.BELONGS_TO

    @pytest.mark.parametrize("sdl", [AUTHOR_FIRST, POST_FIRST], ids=["author-first", "post-first"])
    def test_belongs_to_side_gets_the_relation_index(self, sdl: str) -> None:
        context = compile_schema(sdl).context
        indexes = context.table("Post").secondary_indexes()
        assert [(i.name, i.partition_key) for i in indexes] == [("Posts", "postAuthorId")]
        assert context.table("Author").secondary_indexes() == []

    def test_singular_relation_without_reciprocal_is_has_one(self) -> None:
        context = compile_schema(
            """
type Post @model { id: ID! cover: Image @connection(name: "Cover") }
type Image @model { id: ID! }
"""
        ).context
        post = context.table("Post")
        assert post.connection("cover").kind is RelationKind.HAS_ONE
        assert post.secondary_indexes() == []

    def test_unregistered_target_degrades_to_unindexed_key(self, caplog: pytest.LogCaptureFixture) -> None:
        context = compile_schema("type Post @model { id: ID! author: Author @connection(name: \"R\") }").context
        post = context.table("Post")
        assert post.connection("author").kind is RelationKind.HAS_ONE
        assert post.secondary_indexes() == []
        assert not post.is_resolvable(post.connection("author"))
        assert "not a @model type" in caplog.text


# ###############
# Fragment stream
# ###############


class TestEmission:
    def test_document_without_directives_emits_nothing(self) -> None:
        assert compile_schema("type Query { ping: String }").fragments == []

    def test_empty_document_emits_nothing(self) -> None:
        assert compile_schema("").fragments == []

    def test_root_is_seeded_before_its_edits(self) -> None:
        fragments = compile_schema("type Post @model { id: ID! }", schema_name="api.graphql").fragments
        root = [f for f in fragments if f.location == "schema/api.graphql"]
        assert root[0].patch is None
        assert "@model" in root[0].payload
        assert all(f.patch is not None for f in root[1:])
        assert fragments[0] is root[0]

    def test_sanitizer_runs_last(self) -> None:
        fragments = compile_schema("type Post @model { id: ID! }").fragments
        assert isinstance(fragments[-1].patch, RemoveDirective)
        assert fragments[-1].patch.directive == "model"

    def test_emission_is_deterministic(self) -> None:
        first = compile_schema(AUTHOR_FIRST).fragments
        second = compile_schema(AUTHOR_FIRST).fragments
        assert first == second

    def test_shared_root_fragment_only_with_tables(self) -> None:
        with_tables = compile_schema("type Post @model { id: ID! }").fragments
        without = compile_schema('type Query { a: String @function(name: "fn") }').fragments
        assert any(f.location == "schema/root.graphql" for f in with_tables)
        assert not any(f.location == "schema/root.graphql" for f in without)

    def test_syntax_error_is_reported(self) -> None:
        with pytest.raises(SchemaSyntaxError):
            compile_schema("type Post @model {")


class _Recorder(Directive):
    name = "trace"
    node_kinds = ()

    def __init__(self) -> None:
        self.seen: list[str] = []

    def matches(self, name, node, location, scope) -> bool:
        return name == self.name

    def apply(self, args, node, location, context) -> list:
        self.seen.append(node.name.value)
        return []


def test_every_occurrence_is_visited_once_in_document_order() -> None:
    recorder = _Recorder()
    compile_schema(
        """
type A @trace { x: String @trace y: String }
input B @trace { z: String @trace }
""",
        directives=[recorder],
    )
    assert recorder.seen == ["A", "x", "B", "z"]
    assert recorder.phase is Phase.COLLECT


def test_handler_without_apply_cannot_be_created() -> None:
    class _Incomplete(Directive):
        name = "incomplete"

    with pytest.raises(TypeError):
        _Incomplete()
    with pytest.raises(TypeError):
        Directive()


class TestFieldAuth:
    RULE = "@auth(provider: API_KEY)"

    def test_field_rule_without_function_is_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            context = compile_schema(f"type Post @model {{ id: ID! secret: String {self.RULE} }}").context
        assert "@auth on Post.secret is ignored" in caplog.text
        assert context.auth_for_field("Post", "secret")

    def test_field_rule_on_function_is_used_silently(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            compile_schema(f'type Query {{ echo: String {self.RULE} @function(name: "fn") }}')
        assert "is ignored" not in caplog.text
