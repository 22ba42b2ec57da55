# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the directive specifications and artifact data model."""

import pytest
from pydantic import ValidationError

from dynagraph.model import (
    AddDirective,
    ArtifactFragment,
    AuthAction,
    AuthProvider,
    AuthSpec,
    ConnectionSpec,
    DestinationKind,
    GroupStrategy,
    KeySpec,
    MultiTenancySpec,
    OwnerStrategy,
    ReplaceAtPath,
    SecondaryIndex,
    TypeShape,
    destination_kind,
    lower_first,
    upper_first,
)

# ###############
# Keys
# ###############


class TestKeySpec:
    def test_single_field_key_has_no_sort_key(self) -> None:
        key = KeySpec(fields=["id"])
        assert key.is_primary
        assert key.partition_key == "id"
        assert key.sort_key is None
        assert key.sort_argument is None
        assert key.attributes == ["id"]

    def test_two_field_key_uses_second_field_as_sort_key(self) -> None:
        key = KeySpec(fields=["authorId", "createdAt"], name="byAuthor")
        assert not key.is_primary
        assert key.sort_key == "createdAt"
        assert not key.is_composite
        assert key.attributes == ["authorId", "createdAt"]

    def test_composite_sort_key_is_joined_with_separator(self) -> None:
        key = KeySpec(fields=["customerId", "status", "createdAt"], name="byStatus")
        assert key.is_composite
        assert key.sort_key == "status#createdAt"
        assert key.sort_argument == "statusCreatedAt"

    def test_query_field_accepted_by_alias(self) -> None:
        key = KeySpec.model_validate({"fields": ["a"], "name": "byA", "queryField": "itemsByA"})
        assert key.query_field == "itemsByA"

    def test_empty_field_list_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            KeySpec(fields=[])


# ###############
# Relations
# ###############


class TestConnectionSpec:
    def test_list_shape_is_has_many(self) -> None:
        spec = ConnectionSpec(field="posts", target="Post", shape=TypeShape(base="Post", is_list=True))
        assert spec.has_many

    def test_unnamed_relation_is_custom(self) -> None:
        spec = ConnectionSpec(field="author", target="Author", shape=TypeShape(base="Author"))
        assert spec.custom
        assert not spec.has_many

    def test_named_relation_parses_aliases(self) -> None:
        spec = ConnectionSpec.model_validate(
            {
                "field": "author",
                "target": "Author",
                "shape": TypeShape(base="Author"),
                "name": "Posts",
                "foreignKey": "authorId",
                "sortField": "createdAt",
            }
        )
        assert not spec.custom
        assert spec.foreign_key == "authorId"
        assert spec.sort_field == "createdAt"


# ###############
# Authorization
# ###############


class TestAuthSpec:
    def test_actions_default_to_every_action(self) -> None:
        rule = AuthSpec(provider=AuthProvider.API_KEY)
        assert all(rule.covers(action) for action in AuthAction)

    def test_owner_strategy_defaults(self) -> None:
        rule = AuthSpec.model_validate(
            {"provider": "COGNITO_USER_POOLS", "actions": ["create"], "strategy": {"type": "OWNER"}}
        )
        assert isinstance(rule.strategy, OwnerStrategy)
        assert rule.strategy.owner_field == "owner"
        assert rule.strategy.identity_claim == "username"
        assert rule.covers(AuthAction.CREATE)
        assert not rule.covers(AuthAction.READ)

    def test_group_strategy_is_selected_by_type(self) -> None:
        rule = AuthSpec.model_validate(
            {"provider": "COGNITO_USER_POOLS", "strategy": {"type": "GROUP", "groups": ["Admin"]}}
        )
        assert isinstance(rule.strategy, GroupStrategy)
        assert rule.strategy.group_claim == "cognito:groups"

    def test_group_strategy_requires_groups(self) -> None:
        with pytest.raises(ValidationError):
            AuthSpec.model_validate({"provider": "COGNITO_USER_POOLS", "strategy": {"type": "GROUP", "groups": []}})

    def test_unknown_strategy_field_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AuthSpec.model_validate(
                {"provider": "COGNITO_USER_POOLS", "strategy": {"type": "OWNER", "ownerFeld": "owner"}}
            )

    def test_provider_annotations(self) -> None:
        assert AuthProvider.COGNITO_USER_POOLS.annotation == "aws_cognito_user_pools"
        assert AuthProvider.API_KEY.annotation == "aws_api_key"
        assert AuthProvider.IAM.annotation == "aws_iam"
        assert AuthProvider.COGNITO_USER_POOLS.pool_based
        assert not AuthProvider.IAM.pool_based


def test_multi_tenancy_defaults() -> None:
    spec = MultiTenancySpec()
    assert spec.field == "tenantId"
    assert spec.claim == "custom:tenantId"
    assert spec.index_name == "tenantIdMT"


def test_multi_tenancy_claim_given_as_owner_field() -> None:
    spec = MultiTenancySpec.model_validate({"field": "orgId", "indexSuffix": "ByOrg", "ownerField": "custom:org"})
    assert spec.index_name == "orgIdByOrg"
    assert spec.claim == "custom:org"


def test_secondary_index_attributes() -> None:
    assert SecondaryIndex(name="R", partition_key="a").attributes == ["a"]
    assert SecondaryIndex(name="R", partition_key="a", sort_key="b").attributes == ["a", "b"]


# ###############
# Type shapes and helpers
# ###############


def test_type_shape_renamed_keeps_wrapping() -> None:
    shape = TypeShape(base="Post", is_list=True, required=True, item_required=True)
    renamed = shape.renamed("PostInput")
    assert renamed.base == "PostInput"
    assert renamed.is_list and renamed.required and renamed.item_required


def test_type_shape_optional_drops_outer_non_null() -> None:
    shape = TypeShape(base="ID", required=True)
    assert not shape.optional().required
    assert shape.required


def test_case_helpers() -> None:
    assert upper_first("post") == "Post"
    assert lower_first("Post") == "post"
    assert upper_first("") == ""


# ###############
# Artifacts
# ###############


class TestArtifacts:
    @pytest.mark.parametrize(
        ("location", "kind"),
        [
            ("resources/dynamodb/Post.resource.yml", DestinationKind.STRUCTURED),
            ("config.yaml", DestinationKind.STRUCTURED),
            ("schema/Post.graphql", DestinationKind.SDL),
            ("mapping-templates/Query.getPost.request.vtl", DestinationKind.TEXT),
        ],
    )
    def test_destination_kind_follows_extension(self, location: str, kind: DestinationKind) -> None:
        assert destination_kind(location) is kind

    def test_fragment_kind_derives_from_location(self) -> None:
        fragment = ArtifactFragment(location="schema/Post.graphql", payload="type Post { id: ID }")
        assert fragment.kind is DestinationKind.SDL
        assert fragment.replaceable

    def test_patch_is_discriminated_by_op(self) -> None:
        fragment = ArtifactFragment.model_validate(
            {"location": "a.yml", "patch": {"op": "replace-at-path", "path": "a#b", "value": 1}}
        )
        assert isinstance(fragment.patch, ReplaceAtPath)

    def test_fragments_compare_by_value(self) -> None:
        patch = AddDirective(type_name="Post", directives=["aws_iam"])
        first = ArtifactFragment(location="schema/schema.graphql", patch=patch)
        second = ArtifactFragment(location="schema/schema.graphql", patch=patch.model_copy())
        assert first == second
