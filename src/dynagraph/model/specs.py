# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Directive specifications accumulated by the compiler for each model type."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############

KEY_SEPARATOR = "#"
DEFAULT_IDENTITY_CLAIM = "username"
DEFAULT_GROUP_CLAIM = "cognito:groups"


class AuthProvider(str, Enum):
    """Authorization providers understood by the hosted gateway."""

    COGNITO_USER_POOLS = "COGNITO_USER_POOLS"
    API_KEY = "API_KEY"
    IAM = "IAM"

    @property
    def annotation(self) -> str:
        """The SDL directive name that grants this provider access."""
        return _ANNOTATIONS[self]

    @property
    def pool_based(self) -> bool:
        return self is AuthProvider.COGNITO_USER_POOLS


class AuthAction(str, Enum):
    """Operations an authorization rule may cover."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class RelationKind(str, Enum):
    """Classification of a connection once both ends are known."""

    HAS_MANY = "has-many"
    HAS_ONE = "has-one"
    BELONGS_TO = "belongs-to"


class TypeShape(BaseModel):
    """A field type reduced to its base name and one level of list/non-null wrapping.

    Attributes:
        base: Name of the innermost named type.
        is_list: Whether the field holds a list.
        required: Whether the outermost type is non-null.
        item_required: Whether list items are non-null (only meaningful for lists).
    """

    model_config = ConfigDict(frozen=True)

    base: str
    is_list: bool = False
    required: bool = False
    item_required: bool = False

    def renamed(self, base: str) -> TypeShape:
        """Return the same wrapping around a different base type."""
        return self.model_copy(update={"base": base})

    def optional(self) -> TypeShape:
        """Return the shape with the outermost non-null marker dropped."""
        return self.model_copy(update={"required": False})


class KeySpec(BaseModel):
    """One ``@key`` declaration.

    The first field is the partition key; the remaining fields form the sort
    key, joined with ``#`` when there is more than one of them.
    """

    model_config = ConfigDict(populate_by_name=True)

    fields: list[str] = _Field(min_length=1)
    name: str | None = None
    query_field: str | None = _Field(default=None, alias="queryField")

    @property
    def is_primary(self) -> bool:
        return self.name is None

    @property
    def partition_key(self) -> str:
        return self.fields[0]

    @property
    def sort_fields(self) -> list[str]:
        return self.fields[1:]

    @property
    def sort_key(self) -> str | None:
        """Storage attribute name of the sort key, or None without one."""
        if not self.sort_fields:
            return None
        return KEY_SEPARATOR.join(self.sort_fields)

    @property
    def sort_argument(self) -> str | None:
        """Argument name used for the sort key in generated queries."""
        if not self.sort_fields:
            return None
        first, *rest = self.sort_fields
        return first + "".join(upper_first(f) for f in rest)

    @property
    def is_composite(self) -> bool:
        return len(self.sort_fields) > 1

    @property
    def attributes(self) -> list[str]:
        """Storage attribute names making up the key schema, partition first."""
        sort_key = self.sort_key
        return [self.partition_key] if sort_key is None else [self.partition_key, sort_key]


class ConnectionSpec(BaseModel):
    """A relation declared by ``@connection`` on a model field.

    Attributes:
        field: Name of the declaring field.
        target: Name of the related model type.
        shape: Declared type of the field.
        name: Relation name; names the secondary index backing the relation.
        foreign_key: Explicit foreign-key attribute name.
        my_key: Attribute on the declaring record used to resolve the relation.
        your_key: Attribute on the target record used to resolve the relation.
        sort_field: Extra sortable field for the relation index.
        kind: Classification, filled in once all tables are registered.
    """

    model_config = ConfigDict(populate_by_name=True)

    field: str
    target: str
    shape: TypeShape
    name: str | None = None
    foreign_key: str | None = _Field(default=None, alias="foreignKey")
    my_key: str | None = _Field(default=None, alias="myKey")
    your_key: str | None = _Field(default=None, alias="yourKey")
    sort_field: str | None = _Field(default=None, alias="sortField")
    kind: RelationKind | None = None

    @property
    def has_many(self) -> bool:
        return self.shape.is_list

    @property
    def custom(self) -> bool:
        """Unnamed relations get hand-written resolvers; generated ones are only seeds."""
        return not self.name


class OwnerStrategy(BaseModel):
    """Allow access when a record field matches the caller's identity claim."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: Literal["OWNER"] = "OWNER"
    owner_field: str = _Field(default="owner", alias="ownerField")
    identity_claim: str = _Field(default=DEFAULT_IDENTITY_CLAIM, alias="identityClaim")


class GroupStrategy(BaseModel):
    """Allow access when the caller belongs to one of a static set of groups."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: Literal["GROUP"] = "GROUP"
    groups: list[str] = _Field(min_length=1)
    group_claim: str = _Field(default=DEFAULT_GROUP_CLAIM, alias="groupClaim")


AuthStrategy = Annotated[OwnerStrategy | GroupStrategy, _Field(discriminator="type")]


class AuthSpec(BaseModel):
    """One ``@auth`` rule."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    provider: AuthProvider
    actions: list[AuthAction] = _Field(default_factory=lambda: list(AuthAction))
    strategy: AuthStrategy | None = None

    def covers(self, action: AuthAction) -> bool:
        return action in self.actions


class MultiTenancySpec(BaseModel):
    """Tenant partitioning of a model table.

    Attributes:
        field: Record attribute holding the tenant identifier.
        index_suffix: Suffix of the secondary index partitioned by tenant.
        claim: Identity claim carrying the caller's tenant.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    field: str = "tenantId"
    index_suffix: str = _Field(default="MT", alias="indexSuffix")
    claim: str = _Field(default="custom:tenantId", alias="ownerField")

    @property
    def index_name(self) -> str:
        return f"{self.field}{self.index_suffix}"


class SecondaryIndex(BaseModel):
    """A global secondary index derived from keys, relations or tenancy."""

    name: str
    partition_key: str
    sort_key: str | None = None

    @property
    def attributes(self) -> list[str]:
        return [self.partition_key] if self.sort_key is None else [self.partition_key, self.sort_key]


def upper_first(value: str) -> str:
    return value[:1].upper() + value[1:]


def lower_first(value: str) -> str:
    return value[:1].lower() + value[1:]


# ################
# Implementation
# ################

_ANNOTATIONS = {
    AuthProvider.COGNITO_USER_POOLS: "aws_cognito_user_pools",
    AuthProvider.API_KEY: "aws_api_key",
    AuthProvider.IAM: "aws_iam",
}
