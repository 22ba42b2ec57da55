# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Per-table aggregate collecting everything declared about one model type.

A TableResource is created by ``@model`` and then accumulates keys, relations,
authorization rules, unique fields and tenancy from the other directives.
Once every table is registered, ``classify`` resolves relations against the
other tables, after which the table can derive its secondary indexes and the
resources that emit its artifacts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from graphql.language import FieldDefinitionNode, ObjectTypeDefinitionNode

from dynagraph.compiler.digger import has_directive, type_shape
from dynagraph.compiler.errors import DirectiveError
from dynagraph.compiler.resources.base import Resource
from dynagraph.compiler.resources.connection import GraphqlConnectionResource
from dynagraph.compiler.resources.crud import GraphqlCrudResource
from dynagraph.compiler.resources.dynamodb import DynamoDBTableResource
from dynagraph.compiler.resources.query import GraphqlQueryResource
from dynagraph.model.artifacts import ArtifactFragment
from dynagraph.model.specs import (
    AuthAction,
    AuthProvider,
    AuthSpec,
    ConnectionSpec,
    KeySpec,
    MultiTenancySpec,
    RelationKind,
    SecondaryIndex,
    TypeShape,
    lower_first,
)

if TYPE_CHECKING:
    from dynagraph.compiler.registry import CompilationContext

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

DEFAULT_PRIMARY_KEY = KeySpec(fields=["id"])
NUMERIC_TYPES = frozenset({"Int", "Float", "AWSTimestamp"})


class TableResource:
    """Aggregate of the directives declared on one ``@model`` type.

    Attributes:
        definition: The object type declaration carrying ``@model``.
        name: Table name, equal to the type name.
        provider: Storage provider tag of the table.
        keys: Declared keys in declaration order.
        connections: Declared relations in declaration order.
        auth_rules: Table-scoped authorization rules.
        unique_fields: Fields whose values must be unique across the table.
        multi_tenancy: Tenant partitioning, if declared.
    """

    def __init__(self, definition: ObjectTypeDefinitionNode, provider: str = "DYNAMODB") -> None:
        self.definition = definition
        self.name = definition.name.value
        self.provider = provider
        self.keys: list[KeySpec] = []
        self.connections: list[ConnectionSpec] = []
        self.auth_rules: list[AuthSpec] = []
        self.unique_fields: list[str] = []
        self.multi_tenancy: MultiTenancySpec | None = None
        self._implied_indexes: list[SecondaryIndex] = []
        self._implied_foreign_keys: list[str] = []
        self._foreign_keys: dict[str, str] = {}
        self._target_keys: dict[str, KeySpec] = {}
        self._registered_targets: set[str] = set()

    # -------- accumulation --------

    def add_key(self, key: KeySpec) -> None:
        """Record a ``@key`` declaration.

        Raises:
            DirectiveError: If a second primary key, or a second key with the
                same name, is declared.
        """
        for existing in self.keys:
            if existing.name == key.name:
                label = "a primary key" if key.is_primary else f"a key named '{key.name}'"
                raise DirectiveError(f"Type '{self.name}' declares {label} more than once")
        self.keys.append(key)

    def add_connection(self, connection: ConnectionSpec) -> None:
        self.connections.append(connection)

    def add_auth(self, rule: AuthSpec) -> None:
        self.auth_rules.append(rule)

    def add_unique(self, field_name: str) -> None:
        if field_name not in self.unique_fields:
            self.unique_fields.append(field_name)

    def set_multi_tenancy(self, spec: MultiTenancySpec) -> None:
        self.multi_tenancy = spec

    def add_implied_index(self, index: SecondaryIndex) -> None:
        """Record an index required by a has-many relation declared on another table."""
        if all(existing.name != index.name for existing in self._implied_indexes):
            self._implied_indexes.append(index)

    def add_implied_foreign_key(self, attribute: str) -> None:
        """Record a foreign key written on this table for a has-many relation declared on another table."""
        if attribute not in self._implied_foreign_keys:
            self._implied_foreign_keys.append(attribute)

    @property
    def implied_foreign_keys(self) -> list[str]:
        return list(self._implied_foreign_keys)

    # -------- fields --------

    @property
    def fields(self) -> tuple[FieldDefinitionNode, ...]:
        return tuple(self.definition.fields or ())

    def field(self, name: str) -> FieldDefinitionNode | None:
        for field in self.fields:
            if field.name.value == name:
                return field
        return None

    def field_shape(self, name: str) -> TypeShape | None:
        field = self.field(name)
        return type_shape(field.type) if field is not None else None

    def key_field_type(self, name: str) -> str:
        """Base type of a key field, defaulting to ID for ``id`` and String otherwise."""
        shape = self.field_shape(name)
        if shape is not None:
            return shape.base
        return "ID" if name == "id" else "String"

    def is_computed(self, name: str) -> bool:
        """Fields resolved by ``@function`` are not stored on the table."""
        field = self.field(name)
        return field is not None and has_directive(field, "function")

    # -------- keys --------

    @property
    def primary_key(self) -> KeySpec:
        for key in self.keys:
            if key.is_primary:
                return key
        return DEFAULT_PRIMARY_KEY

    @property
    def secondary_keys(self) -> list[KeySpec]:
        return [key for key in self.keys if not key.is_primary]

    @property
    def query_keys(self) -> list[KeySpec]:
        return [key for key in self.secondary_keys if key.query_field]

    @property
    def composite_keys(self) -> list[KeySpec]:
        """All keys whose sort key is stored as a ``#``-joined composite attribute."""
        return [key for key in [self.primary_key, *self.secondary_keys] if key.is_composite]

    # -------- relations --------

    def connection(self, field_name: str) -> ConnectionSpec | None:
        for connection in self.connections:
            if connection.field == field_name:
                return connection
        return None

    @property
    def has_many(self) -> list[ConnectionSpec]:
        return [c for c in self.connections if c.kind is RelationKind.HAS_MANY]

    @property
    def has_one(self) -> list[ConnectionSpec]:
        return [c for c in self.connections if c.kind is RelationKind.HAS_ONE]

    @property
    def belongs_to(self) -> list[ConnectionSpec]:
        return [c for c in self.connections if c.kind is RelationKind.BELONGS_TO]

    def reciprocal(self, relation_name: str, owner: str, *, has_many: bool) -> ConnectionSpec | None:
        """Find this table's end of a named relation pointing back at ``owner``."""
        for connection in self.connections:
            if connection.name == relation_name and connection.target == owner and connection.has_many == has_many:
                return connection
        return None

    def classify(self, context: CompilationContext) -> None:
        """Classify every relation of this table against the registered tables.

        Singular relations become belongs-to when the target declares a
        has-many relation of the same name back to this table, and has-one
        otherwise. A has-many relation without a singular counterpart on the
        target registers an implied foreign-key index on the target.
        """
        for connection in self.connections:
            target = context.table(connection.target)
            if target is None:
                logger.warning(
                    "Relation %s.%s targets '%s', which is not a @model type; no index will be created",
                    self.name,
                    connection.field,
                    connection.target,
                )
            else:
                self._registered_targets.add(connection.field)
                self._target_keys[connection.field] = target.primary_key

            if connection.has_many:
                connection.kind = RelationKind.HAS_MANY
                self._foreign_keys[connection.field] = self._has_many_foreign_key(connection, target)
            elif (
                target is not None
                and connection.name
                and target.reciprocal(connection.name, self.name, has_many=True) is not None
            ):
                connection.kind = RelationKind.BELONGS_TO
            else:
                connection.kind = RelationKind.HAS_ONE
            logger.debug("Classified %s.%s as %s", self.name, connection.field, connection.kind.value)

    def is_resolvable(self, connection: ConnectionSpec) -> bool:
        """Whether the relation target is a registered table."""
        return connection.field in self._registered_targets

    def foreign_key(self, connection: ConnectionSpec) -> str:
        """Attribute holding the foreign key of a relation.

        For singular relations the attribute lives on this table; for has-many
        relations it lives on the target table.
        """
        if connection.has_many:
            return self._foreign_keys.get(connection.field) or self._default_has_many_key(connection)
        return connection.foreign_key or f"{lower_first(self.name)}{connection.target}Id"

    def relation_keys(self, connection: ConnectionSpec) -> tuple[str, str]:
        """Return ``(mine, yours)``: the source attribute and the target attribute it matches."""
        if connection.has_many:
            mine = connection.my_key or self.primary_key.partition_key
            yours = connection.your_key or self.foreign_key(connection)
        else:
            mine = connection.my_key or self.foreign_key(connection)
            target_key = self._target_keys.get(connection.field)
            yours = connection.your_key or (target_key.partition_key if target_key is not None else "id")
        return mine, yours

    def target_key(self, connection: ConnectionSpec) -> KeySpec | None:
        """Primary key of the relation target, or None when the target is not a registered table."""
        return self._target_keys.get(connection.field)

    # -------- indexes --------

    def secondary_indexes(self) -> list[SecondaryIndex]:
        """All global secondary indexes of the table, de-duplicated by name."""
        indexes: list[SecondaryIndex] = []
        for key in self.secondary_keys:
            indexes.append(SecondaryIndex(name=key.name, partition_key=key.partition_key, sort_key=key.sort_key))
        for connection in self.belongs_to:
            indexes.append(
                SecondaryIndex(
                    name=connection.name,
                    partition_key=self.foreign_key(connection),
                    sort_key=connection.sort_field,
                )
            )
        indexes.extend(self._implied_indexes)
        if self.multi_tenancy is not None:
            indexes.append(
                SecondaryIndex(
                    name=self.multi_tenancy.index_name,
                    partition_key=self.multi_tenancy.field,
                    sort_key=self.primary_key.partition_key,
                )
            )
        unique: dict[str, SecondaryIndex] = {}
        for index in indexes:
            unique.setdefault(index.name, index)
        return list(unique.values())

    def key_attributes(self) -> list[str]:
        """Attribute names used by the primary key and every secondary index."""
        names = list(self.primary_key.attributes)
        for index in self.secondary_indexes():
            names.extend(index.attributes)
        return list(dict.fromkeys(names))

    def attribute_type(self, attribute: str) -> str:
        """DynamoDB scalar type of a key attribute: ``N`` for numeric fields, ``S`` otherwise."""
        shape = self.field_shape(attribute)
        if shape is not None and not shape.is_list and shape.base in NUMERIC_TYPES:
            return "N"
        return "S"

    # -------- authorization --------

    def rules_for(self, action: AuthAction) -> list[AuthSpec]:
        return [rule for rule in self.auth_rules if rule.covers(action)]

    def providers(self, action: AuthAction | None = None) -> list[AuthProvider]:
        """Distinct providers of the table rules, optionally restricted to one action."""
        rules = self.auth_rules if action is None else self.rules_for(action)
        return list(dict.fromkeys(rule.provider for rule in rules))

    # -------- emission --------

    def resources(self) -> list[Resource]:
        """The resources that emit this table's artifacts, in emission order."""
        resources: list[Resource] = [DynamoDBTableResource(self), GraphqlCrudResource(self)]
        resources.extend(GraphqlQueryResource(self, key) for key in self.query_keys)
        resources.extend(GraphqlConnectionResource(self, c) for c in self.connections if self.is_resolvable(c))
        return resources

    def fragments(self, context: CompilationContext) -> list[ArtifactFragment]:
        fragments: list[ArtifactFragment] = []
        for resource in self.resources():
            fragments.extend(resource.fragments(context))
        return fragments

    # ################
    # Implementation
    # ################

    def _default_has_many_key(self, connection: ConnectionSpec) -> str:
        return connection.foreign_key or f"{lower_first(connection.target)}{self.name}Id"

    def _has_many_foreign_key(self, connection: ConnectionSpec, target: TableResource | None) -> str:
        """Resolve the foreign key a has-many relation queries on its target."""
        if target is None:
            return self._default_has_many_key(connection)
        reciprocal = target.reciprocal(connection.name, self.name, has_many=False) if connection.name else None
        if reciprocal is not None:
            if reciprocal.foreign_key is None and connection.foreign_key is not None:
                reciprocal.foreign_key = connection.foreign_key
            return target.foreign_key(reciprocal)
        foreign_key = self._default_has_many_key(connection)
        target.add_implied_foreign_key(foreign_key)
        if connection.name:
            target.add_implied_index(SecondaryIndex(name=connection.name, partition_key=foreign_key))
        return foreign_key
