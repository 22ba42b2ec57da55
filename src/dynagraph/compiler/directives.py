# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Directive handlers invoked by the dispatcher.

Every handler is an independent listener: the dispatcher offers each directive
occurrence to every handler, and a handler acts only when ``matches`` accepts
the directive name, the node kind and the current scope. Handlers belong to
one of two phases so that all tables are registered before any other directive
looks them up.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Collection
from enum import Enum
from typing import Any, TypeVar

from graphql.language import (
    DirectiveNode,
    FieldDefinitionNode,
    InputValueDefinitionNode,
    Node,
    ObjectTypeDefinitionNode,
)
from graphql.utilities import value_from_ast_untyped
from pydantic import BaseModel, ValidationError

from dynagraph.compiler.context import FieldLocation, Location, in_scope, model_input_owner
from dynagraph.compiler.digger import type_shape
from dynagraph.compiler.errors import DirectiveError, InvalidAuthProviderError
from dynagraph.compiler.registry import CompilationContext
from dynagraph.compiler.resources.base import Resource
from dynagraph.compiler.resources.connection import GraphqlConnectedInputResource
from dynagraph.compiler.resources.function import FunctionResource
from dynagraph.compiler.resources.table import TableResource
from dynagraph.model.specs import (
    AuthProvider,
    AuthSpec,
    ConnectionSpec,
    KeySpec,
    MultiTenancySpec,
    lower_first,
)

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)

# ###############
# Public Interface
# ###############


class Phase(Enum):
    """Walk in which a handler runs."""

    REGISTER = "register"
    COLLECT = "collect"


class Directive(ABC):
    """Base class of directive handlers.

    Attributes:
        name: Directive name the handler reacts to.
        node_kinds: AST node classes the directive may be attached to.
        phase: Walk in which the handler runs.
    """

    name: str = ""
    node_kinds: tuple[type[Node], ...] = ()
    phase: Phase = Phase.COLLECT

    def matches(self, name: str, node: Node, location: Location, scope: Collection[str] | None) -> bool:
        return name == self.name and isinstance(node, self.node_kinds) and in_scope(location, scope)

    @abstractmethod
    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        """Act on one directive occurrence.

        Args:
            args: Decoded directive arguments in declaration order.
            node: The type or field declaration carrying the directive.
            location: Position of the declaration in the document.
            context: State of the current compilation run.

        Returns:
            Free-standing resources created by the directive, if any.

        Raises:
            DirectiveError: If the directive arguments are invalid.
        """


class ModelDirective(Directive):
    name = "model"
    node_kinds = (ObjectTypeDefinitionNode,)
    phase = Phase.REGISTER

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        context.register_table(TableResource(node))
        logger.debug("Registered table %s", node.name.value)
        return []


class KeyDirective(Directive):
    name = "key"
    node_kinds = (ObjectTypeDefinitionNode,)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        table = _table(self, location, context)
        if table is not None:
            table.add_key(_validate(KeySpec, args, self.name, location))
        return []


class ConnectionDirective(Directive):
    """Relations on model fields, and foreign-key rewriting on input fields."""

    name = "connection"
    node_kinds = (FieldDefinitionNode, InputValueDefinitionNode)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        shape = type_shape(node.type)
        if isinstance(node, InputValueDefinitionNode):
            return [self._input_resource(args, shape.base, location)]
        table = _table(self, location, context)
        if table is not None:
            connection = _validate(
                ConnectionSpec,
                {**args, "field": node.name.value, "target": shape.base, "shape": shape},
                self.name,
                location,
            )
            table.add_connection(connection)
        return []

    def _input_resource(self, args: dict[str, Any], target: str, location: Location) -> Resource:
        definition = location.parent().node()
        owner = model_input_owner(definition) or definition.name.value
        target = target.removesuffix("Input")
        foreign_key = args.get("foreignKey") or args.get("myKey") or f"{lower_first(owner)}{target}Id"
        return GraphqlConnectedInputResource(
            definition.name.value,
            location.field_name,
            foreign_key,
            condition=_model_input_condition(definition),
        )


class FunctionDirective(Directive):
    name = "function"
    node_kinds = (FieldDefinitionNode,)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        data_source = args.get("name")
        if not isinstance(data_source, str) or not data_source:
            raise DirectiveError(f"@function on {_label(location)} requires a 'name' argument")
        return [FunctionResource(location.type_name, location.field_name, data_source)]


class AuthDirective(Directive):
    """Table-scoped rules on model types and field-scoped rules on fields."""

    name = "auth"
    node_kinds = (ObjectTypeDefinitionNode, FieldDefinitionNode)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        rule = parse_auth_rule(args, _label(location))
        if isinstance(location, FieldLocation):
            context.add_field_auth(location.type_name, location.field_name, rule)
            return []
        table = _table(self, location, context)
        if table is not None:
            table.add_auth(rule)
        return []


class UniqueDirective(Directive):
    name = "unique"
    node_kinds = (FieldDefinitionNode,)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        table = _table(self, location, context)
        if table is not None:
            table.add_unique(location.field_name)
        return []


class MultiTenancyDirective(Directive):
    name = "multiTenancy"
    node_kinds = (ObjectTypeDefinitionNode,)

    def apply(
        self,
        args: dict[str, Any],
        node: Node,
        location: Location,
        context: CompilationContext,
    ) -> list[Resource]:
        table = _table(self, location, context)
        if table is not None:
            table.set_multi_tenancy(_validate(MultiTenancySpec, args, self.name, location))
        return []


DEFAULT_DIRECTIVES: tuple[Directive, ...] = (
    ModelDirective(),
    KeyDirective(),
    ConnectionDirective(),
    FunctionDirective(),
    AuthDirective(),
    UniqueDirective(),
    MultiTenancyDirective(),
)


def directive_arguments(directive: DirectiveNode) -> dict[str, Any]:
    """Decode the arguments of a directive occurrence into plain Python values."""
    return {argument.name.value: value_from_ast_untyped(argument.value) for argument in directive.arguments or ()}


def parse_auth_rule(args: dict[str, Any], label: str = "<directive>") -> AuthSpec:
    """Validate ``@auth`` arguments against the rule grammar.

    Raises:
        InvalidAuthProviderError: If the provider is missing or not a known provider.
        DirectiveError: If the actions or strategy are malformed, or a strategy
            is given for a provider that is not pool based.
    """
    provider = args.get("provider")
    if not isinstance(provider, str) or provider not in {p.value for p in AuthProvider}:
        raise InvalidAuthProviderError(f"@auth on {label}: unknown provider {provider!r}")
    if args.get("strategy") is not None and not AuthProvider(provider).pool_based:
        raise DirectiveError(f"@auth on {label}: provider {provider} does not support a strategy")
    try:
        return AuthSpec.model_validate(args)
    except ValidationError as exc:
        raise DirectiveError(f"@auth on {label}: {_first_error(exc)}") from exc


# ################
# Implementation
# ################


def _label(location: Location) -> str:
    if isinstance(location, FieldLocation):
        return f"{location.type_name}.{location.field_name}"
    return location.type_name


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    path = ".".join(str(part) for part in error["loc"])
    return f"{path}: {error['msg']}" if path else error["msg"]


def _validate(model: type[_M], args: dict[str, Any], directive: str, location: Location) -> _M:
    """Build a declaration model from directive arguments, reporting validation failures as DirectiveError."""
    try:
        return model.model_validate(args)
    except ValidationError as exc:
        raise DirectiveError(f"@{directive} on {_label(location)}: {_first_error(exc)}") from exc


def _table(directive: Directive, location: Location, context: CompilationContext) -> TableResource | None:
    """The table of the enclosing type, or None with a warning when the type is not a model."""
    table = context.table(location.type_name)
    if table is None:
        logger.warning(
            "@%s on %s is ignored: '%s' is not a @model type",
            directive.name,
            _label(location),
            location.type_name,
        )
    return table


def _model_input_condition(definition: Node) -> bool:
    for directive in getattr(definition, "directives", None) or ():
        if directive.name.value == "modelInput":
            return directive_arguments(directive).get("condition") is True
    return False
