# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Authorization and tenant-isolation blocks spliced into resolver templates.

Checks only run for callers authenticated through user pools. Callers using
another provider are admitted or rejected by the gateway itself, based on the
provider annotations placed on the generated operations.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from dynagraph.model.specs import (
    DEFAULT_IDENTITY_CLAIM,
    AuthProvider,
    AuthSpec,
    GroupStrategy,
    MultiTenancySpec,
    OwnerStrategy,
)

# ###############
# Public Interface
# ###############

NO_IDENTITY = "___xamznone____"

AUTH_MODE = """## [Start] Determine request authentication mode **
#if( $util.isNullOrEmpty($authMode) && !$util.isNull($ctx.identity) && !$util.isNull($ctx.identity.sub) && !$util.isNull($ctx.identity.issuer) && !$util.isNull($ctx.identity.claims) )
  #set( $authMode = "userPools" )
#end
## [End] Determine request authentication mode **
"""


def annotations(providers: Iterable[AuthProvider]) -> list[str]:
    """Provider annotation directive names, de-duplicated in first-seen order."""
    return list(dict.fromkeys(provider.annotation for provider in providers))


def needs_checks(rules: list[AuthSpec]) -> bool:
    """Whether user-pool callers must pass group or owner checks.

    A pool rule without a strategy admits every pool caller, so no checks are
    generated in that case.
    """
    pool_rules = [rule for rule in rules if rule.provider.pool_based]
    return bool(pool_rules) and all(rule.strategy is not None for rule in pool_rules)


def single_item_check(rules: list[AuthSpec]) -> str:
    """Response-side check rejecting a fetched item the caller may not read."""
    if not needs_checks(rules):
        return ""
    body = _owner_checks(rules, "$ctx.result", "    ")
    return f"""{AUTH_MODE}## [Start] Authorization checks **
#if( $authMode == "userPools" )
{_group_checks(rules, "  ")}
  #if( !$isStaticGroupAuthorized && !$util.isNull($ctx.result) )
    #set( $isOwnerAuthorized = false )
{body}
    #if( !$isOwnerAuthorized )
      $util.unauthorized()
    #end
  #end
#end
## [End] Authorization checks **
"""


def list_filter(rules: list[AuthSpec]) -> str:
    """Response-side filter dropping items the caller may not read."""
    if not needs_checks(rules):
        return ""
    body = _owner_checks(rules, "$item", "      ")
    return f"""{AUTH_MODE}## [Start] Authorization filter **
#if( $authMode == "userPools" )
{_group_checks(rules, "  ")}
  #if( !$isStaticGroupAuthorized )
    #set( $items = [] )
    #foreach( $item in $ctx.result.items )
      #set( $isOwnerAuthorized = false )
{body}
      #if( $isOwnerAuthorized )
        $util.qr($items.add($item))
      #end
    #end
    #set( $ctx.result.items = $items )
  #end
#end
## [End] Authorization filter **
"""


def create_check(rules: list[AuthSpec]) -> str:
    """Request-side check for create: owners default to the caller and must match it."""
    if not needs_checks(rules):
        return ""
    lines: list[str] = []
    for index, strategy in _owner_strategies(rules):
        field = strategy.owner_field
        identity = f"$identityValue{index}"
        lines.append(f"    #set( {identity} = {identity_expression(strategy.identity_claim)} )")
        lines.append(f"    #if( $util.isNull($ctx.args.input.{field}) )")
        lines.append(f'      $util.qr($ctx.args.input.put("{field}", {identity}))')
        lines.append("    #end")
        lines.append(f"    #if( $ctx.args.input.{field} == {identity} )")
        lines.append("      #set( $isOwnerAuthorized = true )")
        lines.append("    #end")
    body = "\n".join(lines)
    return f"""{AUTH_MODE}## [Start] Authorization checks **
#if( $authMode == "userPools" )
{_group_checks(rules, "  ")}
  #if( !$isStaticGroupAuthorized )
    #set( $isOwnerAuthorized = false )
{body}
    #if( !$isOwnerAuthorized )
      $util.unauthorized()
    #end
  #end
#end
## [End] Authorization checks **
"""


def owner_condition(rules: list[AuthSpec]) -> str:
    """Request-side block for update and delete building ``$authCondition`` from owner rules."""
    if not needs_checks(rules):
        return ""
    owners = _owner_strategies(rules)
    if owners:
        lines = ['    #set( $authCondition = { "expression": "", "expressionNames": {}, "expressionValues": {} } )']
        terms = []
        for index, strategy in owners:
            terms.append(f"#owner{index} = :identity{index}")
            lines.append(f'    $util.qr($authCondition.expressionNames.put("#owner{index}", "{strategy.owner_field}"))')
            lines.append(
                f'    $util.qr($authCondition.expressionValues.put(":identity{index}", '
                f"$util.dynamodb.toDynamoDB({identity_expression(strategy.identity_claim)})))"
            )
        lines.append(f'    #set( $authCondition.expression = "({" OR ".join(terms)})" )')
        body = "\n".join(lines)
    else:
        body = "    $util.unauthorized()"
    return f"""{AUTH_MODE}## [Start] Authorization condition **
#if( $authMode == "userPools" )
{_group_checks(rules, "  ")}
  #if( !$isStaticGroupAuthorized )
{body}
  #end
#end
## [End] Authorization condition **
"""


def field_check(rules: list[AuthSpec], record: str) -> str:
    """Request-side check for a field-scoped rule, comparing owners on ``record``."""
    if not needs_checks(rules):
        return ""
    body = _owner_checks(rules, record, "    ")
    return f"""{AUTH_MODE}## [Start] Field authorization checks **
#if( $authMode == "userPools" )
{_group_checks(rules, "  ")}
  #if( !$isStaticGroupAuthorized )
    #set( $isOwnerAuthorized = false )
{body}
    #if( !$isOwnerAuthorized )
      $util.unauthorized()
    #end
  #end
#end
## [End] Field authorization checks **
"""


def identity_expression(claim: str) -> str:
    """Template expression reading the caller identity from a claim.

    The default ``username`` claim falls back to ``cognito:username``; every
    claim falls back to a sentinel that never matches a stored owner.
    """
    if claim == DEFAULT_IDENTITY_CLAIM:
        return (
            f'$util.defaultIfNull($ctx.identity.claims.get("{claim}"), '
            f'$util.defaultIfNull($ctx.identity.claims.get("cognito:username"), "{NO_IDENTITY}"))'
        )
    return f'$util.defaultIfNull($ctx.identity.claims.get("{claim}"), "{NO_IDENTITY}")'


# -------- tenant isolation --------


def tenant_lookup(tenancy: MultiTenancySpec) -> str:
    """Read the caller's tenant from its claim, rejecting callers without one."""
    return f"""## [Start] Resolve tenant **
#set( $tenant = "" )
#if( !$util.isNull($ctx.identity) && !$util.isNull($ctx.identity.claims) )
  #set( $tenant = $util.defaultIfNull($ctx.identity.claims.get("{tenancy.claim}"), "") )
#end
#if( $util.isNullOrEmpty($tenant) )
  $util.unauthorized()
#end
## [End] Resolve tenant **
"""


def tenant_create(tenancy: MultiTenancySpec) -> str:
    return f'{tenant_lookup(tenancy)}$util.qr($ctx.args.input.put("{tenancy.field}", $tenant))\n'


def tenant_list(tenancy: MultiTenancySpec) -> str:
    """Turn a list scan into a query on the tenant index."""
    return f"""{tenant_lookup(tenancy)}#set( $modelQueryExpression = {{
  "expression": "#tenant = :tenant",
  "expressionNames": {{
    "#tenant": "{tenancy.field}"
  }},
  "expressionValues": {{
    ":tenant": $util.dynamodb.toDynamoDB($tenant)
  }}
}} )
#set( $modelQueryIndex = "{tenancy.index_name}" )
"""


def tenant_condition(tenancy: MultiTenancySpec) -> str:
    """Add tenant equality to ``$authCondition`` for update and delete."""
    return f"""{tenant_lookup(tenancy)}#if( $util.isNull($authCondition) || $authCondition.expression == "" )
  #set( $authCondition = {{
  "expression": "#tenant = :tenant",
  "expressionNames": {{
    "#tenant": "{tenancy.field}"
  }},
  "expressionValues": {{
    ":tenant": $util.dynamodb.toDynamoDB($tenant)
  }}
}} )
#else
  $util.qr($authCondition.put("expression", "($authCondition.expression) AND #tenant = :tenant"))
  $util.qr($authCondition.expressionNames.put("#tenant", "{tenancy.field}"))
  $util.qr($authCondition.expressionValues.put(":tenant", $util.dynamodb.toDynamoDB($tenant)))
#end
"""


def tenant_item_check(tenancy: MultiTenancySpec) -> str:
    """Reject a fetched item belonging to another tenant."""
    return f"""{tenant_lookup(tenancy)}#if( !$util.isNull($ctx.result) && $ctx.result.{tenancy.field} != $tenant )
  $util.unauthorized()
#end
"""


def tenant_items_filter(tenancy: MultiTenancySpec) -> str:
    """Drop queried items belonging to another tenant."""
    return f"""{tenant_lookup(tenancy)}#set( $tenantItems = [] )
#foreach( $item in $ctx.result.items )
  #if( $item.{tenancy.field} == $tenant )
    $util.qr($tenantItems.add($item))
  #end
#end
#set( $ctx.result.items = $tenantItems )
"""


# ################
# Implementation
# ################


def _owner_strategies(rules: list[AuthSpec]) -> list[tuple[int, OwnerStrategy]]:
    strategies = [rule.strategy for rule in rules if isinstance(rule.strategy, OwnerStrategy)]
    return list(enumerate(strategies))


def _group_checks(rules: list[AuthSpec], indent: str) -> str:
    """Set ``$isStaticGroupAuthorized`` when the caller is in an allowed group."""
    lines = ["#set( $isStaticGroupAuthorized = false )"]
    by_claim: dict[str, list[str]] = {}
    for rule in rules:
        if isinstance(rule.strategy, GroupStrategy):
            by_claim.setdefault(rule.strategy.group_claim, []).extend(rule.strategy.groups)
    for index, (claim, groups) in enumerate(by_claim.items()):
        allowed = json.dumps(list(dict.fromkeys(groups)))
        lines.extend(
            [
                f'#set( $userGroups{index} = $util.defaultIfNull($ctx.identity.claims.get("{claim}"), []) )',
                f"#set( $allowedGroups{index} = {allowed} )",
                f"#foreach( $userGroup in $userGroups{index} )",
                f"  #if( $allowedGroups{index}.contains($userGroup) )",
                "    #set( $isStaticGroupAuthorized = true )",
                "  #end",
                "#end",
            ]
        )
    return "\n".join(indent + line for line in lines)


def _owner_checks(rules: list[AuthSpec], record: str, indent: str) -> str:
    """Set ``$isOwnerAuthorized`` when an owner field of ``record`` names the caller."""
    lines: list[str] = []
    for index, strategy in _owner_strategies(rules):
        owners = f"$allowedOwners{index}"
        identity = f"$identityValue{index}"
        lines.extend(
            [
                f"#set( {owners} = {record}.{strategy.owner_field} )",
                f"#set( {identity} = {identity_expression(strategy.identity_claim)} )",
                f"#if( $util.isList({owners}) )",
                f"  #foreach( $allowedOwner in {owners} )",
                f"    #if( $allowedOwner == {identity} )",
                "      #set( $isOwnerAuthorized = true )",
                "    #end",
                "  #end",
                f"#elseif( {owners} == {identity} )",
                "  #set( $isOwnerAuthorized = true )",
                "#end",
            ]
        )
    return "\n".join(indent + line for line in lines)
