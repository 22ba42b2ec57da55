# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Resolver template text for the hosted gateway's DynamoDB and pipeline resolvers.

The builders only assemble template text; nothing here evaluates it. Keys are
addressed by their storage attribute names, with composite sort keys written
as ``${a}#${b}`` from the individual argument values.
"""

from __future__ import annotations

from dynagraph.model.specs import KEY_SEPARATOR, KeySpec

# ###############
# Public Interface
# ###############

RESULT_RESPONSE = "$util.toJson($ctx.result)\n"

UNIQUE_MARKER_PREFIX = "__unique"
UNIQUE_REFERENCE_ATTRIBUTE = "__ref"


def composite_value(fields: list[str], source: str) -> str:
    """Template expression joining several argument values with the key separator.

    Args:
        fields: Argument names in key order.
        source: Path of the argument map without the leading ``$``, e.g. ``ctx.args.input``.
    """
    return KEY_SEPARATOR.join(f"${{{source}.{name}}}" for name in fields)


def key_entries(key: KeySpec, source: str) -> list[str]:
    """``"attribute": value`` entries addressing one item by its primary key."""
    entries = [f'"{key.partition_key}": $util.dynamodb.toDynamoDBJson(${source}.{key.partition_key})']
    if key.is_composite:
        value = composite_value(key.sort_fields, source)
        entries.append(f'"{key.sort_key}": $util.dynamodb.toDynamoDBJson("{value}")')
    elif key.sort_key is not None:
        entries.append(f'"{key.sort_key}": $util.dynamodb.toDynamoDBJson(${source}.{key.sort_key})')
    return entries


def get_request(key: KeySpec) -> str:
    entries = ",\n    ".join(key_entries(key, "ctx.args"))
    return f"""{{
  "version": "2017-02-28",
  "operation": "GetItem",
  "key": {{
    {entries}
  }}
}}
"""


def list_request() -> str:
    return """#set( $limit = $util.defaultIfNull($ctx.args.limit, 100) )
#set( $ListRequest = {
  "version": "2017-02-28",
  "limit": $limit
} )
#if( $ctx.args.nextToken )
  #set( $ListRequest.nextToken = $ctx.args.nextToken )
#end
#if( $ctx.args.filter )
  #set( $ListRequest.filter = $util.parseJson("$util.transform.toDynamoDBFilterExpression($ctx.args.filter)") )
#end
#if( !$util.isNull($modelQueryExpression) && !$util.isNullOrEmpty($modelQueryExpression.expression) )
  $util.qr($ListRequest.put("operation", "Query"))
  $util.qr($ListRequest.put("query", $modelQueryExpression))
  #if( !$util.isNull($modelQueryIndex) )
    $util.qr($ListRequest.put("index", $modelQueryIndex))
  #end
  #if( !$util.isNull($ctx.args.sortDirection) && $ctx.args.sortDirection == "DESC" )
    #set( $ListRequest.scanIndexForward = false )
  #else
    #set( $ListRequest.scanIndexForward = true )
  #end
#else
  $util.qr($ListRequest.put("operation", "Scan"))
#end
$util.toJson($ListRequest)
"""


def create_request(
    type_name: str,
    key: KeySpec,
    composite_keys: list[KeySpec],
    unique_fields: list[str],
    *,
    auto_id: bool,
) -> str:
    """PutItem request, or a TransactWriteItems request when unique fields need marker items.

    Args:
        type_name: Name of the model type, stored in ``__typename``.
        key: Primary key of the table.
        composite_keys: Keys whose composite sort attribute must be derived from the input.
        unique_fields: Fields guarded by unique marker items.
        auto_id: Generate the partition key value when the caller omits it.
    """
    lines = [
        "## [Start] Prepare DynamoDB PutItem Request. **",
        "#set( $createdAt = $util.time.nowISO8601() )",
        "## Automatically set the createdAt timestamp. **",
        '$util.qr($ctx.args.input.put("createdAt", $util.defaultIfNull($ctx.args.input.createdAt, $createdAt)))',
        "## Automatically set the updatedAt timestamp. **",
        '$util.qr($ctx.args.input.put("updatedAt", $util.defaultIfNull($ctx.args.input.updatedAt, $createdAt)))',
        f'$util.qr($ctx.args.input.put("__typename", "{type_name}"))',
    ]
    if auto_id:
        pk = key.partition_key
        lines.append(
            f'$util.qr($ctx.args.input.put("{pk}", $util.defaultIfNullOrBlank($ctx.args.input.{pk}, $util.autoId())))'
        )
    lines.extend(_composite_key_lines(composite_keys))
    names = ",\n    ".join(f'"#id{i}": "{attr}"' for i, attr in enumerate(key.attributes))
    expression = " AND ".join(f"attribute_not_exists(#id{i})" for i in range(len(key.attributes)))
    lines.append(
        f"""#set( $condition = {{
  "expression": "{expression}",
  "expressionNames": {{
    {names}
  }}
}} )"""
    )
    lines.append(_CONDITION_ARGUMENT)
    lines.append(_DROP_EMPTY_VALUES)
    key_map = _key_map(key, "ctx.args.input")
    if unique_fields:
        lines.append("#set( $transactItems = [] )")
        lines.append(
            f"""$util.qr($transactItems.add({{
  "table": "{type_name}",
  "operation": "PutItem",
  "key": $util.dynamodb.toMapValues({key_map}),
  "attributeValues": $util.dynamodb.toMapValues($ctx.args.input),
  "condition": $condition
}}))"""
        )
        for name in unique_fields:
            lines.append(_claim_on_create(type_name, key, name))
        lines.append(_TRANSACT_WRITE)
    else:
        entries = ",\n    ".join(key_entries(key, "ctx.args.input"))
        lines.append(
            f"""{{
  "version": "2017-02-28",
  "operation": "PutItem",
  "key": {{
    {entries}
  }},
  "attributeValues": $util.dynamodb.toMapValuesJson($ctx.args.input),
  "condition": $util.toJson($condition)
}}"""
        )
    lines.append("## [End] Prepare DynamoDB PutItem Request. **")
    return "\n".join(lines) + "\n"


def update_request(
    type_name: str,
    key: KeySpec,
    composite_keys: list[KeySpec],
    unique_fields: list[str],
) -> str:
    """UpdateItem request honoring an ``$authCondition`` prepared by an authorization block.

    With unique fields the request is a TransactWriteItems pipeline step: the
    item read by the previous step (``$ctx.stash.item``) tells which marker a
    changed value releases.
    """
    exists = " AND ".join(f"attribute_exists(#id{i})" for i in range(len(key.attributes)))
    name_puts = "\n  ".join(
        f'$util.qr($condition.expressionNames.put("#id{i}", "{attr}"))' for i, attr in enumerate(key.attributes)
    )
    names = ",\n    ".join(f'"#id{i}": "{attr}"' for i, attr in enumerate(key.attributes))
    key_fields = ", ".join(f'"{name}"' for name in dict.fromkeys([*key.fields, *key.attributes]))
    lines = [
        f"""#if( $authCondition && $authCondition.expression != "" )
  #set( $condition = $authCondition )
  $util.qr($condition.put("expression", "($condition.expression) AND {exists}"))
  {name_puts}
#else
  #set( $condition = {{
  "expression": "{exists}",
  "expressionNames": {{
    {names}
  }},
  "expressionValues": {{}}
}} )
#end""",
        "## Automatically set the updatedAt timestamp. **",
        '$util.qr($ctx.args.input.put("updatedAt", '
        "$util.defaultIfNull($ctx.args.input.updatedAt, $util.time.nowISO8601())))",
        f'$util.qr($ctx.args.input.put("__typename", "{type_name}"))',
    ]
    lines.extend(_composite_key_lines(composite_keys))
    lines.append(_CONDITION_ARGUMENT)
    lines.append(_DROP_EMPTY_VALUES)
    lines.append(f"#set( $keyFields = [{key_fields}] )")
    lines.append(_UPDATE_EXPRESSION)
    if unique_fields:
        key_map = _key_map(key, "ctx.args.input")
        lines.append("#set( $transactItems = [] )")
        lines.append(
            f"""$util.qr($transactItems.add({{
  "table": "{type_name}",
  "operation": "UpdateItem",
  "key": $util.dynamodb.toMapValues({key_map}),
  "update": $update,
  "condition": $condition
}}))"""
        )
        lines.append(_EXISTING_ITEM)
        for name in unique_fields:
            lines.append(_reassign_marker(type_name, key, name))
        lines.append(_TRANSACT_WRITE)
    else:
        entries = ",\n    ".join(key_entries(key, "ctx.args.input"))
        lines.append(
            f"""{{
  "version": "2017-02-28",
  "operation": "UpdateItem",
  "key": {{
    {entries}
  }},
  "update": $util.toJson($update),
  "condition": $util.toJson($condition)
}}"""
        )
    return "\n".join(lines) + "\n"


def delete_request(type_name: str, key: KeySpec, unique_fields: list[str]) -> str:
    """DeleteItem request honoring an ``$authCondition`` prepared by an authorization block.

    With unique fields the request is a TransactWriteItems pipeline step that
    also deletes the markers of the values held by ``$ctx.stash.item``.
    """
    exists = " AND ".join(f"attribute_exists(#id{i})" for i in range(len(key.attributes)))
    name_puts = "\n  ".join(
        f'$util.qr($condition.expressionNames.put("#id{i}", "{attr}"))' for i, attr in enumerate(key.attributes)
    )
    names = ",\n    ".join(f'"#id{i}": "{attr}"' for i, attr in enumerate(key.attributes))
    if unique_fields:
        lines = [
            _EXISTING_ITEM,
            "#set( $transactItems = [] )",
            f"""$util.qr($transactItems.add({{
  "table": "{type_name}",
  "operation": "DeleteItem",
  "key": $util.dynamodb.toMapValues({_key_map(key, "ctx.args.input")}),
  "condition": $condition
}}))""",
        ]
        for name in unique_fields:
            lines.append(
                f"""## Unique constraint on {name} **
#if( !$util.isNull($existing.{name}) )
{_release_marker(type_name, key, name, f"$existing.{name}")}
#end"""
            )
        lines.append(_TRANSACT_WRITE)
        operation = "\n".join(lines)
    else:
        entries = ",\n    ".join(key_entries(key, "ctx.args.input"))
        operation = f"""{{
  "version": "2017-02-28",
  "operation": "DeleteItem",
  "key": {{
    {entries}
  }},
  "condition": $util.toJson($condition)
}}"""
    return f"""#if( $authCondition && $authCondition.expression != "" )
  #set( $condition = $authCondition )
  $util.qr($condition.put("expression", "($condition.expression) AND {exists}"))
  {name_puts}
#else
  #set( $condition = {{
  "expression": "{exists}",
  "expressionNames": {{
    {names}
  }}
}} )
#end
{_CONDITION_ARGUMENT}
{_DROP_EMPTY_VALUES}
{operation}
"""


def transact_write_response(type_name: str, *, result: str = "$ctx.args.input") -> str:
    """Response for writes issued as TransactWriteItems, which return keys only.

    A create writes its input verbatim, so the input is the stored item. Pipeline
    steps pass ``$ctx.result`` and leave the item to a later read.
    """
    return f"""#if( $ctx.error )
  #if( $ctx.result && $ctx.result.cancellationReasons )
    $util.error("A unique field of {type_name} is already taken", "UniqueConstraintViolation", null, $ctx.result.cancellationReasons)
  #end
  $util.error($ctx.error.message, $ctx.error.type)
#end
$util.toJson({result})
"""


PIPELINE_REQUEST = "{}\n"
STASHED_ITEM_RESPONSE = "$util.toJson($ctx.stash.item)\n"


def item_read_request(key: KeySpec) -> str:
    """Consistent GetItem of the item a mutation input addresses, used as a pipeline step."""
    entries = ",\n    ".join(key_entries(key, "ctx.args.input"))
    return f"""{{
  "version": "2018-05-29",
  "operation": "GetItem",
  "key": {{
    {entries}
  }},
  "consistentRead": true
}}
"""


def item_read_response() -> str:
    """Stash the read item for the following steps and the resolver's response."""
    return """#if( $ctx.error )
  $util.error($ctx.error.message, $ctx.error.type)
#end
$util.qr($ctx.stash.put("item", $ctx.result))
$util.toJson($ctx.result)
"""


def has_one_request(yours: str, mine: str, *, partial_key: bool = False) -> str:
    """Look up the target item keyed by a value stored on the source record.

    Args:
        yours: Target attribute matched against the source value.
        mine: Source attribute holding the value.
        partial_key: The value addresses only the partition of a target whose
            primary key also has a sort key, so the first item of the
            partition is queried instead of a GetItem.
    """
    guard = f"""#if( $util.isNull($ctx.source.{mine}) )
  #return
#end
"""
    if partial_key:
        return (
            guard
            + f"""{{
  "version": "2018-05-29",
  "operation": "Query",
  "query": {{
    "expression": "#connectionAttribute = :connectionAttribute",
    "expressionNames": {{
      "#connectionAttribute": "{yours}"
    }},
    "expressionValues": {{
      ":connectionAttribute": $util.dynamodb.toDynamoDB($ctx.source.{mine})
    }}
  }},
  "limit": 1
}}
"""
        )
    return (
        guard
        + f"""{{
  "version": "2018-05-29",
  "operation": "GetItem",
  "key": {{
    "{yours}": $util.dynamodb.toDynamoDBJson($ctx.source.{mine})
  }}
}}
"""
    )


def has_one_response(*, partial_key: bool = False) -> str:
    error = """#if( $ctx.error )
  $util.error($ctx.error.message, $ctx.error.type)
#end
"""
    if partial_key:
        return (
            error
            + """#if( $ctx.result.items.isEmpty() )
  #return
#end
$util.toJson($ctx.result.items[0])
"""
        )
    return error + "$util.toJson($ctx.result)\n"


def has_many_request(yours: str, mine: str, index: str | None) -> str:
    """Query the target table for items whose foreign key equals a source attribute."""
    index_line = f',\n  "index": "{index}"' if index else ""
    return f"""#set( $limit = $util.defaultIfNull($ctx.args.limit, 100) )
#set( $query = {{
  "expression": "#connectionAttribute = :connectionAttribute",
  "expressionNames": {{
    "#connectionAttribute": "{yours}"
  }},
  "expressionValues": {{
    ":connectionAttribute": $util.dynamodb.toDynamoDB($ctx.source.{mine})
  }}
}} )
{{
  "version": "2017-02-28",
  "operation": "Query",
  "query": $util.toJson($query),
  "scanIndexForward": #if( $ctx.args.sortDirection && $ctx.args.sortDirection == "DESC" ) false #else true #end,
  "filter": #if( $ctx.args.filter ) $util.transform.toDynamoDBFilterExpression($ctx.args.filter) #else null #end,
  "limit": $limit,
  "nextToken": #if( $ctx.args.nextToken ) $util.toJson($ctx.args.nextToken) #else null #end{index_line}
}}
"""


def key_query_request(key: KeySpec) -> str:
    """Query request for a key-derived query field over a named index."""
    pk = key.partition_key
    lines = [
        "## [Start] Set query expression for @key **",
        "#set( $modelQueryExpression = {} )",
    ]
    argument = key.sort_argument
    if argument is not None:
        lines.append(
            f"""#if( !$util.isNull($ctx.args.{argument}) && $util.isNull($ctx.args.{pk}) )
  $util.error("When providing argument '{argument}' you must also provide argument '{pk}'", "InvalidArgumentsError")
#end"""
        )
    lines.append(
        f"""#if( !$util.isNull($ctx.args.{pk}) )
  #set( $modelQueryExpression.expression = "#{pk} = :{pk}" )
  #set( $modelQueryExpression.expressionNames = {{
    "#{pk}": "{pk}"
  }} )
  #set( $modelQueryExpression.expressionValues = {{
    ":{pk}": $util.dynamodb.toDynamoDB($ctx.args.{pk})
  }} )
#end"""
    )
    if argument is not None:
        lines.append("## [Start] Applying Key Condition **")
        if key.is_composite:
            lines.extend(_composite_sort_conditions(key, argument))
        else:
            lines.extend(_simple_sort_conditions(key.sort_key, argument))
        lines.append("## [End] Applying Key Condition **")
    lines.append("## [End] Set query expression for @key **")
    lines.append(
        f"""#set( $limit = $util.defaultIfNull($ctx.args.limit, 100) )
#set( $QueryRequest = {{
  "version": "2017-02-28",
  "operation": "Query",
  "limit": $limit,
  "query": $modelQueryExpression,
  "index": "{key.name}"
}} )
#if( !$util.isNull($ctx.args.sortDirection) && $ctx.args.sortDirection == "DESC" )
  #set( $QueryRequest.scanIndexForward = false )
#else
  #set( $QueryRequest.scanIndexForward = true )
#end
#if( $ctx.args.nextToken ) #set( $QueryRequest.nextToken = $ctx.args.nextToken ) #end
#if( $ctx.args.filter ) #set( $QueryRequest.filter = $util.parseJson("$util.transform.toDynamoDBFilterExpression($ctx.args.filter)") ) #end
$util.toJson($QueryRequest)"""
    )
    return "\n".join(lines) + "\n"


def function_request(type_name: str) -> str:
    """Pipeline "before" template stashing the resolved type and field names."""
    lines = [
        '$util.qr($ctx.stash.put("typeName", "' + type_name + '"))',
        '$util.qr($ctx.stash.put("fieldName", $ctx.info.fieldName))',
    ]
    if type_name == "Mutation":
        lines.append(
            '$util.qr($ctx.args.input.put("updatedAt", $util.defaultIfNull($ctx.args.input.updatedAt, '
            "$util.time.nowISO8601())))"
        )
        lines.append('{\n  "value": $util.toJson($ctx.args.input)\n}')
    else:
        lines.append("{}")
    return "\n".join(lines) + "\n"


def function_response() -> str:
    return "$util.toJson($ctx.prev.result)\n"


# ################
# Implementation
# ################

_CONDITION_ARGUMENT = """#if( $ctx.args.condition )
  #set( $conditionFilterExpressions = $util.parseJson($util.transform.toDynamoDBConditionExpression($ctx.args.condition)) )
  $util.qr($condition.put("expression", "($condition.expression) AND $conditionFilterExpressions.expression"))
  $util.qr($condition.expressionNames.putAll($conditionFilterExpressions.expressionNames))
  #set( $conditionExpressionValues = $util.defaultIfNull($condition.expressionValues, {}) )
  $util.qr($conditionExpressionValues.putAll($conditionFilterExpressions.expressionValues))
  #set( $condition.expressionValues = $conditionExpressionValues )
#end"""

_DROP_EMPTY_VALUES = """#if( $condition.expressionValues && $condition.expressionValues.size() == 0 )
  #set( $condition = {
  "expression": $condition.expression,
  "expressionNames": $condition.expressionNames
} )
#end"""

_UPDATE_EXPRESSION = """#set( $expNames = {} )
#set( $expValues = {} )
#set( $expSet = {} )
#set( $expRemove = [] )
#foreach( $entry in $util.map.copyAndRemoveAllKeys($ctx.args.input, $keyFields).entrySet() )
  #set( $entryKeyAttributeName = $entry.key.replaceAll("[^A-Za-z0-9_]", "_") )
  #if( $util.isNull($entry.value) )
    #set( $discard = $expRemove.add("#$entryKeyAttributeName") )
    $util.qr($expNames.put("#$entryKeyAttributeName", "$entry.key"))
  #else
    $util.qr($expSet.put("#$entryKeyAttributeName", ":$entryKeyAttributeName"))
    $util.qr($expNames.put("#$entryKeyAttributeName", "$entry.key"))
    $util.qr($expValues.put(":$entryKeyAttributeName", $util.dynamodb.toDynamoDB($entry.value)))
  #end
#end
#set( $expression = "" )
#if( !$expSet.isEmpty() )
  #set( $expression = "SET" )
  #foreach( $entry in $expSet.entrySet() )
    #set( $expression = "$expression $entry.key = $entry.value" )
    #if( $foreach.hasNext() )
      #set( $expression = "$expression," )
    #end
  #end
#end
#if( !$expRemove.isEmpty() )
  #set( $expression = "$expression REMOVE" )
  #foreach( $entry in $expRemove )
    #set( $expression = "$expression $entry" )
    #if( $foreach.hasNext() )
      #set( $expression = "$expression," )
    #end
  #end
#end
#set( $update = {} )
$util.qr($update.put("expression", "$expression"))
#if( !$expNames.isEmpty() )
  $util.qr($update.put("expressionNames", $expNames))
#end
#if( !$expValues.isEmpty() )
  $util.qr($update.put("expressionValues", $expValues))
#end"""

_TRANSACT_WRITE = """{
  "version": "2018-05-29",
  "operation": "TransactWriteItems",
  "transactItems": $util.toJson($transactItems)
}"""

_EXISTING_ITEM = "#set( $existing = $util.defaultIfNull($ctx.stash.item, {}) )"

_SORT_OPERATORS = {"eq": "=", "lt": "<", "le": "<=", "gt": ">", "ge": ">="}


def _key_map(key: KeySpec, source: str) -> str:
    """Template map literal of the primary key, for use with ``toMapValues``."""
    entries = [f'"{key.partition_key}": ${source}.{key.partition_key}']
    if key.is_composite:
        entries.append(f'"{key.sort_key}": "{composite_value(key.sort_fields, source)}"')
    elif key.sort_key is not None:
        entries.append(f'"{key.sort_key}": ${source}.{key.sort_key}')
    return "{ " + ", ".join(entries) + " }"


def _composite_key_lines(keys: list[KeySpec]) -> list[str]:
    """Derive each composite sort attribute when all of its parts are present in the input."""
    lines: list[str] = []
    for key in keys:
        present = " && ".join(f"!$util.isNull($ctx.args.input.{name})" for name in key.sort_fields)
        value = composite_value(key.sort_fields, "ctx.args.input")
        lines.append(
            f"""## Composite sort key {key.sort_key} **
#if( {present} )
  $util.qr($ctx.args.input.put("{key.sort_key}", "{value}"))
#end"""
        )
    return lines


def _marker_key(type_name: str, key: KeySpec, field_name: str, value: str) -> str:
    """``toMapValues`` expression addressing the marker item of one field value."""
    entries = [f'"{key.partition_key}": "{UNIQUE_MARKER_PREFIX}#{type_name}#{field_name}#{value}"']
    if key.sort_key is not None:
        entries.append(f'"{key.sort_key}": "{UNIQUE_MARKER_PREFIX}"')
    return "$util.dynamodb.toMapValues({ " + ", ".join(entries) + " })"


def _claim_marker(type_name: str, key: KeySpec, field_name: str, *, owned_ok: bool) -> str:
    """A transaction item claiming the input value of a field through its marker item."""
    pk = key.partition_key
    if owned_ok:
        condition = f"""{{
      "expression": "attribute_not_exists(#marker) OR #ref = :ref",
      "expressionNames": {{ "#marker": "{pk}", "#ref": "{UNIQUE_REFERENCE_ATTRIBUTE}" }},
      "expressionValues": {{ ":ref": $util.dynamodb.toDynamoDB($ctx.args.input.{pk}) }}
    }}"""
    else:
        condition = f"""{{
      "expression": "attribute_not_exists(#marker)",
      "expressionNames": {{ "#marker": "{pk}" }}
    }}"""
    return f"""  $util.qr($transactItems.add({{
    "table": "{type_name}",
    "operation": "PutItem",
    "key": {_marker_key(type_name, key, field_name, f"$ctx.args.input.{field_name}")},
    "attributeValues": $util.dynamodb.toMapValues({{ "{UNIQUE_REFERENCE_ATTRIBUTE}": $ctx.args.input.{pk} }}),
    "condition": {condition}
  }}))"""


def _release_marker(type_name: str, key: KeySpec, field_name: str, value: str) -> str:
    """A transaction item deleting the marker of ``value`` unless another item owns it."""
    pk = key.partition_key
    return f"""  $util.qr($transactItems.add({{
    "table": "{type_name}",
    "operation": "DeleteItem",
    "key": {_marker_key(type_name, key, field_name, value)},
    "condition": {{
      "expression": "attribute_not_exists(#marker) OR #ref = :ref",
      "expressionNames": {{ "#marker": "{pk}", "#ref": "{UNIQUE_REFERENCE_ATTRIBUTE}" }},
      "expressionValues": {{ ":ref": $util.dynamodb.toDynamoDB($ctx.args.input.{pk}) }}
    }}
  }}))"""


def _claim_on_create(type_name: str, key: KeySpec, field_name: str) -> str:
    return f"""## Unique constraint on {field_name} **
#if( !$util.isNull($ctx.args.input.{field_name}) )
{_claim_marker(type_name, key, field_name, owned_ok=False)}
#end"""


def _reassign_marker(type_name: str, key: KeySpec, field_name: str) -> str:
    """Claim a changed value and release the value the stored item held."""
    return f"""## Unique constraint on {field_name} **
#if( $ctx.args.input.containsKey("{field_name}") && $ctx.args.input.{field_name} != $existing.{field_name} )
  #if( !$util.isNull($ctx.args.input.{field_name}) )
  {_claim_marker(type_name, key, field_name, owned_ok=True)}
  #end
  #if( !$util.isNull($existing.{field_name}) )
  {_release_marker(type_name, key, field_name, f"$existing.{field_name}")}
  #end
#end"""


def _simple_sort_conditions(sort_key: str, argument: str) -> list[str]:
    lines = [
        f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.beginsWith) )
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND begins_with(#sortKey, :sortKey)" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey", $util.dynamodb.toDynamoDB($ctx.args.{argument}.beginsWith)))
#end""",
        f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.between) )
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND #sortKey BETWEEN :sortKey0 AND :sortKey1" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey0", $util.dynamodb.toDynamoDB($ctx.args.{argument}.between[0])))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey1", $util.dynamodb.toDynamoDB($ctx.args.{argument}.between[1])))
#end""",
    ]
    for name, operator in _SORT_OPERATORS.items():
        lines.append(
            f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.{name}) )
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND #sortKey {operator} :sortKey" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey", $util.dynamodb.toDynamoDB($ctx.args.{argument}.{name})))
#end"""
        )
    return lines


def _composite_prefix(argument: str, accessor: str, fields: list[str], target: str) -> str:
    """Build ``target`` as the separator-joined prefix of the parts given under ``accessor``."""
    source = f"$ctx.args.{argument}.{accessor}"
    first, *rest = fields
    lines = [f'#set( {target} = "" )']
    lines.append(f'#if( !$util.isNull({source}.{first}) ) #set( {target} = "{source}.{first}" ) #end')
    for name in rest:
        lines.append(
            f'#if( !$util.isNull({source}.{name}) ) #set( {target} = "{target}{KEY_SEPARATOR}{source}.{name}" ) #end'
        )
    return "\n  ".join(lines)


def _composite_sort_conditions(key: KeySpec, argument: str) -> list[str]:
    sort_key = key.sort_key
    fields = key.sort_fields
    lines = [
        f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.beginsWith) )
  {_composite_prefix(argument, "beginsWith", fields, "$sortKeyValue")}
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND begins_with(#sortKey, :sortKey)" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey", {{ "S": "$sortKeyValue" }}))
#end""",
        f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.between) )
  #if( $ctx.args.{argument}.between.size() != 2 )
    $util.error("Argument {argument}.between expects exactly 2 elements.")
  #end
  {_composite_prefix(argument, "between[0]", fields, "$sortKeyValue0")}
  {_composite_prefix(argument, "between[1]", fields, "$sortKeyValue1")}
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND #sortKey BETWEEN :sortKey0 AND :sortKey1" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey0", {{ "S": "$sortKeyValue0" }}))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey1", {{ "S": "$sortKeyValue1" }}))
#end""",
    ]
    for name, operator in _SORT_OPERATORS.items():
        lines.append(
            f"""#if( !$util.isNull($ctx.args.{argument}) && !$util.isNull($ctx.args.{argument}.{name}) )
  {_composite_prefix(argument, name, fields, "$sortKeyValue")}
  #set( $modelQueryExpression.expression = "$modelQueryExpression.expression AND #sortKey {operator} :sortKey" )
  $util.qr($modelQueryExpression.expressionNames.put("#sortKey", "{sort_key}"))
  $util.qr($modelQueryExpression.expressionValues.put(":sortKey", {{ "S": "$sortKeyValue" }}))
#end"""
        )
    return lines
