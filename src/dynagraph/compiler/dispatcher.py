# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the compilation passes over a parsed document.

1. Registration: a walk with only the registration handlers creates every table.
2. Collection: a walk with the remaining handlers records keys, relations,
   authorization rules and the other per-table declarations.
3. Classification: every relation is resolved against the complete registry.
4. Emission: tables, free-standing resources, the shared root fragment and
   the schema sanitizer produce the fragment stream.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from graphql.language import DocumentNode

from dynagraph.compiler.context import walk
from dynagraph.compiler.directives import DEFAULT_DIRECTIVES, Directive, Phase, directive_arguments
from dynagraph.compiler.materializer import parse_sdl, print_sdl
from dynagraph.compiler.registry import CompilationContext
from dynagraph.compiler.resources.function import FunctionResource
from dynagraph.compiler.resources.sanitizer import SchemaSanitizerResource
from dynagraph.compiler.resources.shared import SharedSchemaResource
from dynagraph.model.artifacts import ArtifactFragment

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass
class CompilationResult:
    """Outcome of one compilation run.

    Attributes:
        context: The populated compilation context.
        fragments: Emitted fragments in emission order.
    """

    context: CompilationContext
    fragments: list[ArtifactFragment]


def compile_schema(
    text: str,
    *,
    schema_name: str = "schema.graphql",
    types: Collection[str] | None = None,
    directives: Sequence[Directive] = DEFAULT_DIRECTIVES,
) -> CompilationResult:
    """Parse SDL text and compile it.

    Args:
        text: The annotated SDL document.
        schema_name: File name under which the sanitized document is published.
        types: Type-name allow-list; None leaves every declaration in scope.
        directives: Handlers offered every directive occurrence.

    Returns:
        The populated context and the emitted fragments.

    Raises:
        SchemaSyntaxError: If the text is not valid SDL.
        CompilerError: On any other fatal compilation error.
    """
    document = parse_sdl(text, schema_name)
    return compile_document(document, schema_name=schema_name, types=types, directives=directives)


def compile_document(
    document: DocumentNode,
    *,
    schema_name: str = "schema.graphql",
    types: Collection[str] | None = None,
    directives: Sequence[Directive] = DEFAULT_DIRECTIVES,
) -> CompilationResult:
    """Compile a parsed document into a fragment stream.

    A document without relevant directives yields no fragments. When any
    fragment edits the published schema, the stream starts with a fragment
    seeding it with the printed input document.
    """
    context = CompilationContext(document=document, schema_name=schema_name, types=types)
    dispatch(context, directives, Phase.REGISTER)
    dispatch(context, directives, Phase.COLLECT)
    _warn_unbound_field_auth(context)
    context.classify_relations()
    fragments = emit(context)
    logger.info(
        "Compiled %s: %d table(s), %d fragment(s)",
        schema_name,
        len(context.tables),
        len(fragments),
    )
    return CompilationResult(context=context, fragments=fragments)


def dispatch(context: CompilationContext, directives: Sequence[Directive], phase: Phase) -> None:
    """Offer every directive occurrence in the document to the handlers of one phase."""
    handlers = [d for d in directives if d.phase is phase]
    for location in walk(context.document):
        node = location.node()
        for occurrence in node.directives or ():
            name = occurrence.name.value
            matching = [h for h in handlers if h.matches(name, node, location, context.types)]
            if not matching:
                continue
            args = directive_arguments(occurrence)
            for handler in matching:
                logger.debug("Applying @%s at %s", name, _describe(location))
                for resource in handler.apply(args, node, location, context):
                    context.add_resource(resource)


def emit(context: CompilationContext) -> list[ArtifactFragment]:
    """Collect the fragments of every resource in emission order."""
    fragments: list[ArtifactFragment] = []
    for table in context.tables.values():
        fragments.extend(table.fragments(context))
    for resource in context.resources:
        fragments.extend(resource.fragments(context))
    if context.tables:
        fragments.extend(SharedSchemaResource().fragments(context))
    fragments.extend(SchemaSanitizerResource().fragments(context))

    if any(f.location == context.root_location for f in fragments):
        seed = ArtifactFragment(location=context.root_location, payload=print_sdl(context.document))
        fragments.insert(0, seed)
    return fragments


# ################
# Implementation
# ################


def _describe(location: object) -> str:
    field_name = getattr(location, "field_name", None)
    type_name = getattr(location, "type_name", "<document>")
    return f"{type_name}.{field_name}" if field_name else type_name


def _warn_unbound_field_auth(context: CompilationContext) -> None:
    """Field-scoped @auth only guards @function fields; rules anywhere else have no effect."""
    bound = {(r.type_name, r.field_name) for r in context.resources if isinstance(r, FunctionResource)}
    for type_name, field_name in context.field_auth:
        if (type_name, field_name) not in bound:
            logger.warning(
                "@auth on %s.%s is ignored: field rules apply only to @function fields",
                type_name,
                field_name,
            )
