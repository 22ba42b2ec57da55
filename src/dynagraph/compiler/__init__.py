# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for annotated schemas: dispatch, resources, patching and materialization."""

from dynagraph.compiler.build import build, compile_files, compile_fixpoint, write_outputs
from dynagraph.compiler.dispatcher import CompilationResult, compile_document, compile_schema
from dynagraph.compiler.errors import (
    CompilerError,
    DirectiveError,
    DuplicateModelError,
    InvalidAuthProviderError,
    PatchError,
    SchemaSyntaxError,
    TypeShapeError,
)
from dynagraph.compiler.materializer import materialize
from dynagraph.compiler.registry import CompilationContext

__all__ = [
    "build",
    "compile_files",
    "compile_fixpoint",
    "write_outputs",
    "CompilationResult",
    "compile_document",
    "compile_schema",
    "CompilationContext",
    "materialize",
    "CompilerError",
    "DirectiveError",
    "DuplicateModelError",
    "InvalidAuthProviderError",
    "PatchError",
    "SchemaSyntaxError",
    "TypeShapeError",
]
