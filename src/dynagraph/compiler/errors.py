# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised while compiling an annotated schema."""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when the compiler encounters any unrecoverable error.

    All compiler failures derive from this class so that callers can abort a
    run with a single handler.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class SchemaSyntaxError(CompilerError):
    """Raised when the input document is not valid SDL.

    Attributes:
        source: The offending SDL text.
    """

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message)
        self.source = source


class DirectiveError(CompilerError):
    """Raised when a directive carries arguments that cannot be interpreted."""


class InvalidAuthProviderError(DirectiveError):
    """Raised when an ``@auth`` rule names a provider that is not recognised."""


class DuplicateModelError(DirectiveError):
    """Raised when ``@model`` is applied twice to the same type name."""


class TypeShapeError(CompilerError):
    """Raised when a field type has a list/non-null nesting that cannot be represented."""


class PatchError(CompilerError):
    """Raised when a patch operation addresses a declaration that does not exist."""
