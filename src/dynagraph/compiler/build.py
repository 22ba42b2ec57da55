# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Build workflow: compile a schema file and write the resulting artifacts.

Generated SDL documents are fed back into the compiler until a round produces
no SDL text that has not been compiled already. Every destination is
materialized in memory before anything is written, so a fatal error leaves the
build directory untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from pathlib import Path, PurePosixPath

from dynagraph.compiler.dispatcher import compile_schema
from dynagraph.compiler.errors import CompilerError
from dynagraph.compiler.materializer import materialize
from dynagraph.model.artifacts import ArtifactFragment, DestinationKind, MaterializedFile
from dynagraph.workspace.config import BuildConfig

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

MAX_ROUNDS = 16


def compile_files(
    source: str,
    *,
    schema_name: str = "schema.graphql",
    types: Collection[str] | None = None,
    build_dir: Path | None = None,
) -> list[MaterializedFile]:
    """Compile SDL text into materialized files without touching the filesystem.

    Args:
        source: The annotated input schema.
        schema_name: File name of the input schema; the sanitized copy is
            published as ``schema/<schema_name>``.
        types: Type-name allow-list; None leaves every declaration in scope.
        build_dir: Directory holding a previous build. Structured and SDL
            destinations are merged into the files found there.

    Returns:
        The materialized files, always including the published schema.

    Raises:
        CompilerError: On any fatal compilation error, or if feeding generated
            SDL back into the compiler does not settle.
    """
    root_location = f"schema/{schema_name}"
    fragments = compile_fixpoint(source, schema_name=schema_name, types=types)
    if not any(f.location == root_location for f in fragments):
        fragments.insert(0, ArtifactFragment(location=root_location, payload=source))

    existing: dict[str, str] = {}
    if build_dir is not None:
        for location in dict.fromkeys(f.location for f in fragments):
            path = build_dir / location
            if location != root_location and path.is_file():
                existing[location] = _read(path)
    return materialize(fragments, existing)


def compile_fixpoint(
    source: str,
    *,
    schema_name: str = "schema.graphql",
    types: Collection[str] | None = None,
) -> list[ArtifactFragment]:
    """Compile the source, then every newly generated SDL document, until nothing new appears.

    Generated documents are compiled under their own file name, so edits they
    produce to their published copy address that document rather than the
    input schema.

    Raises:
        CompilerError: If the loop has not settled after ``MAX_ROUNDS`` rounds.
    """
    fragments: list[ArtifactFragment] = []
    compiled = {source}
    pending = [(schema_name, source)]
    rounds = 0
    while pending:
        rounds += 1
        if rounds > MAX_ROUNDS:
            raise CompilerError(f"Generated schema did not settle after {MAX_ROUNDS} rounds")
        next_pending: list[tuple[str, str]] = []
        for name, text in pending:
            result = compile_schema(text, schema_name=name, types=types)
            fragments.extend(result.fragments)
            for fragment in result.fragments:
                payload = fragment.payload
                if fragment.kind is not DestinationKind.SDL or fragment.patch is not None:
                    continue
                if fragment.location == result.context.root_location:
                    continue
                if not isinstance(payload, str) or payload in compiled:
                    continue
                compiled.add(payload)
                next_pending.append((PurePosixPath(fragment.location).name, payload))
        logger.debug("Round %d compiled %d document(s)", rounds, len(pending))
        pending = next_pending
    return fragments


def write_outputs(files: list[MaterializedFile], build_dir: Path, *, append_only: bool = False) -> list[Path]:
    """Write materialized files below the build directory.

    An existing file is kept when ``append_only`` is set, or when the file is
    not replaceable.

    Returns:
        The paths that were written.

    Raises:
        CompilerError: If a file cannot be written.
    """
    written: list[Path] = []
    for file in files:
        path = build_dir / file.location
        if path.exists() and (append_only or not file.replaceable):
            logger.info("Keeping existing %s", file.location)
            continue
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(file.body, encoding="utf-8")
        except OSError as exc:
            raise CompilerError(f"Cannot write '{path}': {exc}") from exc
        logger.debug("Wrote %s", file.location)
        written.append(path)
    return written


def build(config: BuildConfig) -> list[Path]:
    """Compile the configured schema and write its artifacts.

    Args:
        config: Resolved build settings.

    Returns:
        The paths that were written.

    Raises:
        CompilerError: If the schema cannot be read, compiled or written.
    """
    source_path = config.schema_path
    source = _read(source_path)
    files = compile_files(
        source,
        schema_name=source_path.name,
        types=config.types,
        build_dir=config.build_path,
    )
    written = write_outputs(files, config.build_path, append_only=config.append_only)
    logger.info("Built %d of %d file(s) into %s", len(written), len(files), config.build_path)
    return written


# ################
# Implementation
# ################


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CompilerError(f"File not found: {path}") from None
    except OSError as exc:
        raise CompilerError(f"Cannot read '{path}': {exc}") from exc
