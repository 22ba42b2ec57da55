#!/usr/bin/env python3
# Copyright 2026 Dynagraph Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run all CI checks locally: format, lint, type check, tests, a smoke build, and packaging.

The smoke build compiles ``docs/example/schema.graphql`` with the installed
``dynagraph`` command into a temporary directory.
"""

import argparse
import subprocess
import sys
import tempfile
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

EXAMPLE_WORKSPACE = Path("docs") / "example"


def steps(smoke_build_dir: str) -> list[tuple[str, list[str]]]:
    """The CI steps in execution order."""
    return [
        ("Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"]),
        ("Lint", ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"]),
        ("Type check", ["uv", "run", "ty", "check", "src/"]),
        ("Tests", ["uv", "run", "pytest", "--cov=dynagraph", "--cov-report=term-missing"]),
        (
            "Smoke build",
            ["uv", "run", "dynagraph", "build", str(EXAMPLE_WORKSPACE), "--build-dir", smoke_build_dir, "-v"],
        ),
        ("Build", ["uv", "build"]),
    ]


def main() -> int:
    """Run the selected CI steps and report results."""
    parser = argparse.ArgumentParser(description="Run the Dynagraph CI checks locally.")
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="STEP",
        help="Name of a step to skip (repeatable, case-insensitive)",
    )
    args = parser.parse_args()
    skipped = {name.lower() for name in args.skip}

    results: list[tuple[str, bool, float]] = []
    with tempfile.TemporaryDirectory(prefix="dynagraph-ci-") as smoke_build_dir:
        for name, cmd in steps(smoke_build_dir):
            if name.lower() in skipped:
                print(chalk.yellow(f"\nSkipping {name}"))
                continue
            _banner(name)
            start = time.monotonic()
            proc = subprocess.run(cmd, cwd=_repo_root())
            results.append((name, proc.returncode == 0, time.monotonic() - start))

    _banner("  Summary")
    failed = [name for name, passed, _ in results if not passed]
    for name, passed, elapsed in results:
        colour = chalk.green if passed else chalk.red
        print(colour(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))

    if failed:
        print(chalk.red(f"\n{len(failed)} step(s) failed: {', '.join(failed)}"))
        return 1
    print()
    return 0


# ################
# Implementation
# ################


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(title))
    print(sep)


def _repo_root() -> str:
    return str(Path(__file__).resolve().parent.parent)


if __name__ == "__main__":
    sys.exit(main())
