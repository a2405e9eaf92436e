"""Ordering lint command wiring for the cashcube CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.errors import CubeRegistryError
from pipeline.client import CubeClient


def add_lint_command(subparsers: Any) -> None:
    """Register lint subcommand."""
    parser = subparsers.add_parser(
        "lint",
        help="Check that every source runs after the sources it reads",
    )
    parser.add_argument("--registry", help="Optional YAML source registry file")


def run_lint_command(client: CubeClient, args: argparse.Namespace) -> int:
    """Execute the ordering lint and print violations."""
    try:
        violations = client.lint(args.registry)
    except CubeRegistryError as error:
        print(f"lint_error={error}")
        return 1
    for violation in violations:
        print(f"{violation.source_id}\t{violation.dependency_id}\t{violation.reason}")
    print(f"violations={len(violations)}")
    return 0 if not violations else 1
