"""cashcube CLI entry points.
This module exposes the run and lint commands for cube evaluation.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from cli.lint_command import add_lint_command, run_lint_command
from cli.run_command import add_run_command, run_run_command
from core.config import CubeConfig
from core.errors import CubeConfigError
from pipeline.client import CubeClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="cashcube",
        description="Percentile-aware project cashflow cube",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_run_command(subparsers)
    add_lint_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the cashcube CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = CubeClient(CubeConfig.from_env())
    except CubeConfigError as error:
        print(f"config_error={error}")
        return 2
    if args.command == "run":
        return run_run_command(client, args)
    if args.command == "lint":
        return run_lint_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2
