"""Run command wiring for the cashcube CLI.

This module registers the run subcommand, evaluates the pipeline against a
scenario file and prints the resulting bands as tab-separated rows.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from core.config import parse_percentiles
from core.errors import CubeConfigError, CubeError
from core.types import PipelineResult
from pipeline.client import CubeClient


def add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Evaluate all sources against a scenario file")
    parser.add_argument("scenario", help="Path to YAML or JSON scenario file")
    parser.add_argument("--registry", help="Optional YAML source registry file")
    parser.add_argument(
        "--percentiles",
        help="Comma-separated percentiles overriding CASHCUBE_PERCENTILES",
    )
    parser.add_argument(
        "--custom",
        action="append",
        default=[],
        metavar="SOURCE_ID=PERCENTILE",
        help="Alias a source's percentile as custom percentile 0 (repeatable)",
    )
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        help="Only print records with this id (repeatable)",
    )
    parser.add_argument("--percentile", type=int, help="Only print bands of this percentile")


def run_run_command(client: CubeClient, args: argparse.Namespace) -> int:
    """Handle run command invocation."""
    try:
        percentiles = (
            parse_percentiles(args.percentiles, "--percentiles")
            if args.percentiles
            else None
        )
        result = client.run(
            args.scenario,
            registry_path=args.registry,
            percentiles=percentiles,
            custom_percentile=parse_custom_percentiles(args.custom),
        )
    except CubeError as error:
        print(f"run_error={error}")
        return 1
    for line in render_result_rows(result, args.source, args.percentile):
        print(line)
    print(render_summary(result))
    return 0


def parse_custom_percentiles(raw_values: Sequence[str]) -> dict[str, int]:
    """Parse ``SOURCE_ID=PERCENTILE`` flag values into an alias map.

    Raises:
        CubeConfigError: If an entry is malformed.
    """
    custom: dict[str, int] = {}
    for raw_value in raw_values:
        source_id, separator, raw_percentile = raw_value.partition("=")
        source_id = source_id.strip()
        if not separator or not source_id:
            raise CubeConfigError(
                f"Invalid --custom value '{raw_value}'. Use SOURCE_ID=PERCENTILE."
            )
        custom[source_id] = parse_percentiles(raw_percentile, "--custom")[0]
    return custom


def render_result_rows(
    result: PipelineResult,
    source_ids: Sequence[str] = (),
    percentile: int | None = None,
) -> list[str]:
    """Render ``source_id percentile year value`` rows for matching bands."""
    lines: list[str] = []
    for record in result.records:
        if source_ids and record.id not in source_ids:
            continue
        for band in record.bands:
            if percentile is not None and band.percentile != percentile:
                continue
            for point in band.data:
                lines.append(f"{record.id}\t{band.percentile}\t{point.year}\t{point.value:g}")
    return lines


def render_summary(result: PipelineResult) -> str:
    return (
        f"processed={result.processed_count}\t"
        f"errors={result.error_count}\t"
        f"reference_errors={result.reference_error_count}\t"
        f"records={len(result.records)}\t"
        f"elapsed_seconds={result.elapsed_seconds:.3f}"
    )
