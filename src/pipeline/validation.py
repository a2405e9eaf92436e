"""Structural validation of source definitions and finished records."""

from __future__ import annotations

from typing import Sequence

from core.errors import CubeSourceDataError
from core.types import SourceDefinition, SourceRecord


def is_valid_source_type(source: SourceDefinition) -> bool:
    """Check the shape rule implied by ``metadata.type``.

    ``direct`` sources have a path and no multipliers, ``indirect`` sources
    have a path and at least one multiplier, and ``virtual`` sources have a
    transformer but no path.

    Args:
        source: Source definition to check.

    Returns:
        True when the definition is consistent with its type.
    """
    source_type = source.metadata.type
    has_path = source.path is not None
    has_multipliers = bool(source.multipliers)
    if source_type == "direct":
        return has_path and not has_multipliers
    if source_type == "indirect":
        return has_path and has_multipliers
    if source_type == "virtual":
        return not has_path and source.transformer is not None
    return False


def validate_record(record: SourceRecord, percentiles: Sequence[int]) -> None:
    """Check that a record holds at most one band per allowed percentile.

    Args:
        record: Finished record.
        percentiles: Effective percentiles of the run.

    Raises:
        CubeSourceDataError: If a band has a foreign or repeated percentile.
    """
    allowed = set(percentiles)
    seen: set[int] = set()
    for band in record.bands:
        if band.percentile not in allowed:
            raise CubeSourceDataError(
                f"Record '{record.id}' has band for percentile {band.percentile}, "
                f"outside the run percentiles {sorted(allowed)}."
            )
        if band.percentile in seen:
            raise CubeSourceDataError(
                f"Record '{record.id}' has more than one band for percentile {band.percentile}."
            )
        seen.add(band.percentile)
