"""Percentile band normalization helpers.

This module broadcasts flat series into percentile bands, extracts one
band, and restricts band sets to the percentiles of a run.
"""

from __future__ import annotations

from typing import Sequence

from audit.trail import AuditTrail
from core.constants import CUSTOM_PERCENTILE
from core.types import CustomPercentileMap, DataPoint, PercentileSeries


def effective_percentiles(
    percentiles: Sequence[int],
    custom_percentile: CustomPercentileMap | None,
) -> tuple[int, ...]:
    """Return run percentiles plus the custom band 0 when any alias exists."""
    declared = tuple(percentiles)
    if custom_percentile and CUSTOM_PERCENTILE not in declared:
        return declared + (CUSTOM_PERCENTILE,)
    return declared


def normalize(
    points: Sequence[DataPoint],
    percentiles: Sequence[int],
    name: str,
    custom_percentile: CustomPercentileMap | None = None,
    audit: AuditTrail | None = None,
) -> list[PercentileSeries]:
    """Broadcast one flat series into an identical band per percentile.

    Args:
        points: Annual points without percentile variation.
        percentiles: Percentiles to emit.
        name: Series name of every emitted band.
        custom_percentile: Custom alias map; a band 0 is added when non-empty.
        audit: Optional audit trail receiving a normalization entry.

    Returns:
        One band per effective percentile, or an empty list for empty input.
    """
    if not points:
        return []
    data = tuple(points)
    bands = [
        PercentileSeries(name=name, data=data, percentile=percentile)
        for percentile in effective_percentiles(percentiles, custom_percentile)
    ]
    if audit is not None:
        audit.add_entry(
            "apply_normalization",
            f"normalized fixed time-series into {len(bands)} percentiles",
            data=bands,
            entry_type="normalize",
            type_operation="none",
        )
    return bands


def extract_band(bands: Sequence[PercentileSeries], percentile: int) -> tuple[DataPoint, ...]:
    """Return the points of one percentile, or an empty tuple if it is absent."""
    for band in bands:
        if band.percentile == percentile:
            return band.data
    return ()


def find_band(bands: Sequence[PercentileSeries], percentile: int) -> PercentileSeries | None:
    """Return the band of one percentile or None."""
    for band in bands:
        if band.percentile == percentile:
            return band
    return None


def restrict_to_percentiles(
    bands: Sequence[PercentileSeries],
    percentiles: Sequence[int],
) -> list[PercentileSeries]:
    """Drop bands whose percentile is not part of the run."""
    allowed = set(percentiles)
    return [band for band in bands if band.percentile in allowed]


def band_total(points: Sequence[DataPoint]) -> float:
    """Sum the values of a band."""
    return sum(point.value for point in points)
