"""Custom percentile substitution.

This module injects a synthetic percentile-0 band that aliases a chosen
real percentile per source, and builds default alias maps.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping, Sequence

from core.constants import CUSTOM_PERCENTILE
from core.errors import CubeConfigError
from core.logging_config import get_logger
from core.types import CustomPercentileMap, PercentileSeries, SourceRegistry
from series.normalization import find_band

_LOGGER = get_logger(__name__)


def substitute_custom_percentile(
    bands: Sequence[PercentileSeries],
    source_id: str,
    custom_percentile: CustomPercentileMap | None,
) -> tuple[list[PercentileSeries], int | None]:
    """Add a band 0 copied from the source's aliased percentile.

    Any existing band 0 is replaced, so repeated substitution is stable.

    Args:
        bands: Raw bands of the source.
        source_id: Source id looked up in the alias map.
        custom_percentile: Custom-percentile alias map of the run.

    Returns:
        The bands with band 0 appended, and the aliased percentile or None
        when no substitution happened.
    """
    if not custom_percentile or source_id not in custom_percentile:
        return list(bands), None
    aliased_percentile = custom_percentile[source_id]
    aliased = find_band(bands, aliased_percentile)
    if aliased is None:
        _LOGGER.warning(
            "custom_percentile_missing",
            source_id=source_id,
            percentile=aliased_percentile,
        )
        return list(bands), None
    substituted = replace(
        aliased,
        percentile=CUSTOM_PERCENTILE,
        metadata={**aliased.metadata, "custom_percentile": aliased_percentile},
    )
    kept = [band for band in bands if band.percentile != CUSTOM_PERCENTILE]
    return kept + [substituted], aliased_percentile


def primary_percentile(available: Sequence[int]) -> int:
    """Return the centre of the sorted percentiles, the lower one on ties.

    Raises:
        CubeConfigError: If no percentiles are available.
    """
    if not available:
        raise CubeConfigError("At least one percentile is required to pick a primary percentile.")
    ordered = sorted(available)
    return ordered[(len(ordered) - 1) // 2]


def initialize_custom_percentiles(
    registry: SourceRegistry,
    primary: int,
    existing: Mapping[str, int] | None = None,
) -> dict[str, int]:
    """Alias every percentile-bearing source, keeping existing choices.

    Args:
        registry: Source registry.
        primary: Percentile used for sources without an existing choice.
        existing: Previously chosen aliases.

    Returns:
        Alias map covering every source with ``has_percentiles``.
    """
    chosen = existing or {}
    return {
        source.id: chosen.get(source.id, primary)
        for source in registry.sources
        if source.has_percentiles
    }
