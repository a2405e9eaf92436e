"""Multiplier value lookup strategies.

This module locates the values of one multiplier and builds a
``(year, percentile)`` lookup once per multiplier, chosen by value shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Mapping, Sequence, cast

from core.constants import CUSTOM_PERCENTILE
from core.errors import CubeMultiplierError, CubeSourceDataError
from core.types import CustomPercentileMap, PercentileSeries, SourceRecord
from series.shapes import (
    SeriesBands,
    SeriesPoints,
    SeriesRecords,
    is_number,
    parse_series_payload,
)

MultiplierLookup = Callable[[int, int], float | None]
ValueShape = Literal["scalar", "series", "percentile_series", "processed"]


@dataclass(frozen=True)
class MultiplierValues:
    """Resolved multiplier values with their lookup strategy.

    Attributes:
        lookup: Returns the multiplier for ``(year, percentile)`` or None.
        shape: Shape the values were resolved from.
        sample: Underlying values, kept for audit sampling.
    """

    lookup: MultiplierLookup
    shape: ValueShape
    sample: object


def find_multiplier_values(
    multiplier_id: str,
    processed: Sequence[SourceRecord],
    references: Mapping[str, object],
) -> tuple[object, bool] | None:
    """Locate raw multiplier values, processed records first.

    Returns:
        ``(values, from_processed)`` or None when neither source has the id.
    """
    for record in processed:
        if record.id == multiplier_id:
            return record.bands, True
    value = references.get(multiplier_id)
    if value is None:
        return None
    return value, False


def build_lookup(
    values: object,
    multiplier_id: str,
    custom_percentile: CustomPercentileMap,
    from_processed: bool = False,
) -> MultiplierValues:
    """Choose the lookup strategy for one multiplier's values.

    Args:
        values: Scalar, flat series, band list or processed bands.
        multiplier_id: Multiplier id, used for the percentile-0 alias.
        custom_percentile: Custom-percentile alias map of the run.
        from_processed: Whether the values came from a processed record.

    Returns:
        Values paired with a lookup function.

    Raises:
        CubeMultiplierError: If the values have no supported shape.
    """
    if is_number(values):
        scalar = float(cast(float, values))
        return MultiplierValues(
            lookup=lambda _year, _percentile: scalar,
            shape="scalar",
            sample=values,
        )
    try:
        payload = parse_series_payload(values, multiplier_id)
    except CubeSourceDataError as error:
        raise CubeMultiplierError(
            f"Invalid values for multiplier '{multiplier_id}': {error} "
            "Provide a number, a list of {year, value} points or percentile bands."
        ) from error
    if isinstance(payload, SeriesPoints):
        by_year = {point.year: point.value for point in payload.points}
        return MultiplierValues(
            lookup=lambda year, _percentile: by_year.get(year),
            shape="series",
            sample=payload.points,
        )
    if isinstance(payload, SeriesBands):
        return MultiplierValues(
            lookup=_percentile_lookup(payload.bands, multiplier_id, custom_percentile),
            shape="processed" if from_processed else "percentile_series",
            sample=payload.bands,
        )
    if isinstance(payload, SeriesRecords):
        raise CubeMultiplierError(
            f"Multiplier '{multiplier_id}' resolved to source records; "
            "reference a source id instead."
        )
    raise CubeMultiplierError(f"Unsupported values for multiplier '{multiplier_id}'.")


def _percentile_lookup(
    bands: Sequence[PercentileSeries],
    multiplier_id: str,
    custom_percentile: CustomPercentileMap,
) -> MultiplierLookup:
    by_key: dict[tuple[int, int], float] = {}
    for band in bands:
        for point in band.data:
            by_key[(point.year, band.percentile)] = point.value
    alias = custom_percentile.get(multiplier_id)

    def lookup(year: int, percentile: int) -> float | None:
        if percentile == CUSTOM_PERCENTILE and alias is not None:
            aliased = by_key.get((year, alias))
            if aliased is not None:
                return aliased
        return by_key.get((year, percentile))

    return lookup
