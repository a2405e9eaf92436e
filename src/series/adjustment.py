"""Point-wise adjustment and trimming of series payloads.

This module maps or filters points across every tagged series shape and
returns the same shape it received.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Mapping, TypeVar

from audit.trail import AuditTrail
from core.types import DataPoint, PercentileSeries
from series.shapes import SeriesBands, SeriesPoints, SeriesRecords

FLAT_SERIES_PERCENTILE = 50

AdjustFunction = Callable[[int, int, float, float | None], float]
TrimPredicate = Callable[[int, float, Mapping[str, object]], bool]
PayloadT = TypeVar("PayloadT", SeriesPoints, SeriesBands, SeriesRecords)


def adjust_values(
    payload: PayloadT,
    adjust: AdjustFunction,
    audit: AuditTrail | None = None,
) -> PayloadT:
    """Map every point through ``adjust(percentile, year, value, previous)``.

    ``previous`` is the last adjusted value of the same band, None for the
    first point, so cumulative transforms can be expressed directly. Flat
    point series are adjusted as percentile 50.

    Args:
        payload: Points, bands or records.
        adjust: Point mapping function.
        audit: Optional audit trail receiving an adjustment entry.

    Returns:
        A payload of the same shape with adjusted values.
    """
    result = _map_payload(payload, lambda band: _adjust_points(band, adjust))
    if audit is not None:
        audit.add_entry(
            "apply_adjustment",
            f"adjusted {type(payload).__name__} values",
            (),
            result,
            "transform",
            "adjust",
        )
    return result


def trim_values(
    payload: PayloadT,
    predicate: TrimPredicate,
    options: Mapping[str, object],
    audit: AuditTrail | None = None,
) -> PayloadT:
    """Remove every point for which ``predicate(year, value, options)`` holds.

    Args:
        payload: Points, bands or records.
        predicate: Returns True for points to drop.
        options: Values forwarded to the predicate, such as window bounds.
        audit: Optional audit trail receiving a trim entry.

    Returns:
        A payload of the same shape without the trimmed points.
    """
    result = _map_payload(
        payload,
        lambda band: (
            band[0],
            tuple(
                point for point in band[1] if not predicate(point.year, point.value, options)
            ),
        ),
    )
    if audit is not None:
        audit.add_entry(
            "apply_trim",
            f"trimmed {type(payload).__name__} values with {dict(options)}",
            (),
            result,
            "transform",
            "trim",
        )
    return result


_BandFunction = Callable[
    [tuple[int, tuple[DataPoint, ...]]],
    tuple[int, tuple[DataPoint, ...]],
]


def _map_payload(payload: PayloadT, band_fn: _BandFunction) -> PayloadT:
    if isinstance(payload, SeriesPoints):
        _, points = band_fn((FLAT_SERIES_PERCENTILE, payload.points))
        return SeriesPoints(points=points)
    if isinstance(payload, SeriesBands):
        return SeriesBands(bands=_map_bands(payload.bands, band_fn))
    if isinstance(payload, SeriesRecords):
        return SeriesRecords(
            records=tuple(
                replace(record, bands=_map_bands(record.bands, band_fn))
                for record in payload.records
            )
        )
    raise TypeError(f"Unsupported series payload {type(payload).__name__}.")


def _map_bands(
    bands: tuple[PercentileSeries, ...],
    band_fn: _BandFunction,
) -> tuple[PercentileSeries, ...]:
    return tuple(replace(band, data=band_fn((band.percentile, band.data))[1]) for band in bands)


def _adjust_points(
    band: tuple[int, tuple[DataPoint, ...]],
    adjust: AdjustFunction,
) -> tuple[int, tuple[DataPoint, ...]]:
    percentile, points = band
    previous: float | None = None
    adjusted: list[DataPoint] = []
    for point in points:
        value = adjust(percentile, point.year, point.value, previous)
        previous = value
        adjusted.append(DataPoint(year=point.year, value=value))
    return percentile, tuple(adjusted)
