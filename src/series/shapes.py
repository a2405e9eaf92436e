"""Tagged series payload shapes.

This module converts raw scenario values into one explicit series shape
at the data boundary so helpers dispatch on type instead of probing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, cast

from core.errors import CubeSourceDataError
from core.types import DataPoint, PercentileSeries, SourceRecord


@dataclass(frozen=True)
class SeriesPoints:
    """Flat annual series without percentile variation."""

    points: tuple[DataPoint, ...]


@dataclass(frozen=True)
class SeriesBands:
    """Percentile bands of one series."""

    bands: tuple[PercentileSeries, ...]


@dataclass(frozen=True)
class SeriesRecords:
    """Finished source records."""

    records: tuple[SourceRecord, ...]


SeriesPayload = SeriesPoints | SeriesBands | SeriesRecords


def is_number(value: object) -> bool:
    """Return True for int or float values, excluding booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_series_payload(raw: object, default_name: str) -> SeriesPayload:
    """Decide the shape of a raw series value once.

    Args:
        raw: Typed models or JSON-like mappings and lists.
        default_name: Name assigned to bands that do not carry one.

    Returns:
        Points, bands or records wrapped in their tagged shape.

    Raises:
        CubeSourceDataError: If the value is not a recognizable series.
    """
    if isinstance(raw, (SeriesPoints, SeriesBands, SeriesRecords)):
        return raw
    if isinstance(raw, Mapping):
        return SeriesBands(bands=(_parse_band(raw, default_name),))
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes, bytearray)):
        raise CubeSourceDataError(
            f"Series '{default_name}' must be a list of points or percentile bands, "
            f"got {type(raw).__name__}."
        )
    items = list(raw)
    if not items:
        return SeriesPoints(points=())
    first = items[0]
    if isinstance(first, SourceRecord):
        records = cast(list[SourceRecord], _expect_all(items, SourceRecord, default_name))
        return SeriesRecords(records=tuple(records))
    if isinstance(first, PercentileSeries):
        bands = cast(list[PercentileSeries], _expect_all(items, PercentileSeries, default_name))
        return SeriesBands(bands=tuple(bands))
    if isinstance(first, DataPoint):
        points = cast(list[DataPoint], _expect_all(items, DataPoint, default_name))
        return SeriesPoints(points=tuple(points))
    if isinstance(first, Mapping) and "percentile" in first:
        return SeriesBands(bands=tuple(_parse_band(item, default_name) for item in items))
    return SeriesPoints(points=parse_points(items, default_name))


def parse_points(raw: object, context: str) -> tuple[DataPoint, ...]:
    """Parse a list of ``{year, value}`` mappings or DataPoint models.

    Raises:
        CubeSourceDataError: If any entry lacks an integer year or numeric value.
    """
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes, bytearray)):
        raise CubeSourceDataError(f"Series '{context}' data must be a list of points.")
    points: list[DataPoint] = []
    for item in raw:
        if isinstance(item, DataPoint):
            points.append(item)
            continue
        if not isinstance(item, Mapping):
            raise CubeSourceDataError(
                f"Series '{context}' point must be a mapping with year and value, "
                f"got {type(item).__name__}."
            )
        year = item.get("year")
        value = item.get("value")
        if isinstance(year, bool) or not isinstance(year, int):
            raise CubeSourceDataError(f"Series '{context}' point has non-integer year {year!r}.")
        if not is_number(value):
            raise CubeSourceDataError(
                f"Series '{context}' point for year {year} has non-numeric value {value!r}."
            )
        points.append(DataPoint(year=year, value=float(cast(float, value))))
    return tuple(points)


def _parse_band(raw: object, default_name: str) -> PercentileSeries:
    if isinstance(raw, PercentileSeries):
        return raw
    if not isinstance(raw, Mapping):
        raise CubeSourceDataError(
            f"Series '{default_name}' band must be a mapping, got {type(raw).__name__}."
        )
    percentile = _parse_percentile(raw.get("percentile"), default_name)
    name = raw.get("name")
    band_name = name if isinstance(name, str) and name else default_name
    metadata = raw.get("metadata")
    return PercentileSeries(
        name=band_name,
        data=parse_points(raw.get("data", ()), band_name),
        percentile=percentile,
        metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
    )


def _parse_percentile(raw: object, context: str) -> int:
    if isinstance(raw, Mapping):
        raw = raw.get("value")
    if not is_number(raw):
        raise CubeSourceDataError(f"Series '{context}' band has invalid percentile {raw!r}.")
    percentile = cast(float, raw)
    if percentile != int(percentile):
        raise CubeSourceDataError(f"Series '{context}' band percentile {raw!r} is not integral.")
    return int(percentile)


def _expect_all(items: list[object], expected: type, context: str) -> list[object]:
    for item in items:
        if not isinstance(item, expected):
            raise CubeSourceDataError(
                f"Series '{context}' mixes {expected.__name__} with {type(item).__name__}."
            )
    return items
