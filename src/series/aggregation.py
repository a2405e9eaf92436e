"""Year-aligned aggregation across processed records.

This module reduces several records into one band per percentile.
Percentile 0 follows each record's custom-percentile alias when present.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from audit.trail import AuditTrail
from core.constants import CUSTOM_PERCENTILE
from core.errors import CubeTransformError
from core.types import (
    AggregateOperation,
    CustomPercentileMap,
    DataPoint,
    PercentileSeries,
    SourceRecord,
    SUPPORTED_AGGREGATE_OPERATIONS,
)
from series.normalization import effective_percentiles, find_band


def aggregate(
    records: Sequence[SourceRecord],
    percentiles: Sequence[int],
    operation: AggregateOperation = "sum",
    custom_percentile: CustomPercentileMap | None = None,
    audit: AuditTrail | None = None,
) -> list[PercentileSeries]:
    """Combine records year by year for each effective percentile.

    ``sum`` and ``subtract`` start from 0. ``multiply`` and ``divide`` seed a
    year with the first value seen for it and fold later records into that
    seed. A year whose divisor is zero is dropped from the output.

    Args:
        records: Records in combination order.
        percentiles: Run percentiles; band 0 is added when aliases exist.
        operation: Reduction applied across records.
        custom_percentile: Custom-percentile alias map of the run.
        audit: Optional audit trail receiving an aggregation entry.

    Returns:
        One ``aggregated_<operation>`` band per percentile that has data,
        points ascending by year.

    Raises:
        CubeTransformError: If the operation is unsupported.
    """
    if operation not in SUPPORTED_AGGREGATE_OPERATIONS:
        supported_rows = ", ".join(SUPPORTED_AGGREGATE_OPERATIONS)
        raise CubeTransformError(
            f"Unsupported aggregate operation '{operation}'. Use one of: {supported_rows}."
        )
    if not records:
        return []
    aliases = custom_percentile or {}
    result: list[PercentileSeries] = []
    for percentile in effective_percentiles(percentiles, custom_percentile):
        totals: dict[int, float] = {}
        dropped: set[int] = set()
        for record in records:
            band = _band_for(record, percentile, aliases)
            if band is None:
                continue
            for point in band.data:
                _fold_point(totals, dropped, point, operation)
        for year in dropped:
            totals.pop(year, None)
        if not totals:
            continue
        result.append(
            PercentileSeries(
                name=f"aggregated_{operation}",
                data=tuple(DataPoint(year=year, value=totals[year]) for year in sorted(totals)),
                percentile=percentile,
            )
        )
    if audit is not None:
        audit.add_entry(
            "apply_aggregation",
            f"aggregating {len(records)} sources ({operation})",
            [record.id for record in records],
            result,
            "aggregate",
            operation,
        )
    return result


def negate(record: SourceRecord) -> SourceRecord:
    """Return a copy of ``record`` with every value sign-flipped."""
    return replace(
        record,
        bands=tuple(
            replace(
                band,
                data=tuple(DataPoint(year=point.year, value=-point.value) for point in band.data),
            )
            for band in record.bands
        ),
    )


def _band_for(
    record: SourceRecord,
    percentile: int,
    aliases: CustomPercentileMap,
) -> PercentileSeries | None:
    if percentile == CUSTOM_PERCENTILE and record.id in aliases:
        aliased = find_band(record.bands, aliases[record.id])
        if aliased is not None:
            return aliased
    return find_band(record.bands, percentile)


def _fold_point(
    totals: dict[int, float],
    dropped: set[int],
    point: DataPoint,
    operation: AggregateOperation,
) -> None:
    year = point.year
    if operation == "sum":
        totals[year] = totals.get(year, 0.0) + point.value
        return
    if operation == "subtract":
        totals[year] = totals.get(year, 0.0) - point.value
        return
    if year not in totals:
        totals[year] = point.value
        return
    if operation == "multiply":
        totals[year] *= point.value
        return
    if point.value == 0:
        dropped.add(year)
        return
    totals[year] /= point.value
