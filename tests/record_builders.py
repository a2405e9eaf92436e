"""Shared builders for bands, records and transformer contexts in tests."""

from __future__ import annotations

from typing import Mapping, Sequence

from audit.trail import AuditTrail
from core.types import (
    CashflowType,
    DataPoint,
    PercentileSeries,
    SourceAudit,
    SourceDefinition,
    SourceMetadata,
    SourceRecord,
    SourceType,
)
from transforms.context import TransformerContext


def points(values: Mapping[int, float]) -> tuple[DataPoint, ...]:
    """Build points ascending by year from a ``{year: value}`` mapping."""
    return tuple(DataPoint(year=year, value=values[year]) for year in sorted(values))


def band(name: str, percentile: int, values: Mapping[int, float]) -> PercentileSeries:
    """Build one band."""
    return PercentileSeries(name=name, data=points(values), percentile=percentile)


def record(
    source_id: str,
    bands_by_percentile: Mapping[int, Mapping[int, float]],
    cashflow_type: CashflowType = "none",
    source_type: SourceType = "direct",
) -> SourceRecord:
    """Build a processed record with one band per percentile."""
    return SourceRecord(
        id=source_id,
        bands=tuple(
            band(source_id, percentile, values)
            for percentile, values in bands_by_percentile.items()
        ),
        metadata=SourceMetadata(name=source_id, type=source_type, cashflow_type=cashflow_type),
        audit=SourceAudit(trail=(), applied_multipliers=(), references={}),
    )


def virtual_source(source_id: str, priority: int = 100) -> SourceDefinition:
    """Build a virtual source definition."""
    return SourceDefinition(
        id=source_id,
        priority=priority,
        metadata=SourceMetadata(name=source_id, type="virtual"),
    )


def context(
    source_id: str = "derived",
    processed: Sequence[SourceRecord] = (),
    percentiles: Sequence[int] = (50,),
    references: Mapping[str, object] | None = None,
    custom_percentile: Mapping[str, int] | None = None,
) -> TransformerContext:
    """Build a transformer context for a virtual source."""
    return TransformerContext(
        source=virtual_source(source_id),
        audit=AuditTrail(source_id),
        processed=tuple(processed),
        percentiles=tuple(percentiles),
        references=references or {},
        custom_percentile=custom_percentile or {},
    )


def values_of(series: PercentileSeries) -> dict[int, float]:
    """Return a ``{year: value}`` view of a band."""
    return {point.year: point.value for point in series.data}
