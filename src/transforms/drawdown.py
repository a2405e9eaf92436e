"""Construction drawdown transformers.

This module converts construction cost sources with percentage drawdown
schedules into annual capex and debt drawdown series.
"""

from __future__ import annotations

from typing import Mapping, Sequence, cast

from core.constants import DEFAULT_DEBT_FINANCING_RATIO_PERCENT
from core.errors import CubeTransformError
from core.types import DataPoint, PercentileSeries
from series.normalization import normalize
from series.shapes import is_number
from transforms.context import TransformerContext, number_field


def capex_drawdown(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Spread construction cost totals over their drawdown schedules."""
    cost_sources = _cost_sources(source_data)
    context.add_audit_entry(
        "apply_capex_drawdown_transformation",
        f"transforming {len(cost_sources)} construction cost sources",
        [],
        entry_type="transform",
        type_operation="simple",
    )
    points = drawdown_by_year(cost_sources, ratio=1.0)
    return normalize(
        points, context.percentiles, "capexDrawdown", context.custom_percentile, context.audit
    )


def debt_drawdown(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Apply the debt financing ratio to the capex drawdown schedule."""
    financing = context.mapping_reference("financing")
    cost_sources = _cost_sources(source_data)
    ratio_percent = number_field(
        financing, "debtFinancingRatio", DEFAULT_DEBT_FINANCING_RATIO_PERCENT
    )
    context.add_audit_entry(
        "apply_debt_drawdown_transformation",
        f"transforming {len(cost_sources)} construction cost sources at {ratio_percent}% debt",
        ["financing"],
        source_data,
    )
    points = drawdown_by_year(cost_sources, ratio=ratio_percent / 100.0)
    return normalize(
        points, context.percentiles, "debtDrawdown", context.custom_percentile, context.audit
    )


def drawdown_by_year(
    cost_sources: Sequence[Mapping[str, object]],
    ratio: float,
) -> list[DataPoint]:
    """Sum ``percent / 100 * totalAmount * ratio`` per schedule year.

    Cost sources without a total amount are ignored.

    Args:
        cost_sources: Entries with ``totalAmount`` and ``drawdownSchedule``.
        ratio: Share of each drawn amount that is kept.

    Returns:
        Points ascending by year.

    Raises:
        CubeTransformError: If a schedule entry is malformed.
    """
    yearly: dict[int, float] = {}
    for cost_source in cost_sources:
        total_amount = number_field(cost_source, "totalAmount", 0.0)
        if total_amount == 0:
            continue
        schedule = cost_source.get("drawdownSchedule") or []
        if not isinstance(schedule, list):
            raise CubeTransformError(
                f"Cost source '{cost_source.get('name')}' drawdownSchedule must be a list."
            )
        for entry in schedule:
            year, percent = _schedule_entry(entry)
            yearly[year] = yearly.get(year, 0.0) + percent / 100.0 * total_amount * ratio
    return [DataPoint(year=year, value=yearly[year]) for year in sorted(yearly)]


def _schedule_entry(entry: object) -> tuple[int, float]:
    if not isinstance(entry, Mapping):
        raise CubeTransformError(f"Invalid drawdown schedule entry {entry!r}.")
    year = entry.get("year")
    value = entry.get("value")
    if not is_number(year) or not is_number(value):
        raise CubeTransformError(
            f"Drawdown schedule entry needs numeric 'year' and 'value', got {dict(entry)!r}."
        )
    return int(cast(float, year)), float(cast(float, value))


def _cost_sources(source_data: object) -> list[Mapping[str, object]]:
    if not isinstance(source_data, list):
        raise CubeTransformError(
            "Construction cost sources must be a list of "
            "{name, totalAmount, drawdownSchedule} entries."
        )
    sources: list[Mapping[str, object]] = []
    for item in source_data:
        if not isinstance(item, Mapping):
            raise CubeTransformError(f"Invalid construction cost source {item!r}.")
        sources.append(cast(Mapping[str, object], item))
    return sources
