"""Contract, repair and reserve cost transformers."""

from __future__ import annotations

from typing import Mapping, cast

from core.constants import DEFAULT_NUM_WTGS, DEFAULT_PROJECT_LIFE, RESERVE_PROVISION_YEARS
from core.errors import CubeTransformError
from core.types import DataPoint, PercentileSeries
from series.normalization import normalize
from series.shapes import is_number, parse_points
from transforms.context import TransformerContext, number_field


def contract_fees(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum OEM contract fees per year.

    A contract either lists ``fixedFeeTimeSeries`` points or pays
    ``fixedFee`` in each of its ``years``. Per-turbine contracts are scaled
    by ``numWTGs``.

    Args:
        source_data: OEM contract entries.
        context: Transformer context.

    Returns:
        Normalized ``contractFees`` bands.

    Raises:
        CubeTransformError: If a contract entry is malformed.
    """
    contracts = _entries(source_data, "OEM contracts")
    num_wtgs = context.number_reference("numWTGs", DEFAULT_NUM_WTGS)
    context.add_audit_entry(
        "apply_contract_fees_transformation",
        f"transforming {len(contracts)} OEM contracts to annual fees",
        ["projectLife", "numWTGs"],
        type_operation="simple",
    )
    yearly: dict[int, float] = {}
    for contract in contracts:
        scale = num_wtgs if contract.get("isPerTurbine") is True else 1.0
        for point in _contract_payments(contract):
            yearly[point.year] = yearly.get(point.year, 0.0) + point.value * scale
    points = [DataPoint(year=year, value=yearly[year]) for year in sorted(yearly)]
    return normalize(
        points, context.percentiles, "contractFees", context.custom_percentile, context.audit
    )


def major_repairs(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Weight each major repair event cost by its probability percentage."""
    events = _entries(source_data, "major repair events")
    context.add_audit_entry(
        "apply_major_repairs_transformation",
        f"transforming {len(events)} major repair events to annual costs",
        [],
        type_operation="simple",
    )
    points: list[DataPoint] = []
    for event in events:
        year = event.get("year")
        if not is_number(year):
            raise CubeTransformError(f"Major repair event needs a numeric 'year', got {year!r}.")
        cost = number_field(event, "cost", 0.0)
        probability = event.get("probability")
        if probability is not None:
            probability_percent = number_field(event, "probability", 100.0)
            if not 0 <= probability_percent <= 100:
                raise CubeTransformError(
                    f"Major repair probability must be within 0..100, got {probability_percent}."
                )
            cost *= probability_percent / 100.0
        points.append(DataPoint(year=int(cast(float, year)), value=cost))
    points.sort(key=lambda point: point.year)
    return normalize(
        points, context.percentiles, "majorRepairs", context.custom_percentile, context.audit
    )


def reserve_funds(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Spread the reserve amount evenly over the first provision years."""
    if not is_number(source_data):
        raise CubeTransformError(
            f"Reserve funds must be a single amount, got {type(source_data).__name__}."
        )
    amount = float(cast(float, source_data))
    project_life = int(context.number_reference("projectLife", DEFAULT_PROJECT_LIFE))
    provision_years = min(RESERVE_PROVISION_YEARS, project_life)
    context.add_audit_entry(
        "apply_reserve_funds_transformation",
        f"spreading {amount:,.2f} over {provision_years} years",
        ["projectLife"],
        type_operation="simple",
    )
    if provision_years < 1:
        return []
    points = [
        DataPoint(year=year, value=amount / provision_years)
        for year in range(1, provision_years + 1)
    ]
    return normalize(
        points, context.percentiles, "reserveFunds", context.custom_percentile, context.audit
    )


def _contract_payments(contract: Mapping[str, object]) -> list[DataPoint]:
    series = contract.get("fixedFeeTimeSeries")
    if isinstance(series, list) and series:
        return list(parse_points(series, f"contract '{contract.get('name')}'"))
    years = contract.get("years")
    fee = number_field(contract, "fixedFee", 0.0)
    if not isinstance(years, list) or not years or fee == 0:
        return []
    payments: list[DataPoint] = []
    for year in years:
        if not is_number(year):
            raise CubeTransformError(
                f"Contract '{contract.get('name')}' years must be numbers, got {year!r}."
            )
        payments.append(DataPoint(year=int(cast(float, year)), value=fee))
    return payments


def _entries(source_data: object, label: str) -> list[Mapping[str, object]]:
    if not isinstance(source_data, list):
        raise CubeTransformError(f"Expected a list of {label}, got {type(source_data).__name__}.")
    entries: list[Mapping[str, object]] = []
    for item in source_data:
        if not isinstance(item, Mapping):
            raise CubeTransformError(f"Invalid entry in {label}: {item!r}.")
        entries.append(cast(Mapping[str, object], item))
    return entries
