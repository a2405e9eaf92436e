"""Integration tests for the built-in wind farm cube."""

from __future__ import annotations

import pytest

from core.types import PipelineResult
from pipeline.default_registry import build_default_registry
from pipeline.executor import compute_source_data
from references.resolver import MappingReferenceResolver, load_scenario_tree
from series.normalization import band_total, find_band
from tests.fixture_paths import fixture_path
from tests.record_builders import values_of

PERCENTILES = (10, 50, 90)


def _run(custom_percentile: dict[str, int] | None = None) -> PipelineResult:
    scenario = load_scenario_tree(str(fixture_path("scenarios/wind_farm.yaml")))
    return compute_source_data(
        build_default_registry(),
        PERCENTILES,
        MappingReferenceResolver(scenario),
        custom_percentile,
    )


def _values(result: PipelineResult, source_id: str, percentile: int) -> dict[int, float]:
    record = result.record(source_id)
    assert record is not None
    band = find_band(record.bands, percentile)
    assert band is not None
    return values_of(band)


def test_wind_farm_scenario_processes_every_source() -> None:
    """The fixture scenario resolves every reference and evaluates every source."""
    result = _run()

    assert (result.error_count, result.reference_error_count) == (0, 0)


def test_component_failures_fan_out_into_component_records() -> None:
    """Only enabled components get a failure record."""
    result = _run()

    failure_ids = [record.id for record in result.records if record.id.startswith("componentF")]
    assert failure_ids == ["componentFailure_gearbox"]


def test_virtual_sources_run_after_direct_and_indirect_sources() -> None:
    """Every virtual record is appended after all direct and indirect records."""
    result = _run()

    types = [record.metadata.type for record in result.records]
    assert types.index("virtual") > max(
        index for index, source_type in enumerate(types) if source_type != "virtual"
    )


def test_energy_revenue_applies_price_and_compound_escalation() -> None:
    """Revenue is production times price, escalated from year 1."""
    result = _run()

    revenue = _values(result, "energyRevenue", 50)

    assert revenue[3] == pytest.approx(100_000 * 50 * 1.02**2)


def test_total_cost_sums_outflows_per_year() -> None:
    """Year-1 cost adds reserves, contract fees and component failures."""
    result = _run()

    total_cost = _values(result, "totalCost", 50)

    assert total_cost[1] == pytest.approx(100_000 + 200_000 + 53_000)


def test_interest_during_construction_accrues_on_drawn_debt() -> None:
    """Construction interest is charged at 6% on the cumulative debt drawdown."""
    result = _run()

    assert _values(result, "interestDuringConstruction", 50) == pytest.approx(
        {-1: 168_000.0, 0: 504_000.0}
    )


def test_amortizing_principal_repays_debt_and_capitalized_interest() -> None:
    """Principal repayments sum to drawn debt plus capitalized interest."""
    result = _run()

    principal = result.record("operationalPrincipal")

    assert band_total(find_band(principal.bands, 50).data) == pytest.approx(9_072_000.0)


def test_dscr_stays_inside_repayment_window() -> None:
    """Coverage ratios exist only from the end of grace to loan maturity."""
    result = _run()

    years = sorted(_values(result, "dscr", 50))

    assert (years[0], years[-1]) == (2, 15)


def test_erosion_impact_is_modelled_for_every_percentile() -> None:
    """Rainfall and wind speed are available for all run percentiles."""
    result = _run()

    record = result.record("erosionAepImpact")

    assert [band.percentile for band in record.bands] == list(PERCENTILES)


def test_custom_percentile_band_matches_upstream_p75() -> None:
    """Band 0 of energyRevenue mirrors the source's P75 band."""
    result = _run({"energyRevenue": 75})

    record = result.record("energyRevenue")

    assert (
        [band.percentile for band in record.bands],
        values_of(find_band(record.bands, 0)),
    ) == ([10, 50, 90, 0], {1: 105_000.0, 2: 105_000.0, 3: 105_000.0})


def test_custom_band_follows_aliased_multipliers() -> None:
    """Band 0 multipliers use the percentiles their own sources alias."""
    result = _run({"energyRevenue": 75, "electricityPrice": 50, "escalationRate": 50})

    revenue = _values(result, "energyRevenue", 0)

    assert revenue[2] == pytest.approx(105_000 * 50 * 1.02)


def test_repeated_runs_are_identical() -> None:
    """Evaluating the same inputs twice yields the same bands."""
    first = _run({"energyRevenue": 75})
    second = _run({"energyRevenue": 75})

    assert [record.bands for record in first.records] == [
        record.bands for record in second.records
    ]
