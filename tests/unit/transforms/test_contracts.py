"""Unit tests for contract, repair and reserve transformers."""

from __future__ import annotations

import pytest

from core.errors import CubeTransformError
from tests.record_builders import context, values_of
from transforms.contracts import contract_fees, major_repairs, reserve_funds


def test_contract_fees_scales_per_turbine_contracts() -> None:
    """Per-turbine fees are multiplied by the number of turbines."""
    contracts = [{"fixedFee": 100, "years": [1, 2], "isPerTurbine": True}]
    ctx = context("contractFees", references={"numWTGs": 10})

    result = contract_fees(contracts, ctx)

    assert values_of(result[0]) == {1: 1000.0, 2: 1000.0}


def test_contract_fees_prefers_fee_time_series() -> None:
    """An explicit fee series replaces the fixed fee and years."""
    contracts = [
        {
            "fixedFee": 100,
            "years": [1, 2],
            "fixedFeeTimeSeries": [{"year": 3, "value": 250}],
        },
        {"fixedFee": 10, "years": [3]},
    ]

    result = contract_fees(contracts, context("contractFees"))

    assert values_of(result[0]) == {3: 260.0}


def test_major_repairs_weights_cost_by_probability() -> None:
    """Event cost is weighted by its probability percentage."""
    events = [{"year": 10, "cost": 1_000_000, "probability": 25}]

    result = major_repairs(events, context("majorRepairs"))

    assert values_of(result[0]) == {10: 250_000.0}


def test_major_repairs_keeps_zero_probability() -> None:
    """A zero probability removes the expected cost."""
    events = [{"year": 4, "cost": 500, "probability": 0}]

    result = major_repairs(events, context("majorRepairs"))

    assert values_of(result[0]) == {4: 0.0}


def test_major_repairs_rejects_probability_above_hundred() -> None:
    """Probabilities are percentages between 0 and 100."""
    with pytest.raises(CubeTransformError, match="0..100"):
        major_repairs([{"year": 1, "cost": 1, "probability": 150}], context("majorRepairs"))


def test_reserve_funds_spread_over_provision_years() -> None:
    """The reserve is spread evenly over at most five years."""
    result = reserve_funds(500.0, context("reserveFunds", references={"projectLife": 20}))

    assert values_of(result[0]) == {year: 100.0 for year in range(1, 6)}


def test_reserve_funds_spread_is_clipped_to_project_life() -> None:
    """Short projects spread the reserve over their whole life."""
    result = reserve_funds(300.0, context("reserveFunds", references={"projectLife": 2}))

    assert values_of(result[0]) == {1: 150.0, 2: 150.0}


def test_reserve_funds_rejects_lists() -> None:
    """Reserve funds must be a single amount."""
    with pytest.raises(CubeTransformError):
        reserve_funds([500.0], context("reserveFunds"))
