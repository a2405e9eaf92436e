"""Unit tests for multiplier value lookup strategies."""

from __future__ import annotations

from multipliers.lookup import build_lookup, find_multiplier_values
from tests.record_builders import band, record


def test_build_lookup_scalar_ignores_year_and_percentile() -> None:
    """Scalar values apply everywhere."""
    values = build_lookup(1.5, "price", {})

    assert (values.shape, values.lookup(7, 90)) == ("scalar", 1.5)


def test_build_lookup_percentile_series_returns_none_for_gaps() -> None:
    """Missing ``(year, percentile)`` keys resolve to None."""
    values = build_lookup([band("price", 50, {1: 2.0})], "price", {})

    assert values.lookup(2, 50) is None


def test_build_lookup_marks_processed_values() -> None:
    """Values taken from processed records report the processed shape."""
    values = build_lookup((band("price", 50, {1: 2.0}),), "price", {}, from_processed=True)

    assert values.shape == "processed"


def test_find_multiplier_values_falls_back_to_references() -> None:
    """References are used when no processed record has the id."""
    located = find_multiplier_values("rate", [record("price", {50: {1: 1.0}})], {"rate": 0.1})

    assert located == (0.1, False)
