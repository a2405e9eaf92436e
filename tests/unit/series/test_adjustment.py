"""Unit tests for point-wise adjustment and trimming."""

from __future__ import annotations

from series.adjustment import adjust_values, trim_values
from series.shapes import SeriesBands, SeriesPoints, SeriesRecords
from tests.record_builders import band, points, record, values_of


def test_adjust_values_passes_previous_adjusted_value() -> None:
    """Adjust functions can build cumulative series from ``previous``."""
    payload = SeriesPoints(points=points({1: 1.0, 2: 2.0, 3: 3.0}))

    result = adjust_values(
        payload, lambda _percentile, _year, value, previous: value + (previous or 0.0)
    )

    assert [point.value for point in result.points] == [1.0, 3.0, 6.0]


def test_adjust_values_keeps_band_shape() -> None:
    """Band payloads come back as bands with the same percentiles."""
    payload = SeriesBands(bands=(band("a", 10, {1: 1.0}), band("a", 90, {1: 1.0})))

    result = adjust_values(payload, lambda percentile, _year, value, _previous: value * percentile)

    assert [values_of(row) for row in result.bands] == [{1: 10.0}, {1: 90.0}]


def test_trim_values_removes_points_outside_window() -> None:
    """Trim predicates receive the options mapping."""
    payload = SeriesRecords(records=(record("dscr", {50: {1: 1.0, 2: 1.5, 3: 1.7}}),))

    result = trim_values(
        payload,
        lambda year, _value, options: year < options["start_year"],
        {"start_year": 2},
    )

    assert values_of(result.records[0].bands[0]) == {2: 1.5, 3: 1.7}
