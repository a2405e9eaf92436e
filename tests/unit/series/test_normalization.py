"""Unit tests for percentile band normalization."""

from __future__ import annotations

from core.types import DataPoint
from series.normalization import (
    band_total,
    effective_percentiles,
    extract_band,
    normalize,
    restrict_to_percentiles,
)
from tests.record_builders import band, points


def test_normalize_then_extract_returns_input_points() -> None:
    """Extracting any percentile of a normalized series returns the input."""
    series = points({1: 10.0, 2: 20.0})

    bands = normalize(series, [10, 50, 90], "price")

    assert all(extract_band(bands, percentile) == series for percentile in (10, 50, 90))


def test_normalize_adds_custom_band_when_aliases_exist() -> None:
    """A non-empty alias map should add band 0."""
    bands = normalize(points({1: 1.0}), [10, 90], "price", {"price": 10})

    assert [row.percentile for row in bands] == [10, 90, 0]


def test_normalize_returns_empty_list_for_empty_input() -> None:
    """Empty input produces no bands."""
    assert normalize((), [50], "price") == []


def test_effective_percentiles_without_aliases_is_declared_set() -> None:
    """Without aliases the declared percentiles are used as-is."""
    assert effective_percentiles([10, 50], {}) == (10, 50)


def test_extract_band_returns_empty_for_absent_percentile() -> None:
    """Missing percentiles extract as empty."""
    assert extract_band([band("price", 50, {1: 1.0})], 90) == ()


def test_restrict_to_percentiles_drops_foreign_bands() -> None:
    """Bands outside the run percentiles are removed."""
    bands = [band("price", 50, {1: 1.0}), band("price", 75, {1: 2.0})]

    restricted = restrict_to_percentiles(bands, [50, 0])

    assert [row.percentile for row in restricted] == [50]


def test_band_total_sums_values() -> None:
    """Band totals add every point."""
    assert band_total((DataPoint(1, 2.5), DataPoint(2, 3.5))) == 6.0
