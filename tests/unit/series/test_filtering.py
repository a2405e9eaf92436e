"""Unit tests for record metadata filtering."""

from __future__ import annotations

from dataclasses import replace

from series.filtering import SourceFilter, filter_sources
from tests.record_builders import record


def test_filter_sources_selects_by_cashflow_type() -> None:
    """Only records with the requested cash direction are returned."""
    records = [
        record("revenue", {50: {1: 1.0}}, cashflow_type="inflow"),
        record("opex", {50: {1: 1.0}}, cashflow_type="outflow"),
    ]

    selected = filter_sources(records, SourceFilter(cashflow_type="inflow"))

    assert [row.id for row in selected] == ["revenue"]


def test_filter_matches_extra_metadata_keys() -> None:
    """Metadata constraints fall back to the extra dictionary."""
    base = record("gearbox", {50: {1: 1.0}})
    tagged = replace(base, metadata=replace(base.metadata, extra={"parent_source": "failures"}))
    filter_spec = SourceFilter(metadata={"parent_source": "failures"})

    selected = filter_sources([base, tagged], filter_spec)

    assert selected == [tagged]


def test_filter_with_source_ids_keeps_run_order() -> None:
    """Selection by id list preserves record order."""
    records = [record(source_id, {50: {1: 1.0}}) for source_id in ("a", "b", "c")]

    selected = filter_sources(records, SourceFilter(source_ids=("c", "a")))

    assert [row.id for row in selected] == ["a", "c"]
