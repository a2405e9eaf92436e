"""Unit tests for the pipeline executor."""

from __future__ import annotations

from core.types import (
    MultiplierSpec,
    ReferenceDeclaration,
    SourceDefinition,
    SourceMetadata,
    SourceRegistry,
)
from pipeline import executor
from pipeline.executor import PipelineOptions, compute_source_data
from references.resolver import MappingReferenceResolver
from tests.record_builders import values_of
from transforms.registry import TransformerSpec

PRICE_BANDS = [
    {"percentile": 10, "data": [{"year": 1, "value": 40}]},
    {"percentile": 50, "data": [{"year": 1, "value": 50}]},
    {"percentile": 90, "data": [{"year": 1, "value": 60}]},
]
SCENARIO = {
    "general": {"projectLife": 3},
    "market": {"price": PRICE_BANDS, "fee": 12.0, "flat": [{"year": 1, "value": 5}]},
}
PROJECT_LIFE = ReferenceDeclaration(id="projectLife", path=("general", "projectLife"))


def _direct(source_id: str, path: tuple[str, ...], **kwargs) -> SourceDefinition:
    return SourceDefinition(
        id=source_id,
        priority=kwargs.pop("priority", 10),
        path=path,
        metadata=SourceMetadata(name=source_id, type="direct"),
        **kwargs,
    )


def _run(sources, references=(PROJECT_LIFE,), percentiles=(10, 50, 90), custom=None):
    return compute_source_data(
        SourceRegistry(references=tuple(references), sources=tuple(sources)),
        percentiles,
        MappingReferenceResolver(SCENARIO),
        custom,
    )


def test_flat_series_is_normalized_to_every_percentile() -> None:
    """Flat raw data becomes one identical band per percentile."""
    result = _run([_direct("flat", ("market", "flat"))])

    assert [band.percentile for band in result.records[0].bands] == [10, 50, 90]


def test_scalar_value_is_spread_over_project_life() -> None:
    """A single number is broadcast over years 1..projectLife."""
    result = _run([_direct("fee", ("market", "fee"))])

    assert values_of(result.records[0].bands[0]) == {1: 12.0, 2: 12.0, 3: 12.0}


def test_scalar_value_without_project_life_is_skipped() -> None:
    """Without a project life a scalar source cannot be spread."""
    result = _run([_direct("fee", ("market", "fee"))], references=())

    assert (result.processed_count, result.error_count) == (0, 1)


def test_unresolved_path_skips_source() -> None:
    """A source whose path does not resolve is counted as an error."""
    result = _run([_direct("missing", ("market", "nothing")), _direct("fee", ("market", "fee"))])

    assert ([record.id for record in result.records], result.error_count) == (["fee"], 1)


def test_invalid_source_type_is_skipped() -> None:
    """Direct sources may not declare multipliers."""
    source = _direct(
        "fee",
        ("market", "fee"),
        multipliers=(MultiplierSpec(id="projectLife", operation="multiply"),),
    )

    result = _run([source])

    assert (result.records, result.error_count) == ((), 1)


def test_unresolved_references_are_counted_but_not_fatal() -> None:
    """Global and local reference misses increase the reference error count."""
    source = _direct(
        "fee",
        ("market", "fee"),
        local_references=(ReferenceDeclaration(id="rate", path=("market", "rate")),),
    )
    missing_global = ReferenceDeclaration(id="numWTGs", path=("farm", "numWTGs"))

    result = _run([source], references=(PROJECT_LIFE, missing_global))

    assert (result.processed_count, result.reference_error_count) == (1, 2)


def test_custom_percentile_band_copies_aliased_band() -> None:
    """Band 0 carries the data of the aliased percentile."""
    source = _direct("price", ("market", "price"), has_percentiles=True)

    result = _run([source], custom={"price": 90})

    bands = {band.percentile: band for band in result.records[0].bands}
    assert values_of(bands[0]) == values_of(bands[90])


def test_custom_percentile_is_recorded_on_metadata() -> None:
    """The aliased percentile is stored on the record metadata."""
    source = _direct("price", ("market", "price"), has_percentiles=True)

    result = _run([source], custom={"price": 90})

    assert result.records[0].metadata.custom_percentile == 90


def test_bands_outside_run_percentiles_are_dropped() -> None:
    """Raw bands for percentiles not in the run are removed."""
    source = _direct("price", ("market", "price"), has_percentiles=True)

    result = _run([source], percentiles=(50,))

    assert [band.percentile for band in result.records[0].bands] == [50]


def test_sources_run_in_bucket_then_priority_order() -> None:
    """Direct sources run before virtual ones regardless of priority."""
    virtual = SourceDefinition(
        id="totalCost",
        priority=1,
        transformer="totalCost",
        metadata=SourceMetadata(name="totalCost", type="virtual"),
    )
    direct = _direct("fee", ("market", "fee"), priority=50)

    result = _run([virtual, direct])

    assert [record.id for record in result.records] == ["fee", "totalCost"]


def test_fan_out_emits_record_per_series_name() -> None:
    """Fan-out sources produce one record per component series."""
    components = [
        {
            "id": component_id,
            "enabled": True,
            "failureRate": {"parameters": {"lambda": 0.1}},
            "costs": {"componentReplacement": {"parameters": {"value": 100}}},
        }
        for component_id in ("gearbox", "blade")
    ]
    source = SourceDefinition(
        id="componentReplacements",
        priority=20,
        path=("components",),
        transformer="componentReplacements",
        fan_out=True,
        metadata=SourceMetadata(name="Component Replacements", type="direct"),
    )

    result = compute_source_data(
        SourceRegistry(references=(), sources=(source,)),
        (50,),
        MappingReferenceResolver({"components": components}),
    )

    assert [
        (record.id, record.metadata.extra["parent_source"]) for record in result.records
    ] == [
        ("componentReplacement_gearbox", "componentReplacements"),
        ("componentReplacement_blade", "componentReplacements"),
    ]


def test_unexpected_transformer_failure_skips_source(monkeypatch) -> None:
    """Non-domain exceptions from transformers are wrapped and the source skipped."""

    def _explode(_source_data, _context):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(executor, "get_transformer", lambda _id: TransformerSpec(_explode))
    virtual = SourceDefinition(
        id="totalCost",
        priority=1,
        transformer="totalCost",
        metadata=SourceMetadata(name="totalCost", type="virtual"),
    )

    result = _run([virtual])

    assert (result.processed_count, result.error_count) == (0, 1)


def test_audit_trail_brackets_processing() -> None:
    """Every record's trail starts and ends with processing entries."""
    result = _run([_direct("fee", ("market", "fee"))])

    steps = [entry.step for entry in result.records[0].audit.trail]
    assert (steps[0], steps[-1]) == ("apply_processing_start", "apply_processing_end")


def test_audit_sampling_can_be_disabled() -> None:
    """Options control whether audit entries carry samples."""
    result = compute_source_data(
        SourceRegistry(references=(PROJECT_LIFE,), sources=(_direct("fee", ("market", "fee")),)),
        (50,),
        MappingReferenceResolver(SCENARIO),
        options=PipelineOptions(audit_sampling=False),
    )

    assert all(entry.data_sample is None for entry in result.records[0].audit.trail)


def test_repeated_runs_produce_identical_bands() -> None:
    """Runs do not share state, so repeating one gives the same data."""
    sources = [_direct("price", ("market", "price"), has_percentiles=True)]

    first = _run(sources, custom={"price": 50})
    second = _run(sources, custom={"price": 50})

    assert first.records[0].bands == second.records[0].bands


def _escalated_run(rate: float, base_year: int):
    scenario = {
        "general": {"projectLife": 3},
        "flat": [{"year": 1, "value": 5}],
        "esc": rate,
    }
    escalated = SourceDefinition(
        id="escalated",
        priority=20,
        path=("flat",),
        multipliers=(MultiplierSpec(id="esc", operation="compound", base_year=base_year),),
        metadata=SourceMetadata(name="escalated", type="indirect"),
    )
    registry = SourceRegistry(
        references=(PROJECT_LIFE, ReferenceDeclaration(id="esc", path=("esc",))),
        sources=(_direct("good", ("flat",)), escalated),
    )
    return compute_source_data(registry, (50,), MappingReferenceResolver(scenario))


def test_compound_of_zero_growth_before_base_year_skips_source() -> None:
    """A -100% rate compounded backwards fails that source only."""
    result = _escalated_run(-1.0, base_year=3)

    assert ([record.id for record in result.records], result.error_count) == (["good"], 1)


def test_compound_overflow_skips_source() -> None:
    """Overflowing escalation fails that source only."""
    result = _escalated_run(1e200, base_year=-100)

    assert ([record.id for record in result.records], result.error_count) == (["good"], 1)
