"""Source processing pipeline executor.

This module evaluates every registered source in bucket-then-priority
order, one source at a time, appending finished records so later sources
can read them. A failing source is logged, counted and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import time
from typing import Mapping, Sequence, cast

from audit.trail import AuditTrail, collect_references
from core.config import CubeConfig
from core.constants import DEFAULT_AUDIT_PERCENTILE, DEFAULT_AUDIT_SAMPLING
from core.errors import (
    CubeError,
    CubeMultiplierError,
    CubeSourceDataError,
    CubeTransformError,
)
from core.logging_config import get_logger
from core.types import (
    AppliedMultiplier,
    CustomPercentileMap,
    DataPoint,
    PercentileSeries,
    PipelineResult,
    SourceAudit,
    SourceDefinition,
    SourceMetadata,
    SourceRecord,
    SourceRegistry,
)
from multipliers.engine import MultiplierOutcome, apply_multipliers
from pipeline.custom_percentile import substitute_custom_percentile
from pipeline.ordering import sort_sources
from pipeline.validation import is_valid_source_type, validate_record
from references.resolver import ReferenceResolver, merge_references, resolve_references
from series.normalization import effective_percentiles, normalize, restrict_to_percentiles
from series.shapes import SeriesBands, SeriesPoints, is_number, parse_series_payload
from transforms.context import TransformerContext
from transforms.erosion_model import CumulativeRainErosionModel, ErosionModel
from transforms.registry import get_transformer

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PipelineOptions:
    """Per-run settings that do not change financial results.

    Attributes:
        audit_percentile: Percentile preferred when sampling audit data.
        audit_sampling: Whether audit entries carry data samples.
        erosion_model: Physical model used by erosion adapters.
    """

    audit_percentile: int = DEFAULT_AUDIT_PERCENTILE
    audit_sampling: bool = DEFAULT_AUDIT_SAMPLING
    erosion_model: ErosionModel = field(default_factory=CumulativeRainErosionModel)

    @classmethod
    def from_config(cls, config: CubeConfig) -> "PipelineOptions":
        """Build options from the validated runtime config."""
        return cls(
            audit_percentile=config.audit_percentile,
            audit_sampling=config.audit_sampling,
        )


@dataclass(frozen=True)
class _RunState:
    percentiles: tuple[int, ...]
    effective_percentiles: tuple[int, ...]
    custom_percentile: Mapping[str, int]
    options: PipelineOptions


def compute_source_data(
    registry: SourceRegistry,
    percentiles: Sequence[int],
    resolver: ReferenceResolver,
    custom_percentile: CustomPercentileMap | None = None,
    options: PipelineOptions | None = None,
) -> PipelineResult:
    """Evaluate all sources of ``registry`` into records.

    Args:
        registry: Reference and source declarations.
        percentiles: Available percentiles of the run.
        resolver: Scenario path resolver.
        custom_percentile: Optional ``{source_id: percentile}`` alias map.
        options: Audit and model settings.

    Returns:
        Records in append order with processed, error and reference-error
        counters and the elapsed wall-clock time.
    """
    started_at = time.monotonic()
    custom = dict(custom_percentile or {})
    state = _RunState(
        percentiles=tuple(percentiles),
        effective_percentiles=effective_percentiles(percentiles, custom),
        custom_percentile=custom,
        options=options or PipelineOptions(),
    )
    _LOGGER.info(
        "pipeline_started",
        source_count=len(registry.sources),
        percentiles=list(state.percentiles),
        custom_sources=sorted(custom),
    )
    global_references, global_missing = resolve_references(registry.references, resolver)
    reference_error_count = len(global_missing)
    records: list[SourceRecord] = []
    processed_count = 0
    error_count = 0
    for source in sort_sources(registry.sources):
        if not is_valid_source_type(source):
            error_count += 1
            _LOGGER.warning(
                "source_invalid",
                source_id=source.id,
                source_type=source.metadata.type,
            )
            continue
        local_references, local_missing = resolve_references(
            source.local_references, resolver, scope=source.id
        )
        reference_error_count += len(local_missing)
        references = merge_references(global_references, local_references)
        try:
            produced = _evaluate_source(source, references, resolver, tuple(records), state)
        except CubeError as error:
            error_count += 1
            _LOGGER.error(
                "source_skipped",
                source_id=source.id,
                error_type=type(error).__name__,
                error=str(error),
            )
            continue
        records.extend(produced)
        processed_count += 1
    elapsed_seconds = time.monotonic() - started_at
    _LOGGER.info(
        "pipeline_completed",
        processed_count=processed_count,
        error_count=error_count,
        reference_error_count=reference_error_count,
        record_count=len(records),
        elapsed_seconds=round(elapsed_seconds, 4),
    )
    return PipelineResult(
        records=tuple(records),
        processed_count=processed_count,
        error_count=error_count,
        reference_error_count=reference_error_count,
        elapsed_seconds=elapsed_seconds,
    )


def _evaluate_source(
    source: SourceDefinition,
    references: Mapping[str, object],
    resolver: ReferenceResolver,
    processed: tuple[SourceRecord, ...],
    state: _RunState,
) -> list[SourceRecord]:
    """Extract, transform, fold multipliers and assemble records of one source.

    Raises:
        CubeError: If extraction, transformation, multiplier folding or the
            final shape check fails.
    """
    audit = AuditTrail(
        source.id,
        preferred_percentile=state.options.audit_percentile,
        sampling_enabled=state.options.audit_sampling,
    )
    audit.add_entry(
        "apply_processing_start",
        f"processing {source.metadata.type} source '{source.id}'",
        entry_type="process",
        type_operation="start",
    )
    source_data = _extract(source, resolver)
    aliased_percentile: int | None = None
    if source.has_percentiles and source_data is not None and not is_number(source_data):
        payload = parse_series_payload(source_data, source.id)
        if isinstance(payload, SeriesBands):
            substituted, aliased_percentile = substitute_custom_percentile(
                payload.bands, source.id, state.custom_percentile
            )
            source_data = substituted
    if source.transformer is not None:
        bands = _transform(source, source_data, references, processed, audit, state)
    else:
        try:
            bands = _normalize_raw(source, source_data, references, audit, state)
        except CubeError:
            raise
        except Exception as error:
            raise CubeSourceDataError(
                f"Data of source '{source.id}' could not be normalized: {error}"
            ) from error
    bands = restrict_to_percentiles(bands, state.effective_percentiles)
    applied: tuple[AppliedMultiplier, ...] = ()
    if source.multipliers:
        outcome = _fold_multipliers(source, bands, references, processed, audit, state)
        bands = list(outcome.bands)
        applied = outcome.applied
    audit.add_entry(
        "apply_processing_end",
        f"produced {len(bands)} bands",
        data=bands,
        entry_type="process",
        type_operation="end",
    )
    metadata = source.metadata
    if aliased_percentile is not None:
        metadata = replace(metadata, custom_percentile=aliased_percentile)
    trail = audit.get_trail()
    source_audit = SourceAudit(
        trail=trail,
        applied_multipliers=applied,
        references=collect_references(trail, references),
    )
    records = _assemble_records(source, bands, metadata, source_audit)
    for record in records:
        validate_record(record, state.effective_percentiles)
    _LOGGER.info(
        "source_processed",
        source_id=source.id,
        record_count=len(records),
        band_count=len(bands),
        multipliers_applied=len(applied),
    )
    return records


def _extract(source: SourceDefinition, resolver: ReferenceResolver) -> object:
    if source.path is None:
        return None
    raw = resolver.resolve(source.path)
    if raw is None:
        path_text = ".".join(str(step) for step in source.path)
        raise CubeSourceDataError(
            f"Source '{source.id}' path '{path_text}' did not resolve in the scenario."
        )
    return raw


def _transform(
    source: SourceDefinition,
    source_data: object,
    references: Mapping[str, object],
    processed: tuple[SourceRecord, ...],
    audit: AuditTrail,
    state: _RunState,
) -> list[PercentileSeries]:
    spec = get_transformer(cast(str, source.transformer))
    context = TransformerContext(
        source=source,
        audit=audit,
        processed=processed,
        percentiles=state.percentiles,
        references=references,
        custom_percentile=state.custom_percentile,
        erosion_model=state.options.erosion_model,
    )
    try:
        return list(spec.transform(source_data, context))
    except CubeError:
        raise
    except Exception as error:
        raise CubeTransformError(
            f"Transformer '{source.transformer}' failed for source '{source.id}': {error}"
        ) from error


def _fold_multipliers(
    source: SourceDefinition,
    bands: Sequence[PercentileSeries],
    references: Mapping[str, object],
    processed: tuple[SourceRecord, ...],
    audit: AuditTrail,
    state: _RunState,
) -> MultiplierOutcome:
    try:
        return apply_multipliers(
            bands,
            source.multipliers or (),
            processed,
            references,
            state.custom_percentile,
            audit,
        )
    except CubeError:
        raise
    except Exception as error:
        raise CubeMultiplierError(
            f"Multipliers failed for source '{source.id}': {error}"
        ) from error


def _normalize_raw(
    source: SourceDefinition,
    source_data: object,
    references: Mapping[str, object],
    audit: AuditTrail,
    state: _RunState,
) -> list[PercentileSeries]:
    """Turn raw data of a source without transformer into bands.

    Raises:
        CubeSourceDataError: If the data has no usable series shape.
    """
    if source_data is None:
        raise CubeSourceDataError(f"Source '{source.id}' has neither data nor a transformer.")
    if is_number(source_data):
        source_data = _broadcast_scalar(source, float(cast(float, source_data)), references)
    payload = parse_series_payload(source_data, source.id)
    if isinstance(payload, SeriesPoints):
        return normalize(
            payload.points,
            state.percentiles,
            source.id,
            state.custom_percentile,
            audit,
        )
    if isinstance(payload, SeriesBands):
        return list(payload.bands)
    raise CubeSourceDataError(
        f"Source '{source.id}' resolved to source records; reference a series instead."
    )


def _broadcast_scalar(
    source: SourceDefinition,
    value: float,
    references: Mapping[str, object],
) -> SeriesPoints:
    project_life = references.get("projectLife")
    if not is_number(project_life):
        raise CubeSourceDataError(
            f"Source '{source.id}' is a single value; declare a 'projectLife' reference "
            "to spread it over the project years."
        )
    years = int(cast(float, project_life))
    return SeriesPoints(
        points=tuple(DataPoint(year=year, value=value) for year in range(1, years + 1))
    )


def _assemble_records(
    source: SourceDefinition,
    bands: Sequence[PercentileSeries],
    metadata: SourceMetadata,
    source_audit: SourceAudit,
) -> list[SourceRecord]:
    if not source.fan_out:
        return [
            SourceRecord(id=source.id, bands=tuple(bands), metadata=metadata, audit=source_audit)
        ]
    grouped: dict[str, list[PercentileSeries]] = {}
    for band in bands:
        grouped.setdefault(band.name, []).append(band)
    return [
        SourceRecord(
            id=name,
            bands=tuple(series_bands),
            metadata=replace(
                metadata,
                name=name,
                extra={**metadata.extra, "parent_source": source.id},
            ),
            audit=source_audit,
        )
        for name, series_bands in grouped.items()
    ]
