"""Transformer invocation context.

This module defines the read-only context passed to every transformer
together with small helpers for reading references with defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence, cast

from audit.trail import AuditTrail
from core.errors import CubeTransformError
from core.types import CustomPercentileMap, PercentileSeries, SourceDefinition, SourceRecord
from series.filtering import SourceFilter, filter_sources
from series.normalization import effective_percentiles
from series.shapes import is_number
from transforms.erosion_model import CumulativeRainErosionModel, ErosionModel


@dataclass(frozen=True)
class TransformerContext:
    """Everything a transformer may read while deriving a source.

    Attributes:
        source: Definition of the source being derived.
        audit: Audit trail owned by this source evaluation.
        processed: Snapshot of records appended earlier in the run.
        percentiles: Run percentiles without the custom band.
        references: Global references merged with local ones.
        custom_percentile: Custom-percentile alias map of the run.
        erosion_model: Physical model used by erosion adapters.
    """

    source: SourceDefinition
    audit: AuditTrail
    processed: tuple[SourceRecord, ...]
    percentiles: tuple[int, ...]
    references: Mapping[str, object]
    custom_percentile: CustomPercentileMap = field(default_factory=dict)
    erosion_model: ErosionModel = field(default_factory=CumulativeRainErosionModel)

    @property
    def effective_percentiles(self) -> tuple[int, ...]:
        """Run percentiles plus band 0 when any custom alias exists."""
        return effective_percentiles(self.percentiles, self.custom_percentile)

    def add_audit_entry(
        self,
        step: str,
        details: str | None = None,
        dependencies: Sequence[str] = (),
        data: object = None,
        entry_type: str | None = "transform",
        type_operation: str | None = "complex",
    ) -> None:
        """Record a transformer step on the source's audit trail."""
        self.audit.add_entry(step, details, dependencies, data, entry_type, type_operation)

    def find_record(self, source_id: str) -> SourceRecord | None:
        """Return the processed record with ``source_id`` or None."""
        matches = filter_sources(self.processed, SourceFilter(source_id=source_id))
        return matches[0] if matches else None

    def select(self, filter_spec: SourceFilter) -> list[SourceRecord]:
        """Return processed records matching ``filter_spec``, excluding this source."""
        return [
            record
            for record in filter_sources(self.processed, filter_spec)
            if record.id != self.source.id
        ]

    def number_reference(self, name: str, default: float) -> float:
        """Read a numeric reference, falling back to ``default`` when unset."""
        return number_field(self.references, name, default, context="reference")

    def mapping_reference(self, name: str) -> Mapping[str, object]:
        """Read a required mapping reference.

        Raises:
            CubeTransformError: If the reference is missing or not a mapping.
        """
        value = self.references.get(name)
        if not isinstance(value, Mapping):
            raise CubeTransformError(
                f"Source '{self.source.id}' requires reference '{name}' to resolve to a mapping. "
                "Declare it in the registry and check its scenario path."
            )
        return cast(Mapping[str, object], value)


def number_field(
    payload: Mapping[str, object],
    field_name: str,
    default: float,
    context: str = "field",
) -> float:
    """Read a numeric field while preserving explicit zero values.

    Raises:
        CubeTransformError: If the value is present but not numeric.
    """
    value = payload.get(field_name)
    if value is None:
        return default
    if not is_number(value):
        raise CubeTransformError(
            f"Invalid {context} '{field_name}': expected a number, got {value!r}."
        )
    return float(cast(float, value))


def nested_number(payload: Mapping[str, object], *path: str) -> float | None:
    """Read a number nested under mappings, or None when any step is missing."""
    node: object = payload
    for step in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(step)
    if is_number(node):
        return float(cast(float, node))
    return None


Transformer = Callable[[object, TransformerContext], list[PercentileSeries]]
