"""Per-source audit trail recorder.

This module records timestamped processing steps of one source evaluation.
Durations are derived per step group when the trail is requested.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Callable, Mapping, Sequence

from core.constants import DEFAULT_AUDIT_PERCENTILE
from core.types import AuditEntry, DataPoint, DataSample, PercentileSeries, SourceRecord
from series.shapes import SeriesBands, SeriesPoints, SeriesRecords


class AuditTrail:
    """Audit recorder owned by exactly one source evaluation.

    Instances are created per source and passed explicitly through the
    transformer context, so concurrent runs never share entries.
    """

    def __init__(
        self,
        source_id: str,
        preferred_percentile: int = DEFAULT_AUDIT_PERCENTILE,
        sampling_enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source_id = source_id
        self._preferred_percentile = preferred_percentile
        self._sampling_enabled = sampling_enabled
        self._clock = clock
        self._entries: list[AuditEntry] = []

    @property
    def source_id(self) -> str:
        """Source id this trail belongs to."""
        return self._source_id

    def add_entry(
        self,
        step: str,
        details: str | None = None,
        dependencies: Sequence[str] | str | None = (),
        data: object = None,
        entry_type: str | None = None,
        type_operation: str | None = None,
    ) -> None:
        """Append a timestamped entry.

        Args:
            step: Step name; repeated names form one timing group.
            details: Free text details.
            dependencies: Source or reference ids consumed by the step.
            data: Optional data sampled for diagnostics.
            entry_type: Step category.
            type_operation: Operation within the category.
        """
        sample = None
        if self._sampling_enabled and data is not None:
            sampled = sample_data(data, self._preferred_percentile)
            if sampled is not None:
                sample = DataSample(
                    percentile=_sampled_percentile(sampled, self._preferred_percentile),
                    data=sampled,
                )
        self._entries.append(
            AuditEntry(
                timestamp=self._clock(),
                step=step,
                details=details,
                dependencies=_normalize_dependencies(dependencies),
                data_sample=sample,
                entry_type=entry_type,
                type_operation=type_operation,
            )
        )

    def get_trail(self) -> tuple[AuditEntry, ...]:
        """Return entries with per-step-group durations.

        A step entered more than once gets ``last - first`` timestamp on every
        entry of its group; single-entry steps get duration 0.
        """
        first_seen: dict[str, float] = {}
        last_seen: dict[str, float] = {}
        counts: dict[str, int] = {}
        for entry in self._entries:
            first_seen.setdefault(entry.step, entry.timestamp)
            last_seen[entry.step] = entry.timestamp
            counts[entry.step] = counts.get(entry.step, 0) + 1
        return tuple(
            replace(
                entry,
                duration=(
                    last_seen[entry.step] - first_seen[entry.step]
                    if counts[entry.step] > 1
                    else 0.0
                ),
            )
            for entry in self._entries
        )


def collect_references(
    trail: Sequence[AuditEntry],
    references: Mapping[str, object],
) -> dict[str, object]:
    """Return the references that trail entries list as dependencies."""
    used: dict[str, object] = {}
    for entry in trail:
        for dependency in entry.dependencies:
            if dependency in references:
                used[dependency] = references[dependency]
    return used


def sample_data(data: object, preferred_percentile: int) -> object | None:
    """Extract a representative diagnostic slice of ``data``.

    Band lists are narrowed to the preferred percentile and fall back to
    their first band; point lists are kept whole; other lists keep their
    first element.
    """
    if data is None:
        return None
    if isinstance(data, SeriesPoints):
        return data.points or None
    if isinstance(data, SeriesBands):
        data = data.bands
    elif isinstance(data, SeriesRecords):
        data = data.records
    if isinstance(data, (str, int, float, Mapping)):
        return data
    if not isinstance(data, Sequence):
        return data
    items = list(data)
    if not items:
        return None
    first = items[0]
    if isinstance(first, SourceRecord):
        return sample_data(first.bands, preferred_percentile)
    if _band_percentile(first) is not None:
        preferred = tuple(
            item for item in items if _band_percentile(item) == preferred_percentile
        )
        return preferred if preferred else (first,)
    if isinstance(first, DataPoint) or (
        isinstance(first, Mapping) and "year" in first and "value" in first
    ):
        return tuple(items)
    return first


def _sampled_percentile(sampled: object, preferred_percentile: int) -> int:
    """Percentile of the sampled band, or the preferred one for non-band data."""
    if isinstance(sampled, tuple) and sampled:
        percentile = _band_percentile(sampled[0])
        if percentile is not None:
            return percentile
    return preferred_percentile


def _band_percentile(item: object) -> int | None:
    if isinstance(item, PercentileSeries):
        return item.percentile
    if isinstance(item, Mapping):
        percentile = item.get("percentile")
        if isinstance(percentile, Mapping):
            percentile = percentile.get("value")
        if isinstance(percentile, int) and not isinstance(percentile, bool):
            return percentile
    return None


def _normalize_dependencies(dependencies: Sequence[str] | str | None) -> tuple[str, ...]:
    if dependencies is None:
        return ()
    if isinstance(dependencies, str):
        return (dependencies,) if dependencies else ()
    return tuple(dependency for dependency in dependencies if dependency)
