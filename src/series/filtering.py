"""Record metadata filtering helpers.

This module selects processed records by id and metadata constraints.
Virtual transformers use it to find the sources they combine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from core.types import (
    AccountingClass,
    CashflowType,
    ProjectPhase,
    SourceMetadata,
    SourceRecord,
    SourceType,
)


@dataclass(frozen=True)
class SourceFilter:
    """Selection constraints applied to processed records.

    Unset fields do not constrain. ``metadata`` entries are compared
    against metadata attributes first and ``extra`` keys second.

    Attributes:
        source_id: Exact record id.
        source_ids: Allowed record ids.
        type: Source type bucket.
        cashflow_type: Cash movement direction.
        visual_group: Charting group.
        accounting_class: Accounting classification.
        project_phase: Lifecycle phase.
        name: Display name.
        custom_percentile: Aliased percentile recorded on the metadata.
        metadata: Additional exact-match constraints.
    """

    source_id: str | None = None
    source_ids: tuple[str, ...] | None = None
    type: SourceType | None = None
    cashflow_type: CashflowType | None = None
    visual_group: str | None = None
    accounting_class: AccountingClass | None = None
    project_phase: ProjectPhase | None = None
    name: str | None = None
    custom_percentile: int | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    def matches(self, source_id: str, metadata: SourceMetadata) -> bool:
        """Return True when a source id and its metadata satisfy the filter."""
        if self.source_id is not None and source_id != self.source_id:
            return False
        if self.source_ids is not None and source_id not in self.source_ids:
            return False
        if self.type is not None and metadata.type != self.type:
            return False
        if self.cashflow_type is not None and metadata.cashflow_type != self.cashflow_type:
            return False
        if self.visual_group is not None and metadata.visual_group != self.visual_group:
            return False
        if (
            self.accounting_class is not None
            and metadata.accounting_class != self.accounting_class
        ):
            return False
        if self.project_phase is not None and metadata.project_phase != self.project_phase:
            return False
        if self.name is not None and metadata.name != self.name:
            return False
        if (
            self.custom_percentile is not None
            and metadata.custom_percentile != self.custom_percentile
        ):
            return False
        return all(
            _metadata_value(metadata, key) == value for key, value in self.metadata.items()
        )


def filter_sources(
    records: Sequence[SourceRecord],
    filter_spec: SourceFilter,
) -> list[SourceRecord]:
    """Filter records using id and metadata constraints.

    Args:
        records: Processed records in run order.
        filter_spec: Filter constraints.

    Returns:
        Matching records, order preserved.
    """
    return [record for record in records if filter_spec.matches(record.id, record.metadata)]


def _metadata_value(metadata: SourceMetadata, key: str) -> object:
    if key != "extra" and hasattr(metadata, key):
        return getattr(metadata, key)
    return metadata.extra.get(key)
