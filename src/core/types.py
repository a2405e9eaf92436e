"""Shared typed models.

This module defines immutable data models used by the registry, the
pipeline executor, the transformer library and the CLI so interfaces
stay explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Mapping

from core.constants import DEFAULT_MULTIPLIER_BASE_YEAR

SourceType = Literal["direct", "indirect", "virtual"]
CashflowType = Literal["inflow", "outflow", "none"]
AccountingClass = Literal[
    "devex",
    "capex",
    "opex",
    "financing_cost",
    "decommissioning",
    "revenue",
    "tax",
    "liability",
    "none",
]
ProjectPhase = Literal[
    "pre_development",
    "development",
    "construction",
    "operations",
    "decommissioning",
    "other",
]
MultiplierOperation = Literal["multiply", "compound", "simple", "summation"]
AggregateOperation = Literal["sum", "subtract", "multiply", "divide"]
TransformerId = Literal[
    "totalRevenue",
    "totalCost",
    "totalCapex",
    "totalDebt",
    "netCashflow",
    "interestDuringConstruction",
    "operationalPrincipal",
    "operationalInterest",
    "debtService",
    "dscr",
    "capexDrawdown",
    "debtDrawdown",
    "contractFees",
    "majorRepairs",
    "reserveFunds",
    "componentFailures",
    "componentReplacements",
    "erosionAepImpact",
]

SUPPORTED_SOURCE_TYPES: tuple[SourceType, ...] = ("direct", "indirect", "virtual")
SUPPORTED_CASHFLOW_TYPES: tuple[CashflowType, ...] = ("inflow", "outflow", "none")
SUPPORTED_ACCOUNTING_CLASSES: tuple[AccountingClass, ...] = (
    "devex",
    "capex",
    "opex",
    "financing_cost",
    "decommissioning",
    "revenue",
    "tax",
    "liability",
    "none",
)
SUPPORTED_PROJECT_PHASES: tuple[ProjectPhase, ...] = (
    "pre_development",
    "development",
    "construction",
    "operations",
    "decommissioning",
    "other",
)
SUPPORTED_MULTIPLIER_OPERATIONS: tuple[MultiplierOperation, ...] = (
    "multiply",
    "compound",
    "simple",
    "summation",
)
SUPPORTED_AGGREGATE_OPERATIONS: tuple[AggregateOperation, ...] = (
    "sum",
    "subtract",
    "multiply",
    "divide",
)
SUPPORTED_TRANSFORMER_IDS: tuple[TransformerId, ...] = (
    "totalRevenue",
    "totalCost",
    "totalCapex",
    "totalDebt",
    "netCashflow",
    "interestDuringConstruction",
    "operationalPrincipal",
    "operationalInterest",
    "debtService",
    "dscr",
    "capexDrawdown",
    "debtDrawdown",
    "contractFees",
    "majorRepairs",
    "reserveFunds",
    "componentFailures",
    "componentReplacements",
    "erosionAepImpact",
)

CustomPercentileMap = Mapping[str, int]
MultiplierFilter = Callable[[int, float, int], bool]
ReferencePath = tuple[str | int, ...]


@dataclass(frozen=True)
class DataPoint:
    """One annual sample of a time series.

    Attributes:
        year: Project year, 1-based for operations.
        value: Sample value for that year.
    """

    year: int
    value: float


@dataclass(frozen=True)
class PercentileSeries:
    """One confidence band of one named series.

    Attributes:
        name: Series name, usually the producing source id.
        data: Annual points, conventionally ascending by year.
        percentile: Confidence level, 0 for the custom-percentile alias.
        metadata: Band lineage such as the aliased custom percentile.
    """

    name: str
    data: tuple[DataPoint, ...]
    percentile: int
    metadata: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class SourceMetadata:
    """Descriptive and classification metadata of one source.

    Attributes:
        name: Human readable display name.
        type: Evaluation bucket of the source.
        cashflow_type: Direction of cash movement used by totals.
        accounting_class: Accounting classification used by totals.
        project_phase: Lifecycle phase the series belongs to.
        visual_group: Optional free-form grouping for charting.
        description: Free text description.
        custom_percentile: Real percentile aliased by band 0, when substituted.
        extra: User-extensible metadata dictionary.
    """

    name: str
    type: SourceType
    cashflow_type: CashflowType = "none"
    accounting_class: AccountingClass = "none"
    project_phase: ProjectPhase = "other"
    visual_group: str | None = None
    description: str = ""
    custom_percentile: int | None = None
    extra: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ReferenceDeclaration:
    """Named path into the scenario configuration tree."""

    id: str
    path: ReferencePath


@dataclass(frozen=True)
class MultiplierSpec:
    """One ordered adjustment applied to an indirect source.

    Attributes:
        id: Processed source id or reference id holding the multiplier values.
        operation: Arithmetic applied per point.
        base_year: Year at which compounding exponents are zero.
        filter: Optional ``(year, value, percentile)`` predicate of touched points.
    """

    id: str
    operation: MultiplierOperation
    base_year: int = DEFAULT_MULTIPLIER_BASE_YEAR
    filter: MultiplierFilter | None = None


@dataclass(frozen=True)
class SourceDefinition:
    """Static configuration of one named source.

    Attributes:
        id: Unique source id.
        priority: Ascending order within the source's type bucket.
        metadata: Classification metadata copied onto produced records.
        path: Scenario path of raw data, absent for virtual sources.
        has_percentiles: Whether raw data already carries percentile bands.
        local_references: References resolved for this source only.
        transformer: Registered transformer id, when the source derives data.
        multipliers: Ordered multipliers; ``None`` means none were declared.
        fan_out: Emit one record per produced series name.
    """

    id: str
    priority: int
    metadata: SourceMetadata
    path: ReferencePath | None = None
    has_percentiles: bool = False
    local_references: tuple[ReferenceDeclaration, ...] = ()
    transformer: TransformerId | None = None
    multipliers: tuple[MultiplierSpec, ...] | None = None
    fan_out: bool = False


@dataclass(frozen=True)
class SourceRegistry:
    """Reference declarations plus source declarations of one cube."""

    references: tuple[ReferenceDeclaration, ...]
    sources: tuple[SourceDefinition, ...]


@dataclass(frozen=True)
class DataSample:
    """Representative diagnostic slice attached to an audit entry."""

    percentile: int
    data: object


@dataclass(frozen=True)
class AuditEntry:
    """One timestamped processing step of a source.

    Attributes:
        timestamp: Wall-clock seconds when the step was recorded.
        step: Step name, entries sharing it form one timing group.
        details: Free text details.
        dependencies: Source or reference ids the step consumed.
        data_sample: Optional sampled data for diagnostics.
        entry_type: Step category such as ``transform`` or ``multiply``.
        type_operation: Operation within the category.
        duration: Seconds between first and last entry of the step group.
    """

    timestamp: float
    step: str
    details: str | None
    dependencies: tuple[str, ...]
    data_sample: DataSample | None = None
    entry_type: str | None = None
    type_operation: str | None = None
    duration: float = 0.0


@dataclass(frozen=True)
class AppliedMultiplier:
    """Multiplier that was folded into a source, for lineage."""

    id: str
    operation: MultiplierOperation
    base_year: int
    value_shape: str


@dataclass(frozen=True)
class SourceAudit:
    """Audit information attached to a finished record."""

    trail: tuple[AuditEntry, ...]
    applied_multipliers: tuple[AppliedMultiplier, ...]
    references: Mapping[str, object]


@dataclass(frozen=True)
class SourceRecord:
    """Finished output of one source evaluation."""

    id: str
    bands: tuple[PercentileSeries, ...]
    metadata: SourceMetadata
    audit: SourceAudit


@dataclass(frozen=True)
class PipelineResult:
    """Ordered records and counters of one pipeline run.

    Attributes:
        records: Records in the order they were appended.
        processed_count: Number of sources evaluated successfully.
        error_count: Number of sources skipped because of errors.
        reference_error_count: Number of references that did not resolve.
        elapsed_seconds: Wall-clock duration of the run.
    """

    records: tuple[SourceRecord, ...]
    processed_count: int
    error_count: int
    reference_error_count: int
    elapsed_seconds: float

    def record(self, source_id: str) -> SourceRecord | None:
        """Return the record with ``source_id`` or None."""
        for row in self.records:
            if row.id == source_id:
                return row
        return None
