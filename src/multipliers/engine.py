"""Ordered multiplier folding for indirect sources.

This module applies multiply, compound, simple and summation adjustments
to percentile bands, strictly in declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Sequence

from audit.trail import AuditTrail
from core.constants import CUSTOM_PERCENTILE
from core.errors import CubeMultiplierError
from core.logging_config import get_logger
from core.types import (
    AppliedMultiplier,
    CustomPercentileMap,
    DataPoint,
    MultiplierOperation,
    MultiplierSpec,
    PercentileSeries,
    SourceRecord,
    SUPPORTED_MULTIPLIER_OPERATIONS,
)
from multipliers.lookup import MultiplierValues, build_lookup, find_multiplier_values

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class MultiplierOutcome:
    """Bands after folding plus multiplier lineage.

    Attributes:
        bands: Adjusted bands.
        applied: Multipliers whose values were found and applied.
        skipped: Ids of multipliers dropped because no values were found.
    """

    bands: tuple[PercentileSeries, ...]
    applied: tuple[AppliedMultiplier, ...]
    skipped: tuple[str, ...]


def apply_multipliers(
    bands: Sequence[PercentileSeries],
    multipliers: Sequence[MultiplierSpec],
    processed: Sequence[SourceRecord],
    references: Mapping[str, object],
    custom_percentile: CustomPercentileMap,
    audit: AuditTrail | None = None,
) -> MultiplierOutcome:
    """Fold multipliers into bands in declaration order.

    Values are looked up in processed records first and references second.
    A multiplier with no values anywhere is skipped and the fold continues.

    Args:
        bands: Bands being built for the source.
        multipliers: Ordered multiplier specs.
        processed: Records appended earlier in the run.
        references: Merged global and local references.
        custom_percentile: Custom-percentile alias map of the run.
        audit: Optional audit trail of the source.

    Returns:
        Folded bands, applied multipliers and skipped multiplier ids.

    Raises:
        CubeMultiplierError: If values have an invalid shape or an operation
            is unknown.
    """
    current = tuple(bands)
    applied: list[AppliedMultiplier] = []
    skipped: list[str] = []
    for multiplier in multipliers:
        _validate_operation(multiplier)
        located = find_multiplier_values(multiplier.id, processed, references)
        if located is None:
            skipped.append(multiplier.id)
            _LOGGER.warning(
                "multiplier_skipped",
                source_id=audit.source_id if audit is not None else None,
                multiplier_id=multiplier.id,
                reason="values_not_found",
            )
            if audit is not None:
                audit.add_entry(
                    "skip_multiplier",
                    f"{multiplier.id} ({multiplier.operation}) has no values",
                    [multiplier.id],
                    None,
                    "multiply",
                    multiplier.operation,
                )
            continue
        raw_values, from_processed = located
        values = build_lookup(raw_values, multiplier.id, custom_percentile, from_processed)
        current = tuple(_apply_to_band(band, multiplier, values) for band in current)
        applied.append(
            AppliedMultiplier(
                id=multiplier.id,
                operation=multiplier.operation,
                base_year=multiplier.base_year,
                value_shape=values.shape,
            )
        )
        if audit is not None:
            audit.add_entry(
                "apply_multiplier",
                f"{multiplier.id} ({multiplier.operation}, {values.shape})",
                [multiplier.id],
                values.sample,
                "multiply",
                multiplier.operation,
            )
    return MultiplierOutcome(bands=current, applied=tuple(applied), skipped=tuple(skipped))


def apply_operation(
    operation: MultiplierOperation,
    value: float,
    multiplier: float,
    year: int,
    base_year: int,
) -> float:
    """Apply one multiplier operation to a single value.

    Raises:
        CubeMultiplierError: If the operation is unknown or its arithmetic
            fails, such as a zero growth base raised to a negative power.
    """
    if operation == "multiply":
        return value * multiplier
    if operation == "compound":
        try:
            return value * (1.0 + multiplier) ** (year - base_year)
        except ArithmeticError as error:
            raise CubeMultiplierError(
                f"Cannot compound {multiplier!r} from base year {base_year} to year {year}: "
                f"{error}."
            ) from error
    if operation == "simple":
        return value * (1.0 + multiplier * (year - base_year))
    if operation == "summation":
        return value + multiplier
    raise CubeMultiplierError(f"Unknown multiplier operation '{operation}'.")


def _apply_to_band(
    band: PercentileSeries,
    multiplier: MultiplierSpec,
    values: MultiplierValues,
) -> PercentileSeries:
    aliased_percentile = _aliased_percentile(band)
    adjusted: list[DataPoint] = []
    for point in band.data:
        if multiplier.filter is not None and not multiplier.filter(
            point.year, point.value, band.percentile
        ):
            adjusted.append(point)
            continue
        factor = values.lookup(point.year, band.percentile)
        if factor is None and aliased_percentile is not None:
            factor = values.lookup(point.year, aliased_percentile)
        if factor is None:
            adjusted.append(point)
            continue
        adjusted.append(
            DataPoint(
                year=point.year,
                value=apply_operation(
                    multiplier.operation,
                    point.value,
                    factor,
                    point.year,
                    multiplier.base_year,
                ),
            )
        )
    return replace(band, data=tuple(adjusted))


def _aliased_percentile(band: PercentileSeries) -> int | None:
    """Real percentile a band 0 stands for, used when band 0 has no factor."""
    if band.percentile != CUSTOM_PERCENTILE:
        return None
    aliased = band.metadata.get("custom_percentile")
    if isinstance(aliased, int) and not isinstance(aliased, bool):
        return aliased
    return None


def _validate_operation(multiplier: MultiplierSpec) -> None:
    if multiplier.operation not in SUPPORTED_MULTIPLIER_OPERATIONS:
        supported_rows = ", ".join(SUPPORTED_MULTIPLIER_OPERATIONS)
        raise CubeMultiplierError(
            f"Unknown operation '{multiplier.operation}' for multiplier '{multiplier.id}'. "
            f"Use one of: {supported_rows}."
        )
