"""Source execution order and its lint.

Sources run by type bucket (direct, indirect, virtual) and then by
ascending priority. The lint reports every reference to a source that
would not yet be processed under that order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.constants import SOURCE_TYPE_ORDER
from core.types import SourceDefinition, SourceRegistry
from transforms.registry import get_transformer


@dataclass(frozen=True)
class OrderingViolation:
    """One dependency that the execution order does not satisfy.

    Attributes:
        source_id: Source reading the dependency.
        dependency_id: Source or value id being read.
        reason: Human readable explanation.
    """

    source_id: str
    dependency_id: str
    reason: str


def sort_sources(sources: Sequence[SourceDefinition]) -> list[SourceDefinition]:
    """Order sources by type bucket then priority, stable on ties."""
    return sorted(sources, key=_order_key)


def find_ordering_violations(registry: SourceRegistry) -> list[OrderingViolation]:
    """Check multiplier, transformer and selection dependencies against order.

    Args:
        registry: Source registry to lint.

    Returns:
        Violations in execution order, empty for a consistent registry.
    """
    ordered = sort_sources(registry.sources)
    position = {source.id: index for index, source in enumerate(ordered)}
    global_references = {reference.id for reference in registry.references}
    violations: list[OrderingViolation] = []
    for index, source in enumerate(ordered):
        local_references = {reference.id for reference in source.local_references}
        for multiplier in source.multipliers or ():
            if multiplier.id in position:
                if position[multiplier.id] >= index:
                    violations.append(
                        OrderingViolation(
                            source.id, multiplier.id, "multiplier source runs later"
                        )
                    )
                continue
            if multiplier.id not in global_references | local_references:
                violations.append(
                    OrderingViolation(
                        source.id, multiplier.id, "multiplier is neither a source nor a reference"
                    )
                )
        if source.transformer is None:
            continue
        spec = get_transformer(source.transformer)
        for dependency_id in spec.depends_on:
            if dependency_id not in position:
                violations.append(
                    OrderingViolation(source.id, dependency_id, "dependency is not registered")
                )
            elif position[dependency_id] >= index:
                violations.append(
                    OrderingViolation(source.id, dependency_id, "dependency runs later")
                )
        if spec.selects is None:
            continue
        for later in ordered[index + 1 :]:
            if spec.selects.matches(later.id, later.metadata):
                violations.append(
                    OrderingViolation(source.id, later.id, "selected source runs later")
                )
    return violations


def _order_key(source: SourceDefinition) -> tuple[int, int]:
    source_type = source.metadata.type
    bucket = (
        SOURCE_TYPE_ORDER.index(source_type)
        if source_type in SOURCE_TYPE_ORDER
        else len(SOURCE_TYPE_ORDER)
    )
    return bucket, source.priority
