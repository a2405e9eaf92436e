"""Path-based reference resolution.

This module resolves declared references against a scenario tree.
Resolvers never raise for missing paths; callers apply their defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, Sequence, cast

import yaml  # type: ignore[import-untyped]

from core.errors import CubeSourceDataError
from core.logging_config import get_logger
from core.types import ReferenceDeclaration, ReferencePath

_LOGGER = get_logger(__name__)


class ReferenceResolver(Protocol):
    """Capability of resolving a scenario path to a value."""

    def resolve(self, path: ReferencePath) -> object | None:
        """Return the value at ``path`` or None when it does not resolve."""
        ...


class MappingReferenceResolver:
    """Resolve paths by walking nested mappings and sequences."""

    def __init__(self, tree: Mapping[str, object]) -> None:
        self._tree = tree

    def resolve(self, path: ReferencePath) -> object | None:
        """Walk ``path`` through the tree.

        Args:
            path: Keys for mappings, integer indexes for sequences.

        Returns:
            Value at the path, or None when any step is missing.
        """
        node: object = self._tree
        for step in path:
            node = _step_into(node, step)
            if node is None:
                return None
        return node


def _step_into(node: object, step: str | int) -> object | None:
    if isinstance(node, Mapping):
        return cast(Mapping[object, object], node).get(step)
    if isinstance(node, Sequence) and not isinstance(node, (str, bytes, bytearray)):
        index = _sequence_index(step)
        if index is None or index < 0 or index >= len(node):
            return None
        return cast(object, node[index])
    return None


def _sequence_index(step: str | int) -> int | None:
    if isinstance(step, bool):
        return None
    if isinstance(step, int):
        return step
    if step.isdigit():
        return int(step)
    return None


def resolve_references(
    declarations: Sequence[ReferenceDeclaration],
    resolver: ReferenceResolver,
    scope: str = "global",
) -> tuple[dict[str, object], tuple[str, ...]]:
    """Resolve reference declarations into a name-to-value mapping.

    Args:
        declarations: References to resolve.
        resolver: Scenario path resolver.
        scope: Label used in log events, ``global`` or a source id.

    Returns:
        Resolved values keyed by reference id plus ids that did not resolve.
        Unresolved ids are left out of the mapping.
    """
    values: dict[str, object] = {}
    missing: list[str] = []
    for declaration in declarations:
        value = resolver.resolve(declaration.path)
        if value is None:
            missing.append(declaration.id)
            _LOGGER.warning(
                "reference_unresolved",
                scope=scope,
                reference_id=declaration.id,
                path=".".join(str(step) for step in declaration.path),
            )
            continue
        values[declaration.id] = value
    return values, tuple(missing)


def merge_references(
    global_references: Mapping[str, object],
    local_references: Mapping[str, object],
) -> dict[str, object]:
    """Merge local references over global ones, local wins on collisions."""
    merged = dict(global_references)
    merged.update(local_references)
    return merged


def load_scenario_tree(scenario_path: str) -> Mapping[str, object]:
    """Load a YAML or JSON scenario document from disk.

    Args:
        scenario_path: Path to the scenario file.

    Returns:
        Root mapping of the scenario tree.

    Raises:
        CubeSourceDataError: If the file is missing, unreadable or not a mapping.
    """
    scenario_file = Path(scenario_path).expanduser().resolve()
    if not scenario_file.exists():
        raise CubeSourceDataError(
            f"Scenario file does not exist at {scenario_file}. Provide a valid YAML or JSON file."
        )
    try:
        payload = cast(object, yaml.safe_load(scenario_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise CubeSourceDataError(
            f"Failed to read scenario at {scenario_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise CubeSourceDataError(
            f"Failed to parse scenario at {scenario_file}: {error}. Fix the syntax and retry."
        ) from error
    if not isinstance(payload, Mapping):
        raise CubeSourceDataError(
            f"Scenario at {scenario_file} must be a mapping at its root, "
            f"got {type(payload).__name__}."
        )
    return cast(Mapping[str, object], payload)
