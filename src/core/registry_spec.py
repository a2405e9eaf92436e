"""Typed source registry parsing for declarative cubes.

This module loads and validates YAML registry files describing references
and sources. It provides one strict schema so the CLI and library callers
evaluate the same cube description.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

import yaml

from core.constants import DEFAULT_MULTIPLIER_BASE_YEAR, REGISTRY_SPEC_VERSION
from core.errors import CubeRegistryError
from core.registry_fields import (
    expect_mapping,
    expect_sequence,
    optional_bool,
    optional_int,
    optional_string,
    parse_choice,
    parse_path,
    required_int,
    required_string,
    validate_keys,
)
from core.types import (
    SUPPORTED_ACCOUNTING_CLASSES,
    SUPPORTED_CASHFLOW_TYPES,
    SUPPORTED_MULTIPLIER_OPERATIONS,
    SUPPORTED_PROJECT_PHASES,
    SUPPORTED_SOURCE_TYPES,
    SUPPORTED_TRANSFORMER_IDS,
    MultiplierFilter,
    MultiplierSpec,
    ReferenceDeclaration,
    SourceDefinition,
    SourceMetadata,
    SourceRegistry,
)

_ROOT_KEYS = {"version", "references", "sources"}
_SOURCE_KEYS = {
    "id",
    "priority",
    "path",
    "has_percentiles",
    "references",
    "transformer",
    "fan_out",
    "multipliers",
    "metadata",
}
_METADATA_KEYS = {
    "name",
    "type",
    "cashflow_type",
    "accounting_class",
    "project_phase",
    "visual_group",
    "description",
    "extra",
}
_MULTIPLIER_KEYS = {"id", "operation", "base_year", "filter"}
_FILTER_KEYS = {"min_year", "max_year", "percentiles"}


def load_source_registry(registry_path: str) -> SourceRegistry:
    """Load and validate a YAML source registry from disk.

    Args:
        registry_path: File path to the YAML registry.

    Returns:
        Fully validated registry.

    Raises:
        CubeRegistryError: If the file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(registry_path)
    return parse_source_registry(payload)


def parse_source_registry(payload: object) -> SourceRegistry:
    """Validate an already-decoded registry document.

    Raises:
        CubeRegistryError: If schema checks fail.
    """
    root_mapping = expect_mapping(payload, "registry root")
    validate_keys(root_mapping, _ROOT_KEYS, "Registry root")
    _parse_version(root_mapping)
    references = _parse_references(root_mapping.get("references"), "registry references")
    raw_sources = root_mapping.get("sources")
    if raw_sources is None:
        raise CubeRegistryError("Registry missing required field 'sources'.")
    sources = tuple(
        _parse_source(raw_source, index)
        for index, raw_source in enumerate(expect_sequence(raw_sources, "registry sources"))
    )
    _validate_unique_ids([source.id for source in sources], "source")
    return SourceRegistry(references=references, sources=sources)


def _load_yaml_payload(registry_path: str) -> object:
    registry_file = Path(registry_path).expanduser().resolve()
    if not registry_file.exists():
        raise CubeRegistryError(
            f"Registry file does not exist at {registry_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(registry_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise CubeRegistryError(
            f"Failed to read registry at {registry_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise CubeRegistryError(
            f"Failed to parse YAML registry at {registry_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise CubeRegistryError(
            f"Registry at {registry_file} is empty. Define 'version' and 'sources'."
        )
    return payload


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if isinstance(raw_version, bool) or not isinstance(raw_version, int):
        raise CubeRegistryError(
            f"Registry field 'version' must be an integer. Set version: {REGISTRY_SPEC_VERSION}."
        )
    if raw_version != REGISTRY_SPEC_VERSION:
        raise CubeRegistryError(
            f"Unsupported registry version {raw_version}. Use version: {REGISTRY_SPEC_VERSION}."
        )
    return raw_version


def _parse_references(raw_value: object, context: str) -> tuple[ReferenceDeclaration, ...]:
    if raw_value is None:
        return ()
    declarations = []
    for index, row in enumerate(expect_sequence(raw_value, context)):
        row_context = f"{context} #{index + 1}"
        row_mapping = expect_mapping(row, row_context)
        validate_keys(row_mapping, {"id", "path"}, row_context.capitalize())
        if "path" not in row_mapping:
            raise CubeRegistryError(f"Invalid {row_context}: missing required field 'path'.")
        declarations.append(
            ReferenceDeclaration(
                id=required_string(row_mapping, "id", row_context),
                path=parse_path(row_mapping["path"], row_context),
            )
        )
    _validate_unique_ids([row.id for row in declarations], context)
    return tuple(declarations)


def _parse_source(raw_source: object, source_index: int) -> SourceDefinition:
    context = f"registry source #{source_index + 1}"
    source_mapping = expect_mapping(raw_source, context)
    validate_keys(source_mapping, _SOURCE_KEYS, context.capitalize())
    source_id = required_string(source_mapping, "id", context)
    context = f"registry source '{source_id}'"
    raw_path = source_mapping.get("path")
    raw_transformer = optional_string(source_mapping, "transformer", context)
    raw_multipliers = source_mapping.get("multipliers")
    return SourceDefinition(
        id=source_id,
        priority=required_int(source_mapping, "priority", context),
        metadata=_parse_metadata(source_mapping.get("metadata"), source_id, context),
        path=None if raw_path is None else parse_path(raw_path, context),
        has_percentiles=optional_bool(source_mapping, "has_percentiles", False, context),
        local_references=_parse_references(
            source_mapping.get("references"), f"{context} references"
        ),
        transformer=(
            None
            if raw_transformer is None
            else parse_choice(raw_transformer, SUPPORTED_TRANSFORMER_IDS, "transformer", context)
        ),
        multipliers=(
            None
            if raw_multipliers is None
            else tuple(
                _parse_multiplier(row, index, context)
                for index, row in enumerate(expect_sequence(raw_multipliers, context))
            )
        ),
        fan_out=optional_bool(source_mapping, "fan_out", False, context),
    )


def _parse_metadata(raw_value: object, source_id: str, context: str) -> SourceMetadata:
    metadata_context = f"{context} metadata"
    metadata_mapping = expect_mapping(raw_value, metadata_context)
    validate_keys(metadata_mapping, _METADATA_KEYS, metadata_context.capitalize())
    raw_type = required_string(metadata_mapping, "type", metadata_context)
    raw_extra = metadata_mapping.get("extra")
    return SourceMetadata(
        name=optional_string(metadata_mapping, "name", metadata_context) or source_id,
        type=parse_choice(raw_type, SUPPORTED_SOURCE_TYPES, "type", metadata_context),
        cashflow_type=parse_choice(
            optional_string(metadata_mapping, "cashflow_type", metadata_context) or "none",
            SUPPORTED_CASHFLOW_TYPES,
            "cashflow_type",
            metadata_context,
        ),
        accounting_class=parse_choice(
            optional_string(metadata_mapping, "accounting_class", metadata_context) or "none",
            SUPPORTED_ACCOUNTING_CLASSES,
            "accounting_class",
            metadata_context,
        ),
        project_phase=parse_choice(
            optional_string(metadata_mapping, "project_phase", metadata_context) or "other",
            SUPPORTED_PROJECT_PHASES,
            "project_phase",
            metadata_context,
        ),
        visual_group=optional_string(metadata_mapping, "visual_group", metadata_context),
        description=optional_string(metadata_mapping, "description", metadata_context) or "",
        extra=(
            {}
            if raw_extra is None
            else dict(expect_mapping(raw_extra, f"{metadata_context} extra"))
        ),
    )


def _parse_multiplier(raw_value: object, index: int, context: str) -> MultiplierSpec:
    multiplier_context = f"{context} multiplier #{index + 1}"
    multiplier_mapping = expect_mapping(raw_value, multiplier_context)
    validate_keys(multiplier_mapping, _MULTIPLIER_KEYS, multiplier_context.capitalize())
    base_year = optional_int(multiplier_mapping, "base_year", multiplier_context)
    raw_filter = multiplier_mapping.get("filter")
    return MultiplierSpec(
        id=required_string(multiplier_mapping, "id", multiplier_context),
        operation=parse_choice(
            required_string(multiplier_mapping, "operation", multiplier_context),
            SUPPORTED_MULTIPLIER_OPERATIONS,
            "operation",
            multiplier_context,
        ),
        base_year=DEFAULT_MULTIPLIER_BASE_YEAR if base_year is None else base_year,
        filter=None if raw_filter is None else _parse_filter(raw_filter, multiplier_context),
    )


def _parse_filter(raw_value: object, context: str) -> MultiplierFilter:
    filter_context = f"{context} filter"
    filter_mapping = expect_mapping(raw_value, filter_context)
    validate_keys(filter_mapping, _FILTER_KEYS, filter_context.capitalize())
    min_year = optional_int(filter_mapping, "min_year", filter_context)
    max_year = optional_int(filter_mapping, "max_year", filter_context)
    raw_percentiles = filter_mapping.get("percentiles")
    percentiles: frozenset[int] | None = None
    if raw_percentiles is not None:
        values = expect_sequence(raw_percentiles, f"{filter_context} percentiles")
        if any(isinstance(value, bool) or not isinstance(value, int) for value in values):
            raise CubeRegistryError(f"Invalid {filter_context}: percentiles must be integers.")
        percentiles = frozenset(cast(int, value) for value in values)
    if min_year is not None and max_year is not None and min_year > max_year:
        raise CubeRegistryError(
            f"Invalid {filter_context}: min_year {min_year} is after max_year {max_year}."
        )

    def matches(year: int, _value: float, percentile: int) -> bool:
        if min_year is not None and year < min_year:
            return False
        if max_year is not None and year > max_year:
            return False
        return percentiles is None or percentile in percentiles

    return matches


def _validate_unique_ids(ids: list[str], context: str) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            raise CubeRegistryError(f"Duplicate {context} id '{item_id}' in registry.")
        seen.add(item_id)
