"""Public SDK surface for cashcube.

This module provides a stable import path for library users.
It re-exports the client, the pipeline entry point and the typed models.
"""

from __future__ import annotations

from core.config import CubeConfig
from core.errors import (
    CubeConfigError,
    CubeError,
    CubeMultiplierError,
    CubeRegistryError,
    CubeSourceDataError,
    CubeTransformError,
)
from core.registry_spec import load_source_registry
from core.types import (
    DataPoint,
    MultiplierSpec,
    PercentileSeries,
    PipelineResult,
    ReferenceDeclaration,
    SourceDefinition,
    SourceMetadata,
    SourceRecord,
    SourceRegistry,
)
from pipeline.client import CubeClient
from pipeline.custom_percentile import initialize_custom_percentiles, primary_percentile
from pipeline.default_registry import build_default_registry
from pipeline.executor import PipelineOptions, compute_source_data
from pipeline.ordering import find_ordering_violations
from references.resolver import MappingReferenceResolver, load_scenario_tree

__all__ = [
    "CubeClient",
    "CubeConfig",
    "CubeConfigError",
    "CubeError",
    "CubeMultiplierError",
    "CubeRegistryError",
    "CubeSourceDataError",
    "CubeTransformError",
    "DataPoint",
    "MappingReferenceResolver",
    "MultiplierSpec",
    "PercentileSeries",
    "PipelineOptions",
    "PipelineResult",
    "ReferenceDeclaration",
    "SourceDefinition",
    "SourceMetadata",
    "SourceRecord",
    "SourceRegistry",
    "build_default_registry",
    "compute_source_data",
    "find_ordering_violations",
    "initialize_custom_percentiles",
    "load_scenario_tree",
    "load_source_registry",
    "primary_percentile",
]
