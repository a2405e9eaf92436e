"""Python SDK for cube evaluation.

This module exposes high-level APIs for running the source pipeline
against a scenario file and for linting registry ordering.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.config import CubeConfig
from core.registry_spec import load_source_registry
from core.types import PipelineResult, SourceRegistry
from pipeline.default_registry import build_default_registry
from pipeline.executor import PipelineOptions, compute_source_data
from pipeline.ordering import OrderingViolation, find_ordering_violations
from references.resolver import MappingReferenceResolver, load_scenario_tree


class CubeClient:
    """Primary SDK entry point for cube runs."""

    def __init__(self, config: CubeConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or CubeConfig.from_env()

    @property
    def config(self) -> CubeConfig:
        return self._config

    def registry(self, registry_path: str | None = None) -> SourceRegistry:
        """Load a registry file, or the built-in registry when no path is given.

        Raises:
            CubeRegistryError: If the registry file is invalid.
        """
        if registry_path is None:
            return build_default_registry()
        return load_source_registry(registry_path)

    def run(
        self,
        scenario: str | Mapping[str, object],
        registry_path: str | None = None,
        percentiles: Sequence[int] | None = None,
        custom_percentile: Mapping[str, int] | None = None,
    ) -> PipelineResult:
        """Evaluate every registry source against a scenario.

        Args:
            scenario: Scenario file path or an already loaded scenario tree.
            registry_path: Optional YAML registry, defaults to the built-in one.
            percentiles: Optional percentiles overriding the configured ones.
            custom_percentile: Optional ``{source_id: percentile}`` alias map.

        Returns:
            Pipeline result with records and counters.

        Raises:
            CubeRegistryError: If the registry file is invalid.
            CubeSourceDataError: If the scenario file cannot be loaded.
        """
        tree = load_scenario_tree(scenario) if isinstance(scenario, str) else scenario
        return compute_source_data(
            self.registry(registry_path),
            tuple(percentiles) if percentiles is not None else self._config.percentiles,
            MappingReferenceResolver(tree),
            custom_percentile,
            PipelineOptions.from_config(self._config),
        )

    def lint(self, registry_path: str | None = None) -> list[OrderingViolation]:
        """Return dependencies the execution order of a registry does not satisfy."""
        return find_ordering_violations(self.registry(registry_path))
