"""Unit tests for the SDK client."""

from __future__ import annotations

import pytest

from core.config import CubeConfig
from core.errors import CubeRegistryError
from pipeline.client import CubeClient
from tests.fixture_paths import fixture_path

CONFIG = CubeConfig(percentiles=(10, 50, 90), audit_percentile=50, audit_sampling=True)


def test_client_runs_registry_file_against_scenario_file() -> None:
    """The client loads both files and evaluates every source."""
    client = CubeClient(CONFIG)

    result = client.run(
        str(fixture_path("scenarios/small_market.yaml")),
        registry_path=str(fixture_path("registries/small_cube.yaml")),
    )

    assert (result.processed_count, result.error_count) == (3, 0)


def test_client_accepts_loaded_scenario_tree() -> None:
    """A scenario mapping can be passed directly."""
    client = CubeClient(CONFIG)
    scenario = {"settings": {"general": {"projectLife": 2}}}

    result = client.run(scenario, registry_path=str(fixture_path("registries/small_cube.yaml")))

    assert result.record("totalRevenue") is not None


def test_client_percentile_override_wins_over_config() -> None:
    """Explicit percentiles replace the configured ones."""
    client = CubeClient(CONFIG)

    result = client.run(
        str(fixture_path("scenarios/small_market.yaml")),
        registry_path=str(fixture_path("registries/small_cube.yaml")),
        percentiles=(90,),
    )

    assert [band.percentile for band in result.record("revenue").bands] == [90]


def test_client_lint_surfaces_registry_errors() -> None:
    """Invalid registry files raise registry errors."""
    with pytest.raises(CubeRegistryError):
        CubeClient(CONFIG).lint(str(fixture_path("registries/unknown_field.yaml")))
