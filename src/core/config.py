"""Runtime configuration model for cashcube.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_AUDIT_PERCENTILE,
    DEFAULT_AUDIT_SAMPLING,
    DEFAULT_PERCENTILES,
    MAX_PERCENTILE,
    MIN_PERCENTILE,
)
from core.errors import CubeConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class CubeConfig:
    """Validated runtime configuration.

    Attributes:
        percentiles: Available percentiles evaluated by default.
        audit_percentile: Percentile preferred when sampling audit data.
        audit_sampling: Whether audit entries carry data samples.
    """

    percentiles: tuple[int, ...]
    audit_percentile: int
    audit_sampling: bool

    @classmethod
    def from_env(cls) -> "CubeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            CubeConfigError: If environment values are invalid.
        """
        default_percentiles = ",".join(str(value) for value in DEFAULT_PERCENTILES)
        percentiles_value = os.getenv("CASHCUBE_PERCENTILES", default_percentiles)
        audit_percentile_value = os.getenv(
            "CASHCUBE_AUDIT_PERCENTILE", str(DEFAULT_AUDIT_PERCENTILE)
        )
        audit_sampling_value = os.getenv(
            "CASHCUBE_AUDIT_SAMPLING", str(DEFAULT_AUDIT_SAMPLING).lower()
        )
        return cls(
            percentiles=parse_percentiles(percentiles_value, "CASHCUBE_PERCENTILES"),
            audit_percentile=_parse_audit_percentile(audit_percentile_value),
            audit_sampling=_parse_flag(audit_sampling_value, "CASHCUBE_AUDIT_SAMPLING"),
        )


def parse_percentiles(raw_value: str, source_name: str) -> tuple[int, ...]:
    """Parse a comma-separated percentile list.

    Args:
        raw_value: Raw comma-separated text such as ``10,50,90``.
        source_name: Environment variable or CLI flag named in errors.

    Returns:
        Percentiles in their given order.

    Raises:
        CubeConfigError: If an entry is not an integer in range or repeats.
    """
    percentiles: list[int] = []
    for part in raw_value.split(","):
        text = part.strip()
        if not text:
            continue
        try:
            value = int(text)
        except ValueError as error:
            raise CubeConfigError(
                f"Invalid {source_name} entry '{text}': expected integer percentiles "
                "such as 10,50,90."
            ) from error
        if value < MIN_PERCENTILE or value > MAX_PERCENTILE:
            raise CubeConfigError(
                f"Invalid {source_name} entry {value}: percentiles must be between "
                f"{MIN_PERCENTILE} and {MAX_PERCENTILE}. Percentile 0 is reserved for "
                "custom percentile bands."
            )
        if value in percentiles:
            raise CubeConfigError(f"Invalid {source_name}: percentile {value} is repeated.")
        percentiles.append(value)
    if not percentiles:
        raise CubeConfigError(f"Invalid {source_name}: provide at least one percentile.")
    return tuple(percentiles)


def _parse_audit_percentile(raw_value: str) -> int:
    try:
        value = int(raw_value)
    except ValueError as error:
        raise CubeConfigError(
            "Invalid CASHCUBE_AUDIT_PERCENTILE value: "
            f"expected integer, got '{raw_value}'. "
            "Set CASHCUBE_AUDIT_PERCENTILE to a numeric percentile."
        ) from error
    if value < 0 or value > MAX_PERCENTILE:
        raise CubeConfigError(
            f"Invalid CASHCUBE_AUDIT_PERCENTILE value {value}: "
            f"expected 0 to {MAX_PERCENTILE}."
        )
    return value


def _parse_flag(raw_value: str, variable_name: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise CubeConfigError(
        f"Invalid {variable_name} value '{raw_value}'. Use one of: "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES)}."
    )
