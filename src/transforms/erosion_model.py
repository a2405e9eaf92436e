"""Blade leading-edge erosion model.

This module maps annual rainfall and wind speed onto an annual AEP loss
percentage for a blade protection configuration. The default model
integrates erosion along the blade radius with numpy and converts power
loss to AEP loss through wind-speed dependent reference levels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence, cast

import numpy as np

from core.errors import CubeTransformError
from core.types import DataPoint
from series.shapes import is_number

DEFAULT_PROTECTION_TYPE = "No LEP"
CALIBRATION_TIP_SPEED = 80.0
CALIBRATION_ANNUAL_RAINFALL = 1200.0
CALIBRATION_TARGET_LOSS_PERCENT = 2.0
REFERENCE_TIP_SPEED = 80.0
DEFAULT_VELOCITY_EXPONENT = 8.0
RADIAL_SAMPLE_COUNT = 100
MIN_RADIUS = 0.01

# Wind speed (m/s) to AEP loss (%) at 2, 4 and 6 % blade power loss.
AEP_LOSS_WIND_SPEEDS = np.array([4.0, 6.0, 7.5, 8.5, 10.0])
AEP_LOSS_LEVELS = np.array(
    [
        [1.0, 1.9, 3.0],
        [0.9, 1.6, 2.6],
        [0.7, 1.3, 2.2],
        [0.6, 1.1, 1.9],
        [0.4, 0.8, 1.6],
    ]
)
POWER_LOSS_LEVELS = np.array([0.0, 2.0, 4.0, 6.0])


@dataclass(frozen=True)
class ProtectionSpec:
    """Calibration and default configuration of one protection type.

    Attributes:
        calibration_years: Years of calibration exposure reaching the target loss.
        installation_penalty: AEP loss percent per protected metre of blade.
        default_length: Protected length in metres when not configured.
        default_repair_interval: Years between repairs when not configured.
        default_repair_effectiveness: Share of erosion removed by a repair.
    """

    calibration_years: float
    installation_penalty: float
    default_length: float
    default_repair_interval: int
    default_repair_effectiveness: float


PROTECTION_SPECIFICATIONS: Mapping[str, ProtectionSpec] = {
    "No LEP": ProtectionSpec(2.0, 0.0, 0.0, 10, 0.0),
    "3M Tape": ProtectionSpec(5.0, 0.03, 26.0, 8, 0.7),
    "Poly Shells": ProtectionSpec(20.0, 0.03, 30.0, 12, 0.85),
}


class ErosionModel(Protocol):
    """Deterministic model producing annual AEP loss percentages."""

    def annual_loss(
        self,
        rainfall: Sequence[DataPoint],
        wind_speed: Sequence[DataPoint],
        blade_config: Mapping[str, object],
    ) -> list[DataPoint]:
        """Return one AEP loss point per year present in both inputs."""
        ...


@dataclass(frozen=True)
class _BladeSetup:
    tip_speed: float
    blade_length: float
    velocity_exponent: float
    protected_length: float
    protection_factor: float
    base_protection_factor: float
    installation_penalty: float
    repair_enabled: bool
    repair_interval: int
    repair_effectiveness: float


class CumulativeRainErosionModel:
    """Erosion driven by cumulative rainfall with optional periodic repairs."""

    def annual_loss(
        self,
        rainfall: Sequence[DataPoint],
        wind_speed: Sequence[DataPoint],
        blade_config: Mapping[str, object],
    ) -> list[DataPoint]:
        """Compute annual AEP loss percentages.

        Args:
            rainfall: Annual rainfall in mm.
            wind_speed: Annual mean wind speed in m/s.
            blade_config: Blade geometry and protection settings.

        Returns:
            Loss points for years present in both inputs, ascending by year.

        Raises:
            CubeTransformError: If the blade configuration is incomplete.
        """
        if not rainfall or not wind_speed:
            return []
        setup = _blade_setup(blade_config)
        wind_by_year = {point.year: point.value for point in wind_speed}
        cumulative_rain = 0.0
        losses: list[DataPoint] = []
        for point in sorted(rainfall, key=lambda row: row.year):
            if point.year not in wind_by_year:
                continue
            cumulative_rain += point.value
            effective_rain = _repair_adjusted_rain(
                point.year, cumulative_rain, point.value, setup
            )
            power_loss = blade_averaged_power_loss(effective_rain, setup)
            aep_loss = power_to_aep_loss(power_loss, wind_by_year[point.year])
            penalty = setup.installation_penalty * setup.protected_length
            losses.append(DataPoint(year=point.year, value=aep_loss + penalty))
        return losses


def calibrated_protection_factor(spec: ProtectionSpec, velocity_exponent: float) -> float:
    """Solve the protection factor reaching the target loss under calibration."""
    cumulative_rain = CALIBRATION_ANNUAL_RAINFALL * spec.calibration_years
    speed_ratio = (CALIBRATION_TIP_SPEED / REFERENCE_TIP_SPEED) ** velocity_exponent
    target_fraction = CALIBRATION_TARGET_LOSS_PERCENT / 100.0
    return cumulative_rain * speed_ratio / (target_fraction * 1000.0)


def blade_averaged_power_loss(cumulative_rain: float, setup: _BladeSetup) -> float:
    """Integrate radial erosion loss weighted by swept power (~r^2)."""
    radii = np.linspace(MIN_RADIUS, setup.blade_length, RADIAL_SAMPLE_COUNT)
    protection = np.where(
        radii >= setup.blade_length - setup.protected_length,
        setup.protection_factor,
        setup.base_protection_factor,
    )
    radius_ratio = radii / setup.blade_length
    local_speed_ratio = radius_ratio * setup.tip_speed / REFERENCE_TIP_SPEED
    erosion = (
        cumulative_rain
        * radius_ratio**setup.velocity_exponent
        * local_speed_ratio**setup.velocity_exponent
        / (protection * 1000.0)
    )
    loss = erosion * 100.0
    weight = radii**2
    mean_loss = (loss[:-1] + loss[1:]) / 2.0
    mean_weight = (weight[:-1] + weight[1:]) / 2.0
    widths = np.diff(radii)
    return float(np.sum(mean_loss * mean_weight * widths) / np.sum(mean_weight * widths))


def power_to_aep_loss(power_loss: float, wind_speed: float) -> float:
    """Map blade power loss (%) to AEP loss (%) at a mean wind speed."""
    if power_loss <= 0:
        return 0.0
    levels = np.array(
        [
            np.interp(wind_speed, AEP_LOSS_WIND_SPEEDS, AEP_LOSS_LEVELS[:, column])
            for column in range(AEP_LOSS_LEVELS.shape[1])
        ]
    )
    if power_loss <= POWER_LOSS_LEVELS[-1]:
        return float(np.interp(power_loss, POWER_LOSS_LEVELS, np.concatenate(([0.0], levels))))
    slope = (levels[2] - levels[1]) / 2.0
    return float(levels[2] + slope * (power_loss - POWER_LOSS_LEVELS[-1]))


def _repair_adjusted_rain(
    year: int,
    cumulative_rain: float,
    annual_rain: float,
    setup: _BladeSetup,
) -> float:
    if not setup.repair_enabled or setup.repair_interval <= 0:
        return cumulative_rain
    last_repair_year = ((year - 1) // setup.repair_interval) * setup.repair_interval
    if last_repair_year <= 0:
        return cumulative_rain
    years_since_repair = year - last_repair_year
    removed = cumulative_rain * setup.repair_effectiveness
    return cumulative_rain - removed + years_since_repair * annual_rain


def _blade_setup(blade_config: Mapping[str, object]) -> _BladeSetup:
    protection_type = blade_config.get("lepType", DEFAULT_PROTECTION_TYPE)
    spec = PROTECTION_SPECIFICATIONS.get(str(protection_type))
    if spec is None:
        supported_rows = ", ".join(PROTECTION_SPECIFICATIONS)
        raise CubeTransformError(
            f"Unsupported blade protection type '{protection_type}'. Use one of: {supported_rows}."
        )
    velocity_exponent = _optional_number(blade_config, "velocityExponent")
    exponent = DEFAULT_VELOCITY_EXPONENT if velocity_exponent is None else velocity_exponent
    protected_length = _optional_number(blade_config, "lepLength")
    repair_interval = _optional_number(blade_config, "lepRepairInterval")
    repair_effectiveness = _optional_number(blade_config, "lepRepairEffectiveness")
    # Power curves measured with protection already include its penalty.
    installation_penalty = (
        0.0 if blade_config.get("lepInPowerCurve") is True else spec.installation_penalty
    )
    return _BladeSetup(
        tip_speed=_required_number(blade_config, "nominalTipSpeed"),
        blade_length=_required_number(blade_config, "bladeLength"),
        velocity_exponent=exponent,
        protected_length=spec.default_length if protected_length is None else protected_length,
        protection_factor=calibrated_protection_factor(spec, exponent),
        base_protection_factor=calibrated_protection_factor(
            PROTECTION_SPECIFICATIONS[DEFAULT_PROTECTION_TYPE], exponent
        ),
        installation_penalty=installation_penalty,
        repair_enabled=blade_config.get("lepRepairEnabled") is True,
        repair_interval=(
            spec.default_repair_interval if repair_interval is None else int(repair_interval)
        ),
        repair_effectiveness=(
            spec.default_repair_effectiveness
            if repair_effectiveness is None
            else repair_effectiveness / 100.0
        ),
    )


def _optional_number(payload: Mapping[str, object], field_name: str) -> float | None:
    value = payload.get(field_name)
    if value is None:
        return None
    if not is_number(value):
        raise CubeTransformError(
            f"Blade configuration field '{field_name}' must be numeric, got {value!r}."
        )
    return float(cast(float, value))


def _required_number(payload: Mapping[str, object], field_name: str) -> float:
    value = _optional_number(payload, field_name)
    if value is None or value <= 0:
        raise CubeTransformError(
            f"Blade configuration requires a positive '{field_name}'. "
            "Set it under the blade equipment settings."
        )
    return value
