"""Blade erosion AEP impact adapter.

This module feeds per-percentile rainfall and wind speed into the
configured erosion model and wraps the resulting losses as bands.
"""

from __future__ import annotations

from core.errors import CubeTransformError
from core.logging_config import get_logger
from core.types import PercentileSeries
from series.normalization import extract_band
from series.shapes import SeriesBands, parse_series_payload
from transforms.context import TransformerContext

_LOGGER = get_logger(__name__)

WIND_SPEED_SOURCE_ID = "windSpeed"
BLADE_CONFIG_REFERENCE = "bladeConfig"


def erosion_aep_impact(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Annual AEP loss (%) caused by leading-edge erosion.

    Args:
        source_data: Rainfall bands of the source.
        context: Transformer context with the processed ``windSpeed`` record
            and a ``bladeConfig`` reference.

    Returns:
        One ``erosionAepImpact`` band per percentile present in both inputs.

    Raises:
        CubeTransformError: If the blade configuration is missing or has no
            protection type.
    """
    blade_config = context.mapping_reference(BLADE_CONFIG_REFERENCE)
    if "lepType" not in blade_config:
        raise CubeTransformError(
            f"Reference '{BLADE_CONFIG_REFERENCE}' must define 'lepType' for erosion modelling."
        )
    wind_speed = context.find_record(WIND_SPEED_SOURCE_ID)
    if wind_speed is None:
        _LOGGER.warning(
            "transform_input_missing",
            source_id=context.source.id,
            dependency_id=WIND_SPEED_SOURCE_ID,
        )
        return []
    rainfall = parse_series_payload(source_data, context.source.id)
    if not isinstance(rainfall, SeriesBands):
        raise CubeTransformError(
            f"Source '{context.source.id}' expects rainfall percentile bands, "
            f"got {type(rainfall).__name__}."
        )
    rainfall_bands = rainfall.bands
    result: list[PercentileSeries] = []
    for percentile in context.effective_percentiles:
        rain = extract_band(rainfall_bands, percentile)
        wind = extract_band(wind_speed.bands, percentile)
        if not rain or not wind:
            continue
        losses = context.erosion_model.annual_loss(rain, wind, blade_config)
        result.append(
            PercentileSeries(name="erosionAepImpact", data=tuple(losses), percentile=percentile)
        )
    context.add_audit_entry(
        "apply_erosion_aep_impact",
        f"modelling {blade_config.get('lepType')} erosion for {len(result)} percentiles",
        [WIND_SPEED_SOURCE_ID, BLADE_CONFIG_REFERENCE],
        result,
    )
    return result
