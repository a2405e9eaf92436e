"""Major component failure and replacement cost transformers.

Both transformers emit one series per enabled component, named after the
component, so the executor can fan them out into separate records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, cast

from core.constants import DEFAULT_NUM_WTGS, DEFAULT_PROJECT_LIFE
from core.errors import CubeTransformError
from core.logging_config import get_logger
from core.types import DataPoint, PercentileSeries
from transforms.context import TransformerContext, nested_number

_LOGGER = get_logger(__name__)

FAILURE_COST_FIELDS = (
    "componentReplacement",
    "craneMobilization",
    "craneDailyRate",
    "repairDurationDays",
    "specialistLabor",
    "downtimeRevenuePerDay",
)


@dataclass(frozen=True)
class ComponentCosts:
    """Cost parameters of one component failure event.

    Attributes:
        component_id: Component id used in series names.
        name: Display name.
        failure_rate: Expected failures per turbine per year.
        replacement: Component replacement cost.
        crane_mobilization: Fixed crane mobilization cost.
        crane_daily_rate: Crane cost per repair day.
        repair_days: Repair duration in days.
        specialist_labor: Specialist labor cost.
        downtime_per_day: Lost revenue per repair day.
    """

    component_id: str
    name: str
    failure_rate: float
    replacement: float
    crane_mobilization: float
    crane_daily_rate: float
    repair_days: float
    specialist_labor: float
    downtime_per_day: float

    @property
    def cost_per_failure(self) -> float:
        """Total cost of one failure event."""
        crane = self.crane_mobilization + self.crane_daily_rate * self.repair_days
        downtime = self.downtime_per_day * self.repair_days
        return self.replacement + crane + self.specialist_labor + downtime


def component_failures(source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Expected annual failure cost per enabled component."""
    components = enabled_components(source_data)
    return _component_series(
        components,
        context,
        prefix="componentFailure",
        annual_cost=lambda component: component.failure_rate * component.cost_per_failure,
        step="apply_component_failure_rates_transformation",
    )


def component_replacements(
    source_data: object,
    context: TransformerContext,
) -> list[PercentileSeries]:
    """Expected annual replacement cost per enabled component."""
    components = [
        component for component in enabled_components(source_data) if component.replacement
    ]
    return _component_series(
        components,
        context,
        prefix="componentReplacement",
        annual_cost=lambda component: component.failure_rate * component.replacement,
        step="apply_component_replacement_costs_transformation",
    )


def enabled_components(source_data: object) -> list[ComponentCosts]:
    """Parse components that are enabled and carry a failure rate and costs.

    Raises:
        CubeTransformError: If the component list is not a list.
    """
    if not isinstance(source_data, list):
        raise CubeTransformError(
            f"Component failure rates must be a list, got {type(source_data).__name__}."
        )
    components: list[ComponentCosts] = []
    for item in source_data:
        if not isinstance(item, Mapping) or item.get("enabled") is not True:
            continue
        raw = cast(Mapping[str, object], item)
        if not isinstance(raw.get("failureRate"), Mapping) or not isinstance(
            raw.get("costs"), Mapping
        ):
            continue
        components.append(_parse_component(raw))
    return components


def _parse_component(raw: Mapping[str, object]) -> ComponentCosts:
    component_id = raw.get("id")
    if component_id is None:
        raise CubeTransformError("Enabled component is missing its 'id'.")
    failure_rate = nested_number(raw, "failureRate", "parameters", "lambda")
    if failure_rate is None:
        failure_rate = nested_number(raw, "failureRate", "parameters", "value")
    costs = {
        field_name: nested_number(raw, "costs", field_name, "parameters", "value") or 0.0
        for field_name in FAILURE_COST_FIELDS
    }
    return ComponentCosts(
        component_id=str(component_id),
        name=str(raw.get("name", component_id)),
        failure_rate=failure_rate or 0.0,
        replacement=costs["componentReplacement"],
        crane_mobilization=costs["craneMobilization"],
        crane_daily_rate=costs["craneDailyRate"],
        repair_days=costs["repairDurationDays"],
        specialist_labor=costs["specialistLabor"],
        downtime_per_day=costs["downtimeRevenuePerDay"],
    )


def _component_series(
    components: list[ComponentCosts],
    context: TransformerContext,
    prefix: str,
    annual_cost: Callable[[ComponentCosts], float],
    step: str,
) -> list[PercentileSeries]:
    if not components:
        _LOGGER.info("no_enabled_components", source_id=context.source.id)
        return []
    project_life = int(context.number_reference("projectLife", DEFAULT_PROJECT_LIFE))
    num_wtgs = context.number_reference("numWTGs", DEFAULT_NUM_WTGS)
    result: list[PercentileSeries] = []
    for component in components:
        cost = annual_cost(component) * num_wtgs
        data = tuple(DataPoint(year=year, value=cost) for year in range(1, project_life + 1))
        metadata = {
            "component_id": component.component_id,
            "component_name": component.name,
            "failure_rate": component.failure_rate,
            "cost_per_failure": component.cost_per_failure,
            "annual_cost": cost,
        }
        result.extend(
            PercentileSeries(
                name=f"{prefix}_{component.component_id}",
                data=data,
                percentile=percentile,
                metadata=metadata,
            )
            for percentile in context.effective_percentiles
        )
    context.add_audit_entry(
        step,
        f"costing {len(components)} enabled components over {project_life} years",
        ["projectLife", "numWTGs"],
        result,
    )
    return result
