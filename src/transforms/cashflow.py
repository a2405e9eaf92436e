"""Net cashflow transformer."""

from __future__ import annotations

from core.logging_config import get_logger
from core.types import PercentileSeries
from series.aggregation import aggregate, negate
from transforms.context import TransformerContext

_LOGGER = get_logger(__name__)

NET_CASHFLOW_INPUTS = ("totalRevenue", "totalCost")


def net_cashflow(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Compute revenue minus cost per year and percentile.

    Costs are sign-flipped and summed with revenue, so a year present in
    only one input keeps that input's signed value.

    Args:
        _source_data: Unused; virtual source.
        context: Transformer context.

    Returns:
        Net cashflow bands, or an empty list when a total is missing.
    """
    revenue = context.find_record("totalRevenue")
    cost = context.find_record("totalCost")
    if revenue is None or cost is None:
        _LOGGER.warning(
            "net_cashflow_inputs_missing",
            source_id=context.source.id,
            has_revenue=revenue is not None,
            has_cost=cost is not None,
        )
        return []
    context.add_audit_entry(
        "apply_net_cashflow",
        "totalRevenue - totalCost",
        list(NET_CASHFLOW_INPUTS),
        entry_type="aggregate",
        type_operation="sum",
    )
    return aggregate(
        [revenue, negate(cost)],
        context.percentiles,
        "sum",
        context.custom_percentile,
        context.audit,
    )
