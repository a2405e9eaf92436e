"""Total aggregation transformers.

This module sums every earlier record of one classification into a
single total per percentile.
"""

from __future__ import annotations

from core.logging_config import get_logger
from core.types import PercentileSeries
from series.aggregation import aggregate
from series.filtering import SourceFilter
from transforms.context import TransformerContext

_LOGGER = get_logger(__name__)

REVENUE_FILTER = SourceFilter(cashflow_type="inflow")
COST_FILTER = SourceFilter(cashflow_type="outflow")
CAPEX_FILTER = SourceFilter(accounting_class="capex")
DEBT_FILTER = SourceFilter(accounting_class="liability")


def total_revenue(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum all inflow records."""
    return _sum_selected(context, REVENUE_FILTER, "revenue")


def total_cost(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum all outflow records."""
    return _sum_selected(context, COST_FILTER, "cost")


def total_capex(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum all records classified as capital expenditure."""
    return _sum_selected(context, CAPEX_FILTER, "capex")


def total_debt(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum all records classified as liabilities."""
    return _sum_selected(context, DEBT_FILTER, "debt")


def _sum_selected(
    context: TransformerContext,
    filter_spec: SourceFilter,
    label: str,
) -> list[PercentileSeries]:
    """Aggregate the records selected by ``filter_spec`` with a sum.

    Args:
        context: Transformer context of the total source.
        filter_spec: Classification selecting the summed records.
        label: Short label used in logs and audit details.

    Returns:
        Summed bands, or an empty list when nothing matched.
    """
    selected = context.select(filter_spec)
    if not selected:
        _LOGGER.warning("total_inputs_missing", source_id=context.source.id, total=label)
        return []
    context.add_audit_entry(
        f"apply_total_{label}",
        f"summing {len(selected)} {label} sources",
        [record.id for record in selected],
        entry_type="aggregate",
        type_operation="sum",
    )
    return aggregate(
        selected,
        context.percentiles,
        "sum",
        context.custom_percentile,
        context.audit,
    )
