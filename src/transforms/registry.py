"""Typed transformer dispatch table.

This module maps every registered transformer id onto its function and
the inputs it reads, so registries are validated and linted before a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, cast

from core.errors import CubeRegistryError
from core.types import SUPPORTED_TRANSFORMER_IDS, TransformerId
from series.filtering import SourceFilter
from transforms.cashflow import NET_CASHFLOW_INPUTS, net_cashflow
from transforms.context import Transformer
from transforms.contracts import contract_fees, major_repairs, reserve_funds
from transforms.drawdown import capex_drawdown, debt_drawdown
from transforms.equipment import component_failures, component_replacements
from transforms.erosion import WIND_SPEED_SOURCE_ID, erosion_aep_impact
from transforms.financing import (
    debt_service,
    dscr,
    interest_during_construction,
    operational_interest,
    operational_principal,
)
from transforms.totals import (
    CAPEX_FILTER,
    COST_FILTER,
    DEBT_FILTER,
    REVENUE_FILTER,
    total_capex,
    total_cost,
    total_debt,
    total_revenue,
)


@dataclass(frozen=True)
class TransformerSpec:
    """Registered transformer and the processed inputs it reads.

    Attributes:
        transform: Transformer function.
        depends_on: Source ids that must be processed before this transformer.
        selects: Filter of records aggregated by this transformer, if any.
    """

    transform: Transformer
    depends_on: tuple[str, ...] = ()
    selects: SourceFilter | None = None


TRANSFORMERS: Mapping[TransformerId, TransformerSpec] = MappingProxyType(
    {
        "totalRevenue": TransformerSpec(total_revenue, selects=REVENUE_FILTER),
        "totalCost": TransformerSpec(total_cost, selects=COST_FILTER),
        "totalCapex": TransformerSpec(total_capex, selects=CAPEX_FILTER),
        "totalDebt": TransformerSpec(total_debt, selects=DEBT_FILTER),
        "netCashflow": TransformerSpec(net_cashflow, depends_on=NET_CASHFLOW_INPUTS),
        "interestDuringConstruction": TransformerSpec(
            interest_during_construction, depends_on=("debtDrawdown",)
        ),
        "operationalPrincipal": TransformerSpec(
            operational_principal,
            depends_on=("debtDrawdown", "interestDuringConstruction"),
        ),
        "operationalInterest": TransformerSpec(
            operational_interest, depends_on=("operationalPrincipal",)
        ),
        "debtService": TransformerSpec(
            debt_service, depends_on=("operationalInterest", "operationalPrincipal")
        ),
        "dscr": TransformerSpec(dscr, depends_on=("netCashflow", "debtService")),
        "capexDrawdown": TransformerSpec(capex_drawdown),
        "debtDrawdown": TransformerSpec(debt_drawdown),
        "contractFees": TransformerSpec(contract_fees),
        "majorRepairs": TransformerSpec(major_repairs),
        "reserveFunds": TransformerSpec(reserve_funds),
        "componentFailures": TransformerSpec(component_failures),
        "componentReplacements": TransformerSpec(component_replacements),
        "erosionAepImpact": TransformerSpec(
            erosion_aep_impact, depends_on=(WIND_SPEED_SOURCE_ID,)
        ),
    }
)


def get_transformer(transformer_id: str) -> TransformerSpec:
    """Return the registered transformer spec.

    Raises:
        CubeRegistryError: If the id is not registered.
    """
    spec = TRANSFORMERS.get(cast(TransformerId, transformer_id))
    if spec is None:
        supported_rows = ", ".join(SUPPORTED_TRANSFORMER_IDS)
        raise CubeRegistryError(
            f"Unknown transformer '{transformer_id}'. Use one of: {supported_rows}."
        )
    return spec
