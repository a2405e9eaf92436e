"""Built-in wind farm cashflow registry.

This module declares the default references and sources of the cube:
distribution inputs, cost and revenue lines, debt financing, totals,
net cashflow and the debt service coverage ratio.
"""

from __future__ import annotations

from core.types import (
    AccountingClass,
    CashflowType,
    MultiplierSpec,
    ProjectPhase,
    ReferenceDeclaration,
    SourceDefinition,
    SourceMetadata,
    SourceRegistry,
    SourceType,
    TransformerId,
)

DISTRIBUTION_ROOT = ("simulation", "inputSim", "distributionAnalysis")
FINANCING_PATH = ("settings", "modules", "financing")
COST_SOURCES_PATH = ("settings", "modules", "cost", "constructionPhase", "costSources")

DIRECT_INPUT_PRIORITY = 9
DIRECT_TRANSFORM_PRIORITY = 20
INDIRECT_PRIORITY = 99

_FINANCING = ReferenceDeclaration(id="financing", path=FINANCING_PATH)
_BLADE_CONFIG = ReferenceDeclaration(
    id="bladeConfig", path=("settings", "project", "equipment", "blades")
)
_ESCALATION = MultiplierSpec(id="escalationRate", operation="compound", base_year=1)


def build_default_registry() -> SourceRegistry:
    """Return the default wind farm source registry."""
    return SourceRegistry(
        references=(
            ReferenceDeclaration(id="projectLife", path=("settings", "general", "projectLife")),
            ReferenceDeclaration(
                id="numWTGs", path=("settings", "project", "windFarm", "numWTGs")
            ),
            ReferenceDeclaration(
                id="currency", path=("settings", "project", "currency", "local")
            ),
        ),
        sources=_direct_sources() + _indirect_sources() + _virtual_sources(),
    )


def _direct_sources() -> tuple[SourceDefinition, ...]:
    return (
        _distribution_source("escalationRate", "Escalation Rate", "escalation"),
        _distribution_source("electricityPrice", "Electricity Price", "pricing"),
        _distribution_source("windSpeed", "Wind Speed", "resource"),
        SourceDefinition(
            id="capexDrawdown",
            priority=DIRECT_TRANSFORM_PRIORITY,
            path=COST_SOURCES_PATH,
            transformer="capexDrawdown",
            metadata=_metadata(
                "CAPEX Drawdown", "direct", "outflow", "capex", "construction", "construction"
            ),
        ),
        SourceDefinition(
            id="debtDrawdown",
            priority=DIRECT_TRANSFORM_PRIORITY,
            path=COST_SOURCES_PATH,
            local_references=(_FINANCING,),
            transformer="debtDrawdown",
            metadata=_metadata(
                "Debt Drawdown", "direct", "none", "liability", "construction", "financing"
            ),
        ),
        SourceDefinition(
            id="reserveFunds",
            priority=DIRECT_TRANSFORM_PRIORITY,
            path=("settings", "modules", "risk", "reserveFunds"),
            transformer="reserveFunds",
            metadata=_metadata(
                "Reserve Funds", "direct", "outflow", "opex", "operations", "reserves"
            ),
        ),
        SourceDefinition(
            id="componentReplacements",
            priority=DIRECT_TRANSFORM_PRIORITY,
            path=("settings", "project", "equipment", "failureRates", "components"),
            transformer="componentReplacements",
            fan_out=True,
            metadata=_metadata(
                "Component Replacements", "direct", "none", "none", "operations", "equipment"
            ),
        ),
        SourceDefinition(
            id="erosionAepImpact",
            priority=DIRECT_TRANSFORM_PRIORITY,
            path=DISTRIBUTION_ROOT + ("rainfallAmount", "results"),
            has_percentiles=True,
            local_references=(_BLADE_CONFIG,),
            transformer="erosionAepImpact",
            metadata=_metadata(
                "Erosion AEP Impact", "direct", "none", "none", "operations", "resource"
            ),
        ),
    )


def _indirect_sources() -> tuple[SourceDefinition, ...]:
    return (
        SourceDefinition(
            id="energyRevenue",
            priority=INDIRECT_PRIORITY,
            path=DISTRIBUTION_ROOT + ("energyProduction", "results"),
            has_percentiles=True,
            multipliers=(
                MultiplierSpec(id="electricityPrice", operation="multiply", base_year=1),
                _ESCALATION,
            ),
            metadata=_metadata(
                "Energy Revenue", "indirect", "inflow", "revenue", "operations", "revenue"
            ),
        ),
        SourceDefinition(
            id="contractFees",
            priority=INDIRECT_PRIORITY,
            path=("settings", "modules", "contracts", "oemContracts"),
            transformer="contractFees",
            multipliers=(_ESCALATION,),
            metadata=_metadata(
                "Contract Fees", "indirect", "outflow", "opex", "operations", "contracts"
            ),
        ),
        SourceDefinition(
            id="majorRepairs",
            priority=INDIRECT_PRIORITY,
            path=("settings", "modules", "cost", "majorRepairEvents"),
            transformer="majorRepairs",
            multipliers=(_ESCALATION,),
            metadata=_metadata(
                "Major Repairs", "indirect", "outflow", "opex", "operations", "maintenance"
            ),
        ),
        SourceDefinition(
            id="componentFailures",
            priority=INDIRECT_PRIORITY,
            path=("settings", "project", "equipment", "failureRates", "components"),
            transformer="componentFailures",
            fan_out=True,
            multipliers=(_ESCALATION,),
            metadata=_metadata(
                "Component Failures", "indirect", "outflow", "opex", "operations", "equipment"
            ),
        ),
    )


def _virtual_sources() -> tuple[SourceDefinition, ...]:
    return (
        _virtual(
            "interestDuringConstruction",
            100,
            "Interest During Construction",
            "financing_cost",
            "construction",
            financing=True,
        ),
        _virtual(
            "operationalPrincipal",
            110,
            "Operational Principal",
            "financing_cost",
            "operations",
            financing=True,
        ),
        _virtual(
            "operationalInterest",
            120,
            "Operational Interest",
            "financing_cost",
            "operations",
            financing=True,
        ),
        _virtual("debtService", 130, "Debt Service", "financing_cost", "operations"),
        _virtual("totalCapex", 200, "Total CAPEX", "none", "other"),
        _virtual("totalCost", 210, "Total Cost", "none", "other"),
        _virtual("totalRevenue", 220, "Total Revenue", "none", "other"),
        _virtual("totalDebt", 230, "Total Debt", "none", "other"),
        _virtual("netCashflow", 300, "Net Cashflow", "none", "other"),
        _virtual("dscr", 400, "DSCR", "none", "operations", financing=True),
    )


def _distribution_source(source_id: str, name: str, visual_group: str) -> SourceDefinition:
    return SourceDefinition(
        id=source_id,
        priority=DIRECT_INPUT_PRIORITY,
        path=DISTRIBUTION_ROOT + (source_id, "results"),
        has_percentiles=True,
        metadata=_metadata(name, "direct", "none", "none", "other", visual_group),
    )


def _virtual(
    source_id: TransformerId,
    priority: int,
    name: str,
    accounting_class: AccountingClass,
    project_phase: ProjectPhase,
    financing: bool = False,
) -> SourceDefinition:
    return SourceDefinition(
        id=source_id,
        priority=priority,
        transformer=source_id,
        local_references=(_FINANCING,) if financing else (),
        metadata=_metadata(
            name,
            "virtual",
            "none",
            accounting_class,
            project_phase,
            "financing" if accounting_class == "financing_cost" else "totals",
        ),
    )


def _metadata(
    name: str,
    source_type: SourceType,
    cashflow_type: CashflowType,
    accounting_class: AccountingClass,
    project_phase: ProjectPhase,
    visual_group: str,
) -> SourceMetadata:
    return SourceMetadata(
        name=name,
        type=source_type,
        cashflow_type=cashflow_type,
        accounting_class=accounting_class,
        project_phase=project_phase,
        visual_group=visual_group,
    )
