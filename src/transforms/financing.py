"""Debt financing transformers.

This module derives interest during construction, operational debt
schedules, debt service and the debt service coverage ratio from the
debt drawdown record and the financing settings.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Sequence, cast

from core.constants import (
    DEFAULT_AMORTIZATION_TYPE,
    DEFAULT_DEBT_RATE_PERCENT,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_LOAN_DURATION,
    DEFAULT_PROJECT_LIFE,
)
from core.errors import CubeTransformError
from core.logging_config import get_logger
from core.types import DataPoint, PercentileSeries, SourceRecord
from series.adjustment import trim_values
from series.aggregation import aggregate
from series.normalization import band_total, extract_band, find_band
from series.shapes import SeriesBands
from transforms.context import TransformerContext, number_field

_LOGGER = get_logger(__name__)

SUPPORTED_AMORTIZATION_TYPES = ("amortizing", "bullet")
LOAN_AMOUNT_KEY = "loan_amount"


@dataclass(frozen=True)
class LoanTerms:
    """Operational loan settings read from the financing reference.

    Attributes:
        operational_rate: Annual operational interest rate as a fraction.
        construction_rate: Annual construction interest rate as a fraction.
        loan_duration: Repayment term in years.
        grace_period: Years after construction before amortization starts.
        amortization_type: ``amortizing`` or ``bullet``.
        capitalize_idc: Whether construction interest is added to principal.
    """

    operational_rate: float
    construction_rate: float
    loan_duration: int
    grace_period: int
    amortization_type: str
    capitalize_idc: bool


@dataclass(frozen=True)
class DebtSchedule:
    """Principal and interest payments of one loan."""

    principal: tuple[DataPoint, ...]
    interest: tuple[DataPoint, ...]


def parse_loan_terms(financing: Mapping[str, object]) -> LoanTerms:
    """Read loan terms, keeping explicit zeros and defaulting absent fields.

    Raises:
        CubeTransformError: If a field has the wrong type or the
            amortization type is unknown.
    """
    amortization_type = financing.get("amortizationType", DEFAULT_AMORTIZATION_TYPE)
    if amortization_type not in SUPPORTED_AMORTIZATION_TYPES:
        supported_rows = ", ".join(SUPPORTED_AMORTIZATION_TYPES)
        raise CubeTransformError(
            f"Unsupported amortizationType '{amortization_type}'. Use one of: {supported_rows}."
        )
    construction_key = (
        "costOfConstructionDebt"
        if financing.get("costOfConstructionDebt") is not None
        else "costOfDebt"
    )
    construction_rate = number_field(financing, construction_key, DEFAULT_DEBT_RATE_PERCENT)
    return LoanTerms(
        operational_rate=number_field(
            financing, "costOfOperationalDebt", DEFAULT_DEBT_RATE_PERCENT
        )
        / 100.0,
        construction_rate=construction_rate / 100.0,
        loan_duration=int(number_field(financing, "loanDuration", DEFAULT_LOAN_DURATION)),
        grace_period=int(number_field(financing, "gracePeriod", DEFAULT_GRACE_PERIOD)),
        amortization_type=str(amortization_type),
        capitalize_idc=financing.get("idcCapitalization") is not False,
    )


def build_debt_schedule(principal: float, terms: LoanTerms, project_life: int) -> DebtSchedule:
    """Build the operational repayment schedule of ``principal``.

    Bullet loans repay everything at ``min(loan_duration, project_life)`` and
    pay interest on the full balance every year up to that maturity.
    Amortizing loans pay a constant annuity from ``1 + grace_period``.

    Args:
        principal: Total debt principal including capitalized interest.
        terms: Loan terms.
        project_life: Last project year.

    Returns:
        Principal and interest payments ascending by year.
    """
    rate = terms.operational_rate
    if terms.amortization_type == "bullet":
        maturity = min(terms.loan_duration, project_life)
        if maturity < 1:
            return DebtSchedule(principal=(), interest=())
        return DebtSchedule(
            principal=(DataPoint(year=maturity, value=principal),),
            interest=tuple(
                DataPoint(year=year, value=principal * rate) for year in range(1, maturity + 1)
            ),
        )
    if terms.loan_duration < 1:
        return DebtSchedule(principal=(), interest=())
    payment = annuity_payment(principal, rate, terms.loan_duration)
    first_year = 1 + terms.grace_period
    last_year = min(project_life, terms.grace_period + terms.loan_duration)
    balance = principal
    principal_points: list[DataPoint] = []
    interest_points: list[DataPoint] = []
    for year in range(first_year, last_year + 1):
        interest = balance * rate
        repayment = payment - interest
        principal_points.append(DataPoint(year=year, value=repayment))
        interest_points.append(DataPoint(year=year, value=interest))
        balance = max(0.0, balance - repayment)
    return DebtSchedule(principal=tuple(principal_points), interest=tuple(interest_points))


def annuity_payment(principal: float, rate: float, periods: int) -> float:
    """Return the constant annual payment repaying ``principal`` over ``periods``."""
    if rate == 0:
        return principal / periods
    growth = (1.0 + rate) ** periods
    return principal * rate * growth / (growth - 1.0)


def interest_during_construction(
    _source_data: object,
    context: TransformerContext,
) -> list[PercentileSeries]:
    """Accrue construction interest on the running debt drawdown balance."""
    terms = parse_loan_terms(context.mapping_reference("financing"))
    if not terms.capitalize_idc:
        _LOGGER.info("idc_not_capitalized", source_id=context.source.id)
        return []
    drawdown = _required_record(context, "debtDrawdown")
    if drawdown is None:
        return []
    result: list[PercentileSeries] = []
    for percentile in context.effective_percentiles:
        points = extract_band(drawdown.bands, percentile)
        if not points:
            continue
        balance = 0.0
        accrued: list[DataPoint] = []
        for point in sorted(points, key=lambda row: row.year):
            balance += point.value
            interest = balance * terms.construction_rate
            if interest > 0:
                accrued.append(DataPoint(year=point.year, value=interest))
        result.append(
            PercentileSeries(
                name="interestDuringConstruction",
                data=tuple(accrued),
                percentile=percentile,
            )
        )
    context.add_audit_entry(
        "apply_idc_transformation",
        f"accruing construction interest at {terms.construction_rate:.4f}",
        ["financing", "debtDrawdown"],
        result,
    )
    return result


def operational_principal(
    _source_data: object,
    context: TransformerContext,
) -> list[PercentileSeries]:
    """Schedule principal repayments of drawn debt plus capitalized interest."""
    terms = parse_loan_terms(context.mapping_reference("financing"))
    project_life = int(context.number_reference("projectLife", DEFAULT_PROJECT_LIFE))
    drawdown = _required_record(context, "debtDrawdown")
    if drawdown is None:
        return []
    idc = context.find_record("interestDuringConstruction")
    result: list[PercentileSeries] = []
    for percentile in context.effective_percentiles:
        drawn = extract_band(drawdown.bands, percentile)
        if not drawn:
            continue
        capitalized = extract_band(idc.bands, percentile) if idc is not None else ()
        principal = band_total(drawn) + band_total(capitalized)
        if principal <= 0:
            continue
        schedule = build_debt_schedule(principal, terms, project_life)
        result.append(
            PercentileSeries(
                name="operationalPrincipal",
                data=schedule.principal,
                percentile=percentile,
                metadata={LOAN_AMOUNT_KEY: principal},
            )
        )
    context.add_audit_entry(
        "apply_operational_principal_transformation",
        f"scheduling {terms.amortization_type} principal over {terms.loan_duration} years",
        ["financing", "projectLife", "debtDrawdown", "interestDuringConstruction"],
        result,
    )
    return result


def operational_interest(
    _source_data: object,
    context: TransformerContext,
) -> list[PercentileSeries]:
    """Rebuild the loan schedule from the loan amount and emit its interest.

    The amount is the one ``operationalPrincipal`` scheduled, so a schedule
    clipped by project life still charges interest on the full balance.
    """
    terms = parse_loan_terms(context.mapping_reference("financing"))
    project_life = int(context.number_reference("projectLife", DEFAULT_PROJECT_LIFE))
    principal_record = _required_record(context, "operationalPrincipal")
    if principal_record is None:
        return []
    result: list[PercentileSeries] = []
    for percentile in context.effective_percentiles:
        principal_band = find_band(principal_record.bands, percentile)
        if principal_band is None:
            continue
        principal = _loan_amount(principal_band)
        if principal <= 0:
            continue
        schedule = build_debt_schedule(principal, terms, project_life)
        result.append(
            PercentileSeries(
                name="operationalInterest",
                data=schedule.interest,
                percentile=percentile,
            )
        )
    context.add_audit_entry(
        "apply_operational_interest_transformation",
        f"interest at {terms.operational_rate:.4f} on the {terms.amortization_type} schedule",
        ["financing", "projectLife", "operationalPrincipal"],
        result,
    )
    return result


def debt_service(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Sum operational interest and principal."""
    inputs = _required_records(context, ("operationalInterest", "operationalPrincipal"))
    if inputs is None:
        return []
    result = aggregate(
        inputs, context.percentiles, "sum", context.custom_percentile, context.audit
    )
    context.add_audit_entry(
        "apply_debt_service_transformation",
        "operationalInterest + operationalPrincipal",
        ["operationalInterest", "operationalPrincipal"],
        result,
    )
    return result


def dscr(_source_data: object, context: TransformerContext) -> list[PercentileSeries]:
    """Divide net cashflow by debt service inside the repayment window.

    Years outside ``[1 + gracePeriod, loanDuration]`` are trimmed, as are
    years where debt service is missing or zero.
    """
    terms = parse_loan_terms(context.mapping_reference("financing"))
    inputs = _required_records(context, ("netCashflow", "debtService"))
    if inputs is None:
        return []
    ratios = aggregate(
        inputs, context.percentiles, "divide", context.custom_percentile, context.audit
    )
    service = inputs[1]
    covered = [_serviced_years_only(band, service) for band in ratios]
    window = {"start_year": 1 + terms.grace_period, "end_year": terms.loan_duration}
    trimmed = trim_values(
        SeriesBands(bands=tuple(covered)),
        _outside_window,
        window,
        context.audit,
    )
    context.add_audit_entry(
        "apply_dscr_transformation",
        f"netCashflow / debtService for years {window['start_year']}-{window['end_year']}",
        ["financing", "netCashflow", "debtService"],
        trimmed.bands,
    )
    return [band for band in trimmed.bands if band.data]


def _loan_amount(principal_band: PercentileSeries) -> float:
    amount = principal_band.metadata.get(LOAN_AMOUNT_KEY)
    if isinstance(amount, (int, float)) and not isinstance(amount, bool):
        return float(amount)
    return band_total(principal_band.data)


def _serviced_years_only(ratio: PercentileSeries, service: SourceRecord) -> PercentileSeries:
    # Divide seeds each year with the numerator, so unserviced years carry raw cashflow.
    serviced = {
        point.year for point in extract_band(service.bands, ratio.percentile) if point.value
    }
    return replace(ratio, data=tuple(point for point in ratio.data if point.year in serviced))


def _outside_window(year: int, _value: float, options: Mapping[str, object]) -> bool:
    return year < cast(int, options["start_year"]) or year > cast(int, options["end_year"])


def _required_record(context: TransformerContext, source_id: str) -> SourceRecord | None:
    record = context.find_record(source_id)
    if record is None:
        _LOGGER.warning(
            "transform_input_missing",
            source_id=context.source.id,
            dependency_id=source_id,
        )
    return record


def _required_records(
    context: TransformerContext,
    source_ids: Sequence[str],
) -> list[SourceRecord] | None:
    records = [_required_record(context, source_id) for source_id in source_ids]
    if any(record is None for record in records):
        return None
    return [record for record in records if record is not None]
