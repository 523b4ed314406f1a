"""
Financial calculation API endpoints.

These endpoints accept deal inputs and return calculated results.
Engine errors are translated to HTTP responses by the handler in main.py.
"""

import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from mna_analyzer.calculations import amortization, analysis, irr, returns, valuation
from mna_analyzer.config import get_settings

router = APIRouter()


def _debug() -> bool:
    return get_settings().calculation_debug


class ValuationInput(BaseModel):
    """Input for valuation calculation."""

    ebitda: float
    multiple: float


class ValuationResponse(BaseModel):
    valuation: float


@router.post("/valuation", response_model=ValuationResponse)
async def calculate_valuation(inputs: ValuationInput):
    """Calculate enterprise value from EBITDA and a multiple."""
    return ValuationResponse(
        valuation=valuation.calculate_valuation(
            inputs.ebitda, inputs.multiple, debug=_debug()
        )
    )


class DebtServiceInput(BaseModel):
    """Input for debt service calculation."""

    principal: float
    annual_rate: float  # Percentage, e.g. 7.5
    term_years: int
    include_schedule: bool = True


class DebtScheduleRow(BaseModel):
    year: int
    payment: float
    interest: float
    principal: float
    remaining_balance: float


class DebtServiceResponse(BaseModel):
    """Response with yearly debt service."""

    yearly_payments: List[float]
    total_interest: float
    total_payment: float
    monthly_payment: float
    annual_payment: float
    schedule: Optional[List[DebtScheduleRow]] = None


@router.post("/debt-service", response_model=DebtServiceResponse)
async def calculate_debt_service(inputs: DebtServiceInput):
    """Calculate level yearly debt service and, optionally, the yearly split."""
    result = amortization.calculate_debt_service(
        inputs.principal, inputs.annual_rate, inputs.term_years, debug=_debug()
    )

    schedule = None
    if inputs.include_schedule:
        schedule = amortization.build_yearly_schedule(
            inputs.principal, inputs.annual_rate, inputs.term_years
        )

    return DebtServiceResponse(
        yearly_payments=list(result.yearly_payments),
        total_interest=result.total_interest,
        total_payment=result.total_payment,
        monthly_payment=result.monthly_payment,
        annual_payment=result.annual_payment,
        schedule=schedule,
    )


class CashFlowInput(BaseModel):
    """A cash-flow series; index 0 is the initial investment."""

    cash_flows: List[float]


class IRRInput(CashFlowInput):
    """Input for IRR calculation."""

    method: Literal["newton", "bisection"] = "newton"


class IRRResponse(BaseModel):
    irr: float  # Percentage


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr(inputs: IRRInput):
    """Calculate IRR for given cash flows."""
    if inputs.method == "bisection":
        irr_val = irr.calculate_irr_bracketed(inputs.cash_flows, debug=_debug())
    else:
        irr_val = irr.calculate_irr(inputs.cash_flows, debug=_debug())
    return IRRResponse(irr=irr_val)


class NPVInput(CashFlowInput):
    """Input for NPV calculation."""

    discount_rate: float  # Percentage


class NPVResponse(BaseModel):
    npv: float


@router.post("/npv", response_model=NPVResponse)
async def calculate_npv(inputs: NPVInput):
    """Discount cash flows at the given rate."""
    return NPVResponse(
        npv=irr.calculate_npv_percent(
            inputs.cash_flows, inputs.discount_rate, debug=_debug()
        )
    )


class MOICInput(BaseModel):
    """Input for MOIC calculation."""

    total_return: float
    initial_investment: float


class MOICResponse(BaseModel):
    moic: float


@router.post("/moic", response_model=MOICResponse)
async def calculate_moic(inputs: MOICInput):
    """Calculate multiple on invested capital."""
    return MOICResponse(
        moic=returns.calculate_moic(
            inputs.total_return, inputs.initial_investment, debug=_debug()
        )
    )


class PaybackResponse(BaseModel):
    years: float
    is_achieved: bool
    remaining_balance: Optional[float] = None


@router.post("/payback", response_model=PaybackResponse)
async def calculate_payback(inputs: CashFlowInput):
    """Calculate payback period for given cash flows."""
    result = returns.calculate_payback_period(inputs.cash_flows, debug=_debug())
    return PaybackResponse(
        years=result.years,
        is_achieved=result.is_achieved,
        remaining_balance=result.remaining_balance,
    )


class YearMetricsInput(BaseModel):
    year: int
    gross_revenue: float = 0.0
    ebitda: float


class AcquisitionTrancheInput(BaseModel):
    date: datetime.date
    percentage: float


class AnalysisInput(BaseModel):
    """Deal assumptions for a full analysis. Rates are percentages."""

    historical: List[YearMetricsInput]
    projected: List[YearMetricsInput]

    # Deal structure
    multiple_paid: float
    exit_multiple: float

    # Financing
    debt_percent: float = 0.0
    interest_rate: float = 0.0
    term_years: int = 5
    discount_rate: float = 10.0

    # KPIs
    cash_conversion_rate: float = 100.0

    # Staged closing; empty means a single closing
    acquisition_schedule: List[AcquisitionTrancheInput] = []


def _to_year_metrics(rows: List[YearMetricsInput]) -> List[valuation.YearMetrics]:
    return [
        valuation.YearMetrics(
            year=row.year, gross_revenue=row.gross_revenue, ebitda=row.ebitda
        )
        for row in rows
    ]


@router.post("/analysis")
async def calculate_analysis(inputs: AnalysisInput):
    """Run the full deal analysis and attach a recommendation."""
    deal = analysis.DealInputs(
        historical=_to_year_metrics(inputs.historical),
        projected=_to_year_metrics(inputs.projected),
        multiple_paid=inputs.multiple_paid,
        exit_multiple=inputs.exit_multiple,
        debt_percent=inputs.debt_percent,
        interest_rate=inputs.interest_rate,
        term_years=inputs.term_years,
        discount_rate=inputs.discount_rate,
        cash_conversion_rate=inputs.cash_conversion_rate,
        acquisition_schedule=[
            analysis.AcquisitionTranche(date=tranche.date, percentage=tranche.percentage)
            for tranche in inputs.acquisition_schedule
        ],
    )

    results = analysis.analyze_deal(deal, debug=_debug())

    payload = results.to_dict()
    payload["recommendation"] = analysis.recommend_deal(results)
    return payload
