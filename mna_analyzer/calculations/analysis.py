"""
Deal Analysis

Assembles a deal's cash-flow series from the deal assumptions and runs
every calculation over it to build the results record shown on the
dashboard and in the report.

Cash-flow convention (all values in thousands):
    period 0:     -equity invested (valuation less acquisition debt)
    period 1..n:  EBITDA x cash conversion, less that year's debt service
    period n:     also includes exit value (EBITDA_n x exit multiple)
                  net of debt still outstanding at exit
"""

import datetime
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from mna_analyzer.calculations.amortization import (
    DebtServiceResult,
    build_yearly_schedule,
    calculate_debt_service,
    calculate_debt_to_ebitda,
    calculate_dscr,
    calculate_interest_coverage,
    remaining_balance_after,
    validate_term_years,
)
from mna_analyzer.calculations.errors import ValidationError
from mna_analyzer.calculations.irr import calculate_irr, calculate_npv_percent
from mna_analyzer.calculations.returns import (
    ReturnMetrics,
    calculate_moic,
    calculate_payback_period,
)
from mna_analyzer.calculations.validators import (
    is_positive,
    is_valid_array,
    is_valid_rate,
)
from mna_analyzer.calculations.valuation import (
    LTMMetrics,
    YearMetrics,
    calculate_ebitda_growth,
    calculate_ltm,
    calculate_valuation,
    valuation_sensitivity,
    value_creation_series,
)

logger = logging.getLogger(__name__)

STRONG_BUY = "Strong Buy"
BUY_WITH_CONDITIONS = "Buy with Conditions"
RESTRUCTURE_DEAL = "Restructure Deal"
PASS = "Pass"

TARGET_IRR = 20.0
TARGET_MOIC = 2.0
TARGET_DSCR = 1.5

SCHEDULE_TOLERANCE = 0.01  # Percentage points


@dataclass(frozen=True)
class AcquisitionTranche:
    """Stake acquired on a given date, as a percentage of the company."""

    date: datetime.date
    percentage: float


@dataclass(frozen=True)
class DealInputs:
    """Deal assumptions entered on the analysis forms. Rates are percentages."""

    historical: Sequence[YearMetrics]
    projected: Sequence[YearMetrics]
    multiple_paid: float
    exit_multiple: float
    debt_percent: float = 0.0
    interest_rate: float = 0.0
    term_years: int = 5
    discount_rate: float = 10.0
    cash_conversion_rate: float = 100.0
    acquisition_schedule: Sequence[AcquisitionTranche] = ()


@dataclass(frozen=True)
class RiskMetrics:
    """Leverage metrics; all None for an all-equity deal."""

    debt_service_coverage: Optional[float] = None
    interest_coverage: Optional[float] = None
    debt_to_ebitda: Optional[float] = None
    yearly_dscr: Tuple[float, ...] = ()


@dataclass(frozen=True)
class AnalysisResults:
    """Everything computed for one deal."""

    valuation: float
    ltm: LTMMetrics
    equity_component: float
    debt_component: float
    projected_ebitda: Tuple[float, ...]
    cash_flow_generation: Tuple[float, ...]
    cash_flows: Tuple[float, ...]
    exit_value: float
    debt_service: Optional[DebtServiceResult]
    debt_schedule: Tuple[Dict, ...]
    return_metrics: ReturnMetrics
    npv: float
    net_cash_position: float
    risk_metrics: RiskMetrics
    sensitivity: Tuple[Dict, ...] = field(default_factory=tuple)
    ebitda_growth: Optional[float] = None
    value_creation: Tuple[Dict, ...] = field(default_factory=tuple)
    acquisition_schedule: Tuple[AcquisitionTranche, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        return asdict(self)


def validate_acquisition_schedule(schedule: Sequence[AcquisitionTranche]) -> None:
    """
    Check that tranche stakes add up to the whole company.

    An empty schedule means a single closing and is accepted.
    """
    if not schedule:
        return
    for tranche in schedule:
        is_valid_rate(tranche.percentage, "Acquisition percentage")
    total = sum(tranche.percentage for tranche in schedule)
    if abs(total - 100) >= SCHEDULE_TOLERANCE:
        raise ValidationError(
            f"Acquisition schedule must total 100%, got {round(total, 2)}%",
            "acquisition_schedule",
        )


def _validate_inputs(inputs: DealInputs) -> None:
    if not inputs.projected:
        raise ValidationError("Projection data cannot be empty", "projected")
    is_positive(inputs.multiple_paid, "Multiple paid")
    is_positive(inputs.exit_multiple, "Exit multiple")
    is_valid_rate(inputs.debt_percent, "Debt component")
    is_valid_rate(inputs.interest_rate, "Interest rate")
    validate_term_years(inputs.term_years)
    is_valid_rate(inputs.discount_rate, "Discount rate")
    is_valid_rate(inputs.cash_conversion_rate, "Cash conversion rate")
    validate_acquisition_schedule(inputs.acquisition_schedule)


def _risk_metrics(
    debt: float,
    ltm_ebitda: float,
    first_year_ebitda: float,
    cash_generation: List[float],
    payments: List[float],
    schedule: List[Dict],
) -> RiskMetrics:
    if debt <= 0:
        return RiskMetrics()

    yearly_dscr = tuple(
        calculate_dscr(generation, payment)
        for generation, payment in zip(cash_generation, payments)
        if payment > 0
    )
    first_year_interest = schedule[0]["interest"]
    interest_coverage = None
    if first_year_interest > 0:
        interest_coverage = calculate_interest_coverage(
            first_year_ebitda, first_year_interest
        )

    return RiskMetrics(
        debt_service_coverage=yearly_dscr[0] if yearly_dscr else None,
        interest_coverage=interest_coverage,
        debt_to_ebitda=calculate_debt_to_ebitda(debt, ltm_ebitda),
        yearly_dscr=yearly_dscr,
    )


def analyze_deal(inputs: DealInputs, debug: bool = False) -> AnalysisResults:
    """
    Run the full deal analysis.

    Args:
        inputs: Deal assumptions
        debug: Pass debug tracing through to every calculation

    Returns:
        AnalysisResults

    Raises:
        ValidationError: If any assumption is invalid
        CalculationError: If a calculation fails numerically
    """
    ltm = calculate_ltm(inputs.historical)
    if ltm is None:
        raise ValidationError("Historical data cannot be empty", "historical")
    _validate_inputs(inputs)

    projected = sorted(inputs.projected, key=lambda row: row.year)
    projected_ebitda = [row.ebitda for row in projected]
    is_valid_array(projected_ebitda, "Projected EBITDA")

    # === VALUATION AND FINANCING ===
    valuation = calculate_valuation(ltm.ebitda, inputs.multiple_paid, debug=debug)
    debt = round(valuation * inputs.debt_percent / 100, 2)
    equity = round(valuation - debt, 2)
    is_positive(equity, "Equity component")
    term_years = int(inputs.term_years)

    debt_service = None
    schedule: List[Dict] = []
    if debt > 0:
        debt_service = calculate_debt_service(
            debt, inputs.interest_rate, term_years, debug=debug
        )
        schedule = build_yearly_schedule(debt, inputs.interest_rate, term_years)

    # === OPERATING CASH FLOWS ===
    horizon = len(projected_ebitda)
    cash_generation = [
        round(ebitda * inputs.cash_conversion_rate / 100, 2)
        for ebitda in projected_ebitda
    ]
    payments = [
        debt_service.yearly_payments[year]
        if debt_service and year < len(debt_service.yearly_payments)
        else 0.0
        for year in range(horizon)
    ]
    operating = [
        round(generation - payment, 2)
        for generation, payment in zip(cash_generation, payments)
    ]

    # === EXIT ===
    remaining_debt = 0.0
    if debt > 0:
        remaining_debt = remaining_balance_after(
            debt, inputs.interest_rate, term_years, horizon
        )
    exit_value = round(projected_ebitda[-1] * inputs.exit_multiple - remaining_debt, 2)

    cash_flows = [-equity] + operating
    cash_flows[-1] = round(cash_flows[-1] + exit_value, 2)

    if debug:
        logger.debug(f"analyze_deal cash flows: {cash_flows}")

    # === RETURNS ===
    return_metrics = ReturnMetrics(
        irr=calculate_irr(cash_flows, debug=debug),
        moic=calculate_moic(sum(cash_flows[1:]), equity, debug=debug),
        payback_period=calculate_payback_period(cash_flows, debug=debug),
    )
    npv = calculate_npv_percent(cash_flows, inputs.discount_rate, debug=debug)

    risk_metrics = _risk_metrics(
        debt, ltm.ebitda, projected_ebitda[0], cash_generation, payments, schedule
    )

    return AnalysisResults(
        valuation=valuation,
        ltm=ltm,
        equity_component=equity,
        debt_component=debt,
        projected_ebitda=tuple(projected_ebitda),
        cash_flow_generation=tuple(cash_generation),
        cash_flows=tuple(cash_flows),
        exit_value=exit_value,
        debt_service=debt_service,
        debt_schedule=tuple(schedule),
        return_metrics=return_metrics,
        npv=npv,
        net_cash_position=round(sum(operating), 2),
        risk_metrics=risk_metrics,
        sensitivity=tuple(valuation_sensitivity(ltm.ebitda, inputs.multiple_paid)),
        ebitda_growth=calculate_ebitda_growth(projected_ebitda),
        value_creation=tuple(value_creation_series(projected, inputs.exit_multiple)),
        acquisition_schedule=tuple(
            sorted(inputs.acquisition_schedule, key=lambda tranche: tranche.date)
        ),
    )


def recommend_deal(results: AnalysisResults) -> str:
    """
    Classify a deal for the strategic recommendation panel.

    An all-equity deal has no debt service to cover and counts as covered.
    """
    strong_cash_flow = all(cf > 0 for cf in results.cash_flow_generation)
    high_irr = results.return_metrics.irr > TARGET_IRR
    high_moic = results.return_metrics.moic > TARGET_MOIC
    good_coverage = all(
        ratio > TARGET_DSCR for ratio in results.risk_metrics.yearly_dscr
    )

    if strong_cash_flow and high_irr and high_moic and good_coverage:
        return STRONG_BUY
    if (strong_cash_flow and high_irr) or (high_moic and good_coverage):
        return BUY_WITH_CONDITIONS
    if not strong_cash_flow or not good_coverage:
        return RESTRUCTURE_DEAL
    return PASS
