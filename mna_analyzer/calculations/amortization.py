"""
Debt Service Calculations

Level-payment amortization of acquisition debt: fixed rate, fixed term,
no balloon. Rates are annual percentages (7.5 means 7.5%).
All monetary values in thousands.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from mna_analyzer.calculations.errors import CalculationError, ErrorKind, ValidationError
from mna_analyzer.calculations.validators import (
    is_finite_number,
    is_positive,
    is_valid_rate,
    is_whole_number,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12
MAX_TERM_YEARS = 100


@dataclass(frozen=True)
class DebtServiceResult:
    """Yearly debt service for a level-payment loan."""

    yearly_payments: Tuple[float, ...]
    total_interest: float
    total_payment: float
    monthly_payment: float
    annual_payment: float


def _check_finite(value: float, label: str) -> float:
    if not math.isfinite(value) or value < 0:
        raise CalculationError(
            f"Invalid {label} calculation: {value}", ErrorKind.non_finite_result
        )
    return value


def _validate_loan(principal: float, annual_rate: float, term_years: float) -> None:
    is_positive(principal, "Principal")
    is_valid_rate(annual_rate, "Interest rate")
    validate_term_years(term_years)


def validate_term_years(term_years: float) -> None:
    """Loan term must be a whole number of years, 1 to MAX_TERM_YEARS."""
    is_positive(term_years, "Term years")
    is_whole_number(term_years, "Term years")
    if term_years > MAX_TERM_YEARS:
        raise ValidationError(
            f"Term years must be at most {MAX_TERM_YEARS}", "Term years"
        )


def calculate_monthly_payment(
    principal: float, annual_rate: float, total_months: int
) -> float:
    """
    Calculate the level monthly payment.

    Uses payment = P * r / (1 - (1 + r)^-n), evaluated with log1p/expm1
    so neither large terms nor tiny rates lose the denominator.

    Args:
        principal: Loan principal
        annual_rate: Annual interest rate as a percentage
        total_months: Number of monthly payments

    Returns:
        Monthly payment (positive number)

    Raises:
        CalculationError: If the payment is not a finite positive number
    """
    monthly_rate = annual_rate / MONTHS_PER_YEAR / 100

    if monthly_rate == 0:
        payment = principal / total_months
    else:
        # 1 - (1 + r)^-n
        denominator = -math.expm1(-total_months * math.log1p(monthly_rate))
        if denominator <= 0 or not math.isfinite(denominator):
            raise CalculationError(
                "Invalid monthly payment calculation", ErrorKind.non_finite_result
            )
        payment = principal * monthly_rate / denominator

    if not math.isfinite(payment) or payment <= 0:
        raise CalculationError(
            "Invalid monthly payment calculation", ErrorKind.non_finite_result
        )
    return payment


def calculate_debt_service(
    principal: float,
    annual_rate: float,
    term_years: int,
    debug: bool = False,
) -> DebtServiceResult:
    """
    Calculate yearly debt service and totals for an amortizing loan.

    Args:
        principal: Loan principal in thousands
        annual_rate: Annual interest rate as a percentage (0-100)
        term_years: Loan term in whole years
        debug: Log inputs and result

    Returns:
        DebtServiceResult with one identical payment per year of the term

    Raises:
        ValidationError: If inputs are out of range
        CalculationError: If the payment overflows
    """
    if debug:
        logger.debug(
            f"calculate_debt_service input: principal={principal}, "
            f"annual_rate={annual_rate}, term_years={term_years}"
        )

    _validate_loan(principal, annual_rate, term_years)
    term_years = int(term_years)

    monthly_payment = calculate_monthly_payment(
        principal, annual_rate, term_years * MONTHS_PER_YEAR
    )
    yearly_payment = _check_finite(monthly_payment * MONTHS_PER_YEAR, "yearly payment")
    total_payment = _check_finite(yearly_payment * term_years, "total payment")
    # A zero rate leaves only float noise here
    total_interest = max(total_payment - principal, 0.0)

    result = DebtServiceResult(
        yearly_payments=tuple(round(yearly_payment, 2) for _ in range(term_years)),
        total_interest=round(total_interest, 2),
        total_payment=round(total_payment, 2),
        monthly_payment=round(monthly_payment, 2),
        annual_payment=round(yearly_payment, 2),
    )

    if debug:
        logger.debug(f"calculate_debt_service result: {result}")
    return result


def remaining_balance_after(
    principal: float, annual_rate: float, term_years: int, years_paid: int
) -> float:
    """Calculate the outstanding balance after a number of years of payments."""
    _validate_loan(principal, annual_rate, term_years)
    is_finite_number(years_paid, "Years paid")

    if years_paid <= 0:
        return round(principal, 2)
    if years_paid >= term_years:
        return 0.0

    total_months = int(term_years) * MONTHS_PER_YEAR
    months_paid = int(years_paid) * MONTHS_PER_YEAR
    monthly_rate = annual_rate / MONTHS_PER_YEAR / 100
    payment = calculate_monthly_payment(principal, annual_rate, total_months)

    if monthly_rate == 0:
        return round(max(0.0, principal - payment * months_paid), 2)

    try:
        growth = math.exp(months_paid * math.log1p(monthly_rate))
    except OverflowError as e:
        raise CalculationError(
            "Remaining balance calculation overflowed", ErrorKind.non_finite_result
        ) from e
    balance = principal * growth - payment * (growth - 1) / monthly_rate
    return round(max(0.0, _check_finite(balance, "remaining balance")), 2)


def build_yearly_schedule(
    principal: float, annual_rate: float, term_years: int
) -> List[Dict]:
    """
    Split each year's level payment into interest and principal.

    Args:
        principal: Loan principal in thousands
        annual_rate: Annual interest rate as a percentage
        term_years: Loan term in whole years

    Returns:
        List of yearly rows
    """
    _validate_loan(principal, annual_rate, term_years)
    term_years = int(term_years)

    monthly_rate = annual_rate / MONTHS_PER_YEAR / 100
    payment = calculate_monthly_payment(
        principal, annual_rate, term_years * MONTHS_PER_YEAR
    )

    schedule = []
    balance = principal

    for year in range(1, term_years + 1):
        year_interest = 0.0
        year_principal = 0.0

        for month in range(MONTHS_PER_YEAR):
            interest = balance * monthly_rate
            principal_pmt = payment - interest

            # Final payment clears whatever rounding left behind
            if year == term_years and month == MONTHS_PER_YEAR - 1:
                principal_pmt = balance

            year_interest += interest
            year_principal += principal_pmt
            balance -= principal_pmt

        schedule.append(
            {
                "year": year,
                "payment": round(year_interest + year_principal, 2),
                "interest": round(year_interest, 2),
                "principal": round(year_principal, 2),
                "remaining_balance": round(max(0.0, balance), 2),
            }
        )

    return schedule


def calculate_dscr(cash_flow: float, debt_service: float) -> float:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Args:
        cash_flow: Cash available for debt service in the period
        debt_service: Debt service for the period

    Returns:
        DSCR ratio, rounded to 2 decimals
    """
    is_finite_number(cash_flow, "Cash flow")
    is_positive(debt_service, "Debt service")
    return round(cash_flow / debt_service, 2)


def calculate_interest_coverage(ebitda: float, interest: float) -> float:
    """Calculate interest coverage (EBITDA / interest expense)."""
    is_finite_number(ebitda, "EBITDA")
    is_positive(interest, "Interest")
    return round(ebitda / interest, 2)


def calculate_debt_to_ebitda(debt: float, ebitda: float) -> float:
    """Calculate leverage as debt / EBITDA."""
    is_finite_number(debt, "Debt")
    is_positive(ebitda, "EBITDA")
    return round(debt / ebitda, 2)
