"""
Return Calculations

MOIC and payback period for a deal's cash-flow series.
All monetary values in thousands.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from mna_analyzer.calculations.validators import (
    is_finite_number,
    is_positive,
    is_valid_array,
)

logger = logging.getLogger(__name__)

# Decimal places kept in the running payback balance
BALANCE_PRECISION = 10


@dataclass(frozen=True)
class PaybackPeriodResult:
    """
    Payback period details.

    remaining_balance is only set when payback is not achieved, and holds
    the shortfall at the end of the series.
    """

    years: float
    is_achieved: bool
    remaining_balance: Optional[float] = None


@dataclass(frozen=True)
class ReturnMetrics:
    """IRR (percent), MOIC (ratio) and payback period for a deal."""

    irr: float
    moic: float
    payback_period: PaybackPeriodResult


def calculate_moic(
    total_return: float, initial_investment: float, debug: bool = False
) -> float:
    """
    Calculate Multiple On Invested Capital.

    Args:
        total_return: Total return on investment in thousands (may be negative)
        initial_investment: Initial investment amount in thousands

    Returns:
        MOIC ratio rounded to 2 decimals (2.5 = 2.5x the money back)
    """
    if debug:
        logger.debug(
            f"calculate_moic input: total_return={total_return}, "
            f"initial_investment={initial_investment}"
        )

    is_finite_number(total_return, "Total return")
    is_positive(initial_investment, "Initial investment")

    result = round(total_return / initial_investment, 2)

    if debug:
        logger.debug(f"calculate_moic result: {result}")
    return result


def calculate_payback_period(
    cash_flows: Sequence[float], debug: bool = False
) -> PaybackPeriodResult:
    """
    Calculate payback period with fractional-year interpolation.

    The cumulative balance starts at cash_flows[0]. When it crosses zero
    during period i, the fraction of that period needed is interpolated
    linearly: years = (i - 1) + |balance before i| / cash_flows[i].

    Args:
        cash_flows: Periodic cash flows, first element the initial outlay
        debug: Log inputs and result

    Returns:
        PaybackPeriodResult
    """
    if debug:
        logger.debug(f"calculate_payback_period input: {list(cash_flows)}")

    is_valid_array(cash_flows, "Cash flows")

    balance = float(cash_flows[0])

    if balance >= 0:
        result = PaybackPeriodResult(years=0.0, is_achieved=True)
    else:
        result = None
        for i in range(1, len(cash_flows)):
            previous = balance
            balance = round(balance + cash_flows[i], BALANCE_PRECISION)
            if balance >= 0:
                fraction = abs(previous) / cash_flows[i]
                result = PaybackPeriodResult(
                    years=round((i - 1) + fraction, 2), is_achieved=True
                )
                break

        if result is None:
            result = PaybackPeriodResult(
                years=float(len(cash_flows) - 1),
                is_achieved=False,
                remaining_balance=round(abs(balance), 2),
            )

    if debug:
        logger.debug(f"calculate_payback_period result: {result}")
    return result
