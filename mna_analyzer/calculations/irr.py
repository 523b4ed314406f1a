"""
IRR and NPV Calculations

Implements IRR using Newton-Raphson on the NPV function, plus a bracketed
bisection solver for cash flows where Newton's method is unreliable.

Newton's method is not guaranteed to find the economically meaningful
root when the cash flows change sign more than once (multiple IRRs) or
have no real root at all. calculate_irr_bracketed always converges when
NPV changes sign inside its bracket.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from mna_analyzer.calculations.errors import CalculationError, ErrorKind, ValidationError
from mna_analyzer.calculations.validators import (
    is_finite_number,
    is_valid_array,
    is_valid_rate,
)

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 1000
TOLERANCE = 1e-5
DEFAULT_GUESS = 0.1
BRACKET_LOW = -0.99
BRACKET_HIGH = 10.0

IRR_OVERFLOW = "IRR calculation overflow - try a different initial guess"
NPV_OVERFLOW = "NPV calculation overflow - discounted values are not finite"


def _discount_factors(
    rate: float,
    num_periods: int,
    message: str = IRR_OVERFLOW,
    kind: ErrorKind = ErrorKind.irr_divergence,
) -> np.ndarray:
    """(1 + rate)^j for every period, rejecting overflow and zero."""
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        factors = np.power(1.0 + rate, np.arange(num_periods))
    if not np.all(np.isfinite(factors)) or np.any(factors == 0):
        raise CalculationError(message, kind)
    return factors


def _npv_and_derivative(
    flows: np.ndarray,
    rate: float,
    message: str = IRR_OVERFLOW,
    kind: ErrorKind = ErrorKind.irr_divergence,
) -> Tuple[float, float]:
    """NPV at rate and its derivative with respect to rate."""
    factors = _discount_factors(rate, len(flows), message, kind)
    periods = np.arange(len(flows))

    with np.errstate(over="ignore", invalid="ignore"):
        npv = float(np.sum(flows / factors))
        dnpv = float(-np.sum(periods * flows / (factors * (1 + rate))))

    if not np.isfinite(npv) or not np.isfinite(dnpv):
        raise CalculationError(message, kind)
    return npv, dnpv


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow)
        discount_rate: Periodic discount rate as decimal (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    is_valid_array(cash_flows, "Cash flows")
    is_finite_number(discount_rate, "Discount rate")
    if discount_rate <= -1:
        raise ValidationError("Discount rate must be greater than -100%", "discount_rate")

    flows = np.asarray(cash_flows, dtype=float)
    npv, _ = _npv_and_derivative(
        flows, discount_rate, NPV_OVERFLOW, ErrorKind.non_finite_result
    )
    return npv


def calculate_npv_percent(
    cash_flows: Sequence[float], discount_rate: float, debug: bool = False
) -> float:
    """
    Calculate NPV with the discount rate given as a percentage (0-100).

    Returns:
        NPV rounded to 2 decimals
    """
    if debug:
        logger.debug(
            f"calculate_npv_percent input: cash_flows={list(cash_flows)}, "
            f"discount_rate={discount_rate}"
        )
    is_valid_rate(discount_rate, "Discount rate")
    result = round(calculate_npv(cash_flows, discount_rate / 100), 2)
    if debug:
        logger.debug(f"calculate_npv_percent result: {result}")
    return result


def calculate_irr(cash_flows: Sequence[float], debug: bool = False) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Args:
        cash_flows: Periodic cash flows, first element typically the
            negative initial investment
        debug: Log inputs, iterations and result

    Returns:
        IRR as a percentage (e.g., 15.0 for 15%), rounded to 2 decimals

    Raises:
        ValidationError: If cash flows are empty or contain non-finite values
        CalculationError: If the iteration overflows (IRRDivergence) or does
            not converge (IRRNonConvergent)
    """
    if debug:
        logger.debug(f"calculate_irr input: {list(cash_flows)}")

    is_valid_array(cash_flows, "Cash flows")
    flows = np.asarray(cash_flows, dtype=float)

    rate = DEFAULT_GUESS

    for iteration in range(MAX_ITERATIONS):
        npv, dnpv = _npv_and_derivative(flows, rate)

        if abs(dnpv) < TOLERANCE:
            if abs(npv) < TOLERANCE:
                result = round(rate * 100, 2)
                if debug:
                    logger.debug(f"calculate_irr result: {result}")
                return result
            # Flat NPV curve: restart from a different guess
            rate = DEFAULT_GUESS * 2
            continue

        new_rate = rate - npv / dnpv

        if debug:
            logger.debug(f"calculate_irr iteration {iteration}: rate={new_rate}")

        if abs(new_rate - rate) < TOLERANCE:
            result = round(new_rate * 100, 2)
            if debug:
                logger.debug(f"calculate_irr result: {result}")
            return result

        rate = new_rate

    raise CalculationError(
        "IRR calculation exceeded maximum iterations", ErrorKind.irr_non_convergent
    )


def calculate_irr_bracketed(
    cash_flows: Sequence[float],
    low: float = BRACKET_LOW,
    high: float = BRACKET_HIGH,
    debug: bool = False,
) -> float:
    """
    Calculate IRR by bisection over a bounded rate range.

    Args:
        cash_flows: Periodic cash flows
        low: Lower bound of the rate bracket as decimal (must be > -1)
        high: Upper bound of the rate bracket as decimal
        debug: Log inputs and result

    Returns:
        IRR as a percentage, rounded to 2 decimals

    Raises:
        CalculationError: If NPV does not change sign inside the bracket
    """
    if debug:
        logger.debug(f"calculate_irr_bracketed input: {list(cash_flows)}, [{low}, {high}]")

    is_valid_array(cash_flows, "Cash flows")
    is_finite_number(low, "Lower bound")
    is_finite_number(high, "Upper bound")
    if low <= -1 or high <= low:
        raise ValidationError("Rate bracket must satisfy -1 < low < high", "bracket")

    flows = np.asarray(cash_flows, dtype=float)
    npv_low, _ = _npv_and_derivative(flows, low)
    npv_high, _ = _npv_and_derivative(flows, high)

    if npv_low == 0:
        return round(low * 100, 2)
    if npv_high == 0:
        return round(high * 100, 2)
    if np.sign(npv_low) == np.sign(npv_high):
        raise CalculationError(
            "No IRR found within the rate bracket", ErrorKind.irr_non_convergent
        )

    for _ in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        npv_mid, _ = _npv_and_derivative(flows, mid)

        if npv_mid == 0 or (high - low) / 2 < TOLERANCE:
            result = round(mid * 100, 2)
            if debug:
                logger.debug(f"calculate_irr_bracketed result: {result}")
            return result

        if np.sign(npv_mid) == np.sign(npv_low):
            low, npv_low = mid, npv_mid
        else:
            high = mid

    raise CalculationError(
        "IRR bisection exceeded maximum iterations", ErrorKind.irr_non_convergent
    )
