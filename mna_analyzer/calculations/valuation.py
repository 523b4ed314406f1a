"""
Valuation Calculations

Enterprise value from EBITDA and a multiple, trailing-twelve-month (LTM)
metrics, and the valuation sensitivity grid shown on the results page.
All monetary values in thousands.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from mna_analyzer.calculations.errors import ValidationError
from mna_analyzer.calculations.validators import (
    is_finite_number,
    is_positive,
    is_valid_array,
)

logger = logging.getLogger(__name__)

DEFAULT_SENSITIVITY_STEPS = (-20, -10, 0, 10, 20)


@dataclass(frozen=True)
class YearMetrics:
    """Revenue and EBITDA for a single fiscal year."""

    year: int
    gross_revenue: float
    ebitda: float


@dataclass(frozen=True)
class LTMMetrics:
    """Last-twelve-months metrics and the window they cover."""

    gross_revenue: float
    ebitda: float
    start_date: str
    end_date: str


def calculate_valuation(ebitda: float, multiple: float, debug: bool = False) -> float:
    """
    Calculate enterprise value (EV = EBITDA x multiple).

    Args:
        ebitda: EBITDA in thousands
        multiple: Valuation multiple (EV / EBITDA)
        debug: Log inputs and result

    Returns:
        Enterprise value in thousands, rounded to 2 decimals

    Raises:
        ValidationError: If either input is not a positive finite number
    """
    if debug:
        logger.debug(f"calculate_valuation input: ebitda={ebitda}, multiple={multiple}")

    is_positive(ebitda, "EBITDA")
    is_positive(multiple, "Multiple")

    result = round(float(ebitda) * multiple, 2)

    if debug:
        logger.debug(f"calculate_valuation result: {result}")
    return result


def calculate_ltm(
    historical: Sequence[YearMetrics], min_years: int = 1
) -> Optional[LTMMetrics]:
    """
    Calculate LTM metrics from annual history.

    History is annual, so the trailing window is the most recent fiscal year.

    Args:
        historical: Annual metrics in any order
        min_years: Minimum number of years required

    Returns:
        LTM metrics, or None if there is not enough history
    """
    if not historical or len(historical) < min_years:
        return None

    latest = max(historical, key=lambda row: row.year)
    return LTMMetrics(
        gross_revenue=latest.gross_revenue,
        ebitda=latest.ebitda,
        start_date=f"{latest.year}-01-01",
        end_date=f"{latest.year}-12-31",
    )


def valuation_sensitivity(
    base_ebitda: float,
    base_multiple: float,
    steps: Sequence[float] = DEFAULT_SENSITIVITY_STEPS,
) -> List[Dict]:
    """
    Build the valuation sensitivity grid.

    Each row flexes the multiple by one step; each column flexes EBITDA by
    one step. Cells hold the percent change against the base valuation.

    Args:
        base_ebitda: EBITDA the base valuation was built on
        base_multiple: Multiple the base valuation was built on
        steps: Percentage changes applied to both axes

    Returns:
        List of rows: {"multiple_change": pct, "cells": {ebitda_change: pct}}
    """
    is_positive(base_ebitda, "Base EBITDA")
    is_positive(base_multiple, "Base multiple")
    for step in steps:
        is_finite_number(step, "Sensitivity step")
        if step <= -100:
            raise ValidationError("Sensitivity steps must be above -100%", "steps")

    base_valuation = base_ebitda * base_multiple
    grid = []

    for multiple_change in steps:
        adjusted_multiple = base_multiple * (1 + multiple_change / 100)
        cells = {}
        for ebitda_change in steps:
            adjusted_ebitda = base_ebitda * (1 + ebitda_change / 100)
            new_valuation = adjusted_ebitda * adjusted_multiple
            change = (new_valuation - base_valuation) / base_valuation * 100
            cells[ebitda_change] = round(change, 1)
        grid.append({"multiple_change": multiple_change, "cells": cells})

    return grid


def calculate_ebitda_growth(ebitda_series: Sequence[float]) -> Optional[float]:
    """
    Calculate total EBITDA growth across a projection, as a percentage.

    Returns:
        Growth from the first to the last year, rounded to 2 decimals;
        0.0 for a single year, None when the first year is not positive
    """
    is_valid_array(ebitda_series, "EBITDA")
    if len(ebitda_series) < 2:
        return 0.0
    if ebitda_series[0] <= 0:
        return None
    return round((ebitda_series[-1] / ebitda_series[0] - 1) * 100, 2)


def value_creation_series(
    projected: Sequence[YearMetrics], exit_multiple: float
) -> List[Dict]:
    """Enterprise value each projected year would fetch at the exit multiple."""
    is_positive(exit_multiple, "Exit multiple")
    return [
        {
            "year": row.year,
            "ebitda": row.ebitda,
            "multiple": exit_multiple,
            "enterprise_value": round(row.ebitda * exit_multiple, 2),
        }
        for row in sorted(projected, key=lambda row: row.year)
    ]
