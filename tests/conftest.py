"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mna_analyzer.calculations.valuation import YearMetrics
from mna_analyzer.calculations.analysis import DealInputs


@pytest.fixture
def historical():
    """Three years of history; LTM EBITDA is 500."""
    return [
        YearMetrics(year=2022, gross_revenue=1500, ebitda=400),
        YearMetrics(year=2024, gross_revenue=1900, ebitda=500),
        YearMetrics(year=2023, gross_revenue=1700, ebitda=450),
    ]


@pytest.fixture
def projected():
    """Four projected years."""
    return [
        YearMetrics(year=2025, gross_revenue=2100, ebitda=550),
        YearMetrics(year=2026, gross_revenue=2300, ebitda=600),
        YearMetrics(year=2027, gross_revenue=2500, ebitda=650),
        YearMetrics(year=2028, gross_revenue=2700, ebitda=700),
    ]


@pytest.fixture
def all_equity_deal(historical, projected):
    """6x entry and exit, no acquisition debt."""
    return DealInputs(
        historical=historical,
        projected=projected,
        multiple_paid=6,
        exit_multiple=6,
        discount_rate=0,
    )


@pytest.fixture
def leveraged_deal(historical, projected):
    """6x entry and exit, half financed with 8% five-year debt."""
    return DealInputs(
        historical=historical,
        projected=projected,
        multiple_paid=6,
        exit_multiple=6,
        debt_percent=50,
        interest_rate=8,
        term_years=5,
        discount_rate=10,
    )
