"""
Financial Calculation Engine

Core calculation modules for M&A deal analysis.
All functions are pure: no I/O, no shared state, inputs never mutated.
"""

from mna_analyzer.calculations import (
    amortization,
    analysis,
    errors,
    irr,
    returns,
    validators,
    valuation,
)

__all__ = [
    "amortization",
    "analysis",
    "errors",
    "irr",
    "returns",
    "validators",
    "valuation",
]
