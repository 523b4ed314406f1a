"""
Calculation Errors

One tagged error taxonomy for the whole engine. Callers can branch on
``error.kind`` instead of on the exception class.
"""

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Error kinds raised by the calculation engine."""

    invalid_input = "InvalidInput"
    non_finite_result = "NonFiniteResult"
    irr_divergence = "IRRDivergence"
    irr_non_convergent = "IRRNonConvergent"


class FinancialError(ValueError):
    """Base error for every failure raised by the engine."""

    def __init__(self, message: str, kind: ErrorKind, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.field = field

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind.value, "field": self.field}


class ValidationError(FinancialError):
    """Input rejected before any calculation ran."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, ErrorKind.invalid_input, field)


class CalculationError(FinancialError):
    """Well-formed input that produced a pathological result."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.non_finite_result):
        super().__init__(message, kind)
