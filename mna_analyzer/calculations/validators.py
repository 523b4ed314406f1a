"""
Input Validators

Guards run at the top of every public calculation so malformed numbers
never reach the numeric code.
"""

import math
import numbers
from typing import Any, Sequence

from mna_analyzer.calculations.errors import ValidationError


def _is_real(value: Any) -> bool:
    # bool is an int subclass; True/False are never valid amounts
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def is_finite_number(value: Any, field_name: str) -> None:
    """Fail unless value is a finite real number."""
    if not _is_real(value) or not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a valid number", field_name)


def is_positive(value: Any, field_name: str) -> None:
    """Fail unless value is finite and strictly greater than zero."""
    is_finite_number(value, field_name)
    if value <= 0:
        raise ValidationError(f"{field_name} must be positive", field_name)


def is_valid_rate(value: Any, field_name: str) -> None:
    """
    Fail unless value is a percentage between 0 and 100 inclusive.

    Rates are percentages (5 means 5%), not fractions.
    """
    is_finite_number(value, field_name)
    if value < 0 or value > 100:
        raise ValidationError(f"{field_name} must be between 0 and 100", field_name)


def is_whole_number(value: Any, field_name: str) -> None:
    """Fail unless value is a finite number with no fractional part."""
    is_finite_number(value, field_name)
    if value != int(value):
        raise ValidationError(f"{field_name} must be a whole number", field_name)


def is_valid_array(values: Sequence[Any], field_name: str) -> None:
    """
    Fail unless values is a non-empty sequence of finite numbers.

    Args:
        values: Sequence to check (list, tuple or 1-d numpy array)
        field_name: Name used in the error message
    """
    if isinstance(values, (str, bytes)) or not hasattr(values, "__len__"):
        raise ValidationError(f"{field_name} must be an array", field_name)
    if len(values) == 0:
        raise ValidationError(f"{field_name} cannot be empty", field_name)
    for index, value in enumerate(values):
        if not _is_real(value) or not math.isfinite(value):
            raise ValidationError(
                f"{field_name}[{index}] must be a finite number", field_name
            )
