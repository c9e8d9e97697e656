"""
Numeric helpers for portfolio and pricing calculations.

Provides guarded arithmetic so that malformed inputs degrade to safe
defaults instead of propagating NaN or infinity through the ledger.
"""

import math
import statistics
from collections.abc import Sequence
from typing import Any, Final


# Epsilon for floating point comparisons
EPSILON: Final[float] = 1e-10


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero.

    Returns:
        Result of division or default value.
    """
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def clamp(value: float, lower: float, upper: float) -> float:
    """
    Constrain a value to the closed interval [lower, upper].

    Example:
        >>> clamp(25.0, 5.0, 20.0)
        20.0
    """
    return max(lower, min(upper, value))


def coerce_float(value: Any, default: float = 0.0) -> float:
    """
    Convert an arbitrary value to a finite float.

    None, non-numeric values, NaN and infinities all map to ``default``.

    Example:
        >>> coerce_float("12.5")
        12.5
        >>> coerce_float(float("nan"), default=1.0)
        1.0
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def is_positive_finite(value: float) -> bool:
    """Check that a price is a usable positive number."""
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def population_std(values: Sequence[float]) -> float:
    """
    Population standard deviation.

    Returns 0.0 for fewer than two observations.
    """
    if len(values) < 2:
        return 0.0
    return statistics.pstdev(values)


def pct_change(new: float, old: float) -> float:
    """Percentage change from ``old`` to ``new``; 0.0 when ``old`` is zero."""
    return safe_divide(new - old, old) * 100.0


def format_profit(profit_pct: float) -> str:
    """
    Format profit percentage for display.

    Args:
        profit_pct: Profit as percentage.

    Returns:
        Signed string with four decimals.
    """
    sign = "+" if profit_pct >= 0 else ""
    return f"{sign}{profit_pct:.4f}%"


def format_usd(amount: float) -> str:
    """Format a USD amount with thousands separators."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
