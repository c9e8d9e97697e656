"""Utility functions for the arbitrage simulator."""

from arbsim.utils.math import (
    EPSILON,
    clamp,
    coerce_float,
    format_profit,
    format_usd,
    safe_divide,
)
from arbsim.utils.time import (
    LatencyTimer,
    format_duration_us,
    get_timestamp_ms,
    get_timestamp_us,
)


__all__ = [
    "EPSILON",
    "LatencyTimer",
    "clamp",
    "coerce_float",
    "format_duration_us",
    "format_profit",
    "format_usd",
    "get_timestamp_ms",
    "get_timestamp_us",
    "safe_divide",
]
