"""Configuration module for the arbitrage simulator."""

from arbsim.config.constants import (
    DEFAULT_EXCHANGES,
    DEFAULT_SYMBOLS,
    REFERENCE_PRICES,
    STABLE_ALLOCATION,
)
from arbsim.config.settings import Settings, get_settings


__all__ = [
    "DEFAULT_EXCHANGES",
    "DEFAULT_SYMBOLS",
    "REFERENCE_PRICES",
    "STABLE_ALLOCATION",
    "Settings",
    "get_settings",
]
