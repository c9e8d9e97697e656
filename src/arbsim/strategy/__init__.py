"""Strategy module for spread detection and cost estimation."""

from arbsim.strategy.costs import CostModel
from arbsim.strategy.scanner import ArbitrageScanner, ScanStats, compute_opportunity


__all__ = [
    "ArbitrageScanner",
    "CostModel",
    "ScanStats",
    "compute_opportunity",
]
