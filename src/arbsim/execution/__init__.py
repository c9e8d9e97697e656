"""Execution module for trade simulation and risk control."""

from arbsim.execution.risk import RiskCheckResult, RiskLimits, RiskManager
from arbsim.execution.simulator import SimulatorConfig, SimulatorStats, TradeSimulator


__all__ = [
    "RiskCheckResult",
    "RiskLimits",
    "RiskManager",
    "SimulatorConfig",
    "SimulatorStats",
    "TradeSimulator",
]
