"""Telemetry module for logging, metrics, and reporting."""

from arbsim.telemetry.logger import AsyncLogger, setup_logging
from arbsim.telemetry.metrics import MetricsCollector
from arbsim.telemetry.reporter import CLIReporter


__all__ = [
    "AsyncLogger",
    "CLIReporter",
    "MetricsCollector",
    "setup_logging",
]
