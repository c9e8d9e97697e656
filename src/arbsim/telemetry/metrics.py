"""
Metrics collection for performance monitoring.

Tracks scan latency, event counters, and trading statistics with
efficient in-memory storage.
"""

import time
from collections import deque
from dataclasses import dataclass

from arbsim.core.types import TradeRecord


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class TradingStats:
    """Trading performance statistics."""

    scans: int = 0
    opportunities_found: int = 0
    best_spread_pct: float = 0.0
    trades_attempted: int = 0
    trades_successful: int = 0
    trades_failed: int = 0
    gross_profit: float = 0.0
    total_costs: float = 0.0
    net_profit: float = 0.0

    @property
    def success_rate(self) -> float:
        """Share of attempts that succeeded."""
        return self.trades_successful / self.trades_attempted if self.trades_attempted else 0.0


class MetricsCollector:
    """
    Collects and aggregates engine metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - P&L accumulation
    """

    def __init__(self, latency_window_size: int = 1000) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._trading_stats = TradingStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "market_refresh", "scan").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)
        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_scan(self, opportunities: int, best_spread_pct: float = 0.0) -> None:
        """
        Record a completed scan cycle.

        Args:
            opportunities: Number of opportunities found.
            best_spread_pct: Best spread as a percentage.
        """
        self._trading_stats.scans += 1
        self._trading_stats.opportunities_found += opportunities
        if best_spread_pct > self._trading_stats.best_spread_pct:
            self._trading_stats.best_spread_pct = best_spread_pct

    def record_trade(self, record: TradeRecord) -> None:
        """Record an executed trade attempt."""
        stats = self._trading_stats
        stats.trades_attempted += 1
        if record.success:
            stats.trades_successful += 1
        else:
            stats.trades_failed += 1
        stats.gross_profit += record.gross_profit
        stats.total_costs += record.costs.total
        stats.net_profit += record.net_profit

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    @property
    def trading_stats(self) -> TradingStats:
        """Get trading statistics."""
        return self._trading_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            Dict representation of all metrics.
        """
        stats = self._trading_stats
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": s.min_us,
                    "max": s.max_us,
                    "avg": s.avg_us,
                    "p50": s.p50_us,
                    "p99": s.p99_us,
                    "count": s.count,
                }
                for name, s in ((n, self.get_latency_stats(n)) for n in self._latencies)
            },
            "trading": {
                "scans": stats.scans,
                "opportunities_found": stats.opportunities_found,
                "best_spread_pct": stats.best_spread_pct,
                "trades_attempted": stats.trades_attempted,
                "trades_successful": stats.trades_successful,
                "trades_failed": stats.trades_failed,
                "gross_profit": stats.gross_profit,
                "total_costs": stats.total_costs,
                "net_profit": stats.net_profit,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._trading_stats = TradingStats()
        self._start_time = time.time()
