"""
CLI reporter for the headless runner.

Renders a status line for periodic logging and a terminal panel plus
session summary at shutdown.
"""

import sys
from datetime import timedelta
from typing import Any, TextIO

from arbsim import __version__
from arbsim.telemetry.metrics import MetricsCollector
from arbsim.utils.math import format_profit, format_usd
from arbsim.utils.time import format_duration_us


class CLIReporter:
    """
    Terminal status output for a bot run.

    Displays a formatted status panel with:
    - Market data source and status
    - Scan latency and opportunity counts
    - Trade outcomes
    - Portfolio value and P&L
    """

    BOX_TL = "╔"
    BOX_TR = "╗"
    BOX_BL = "╚"
    BOX_BR = "╝"
    BOX_H = "═"
    BOX_V = "║"
    BOX_LT = "╠"
    BOX_RT = "╣"
    THIN_V = "│"

    def __init__(
        self,
        metrics: MetricsCollector,
        width: int = 72,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            metrics: Metrics collector instance.
            width: Dashboard width in characters.
            output: Output stream (default: stdout).
        """
        self._metrics = metrics
        self._width = width
        self._output = output or sys.stdout
        self._status: dict[str, Any] = {}

    def set_status(self, status: dict[str, Any]) -> None:
        """Update display state from ``ArbitrageBot.get_status()``."""
        self._status = status

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        td = timedelta(seconds=int(seconds))
        hours, remainder = divmod(int(td.total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _pad(self, text: str, width: int) -> str:
        """Pad text to width."""
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        """Create a line with borders."""
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        """Create a horizontal divider."""
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _portfolio(self) -> dict[str, Any]:
        return self._status.get("portfolio", {})

    def render(self) -> str:
        """
        Render the dashboard.

        Returns:
            Formatted dashboard string.
        """
        stats = self._metrics.trading_stats
        scan_latency = self._metrics.get_latency_stats("scan_cycle")
        market = self._status.get("market", {})
        portfolio = self._portfolio()
        performance = portfolio.get("metrics", {})

        running = "RUNNING" if self._status.get("running") else "STOPPED"
        uptime = self._format_uptime(self._metrics.uptime_seconds)

        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]
        lines.append(self._line(f"  ARBITRAGE SIMULATOR v{__version__} | {running}"))
        lines.append(self._divider())

        lines.append(
            self._line(
                f"  Uptime: {uptime}  |  Data: {market.get('dataSource', '---')}"
                f"  |  Market: {market.get('status', '---')}"
            )
        )
        lines.append(self._divider())

        col1, col2, col3 = "SCANNING", "TRADES", "PORTFOLIO"
        lines.append(self._line(f"  {col1:<20}{self.THIN_V}  {col2:<18}{self.THIN_V}  {col3}"))

        scan_avg = format_duration_us(int(scan_latency.avg_us)) if scan_latency.count else "---"
        value = portfolio.get("totalValue", 0.0)
        cash = portfolio.get("cashBalance", 0.0)
        rows = (
            (
                f"Scans: {stats.scans}",
                f"Attempted: {stats.trades_attempted}",
                f"Value: {format_usd(value)}",
            ),
            (
                f"Found: {stats.opportunities_found}",
                f"Won: {stats.trades_successful}",
                f"Cash:  {format_usd(cash)}",
            ),
            (
                f"Latency: {scan_avg}",
                f"Failed: {stats.trades_failed}",
                f"Return: {format_profit(performance.get('totalReturn', 0.0))}",
            ),
        )
        for a, b, c in rows:
            lines.append(self._line(f"  {a:<20}{self.THIN_V}  {b:<18}{self.THIN_V}  {c}"))

        lines.append(self._divider())

        pnl = f"P&L: {stats.net_profit:+.2f} USD"
        best = f"Best spread: {stats.best_spread_pct:.3f}%"
        lines.append(self._line(f"  {pnl}  |  {best}"))
        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")

        return "\n".join(lines)

    def get_status_line(self) -> str:
        """Get a single-line status update."""
        stats = self._metrics.trading_stats
        value = self._portfolio().get("totalValue", 0.0)
        return (
            f"Scans: {stats.scans} | "
            f"Opp: {stats.opportunities_found} | "
            f"Trades: {stats.trades_successful}/{stats.trades_failed} | "
            f"PnL: {stats.net_profit:+.2f} | "
            f"Value: {value:,.2f}"
        )

    def print_summary(self) -> None:
        """Print the final panel followed by a session summary."""
        stats = self._metrics.trading_stats
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        portfolio = self._portfolio()
        performance = portfolio.get("metrics", {})

        print(self.render(), file=self._output)
        print("\n" + "=" * 50, file=self._output)
        print("  SESSION SUMMARY", file=self._output)
        print("=" * 50, file=self._output)
        print(f"  Uptime: {uptime}", file=self._output)
        print(file=self._output)
        print("  SCANNING:", file=self._output)
        print(f"    Scans:        {stats.scans:,}", file=self._output)
        print(f"    Found:        {stats.opportunities_found:,}", file=self._output)
        print(f"    Best spread:  {stats.best_spread_pct:.3f}%", file=self._output)
        print(file=self._output)
        print("  TRADES:", file=self._output)
        print(f"    Successful:   {stats.trades_successful:,}", file=self._output)
        print(f"    Failed:       {stats.trades_failed:,}", file=self._output)
        print(f"    Success rate: {stats.success_rate:.1%}", file=self._output)
        print(file=self._output)
        print("  P&L:", file=self._output)
        print(f"    Gross profit: {stats.gross_profit:+.2f} USD", file=self._output)
        print(f"    Costs:        {stats.total_costs:.2f} USD", file=self._output)
        print(f"    Net profit:   {stats.net_profit:+.2f} USD", file=self._output)
        if portfolio:
            print(f"    Final value:  {portfolio.get('totalValue', 0.0):,.2f} USD", file=self._output)
            print(f"    Max drawdown: {performance.get('maxDrawdown', 0.0):.2f}%", file=self._output)
        print("=" * 50, file=self._output)
