"""
Portfolio risk metrics.

Pure functions over the trade history and equity curve. The ledger
calls ``compute_risk_metrics`` after every update; nothing here holds
state.
"""

from collections.abc import Sequence

from arbsim.config.constants import RISK_FREE_RATE
from arbsim.core.types import RiskMetrics, TradeRecord
from arbsim.utils.math import population_std, safe_divide


# Return-series metrics need at least this many observations
MIN_RETURN_OBSERVATIONS = 2


def max_drawdown_pct(values: Sequence[float], initial_peak: float | None = None) -> float:
    """
    Largest peak-to-trough decline, in percent.

    Walks ``values`` chronologically, tracking the running maximum.

    Args:
        values: Equity curve values, oldest first.
        initial_peak: Peak to start from; defaults to the first value.

    Example:
        >>> max_drawdown_pct([100.0, 120.0, 90.0, 130.0])
        25.0
    """
    if not values:
        return 0.0

    peak = values[0] if initial_peak is None else initial_peak
    worst = 0.0
    for value in values:
        if value > peak:
            peak = value
        drawdown = safe_divide(peak - value, peak) * 100.0
        if drawdown > worst:
            worst = drawdown
    return worst


def win_rate(trades: Sequence[TradeRecord]) -> float:
    """Percentage of trades that succeeded with positive net profit."""
    if not trades:
        return 0.0
    wins = sum(1 for t in trades if t.is_win)
    return wins / len(trades) * 100.0


def sharpe_ratio(avg_return: float, volatility: float, risk_free_rate: float = RISK_FREE_RATE) -> float:
    """Excess return per unit of volatility; 0.0 when volatility is zero."""
    if volatility <= 0:
        return 0.0
    return (avg_return - risk_free_rate) / volatility


def compute_risk_metrics(
    trades: Sequence[TradeRecord],
    equity_values: Sequence[float],
    returns: Sequence[float],
    total_value: float,
    starting_balance: float,
    risk_free_rate: float = RISK_FREE_RATE,
) -> RiskMetrics:
    """
    Derive risk metrics from ledger history.

    Args:
        trades: Trade history, oldest first.
        equity_values: Equity curve values, oldest first.
        returns: Per-snapshot returns in percent.
        total_value: Current portfolio value.
        starting_balance: Balance at the last reset.
        risk_free_rate: Per-period risk-free return in percent.

    Returns:
        RiskMetrics. Every field stays at its default until
        ``MIN_RETURN_OBSERVATIONS`` returns exist.
    """
    if len(returns) < MIN_RETURN_OBSERVATIONS:
        return RiskMetrics()

    avg_return = sum(returns) / len(returns)
    volatility = population_std(returns)
    sharpe = sharpe_ratio(avg_return, volatility, risk_free_rate)

    profits = [t.net_profit for t in trades]

    return RiskMetrics(
        total_return_pct=safe_divide(total_value - starting_balance, starting_balance) * 100.0,
        avg_daily_return=avg_return,
        volatility=volatility,
        sharpe_ratio=sharpe,
        max_drawdown_pct=max_drawdown_pct(equity_values, initial_peak=starting_balance),
        win_rate=win_rate(trades),
        best_trade=max(profits) if profits else 0.0,
        worst_trade=min(profits) if profits else 0.0,
        total_trades=len(trades),
    )
