"""
Virtual portfolio ledger.

The ledger is the only mutable shared state in the simulator. It owns
the cash balance, token positions, trade history, equity curve and risk
metrics, and hands out read-only snapshots only. Every mutation runs
under one re-entrant lock so a reader never sees a half-applied trade.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from arbsim.config.constants import (
    DEFAULT_INITIAL_BALANCE,
    EQUITY_CURVE_CAPACITY,
    POSITION_ACCUMULATION_PCT,
    RECENT_HISTORY_LIMIT,
    RECENT_TRADES_LIMIT,
    REFERENCE_PRICES,
    RISK_FREE_RATE,
    SNAPSHOT_INTERVAL_MS,
    SNAPSHOT_VALUE_DELTA,
    STABLE_ALLOCATION,
    TRACKED_ASSETS,
    TRADE_HISTORY_CAPACITY,
)
from arbsim.core.types import (
    PortfolioSnapshot,
    PortfolioStatus,
    RiskMetrics,
    TradeRecord,
)
from arbsim.portfolio.metrics import compute_risk_metrics
from arbsim.utils.math import coerce_float, pct_change
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LedgerConfig:
    """Capacities, cadence, and valuation settings for the ledger."""

    default_balance: float = DEFAULT_INITIAL_BALANCE
    stable_allocation: Mapping[str, float] = field(default_factory=lambda: dict(STABLE_ALLOCATION))
    tracked_assets: tuple[str, ...] = TRACKED_ASSETS
    reference_prices: Mapping[str, float] = field(default_factory=lambda: dict(REFERENCE_PRICES))
    trade_capacity: int = TRADE_HISTORY_CAPACITY
    curve_capacity: int = EQUITY_CURVE_CAPACITY
    snapshot_interval_ms: int = SNAPSHOT_INTERVAL_MS
    snapshot_value_delta: float = SNAPSHOT_VALUE_DELTA
    accumulation_pct: float = POSITION_ACCUMULATION_PCT
    risk_free_rate: float = RISK_FREE_RATE


class PortfolioLedger:
    """
    Authoritative state of the virtual portfolio.

    Total value is cash plus non-stable positions at reference prices.
    Stable holdings are the cash split across stablecoins and are not
    counted twice.
    """

    def __init__(
        self,
        initial_balance: float | None = None,
        config: LedgerConfig | None = None,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize ledger.

        Args:
            initial_balance: Starting cash; defaults to the configured balance.
            config: Ledger configuration.
            clock: Millisecond clock.
        """
        self._config = config or LedgerConfig()
        self._clock = clock
        self._lock = threading.RLock()

        self._stable_assets = frozenset(self._config.stable_allocation)
        self._starting_balance = 0.0
        self._cash = 0.0
        self._positions: dict[str, float] = {}
        self._total_value = 0.0
        self._trades: deque[TradeRecord] = deque(maxlen=self._config.trade_capacity)
        self._curve: deque[PortfolioSnapshot] = deque(maxlen=self._config.curve_capacity)
        self._returns: deque[float] = deque(maxlen=self._config.curve_capacity)
        self._metrics = RiskMetrics()
        self._last_update_ms = 0

        self.reset(initial_balance)

    # =========================================================================
    # Mutations
    # =========================================================================

    def reset(self, new_balance: float | None = None) -> PortfolioSnapshot:
        """
        Hard reset to a fresh balance.

        Cash becomes the balance, stable positions follow the configured
        allocation, history and curve are cleared, and one seed snapshot
        is recorded.

        Args:
            new_balance: New starting balance; invalid values fall back to
                the configured default.

        Returns:
            The seed snapshot.
        """
        balance = coerce_float(new_balance, self._config.default_balance)
        if balance <= 0:
            logger.warning(
                f"Invalid reset balance {new_balance!r}, using {self._config.default_balance}"
            )
            balance = self._config.default_balance

        with self._lock:
            now = self._clock()
            self._starting_balance = balance
            self._cash = balance
            self._positions = {asset: 0.0 for asset in self._config.tracked_assets}
            for asset, share in self._config.stable_allocation.items():
                self._positions[asset] = balance * share

            self._trades.clear()
            self._curve.clear()
            self._returns.clear()
            self._total_value = self._value()
            self._metrics = RiskMetrics()
            self._last_update_ms = now

            seed = self._snapshot(now, daily_return_pct=0.0)
            self._curve.append(seed)

        logger.info(f"Portfolio reset with ${balance:,.2f}")
        return seed

    def apply_trade(self, record: TradeRecord) -> TradeRecord:
        """
        Apply a simulated trade as one state transition.

        Adjusts cash by the net profit (never below zero), accumulates a
        small base-asset position on successful trades, appends the
        record, revalues the portfolio, and refreshes snapshot and metrics.

        Args:
            record: Trade produced by the simulator.

        Returns:
            The stored record, with ``portfolio_value_after`` set to the
            revalued total.
        """
        with self._lock:
            now = self._clock()
            new_cash = self._cash + record.net_profit
            if new_cash < 0:
                logger.warning(f"Trade {record.id} would overdraw cash by {-new_cash:.2f}, clamped to 0")
                new_cash = 0.0
            self._cash = new_cash

            if record.success and record.base_asset not in self._stable_assets:
                self._accumulate(record.base_asset, record.trade_amount)

            self._total_value = self._value()

            stored = record
            if record.portfolio_value_after != self._total_value:
                stored = replace(record, portfolio_value_after=self._total_value)
            self._trades.append(stored)

            self._maybe_snapshot(now)
            self._recompute_metrics()
            self._last_update_ms = now

        logger.info(
            f"Trade applied: {stored.pair} net=${stored.net_profit:+.2f} "
            f"portfolio=${stored.portfolio_value_after:,.2f}"
        )
        return stored

    def execute(self, simulate: Callable[[float], TradeRecord | None]) -> TradeRecord | None:
        """
        Simulate and apply a trade atomically.

        ``simulate`` receives the current total value and returns a record
        or None; both steps run under the ledger lock.
        """
        with self._lock:
            record = simulate(self._total_value)
            if record is None:
                return None
            return self.apply_trade(record)

    # =========================================================================
    # Internals (callers hold the lock)
    # =========================================================================

    def _accumulate(self, asset: str, notional: float) -> None:
        """Move a share of notional from stable holdings into ``asset``."""
        price = self._config.reference_prices.get(asset, 0.0)
        if price <= 0:
            logger.warning(f"No reference price for {asset}, skipping position update")
            return

        remaining = notional * self._config.accumulation_pct
        wanted = remaining
        for stable in self._config.stable_allocation:
            held = self._positions.get(stable, 0.0)
            take = min(remaining, held)
            self._positions[stable] = held - take
            remaining -= take
            if remaining <= 0:
                break

        moved = wanted - remaining
        if moved > 0:
            self._positions[asset] = self._positions.get(asset, 0.0) + moved / price

    def _value(self) -> float:
        """Cash plus non-stable positions at reference prices."""
        total = self._cash
        for asset, qty in self._positions.items():
            if asset in self._stable_assets or qty <= 0:
                continue
            total += qty * self._config.reference_prices.get(asset, 0.0)
        return total

    def _snapshot(self, now: int, daily_return_pct: float) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            timestamp_ms=now,
            total_value=self._total_value,
            cash_balance=self._cash,
            positions=self._positions,
            daily_return_pct=daily_return_pct,
            trade_count=len(self._trades),
        )

    def _maybe_snapshot(self, now: int) -> None:
        """Append a snapshot when enough time passed OR value moved enough."""
        last = self._curve[-1]
        elapsed = now - last.timestamp_ms
        moved = abs(self._total_value - last.total_value)

        if elapsed > self._config.snapshot_interval_ms or moved > self._config.snapshot_value_delta:
            daily_return = pct_change(self._total_value, last.total_value)
            self._curve.append(self._snapshot(now, daily_return))
            self._returns.append(daily_return)

    def _recompute_metrics(self) -> None:
        self._metrics = compute_risk_metrics(
            trades=list(self._trades),
            equity_values=[s.total_value for s in self._curve],
            returns=list(self._returns),
            total_value=self._total_value,
            starting_balance=self._starting_balance,
            risk_free_rate=self._config.risk_free_rate,
        )

    # =========================================================================
    # Read-only views
    # =========================================================================

    def get_status(
        self,
        recent_trades: int = RECENT_TRADES_LIMIT,
        recent_history: int = RECENT_HISTORY_LIMIT,
    ) -> PortfolioStatus:
        """
        Read-only projection of the portfolio.

        Args:
            recent_trades: Number of latest trades, newest first.
            recent_history: Number of latest equity curve points.
        """
        with self._lock:
            trades = list(self._trades)[-recent_trades:] if recent_trades > 0 else []
            history = list(self._curve)[-recent_history:] if recent_history > 0 else []
            return PortfolioStatus(
                total_value=self._total_value,
                cash_balance=self._cash,
                starting_balance=self._starting_balance,
                positions=self._positions,
                metrics=self._metrics,
                recent_trades=tuple(reversed(trades)),
                history=tuple(history),
                last_update_ms=self._last_update_ms,
            )

    def report(self) -> dict[str, Any]:
        """Full performance report as plain data."""
        with self._lock:
            metrics = self._metrics
            return {
                "summary": {
                    "startingBalance": self._starting_balance,
                    "currentValue": self._total_value,
                    "cashBalance": self._cash,
                    "totalPnL": self._total_value - self._starting_balance,
                    "totalReturn": metrics.total_return_pct,
                    "totalTrades": len(self._trades),
                },
                "performance": metrics.to_dict(),
                "positions": dict(self._positions),
                "trades": [t.to_dict() for t in self._trades],
                "history": [s.to_dict() for s in self._curve],
            }

    @property
    def total_value(self) -> float:
        """Current total portfolio value."""
        with self._lock:
            return self._total_value

    @property
    def cash_balance(self) -> float:
        """Current cash balance."""
        with self._lock:
            return self._cash

    @property
    def starting_balance(self) -> float:
        """Balance at the last reset."""
        return self._starting_balance

    @property
    def positions(self) -> dict[str, float]:
        """Copy of current positions."""
        with self._lock:
            return dict(self._positions)

    @property
    def metrics(self) -> RiskMetrics:
        """Latest risk metrics."""
        return self._metrics

    @property
    def trades(self) -> tuple[TradeRecord, ...]:
        """Trade history, oldest first."""
        with self._lock:
            return tuple(self._trades)

    @property
    def equity_curve(self) -> tuple[PortfolioSnapshot, ...]:
        """Equity curve, oldest first."""
        with self._lock:
            return tuple(self._curve)

    @property
    def last_snapshot(self) -> PortfolioSnapshot:
        """Most recent equity curve point."""
        with self._lock:
            return self._curve[-1]

    @property
    def config(self) -> LedgerConfig:
        """Ledger configuration."""
        return self._config
