"""
Risk management for simulated trading.

Caps the number of trade attempts per calendar day. Counters roll over
when the date changes.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from arbsim.config.constants import MAX_DAILY_TRADES
from arbsim.core.types import TradeRecord


logger = logging.getLogger(__name__)


@dataclass
class RiskState:
    """Current risk management state."""

    daily_pnl: float = 0.0
    daily_trades: int = 0
    current_date: date = field(default_factory=date.today)

    def reset_daily(self, today: date | None = None) -> None:
        """Reset daily counters."""
        self.daily_pnl = 0.0
        self.daily_trades = 0
        self.current_date = today or date.today()


@dataclass
class RiskLimits:
    """Risk limit configuration."""

    max_daily_trades: int = MAX_DAILY_TRADES


class RiskCheckResult:
    """Result of a risk check."""

    __slots__ = ("passed", "reason")

    def __init__(self, passed: bool, reason: str = "") -> None:
        self.passed = passed
        self.reason = reason

    def __bool__(self) -> bool:
        return self.passed

    def __repr__(self) -> str:
        return f"RiskCheckResult(passed={self.passed}, reason={self.reason!r})"


class RiskManager:
    """
    Gatekeeper for the trading loop.

    Every attempt, failed ones included, counts against the daily limit.
    """

    def __init__(
        self,
        limits: RiskLimits | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Initialize risk manager.

        Args:
            limits: Risk limit configuration.
            today: Date provider, replaceable in tests.
        """
        self._limits = limits or RiskLimits()
        self._today = today
        self._state = RiskState(current_date=today())

    def _roll_date(self) -> None:
        today = self._today()
        if today != self._state.current_date:
            logger.info(
                f"New trading day {today.isoformat()}: "
                f"{self._state.daily_trades} trades yesterday, PnL {self._state.daily_pnl:+.2f}"
            )
            self._state.reset_daily(today)

    def check_trade(self) -> RiskCheckResult:
        """
        Check whether another trade attempt is allowed now.

        Returns:
            RiskCheckResult with pass/fail and reason.
        """
        self._roll_date()

        if self._state.daily_trades >= self._limits.max_daily_trades:
            return RiskCheckResult(False, "Daily trade limit reached")

        return RiskCheckResult(True)

    def record_trade(self, record: TradeRecord) -> None:
        """
        Count a completed trade attempt.

        Args:
            record: The executed (successful or failed) trade.
        """
        self._roll_date()
        self._state.daily_trades += 1
        self._state.daily_pnl += record.net_profit

        logger.debug(
            f"Trade recorded: PnL={record.net_profit:+.2f}, "
            f"Daily PnL={self._state.daily_pnl:+.2f}, Trades today={self._state.daily_trades}"
        )

    def reset(self) -> None:
        """Clear all counters."""
        self._state = RiskState(current_date=self._today())

    @property
    def state(self) -> RiskState:
        """Get current risk state."""
        return self._state

    @property
    def limits(self) -> RiskLimits:
        """Get risk limits."""
        return self._limits

    @property
    def trades_remaining(self) -> int:
        """Trade attempts left today."""
        self._roll_date()
        return max(0, self._limits.max_daily_trades - self._state.daily_trades)

    def to_dict(self) -> dict[str, float | int]:
        """Convert state to dict for status reporting."""
        return {
            "daily_pnl": self._state.daily_pnl,
            "daily_trades": self._state.daily_trades,
            "max_daily_trades": self._limits.max_daily_trades,
            "trades_remaining": self.trades_remaining,
        }
