"""
Type definitions for the arbitrage simulator.

This module contains all dataclasses and enums shared across the
application. Using slots=True for memory efficiency and frozen=True
so that records handed to callers can never be mutated.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from arbsim.utils.math import coerce_float


logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class DataSource(str, Enum):
    """Origin of the quotes used in a scan cycle."""

    LIVE = "live"
    SYNTHETIC = "synthetic"
    FALLBACK = "fallback"


class MarketStatus(str, Enum):
    """Overall market state reported with each scan."""

    ACTIVE = "active"
    DEGRADED = "degraded"
    IDLE = "idle"


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Quote:
    """
    Top-of-book quote for one symbol on one exchange.

    Produced fresh every scan cycle and never mutated.
    """

    exchange: str
    symbol: str
    bid: float
    ask: float
    timestamp_ms: int

    @property
    def mid(self) -> float:
        """Mid price."""
        return (self.bid + self.ask) / 2

    @property
    def spread_pct(self) -> float:
        """Bid-ask spread as a fraction of mid price."""
        mid = self.mid
        return (self.ask - self.bid) / mid if mid > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "exchange": self.exchange,
            "symbol": self.symbol,
            "bid": self.bid,
            "ask": self.ask,
            "timestamp": self.timestamp_ms,
        }


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    Cross-exchange arbitrage opportunity.

    Buy on ``buy_exchange`` at its ask, sell on ``sell_exchange`` at its bid.
    ``spread_pct`` is a fraction of the buy price.
    """

    symbol: str
    buy_exchange: str
    sell_exchange: str
    buy_price: float
    sell_price: float
    spread_abs: float
    spread_pct: float
    notional: float
    estimated_profit: float
    timestamp_ms: int

    @property
    def profit_pct(self) -> float:
        """Spread as a percentage."""
        return self.spread_pct * 100.0

    @property
    def spread_bps(self) -> float:
        """Spread in basis points."""
        return self.spread_pct * 10_000.0

    @property
    def base_asset(self) -> str:
        """Base asset of the traded pair."""
        return self.symbol.partition("/")[0]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "symbol": self.symbol,
            "buyExchange": self.buy_exchange,
            "sellExchange": self.sell_exchange,
            "buyPrice": self.buy_price,
            "sellPrice": self.sell_price,
            "spreadAbs": self.spread_abs,
            "spreadPct": self.profit_pct,
            "notional": self.notional,
            "estimatedProfit": self.estimated_profit,
            "timestamp": self.timestamp_ms,
        }


@dataclass(slots=True, frozen=True)
class MarketSummary:
    """Metadata published alongside every scan."""

    status: MarketStatus
    total_symbols: int
    avg_change_24h: float
    last_update_ms: int
    data_source: DataSource
    next_update_ms: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "status": self.status.value,
            "totalTokens": self.total_symbols,
            "avgChange24h": self.avg_change_24h,
            "lastUpdate": self.last_update_ms,
            "dataSource": self.data_source.value,
            "nextUpdate": self.next_update_ms,
        }


# =============================================================================
# Trade Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class CostBreakdown:
    """
    Execution costs for a simulated trade.

    Components are clamped to be non-negative and ``total`` is always
    derived from them.
    """

    trading_fee: float = 0.0
    slippage: float = 0.0
    gas_cost: float = 0.0
    total: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "trading_fee", max(0.0, coerce_float(self.trading_fee)))
        object.__setattr__(self, "slippage", max(0.0, coerce_float(self.slippage)))
        object.__setattr__(self, "gas_cost", max(0.0, coerce_float(self.gas_cost)))
        object.__setattr__(self, "total", self.trading_fee + self.slippage + self.gas_cost)

    def to_dict(self) -> dict[str, float]:
        """Convert to dict for broadcasting."""
        return {
            "tradingFee": self.trading_fee,
            "slippage": self.slippage,
            "gasCost": self.gas_cost,
            "total": self.total,
        }


@dataclass(slots=True, frozen=True)
class TradeRecord:
    """
    Immutable record of one simulated trade attempt.

    Failed attempts are recorded too; they carry the sunk gas cost as a
    negative ``net_profit``. Malformed numbers (NaN, infinities, None,
    non-numeric) are coerced to safe defaults on construction and each
    one is logged; negative trade amounts are clamped to zero.
    """

    id: str
    timestamp_ms: int
    pair: str
    buy_exchange: str
    sell_exchange: str
    trade_amount: float
    gross_profit: float
    net_profit: float
    costs: CostBreakdown
    success: bool
    portfolio_value_before: float
    portfolio_value_after: float

    def __post_init__(self) -> None:
        for name in ("trade_amount", "gross_profit", "net_profit", "portfolio_value_before"):
            value = getattr(self, name)
            if not _is_clean_number(value):
                clean = coerce_float(value)
                logger.warning(f"Trade field {name}={value!r} normalized to {clean}")
                object.__setattr__(self, name, clean)

        if not _is_clean_number(self.portfolio_value_after):
            clean = self.portfolio_value_before + self.net_profit
            logger.warning(
                f"Trade field portfolio_value_after={self.portfolio_value_after!r} "
                f"normalized to {clean}"
            )
            object.__setattr__(self, "portfolio_value_after", clean)

        if self.trade_amount < 0:
            logger.warning(f"Negative trade amount {self.trade_amount} clamped to 0")
            object.__setattr__(self, "trade_amount", 0.0)

        if not isinstance(self.costs, CostBreakdown):
            object.__setattr__(self, "costs", CostBreakdown())

    @classmethod
    def create(
        cls,
        *,
        pair: str,
        buy_exchange: str,
        sell_exchange: str,
        trade_amount: Any,
        gross_profit: Any,
        net_profit: Any,
        costs: CostBreakdown | None,
        success: bool,
        portfolio_value_before: Any,
        portfolio_value_after: Any = None,
        timestamp_ms: int,
        trade_id: str | None = None,
    ) -> "TradeRecord":
        """
        Build a record with a fresh id.

        A missing ``portfolio_value_after`` is derived as ``before + net``.
        """
        if portfolio_value_after is None:
            portfolio_value_after = coerce_float(portfolio_value_before) + coerce_float(net_profit)

        return cls(
            id=trade_id or uuid4().hex[:12],
            timestamp_ms=int(timestamp_ms),
            pair=str(pair),
            buy_exchange=str(buy_exchange),
            sell_exchange=str(sell_exchange),
            trade_amount=trade_amount,
            gross_profit=gross_profit,
            net_profit=net_profit,
            costs=costs if costs is not None else CostBreakdown(),
            success=bool(success),
            portfolio_value_before=portfolio_value_before,
            portfolio_value_after=portfolio_value_after,
        )

    @property
    def base_asset(self) -> str:
        """Base asset of the traded pair."""
        return self.pair.partition("/")[0]

    @property
    def is_win(self) -> bool:
        """Successful and profitable."""
        return self.success and self.net_profit > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "id": self.id,
            "timestamp": self.timestamp_ms,
            "pair": self.pair,
            "buyExchange": self.buy_exchange,
            "sellExchange": self.sell_exchange,
            "tradeAmount": self.trade_amount,
            "grossProfit": self.gross_profit,
            "netProfit": self.net_profit,
            "costs": self.costs.to_dict(),
            "success": self.success,
            "portfolioValueBefore": self.portfolio_value_before,
            "portfolioValueAfter": self.portfolio_value_after,
        }


def _is_clean_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


# =============================================================================
# Portfolio Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class PortfolioSnapshot:
    """Point on the equity curve."""

    timestamp_ms: int
    total_value: float
    cash_balance: float
    positions: Mapping[str, float]
    daily_return_pct: float
    trade_count: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "timestamp": self.timestamp_ms,
            "totalValue": self.total_value,
            "cashBalance": self.cash_balance,
            "positions": dict(self.positions),
            "dailyReturn": self.daily_return_pct,
            "tradeCount": self.trade_count,
        }


@dataclass(slots=True, frozen=True)
class RiskMetrics:
    """Risk and performance metrics derived from ledger history."""

    total_return_pct: float = 0.0
    avg_daily_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown_pct: float = 0.0
    win_rate: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    total_trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "totalReturn": self.total_return_pct,
            "avgDailyReturn": self.avg_daily_return,
            "volatility": self.volatility,
            "sharpeRatio": self.sharpe_ratio,
            "maxDrawdown": self.max_drawdown_pct,
            "winRate": self.win_rate,
            "bestTrade": self.best_trade,
            "worstTrade": self.worst_trade,
            "totalTrades": self.total_trades,
        }


@dataclass(slots=True, frozen=True)
class PortfolioStatus:
    """
    Read-only projection of the ledger.

    ``recent_trades`` is newest first; ``history`` is chronological.
    """

    total_value: float
    cash_balance: float
    starting_balance: float
    positions: Mapping[str, float]
    metrics: RiskMetrics
    recent_trades: tuple[TradeRecord, ...]
    history: tuple[PortfolioSnapshot, ...]
    last_update_ms: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))

    @property
    def total_pnl(self) -> float:
        """Profit and loss against the starting balance."""
        return self.total_value - self.starting_balance

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for broadcasting."""
        return {
            "totalValue": self.total_value,
            "cashBalance": self.cash_balance,
            "startingBalance": self.starting_balance,
            "totalPnL": self.total_pnl,
            "positions": dict(self.positions),
            "metrics": self.metrics.to_dict(),
            "recentTrades": [t.to_dict() for t in self.recent_trades],
            "history": [s.to_dict() for s in self.history],
            "lastUpdate": self.last_update_ms,
        }
