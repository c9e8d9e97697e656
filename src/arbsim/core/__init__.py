"""Core module containing the event bus, errors, and type definitions."""

from arbsim.core.errors import (
    ArbitrageError,
    FetchFailure,
    FetchTimeout,
    InsufficientData,
    InvalidQuote,
)
from arbsim.core.event_bus import Event, EventBus, EventType
from arbsim.core.types import (
    CostBreakdown,
    DataSource,
    MarketStatus,
    MarketSummary,
    Opportunity,
    PortfolioSnapshot,
    PortfolioStatus,
    Quote,
    RiskMetrics,
    TradeRecord,
)


__all__ = [
    "ArbitrageError",
    "CostBreakdown",
    "DataSource",
    "Event",
    "EventBus",
    "EventType",
    "FetchFailure",
    "FetchTimeout",
    "InsufficientData",
    "InvalidQuote",
    "MarketStatus",
    "MarketSummary",
    "Opportunity",
    "PortfolioSnapshot",
    "PortfolioStatus",
    "Quote",
    "RiskMetrics",
    "TradeRecord",
]
