"""
Mock quote sources and builders for testing.

Provides deterministic stand-ins for live quote sources plus helpers
that build quotes, opportunities, and trade records with sane defaults.
"""

import asyncio
from collections.abc import Mapping, Sequence

from arbsim.core.errors import FetchFailure
from arbsim.core.types import CostBreakdown, Opportunity, Quote, TradeRecord


BASE_TIME_MS = 1_704_067_200_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: int = BASE_TIME_MS) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def make_quote(
    exchange: str,
    bid: float,
    ask: float,
    symbol: str = "BNB/BUSD",
    timestamp_ms: int = BASE_TIME_MS,
) -> Quote:
    """Build a quote."""
    return Quote(exchange=exchange, symbol=symbol, bid=bid, ask=ask, timestamp_ms=timestamp_ms)


def make_opportunity(
    spread_pct: float = 0.01,
    symbol: str = "BNB/BUSD",
    buy_price: float = 100.0,
    notional: float = 1000.0,
) -> Opportunity:
    """Build an opportunity with the given fractional spread."""
    sell_price = buy_price * (1 + spread_pct)
    return Opportunity(
        symbol=symbol,
        buy_exchange="PancakeSwap",
        sell_exchange="Biswap",
        buy_price=buy_price,
        sell_price=sell_price,
        spread_abs=sell_price - buy_price,
        spread_pct=spread_pct,
        notional=notional,
        estimated_profit=notional * spread_pct,
        timestamp_ms=BASE_TIME_MS,
    )


def make_record(
    net_profit: float,
    success: bool = True,
    pair: str = "BNB/BUSD",
    trade_amount: float = 1000.0,
    portfolio_value_before: float = 10_000.0,
    gas_cost: float = 3.0,
    timestamp_ms: int = BASE_TIME_MS,
) -> TradeRecord:
    """Build a trade record."""
    return TradeRecord.create(
        pair=pair,
        buy_exchange="PancakeSwap",
        sell_exchange="Biswap",
        trade_amount=trade_amount,
        gross_profit=max(net_profit, 0.0) + gas_cost if success else 0.0,
        net_profit=net_profit,
        costs=CostBreakdown(gas_cost=gas_cost),
        success=success,
        portfolio_value_before=portfolio_value_before,
        timestamp_ms=timestamp_ms,
    )


class StaticQuoteSource:
    """
    Quote source that returns fixed quotes.

    Symbols without configured quotes raise FetchFailure.
    """

    name = "static"

    def __init__(self, quotes_by_symbol: Mapping[str, Sequence[Quote]]) -> None:
        self._quotes = {s: list(q) for s, q in quotes_by_symbol.items()}
        self.calls = 0

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        self.calls += 1
        if symbol not in self._quotes:
            raise FetchFailure(f"No quotes for {symbol}", source=self.name)
        return list(self._quotes[symbol])


class FailingQuoteSource:
    """Quote source that always fails."""

    name = "failing"

    def __init__(self, status: int | None = 503) -> None:
        self._status = status
        self.calls = 0

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        self.calls += 1
        raise FetchFailure("Service unavailable", source=self.name, status=self._status)


class SlowQuoteSource:
    """
    Quote source that stalls for ``delay`` seconds per call.

    The first ``fast_calls`` calls answer immediately; ``pending`` counts
    calls currently stalled.
    """

    name = "slow"

    def __init__(
        self,
        delay: float = 10.0,
        quotes_by_symbol: Mapping[str, Sequence[Quote]] | None = None,
        fast_calls: int = 0,
    ) -> None:
        self._delay = delay
        self._quotes = {s: list(q) for s, q in (quotes_by_symbol or {}).items()}
        self._fast_calls = fast_calls
        self.calls = 0
        self.pending = 0
        self.closed = False

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        self.calls += 1
        if self.calls > self._fast_calls:
            self.pending += 1
            try:
                await asyncio.sleep(self._delay)
            finally:
                self.pending -= 1
        return list(self._quotes.get(symbol, []))

    async def close(self) -> None:
        self.closed = True
