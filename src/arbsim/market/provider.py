"""
Quote provider with timeout and synthetic fallback.

Wraps a primary quote source with an enforced timeout. On timeout or
fetch failure the provider logs the problem and answers from the
synthetic fallback instead, so a refresh always completes within a
bounded time. The latest quotes per symbol are cached for the trading
loop and the API.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence

from arbsim.config.constants import FETCH_TIMEOUT, MARKET_REFRESH_INTERVAL
from arbsim.core.errors import FetchFailure, FetchTimeout
from arbsim.core.types import DataSource, MarketStatus, MarketSummary, Quote
from arbsim.market.sources import QuoteSource, SyntheticQuoteSource
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class QuoteProvider:
    """
    Fetches quotes for a set of symbols with guaranteed completion.

    The primary source is optional; without one every refresh is
    synthetic.
    """

    def __init__(
        self,
        symbols: Sequence[str],
        fallback: SyntheticQuoteSource,
        primary: QuoteSource | None = None,
        timeout: float = FETCH_TIMEOUT,
        refresh_interval: float = MARKET_REFRESH_INTERVAL,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize quote provider.

        Args:
            symbols: Pairs to refresh, formatted BASE/QUOTE.
            fallback: Synthetic source used when the primary fails.
            primary: Preferred source (e.g. live prices).
            timeout: Seconds allowed for one primary fetch.
            refresh_interval: Expected seconds between refreshes, for summaries.
            clock: Millisecond clock.
        """
        self._symbols = list(symbols)
        self._fallback = fallback
        self._primary = primary
        self._timeout = timeout
        self._refresh_interval = refresh_interval
        self._clock = clock

        self._lock = threading.Lock()
        self._cache: dict[str, list[Quote]] = {}
        self._last_source = DataSource.SYNTHETIC
        self._last_update_ms = 0
        self._fallback_count = 0

    async def fetch(self, symbol: str) -> tuple[list[Quote], DataSource]:
        """
        Fetch quotes for one symbol, falling back on any fetch error.

        Returns:
            Quotes (possibly empty) and the source that produced them.
        """
        if self._primary is not None:
            try:
                quotes = await self._fetch_primary(self._primary, symbol)
                return quotes, DataSource.LIVE
            except FetchFailure as e:
                self._fallback_count += 1
                logger.warning(f"Quote fetch for {symbol} failed ({e}), using fallback market data")

        try:
            quotes = await self._fallback.fetch_quotes(symbol)
        except FetchFailure as e:
            logger.error(f"Fallback quotes unavailable for {symbol}: {e}")
            return [], DataSource.FALLBACK

        source = DataSource.SYNTHETIC if self._primary is None else DataSource.FALLBACK
        return quotes, source

    async def _fetch_primary(self, primary: QuoteSource, symbol: str) -> list[Quote]:
        """Call the primary source under the timeout."""
        try:
            return await asyncio.wait_for(primary.fetch_quotes(symbol), self._timeout)
        except asyncio.TimeoutError as e:
            raise FetchTimeout(
                f"{primary.name} did not answer within {self._timeout}s",
                source=primary.name,
            ) from e

    async def refresh(self) -> dict[str, list[Quote]]:
        """
        Refresh all symbols and update the cache.

        Returns:
            Symbol to quotes for this refresh.
        """
        results: dict[str, list[Quote]] = {}
        sources: set[DataSource] = set()

        for symbol in self._symbols:
            quotes, source = await self.fetch(symbol)
            results[symbol] = quotes
            sources.add(source)

        with self._lock:
            self._cache.update(results)
            self._last_update_ms = self._clock()
            if DataSource.FALLBACK in sources:
                self._last_source = DataSource.FALLBACK
            elif DataSource.LIVE in sources:
                self._last_source = DataSource.LIVE
            else:
                self._last_source = DataSource.SYNTHETIC

        return results

    def cached_quotes(self, symbol: str | None = None) -> dict[str, list[Quote]]:
        """Copy of cached quotes, optionally for one symbol."""
        with self._lock:
            if symbol is not None:
                return {symbol: list(self._cache.get(symbol, []))}
            return {s: list(q) for s, q in self._cache.items()}

    def reference_price(self, asset: str) -> float:
        """Reference price from the fallback table, which live fetches keep current."""
        return self._fallback.reference_price(asset)

    def market_summary(self) -> MarketSummary:
        """Summarize the last refresh."""
        with self._lock:
            last_update = self._last_update_ms
            source = self._last_source
            populated = sum(1 for q in self._cache.values() if q)

        if not last_update:
            status = MarketStatus.IDLE
        elif source == DataSource.FALLBACK:
            status = MarketStatus.DEGRADED
        else:
            status = MarketStatus.ACTIVE

        change = self._primary_change() if source == DataSource.LIVE else self._fallback.avg_change_24h()

        return MarketSummary(
            status=status,
            total_symbols=populated,
            avg_change_24h=change,
            last_update_ms=last_update,
            data_source=source,
            next_update_ms=last_update + int(self._refresh_interval * 1000) if last_update else 0,
        )

    def _primary_change(self) -> float:
        avg = getattr(self._primary, "avg_change_24h", None)
        return float(avg()) if callable(avg) else 0.0

    @property
    def symbols(self) -> list[str]:
        """Configured symbols."""
        return list(self._symbols)

    @property
    def exchanges(self) -> list[str]:
        """Exchanges quoted by the fallback generator."""
        return self._fallback.exchanges

    @property
    def fallback_count(self) -> int:
        """Number of primary fetches that fell back."""
        return self._fallback_count

    async def close(self) -> None:
        """Release resources held by the primary source."""
        close = getattr(self._primary, "close", None)
        if close is not None:
            await close()
