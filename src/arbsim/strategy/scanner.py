"""
Cross-exchange arbitrage scanner.

Evaluates every ordered (buy venue, sell venue) pair of quotes for a
symbol and returns the profitable ones ranked by estimated profit.
N is the number of exchanges, so the O(N^2) pass is deliberate.
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from arbsim.core.errors import InsufficientData, InvalidQuote
from arbsim.core.types import Opportunity, Quote
from arbsim.utils.math import is_positive_finite
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass
class ScanStats:
    """Statistics for opportunity scanning."""

    total_scans: int = 0
    quotes_seen: int = 0
    quotes_rejected: int = 0
    pairs_evaluated: int = 0
    opportunities_found: int = 0
    best_spread_pct: float = 0.0

    def record(self, opportunities: Sequence[Opportunity]) -> None:
        """Record the result of one scan."""
        self.total_scans += 1
        self.opportunities_found += len(opportunities)
        for opp in opportunities:
            if opp.spread_pct > self.best_spread_pct:
                self.best_spread_pct = opp.spread_pct


def validate_quote(quote: Quote) -> Quote:
    """
    Check that a quote has usable prices.

    Raises:
        InvalidQuote: On non-finite or non-positive bid/ask.
    """
    if not is_positive_finite(quote.bid):
        raise InvalidQuote(
            f"Invalid bid {quote.bid!r} from {quote.exchange} for {quote.symbol}",
            exchange=quote.exchange,
            symbol=quote.symbol,
        )
    if not is_positive_finite(quote.ask):
        raise InvalidQuote(
            f"Invalid ask {quote.ask!r} from {quote.exchange} for {quote.symbol}",
            exchange=quote.exchange,
            symbol=quote.symbol,
        )
    return quote


def compute_opportunity(
    buy: Quote,
    sell: Quote,
    notional: float,
    timestamp_ms: int | None = None,
) -> Opportunity | None:
    """
    Evaluate buying at ``buy.ask`` and selling at ``sell.bid``.

    Args:
        buy: Quote of the venue to buy on.
        sell: Quote of the venue to sell on.
        notional: Trade size in quote currency.
        timestamp_ms: Stamp for the result; defaults to now.

    Returns:
        Opportunity when the spread is positive, None otherwise.

    Raises:
        InvalidQuote: If the buy ask is not positive or the result is
            not a finite number.
    """
    if not buy.ask > 0:
        raise InvalidQuote(
            f"Non-positive ask {buy.ask!r} from {buy.exchange}",
            exchange=buy.exchange,
            symbol=buy.symbol,
        )

    spread = sell.bid - buy.ask
    spread_pct = spread / buy.ask
    estimated_profit = notional * spread_pct

    if not (math.isfinite(spread_pct) and math.isfinite(estimated_profit)):
        raise InvalidQuote(
            f"Non-finite spread between {buy.exchange} and {sell.exchange}",
            exchange=buy.exchange,
            symbol=buy.symbol,
        )

    if spread <= 0:
        return None

    return Opportunity(
        symbol=buy.symbol,
        buy_exchange=buy.exchange,
        sell_exchange=sell.exchange,
        buy_price=buy.ask,
        sell_price=sell.bid,
        spread_abs=spread,
        spread_pct=spread_pct,
        notional=notional,
        estimated_profit=estimated_profit,
        timestamp_ms=timestamp_ms if timestamp_ms is not None else get_timestamp_ms(),
    )


class ArbitrageScanner:
    """
    Finds buy-low/sell-high pairs across exchanges.

    Pure with respect to its inputs apart from the running ``stats``.
    """

    __slots__ = ("_stats",)

    def __init__(self) -> None:
        self._stats = ScanStats()

    def _valid_quotes(self, quotes: Iterable[Quote]) -> list[Quote]:
        """Drop quotes that fail validation, logging each one."""
        valid = []
        for quote in quotes:
            self._stats.quotes_seen += 1
            try:
                valid.append(validate_quote(quote))
            except InvalidQuote as e:
                self._stats.quotes_rejected += 1
                logger.warning(f"Rejected quote: {e}")
        return valid

    @staticmethod
    def _require_pair(quotes: Sequence[Quote]) -> None:
        if len(quotes) < 2:
            raise InsufficientData(f"Need at least 2 quotes, got {len(quotes)}")

    def scan(self, quotes: Sequence[Quote], notional: float) -> list[Opportunity]:
        """
        Scan one symbol's quotes for cross-exchange spreads.

        Args:
            quotes: Quotes for a single symbol, one per exchange.
            notional: Trade size used for profit estimates.

        Returns:
            Opportunities sorted by estimated profit, best first.

        Raises:
            ValueError: If notional is not positive.
        """
        if not notional > 0:
            raise ValueError(f"Notional must be positive, got {notional}")

        valid = self._valid_quotes(quotes)
        try:
            self._require_pair(valid)
        except InsufficientData as e:
            logger.debug(f"Scan skipped: {e}")
            self._stats.record([])
            return []

        timestamp = get_timestamp_ms()
        opportunities: list[Opportunity] = []

        for i, buy in enumerate(valid):
            for j, sell in enumerate(valid):
                if i == j or buy.exchange == sell.exchange:
                    continue
                self._stats.pairs_evaluated += 1
                try:
                    opp = compute_opportunity(buy, sell, notional, timestamp)
                except InvalidQuote as e:
                    logger.warning(f"Skipped pair: {e}")
                    continue
                if opp is not None:
                    opportunities.append(opp)

        opportunities.sort(key=lambda o: o.estimated_profit, reverse=True)
        self._stats.record(opportunities)
        return opportunities

    def scan_many(
        self,
        quotes_by_symbol: Mapping[str, Sequence[Quote]],
        notional: float,
    ) -> list[Opportunity]:
        """Scan several symbols and merge into a single ranking."""
        merged: list[Opportunity] = []
        for quotes in quotes_by_symbol.values():
            merged.extend(self.scan(quotes, notional))
        merged.sort(key=lambda o: o.estimated_profit, reverse=True)
        return merged

    def best(self, quotes: Sequence[Quote], notional: float) -> Opportunity | None:
        """Highest-profit opportunity, or None."""
        opportunities = self.scan(quotes, notional)
        return opportunities[0] if opportunities else None

    @property
    def stats(self) -> ScanStats:
        """Get scan statistics."""
        return self._stats
