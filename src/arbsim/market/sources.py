"""
Quote sources.

A quote source turns a symbol such as ``BNB/BUSD`` into one quote per
virtual exchange. Two implementations are provided:

- ``SyntheticQuoteSource`` derives quotes from a reference price table with
  a slow sine cycle, per-exchange bias, Gaussian noise, and occasional
  dislocations that open a tradable spread.
- ``CoinGeckoQuoteSource`` anchors the same generator to live CoinGecko spot
  prices and raises ``FetchFailure`` when the API is unavailable.
"""

import asyncio
import logging
import math
import random
import time
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

import aiohttp
import orjson

from arbsim.config.constants import (
    COINGECKO_IDS,
    COINGECKO_PRICE_URL,
    DISLOCATION_FREQUENCY,
    DISLOCATION_RANGE,
    EXCHANGE_VARIANCES,
    FETCH_TIMEOUT,
    PRICE_CACHE_TTL,
    REFERENCE_PRICES,
    SYNTHETIC_CYCLE_AMPLITUDE,
    SYNTHETIC_CYCLE_MS,
    SYNTHETIC_HALF_SPREAD,
    SYNTHETIC_NOISE,
)
from arbsim.core.errors import FetchFailure, FetchTimeout
from arbsim.core.types import DataSource, Quote
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@runtime_checkable
class QuoteSource(Protocol):
    """Anything that can supply per-exchange quotes for a symbol."""

    name: str

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        """
        Fetch current quotes for ``symbol``.

        Raises:
            FetchFailure: If the source cannot provide data.
        """
        ...


def split_symbol(symbol: str) -> tuple[str, str]:
    """Split ``BASE/QUOTE`` into its assets."""
    base, _, quote = symbol.partition("/")
    return base.upper(), (quote or "USD").upper()


class SyntheticQuoteSource:
    """
    Generates realistic quotes without any network access.

    Features:
    - Ten-minute sine cycle around the reference price
    - Static per-exchange price bias
    - Gaussian noise per quote
    - Random dislocations on one venue to create arbitrage spreads
    """

    name = DataSource.SYNTHETIC.value

    def __init__(
        self,
        exchanges: Mapping[str, float] | None = None,
        reference_prices: Mapping[str, float] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], int] = get_timestamp_ms,
        noise: float = SYNTHETIC_NOISE,
        half_spread: float = SYNTHETIC_HALF_SPREAD,
        dislocation_frequency: float = DISLOCATION_FREQUENCY,
        dislocation_range: tuple[float, float] = DISLOCATION_RANGE,
    ) -> None:
        """
        Initialize synthetic source.

        Args:
            exchanges: Exchange name to price bias (fraction).
            reference_prices: USD price per asset.
            rng: Random source; seed it for reproducible quotes.
            clock: Millisecond clock.
            noise: Standard deviation of per-quote noise (fraction).
            half_spread: Half the bid-ask spread (fraction of mid).
            dislocation_frequency: Chance per fetch of a dislocated venue.
            dislocation_range: Min/max size of a dislocation (fraction).
        """
        self._exchanges = dict(exchanges or EXCHANGE_VARIANCES)
        self._reference = dict(reference_prices or REFERENCE_PRICES)
        self._change_24h: dict[str, float] = {}
        self._rng = rng or random.Random()
        self._clock = clock
        self._noise = noise
        self._half_spread = half_spread
        self._dislocation_frequency = dislocation_frequency
        self._dislocation_range = dislocation_range
        self._dislocations_created = 0

    def update_reference(
        self,
        prices: Mapping[str, float],
        change_24h: Mapping[str, float] | None = None,
    ) -> None:
        """Merge new reference prices (and optional 24h changes) into the table."""
        for asset, price in prices.items():
            if price > 0 and math.isfinite(price):
                self._reference[asset.upper()] = price
        if change_24h:
            self._change_24h.update({k.upper(): v for k, v in change_24h.items()})

    def reference_price(self, asset: str) -> float:
        """Reference price for ``asset``, 0.0 if unknown."""
        return self._reference.get(asset.upper(), 0.0)

    def fair_price(self, symbol: str) -> float:
        """
        Current fair price for a pair.

        Raises:
            FetchFailure: If either asset has no reference price.
        """
        base, quote = split_symbol(symbol)
        base_price = self._reference.get(base)
        quote_price = self._reference.get(quote, 1.0 if quote == "USD" else None)
        if not base_price or not quote_price:
            raise FetchFailure(f"No reference price for {symbol}", source=self.name)

        phase = 2 * math.pi * (self._clock() % SYNTHETIC_CYCLE_MS) / SYNTHETIC_CYCLE_MS
        cycle = 1 + SYNTHETIC_CYCLE_AMPLITUDE * math.sin(phase)
        return base_price / quote_price * cycle

    def generate(self, symbol: str) -> list[Quote]:
        """Generate one quote per exchange for ``symbol``."""
        fair = self.fair_price(symbol)
        now = self._clock()

        mids = {
            exchange: fair * (1 + bias + self._rng.gauss(0, self._noise))
            for exchange, bias in self._exchanges.items()
        }
        self._maybe_dislocate(mids)

        quotes = []
        for exchange, mid in mids.items():
            half = mid * self._half_spread * self._rng.uniform(0.8, 1.2)
            quotes.append(
                Quote(
                    exchange=exchange,
                    symbol=symbol,
                    bid=round(mid - half, 8),
                    ask=round(mid + half, 8),
                    timestamp_ms=now,
                )
            )
        return quotes

    def _maybe_dislocate(self, mids: dict[str, float]) -> None:
        """Occasionally push one venue above the rest."""
        if len(mids) < 2 or self._rng.random() > self._dislocation_frequency:
            return

        exchange = self._rng.choice(sorted(mids))
        mids[exchange] *= 1 + self._rng.uniform(*self._dislocation_range)
        self._dislocations_created += 1

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        """Generate quotes; never touches the network."""
        return self.generate(symbol)

    def avg_change_24h(self) -> float:
        """Mean 24h change over assets with known changes."""
        if not self._change_24h:
            return 0.0
        return sum(self._change_24h.values()) / len(self._change_24h)

    @property
    def exchanges(self) -> list[str]:
        """Configured exchange names."""
        return list(self._exchanges)

    @property
    def reference_prices(self) -> dict[str, float]:
        """Copy of the reference price table."""
        return dict(self._reference)

    @property
    def dislocations_created(self) -> int:
        """Number of artificial dislocations generated."""
        return self._dislocations_created


class CoinGeckoQuoteSource:
    """
    Live-anchored quote source backed by the CoinGecko simple price API.

    Spot prices are cached for ``cache_ttl`` seconds; per-exchange quotes
    are fanned out from the live price by an internal synthetic generator.
    """

    name = DataSource.LIVE.value

    def __init__(
        self,
        coin_ids: Mapping[str, str] | None = None,
        url: str = COINGECKO_PRICE_URL,
        timeout: float = FETCH_TIMEOUT,
        cache_ttl: float = PRICE_CACHE_TTL,
        generator: SyntheticQuoteSource | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize CoinGecko source.

        Args:
            coin_ids: Asset symbol to CoinGecko coin id.
            url: Simple price endpoint.
            timeout: Request timeout in seconds.
            cache_ttl: Seconds a price snapshot stays valid.
            generator: Synthetic generator used for the per-exchange fan-out.
            session: Optional shared aiohttp session.
        """
        self._coin_ids = dict(coin_ids or COINGECKO_IDS)
        self._url = url
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._generator = generator or SyntheticQuoteSource()
        self._session = session
        self._owns_session = session is None
        self._cached_at = 0.0
        self._prices: dict[str, float] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this source created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Translate transport errors into fetch errors."""
        session = await self._get_session()
        try:
            yield session
        except asyncio.TimeoutError as e:
            raise FetchTimeout(f"CoinGecko timed out after {self._timeout}s", source=self.name) from e
        except aiohttp.ClientError as e:
            raise FetchFailure(f"Network error: {e}", source=self.name) from e

    async def fetch_prices(self) -> dict[str, float]:
        """
        Fetch USD spot prices for all configured assets.

        Returns:
            Asset symbol to USD price.

        Raises:
            FetchFailure: On network, HTTP, or payload errors.
        """
        if self._prices and time.monotonic() - self._cached_at < self._cache_ttl:
            return dict(self._prices)

        params = {
            "ids": ",".join(self._coin_ids.values()),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }

        async with self._request_context() as session:
            async with session.get(self._url, params=params) as response:
                data = await self._handle_response(response)

        prices, changes = self._parse_prices(data)
        if not prices:
            raise FetchFailure("CoinGecko returned no usable prices", source=self.name)

        self._prices = prices
        self._cached_at = time.monotonic()
        self._generator.update_reference(prices, changes)
        logger.debug(f"Fetched {len(prices)} live prices from CoinGecko")
        return dict(prices)

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Parse and validate response."""
        body = await response.read()

        if response.status >= 400:
            text = body[:200].decode("utf-8", errors="replace")
            raise FetchFailure(
                f"CoinGecko HTTP {response.status}: {text}",
                source=self.name,
                status=response.status,
            )

        # orjson rejects invalid UTF-8 with JSONDecodeError
        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise FetchFailure(f"Invalid JSON response: {e}", source=self.name) from e

        if not isinstance(data, dict):
            raise FetchFailure("Unexpected CoinGecko payload", source=self.name)
        return data

    def _parse_prices(self, data: dict[str, Any]) -> tuple[dict[str, float], dict[str, float]]:
        """Map coin ids back to asset symbols."""
        prices: dict[str, float] = {}
        changes: dict[str, float] = {}
        for asset, coin_id in self._coin_ids.items():
            entry = data.get(coin_id)
            if not isinstance(entry, dict):
                continue
            usd = entry.get("usd")
            if isinstance(usd, (int, float)) and usd > 0:
                prices[asset] = float(usd)
            change = entry.get("usd_24h_change")
            if isinstance(change, (int, float)) and math.isfinite(change):
                changes[asset] = float(change)
        return prices, changes

    async def fetch_quotes(self, symbol: str) -> list[Quote]:
        """Fetch live prices (cached) and fan out per-exchange quotes."""
        await self.fetch_prices()
        return self._generator.generate(symbol)

    def avg_change_24h(self) -> float:
        """Mean 24h change reported by the last fetch."""
        return self._generator.avg_change_24h()
