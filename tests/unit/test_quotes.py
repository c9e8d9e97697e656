"""
Unit tests for quote sources and the fallback provider.
"""

import logging
import random
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from arbsim.config.constants import EXCHANGE_VARIANCES
from arbsim.core.errors import FetchFailure
from arbsim.core.types import DataSource, MarketStatus
from arbsim.market.provider import QuoteProvider
from arbsim.market.sources import (
    CoinGeckoQuoteSource,
    QuoteSource,
    SyntheticQuoteSource,
    split_symbol,
)
from tests.mocks import (
    FailingQuoteSource,
    FakeClock,
    SlowQuoteSource,
    StaticQuoteSource,
    make_quote,
)


class TestSplitSymbol:
    """Tests for split_symbol()."""

    def test_pair(self) -> None:
        """BASE/QUOTE splits into two assets."""
        assert split_symbol("bnb/busd") == ("BNB", "BUSD")

    def test_bare_asset(self) -> None:
        """A bare asset is quoted in USD."""
        assert split_symbol("BNB") == ("BNB", "USD")


class TestSyntheticQuoteSource:
    """Tests for SyntheticQuoteSource."""

    def test_is_quote_source(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Satisfies the QuoteSource protocol."""
        assert isinstance(synthetic_source, QuoteSource)

    def test_one_quote_per_exchange(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Every configured exchange is quoted."""
        quotes = synthetic_source.generate("BNB/BUSD")

        assert {q.exchange for q in quotes} == set(EXCHANGE_VARIANCES)
        for quote in quotes:
            assert quote.symbol == "BNB/BUSD"
            assert 0 < quote.bid < quote.ask

    def test_prices_near_reference(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Quotes stay within a few percent of the reference price."""
        reference = synthetic_source.reference_price("BNB")

        for quote in synthetic_source.generate("BNB/BUSD"):
            assert abs(quote.mid / reference - 1) < 0.05

    def test_deterministic_with_seed(self, fake_clock: FakeClock) -> None:
        """Same seed and clock produce the same quotes."""
        a = SyntheticQuoteSource(rng=random.Random(5), clock=fake_clock)
        b = SyntheticQuoteSource(rng=random.Random(5), clock=fake_clock)

        assert a.generate("CAKE/BUSD") == b.generate("CAKE/BUSD")

    def test_unknown_asset_raises(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Symbols without a reference price fail."""
        with pytest.raises(FetchFailure):
            synthetic_source.generate("DOGE/BUSD")

    def test_dislocations(self, fake_clock: FakeClock) -> None:
        """Frequency 1.0 dislocates every fetch, 0.0 never."""
        always = SyntheticQuoteSource(rng=random.Random(2), clock=fake_clock, dislocation_frequency=1.0)
        never = SyntheticQuoteSource(rng=random.Random(2), clock=fake_clock, dislocation_frequency=0.0)

        for _ in range(5):
            always.generate("BNB/BUSD")
            never.generate("BNB/BUSD")

        assert always.dislocations_created == 5
        assert never.dislocations_created == 0

    def test_update_reference(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Invalid prices are ignored; changes are averaged."""
        synthetic_source.update_reference(
            {"bnb": 300.0, "CAKE": -1.0, "BTCB": float("nan")},
            {"BNB": 2.0, "CAKE": -1.0},
        )

        assert synthetic_source.reference_price("BNB") == 300.0
        assert synthetic_source.reference_price("CAKE") == 2.1
        assert synthetic_source.avg_change_24h() == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_fetch_quotes(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Async fetch returns generated quotes."""
        quotes = await synthetic_source.fetch_quotes("BTCB/BUSD")

        assert len(quotes) == len(EXCHANGE_VARIANCES)


class TestCoinGeckoQuoteSource:
    """Tests for CoinGeckoQuoteSource without network access."""

    def test_parse_prices(self) -> None:
        """Coin ids map back to assets; junk entries are skipped."""
        source = CoinGeckoQuoteSource()

        prices, changes = source._parse_prices(
            {
                "binancecoin": {"usd": 612.5, "usd_24h_change": 1.5},
                "pancakeswap-token": {"usd": "bad"},
                "bitcoin": "oops",
            }
        )

        assert prices == {"BNB": 612.5}
        assert changes == {"BNB": 1.5}

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        """HTTP errors become FetchFailure with the status."""
        response = MagicMock()
        response.status = 429
        response.read = AsyncMock(return_value=b"rate limited")

        with pytest.raises(FetchFailure) as exc_info:
            await CoinGeckoQuoteSource()._handle_response(response)

        assert exc_info.value.status == 429

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Malformed bodies become FetchFailure."""
        response = MagicMock()
        response.status = 200
        response.read = AsyncMock(return_value=b"{not json")

        with pytest.raises(FetchFailure):
            await CoinGeckoQuoteSource()._handle_response(response)

    @pytest.mark.asyncio
    async def test_invalid_utf8_falls_back(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Undecodable bodies fail the fetch and the provider serves fallback quotes."""
        response = MagicMock(status=200)
        response.read = AsyncMock(return_value=b'{"binancecoin": {"usd": \xff\xfe}}')
        session = MagicMock(closed=False)
        session.get.return_value.__aenter__.return_value = response
        provider = QuoteProvider(
            ["BNB/BUSD"],
            fallback=synthetic_source,
            primary=CoinGeckoQuoteSource(session=session),
        )

        results = await provider.refresh()

        assert results["BNB/BUSD"]
        assert provider.market_summary().data_source == DataSource.FALLBACK
        assert provider.fallback_count == 1

    @pytest.mark.asyncio
    async def test_cached_prices_fan_out(self, fake_clock: FakeClock) -> None:
        """Cached live prices are fanned out without a request."""
        generator = SyntheticQuoteSource(rng=random.Random(1), clock=fake_clock)
        source = CoinGeckoQuoteSource(generator=generator, cache_ttl=60.0)
        source._prices = {"BNB": 500.0}
        source._cached_at = time.monotonic()

        quotes = await source.fetch_quotes("BNB/BUSD")

        assert len(quotes) == len(EXCHANGE_VARIANCES)
        assert source._session is None


class TestQuoteProvider:
    """Tests for QuoteProvider."""

    @pytest.mark.asyncio
    async def test_synthetic_only(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Without a primary every fetch is synthetic."""
        provider = QuoteProvider(["BNB/BUSD"], fallback=synthetic_source)

        quotes, source = await provider.fetch("BNB/BUSD")

        assert quotes
        assert source == DataSource.SYNTHETIC

    @pytest.mark.asyncio
    async def test_primary_used(self, synthetic_source: SyntheticQuoteSource) -> None:
        """A healthy primary is reported as live."""
        quotes = [make_quote("A", 1.0, 1.1), make_quote("B", 1.2, 1.3)]
        provider = QuoteProvider(
            ["BNB/BUSD"],
            fallback=synthetic_source,
            primary=StaticQuoteSource({"BNB/BUSD": quotes}),
        )

        result, source = await provider.fetch("BNB/BUSD")

        assert result == quotes
        assert source == DataSource.LIVE

    @pytest.mark.asyncio
    async def test_failure_falls_back(
        self, synthetic_source: SyntheticQuoteSource, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing primary is logged and replaced by synthetic data."""
        provider = QuoteProvider(["BNB/BUSD"], fallback=synthetic_source, primary=FailingQuoteSource())

        with caplog.at_level(logging.WARNING):
            quotes, source = await provider.fetch("BNB/BUSD")

        assert quotes
        assert source == DataSource.FALLBACK
        assert provider.fallback_count == 1
        assert "using fallback market data" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, synthetic_source: SyntheticQuoteSource) -> None:
        """A slow primary is abandoned after the timeout."""
        slow = SlowQuoteSource(delay=10.0)
        provider = QuoteProvider(
            ["BNB/BUSD"], fallback=synthetic_source, primary=slow, timeout=0.05
        )

        started = time.monotonic()
        quotes, source = await provider.fetch("BNB/BUSD")

        assert time.monotonic() - started < 2.0
        assert quotes
        assert source == DataSource.FALLBACK
        assert slow.calls == 1

    @pytest.mark.asyncio
    async def test_fallback_failure_returns_empty(self, synthetic_source: SyntheticQuoteSource) -> None:
        """When both sources fail the result is empty, not an error."""
        provider = QuoteProvider(["DOGE/BUSD"], fallback=synthetic_source, primary=FailingQuoteSource())

        quotes, source = await provider.fetch("DOGE/BUSD")

        assert quotes == []
        assert source == DataSource.FALLBACK

    @pytest.mark.asyncio
    async def test_refresh_and_summary(
        self, synthetic_source: SyntheticQuoteSource, fake_clock: FakeClock
    ) -> None:
        """Refresh fills the cache and the summary reflects the source."""
        provider = QuoteProvider(
            ["BNB/BUSD", "CAKE/BUSD"],
            fallback=synthetic_source,
            refresh_interval=45.0,
            clock=fake_clock,
        )
        assert provider.market_summary().status == MarketStatus.IDLE

        results = await provider.refresh()

        assert set(results) == {"BNB/BUSD", "CAKE/BUSD"}
        assert provider.cached_quotes("BNB/BUSD")["BNB/BUSD"] == results["BNB/BUSD"]

        summary = provider.market_summary()
        assert summary.status == MarketStatus.ACTIVE
        assert summary.data_source == DataSource.SYNTHETIC
        assert summary.total_symbols == 2
        assert summary.last_update_ms == fake_clock()
        assert summary.next_update_ms == fake_clock() + 45_000

    @pytest.mark.asyncio
    async def test_degraded_summary(self, synthetic_source: SyntheticQuoteSource) -> None:
        """Fallback data marks the market degraded."""
        provider = QuoteProvider(["BNB/BUSD"], fallback=synthetic_source, primary=FailingQuoteSource())

        await provider.refresh()

        summary = provider.market_summary()
        assert summary.status == MarketStatus.DEGRADED
        assert summary.data_source == DataSource.FALLBACK

    @pytest.mark.asyncio
    async def test_close_delegates(self, synthetic_source: SyntheticQuoteSource) -> None:
        """close() closes the primary when it supports it."""
        slow = SlowQuoteSource()
        provider = QuoteProvider(["BNB/BUSD"], fallback=synthetic_source, primary=slow)

        await provider.close()

        assert slow.closed is True
