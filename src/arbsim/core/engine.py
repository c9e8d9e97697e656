"""
Arbitrage bot orchestrator.

Owns one instance of every engine component and runs two independent
periodic drivers:

- the market driver refreshes quotes, scans for spreads, and caches the
  ranked opportunities;
- the trading driver evaluates the cached opportunities against the
  portfolio.

The drivers share state only through the quote cache and the ledger, so
a slow quote fetch never stalls trade evaluation.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from typing import Any

from arbsim.config.constants import (
    MARKET_REFRESH_INTERVAL,
    SCAN_NOTIONAL,
    TRADE_PROBABILITY,
    TRADING_TICK_INTERVAL,
)
from arbsim.config.settings import Settings
from arbsim.core.event_bus import Event, EventBus, EventType
from arbsim.core.types import DataSource, MarketSummary, Opportunity, PortfolioSnapshot, TradeRecord
from arbsim.execution.risk import RiskLimits, RiskManager
from arbsim.execution.simulator import TradeSimulator
from arbsim.market.provider import QuoteProvider
from arbsim.market.sources import CoinGeckoQuoteSource, SyntheticQuoteSource
from arbsim.portfolio.ledger import LedgerConfig, PortfolioLedger
from arbsim.strategy.costs import CostModel
from arbsim.strategy.scanner import ArbitrageScanner
from arbsim.telemetry.metrics import MetricsCollector
from arbsim.utils.time import LatencyTimer, get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BotConfig:
    """Scheduling parameters for the periodic drivers."""

    market_interval: float = MARKET_REFRESH_INTERVAL
    trading_interval: float = TRADING_TICK_INTERVAL
    trade_probability: float = TRADE_PROBABILITY
    scan_notional: float = SCAN_NOTIONAL


class ArbitrageBot:
    """
    Simulated multi-exchange arbitrage bot.

    Control surface: ``start()``, ``stop()``, ``reset(balance)`` and
    ``get_status()``. ``run_scan_cycle()`` and ``run_trading_cycle()``
    are the bodies of the two drivers and can be called directly.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        scanner: ArbitrageScanner,
        simulator: TradeSimulator,
        ledger: PortfolioLedger,
        risk_manager: RiskManager | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        rng: random.Random | None = None,
        config: BotConfig | None = None,
    ) -> None:
        """
        Initialize the bot.

        Args:
            provider: Quote provider with fallback.
            scanner: Spread scanner.
            simulator: Trade simulator.
            ledger: Portfolio ledger.
            risk_manager: Daily trade limiter.
            event_bus: Bus that receives all engine events.
            metrics: Metrics collector.
            rng: Random source for the per-tick trade decision.
            config: Driver scheduling parameters.
        """
        self._provider = provider
        self._scanner = scanner
        self._simulator = simulator
        self._ledger = ledger
        self._risk = risk_manager or RiskManager()
        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()
        self._rng = rng or random.Random()
        self._config = config or BotConfig()

        self._running = False
        self._started_at_ms = 0
        self._market_task: asyncio.Task[None] | None = None
        self._trading_task: asyncio.Task[None] | None = None
        self._opportunities: list[Opportunity] = []
        self._last_scan_ms = 0

    # =========================================================================
    # Driver bodies
    # =========================================================================

    async def run_scan_cycle(self) -> list[Opportunity]:
        """
        Refresh quotes, scan every symbol, and cache the ranking.

        Returns:
            Opportunities ranked best first.
        """
        with LatencyTimer() as timer:
            quotes_by_symbol = await self._provider.refresh()
            opportunities = self._scanner.scan_many(quotes_by_symbol, self._config.scan_notional)

        self._opportunities = opportunities
        self._last_scan_ms = get_timestamp_ms()

        self._metrics.record_latency("scan_cycle", timer.latency_us)
        self._metrics.record_scan(
            len(opportunities),
            opportunities[0].profit_pct if opportunities else 0.0,
        )

        summary = self._provider.market_summary()
        if summary.data_source == DataSource.FALLBACK:
            self._metrics.increment_counter("fallback_cycles")

        logger.info(
            f"Scan complete: {len(opportunities)} opportunities across "
            f"{len(quotes_by_symbol)} symbols ({summary.data_source.value} data)"
        )

        await self._publish(
            EventType.MARKET_UPDATE,
            {
                "summary": summary.to_dict(),
                "quotes": {
                    symbol: [q.to_dict() for q in quotes]
                    for symbol, quotes in quotes_by_symbol.items()
                },
            },
        )
        await self._publish(
            EventType.OPPORTUNITIES_SCAN,
            {
                "opportunities": [o.to_dict() for o in opportunities],
                "summary": summary.to_dict(),
            },
        )
        return opportunities

    async def run_trading_cycle(self, force: bool = False) -> TradeRecord | None:
        """
        Evaluate the best cached opportunity against the portfolio.

        Args:
            force: Skip the random per-tick trade decision.

        Returns:
            The applied TradeRecord, or None when no trade happened.
        """
        self._metrics.increment_counter("trading_ticks")

        if not force and self._rng.random() >= self._config.trade_probability:
            return None

        check = self._risk.check_trade()
        if not check:
            logger.debug(f"Trade skipped: {check.reason}")
            return None

        opportunities = self._opportunities
        if not opportunities:
            logger.debug("Trade skipped: no cached opportunities")
            return None

        best = opportunities[0]
        record = self._ledger.execute(partial(self._simulator.simulate, best))
        if record is None:
            return None

        # A dislocation is traded at most once
        self._opportunities = [o for o in opportunities if o is not best]

        self._risk.record_trade(record)
        self._metrics.record_trade(record)

        await self._publish(
            EventType.TRADE_EXECUTED,
            {
                "trade": record.to_dict(),
                "snapshot": self._ledger.last_snapshot.to_dict(),
                "portfolio": self._ledger.get_status().to_dict(),
            },
        )
        return record

    async def _market_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._config.market_interval)
            try:
                await self.run_scan_cycle()
            except Exception as e:
                logger.error(f"Market cycle error: {e}")

    async def _trading_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._config.trading_interval)
            try:
                await self.run_trading_cycle()
            except Exception as e:
                logger.error(f"Trading cycle error: {e}")

    # =========================================================================
    # Control surface
    # =========================================================================

    async def start(self) -> bool:
        """
        Start both drivers.

        Runs one scan immediately so the trading driver has data.

        Returns:
            False if the bot was already running.
        """
        if self._running:
            return False

        self._running = True
        self._started_at_ms = get_timestamp_ms()
        logger.info("Starting arbitrage bot...")

        try:
            await self.run_scan_cycle()
        except Exception as e:
            logger.error(f"Initial scan failed: {e}")

        self._market_task = asyncio.create_task(self._market_loop(), name="market-driver")
        self._trading_task = asyncio.create_task(self._trading_loop(), name="trading-driver")

        await self._publish(EventType.BOT_STARTED, {"running": True, "startedAt": self._started_at_ms})
        return True

    async def stop(self) -> bool:
        """
        Stop both drivers. Stopping a stopped bot is a no-op.

        Returns:
            False if the bot was not running.
        """
        if not self._running:
            return False

        self._running = False
        for task in (self._market_task, self._trading_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._market_task = None
        self._trading_task = None

        logger.info("Arbitrage bot stopped")
        await self._publish(EventType.BOT_STOPPED, {"running": False})
        return True

    async def reset(self, balance: float | None = None) -> PortfolioSnapshot:
        """
        Hard-reset the portfolio and daily risk counters.

        Args:
            balance: New starting balance.

        Returns:
            The seed snapshot of the fresh portfolio.
        """
        snapshot = self._ledger.reset(balance)
        self._risk.reset()
        await self._publish(
            EventType.PORTFOLIO_RESET,
            {
                "snapshot": snapshot.to_dict(),
                "portfolio": self._ledger.get_status().to_dict(),
            },
        )
        return snapshot

    def get_status(self) -> dict[str, Any]:
        """Read-only status of bot, market, and portfolio."""
        summary = self._provider.market_summary()
        stats = self._simulator.stats
        return {
            "running": self._running,
            "startedAt": self._started_at_ms,
            "uptimeMs": get_timestamp_ms() - self._started_at_ms if self._running else 0,
            "lastScan": self._last_scan_ms,
            "market": summary.to_dict(),
            "opportunities": [o.to_dict() for o in self._opportunities[:10]],
            "portfolio": self._ledger.get_status().to_dict(),
            "risk": self._risk.to_dict(),
            "simulator": {
                "evaluated": stats.evaluated,
                "executed": stats.executed,
                "successRate": stats.success_rate,
            },
            "metrics": self._metrics.to_dict(),
        }

    async def shutdown(self) -> None:
        """Stop drivers and release network resources."""
        await self.stop()
        await self._provider.close()

    async def _publish(self, event_type: EventType, payload: dict[str, Any]) -> None:
        await self._event_bus.publish(Event(type=event_type, payload=payload, source="bot"))

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if the drivers are running."""
        return self._running

    @property
    def opportunities(self) -> list[Opportunity]:
        """Copy of the cached ranking."""
        return list(self._opportunities)

    @property
    def market_summary(self) -> MarketSummary:
        """Summary of the last quote refresh."""
        return self._provider.market_summary()

    @property
    def provider(self) -> QuoteProvider:
        """Quote provider."""
        return self._provider

    @property
    def scanner(self) -> ArbitrageScanner:
        """Spread scanner."""
        return self._scanner

    @property
    def ledger(self) -> PortfolioLedger:
        """Portfolio ledger."""
        return self._ledger

    @property
    def event_bus(self) -> EventBus:
        """Event bus."""
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        """Metrics collector."""
        return self._metrics


def create_bot(settings: Settings, event_bus: EventBus | None = None) -> ArbitrageBot:
    """
    Wire a bot from settings.

    A seed in settings makes every random draw reproducible.
    """
    root = random.Random(settings.seed)

    def child() -> random.Random:
        return random.Random(root.getrandbits(64))

    fallback = SyntheticQuoteSource(rng=child())
    primary = None
    if settings.use_live_prices:
        primary = CoinGeckoQuoteSource(
            timeout=settings.fetch_timeout,
            cache_ttl=settings.price_cache_ttl,
            generator=SyntheticQuoteSource(rng=child()),
        )

    provider = QuoteProvider(
        symbols=settings.symbols,
        fallback=fallback,
        primary=primary,
        timeout=settings.fetch_timeout,
        refresh_interval=settings.market_refresh_interval,
    )

    cost_model = CostModel(
        fee_bps=settings.fee_bps,
        slippage_min_bps=settings.slippage_min_bps,
        slippage_max_bps=settings.slippage_max_bps,
        gas_cost_range=settings.gas_cost_range,
        rng=child(),
    )

    ledger = PortfolioLedger(
        initial_balance=settings.initial_balance,
        config=LedgerConfig(
            default_balance=settings.initial_balance,
            trade_capacity=settings.trade_history_capacity,
            curve_capacity=settings.equity_curve_capacity,
            snapshot_interval_ms=settings.snapshot_interval_ms,
            snapshot_value_delta=settings.snapshot_value_delta,
        ),
    )

    return ArbitrageBot(
        provider=provider,
        scanner=ArbitrageScanner(),
        simulator=TradeSimulator(cost_model, rng=child()),
        ledger=ledger,
        risk_manager=RiskManager(RiskLimits(max_daily_trades=settings.max_daily_trades)),
        event_bus=event_bus,
        rng=child(),
        config=BotConfig(
            market_interval=settings.market_refresh_interval,
            trading_interval=settings.trading_tick_interval,
            trade_probability=settings.trade_probability,
            scan_notional=settings.scan_notional,
        ),
    )


@asynccontextmanager
async def running_bot(settings: Settings) -> AsyncIterator[ArbitrageBot]:
    """
    Create, start, and always shut down a bot.

    Usage:
        async with running_bot(settings) as bot:
            await asyncio.sleep(60)
    """
    bot = create_bot(settings)
    try:
        await bot.start()
        yield bot
    finally:
        await bot.shutdown()
