"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import random

import pytest

from arbsim.config.constants import DEFAULT_SYMBOLS
from arbsim.core.engine import ArbitrageBot, BotConfig
from arbsim.core.event_bus import EventBus
from arbsim.core.types import Quote
from arbsim.execution.risk import RiskManager
from arbsim.execution.simulator import SimulatorConfig, TradeSimulator
from arbsim.market.provider import QuoteProvider
from arbsim.market.sources import SyntheticQuoteSource
from arbsim.portfolio.ledger import PortfolioLedger
from arbsim.strategy.costs import CostModel
from arbsim.strategy.scanner import ArbitrageScanner
from tests.mocks import FakeClock, StaticQuoteSource, make_quote


# =============================================================================
# Randomness and Time
# =============================================================================


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Manually advanced clock."""
    return FakeClock()


# =============================================================================
# Quote Fixtures
# =============================================================================


@pytest.fixture
def two_exchange_quotes() -> list[Quote]:
    """Exchange A asks 101, exchange B bids 105."""
    return [
        make_quote("A", bid=100.0, ask=101.0),
        make_quote("B", bid=105.0, ask=106.0),
    ]


@pytest.fixture
def four_exchange_quotes() -> list[Quote]:
    """Quotes with several overlapping spreads."""
    return [
        make_quote("PancakeSwap", bid=299.0, ask=300.0),
        make_quote("Biswap", bid=303.0, ask=304.0),
        make_quote("ApeSwap", bid=301.5, ask=302.0),
        make_quote("BabySwap", bid=298.0, ask=298.5),
    ]


@pytest.fixture
def dislocated_quotes() -> dict[str, list[Quote]]:
    """A 4% dislocation on every default symbol."""
    return {
        symbol: [
            make_quote("PancakeSwap", bid=99.9, ask=100.0, symbol=symbol),
            make_quote("Biswap", bid=104.0, ask=104.1, symbol=symbol),
        ]
        for symbol in DEFAULT_SYMBOLS
    }


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def scanner() -> ArbitrageScanner:
    """Fresh scanner."""
    return ArbitrageScanner()


@pytest.fixture
def cost_model(rng: random.Random) -> CostModel:
    """Default cost model with seeded gas draws."""
    return CostModel(rng=rng)


@pytest.fixture
def simulator(cost_model: CostModel) -> TradeSimulator:
    """Simulator with default policy."""
    return TradeSimulator(cost_model, rng=random.Random(7))


@pytest.fixture
def always_success_simulator(cost_model: CostModel) -> TradeSimulator:
    """Simulator whose attempts always succeed."""
    config = SimulatorConfig(base_success_rate=1.0, max_success_rate=1.0)
    return TradeSimulator(cost_model, rng=random.Random(7), config=config)


@pytest.fixture
def ledger(fake_clock: FakeClock) -> PortfolioLedger:
    """Ledger with $10,000 and a fake clock."""
    return PortfolioLedger(10_000.0, clock=fake_clock)


@pytest.fixture
def synthetic_source(fake_clock: FakeClock) -> SyntheticQuoteSource:
    """Seeded synthetic source."""
    return SyntheticQuoteSource(rng=random.Random(1), clock=fake_clock)


@pytest.fixture
def bot(
    dislocated_quotes: dict[str, list[Quote]],
    always_success_simulator: TradeSimulator,
    ledger: PortfolioLedger,
    synthetic_source: SyntheticQuoteSource,
) -> ArbitrageBot:
    """
    Bot wired to static dislocated quotes.

    Driver intervals are long so loops only run when a test asks.
    """
    provider = QuoteProvider(
        symbols=DEFAULT_SYMBOLS,
        fallback=synthetic_source,
        primary=StaticQuoteSource(dislocated_quotes),
        timeout=1.0,
    )
    return ArbitrageBot(
        provider=provider,
        scanner=ArbitrageScanner(),
        simulator=always_success_simulator,
        ledger=ledger,
        risk_manager=RiskManager(),
        event_bus=EventBus(),
        rng=random.Random(3),
        config=BotConfig(market_interval=3600.0, trading_interval=3600.0),
    )
