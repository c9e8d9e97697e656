"""
Simulation constants and configuration values.

This module contains all hardcoded values used throughout the simulator.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Venues & Assets
# =============================================================================

# Virtual exchanges and their price bias relative to the reference price
EXCHANGE_VARIANCES: Final[dict[str, float]] = {
    "PancakeSwap": 0.0,
    "Biswap": 0.001,
    "ApeSwap": -0.0005,
    "BabySwap": 0.0015,
}

DEFAULT_EXCHANGES: Final[tuple[str, ...]] = tuple(EXCHANGE_VARIANCES)

# Trading pairs scanned every market cycle
DEFAULT_SYMBOLS: Final[tuple[str, ...]] = ("BNB/BUSD", "CAKE/BUSD", "BTCB/BUSD")

# Non-stable assets tracked as positions
TRACKED_ASSETS: Final[tuple[str, ...]] = ("BNB", "CAKE", "BTCB")

# Fallback USD valuation table
REFERENCE_PRICES: Final[dict[str, float]] = {
    "BNB": 280.0,
    "CAKE": 2.1,
    "BTCB": 43000.0,
    "BUSD": 1.0,
    "USDT": 1.0,
}

# Split of a fresh balance across stable assets
STABLE_ALLOCATION: Final[dict[str, float]] = {"BUSD": 0.6, "USDT": 0.4}


# =============================================================================
# Portfolio
# =============================================================================

DEFAULT_INITIAL_BALANCE: Final[float] = 10_000.0
MIN_RESET_BALANCE: Final[float] = 1_000.0
MAX_RESET_BALANCE: Final[float] = 1_000_000.0

TRADE_HISTORY_CAPACITY: Final[int] = 500
EQUITY_CURVE_CAPACITY: Final[int] = 200

# Snapshot when either condition holds
SNAPSHOT_INTERVAL_MS: Final[int] = 300_000  # 5 minutes
SNAPSHOT_VALUE_DELTA: Final[float] = 50.0

# Share of a winning trade's notional accumulated into the base asset
POSITION_ACCUMULATION_PCT: Final[float] = 0.01

RISK_FREE_RATE: Final[float] = 0.1

RECENT_TRADES_LIMIT: Final[int] = 15
RECENT_HISTORY_LIMIT: Final[int] = 50


# =============================================================================
# Costs
# =============================================================================

DEFAULT_FEE_BPS: Final[float] = 10.0
MIN_SLIPPAGE_BPS: Final[float] = 5.0
MAX_SLIPPAGE_BPS: Final[float] = 20.0
SLIPPAGE_SPREAD_FACTOR: Final[float] = 0.3
GAS_COST_RANGE: Final[tuple[float, float]] = (2.0, 6.0)

BPS_DIVISOR: Final[float] = 10_000.0


# =============================================================================
# Trade Sizing & Execution
# =============================================================================

# (portfolio value upper bound, minimum spread fraction)
PROFIT_THRESHOLD_STEPS: Final[tuple[tuple[float, float], ...]] = (
    (10_000.0, 0.006),
    (50_000.0, 0.004),
    (100_000.0, 0.003),
)
LARGE_PORTFOLIO_THRESHOLD: Final[float] = 0.0025

RISK_FRACTION_RANGE: Final[tuple[float, float]] = (0.02, 0.08)
MIN_TRADE_SIZE: Final[float] = 100.0
MIN_TRADE_FRACTION: Final[float] = 0.005
MAX_TRADE_FRACTION: Final[float] = 0.15

BASE_SUCCESS_RATE: Final[float] = 0.94
MAX_SUCCESS_RATE: Final[float] = 0.98
MAX_PROFIT_BONUS: Final[float] = 0.04
MAX_SIZE_BONUS: Final[float] = 0.02

PROFIT_VARIANCE_RANGE: Final[tuple[float, float]] = (0.85, 1.15)


# =============================================================================
# Scheduling
# =============================================================================

MARKET_REFRESH_INTERVAL: Final[float] = 45.0  # seconds
TRADING_TICK_INTERVAL: Final[float] = 10.0  # seconds
TRADE_PROBABILITY: Final[float] = 0.2
MAX_DAILY_TRADES: Final[int] = 30

# Notional used when scanning for display
SCAN_NOTIONAL: Final[float] = 1_000.0


# =============================================================================
# Market Data
# =============================================================================

COINGECKO_PRICE_URL: Final[str] = "https://api.coingecko.com/api/v3/simple/price"

COINGECKO_IDS: Final[dict[str, str]] = {
    "BNB": "binancecoin",
    "CAKE": "pancakeswap-token",
    "BUSD": "binance-usd",
    "USDT": "tether",
    "BTCB": "bitcoin",
}

FETCH_TIMEOUT: Final[float] = 10.0  # seconds
PRICE_CACHE_TTL: Final[float] = 30.0  # seconds

# Synthetic market shape
SYNTHETIC_CYCLE_MS: Final[int] = 600_000  # 10 minute sine cycle
SYNTHETIC_CYCLE_AMPLITUDE: Final[float] = 0.01
SYNTHETIC_NOISE: Final[float] = 0.0008
SYNTHETIC_HALF_SPREAD: Final[float] = 0.0005
DISLOCATION_FREQUENCY: Final[float] = 0.3
DISLOCATION_RANGE: Final[tuple[float, float]] = (0.003, 0.011)


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Status line interval for the CLI (seconds)
METRICS_REPORT_INTERVAL: Final[float] = 30.0

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
