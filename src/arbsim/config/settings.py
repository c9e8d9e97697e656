"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from arbsim.config.constants import (
    DEFAULT_FEE_BPS,
    DEFAULT_INITIAL_BALANCE,
    DEFAULT_SYMBOLS,
    EQUITY_CURVE_CAPACITY,
    FETCH_TIMEOUT,
    GAS_COST_RANGE,
    MARKET_REFRESH_INTERVAL,
    MAX_DAILY_TRADES,
    MAX_RESET_BALANCE,
    MAX_SLIPPAGE_BPS,
    MIN_RESET_BALANCE,
    MIN_SLIPPAGE_BPS,
    PRICE_CACHE_TTL,
    SCAN_NOTIONAL,
    SNAPSHOT_INTERVAL_MS,
    SNAPSHOT_VALUE_DELTA,
    TRADE_HISTORY_CAPACITY,
    TRADE_PROBABILITY,
    TRADING_TICK_INTERVAL,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via ``ARBSIM_``-prefixed environment
    variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARBSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Portfolio
    # =========================================================================

    initial_balance: float = Field(
        default=DEFAULT_INITIAL_BALANCE,
        ge=MIN_RESET_BALANCE,
        le=MAX_RESET_BALANCE,
        description="Starting virtual balance in USD",
    )

    trade_history_capacity: int = Field(
        default=TRADE_HISTORY_CAPACITY,
        ge=1,
        le=10_000,
        description="Number of trade records kept in memory",
    )

    equity_curve_capacity: int = Field(
        default=EQUITY_CURVE_CAPACITY,
        ge=2,
        le=10_000,
        description="Number of portfolio snapshots kept in memory",
    )

    snapshot_interval_ms: int = Field(
        default=SNAPSHOT_INTERVAL_MS,
        ge=1000,
        description="Minimum time between equity curve snapshots",
    )

    snapshot_value_delta: float = Field(
        default=SNAPSHOT_VALUE_DELTA,
        ge=0.0,
        description="Value change in USD that forces a snapshot",
    )

    # =========================================================================
    # Costs
    # =========================================================================

    fee_bps: float = Field(
        default=DEFAULT_FEE_BPS,
        ge=0.0,
        le=100.0,
        description="Trading fee in basis points of notional",
    )

    slippage_min_bps: float = Field(default=MIN_SLIPPAGE_BPS, ge=0.0, le=500.0)
    slippage_max_bps: float = Field(default=MAX_SLIPPAGE_BPS, ge=0.0, le=500.0)

    gas_cost_min: float = Field(default=GAS_COST_RANGE[0], ge=0.0)
    gas_cost_max: float = Field(default=GAS_COST_RANGE[1], ge=0.0)

    # =========================================================================
    # Scheduling
    # =========================================================================

    market_refresh_interval: float = Field(
        default=MARKET_REFRESH_INTERVAL,
        gt=0.0,
        description="Seconds between market data refreshes",
    )

    trading_tick_interval: float = Field(
        default=TRADING_TICK_INTERVAL,
        gt=0.0,
        description="Seconds between trading decisions",
    )

    trade_probability: float = Field(
        default=TRADE_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Chance of attempting a trade on each trading tick",
    )

    max_daily_trades: int = Field(
        default=MAX_DAILY_TRADES,
        ge=1,
        le=10_000,
        description="Maximum trade attempts per calendar day",
    )

    scan_notional: float = Field(
        default=SCAN_NOTIONAL,
        gt=0.0,
        description="Notional used to rank opportunities",
    )

    # =========================================================================
    # Market Data
    # =========================================================================

    use_live_prices: bool = Field(
        default=False,
        description="Anchor synthetic quotes to CoinGecko spot prices",
    )

    fetch_timeout: float = Field(default=FETCH_TIMEOUT, gt=0.0, le=60.0)
    price_cache_ttl: float = Field(default=PRICE_CACHE_TTL, ge=0.0)

    symbols: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYMBOLS),
        description="Pairs to scan, formatted BASE/QUOTE",
    )

    seed: int | None = Field(
        default=None,
        description="Random seed for reproducible runs",
    )

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(default=None)

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("symbols", mode="after")
    @classmethod
    def validate_symbols(cls, v: list[str]) -> list[str]:
        """Ensure every symbol is formatted BASE/QUOTE."""
        for symbol in v:
            base, _, quote = symbol.partition("/")
            if not base or not quote:
                raise ValueError(f"Symbol must be BASE/QUOTE: {symbol!r}")
        if not v:
            raise ValueError("At least one symbol is required")
        return [s.upper() for s in v]

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Ensure range bounds are ordered."""
        if self.slippage_min_bps > self.slippage_max_bps:
            raise ValueError("slippage_min_bps must not exceed slippage_max_bps")
        if self.gas_cost_min > self.gas_cost_max:
            raise ValueError("gas_cost_min must not exceed gas_cost_max")
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def gas_cost_range(self) -> tuple[float, float]:
        """Gas cost bounds as a tuple."""
        return (self.gas_cost_min, self.gas_cost_max)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
