"""
Trade simulator.

Decides whether a ranked opportunity is worth trading at the current
portfolio size, sizes the trade, draws success or failure, and produces
exactly one immutable TradeRecord per executed attempt.
"""

import logging
import math
import random
from dataclasses import dataclass

from arbsim.config.constants import (
    BASE_SUCCESS_RATE,
    LARGE_PORTFOLIO_THRESHOLD,
    MAX_PROFIT_BONUS,
    MAX_SIZE_BONUS,
    MAX_SUCCESS_RATE,
    MAX_TRADE_FRACTION,
    MIN_TRADE_FRACTION,
    MIN_TRADE_SIZE,
    PROFIT_THRESHOLD_STEPS,
    PROFIT_VARIANCE_RANGE,
    RISK_FRACTION_RANGE,
)
from arbsim.core.types import CostBreakdown, Opportunity, TradeRecord
from arbsim.strategy.costs import CostModel
from arbsim.utils.math import clamp, coerce_float
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SimulatorConfig:
    """Sizing and success parameters for the trade simulator."""

    threshold_steps: tuple[tuple[float, float], ...] = PROFIT_THRESHOLD_STEPS
    large_portfolio_threshold: float = LARGE_PORTFOLIO_THRESHOLD
    risk_fraction_range: tuple[float, float] = RISK_FRACTION_RANGE
    min_trade_size: float = MIN_TRADE_SIZE
    min_trade_fraction: float = MIN_TRADE_FRACTION
    max_trade_fraction: float = MAX_TRADE_FRACTION
    base_success_rate: float = BASE_SUCCESS_RATE
    max_success_rate: float = MAX_SUCCESS_RATE
    max_profit_bonus: float = MAX_PROFIT_BONUS
    max_size_bonus: float = MAX_SIZE_BONUS
    variance_range: tuple[float, float] = PROFIT_VARIANCE_RANGE


@dataclass
class SimulatorStats:
    """Outcome counters for the trade simulator."""

    evaluated: int = 0
    rejected_threshold: int = 0
    rejected_unprofitable: int = 0
    rejected_empty: int = 0
    successes: int = 0
    failures: int = 0

    @property
    def executed(self) -> int:
        """Attempts that produced a record."""
        return self.successes + self.failures

    @property
    def success_rate(self) -> float:
        """Share of attempts that succeeded."""
        return self.successes / self.executed if self.executed else 0.0


class TradeSimulator:
    """
    Simulates execution of cross-exchange opportunities.

    Smaller portfolios need a wider spread before trading, since flat
    gas costs weigh more on small trades.
    """

    def __init__(
        self,
        cost_model: CostModel,
        rng: random.Random | None = None,
        config: SimulatorConfig | None = None,
    ) -> None:
        """
        Initialize trade simulator.

        Args:
            cost_model: Cost model used for every trade.
            rng: Random source for sizing, success, and variance draws.
            config: Sizing and success parameters.
        """
        self._cost_model = cost_model
        self._rng = rng or random.Random()
        self._config = config or SimulatorConfig()
        self._stats = SimulatorStats()

    def min_profit_threshold(self, portfolio_value: float) -> float:
        """
        Minimum spread (fraction) required to trade.

        Decreasing step function of portfolio value.
        """
        for upper_bound, threshold in self._config.threshold_steps:
            if portfolio_value < upper_bound:
                return threshold
        return self._config.large_portfolio_threshold

    def size_trade(self, portfolio_value: float) -> float:
        """
        Portfolio-proportional trade size.

        A random risk fraction of the portfolio, raised to the floor and
        then capped at the ceiling; the ceiling wins when they conflict.
        """
        cfg = self._config
        fraction = self._rng.uniform(*cfg.risk_fraction_range)
        floor = max(cfg.min_trade_size, portfolio_value * cfg.min_trade_fraction)
        ceiling = portfolio_value * cfg.max_trade_fraction
        return min(max(portfolio_value * fraction, floor), ceiling)

    def success_probability(self, profit_pct: float, portfolio_value: float) -> float:
        """
        Probability that an attempt succeeds.

        Args:
            profit_pct: Spread as a fraction.
            portfolio_value: Current portfolio value in USD.
        """
        cfg = self._config
        profit_bonus = clamp(profit_pct, 0.0, cfg.max_profit_bonus)
        size_bonus = 0.0
        if portfolio_value > 0:
            size_bonus = clamp(math.log10(portfolio_value / 1000) * 0.01, 0.0, cfg.max_size_bonus)
        return min(cfg.max_success_rate, cfg.base_success_rate + profit_bonus + size_bonus)

    def simulate(
        self,
        opportunity: Opportunity,
        portfolio_value: float,
        timestamp_ms: int | None = None,
    ) -> TradeRecord | None:
        """
        Decide on and simulate one trade.

        Args:
            opportunity: Candidate opportunity.
            portfolio_value: Current total portfolio value.
            timestamp_ms: Record timestamp; defaults to now.

        Returns:
            TradeRecord for an executed attempt, or None when rejected.
        """
        self._stats.evaluated += 1
        portfolio_value = coerce_float(portfolio_value)
        profit_pct = opportunity.spread_pct

        if portfolio_value <= 0:
            self._stats.rejected_empty += 1
            logger.debug("No trade: portfolio is empty")
            return None

        threshold = self.min_profit_threshold(portfolio_value)
        if profit_pct < threshold:
            self._stats.rejected_threshold += 1
            logger.debug(
                f"No trade: {opportunity.symbol} spread {profit_pct * 100:.3f}% "
                f"below threshold {threshold * 100:.3f}%"
            )
            return None

        size = self.size_trade(portfolio_value)
        gross = size * profit_pct
        costs = self._cost_model.estimate(size, opportunity.spread_bps)
        net_expected = gross - costs.total

        if net_expected <= 0:
            self._stats.rejected_unprofitable += 1
            logger.debug(
                f"No trade: {opportunity.symbol} costs {costs.total:.2f} exceed gross {gross:.2f}"
            )
            return None

        success = self._rng.random() < self.success_probability(profit_pct, portfolio_value)

        if success:
            self._stats.successes += 1
            realized = net_expected * self._rng.uniform(*self._config.variance_range)
            realized_costs = costs
            realized_gross = gross
        else:
            self._stats.failures += 1
            realized_costs = CostBreakdown(gas_cost=costs.gas_cost)
            realized = -realized_costs.total
            realized_gross = 0.0

        record = TradeRecord.create(
            pair=opportunity.symbol,
            buy_exchange=opportunity.buy_exchange,
            sell_exchange=opportunity.sell_exchange,
            trade_amount=size,
            gross_profit=realized_gross,
            net_profit=realized,
            costs=realized_costs,
            success=success,
            portfolio_value_before=portfolio_value,
            timestamp_ms=timestamp_ms if timestamp_ms is not None else get_timestamp_ms(),
        )

        logger.info(
            f"Simulated {'success' if success else 'failure'}: {opportunity.symbol} "
            f"{opportunity.buy_exchange}->{opportunity.sell_exchange} "
            f"size=${size:,.2f} net=${realized:+.2f}"
        )
        return record

    @property
    def stats(self) -> SimulatorStats:
        """Get simulator statistics."""
        return self._stats

    @property
    def cost_model(self) -> CostModel:
        """Cost model in use."""
        return self._cost_model
