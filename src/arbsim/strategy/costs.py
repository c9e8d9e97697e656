"""
Execution cost model.

Fees are a fixed basis-point rate of notional, slippage scales with the
spread inside a clamped band, and gas is a flat draw independent of size.
"""

import random

from arbsim.config.constants import (
    BPS_DIVISOR,
    DEFAULT_FEE_BPS,
    GAS_COST_RANGE,
    MAX_SLIPPAGE_BPS,
    MIN_SLIPPAGE_BPS,
    SLIPPAGE_SPREAD_FACTOR,
)
from arbsim.core.types import CostBreakdown
from arbsim.utils.math import clamp


class CostModel:
    """Computes the cost breakdown of a hypothetical trade."""

    __slots__ = (
        "_fee_bps",
        "_slippage_min_bps",
        "_slippage_max_bps",
        "_spread_factor",
        "_gas_cost_range",
        "_rng",
    )

    def __init__(
        self,
        fee_bps: float = DEFAULT_FEE_BPS,
        slippage_min_bps: float = MIN_SLIPPAGE_BPS,
        slippage_max_bps: float = MAX_SLIPPAGE_BPS,
        slippage_spread_factor: float = SLIPPAGE_SPREAD_FACTOR,
        gas_cost_range: tuple[float, float] = GAS_COST_RANGE,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize cost model.

        Args:
            fee_bps: Trading fee in basis points of notional.
            slippage_min_bps: Lower slippage bound in basis points.
            slippage_max_bps: Upper slippage bound in basis points.
            slippage_spread_factor: Share of the spread lost to slippage.
            gas_cost_range: Min/max flat settlement cost in USD.
            rng: Random source for gas draws.
        """
        if slippage_min_bps > slippage_max_bps:
            raise ValueError("slippage_min_bps must not exceed slippage_max_bps")
        if gas_cost_range[0] > gas_cost_range[1] or gas_cost_range[0] < 0:
            raise ValueError(f"Invalid gas cost range {gas_cost_range}")

        self._fee_bps = max(0.0, fee_bps)
        self._slippage_min_bps = max(0.0, slippage_min_bps)
        self._slippage_max_bps = slippage_max_bps
        self._spread_factor = slippage_spread_factor
        self._gas_cost_range = gas_cost_range
        self._rng = rng or random.Random()

    def slippage_bps(self, spread_bps: float) -> float:
        """Slippage rate for a given spread, clamped to the configured band."""
        return clamp(
            max(0.0, spread_bps) * self._spread_factor,
            self._slippage_min_bps,
            self._slippage_max_bps,
        )

    def draw_gas_cost(self) -> float:
        """Draw a flat gas / settlement cost."""
        return self._rng.uniform(*self._gas_cost_range)

    def estimate(self, notional: float, spread_bps: float) -> CostBreakdown:
        """
        Estimate costs for a trade.

        Args:
            notional: Trade size in USD.
            spread_bps: Opportunity spread in basis points.

        Returns:
            CostBreakdown with fee, slippage, gas and total.
        """
        notional = max(0.0, notional)
        return CostBreakdown(
            trading_fee=notional * self._fee_bps / BPS_DIVISOR,
            slippage=notional * self.slippage_bps(spread_bps) / BPS_DIVISOR,
            gas_cost=self.draw_gas_cost(),
        )

    @property
    def max_gas_cost(self) -> float:
        """Upper bound of a single gas draw."""
        return self._gas_cost_range[1]

    @property
    def fee_bps(self) -> float:
        """Trading fee in basis points."""
        return self._fee_bps
