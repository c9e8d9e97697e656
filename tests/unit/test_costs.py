"""
Unit tests for CostModel.

Tests fee, slippage band, and gas draws.
"""

import random

import pytest

from arbsim.strategy.costs import CostModel


class TestCostModel:
    """Tests for CostModel."""

    @pytest.fixture
    def fixed_gas_model(self) -> CostModel:
        """Model with a deterministic gas cost of 2."""
        return CostModel(fee_bps=10.0, gas_cost_range=(2.0, 2.0), rng=random.Random(0))

    def test_fee_is_bps_of_notional(self, fixed_gas_model: CostModel) -> None:
        """10 bps of 1000 is 1."""
        costs = fixed_gas_model.estimate(1000.0, spread_bps=40.0)

        assert costs.trading_fee == pytest.approx(1.0)

    def test_slippage_scales_with_spread(self, fixed_gas_model: CostModel) -> None:
        """Inside the band, slippage is 30% of the spread."""
        assert fixed_gas_model.slippage_bps(40.0) == pytest.approx(12.0)

        costs = fixed_gas_model.estimate(1000.0, spread_bps=40.0)
        assert costs.slippage == pytest.approx(1.2)

    @pytest.mark.parametrize(
        "spread_bps,expected",
        [(0.0, 5.0), (-50.0, 5.0), (10.0, 5.0), (1000.0, 20.0)],
    )
    def test_slippage_clamped(
        self, fixed_gas_model: CostModel, spread_bps: float, expected: float
    ) -> None:
        """Slippage stays within 5-20 bps."""
        assert fixed_gas_model.slippage_bps(spread_bps) == pytest.approx(expected)

    def test_total_is_sum(self, fixed_gas_model: CostModel) -> None:
        """Total equals fee + slippage + gas."""
        costs = fixed_gas_model.estimate(1000.0, spread_bps=0.0)

        assert costs.gas_cost == pytest.approx(2.0)
        assert costs.total == pytest.approx(1.0 + 0.5 + 2.0)

    def test_gas_draws_within_range(self) -> None:
        """Gas is drawn uniformly from the configured range."""
        model = CostModel(gas_cost_range=(2.0, 6.0), rng=random.Random(11))

        draws = [model.draw_gas_cost() for _ in range(200)]

        assert all(2.0 <= g <= 6.0 for g in draws)
        assert max(draws) - min(draws) > 1.0
        assert model.max_gas_cost == 6.0

    def test_gas_independent_of_size(self) -> None:
        """Gas does not scale with notional."""
        small = CostModel(gas_cost_range=(3.0, 3.0)).estimate(100.0, 20.0)
        large = CostModel(gas_cost_range=(3.0, 3.0)).estimate(100_000.0, 20.0)

        assert small.gas_cost == large.gas_cost

    def test_negative_notional_costs_only_gas(self, fixed_gas_model: CostModel) -> None:
        """Negative notional is treated as zero."""
        costs = fixed_gas_model.estimate(-500.0, spread_bps=40.0)

        assert costs.trading_fee == 0.0
        assert costs.slippage == 0.0
        assert costs.total == pytest.approx(2.0)

    def test_invalid_slippage_band(self) -> None:
        """Min slippage above max is rejected."""
        with pytest.raises(ValueError):
            CostModel(slippage_min_bps=30.0, slippage_max_bps=10.0)

    @pytest.mark.parametrize("gas_range", [(6.0, 2.0), (-1.0, 2.0)])
    def test_invalid_gas_range(self, gas_range: tuple[float, float]) -> None:
        """Gas range must be ordered and non-negative."""
        with pytest.raises(ValueError):
            CostModel(gas_cost_range=gas_range)
