"""
Unit tests for shared data types.
"""

import dataclasses
import logging
import math

import pytest

from arbsim.core.types import CostBreakdown, PortfolioSnapshot, Quote, TradeRecord
from tests.mocks import make_opportunity, make_quote


class TestQuote:
    """Tests for Quote."""

    def test_mid_and_spread(self) -> None:
        """Mid and relative spread."""
        quote = make_quote("A", bid=99.0, ask=101.0)

        assert quote.mid == 100.0
        assert quote.spread_pct == pytest.approx(0.02)

    def test_frozen(self) -> None:
        """Quotes cannot be mutated."""
        quote = make_quote("A", bid=99.0, ask=101.0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            quote.bid = 1.0  # type: ignore[misc]

    def test_to_dict(self) -> None:
        """Serialized keys."""
        data = Quote("A", "BNB/BUSD", 1.0, 2.0, 5).to_dict()

        assert data == {"exchange": "A", "symbol": "BNB/BUSD", "bid": 1.0, "ask": 2.0, "timestamp": 5}


class TestOpportunity:
    """Tests for Opportunity."""

    def test_units(self) -> None:
        """Fraction, percent, and basis points agree."""
        opp = make_opportunity(0.0125)

        assert opp.profit_pct == pytest.approx(1.25)
        assert opp.spread_bps == pytest.approx(125.0)
        assert opp.base_asset == "BNB"

    def test_to_dict_reports_percent(self) -> None:
        """Wire format reports the spread in percent."""
        data = make_opportunity(0.01).to_dict()

        assert data["spreadPct"] == pytest.approx(1.0)
        assert data["buyExchange"] == "PancakeSwap"


class TestCostBreakdown:
    """Tests for CostBreakdown."""

    def test_total_derived(self) -> None:
        """Total is the sum of components."""
        costs = CostBreakdown(trading_fee=1.0, slippage=0.5, gas_cost=3.0)

        assert costs.total == pytest.approx(4.5)

    def test_negative_components_clamped(self) -> None:
        """Costs are never negative."""
        costs = CostBreakdown(trading_fee=-1.0, slippage=math.nan, gas_cost=2.0)

        assert costs.trading_fee == 0.0
        assert costs.slippage == 0.0
        assert costs.total == pytest.approx(2.0)


class TestTradeRecord:
    """Tests for TradeRecord construction and create()."""

    def _create(self, **overrides: object) -> TradeRecord:
        fields: dict[str, object] = {
            "pair": "BNB/BUSD",
            "buy_exchange": "A",
            "sell_exchange": "B",
            "trade_amount": 500.0,
            "gross_profit": 10.0,
            "net_profit": 8.0,
            "costs": CostBreakdown(gas_cost=2.0),
            "success": True,
            "portfolio_value_before": 1_000.0,
            "timestamp_ms": 1,
        }
        fields.update(overrides)
        return TradeRecord.create(**fields)  # type: ignore[arg-type]

    def test_after_derived(self) -> None:
        """Missing after-value is before + net."""
        record = self._create()

        assert record.portfolio_value_after == pytest.approx(1_008.0)
        assert len(record.id) == 12
        assert record.is_win
        assert record.base_asset == "BNB"

    def test_unique_ids(self) -> None:
        """Each record gets its own id."""
        assert self._create().id != self._create().id

    @pytest.mark.parametrize("bad", [None, math.nan, math.inf, "abc", True])
    def test_malformed_numbers_coerced(self, bad: object, caplog: pytest.LogCaptureFixture) -> None:
        """Malformed numbers become 0.0 and are logged."""
        with caplog.at_level(logging.WARNING):
            record = self._create(net_profit=bad)

        assert record.net_profit == 0.0
        assert "net_profit" in caplog.text

    def test_negative_amount_clamped(self) -> None:
        """Trade amounts are never negative."""
        assert self._create(trade_amount=-5.0).trade_amount == 0.0

    def test_failed_trade_not_win(self) -> None:
        """Failures are never wins."""
        record = self._create(success=False, gross_profit=0.0, net_profit=-2.0)

        assert not record.is_win
        assert record.to_dict()["success"] is False

    def test_to_dict_nested_costs(self) -> None:
        """Costs serialize inside the record."""
        data = self._create().to_dict()

        assert data["costs"]["gasCost"] == 2.0
        assert data["portfolioValueAfter"] == pytest.approx(1_008.0)

    def test_constructor_normalizes(self, caplog: pytest.LogCaptureFixture) -> None:
        """Direct construction coerces NaN fields like create() does."""
        with caplog.at_level(logging.WARNING):
            record = TradeRecord(
                id="t1",
                timestamp_ms=1,
                pair="BNB/BUSD",
                buy_exchange="A",
                sell_exchange="B",
                trade_amount=math.nan,
                gross_profit=math.inf,
                net_profit=math.nan,
                costs=CostBreakdown(),
                success=True,
                portfolio_value_before=1_000.0,
                portfolio_value_after=math.nan,
            )

        assert record.trade_amount == 0.0
        assert record.gross_profit == 0.0
        assert record.net_profit == 0.0
        assert record.portfolio_value_after == pytest.approx(1_000.0)
        assert "portfolio_value_after" in caplog.text


class TestPortfolioSnapshot:
    """Tests for PortfolioSnapshot."""

    def test_positions_read_only_copy(self) -> None:
        """Snapshot positions are detached and immutable."""
        positions = {"BNB": 1.0}
        snapshot = PortfolioSnapshot(1, 100.0, 50.0, positions, 0.0, 0)
        positions["BNB"] = 2.0

        assert snapshot.positions["BNB"] == 1.0
        with pytest.raises(TypeError):
            snapshot.positions["BNB"] = 3.0  # type: ignore[index]
