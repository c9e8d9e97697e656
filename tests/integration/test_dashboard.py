"""
Integration tests for the HTTP and WebSocket control surface.
"""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from arbsim.core.engine import ArbitrageBot
from arbsim.dashboard.server import create_app


@pytest.fixture
def client(bot: ArbitrageBot) -> Iterator[TestClient]:
    """Test client with the lifespan running."""
    with TestClient(create_app(bot=bot)) as test_client:
        yield test_client


class TestBotControl:
    """Tests for /api/bot routes."""

    def test_start_stop(self, client: TestClient) -> None:
        """Start and stop are idempotent."""
        assert client.post("/api/bot/start").json()["status"] == "started"
        assert client.post("/api/bot/start").json()["status"] == "already_running"
        assert client.get("/api/bot/status").json()["running"] is True

        assert client.post("/api/bot/stop").json()["status"] == "stopped"
        assert client.post("/api/bot/stop").json()["status"] == "not_running"
        assert client.get("/api/bot/status").json()["running"] is False

    def test_reset(self, client: TestClient) -> None:
        """Reset accepts balances in range."""
        response = client.post("/api/bot/reset", json={"balance": 20_000})

        assert response.status_code == 200
        assert response.json()["snapshot"]["totalValue"] == 20_000.0
        assert client.get("/api/portfolio/status").json()["startingBalance"] == 20_000.0

    @pytest.mark.parametrize("balance", [500, 2_000_000, "lots"])
    def test_reset_out_of_range(self, client: TestClient, balance: Any) -> None:
        """Balances outside $1,000 - $1,000,000 are rejected."""
        response = client.post("/api/bot/reset", json={"balance": balance})

        assert response.status_code == 422

    def test_status_shape(self, client: TestClient) -> None:
        """Status includes market and portfolio."""
        data = client.get("/api/bot/status").json()

        assert {"running", "market", "portfolio", "opportunities", "risk"} <= set(data)


class TestPortfolioRoutes:
    """Tests for /api/portfolio routes."""

    def test_status(self, client: TestClient) -> None:
        """Portfolio status reports value and positions."""
        data = client.get("/api/portfolio/status").json()

        assert data["totalValue"] == 10_000.0
        assert data["positions"]["BUSD"] == pytest.approx(6_000.0)

    def test_report(self, client: TestClient) -> None:
        """Report has every section."""
        data = client.get("/api/portfolio/report").json()

        assert set(data) == {"summary", "performance", "positions", "trades", "history"}


class TestMarketRoutes:
    """Tests for market data routes."""

    def test_quotes(self, client: TestClient) -> None:
        """Quotes are refreshed on first request."""
        data = client.get("/api/quotes").json()

        assert set(data["quotes"]) == {"BNB/BUSD", "CAKE/BUSD", "BTCB/BUSD"}
        assert data["summary"]["dataSource"] == "live"

    def test_quotes_unknown_symbol(self, client: TestClient) -> None:
        """Unknown symbols are 404."""
        assert client.get("/api/quotes", params={"symbol": "DOGE/BUSD"}).status_code == 404

    def test_scan(self, client: TestClient) -> None:
        """On-demand scan finds the dislocation."""
        data = client.get(
            "/api/arbitrage/scan", params={"symbol": "bnb/busd", "notional": 2_000}
        ).json()

        assert data["count"] == 1
        opp = data["opportunities"][0]
        assert opp["buyExchange"] == "PancakeSwap"
        assert opp["sellExchange"] == "Biswap"
        assert opp["spreadPct"] == pytest.approx(4.0)
        assert opp["estimatedProfit"] == pytest.approx(80.0)

    def test_scan_bad_notional(self, client: TestClient) -> None:
        """Notional must be positive."""
        assert client.get("/api/arbitrage/scan", params={"notional": 0}).status_code == 422

    def test_exchanges(self, client: TestClient) -> None:
        """Exchanges list the synthetic venues."""
        data = client.get("/api/exchanges").json()

        assert data["count"] == 4
        assert {e["name"] for e in data["exchanges"]} >= {"PancakeSwap", "Biswap"}


class TestHealth:
    """Tests for health routes."""

    def test_health(self, client: TestClient) -> None:
        """Health reports the bot state."""
        data = client.get("/api/health").json()

        assert data["status"] == "ok"
        assert data["running"] is False

    def test_ping(self, client: TestClient) -> None:
        """Ping answers."""
        assert client.get("/api/ping").json()["pong"] is True


class TestWebSocket:
    """Tests for the /ws event stream."""

    def test_welcome_and_status(self, client: TestClient) -> None:
        """Clients get a welcome and can ask for status."""
        with client.websocket_connect("/ws") as ws:
            welcome = ws.receive_json()
            assert welcome["type"] == "welcome"
            assert welcome["data"]["portfolio"]["totalValue"] == 10_000.0

            ws.send_json({"action": "status"})
            status = ws.receive_json()
            assert status["type"] == "status"
            assert status["data"]["running"] is False

    def test_invalid_messages(self, client: TestClient) -> None:
        """Bad JSON and unknown actions get an error reply."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"

            ws.send_json({"action": "explode"})
            assert ws.receive_json()["type"] == "error"

    def test_start_streams_events(self, client: TestClient) -> None:
        """Starting over the socket streams engine events."""
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_json({"action": "start"})
            types = [ws.receive_json()["type"] for _ in range(3)]
            assert types == ["market_update", "opportunities_scan", "bot_started"]

            ws.send_json({"action": "stop"})
            assert ws.receive_json()["type"] == "bot_stopped"
