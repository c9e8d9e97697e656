"""
FastAPI control surface for the arbitrage bot.

Exposes start / stop / reset / status, market and portfolio views, and a
WebSocket endpoint that streams engine events. The bot instance lives on
``app.state``; there is no module-level mutable state.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import orjson
from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from arbsim import __version__
from arbsim.config.constants import (
    DEFAULT_INITIAL_BALANCE,
    EXCHANGE_VARIANCES,
    MAX_RESET_BALANCE,
    MIN_RESET_BALANCE,
)
from arbsim.config.settings import Settings, get_settings
from arbsim.core.engine import ArbitrageBot, create_bot
from arbsim.dashboard.broadcaster import Broadcaster
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class ResetRequest(BaseModel):
    """Body of a portfolio reset."""

    balance: float = Field(
        default=DEFAULT_INITIAL_BALANCE,
        ge=MIN_RESET_BALANCE,
        le=MAX_RESET_BALANCE,
        description="New starting balance in USD",
    )


def create_app(bot: ArbitrageBot | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        bot: Pre-built bot; created from settings at startup when omitted.
        settings: Settings used to build the bot.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        instance = bot or create_bot(settings or get_settings())
        broadcaster = Broadcaster()
        broadcaster.attach(instance.event_bus)
        app.state.bot = instance
        app.state.broadcaster = broadcaster
        yield
        await instance.shutdown()

    app = FastAPI(title="Arbitrage Simulator", version=__version__, lifespan=lifespan)
    app.post("/api/bot/start")(start_bot)
    app.post("/api/bot/stop")(stop_bot)
    app.post("/api/bot/reset")(reset_bot)
    app.get("/api/bot/status")(get_bot_status)
    app.get("/api/portfolio/status")(get_portfolio_status)
    app.get("/api/portfolio/report")(get_portfolio_report)
    app.get("/api/quotes")(get_quotes)
    app.get("/api/arbitrage/scan")(scan_arbitrage)
    app.get("/api/exchanges")(get_exchanges)
    app.get("/api/health")(health)
    app.get("/api/ping")(ping)
    app.websocket("/ws")(websocket_endpoint)
    return app


def _bot(request: Request) -> ArbitrageBot:
    return request.app.state.bot  # type: ignore[no-any-return]


# =============================================================================
# Bot control
# =============================================================================


async def start_bot(request: Request) -> dict[str, Any]:
    bot = _bot(request)
    if not await bot.start():
        return {"status": "already_running", "running": True}
    return {"status": "started", "running": True}


async def stop_bot(request: Request) -> dict[str, Any]:
    bot = _bot(request)
    if not await bot.stop():
        return {"status": "not_running", "running": False}
    return {"status": "stopped", "running": False}


async def reset_bot(request: Request, body: ResetRequest | None = None) -> dict[str, Any]:
    bot = _bot(request)
    balance = body.balance if body is not None else DEFAULT_INITIAL_BALANCE
    snapshot = await bot.reset(balance)
    return {"status": "reset", "snapshot": snapshot.to_dict()}


async def get_bot_status(request: Request) -> dict[str, Any]:
    return _bot(request).get_status()


# =============================================================================
# Portfolio
# =============================================================================


async def get_portfolio_status(request: Request) -> dict[str, Any]:
    return _bot(request).ledger.get_status().to_dict()


async def get_portfolio_report(request: Request) -> dict[str, Any]:
    return _bot(request).ledger.report()


# =============================================================================
# Market
# =============================================================================


async def get_quotes(request: Request, symbol: str | None = None) -> dict[str, Any]:
    bot = _bot(request)
    provider = bot.provider
    if symbol is not None and symbol.upper() not in provider.symbols:
        raise HTTPException(status_code=404, detail=f"Unknown symbol {symbol}")

    cached = provider.cached_quotes(symbol.upper() if symbol else None)
    if not any(cached.values()):
        await provider.refresh()
        cached = provider.cached_quotes(symbol.upper() if symbol else None)

    return {
        "quotes": {s: [q.to_dict() for q in quotes] for s, quotes in cached.items()},
        "summary": provider.market_summary().to_dict(),
    }


async def scan_arbitrage(
    request: Request,
    symbol: str | None = None,
    notional: float = Query(default=1000.0, gt=0),
) -> dict[str, Any]:
    bot = _bot(request)
    provider = bot.provider
    symbols = provider.symbols
    if symbol is not None:
        if symbol.upper() not in symbols:
            raise HTTPException(status_code=404, detail=f"Unknown symbol {symbol}")
        symbols = [symbol.upper()]

    quotes_by_symbol = {}
    for s in symbols:
        quotes, _ = await provider.fetch(s)
        quotes_by_symbol[s] = quotes

    opportunities = bot.scanner.scan_many(quotes_by_symbol, notional)
    return {
        "opportunities": [o.to_dict() for o in opportunities],
        "count": len(opportunities),
        "notional": notional,
        "timestamp": get_timestamp_ms(),
    }


async def get_exchanges(request: Request) -> dict[str, Any]:
    exchanges = _bot(request).provider.exchanges
    return {
        "exchanges": [
            {"name": name, "variance": EXCHANGE_VARIANCES.get(name, 0.0)} for name in exchanges
        ],
        "count": len(exchanges),
    }


# =============================================================================
# Health
# =============================================================================


async def health(request: Request) -> dict[str, Any]:
    bot = _bot(request)
    summary = bot.market_summary
    return {
        "status": "ok",
        "version": __version__,
        "running": bot.is_running,
        "dataSource": summary.data_source.value,
        "clients": request.app.state.broadcaster.client_count,
        "timestamp": get_timestamp_ms(),
    }


async def ping() -> dict[str, Any]:
    return {"pong": True, "timestamp": get_timestamp_ms()}


# =============================================================================
# WebSocket
# =============================================================================


async def websocket_endpoint(websocket: WebSocket) -> None:
    bot: ArbitrageBot = websocket.app.state.bot
    broadcaster: Broadcaster = websocket.app.state.broadcaster

    await broadcaster.connect(websocket)
    await broadcaster.send(
        websocket,
        "welcome",
        {
            "running": bot.is_running,
            "portfolio": bot.ledger.get_status().to_dict(),
            "market": bot.market_summary.to_dict(),
        },
    )

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = orjson.loads(data)
            except orjson.JSONDecodeError:
                await broadcaster.send(websocket, "error", {"message": "Invalid JSON"})
                continue

            action = msg.get("action") if isinstance(msg, dict) else None
            if action == "start":
                await bot.start()
            elif action == "stop":
                await bot.stop()
            elif action == "status":
                await broadcaster.send(websocket, "status", bot.get_status())
            else:
                await broadcaster.send(websocket, "error", {"message": f"Unknown action {action!r}"})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)


app = create_app()


def main() -> None:
    import uvicorn

    from arbsim.telemetry.logger import setup_logging

    settings = get_settings()
    async_logger = setup_logging(settings.log_level, settings.log_file)

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║              ARBITRAGE SIMULATOR - DASHBOARD                  ║
╚═══════════════════════════════════════════════════════════════╝

API: http://localhost:{settings.port}/api/bot/status
Press Ctrl+C to stop.
    """
    )
    try:
        uvicorn.run(
            create_app(settings=settings),
            host=settings.host,
            port=settings.port,
            reload=False,
            log_level="warning",
        )
    finally:
        async_logger.stop()


if __name__ == "__main__":
    main()
