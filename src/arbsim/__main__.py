"""
Entry point for the arbitrage simulator.

Usage:
    python -m arbsim
    arbsim  # if installed via pip
"""

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from arbsim.config.settings import Settings


try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


logger = logging.getLogger("arbsim")


async def run_bot(settings: Settings) -> int:
    """Run the bot until SIGINT/SIGTERM, logging a status line periodically."""
    from arbsim.config.constants import METRICS_REPORT_INTERVAL
    from arbsim.core.engine import create_bot
    from arbsim.telemetry.reporter import CLIReporter

    bot = create_bot(settings)
    reporter = CLIReporter(bot.metrics)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    try:
        await bot.start()
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=METRICS_REPORT_INTERVAL)
            except TimeoutError:
                reporter.set_status(bot.get_status())
                logger.info(reporter.get_status_line())
        logger.info("Shutdown signal received")
        return 0

    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    finally:
        await bot.shutdown()
        reporter.set_status(bot.get_status())
        reporter.print_summary()


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from arbsim import __version__
    from arbsim.config.settings import get_settings
    from arbsim.telemetry.logger import setup_logging

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     ARBITRAGE SIMULATOR v{__version__:<31}      ║
║                                                               ║
║     Multi-exchange spread scanner with simulated execution    ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nSettings are read from ARBSIM_* environment variables or a .env file.")
        return 1

    use_uvloop = settings.use_uvloop and UVLOOP_AVAILABLE

    print("Configuration:")
    print(f"  Prices:         {'CoinGecko (live)' if settings.use_live_prices else 'Synthetic'}")
    print(f"  Symbols:        {', '.join(settings.symbols)}")
    print(f"  Balance:        ${settings.initial_balance:,.2f}")
    print(f"  Fee:            {settings.fee_bps:.1f} bps")
    print(f"  Market refresh: {settings.market_refresh_interval:.0f}s")
    print(f"  Trading tick:   {settings.trading_tick_interval:.0f}s")
    print(f"  Daily trades:   {settings.max_daily_trades}")
    print(f"  Seed:           {settings.seed if settings.seed is not None else 'random'}")
    print(f"  uvloop:         {'Enabled' if use_uvloop else 'Disabled'}")
    print()

    async_logger = setup_logging(settings.log_level, settings.log_file)
    try:
        if use_uvloop:
            return uvloop.run(run_bot(settings))
        return asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
