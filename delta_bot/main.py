"""
Headless entry point for the hedging bot.
"""

import asyncio
import signal

from loguru import logger

from delta_bot.config import BotSettings, settings
from delta_bot.engine import HedgingEngine
from delta_bot.exchange.client import DeltaExchangeClient
from delta_bot.utils.logging import setup_logging


def build_engine() -> HedgingEngine:
    """Wire the engine from environment settings."""
    if not settings.exchange.api_key or not settings.exchange.api_secret:
        logger.warning("DELTA_API_KEY / DELTA_API_SECRET not set; requests will be rejected")

    client = DeltaExchangeClient.from_config(settings.exchange)
    return HedgingEngine(client, BotSettings.from_config(settings.agent))


async def run():
    """Start the engine and run until SIGINT/SIGTERM."""
    engine = build_engine()
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops lack signal handlers
            signal.signal(sig, lambda *_: stop_event.set())

    logger.info("Starting Personal Delta Bot...")
    logger.info(f"Hedge product: {engine.settings.hedge_product_id}")
    logger.info(f"Check interval: {engine.settings.check_interval_ms} ms")

    engine.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down gracefully...")
        engine.stop()
        await engine.scheduler.shutdown()
        await engine.close()


def main():
    """Main entry point."""
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
