"""
Worker Initialization - Shutdown Module.

Stops the indexer, the health server and closes connections.
"""

import asyncio

from aiohttp import web
from loguru import logger

from worker.health import stop_health_server
from worker.initialization.services import IndexerComponents


async def shutdown_handler(
    components: IndexerComponents,
    health_runner: web.AppRunner | None = None,
) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    try:
        await components.lifecycle.stop()
    except Exception as e:
        logger.warning(f"Error stopping indexer: {e}")

    if health_runner is not None:
        await stop_health_server(health_runner)

    try:
        await asyncio.to_thread(components.reader.close)
        logger.info("RPC executor stopped")
    except Exception as e:
        logger.warning(f"Error stopping RPC executor: {e}")

    try:
        await components.engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Graceful shutdown complete")
