"""
Indexer main entry point.

Builds the components, starts the health server and the indexer, then
runs until SIGINT/SIGTERM. Shutdown has a hard deadline; past it the
process exits with status 1.
"""

import asyncio
import os
import signal
import sys
import warnings
from pathlib import Path


# eth_utils warns about unknown ChainIds on import
warnings.filterwarnings(
    "ignore",
    message=".*does not have a valid ChainId.*",
    category=UserWarning,
)

from loguru import logger  # noqa: E402


# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from carbonseal.config.settings import load_settings  # noqa: E402
from carbonseal.utils.exceptions import ConfigurationError  # noqa: E402
from worker.health import HealthTargets, start_health_server  # noqa: E402
from worker.initialization.logging import setup_logging  # noqa: E402
from worker.initialization.services import build_components  # noqa: E402
from worker.initialization.shutdown import shutdown_handler  # noqa: E402


async def main() -> None:
    """Initialize and run the indexer."""
    settings = load_settings()
    setup_logging(settings)

    components = build_components(settings)

    if not await components.reader.is_connected():
        logger.warning("Blockchain RPC is not reachable yet")

    if not await components.store.health_check():
        await components.engine.dispose()
        raise ConfigurationError("Mirror database is unreachable")

    health_runner = await start_health_server(
        HealthTargets(
            reader=components.reader,
            store=components.store,
            lifecycle=components.lifecycle,
        ),
        port=settings.health_check_port,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await components.lifecycle.start()
        logger.info("Indexer started successfully")
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        try:
            await asyncio.wait_for(
                shutdown_handler(components, health_runner),
                timeout=settings.shutdown_timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                f"Shutdown did not finish in {settings.shutdown_timeout_seconds}s, "
                f"forcing exit"
            )
            logger.complete()
            os._exit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Indexer stopped by user (KeyboardInterrupt)")
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Indexer crashed: {e}")
        sys.exit(1)
