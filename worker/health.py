"""
Health check server for indexer monitoring.

Provides HTTP endpoints for health, readiness and liveness checks.
"""

import asyncio
from dataclasses import dataclass

from aiohttp import web
from loguru import logger

from carbonseal.services.chain import ChainReader
from carbonseal.services.indexer import IndexerLifecycle
from carbonseal.services.mirror_store import MirrorStore


@dataclass
class HealthTargets:
    """Components probed by the health endpoints."""

    reader: ChainReader
    store: MirrorStore
    lifecycle: IndexerLifecycle


HEALTH_TARGETS = web.AppKey("health_targets", HealthTargets)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with chain, store and indexer status
    """
    targets = request.app[HEALTH_TARGETS]

    try:
        chain_ok = await targets.reader.is_connected()
        store_ok = await targets.store.health_check()

        head = await targets.reader.get_block_number() if chain_ok else None
        cursor = await targets.store.get_cursor_state() if store_ok else None
        last_block = cursor.last_block if cursor else 0
        lag = head - last_block if head is not None and store_ok else None

        healthy = chain_ok and store_ok and targets.lifecycle.is_running
        return web.json_response(
            {
                "status": "healthy" if healthy else "unhealthy",
                "chain_connected": chain_ok,
                "store_healthy": store_ok,
                "indexer_state": targets.lifecycle.state.value,
                "chain_head": head,
                "last_synced_block": last_block if store_ok else None,
                "cursor_lag": lag,
                "last_error": cursor.last_error if cursor else None,
                "error_count": cursor.error_count if cursor else 0,
            },
            status=200 if healthy else 503,
        )
    except Exception as e:
        logger.error(f"[Health] Check failed: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
            },
            status=503,
        )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the indexer finished startup
    """
    lifecycle = request.app[HEALTH_TARGETS].lifecycle
    if not lifecycle.is_running:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
                "indexer_state": lifecycle.state.value,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """Answer as long as the event loop serves requests, whatever the indexer state."""
    lifecycle = request.app[HEALTH_TARGETS].lifecycle
    return web.json_response(
        {"status": "alive", "alive": True, "indexer_state": lifecycle.state.value}
    )


def create_health_app(targets: HealthTargets) -> web.Application:
    """Build the health application bound to the given components."""
    app = web.Application()
    app[HEALTH_TARGETS] = targets
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    targets: HealthTargets,
    host: str = "0.0.0.0",
    port: int = 8080,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        targets: Components to probe
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app(targets))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"[Health] Serving on {host}:{port} (/health, /readiness, /liveness)")

    return runner


async def stop_health_server(runner: web.AppRunner, timeout: float = 5) -> bool:
    """
    Close the health endpoints, giving in-flight probes `timeout` seconds.

    Returns:
        True if the runner was cleaned up within the timeout
    """
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"[Health] Endpoints still open after {timeout}s, abandoning")
        return False
    except Exception as e:
        logger.error(f"[Health] Failed to close endpoints: {e}")
        return False
    logger.info("[Health] Endpoints closed")
    return True
