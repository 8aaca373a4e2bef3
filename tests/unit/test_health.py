"""
Tests for the health check endpoints.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp.test_utils import make_mocked_request

from carbonseal.services.indexer.lifecycle import LifecycleState
from worker.health import (
    HealthTargets,
    create_health_app,
    health_handler,
    liveness_handler,
    readiness_handler,
    stop_health_server,
)


def make_targets(chain_ok=True, store_ok=True, state=LifecycleState.RUNNING, head=150):
    reader = MagicMock()
    reader.is_connected = AsyncMock(return_value=chain_ok)
    reader.get_block_number = AsyncMock(return_value=head)

    store = MagicMock()
    store.health_check = AsyncMock(return_value=store_ok)
    store.get_cursor_state = AsyncMock(
        return_value=SimpleNamespace(last_block=120, last_error=None, error_count=0)
    )

    lifecycle = MagicMock()
    lifecycle.state = state
    lifecycle.is_running = state is LifecycleState.RUNNING

    return HealthTargets(reader=reader, store=store, lifecycle=lifecycle)


def request_for(path, targets):
    app = create_health_app(targets)
    return make_mocked_request("GET", path, app=app)


def body(response):
    return json.loads(response.body)


class TestHealth:
    """/health reports chain, store, lifecycle and cursor lag."""

    @pytest.mark.asyncio
    async def test_healthy(self):
        response = await health_handler(request_for("/health", make_targets()))

        assert response.status == 200
        data = body(response)
        assert data["status"] == "healthy"
        assert data["indexer_state"] == "running"
        assert data["chain_head"] == 150
        assert data["last_synced_block"] == 120
        assert data["cursor_lag"] == 30

    @pytest.mark.asyncio
    async def test_chain_down(self):
        targets = make_targets(chain_ok=False)

        response = await health_handler(request_for("/health", targets))

        assert response.status == 503
        data = body(response)
        assert data["chain_connected"] is False
        assert data["cursor_lag"] is None
        targets.reader.get_block_number.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_down(self):
        targets = make_targets(store_ok=False)

        response = await health_handler(request_for("/health", targets))

        assert response.status == 503
        assert body(response)["store_healthy"] is False
        targets.store.get_cursor_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_probe_exception(self):
        targets = make_targets()
        targets.reader.get_block_number.side_effect = RuntimeError("boom")

        response = await health_handler(request_for("/health", targets))

        assert response.status == 503
        assert body(response)["error"] == "boom"


class TestReadinessAndLiveness:
    """Readiness follows the lifecycle; liveness is unconditional."""

    @pytest.mark.asyncio
    async def test_ready_when_running(self):
        response = await readiness_handler(request_for("/readiness", make_targets()))
        assert response.status == 200
        assert body(response)["ready"] is True

    @pytest.mark.asyncio
    async def test_not_ready_while_starting(self):
        targets = make_targets(state=LifecycleState.STARTING)

        response = await readiness_handler(request_for("/readiness", targets))

        assert response.status == 503
        assert body(response)["indexer_state"] == "starting"

    @pytest.mark.asyncio
    async def test_liveness(self):
        response = await liveness_handler(
            request_for("/liveness", make_targets(state=LifecycleState.STOPPED))
        )
        assert response.status == 200
        assert body(response)["alive"] is True
        assert body(response)["indexer_state"] == "stopped"


class TestStopHealthServer:
    """Runner cleanup is bounded and never raises."""

    @pytest.mark.asyncio
    async def test_cleanup(self):
        runner = MagicMock()
        runner.cleanup = AsyncMock()

        assert await stop_health_server(runner) is True
        runner.cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_slow_cleanup_is_abandoned(self):
        async def hang():
            await asyncio.Event().wait()

        runner = MagicMock()
        runner.cleanup = hang

        assert await stop_health_server(runner, timeout=0.01) is False

    @pytest.mark.asyncio
    async def test_cleanup_error_is_logged(self):
        runner = MagicMock()
        runner.cleanup = AsyncMock(side_effect=RuntimeError("socket gone"))

        assert await stop_health_server(runner) is False
