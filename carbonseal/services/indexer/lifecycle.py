"""
Indexer lifecycle controller.

Owns the order of startup and shutdown: initial reconciliation, event
subscription and the periodic backstop job.
"""

import asyncio
from enum import Enum

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from carbonseal.services.indexer.live_listener import LiveListener
from carbonseal.services.indexer.reconciler import Reconciler

BACKSTOP_JOB_ID = "backstop_reconcile"


class LifecycleState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class IndexerLifecycle:
    """
    Starts and stops the indexer.

    start(): one full reconciliation, then live events from the block
    after the reconciled head, then the backstop interval job.
    stop(): no new work is accepted, then in-flight work is awaited.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        listener: LiveListener,
        interval_seconds: int = 300,
    ) -> None:
        self.reconciler = reconciler
        self.listener = listener
        self.interval_seconds = interval_seconds

        self.state = LifecycleState.STOPPED
        self.scheduler: AsyncIOScheduler | None = None
        self._backstop_tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.state is LifecycleState.RUNNING

    async def start(self) -> None:
        """
        Start the indexer.

        Raises:
            ReconciliationError: If the initial reconciliation fails.
                The controller is back in STOPPED.
        """
        if self.state is not LifecycleState.STOPPED:
            logger.debug(f"[Lifecycle] start() ignored in state {self.state.value}")
            return

        self.state = LifecycleState.STARTING
        logger.info("[Lifecycle] Starting indexer")

        try:
            result = await self.reconciler.reconcile()
            from_block = result.to_block + 1 if result.to_block else None
            self.listener.register(from_block)
            self._start_scheduler()
        except Exception:
            logger.error("[Lifecycle] Startup failed, indexer stopped")
            await self.listener.deregister()
            self._shutdown_scheduler()
            self.state = LifecycleState.STOPPED
            raise

        self.state = LifecycleState.RUNNING
        logger.success(
            f"[Lifecycle] Indexer running (backstop every {self.interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the indexer. Safe to call more than once."""
        if self.state is not LifecycleState.RUNNING:
            logger.debug(f"[Lifecycle] stop() ignored in state {self.state.value}")
            return

        self.state = LifecycleState.STOPPING
        logger.info("[Lifecycle] Stopping indexer")

        self._shutdown_scheduler()
        await self.listener.deregister()

        if self.reconciler.is_syncing:
            logger.info("[Lifecycle] Waiting for in-flight reconciliation")
        if self._backstop_tasks:
            await asyncio.gather(*list(self._backstop_tasks), return_exceptions=True)
        await self.reconciler.wait_idle()

        if self.listener.pending:
            logger.info(f"[Lifecycle] Draining {self.listener.pending} event handlers")
        await self.listener.drain()

        self.state = LifecycleState.STOPPED
        logger.info("[Lifecycle] Indexer stopped")

    def _start_scheduler(self) -> None:
        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._backstop_job,
            "interval",
            seconds=self.interval_seconds,
            id=BACKSTOP_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()

    def _shutdown_scheduler(self) -> None:
        scheduler, self.scheduler = self.scheduler, None
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)

    async def _backstop_job(self) -> None:
        # Scheduler shutdown cancels its job futures; shield the pass itself
        task = asyncio.ensure_future(self.run_backstop())
        self._backstop_tasks.add(task)
        task.add_done_callback(self._backstop_tasks.discard)
        await asyncio.shield(task)

    async def run_backstop(self) -> None:
        """Run one backstop reconciliation and log its outcome."""
        try:
            result = await self.reconciler.reconcile()
        except Exception as e:
            logger.error(f"[Lifecycle] Backstop reconciliation failed: {e}")
            return
        logger.debug(
            f"[Lifecycle] Backstop reconciliation {result.status.value} "
            f"at block {result.to_block}"
        )
