"""
Live event listener.

Turns chain events into targeted mirror updates. Each event is handled
in its own task so a slow RPC call never holds up the event stream;
updates touching the same entity are applied in arrival order.
"""

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable

from loguru import logger

from carbonseal.services.chain.chain_reader import ChainReader
from carbonseal.services.chain.events import (
    CarbonAdded,
    ChainEvent,
    CreditMinted,
    CreditRetired,
    EventType,
    FarmRegistered,
)
from carbonseal.services.indexer.reconciler import Reconciler
from carbonseal.utils.security import mask_address

EntityKey = tuple[str, int]


class LiveListener:
    """
    Event-driven mirror updater.

    Handler failures are logged and swallowed; the periodic backstop
    reconciliation repairs anything a failed handler missed.
    """

    def __init__(self, reader: ChainReader, reconciler: Reconciler) -> None:
        self.reader = reader
        self.reconciler = reconciler

        self.processed = 0
        self.failed = 0
        self._registered = False
        self._tasks: set[asyncio.Task] = set()
        self._locks: dict[EntityKey, asyncio.Lock] = {}
        self._lock_refs: Counter[EntityKey] = Counter()

    @property
    def registered(self) -> bool:
        return self._registered

    @property
    def pending(self) -> int:
        """Number of handler tasks not yet finished."""
        return len(self._tasks)

    def register(self, from_block: int | None = None) -> None:
        """
        Subscribe to all four contract events and start the stream.

        Args:
            from_block: First block to read events from
        """
        if self._registered:
            logger.debug("[Listener] Already registered")
            return

        for event_type in EventType:
            self.reader.subscribe(event_type, self.dispatch)
        self.reader.events.start(from_block)
        self._registered = True
        logger.info(f"[Listener] Registered for {len(EventType)} event types")

    async def deregister(self) -> None:
        """Remove all subscriptions. Pending handler tasks keep running."""
        if not self._registered:
            return
        await self.reader.remove_all_listeners()
        self._registered = False
        logger.info("[Listener] Deregistered")

    async def drain(self) -> None:
        """Wait for all pending handler tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def dispatch(self, event: ChainEvent) -> None:
        """
        Schedule handling of one event and return immediately.

        Used as the subscription callback for every event type.
        """
        key, handler = self._route(event)
        task = asyncio.create_task(self._process(key, handler, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _route(
        self, event: ChainEvent
    ) -> tuple[EntityKey, Callable[[ChainEvent], Awaitable[None]]]:
        if isinstance(event, FarmRegistered):
            return ("farm", event.farm_id), self.on_farm_registered
        if isinstance(event, CarbonAdded):
            return ("farm", event.farm_id), self.on_carbon_added
        if isinstance(event, CreditMinted):
            return ("credit", event.token_id), self.on_credit_minted
        if isinstance(event, CreditRetired):
            return ("credit", event.token_id), self.on_credit_retired
        raise TypeError(f"Unsupported event: {type(event).__name__}")

    async def _process(
        self,
        key: EntityKey,
        handler: Callable[[ChainEvent], Awaitable[None]],
        event: ChainEvent,
    ) -> None:
        # Lock is taken before the first suspension, so waiters queue in arrival order
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_refs[key] += 1
        try:
            async with lock:
                await handler(event)
            self.processed += 1
        except Exception as e:
            self.failed += 1
            logger.error(
                f"[Listener] {type(event).__name__} handler failed "
                f"for {key[0]} {key[1]} (block {event.block_number}): {e}"
            )
        finally:
            self._lock_refs[key] -= 1
            if self._lock_refs[key] <= 0:
                del self._lock_refs[key]
                self._locks.pop(key, None)

    # Handlers

    async def on_farm_registered(self, event: FarmRegistered) -> None:
        logger.info(
            f"[Listener] New farm registered: {event.farm_id} "
            f"by {mask_address(event.farmer)}"
        )
        farm = await self.reconciler.sync_farm(event.farm_id)
        if farm is None:
            logger.warning(f"[Listener] Farm {event.farm_id} not readable yet")

    async def on_carbon_added(self, event: CarbonAdded) -> None:
        logger.info(
            f"[Listener] Carbon added to farm {event.farm_id}: "
            f"reading {event.reading_id}, amount {event.amount}"
        )
        await self.reconciler.sync_latest_reading(event.farm_id, event.reading_id)

    async def on_credit_minted(self, event: CreditMinted) -> None:
        logger.info(
            f"[Listener] Credit minted: token {event.token_id} "
            f"for farm {event.farm_id}"
        )
        credit = await self.reconciler.sync_credit(event.token_id)
        if credit is None:
            logger.warning(f"[Listener] Credit {event.token_id} not readable yet")

    async def on_credit_retired(self, event: CreditRetired) -> None:
        logger.info(
            f"[Listener] Credit retired: token {event.token_id} "
            f"by {mask_address(event.retired_by)}"
        )
        credit = await self.reconciler.sync_credit(event.token_id)
        if credit is None:
            logger.warning(f"[Listener] Credit {event.token_id} not readable yet")
