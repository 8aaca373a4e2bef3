"""
Chain event stream.

Polls contract logs for subscribed event types and pushes decoded
events to registered handlers in (block, log index) order. Transport
is plain eth_getLogs polling, so it works against any HTTP RPC.
"""

import asyncio
from collections import defaultdict
from typing import TYPE_CHECKING

from loguru import logger

from .events import ChainEvent, EventHandler, EventType, decode_event

if TYPE_CHECKING:
    from .chain_reader import ChainReader


class ChainEventStream:
    """
    Log-polling subscription boundary.

    Handlers are awaited in order for each event; a handler that needs
    to do slow work should schedule it and return.
    """

    def __init__(
        self,
        reader: "ChainReader",
        poll_interval: float = 3,
        block_chunk: int = 2000,
    ) -> None:
        self.reader = reader
        self.poll_interval = poll_interval
        self.block_chunk = block_chunk

        self._handlers: dict[EventType, list[EventHandler]] = defaultdict(list)
        self._next_block: int | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def next_block(self) -> int | None:
        """First block the next poll will read."""
        return self._next_block

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for one event type."""
        self._handlers[event_type].append(handler)
        logger.debug(f"[EventStream] Subscribed handler to {event_type.value}")

    def start(self, from_block: int | None = None) -> None:
        """
        Start polling.

        Args:
            from_block: First block to read; defaults to the block after
                the head observed on the first poll
        """
        if self.running:
            return
        self._next_block = from_block
        self._task = asyncio.create_task(self._run(), name="chain-event-stream")
        logger.info(
            f"[EventStream] Started polling every {self.poll_interval}s "
            f"from block {from_block if from_block is not None else 'head'}"
        )

    async def close(self) -> None:
        """Stop polling and drop all handlers."""
        self._handlers.clear()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[EventStream] Stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Retried on the next tick; the backstop covers anything lost
                logger.warning(f"[EventStream] Poll failed: {e}")
            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> int:
        """
        Read and dispatch all logs up to the current head.

        Returns:
            Number of events dispatched
        """
        head = await self.reader.get_block_number()
        if self._next_block is None:
            self._next_block = head + 1
            return 0

        dispatched = 0
        while self._next_block <= head:
            chunk_end = min(self._next_block + self.block_chunk - 1, head)
            events = await self._collect(self._next_block, chunk_end)
            for event_type, event in events:
                await self._dispatch(event_type, event)
                dispatched += 1
            # Advance only after the whole chunk was dispatched
            self._next_block = chunk_end + 1

        return dispatched

    async def _collect(
        self, from_block: int, to_block: int
    ) -> list[tuple[EventType, ChainEvent]]:
        collected: list[tuple[EventType, ChainEvent]] = []
        for event_type in list(self._handlers):
            logs = await self.reader.get_event_logs(event_type, from_block, to_block)
            for log in logs:
                try:
                    collected.append((event_type, decode_event(event_type, log)))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(
                        f"[EventStream] Undecodable {event_type.value} log "
                        f"in block {log.get('blockNumber')}: {e}"
                    )
        collected.sort(key=lambda item: (item[1].block_number, item[1].log_index))
        return collected

    async def _dispatch(self, event_type: EventType, event: ChainEvent) -> None:
        for handler in list(self._handlers.get(event_type, ())):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    f"[EventStream] Handler for {event_type.value} failed: {e}"
                )
