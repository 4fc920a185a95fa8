"""Realtime change feed that turns every remote change into a full reload."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from tasklite.services import supabase_client as gateway
from tasklite.utils.dates import utc_now
from tasklite.utils.errors import SupabaseError
from tasklite.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """Token meaning "something changed"; the payload is never relied on."""
    table: str
    event_type: Optional[str]
    received_at: datetime


def _event_type(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
        return data.get("type") or data.get("eventType")
    return None


class ChangeFeedReconciler:
    """
    Consumer side of one realtime subscription.

    The subscription callback only puts a ``ChangeEvent`` on a queue. A
    single consumer task takes events one at a time and awaits ``reload``
    for each, so every event yields exactly one reload. Events arriving
    after ``stop()`` are dropped.
    """

    def __init__(
        self,
        channel_name: str,
        table: str,
        reload: Callable[[], Awaitable[None]],
        filter: Optional[str] = None,
    ) -> None:
        self.channel_name = channel_name
        self.table = table
        self.reload = reload
        self.filter = filter
        self.queue: asyncio.Queue[Optional[ChangeEvent]] = asyncio.Queue()
        self.channel: Any = None
        self.reloads = 0
        self._consumer: Optional[asyncio.Task] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    async def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._consumer = asyncio.create_task(self._consume(self.queue))
        try:
            self.channel = await gateway.subscribe_table(
                self.channel_name,
                self.table,
                self.on_change,
                filter=self.filter,
            )
        except SupabaseError:
            await self.stop()
            raise

    async def stop(self) -> None:
        if not self._active and self._consumer is None:
            return
        self._active = False

        channel, self.channel = self.channel, None
        if channel is not None:
            try:
                await gateway.unsubscribe(channel)
            except SupabaseError as e:
                logger.warning("Realtime unsubscribe failed", channel=self.channel_name, error=str(e))

        # Pending tokens are dropped; a reload already in flight is left to finish
        while not self.queue.empty():
            self.queue.get_nowait()
            self.queue.task_done()
        if self._consumer is not None:
            self.queue.put_nowait(None)
            self._consumer = None
            self.queue = asyncio.Queue()

        logger.info("Realtime channel torn down", channel=self.channel_name, table=self.table)

    def on_change(self, payload: Any = None) -> None:
        """Realtime callback: enqueue a token and return immediately."""
        if not self._active:
            logger.debug("Change event after teardown dropped", channel=self.channel_name)
            return
        self.queue.put_nowait(ChangeEvent(
            table=self.table,
            event_type=_event_type(payload),
            received_at=utc_now(),
        ))

    async def _consume(self, queue: "asyncio.Queue[Optional[ChangeEvent]]") -> None:
        while True:
            event = await queue.get()
            if event is None:
                queue.task_done()
                return
            try:
                logger.debug(
                    "Change event received, reloading",
                    channel=self.channel_name,
                    table=event.table,
                    event_type=event.event_type
                )
                self.reloads += 1
                await self.reload()
            except Exception as e:
                logger.error(
                    "Reload after change event failed",
                    channel=self.channel_name,
                    table=self.table,
                    error=str(e),
                    exc_info=True
                )
            finally:
                queue.task_done()
