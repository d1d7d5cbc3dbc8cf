"""Fan-out of progress events to connected observers.

The broadcaster knows nothing about HTTP: each subscriber owns a bounded
queue that the transport drains.  A subscriber whose queue is full, or that
has not drained anything for longer than the idle timeout, is pruned.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

_CLOSED = None


class EventPublisher(Protocol):
    def publish(self, event: dict[str, Any]) -> None: ...


@dataclass(eq=False)
class Subscriber:
    id: str
    queue: asyncio.Queue
    last_activity: float
    closed: bool = False
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def touch(self) -> None:
        self.last_activity = self.clock()

    def offer(self, event: dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        while True:
            try:
                self.queue.put_nowait(_CLOSED)
                return
            except asyncio.QueueFull:
                self.queue.get_nowait()

    async def next_event(self) -> dict[str, Any] | None:
        """Wait for the next event; ``None`` once the subscriber is closed."""

        if self.closed and self.queue.empty():
            return None
        event = await self.queue.get()
        if event is _CLOSED:
            return None
        self.touch()
        return event


class ProgressBroadcaster:
    def __init__(
        self,
        *,
        queue_size: int = 100,
        keepalive_interval: float = 15.0,
        subscriber_timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._queue_size = queue_size
        self.keepalive_interval = keepalive_interval
        self.subscriber_timeout = subscriber_timeout
        self._clock = clock
        self._subscribers: dict[str, Subscriber] = {}
        self._keepalive_task: asyncio.Task | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscriber:
        subscriber = Subscriber(
            id=uuid.uuid4().hex,
            queue=asyncio.Queue(maxsize=self._queue_size),
            last_activity=self._clock(),
            clock=self._clock,
        )
        self._subscribers[subscriber.id] = subscriber
        logger.debug("Subscriber %s connected (%d total)", subscriber.id, len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.debug("Subscriber %s disconnected", subscriber.id)
        subscriber.close()

    def publish(self, event: dict[str, Any]) -> None:
        """Deliver ``event`` to every subscriber; failed sinks are pruned."""

        for subscriber in list(self._subscribers.values()):
            try:
                delivered = subscriber.offer(event)
            except Exception:  # noqa: BLE001
                logger.exception("Error sending to subscriber %s", subscriber.id)
                delivered = False
            if not delivered:
                logger.info("Pruning subscriber %s after failed delivery", subscriber.id)
                self.unsubscribe(subscriber)

    def prune_idle(self) -> int:
        now = self._clock()
        stale = [
            subscriber
            for subscriber in self._subscribers.values()
            if now - subscriber.last_activity > self.subscriber_timeout
        ]
        for subscriber in stale:
            logger.info("Pruning idle subscriber %s", subscriber.id)
            self.unsubscribe(subscriber)
        return len(stale)

    def heartbeat(self) -> None:
        self.prune_idle()
        self.publish({"type": "heartbeat", "timestamp": int(time.time() * 1000)})

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self.keepalive_interval)
            self.heartbeat()

    def start(self) -> None:
        if self._keepalive_task is None or self._keepalive_task.done():
            self._keepalive_task = asyncio.get_running_loop().create_task(self._keepalive_loop())

    async def stop(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        for subscriber in list(self._subscribers.values()):
            self.unsubscribe(subscriber)


__all__ = ["EventPublisher", "ProgressBroadcaster", "Subscriber"]
