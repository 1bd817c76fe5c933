"""Broadcast channel of Trace events."""

import asyncio
import inspect
import threading
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import Trace

logger = get_logger(__name__)


TraceHandler = Callable[[Trace], None] | Callable[[Trace], Awaitable[None]]


class ChannelClosedError(RuntimeError):
    """Raised when subscribing to or publishing on a closed channel."""


class ITraceChannel(Protocol):
    """Pub/sub of captured Traces with an "is anyone listening" query."""

    @property
    def has_subscribers(self) -> bool:
        """Whether at least one subscriber is attached."""
        ...

    def subscribe(self, handler: TraceHandler) -> "Subscription":
        """Attach a handler; returns a cancellable subscription."""
        ...

    def publish(self, trace: Trace) -> None:
        """Deliver a Trace to every current subscriber."""
        ...

    async def close(self) -> None:
        """Drain pending deliveries and detach all subscribers."""
        ...


class Subscription:
    """Attachment of one handler to a TraceChannel."""

    def __init__(self, channel: "TraceChannel", handler: TraceHandler):
        self._channel = channel
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        """Detach the handler. Safe to call more than once."""
        if self.active:
            self.active = False
            self._channel._remove(self)


class TraceChannel:
    """In-memory broadcast channel.

    Sync handlers run inline in `publish`; async handlers are scheduled on the
    running loop and awaited by `close`, so no delivered sample is lost on
    shutdown. Delivery follows subscription order.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscription] = []
        self._pending: set[asyncio.Task] = set()
        self._lock = threading.Lock()
        self._closed = False
        self.published = 0

    @property
    def has_subscribers(self) -> bool:
        return not self._closed and bool(self._subscribers)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, handler: TraceHandler) -> Subscription:
        """Attach a handler to receive every published Trace."""
        if self._closed:
            raise ChannelClosedError("Cannot subscribe to a closed channel")
        subscription = Subscription(self, handler)
        with self._lock:
            self._subscribers = [*self._subscribers, subscription]
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers = [s for s in self._subscribers if s is not subscription]

    def publish(self, trace: Trace) -> None:
        """Deliver a Trace to all subscribers, isolating handler failures."""
        if self._closed:
            raise ChannelClosedError("Cannot publish on a closed channel")
        self.published += 1

        for i, subscription in enumerate(self._subscribers):
            try:
                result = subscription.handler(trace)
                if inspect.isawaitable(result):
                    self._schedule(i, result)
            except Exception:
                logger.exception("Error in trace handler %s", i)

    def _schedule(self, index: int, awaitable: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(_deliver(awaitable))
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finish(index, t))

    def _finish(self, index: int, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Error in trace handler %s: %s",
                index,
                task.exception(),
                exc_info=task.exception(),
            )

    async def close(self) -> None:
        """Stop accepting traces, drain async deliveries, detach subscribers."""
        if self._closed:
            return
        self._closed = True

        if self._pending:
            logger.debug("Draining %d pending trace deliveries", len(self._pending))
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        with self._lock:
            subscribers, self._subscribers = self._subscribers, []
        for subscription in subscribers:
            subscription.active = False


async def _deliver(awaitable: Awaitable[None]) -> None:
    await awaitable
