"""Tracers deciding which calls get their call path captured."""

import threading
from typing import Callable, Protocol, TypeVar

from ..channel import Subscription, TraceChannel, TraceHandler
from ..logging_config import get_logger
from ..models import Trace

logger = get_logger(__name__)

R = TypeVar("R")


class ITracer(Protocol):
    """Executes an operation, possibly sampling the call path leading to it."""

    def trace(self, fn: Callable[[], R]) -> R:
        """Run fn and return its result; failures propagate unchanged."""
        ...


class PassThroughTracer:
    """Tracer that never samples."""

    def trace(self, fn: Callable[[], R]) -> R:
        return fn()


class SelectingTracer:
    """Base for tracers that publish selected call paths on a channel.

    Selection is only evaluated while someone is subscribed, so an
    unobserved tracer costs a single attribute check per call.
    """

    def __init__(self) -> None:
        self._channel = TraceChannel()

    def trace(self, fn: Callable[[], R]) -> R:
        if self._channel.has_subscribers and self.should_select():
            self._emit()
        return fn()

    def should_select(self) -> bool:
        raise NotImplementedError

    @property
    def channel(self) -> TraceChannel:
        return self._channel

    def subscribe(self, handler: TraceHandler) -> Subscription:
        """Attach a consumer of sampled Traces."""
        return self._channel.subscribe(handler)

    async def close(self) -> None:
        """Close the channel, draining pending deliveries."""
        await self._channel.close()

    def _emit(self) -> None:
        # level 2 skips _emit and trace
        self._channel.publish(Trace.current(2))


class SamplingTracer(SelectingTracer):
    """Selects every `rate`-th observed call."""

    def __init__(self, rate: int):
        if isinstance(rate, bool) or not isinstance(rate, int) or rate < 1:
            raise ValueError(f"Sampling rate must be a positive integer, got {rate!r}")
        super().__init__()
        self._rate = rate
        self._current = rate
        self._lock = threading.Lock()
        logger.info(
            "Sampling tracer created",
            extra={"context": {"rate": rate}},
        )

    @property
    def rate(self) -> int:
        return self._rate

    def should_select(self) -> bool:
        with self._lock:
            self._current -= 1
            if self._current == 0:
                self._current = self._rate
                return True
            return False
