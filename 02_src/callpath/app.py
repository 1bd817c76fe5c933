"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .aggregator import TraceAggregator
from .backends import IDatastore, IObjectStorage, MemoryObjectStorage, SqliteDatastore
from .channel import Subscription
from .config import resolve_db_path, resolve_sampling_rate, resolve_tracing_enabled
from .instrumentation import TracingDatastore, TracingStorage
from .logging_config import get_logger
from .tracer import ITracer, PassThroughTracer, SamplingTracer

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    @property
    def aggregator(self) -> TraceAggregator:
        """Process-wide trace aggregator."""
        ...


class Application:
    """Composition root.

    The TraceAggregator is created once here and outlives stop()/start()
    cycles; it is never cleared, so its counters cover the whole process
    lifetime.
    """

    def __init__(
        self,
        db_path: str | None = None,
        tracing_enabled: bool | None = None,
        sampling_rate: int | None = None,
        aggregator: TraceAggregator | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._tracing_enabled = resolve_tracing_enabled(tracing_enabled)
        self._sampling_rate = resolve_sampling_rate(sampling_rate)
        self._aggregator = aggregator or TraceAggregator()

        # Components (will be initialized in start())
        self._sqlite_datastore: SqliteDatastore | None = None
        self._object_storage: MemoryObjectStorage | None = None
        self._tracer: ITracer | None = None
        self._subscription: Subscription | None = None
        self._datastore: IDatastore | None = None
        self._storage: IObjectStorage | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Backends (no dependencies)
        self._sqlite_datastore = SqliteDatastore(self._db_path)
        await self._sqlite_datastore.init()
        self._object_storage = MemoryObjectStorage()
        logger.info("Backends initialized")

        # 2. Tracer, wrapping the backends when enabled
        if self._tracing_enabled:
            tracer = SamplingTracer(rate=self._sampling_rate)
            self._subscription = tracer.subscribe(self._aggregator.add)
            self._tracer = tracer
            self._datastore = TracingDatastore(self._sqlite_datastore, tracer)
            self._storage = TracingStorage(self._object_storage, tracer)
            logger.info(
                "Tracing enabled",
                extra={"context": {"rate": self._sampling_rate}},
            )
        else:
            self._tracer = PassThroughTracer()
            self._datastore = self._sqlite_datastore
            self._storage = self._object_storage
            logger.info("Tracing disabled")

        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._subscription:
            self._subscription.cancel()
            self._subscription = None
        if isinstance(self._tracer, SamplingTracer):
            await self._tracer.close()
            logger.info("Tracer closed")
        if self._sqlite_datastore:
            await self._sqlite_datastore.close()
            logger.info("Datastore closed")

    @property
    def tracing_enabled(self) -> bool:
        return self._tracing_enabled

    @property
    def sampling_rate(self) -> int:
        return self._sampling_rate

    @property
    def aggregator(self) -> TraceAggregator:
        """Get the process-wide trace aggregator."""
        return self._aggregator

    @property
    def tracer(self) -> ITracer:
        """Get tracer instance."""
        if not self._tracer:
            raise RuntimeError("Application not started")
        return self._tracer

    @property
    def datastore(self) -> IDatastore:
        """Get the (possibly instrumented) datastore."""
        if not self._datastore:
            raise RuntimeError("Application not started")
        return self._datastore

    @property
    def storage(self) -> IObjectStorage:
        """Get the (possibly instrumented) object storage."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage
