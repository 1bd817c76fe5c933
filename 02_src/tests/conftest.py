"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def datastore():
    """Create in-memory datastore for testing."""
    from callpath.backends import SqliteDatastore

    ds = SqliteDatastore(":memory:")
    await ds.init()
    yield ds
    await ds.close()


@pytest.fixture
def object_storage():
    """Create in-memory object storage."""
    from callpath.backends import MemoryObjectStorage

    return MemoryObjectStorage()


@pytest.fixture
def aggregator():
    """Create aggregator that keeps every frame."""
    from callpath.aggregator import TraceAggregator
    from callpath.classifier import never_core

    return TraceAggregator(classifier=never_core)


@pytest.fixture
def tracer():
    """Create tracer sampling every call."""
    from callpath.tracer import SamplingTracer

    return SamplingTracer(rate=1)


@pytest.fixture
def collected(tracer):
    """Traces published by the tracer fixture."""
    traces = []
    tracer.subscribe(traces.append)
    return traces


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host configuration out of the tests."""
    for name in ("TRACER_RATE", "TRACER_ENABLED", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
