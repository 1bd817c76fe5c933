"""Tests for Application."""

import pytest

from callpath.aggregator import TraceAggregator
from callpath.app import Application
from callpath.backends import MemoryObjectStorage, SqliteDatastore
from callpath.instrumentation import TracingDatastore, TracingStorage
from callpath.models import Key
from callpath.tracer import PassThroughTracer, SamplingTracer


class TestApplicationStart:
    """Tests for Application.start()."""

    @pytest.mark.asyncio
    async def test_start_with_tracing(self):
        """Test that start wraps the backends when tracing is enabled."""
        app = Application(db_path=":memory:")
        await app.start()

        assert isinstance(app.tracer, SamplingTracer)
        assert isinstance(app.datastore, TracingDatastore)
        assert isinstance(app.storage, TracingStorage)
        assert app.tracer.channel.subscriber_count == 1

        await app.stop()

    @pytest.mark.asyncio
    async def test_start_without_tracing(self):
        """Test that disabled tracing hands out the raw backends."""
        app = Application(db_path=":memory:", tracing_enabled=False)
        await app.start()

        assert isinstance(app.tracer, PassThroughTracer)
        assert isinstance(app.datastore, SqliteDatastore)
        assert isinstance(app.storage, MemoryObjectStorage)

        await app.stop()

    @pytest.mark.asyncio
    async def test_backend_calls_reach_aggregator(self):
        """Test that traced backend calls are folded into the aggregator."""
        app = Application(db_path=":memory:", sampling_rate=2)
        await app.start()

        for _ in range(4):
            await app.datastore.lookup([Key("Package", "http")])

        assert app.aggregator.total == 2
        await app.stop()

    @pytest.mark.asyncio
    async def test_disabled_tracing_records_nothing(self):
        """Test that the aggregator stays empty without tracing."""
        app = Application(db_path=":memory:", tracing_enabled=False)
        await app.start()

        await app.datastore.lookup([Key("Package", "http")])

        assert app.aggregator.total == 0
        await app.stop()

    @pytest.mark.asyncio
    async def test_start_creates_database_tables(self):
        """Test that start creates database tables."""
        app = Application(db_path=":memory:")
        await app.start()

        async with app._sqlite_datastore._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "entities" in tables

        await app.stop()


class TestApplicationConfig:
    """Tests for configuration resolution."""

    def test_rate_from_environment(self, monkeypatch):
        """Test that TRACER_RATE sets the sampling rate."""
        monkeypatch.setenv("TRACER_RATE", "25")
        assert Application(db_path=":memory:").sampling_rate == 25

    def test_invalid_rate_falls_back(self, monkeypatch):
        """Test that an unusable TRACER_RATE samples every call."""
        monkeypatch.setenv("TRACER_RATE", "often")
        assert Application(db_path=":memory:").sampling_rate == 1

    def test_tracing_disabled_from_environment(self, monkeypatch):
        """Test that TRACER_ENABLED=false disables tracing."""
        monkeypatch.setenv("TRACER_ENABLED", "false")
        assert not Application(db_path=":memory:").tracing_enabled

    def test_arguments_override_environment(self, monkeypatch):
        """Test that explicit arguments win over the environment."""
        monkeypatch.setenv("TRACER_RATE", "25")
        monkeypatch.setenv("TRACER_ENABLED", "false")

        app = Application(db_path=":memory:", tracing_enabled=True, sampling_rate=3)

        assert app.tracing_enabled
        assert app.sampling_rate == 3

    def test_injected_aggregator(self):
        """Test that a provided aggregator is used as-is."""
        aggregator = TraceAggregator()
        assert Application(db_path=":memory:", aggregator=aggregator).aggregator is aggregator


class TestApplicationStop:
    """Tests for Application.stop()."""

    @pytest.mark.asyncio
    async def test_stop_closes_components(self):
        """Test that stop closes the tracer and the datastore."""
        app = Application(db_path=":memory:")
        await app.start()
        tracer = app.tracer

        await app.stop()

        assert tracer.channel.is_closed
        assert app._sqlite_datastore._conn is None

    @pytest.mark.asyncio
    async def test_stop_without_tracing(self):
        """Test that stop works with the pass-through tracer."""
        app = Application(db_path=":memory:", tracing_enabled=False)
        await app.start()

        await app.stop()

        assert app._sqlite_datastore._conn is None

    @pytest.mark.asyncio
    async def test_aggregator_survives_restart(self):
        """Test that counters carry over a stop/start cycle."""
        app = Application(db_path=":memory:")
        await app.start()
        await app.datastore.lookup([Key("Package", "http")])
        await app.stop()

        await app.start()
        await app.datastore.lookup([Key("Package", "http")])

        assert app.aggregator.total == 2
        await app.stop()


class TestApplicationProperties:
    """Tests for Application properties."""

    @pytest.mark.parametrize("name", ["tracer", "datastore", "storage"])
    def test_property_raises_when_not_started(self, name):
        """Test that components are unavailable before start."""
        app = Application(db_path=":memory:")

        with pytest.raises(RuntimeError, match="not started"):
            getattr(app, name)

    def test_aggregator_available_before_start(self):
        """Test that the aggregator exists from construction."""
        app = Application(db_path=":memory:")
        assert app.aggregator.total == 0
