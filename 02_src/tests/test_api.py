"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from callpath.api import create_fastapi_app
from callpath.api.routes import control
from callpath.app import Application
from callpath.models import Key
from sim.sim import Sim


@pytest.fixture
def application():
    """Create an application sampling every call."""
    return Application(db_path=":memory:", sampling_rate=1)


@pytest.fixture
def client(application):
    """Start the API around the application."""
    control.set_sim_instance(None)
    with TestClient(create_fastapi_app(application)) as client:
        yield client
    control.set_sim_instance(None)


def lookup(client: TestClient, application: Application, times: int = 1) -> None:
    """Issue datastore lookups on the client's event loop."""

    async def run():
        for _ in range(times):
            await application.datastore.lookup([Key("Package", "http")])

    client.portal.call(run)


class TestTracerEndpoint:
    """Tests for GET /api/tracer."""

    def test_status(self, client, application):
        """Test tracer status after some traffic."""
        lookup(client, application, times=3)

        response = client.get("/api/tracer")

        assert response.status_code == 200
        assert response.json() == {
            "enabled": True,
            "rate": 1,
            "subscribers": 1,
            "published": 3,
            "total_traces": 3,
        }

    def test_status_disabled(self):
        """Test tracer status when tracing is off."""
        application = Application(db_path=":memory:", tracing_enabled=False)
        with TestClient(create_fastapi_app(application)) as client:
            response = client.get("/api/tracer")

        assert response.json()["enabled"] is False
        assert response.json()["rate"] is None


class TestTracesEndpoints:
    """Tests for the call-tree endpoints."""

    def test_empty_traces(self, client):
        """Test the summary before any traffic."""
        response = client.get("/api/traces")

        assert response.status_code == 200
        assert response.json() == {"topDown": 0, "bottomUp": 0}

    def test_traces(self, client, application):
        """Test that sampled calls appear in both trees."""
        lookup(client, application, times=2)

        body = client.get("/api/traces").json()

        assert set(body) == {"[2] topDown", "[2] bottomUp"}
        bottom_up = body["[2] bottomUp"]
        (innermost,) = bottom_up
        assert "TracingDatastore.lookup" in innermost

    def test_complete_flag(self, client, application):
        """Test that complete=true matches the unpruned summary."""
        lookup(client, application)

        body = client.get("/api/traces", params={"complete": "true"}).json()

        assert body == application.aggregator.summary(complete=True)

    def test_traces_text(self, client, application):
        """Test the indented text rendering."""
        lookup(client, application)

        response = client.get("/api/traces/text")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == application.aggregator.as_sorted_json()

    def test_debug(self, client, application):
        """Test the debug snapshot."""
        lookup(client, application)

        body = client.get("/api/debug").json()

        assert body["tracer"]["total_traces"] == 1
        assert body["traces"] == application.aggregator.as_sorted_map()


class TestControlEndpoints:
    """Tests for the simulator control endpoints."""

    def test_sim_not_configured(self, client):
        """Test that control endpoints report a missing simulator."""
        assert client.post("/api/control/sim/start").status_code == 404
        assert client.post("/api/control/sim/stop").status_code == 404

    def test_sim_start_and_stop(self, client, application):
        """Test starting and stopping the simulator."""
        control.set_sim_instance(Sim(application, packages=["http"], rounds=1))

        start = client.post("/api/control/sim/start")
        stop = client.post("/api/control/sim/stop")

        assert start.status_code == 200
        assert start.json() == {"status": "ok"}
        assert stop.json() == {"status": "ok"}

    def test_sim_error(self, client):
        """Test that simulator failures map to 500."""

        class BrokenSim:
            async def start(self):
                raise RuntimeError("cannot start")

            async def stop(self):
                pass

        control.set_sim_instance(BrokenSim())

        response = client.post("/api/control/sim/start")

        assert response.status_code == 500
        assert response.json()["detail"] == "cannot start"
