"""Observability API routes: tracer status and call-tree summaries."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ...app import Application
from ...logging_config import get_logger
from ...tracer import SamplingTracer

logger = get_logger(__name__)


class TracerStatusResponse(BaseModel):
    """Response model for tracer status."""

    enabled: bool
    rate: int | None
    subscribers: int
    published: int
    total_traces: int


class DebugResponse(BaseModel):
    """Response model for the debug endpoint."""

    tracer: TracerStatusResponse
    traces: dict[str, Any]


def tracer_status(app: Application) -> dict:
    """Collect tracer status from a started application."""
    tracer = app.tracer
    if isinstance(tracer, SamplingTracer):
        return {
            "enabled": True,
            "rate": tracer.rate,
            "subscribers": tracer.channel.subscriber_count,
            "published": tracer.channel.published,
            "total_traces": app.aggregator.total,
        }
    return {
        "enabled": False,
        "rate": None,
        "subscribers": 0,
        "published": 0,
        "total_traces": app.aggregator.total,
    }


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/tracer", response_model=TracerStatusResponse)
    async def get_tracer_status() -> dict:
        """Get sampling configuration and counters."""
        try:
            return tracer_status(app)
        except Exception as e:
            logger.exception("Failed to read tracer status")
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/traces")
    async def get_traces(
        complete: bool = Query(False, description="Disable 1% pruning"),
    ) -> dict[str, Any]:
        """Get the top-down and bottom-up call trees."""
        return app.aggregator.summary(complete=complete)

    @router.get("/traces/text", response_class=PlainTextResponse)
    async def get_traces_text(
        complete: bool = Query(False, description="Disable 1% pruning"),
    ) -> str:
        """Get the call trees as indented text."""
        return app.aggregator.as_sorted_json(complete=complete)

    @router.get("/debug", response_model=DebugResponse)
    async def get_debug() -> dict:
        """Operational snapshot: tracer status and pruned call trees."""
        try:
            return {
                "tracer": tracer_status(app),
                "traces": app.aggregator.as_sorted_map(),
            }
        except Exception as e:
            logger.exception("Failed to build debug snapshot")
            raise HTTPException(status_code=500, detail=str(e))

    return router
