"""Tracer module."""

from .tracer import ITracer, PassThroughTracer, SamplingTracer, SelectingTracer

__all__ = ["ITracer", "PassThroughTracer", "SamplingTracer", "SelectingTracer"]
