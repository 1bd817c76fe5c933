"""Instrumented backend proxies."""

from .tracing_datastore import TracingDatastore
from .tracing_storage import TracingBucket, TracingStorage

__all__ = ["TracingBucket", "TracingDatastore", "TracingStorage"]
