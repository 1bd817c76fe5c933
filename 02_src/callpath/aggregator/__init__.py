"""Trace aggregation module."""

from .aggregator import SKIPPED_KEY, TraceAggregator, TraceTreeNode

__all__ = ["SKIPPED_KEY", "TraceAggregator", "TraceTreeNode"]
