"""TraceChannel module."""

from .channel import ChannelClosedError, ITraceChannel, Subscription, TraceChannel, TraceHandler

__all__ = ["ChannelClosedError", "ITraceChannel", "Subscription", "TraceChannel", "TraceHandler"]
