"""Core data models for the call-path sampler."""

from .datastore import CommitResult, Entity, Key, Query, Transaction
from .storage import BucketEntry, BucketInfo, ObjectInfo, ObjectMetadata
from .tracing import Frame, Trace

__all__ = [
    # Tracing
    "Frame",
    "Trace",
    # Datastore
    "Key",
    "Entity",
    "Transaction",
    "CommitResult",
    "Query",
    # Object storage
    "BucketInfo",
    "BucketEntry",
    "ObjectInfo",
    "ObjectMetadata",
]
