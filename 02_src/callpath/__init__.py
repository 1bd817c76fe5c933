"""Statistically-sampled call-path tracing for backend operations."""

from .aggregator import TraceAggregator, TraceTreeNode
from .app import Application, IApplication
from .backends import (
    BucketExistsError,
    BucketNotFoundError,
    DatastoreError,
    IBucket,
    IDatastore,
    IObjectStorage,
    MemoryObjectStorage,
    ObjectNotFoundError,
    SqliteDatastore,
    StorageError,
    TransactionError,
)
from .channel import ChannelClosedError, ITraceChannel, Subscription, TraceChannel
from .classifier import FrameClassifier, is_core_frame, never_core
from .instrumentation import TracingBucket, TracingDatastore, TracingStorage
from .models import (
    BucketEntry,
    BucketInfo,
    CommitResult,
    Entity,
    Frame,
    Key,
    ObjectInfo,
    ObjectMetadata,
    Query,
    Trace,
    Transaction,
)
from .tracer import ITracer, PassThroughTracer, SamplingTracer

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Frame",
    "Trace",
    "Key",
    "Entity",
    "Transaction",
    "CommitResult",
    "Query",
    "BucketInfo",
    "BucketEntry",
    "ObjectInfo",
    "ObjectMetadata",
    # Tracing
    "FrameClassifier",
    "is_core_frame",
    "never_core",
    "ITraceChannel",
    "TraceChannel",
    "Subscription",
    "ChannelClosedError",
    "ITracer",
    "PassThroughTracer",
    "SamplingTracer",
    "TraceTreeNode",
    "TraceAggregator",
    # Backends
    "IDatastore",
    "SqliteDatastore",
    "DatastoreError",
    "TransactionError",
    "IObjectStorage",
    "IBucket",
    "MemoryObjectStorage",
    "StorageError",
    "BucketNotFoundError",
    "BucketExistsError",
    "ObjectNotFoundError",
    # Instrumentation
    "TracingDatastore",
    "TracingStorage",
    "TracingBucket",
]
