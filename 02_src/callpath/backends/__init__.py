"""Backend capability contracts and local implementations."""

from .datastore import DatastoreError, IDatastore, SqliteDatastore, TransactionError
from .object_storage import (
    BucketExistsError,
    BucketNotFoundError,
    IBucket,
    IObjectSink,
    IObjectStorage,
    MemoryBucket,
    MemoryObjectSink,
    MemoryObjectStorage,
    ObjectNotFoundError,
    StorageError,
)

__all__ = [
    # Datastore
    "IDatastore",
    "SqliteDatastore",
    "DatastoreError",
    "TransactionError",
    # Object storage
    "IObjectStorage",
    "IBucket",
    "IObjectSink",
    "MemoryObjectStorage",
    "MemoryBucket",
    "MemoryObjectSink",
    "StorageError",
    "BucketNotFoundError",
    "BucketExistsError",
    "ObjectNotFoundError",
]
