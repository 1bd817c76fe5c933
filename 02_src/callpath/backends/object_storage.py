"""Object storage contract and its in-memory implementation."""

import hashlib
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import AsyncIterator, Protocol

from ..logging_config import get_logger
from ..models import BucketEntry, BucketInfo, ObjectInfo, ObjectMetadata

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
READ_CHUNK_SIZE = 64 * 1024


class StorageError(Exception):
    """Base error of object storage operations."""


class BucketNotFoundError(StorageError):
    """The bucket does not exist."""


class BucketExistsError(StorageError):
    """A bucket with that name already exists."""


class ObjectNotFoundError(StorageError):
    """The object does not exist."""


class IObjectSink(Protocol):
    """Streaming upload target returned by IBucket.write()."""

    def write(self, data: bytes) -> None:
        """Append bytes to the upload."""
        ...

    async def close(self) -> ObjectInfo:
        """Finish the upload and store the object."""
        ...


class IBucket(Protocol):
    """Operations on the objects of one bucket."""

    @property
    def bucket_name(self) -> str:
        """Name of the bucket."""
        ...

    def absolute_object_name(self, object_name: str) -> str:
        """`<bucket>/<object>` name usable with IObjectStorage.copy_object()."""
        ...

    async def delete(self, name: str) -> None:
        """Delete an object."""
        ...

    async def info(self, name: str) -> ObjectInfo:
        """Describe an object."""
        ...

    def list(
        self, prefix: str | None = None, delimiter: str | None = None
    ) -> AsyncIterator[BucketEntry]:
        """Lazily list objects, grouping by delimiter when given."""
        ...

    def read(
        self, object_name: str, offset: int | None = None, length: int | None = None
    ) -> AsyncIterator[bytes]:
        """Lazily read an object (or a byte range) in chunks."""
        ...

    async def update_metadata(self, object_name: str, metadata: ObjectMetadata) -> None:
        """Replace the metadata of an object."""
        ...

    def write(
        self,
        object_name: str,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> IObjectSink:
        """Start a streaming upload."""
        ...

    async def write_bytes(
        self,
        name: str,
        data: bytes,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> ObjectInfo:
        """Upload a whole object."""
        ...


class IObjectStorage(Protocol):
    """Bucket-level object storage operations."""

    def bucket(self, bucket_name: str) -> IBucket:
        """Handle to a bucket (no remote call)."""
        ...

    async def bucket_exists(self, bucket_name: str) -> bool:
        """Whether the bucket exists."""
        ...

    async def bucket_info(self, bucket_name: str) -> BucketInfo:
        """Describe a bucket."""
        ...

    async def copy_object(self, src: str, dest: str) -> None:
        """Copy between absolute object names."""
        ...

    async def create_bucket(self, bucket_name: str) -> None:
        """Create a bucket."""
        ...

    async def delete_bucket(self, bucket_name: str) -> None:
        """Delete an empty bucket."""
        ...

    def list_bucket_names(self) -> AsyncIterator[str]:
        """Lazily list bucket names."""
        ...


@dataclass
class _StoredObject:
    data: bytes
    info: ObjectInfo


@dataclass
class _BucketState:
    info: BucketInfo
    objects: dict[str, _StoredObject]


def split_absolute_name(absolute_name: str) -> tuple[str, str]:
    """Split `<bucket>/<object>` into its parts."""
    bucket_name, sep, object_name = absolute_name.partition("/")
    if not sep or not bucket_name or not object_name:
        raise StorageError(f"Invalid absolute object name: {absolute_name!r}")
    return bucket_name, object_name


class MemoryObjectStorage:
    """In-process object storage keeping bucket contents in dicts."""

    def __init__(self) -> None:
        self._buckets: dict[str, _BucketState] = {}

    def _state(self, bucket_name: str) -> _BucketState:
        state = self._buckets.get(bucket_name)
        if state is None:
            raise BucketNotFoundError(f"Bucket {bucket_name!r} not found")
        return state

    def bucket(self, bucket_name: str) -> "MemoryBucket":
        return MemoryBucket(self, bucket_name)

    async def bucket_exists(self, bucket_name: str) -> bool:
        return bucket_name in self._buckets

    async def bucket_info(self, bucket_name: str) -> BucketInfo:
        return self._state(bucket_name).info

    async def copy_object(self, src: str, dest: str) -> None:
        src_bucket, src_name = split_absolute_name(src)
        dest_bucket, dest_name = split_absolute_name(dest)
        source = self._state(src_bucket).objects.get(src_name)
        if source is None:
            raise ObjectNotFoundError(f"Object {src!r} not found")
        info = replace(source.info, name=dest_name, updated=datetime.now(timezone.utc))
        self._state(dest_bucket).objects[dest_name] = _StoredObject(source.data, info)

    async def create_bucket(self, bucket_name: str) -> None:
        if bucket_name in self._buckets:
            raise BucketExistsError(f"Bucket {bucket_name!r} already exists")
        self._buckets[bucket_name] = _BucketState(
            info=BucketInfo(bucket_name=bucket_name, created=datetime.now(timezone.utc)),
            objects={},
        )
        logger.info("Created bucket %s", bucket_name)

    async def delete_bucket(self, bucket_name: str) -> None:
        if self._state(bucket_name).objects:
            raise StorageError(f"Bucket {bucket_name!r} is not empty")
        del self._buckets[bucket_name]
        logger.info("Deleted bucket %s", bucket_name)

    async def list_bucket_names(self) -> AsyncIterator[str]:
        for name in sorted(self._buckets):
            yield name


class MemoryObjectSink:
    """Collects written chunks until close() stores them as one object."""

    def __init__(self, bucket: "MemoryBucket", object_name: str, metadata: ObjectMetadata):
        self._bucket = bucket
        self._object_name = object_name
        self._metadata = metadata
        self._chunks: list[bytes] = []
        self._closed = False

    def write(self, data: bytes) -> None:
        if self._closed:
            raise StorageError("Sink is closed")
        self._chunks.append(bytes(data))

    async def close(self) -> ObjectInfo:
        self._closed = True
        return self._bucket._store(self._object_name, b"".join(self._chunks), self._metadata)

    async def __aenter__(self) -> "MemoryObjectSink":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.close()
        else:
            self._closed = True


class MemoryBucket:
    """Bucket handle over MemoryObjectStorage."""

    def __init__(self, storage: MemoryObjectStorage, bucket_name: str):
        self._storage = storage
        self._bucket_name = bucket_name

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def absolute_object_name(self, object_name: str) -> str:
        return f"{self._bucket_name}/{object_name}"

    def _objects(self) -> dict[str, _StoredObject]:
        return self._storage._state(self._bucket_name).objects

    def _object(self, name: str) -> _StoredObject:
        stored = self._objects().get(name)
        if stored is None:
            raise ObjectNotFoundError(f"Object {self.absolute_object_name(name)!r} not found")
        return stored

    def _store(self, name: str, data: bytes, metadata: ObjectMetadata) -> ObjectInfo:
        info = ObjectInfo(
            name=name,
            length=len(data),
            md5_hash=hashlib.md5(data).hexdigest(),
            updated=datetime.now(timezone.utc),
            metadata=metadata,
        )
        self._objects()[name] = _StoredObject(data, info)
        return info

    @staticmethod
    def _metadata(metadata: ObjectMetadata | None, content_type: str | None) -> ObjectMetadata:
        metadata = metadata or ObjectMetadata()
        return replace(
            metadata,
            content_type=content_type or metadata.content_type or DEFAULT_CONTENT_TYPE,
        )

    async def delete(self, name: str) -> None:
        self._object(name)
        del self._objects()[name]

    async def info(self, name: str) -> ObjectInfo:
        return self._object(name).info

    async def list(
        self, prefix: str | None = None, delimiter: str | None = None
    ) -> AsyncIterator[BucketEntry]:
        prefix = prefix or ""
        seen_directories: set[str] = set()
        for name in sorted(self._objects()):
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            if delimiter and delimiter in rest:
                directory = prefix + rest[: rest.index(delimiter) + len(delimiter)]
                if directory not in seen_directories:
                    seen_directories.add(directory)
                    yield BucketEntry(name=directory, is_object=False)
                continue
            yield BucketEntry(name=name)

    async def read(
        self, object_name: str, offset: int | None = None, length: int | None = None
    ) -> AsyncIterator[bytes]:
        data = self._object(object_name).data
        start = offset or 0
        end = len(data) if length is None else min(len(data), start + length)
        for position in range(start, end, READ_CHUNK_SIZE):
            yield data[position:min(end, position + READ_CHUNK_SIZE)]

    async def update_metadata(self, object_name: str, metadata: ObjectMetadata) -> None:
        stored = self._object(object_name)
        stored.info = replace(stored.info, metadata=metadata, updated=datetime.now(timezone.utc))

    def write(
        self,
        object_name: str,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> MemoryObjectSink:
        return MemoryObjectSink(self, object_name, self._metadata(metadata, content_type))

    async def write_bytes(
        self,
        name: str,
        data: bytes,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> ObjectInfo:
        return self._store(name, bytes(data), self._metadata(metadata, content_type))
