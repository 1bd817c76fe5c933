"""IObjectStorage and IBucket implementations with tracing hooks."""

from typing import AsyncIterator

from ..backends import IBucket, IObjectSink, IObjectStorage
from ..models import BucketEntry, BucketInfo, ObjectInfo, ObjectMetadata
from ..tracer import ITracer


class TracingStorage:
    """Forwards every IObjectStorage operation through a tracer."""

    def __init__(self, storage: IObjectStorage, tracer: ITracer):
        self._storage = storage
        self._tracer = tracer

    def bucket(self, bucket_name: str) -> "TracingBucket":
        return TracingBucket(self._storage.bucket(bucket_name), self._tracer)

    async def bucket_exists(self, bucket_name: str) -> bool:
        return await self._tracer.trace(lambda: self._storage.bucket_exists(bucket_name))

    async def bucket_info(self, bucket_name: str) -> BucketInfo:
        return await self._tracer.trace(lambda: self._storage.bucket_info(bucket_name))

    async def copy_object(self, src: str, dest: str) -> None:
        return await self._tracer.trace(lambda: self._storage.copy_object(src, dest))

    async def create_bucket(self, bucket_name: str) -> None:
        return await self._tracer.trace(lambda: self._storage.create_bucket(bucket_name))

    async def delete_bucket(self, bucket_name: str) -> None:
        return await self._tracer.trace(lambda: self._storage.delete_bucket(bucket_name))

    def list_bucket_names(self) -> AsyncIterator[str]:
        return self._tracer.trace(lambda: self._storage.list_bucket_names())


class TracingBucket:
    """Forwards every IBucket operation through a tracer."""

    def __init__(self, bucket: IBucket, tracer: ITracer):
        self._bucket = bucket
        self._tracer = tracer

    @property
    def bucket_name(self) -> str:
        return self._bucket.bucket_name

    def absolute_object_name(self, object_name: str) -> str:
        return self._bucket.absolute_object_name(object_name)

    async def delete(self, name: str) -> None:
        return await self._tracer.trace(lambda: self._bucket.delete(name))

    async def info(self, name: str) -> ObjectInfo:
        return await self._tracer.trace(lambda: self._bucket.info(name))

    def list(
        self, prefix: str | None = None, delimiter: str | None = None
    ) -> AsyncIterator[BucketEntry]:
        return self._tracer.trace(
            lambda: self._bucket.list(prefix=prefix, delimiter=delimiter)
        )

    def read(
        self, object_name: str, offset: int | None = None, length: int | None = None
    ) -> AsyncIterator[bytes]:
        return self._tracer.trace(
            lambda: self._bucket.read(object_name, offset=offset, length=length)
        )

    async def update_metadata(self, object_name: str, metadata: ObjectMetadata) -> None:
        return await self._tracer.trace(
            lambda: self._bucket.update_metadata(object_name, metadata)
        )

    def write(
        self,
        object_name: str,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> IObjectSink:
        return self._tracer.trace(
            lambda: self._bucket.write(
                object_name, metadata=metadata, content_type=content_type
            )
        )

    async def write_bytes(
        self,
        name: str,
        data: bytes,
        metadata: ObjectMetadata | None = None,
        content_type: str | None = None,
    ) -> ObjectInfo:
        return await self._tracer.trace(
            lambda: self._bucket.write_bytes(
                name, data, metadata=metadata, content_type=content_type
            )
        )
