"""Object storage data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class BucketInfo:
    """Bucket metadata."""

    bucket_name: str
    created: datetime


@dataclass
class ObjectMetadata:
    """User-settable object metadata."""

    content_type: str | None = None
    custom: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ObjectInfo:
    """Stored object description."""

    name: str
    length: int
    md5_hash: str
    updated: datetime
    metadata: ObjectMetadata


@dataclass(frozen=True)
class BucketEntry:
    """One listing entry: an object or, with a delimiter, a directory prefix."""

    name: str
    is_object: bool = True

    @property
    def is_directory(self) -> bool:
        return not self.is_object
