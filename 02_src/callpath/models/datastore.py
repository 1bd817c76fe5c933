"""Entity datastore data models."""

from dataclasses import dataclass, field
from typing import Any

KeyId = int | str


@dataclass(frozen=True)
class Key:
    """Identifies an entity. `id` is None until allocated."""

    kind: str
    id: KeyId | None = None

    @property
    def is_complete(self) -> bool:
        return self.id is not None


@dataclass
class Entity:
    """A stored entity: key plus JSON-serializable properties."""

    key: Key
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transaction:
    """Handle of an open datastore transaction."""

    id: str
    cross_entity_group: bool = False


@dataclass
class CommitResult:
    """Keys allocated for auto-id inserts, in insertion order."""

    auto_id_inserts: list[Key] = field(default_factory=list)


@dataclass
class Query:
    """Kind query with equality filters, offset and limit."""

    kind: str
    filters: dict[str, Any] = field(default_factory=dict)
    offset: int = 0
    limit: int | None = None
