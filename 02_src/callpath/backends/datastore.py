"""Entity datastore contract and its SQLite implementation."""

import json
import uuid
from pathlib import Path
from typing import Any, AsyncIterator, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..logging_config import get_logger
from ..models import CommitResult, Entity, Key, Query, Transaction

logger = get_logger(__name__)


class DatastoreError(Exception):
    """Base error of datastore operations."""


class TransactionError(DatastoreError):
    """Unknown, committed or rolled back transaction."""


class IDatastore(Protocol):
    """Entity datastore operations."""

    async def allocate_ids(self, keys: list[Key]) -> list[Key]:
        """Complete incomplete keys with fresh ids."""
        ...

    async def begin_transaction(self, cross_entity_group: bool = False) -> Transaction:
        """Open a transaction."""
        ...

    async def commit(
        self,
        inserts: list[Entity] | None = None,
        auto_id_inserts: list[Entity] | None = None,
        deletes: list[Key] | None = None,
        transaction: Transaction | None = None,
    ) -> CommitResult:
        """Apply mutations atomically, optionally closing a transaction."""
        ...

    async def lookup(
        self, keys: list[Key], transaction: Transaction | None = None
    ) -> list[Entity | None]:
        """Fetch entities by key; missing entities are None."""
        ...

    def query(
        self, query: Query, transaction: Transaction | None = None
    ) -> AsyncIterator[Entity]:
        """Lazily iterate entities matching a query."""
        ...

    async def rollback(self, transaction: Transaction) -> None:
        """Discard a transaction."""
        ...


def _encode_id(key: Key) -> str:
    # JSON keeps 1 and "1" distinct
    return json.dumps(key.id)


def _matches(properties: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(properties.get(name) == value for name, value in filters.items())


class SqliteDatastore:
    """SQLite datastore implementation."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._transactions: set[str] = set()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()
        logger.info("Datastore opened at %s", self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            self._transactions.clear()

    def _connection(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Datastore not initialized")
        return self._conn

    def _check_transaction(self, transaction: Transaction | None) -> None:
        if transaction is not None and transaction.id not in self._transactions:
            raise TransactionError(f"Transaction {transaction.id} is not active")

    async def _next_ids(self, kind: str, count: int) -> list[int]:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT next_id FROM id_sequences WHERE kind = ?", (kind,)
        )
        row = await cursor.fetchone()
        first = row[0] if row else 1
        await conn.execute(
            "INSERT OR REPLACE INTO id_sequences (kind, next_id) VALUES (?, ?)",
            (kind, first + count),
        )
        return list(range(first, first + count))

    async def allocate_ids(self, keys: list[Key]) -> list[Key]:
        """Complete incomplete keys with fresh ids."""
        conn = self._connection()
        allocated = []
        for key in keys:
            if key.is_complete:
                raise DatastoreError(f"Cannot allocate an id for complete key {key}")
            (new_id,) = await self._next_ids(key.kind, 1)
            allocated.append(Key(kind=key.kind, id=new_id))
        await conn.commit()
        return allocated

    async def begin_transaction(self, cross_entity_group: bool = False) -> Transaction:
        """Open a transaction."""
        self._connection()
        transaction = Transaction(id=str(uuid.uuid4()), cross_entity_group=cross_entity_group)
        self._transactions.add(transaction.id)
        return transaction

    async def commit(
        self,
        inserts: list[Entity] | None = None,
        auto_id_inserts: list[Entity] | None = None,
        deletes: list[Key] | None = None,
        transaction: Transaction | None = None,
    ) -> CommitResult:
        """Apply mutations atomically, optionally closing a transaction."""
        conn = self._connection()
        self._check_transaction(transaction)

        inserts = inserts or []
        auto_id_inserts = auto_id_inserts or []
        deletes = deletes or []
        for entity in inserts:
            if not entity.key.is_complete:
                raise DatastoreError(f"Insert requires a complete key, got {entity.key}")
        for key in deletes:
            if not key.is_complete:
                raise DatastoreError(f"Delete requires a complete key, got {key}")

        result = CommitResult()
        try:
            rows = [(e.key, e.properties) for e in inserts]
            for entity in auto_id_inserts:
                (new_id,) = await self._next_ids(entity.key.kind, 1)
                key = Key(kind=entity.key.kind, id=new_id)
                result.auto_id_inserts.append(key)
                rows.append((key, entity.properties))

            for key, properties in rows:
                await conn.execute(
                    """
                    INSERT OR REPLACE INTO entities (kind, key_id, properties, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key.kind, _encode_id(key), json.dumps(properties)),
                )
            for key in deletes:
                await conn.execute(
                    "DELETE FROM entities WHERE kind = ? AND key_id = ?",
                    (key.kind, _encode_id(key)),
                )
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        finally:
            if transaction is not None:
                self._transactions.discard(transaction.id)

        return result

    async def lookup(
        self, keys: list[Key], transaction: Transaction | None = None
    ) -> list[Entity | None]:
        """Fetch entities by key; missing entities are None."""
        conn = self._connection()
        self._check_transaction(transaction)

        entities: list[Entity | None] = []
        for key in keys:
            if not key.is_complete:
                raise DatastoreError(f"Lookup requires a complete key, got {key}")
            cursor = await conn.execute(
                "SELECT properties FROM entities WHERE kind = ? AND key_id = ?",
                (key.kind, _encode_id(key)),
            )
            row = await cursor.fetchone()
            entities.append(Entity(key=key, properties=json.loads(row[0])) if row else None)
        return entities

    async def query(
        self, query: Query, transaction: Transaction | None = None
    ) -> AsyncIterator[Entity]:
        """Lazily iterate entities matching a query, in insertion order."""
        conn = self._connection()
        self._check_transaction(transaction)

        skipped = 0
        produced = 0
        async with conn.execute(
            "SELECT key_id, properties FROM entities WHERE kind = ? ORDER BY rowid",
            (query.kind,),
        ) as cursor:
            async for row in cursor:
                if query.limit is not None and produced >= query.limit:
                    return
                properties = json.loads(row[1])
                if not _matches(properties, query.filters):
                    continue
                if skipped < query.offset:
                    skipped += 1
                    continue
                produced += 1
                yield Entity(key=Key(kind=query.kind, id=json.loads(row[0])), properties=properties)

    async def rollback(self, transaction: Transaction) -> None:
        """Discard a transaction."""
        self._connection()
        self._check_transaction(transaction)
        self._transactions.discard(transaction.id)
