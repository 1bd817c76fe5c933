"""Tests for SqliteDatastore."""

import pytest
import pytest_asyncio

from callpath.backends import DatastoreError, SqliteDatastore, TransactionError
from callpath.models import Entity, Key, Query


async def collect(iterator):
    return [item async for item in iterator]


class TestDatastoreInit:
    """Tests for datastore initialization."""

    @pytest.mark.asyncio
    async def test_init_creates_tables(self, datastore):
        """Test that init creates the schema."""
        async with datastore._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = {row[0] for row in await cursor.fetchall()}
        assert {"entities", "id_sequences"} <= tables

    @pytest.mark.asyncio
    async def test_requires_init(self):
        """Test that operations fail before init."""
        ds = SqliteDatastore(":memory:")
        with pytest.raises(RuntimeError, match="not initialized"):
            await ds.lookup([Key("Package", "http")])

    @pytest.mark.asyncio
    async def test_close(self, datastore):
        """Test that close releases the connection."""
        await datastore.close()
        assert datastore._conn is None


class TestAllocateIds:
    """Tests for allocate_ids()."""

    @pytest.mark.asyncio
    async def test_allocates_sequential_ids_per_kind(self, datastore):
        """Test that ids are sequential and independent per kind."""
        keys = await datastore.allocate_ids([Key("A"), Key("A"), Key("B")])
        assert keys == [Key("A", 1), Key("A", 2), Key("B", 1)]

        (next_key,) = await datastore.allocate_ids([Key("A")])
        assert next_key == Key("A", 3)

    @pytest.mark.asyncio
    async def test_rejects_complete_key(self, datastore):
        """Test that complete keys cannot be allocated."""
        with pytest.raises(DatastoreError):
            await datastore.allocate_ids([Key("A", 5)])


class TestCommitAndLookup:
    """Tests for commit() and lookup()."""

    @pytest.mark.asyncio
    async def test_insert_and_lookup(self, datastore):
        """Test that inserted entities can be looked up."""
        entity = Entity(Key("Package", "http"), {"latest": "1.0.0"})
        await datastore.commit(inserts=[entity])

        found, missing = await datastore.lookup([Key("Package", "http"), Key("Package", "yaml")])

        assert found == entity
        assert missing is None

    @pytest.mark.asyncio
    async def test_insert_replaces(self, datastore):
        """Test that inserting an existing key overwrites it."""
        await datastore.commit(inserts=[Entity(Key("Package", "http"), {"v": 1})])
        await datastore.commit(inserts=[Entity(Key("Package", "http"), {"v": 2})])

        (found,) = await datastore.lookup([Key("Package", "http")])
        assert found.properties == {"v": 2}

    @pytest.mark.asyncio
    async def test_int_and_str_ids_are_distinct(self, datastore):
        """Test that 1 and "1" address different entities."""
        await datastore.commit(
            inserts=[Entity(Key("K", 1), {"type": "int"}), Entity(Key("K", "1"), {"type": "str"})]
        )

        by_int, by_str = await datastore.lookup([Key("K", 1), Key("K", "1")])
        assert by_int.properties == {"type": "int"}
        assert by_str.properties == {"type": "str"}

    @pytest.mark.asyncio
    async def test_auto_id_inserts(self, datastore):
        """Test that auto-id inserts get allocated keys in order."""
        result = await datastore.commit(
            auto_id_inserts=[Entity(Key("Version"), {"v": "1"}), Entity(Key("Version"), {"v": "2"})]
        )

        assert result.auto_id_inserts == [Key("Version", 1), Key("Version", 2)]
        (second,) = await datastore.lookup([Key("Version", 2)])
        assert second.properties == {"v": "2"}

    @pytest.mark.asyncio
    async def test_deletes(self, datastore):
        """Test that deletes remove entities."""
        await datastore.commit(inserts=[Entity(Key("Package", "http"), {})])
        await datastore.commit(deletes=[Key("Package", "http")])

        assert await datastore.lookup([Key("Package", "http")]) == [None]

    @pytest.mark.asyncio
    async def test_insert_requires_complete_key(self, datastore):
        """Test that plain inserts need a complete key."""
        with pytest.raises(DatastoreError):
            await datastore.commit(inserts=[Entity(Key("Package"), {})])

    @pytest.mark.asyncio
    async def test_lookup_requires_complete_key(self, datastore):
        """Test that lookups need a complete key."""
        with pytest.raises(DatastoreError):
            await datastore.lookup([Key("Package")])


class TestTransactions:
    """Tests for begin_transaction(), commit() and rollback()."""

    @pytest.mark.asyncio
    async def test_commit_closes_transaction(self, datastore):
        """Test that a committed transaction cannot be reused."""
        transaction = await datastore.begin_transaction()
        await datastore.commit(
            inserts=[Entity(Key("Package", "http"), {})], transaction=transaction
        )

        with pytest.raises(TransactionError):
            await datastore.commit(transaction=transaction)

    @pytest.mark.asyncio
    async def test_rollback(self, datastore):
        """Test that a rolled back transaction is closed."""
        transaction = await datastore.begin_transaction(cross_entity_group=True)
        assert transaction.cross_entity_group

        await datastore.rollback(transaction)

        with pytest.raises(TransactionError):
            await datastore.lookup([Key("Package", "http")], transaction=transaction)

    @pytest.mark.asyncio
    async def test_rollback_unknown_transaction(self, datastore):
        """Test that rolling back twice fails."""
        transaction = await datastore.begin_transaction()
        await datastore.rollback(transaction)

        with pytest.raises(TransactionError):
            await datastore.rollback(transaction)

    @pytest.mark.asyncio
    async def test_lookup_in_transaction(self, datastore):
        """Test that lookups accept an active transaction."""
        await datastore.commit(inserts=[Entity(Key("Package", "http"), {"a": 1})])
        transaction = await datastore.begin_transaction()

        (found,) = await datastore.lookup([Key("Package", "http")], transaction=transaction)

        assert found.properties == {"a": 1}


class TestQuery:
    """Tests for query()."""

    @pytest_asyncio.fixture
    async def populated(self, datastore):
        await datastore.commit(
            auto_id_inserts=[
                Entity(Key("Version"), {"package": "http", "version": f"1.{i}.0"})
                for i in range(4)
            ]
            + [Entity(Key("Version"), {"package": "yaml", "version": "2.0.0"})]
        )
        await datastore.commit(inserts=[Entity(Key("Package", "http"), {})])
        return datastore

    @pytest.mark.asyncio
    async def test_query_by_kind(self, populated):
        """Test that a query returns only entities of its kind."""
        entities = await collect(populated.query(Query(kind="Version")))
        assert len(entities) == 5
        assert all(e.key.kind == "Version" for e in entities)

    @pytest.mark.asyncio
    async def test_query_filters(self, populated):
        """Test equality filters."""
        entities = await collect(populated.query(Query(kind="Version", filters={"package": "yaml"})))
        assert [e.properties["version"] for e in entities] == ["2.0.0"]

    @pytest.mark.asyncio
    async def test_query_offset_and_limit(self, populated):
        """Test offset and limit applied after filtering."""
        query = Query(kind="Version", filters={"package": "http"}, offset=1, limit=2)
        entities = await collect(populated.query(query))
        assert [e.properties["version"] for e in entities] == ["1.1.0", "1.2.0"]

    @pytest.mark.asyncio
    async def test_query_limit_zero(self, populated):
        """Test that limit 0 yields nothing."""
        assert await collect(populated.query(Query(kind="Version", limit=0))) == []

    @pytest.mark.asyncio
    async def test_query_is_lazy(self, datastore):
        """Test that nothing runs until iteration starts."""
        transaction = await datastore.begin_transaction()
        await datastore.rollback(transaction)

        iterator = datastore.query(Query(kind="Version"), transaction=transaction)

        with pytest.raises(TransactionError):
            await collect(iterator)
