"""IDatastore implementation with tracing hooks."""

from typing import AsyncIterator

from ..backends import IDatastore
from ..models import CommitResult, Entity, Key, Query, Transaction
from ..tracer import ITracer


class TracingDatastore:
    """Forwards every IDatastore operation through a tracer."""

    def __init__(self, datastore: IDatastore, tracer: ITracer):
        self._datastore = datastore
        self._tracer = tracer

    async def allocate_ids(self, keys: list[Key]) -> list[Key]:
        return await self._tracer.trace(lambda: self._datastore.allocate_ids(keys))

    async def begin_transaction(self, cross_entity_group: bool = False) -> Transaction:
        return await self._tracer.trace(
            lambda: self._datastore.begin_transaction(cross_entity_group=cross_entity_group)
        )

    async def commit(
        self,
        inserts: list[Entity] | None = None,
        auto_id_inserts: list[Entity] | None = None,
        deletes: list[Key] | None = None,
        transaction: Transaction | None = None,
    ) -> CommitResult:
        return await self._tracer.trace(
            lambda: self._datastore.commit(
                inserts=inserts,
                auto_id_inserts=auto_id_inserts,
                deletes=deletes,
                transaction=transaction,
            )
        )

    async def lookup(
        self, keys: list[Key], transaction: Transaction | None = None
    ) -> list[Entity | None]:
        return await self._tracer.trace(
            lambda: self._datastore.lookup(keys, transaction=transaction)
        )

    def query(
        self, query: Query, transaction: Transaction | None = None
    ) -> AsyncIterator[Entity]:
        # Traces obtaining the iterator; entities stream through untouched
        return self._tracer.trace(
            lambda: self._datastore.query(query, transaction=transaction)
        )

    async def rollback(self, transaction: Transaction) -> None:
        return await self._tracer.trace(lambda: self._datastore.rollback(transaction))
