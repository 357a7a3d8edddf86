"""Tests for shared/datastore.py."""

import pytest

from shared.datastore import (
    MemoryDatastore,
    Query,
    TransactionConflictError,
    Write,
    after_commit,
    current_transaction,
    request_scope,
    transactional,
)
from shared.keys import Key


@pytest.fixture
def store() -> MemoryDatastore:
    return MemoryDatastore()


async def write_outside(store: MemoryDatastore, key: Key, data: dict) -> None:
    """Write as another request would, bypassing the open transaction."""
    await store._apply({key: Write(data)}, check_versions=False)


class TestMemoryDatastore:
    @pytest.mark.asyncio
    async def test_put_get(self, store):
        """Stored data should come back with a version."""
        key = await store.allocate_key("User")
        await store.put(key, {"email": "a@x.com"})

        record = await store.get(key)

        assert record.data == {"email": "a@x.com"}
        assert record.version == 1

    @pytest.mark.asyncio
    async def test_allocate_id_is_unique(self, store):
        ids = {await store.allocate_id("User") for _ in range(5)}
        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        """Mutating a fetched record should not change the store."""
        key = await store.allocate_key("User")
        await store.put(key, {"emails": ["a@x.com"]})

        record = await store.get(key)
        record.data["emails"].append("b@x.com")

        assert (await store.get(key)).data["emails"] == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_query_filters_and_order(self, store):
        """Queries should match equality and list membership and sort by field."""
        for i, (owner, members) in enumerate([(1, [1, 2]), (2, [2]), (1, [1])]):
            key = await store.allocate_key("Thread")
            await store.put(key, {"owner": owner, "users": members, "rank": 3 - i})
        await store.put(await store.allocate_key("Event"), {"owner": 1, "users": [1]})

        by_owner = await store.query(Query(kind="Thread").where("owner", 1).order("rank"))
        with_member = await store.query(Query(kind="Thread").where_contains("users", 2))

        assert [r.data["rank"] for r in by_owner] == [1, 3]
        assert len(with_member) == 2

    @pytest.mark.asyncio
    async def test_query_paging(self, store):
        for _ in range(5):
            await store.put(await store.allocate_key("Message"), {"body": "x"})

        page = await store.query(Query(kind="Message").page(2, 2))
        unlimited = await store.query(Query(kind="Message").page(1, -1))

        assert len(page) == 2
        assert len(unlimited) == 4


class TestTransactions:
    @pytest.mark.asyncio
    async def test_commit_applies_writes(self, store):
        key = await store.allocate_key("User")
        async with store.transaction():
            await store.put(key, {"n": 1})
            assert await store.get(key) is None
        assert (await store.get(key)).data == {"n": 1}

    @pytest.mark.asyncio
    async def test_exception_rolls_back(self, store):
        key = await store.allocate_key("User")
        with pytest.raises(RuntimeError):
            async with store.transaction():
                await store.put(key, {"n": 1})
                raise RuntimeError("boom")
        assert await store.get(key) is None

    @pytest.mark.asyncio
    async def test_transactional_read_sees_own_writes(self, store):
        key = await store.allocate_key("User")
        async with store.transaction():
            await store.put(key, {"n": 2})
            record = await store.get(key, transactional=True)
            assert record.data == {"n": 2}

    @pytest.mark.asyncio
    async def test_nested_transaction_joins_outer(self, store):
        key = await store.allocate_key("User")
        async with store.transaction() as outer:
            async with store.transaction() as inner:
                assert inner is outer
                await store.put(key, {"n": 1})
            assert await store.get(key) is None
        assert await store.get(key) is not None

    @pytest.mark.asyncio
    async def test_after_commit_waits_for_commit(self, store):
        ran = []

        async def hook():
            ran.append(current_transaction())

        async with store.transaction():
            await after_commit(hook)
            assert ran == []
        assert ran == [None]

    @pytest.mark.asyncio
    async def test_after_commit_dropped_on_rollback(self, store):
        ran = []

        async def hook():
            ran.append(True)

        with pytest.raises(RuntimeError):
            async with store.transaction():
                await after_commit(hook)
                raise RuntimeError("boom")
        assert ran == []

    @pytest.mark.asyncio
    async def test_after_commit_without_transaction(self, store):
        ran = []

        async def hook():
            ran.append(True)

        await after_commit(hook)
        assert ran == [True]

    @pytest.mark.asyncio
    async def test_transactional_method(self, store):
        """Decorated methods commit together and join an open transaction."""

        class Counter:
            def __init__(self, datastore):
                self.datastore = datastore
                self.seen = []

            @transactional
            async def bump(self, key):
                self.seen.append(current_transaction())
                await self.datastore.put(key, {"n": 1})

        counter = Counter(store)
        key = await store.allocate_key("Counter")

        async with store.transaction() as outer:
            await counter.bump(key)
            assert await store.get(key) is None
        assert counter.seen == [outer]
        assert (await store.get(key)).data == {"n": 1}

    @pytest.mark.asyncio
    async def test_concurrent_change_conflicts(self, store):
        """A commit over a record changed since it was read should fail."""
        key = await store.allocate_key("User")
        await store.put(key, {"n": 1})

        with pytest.raises(TransactionConflictError):
            async with store.transaction():
                record = await store.get(key, transactional=True)
                await write_outside(store, key, {"n": 99})
                await store.put(key, {"n": record.data["n"] + 1})

        assert (await store.get(key)).data == {"n": 99}

    @pytest.mark.asyncio
    async def test_run_in_transaction_retries(self, store):
        """Conflicting attempts should be retried with fresh reads."""
        key = await store.allocate_key("Counter")
        await store.put(key, {"n": 0})
        attempts = []

        async def increment():
            record = await store.get(key, transactional=True)
            attempts.append(record.version)
            if len(attempts) == 1:
                await write_outside(store, key, {"n": 10})
            await store.put(key, {"n": record.data["n"] + 1})
            return record.data["n"] + 1

        result = await store.run_in_transaction(increment)

        assert result == 11
        assert len(attempts) == 2
        assert (await store.get(key)).data == {"n": 11}

    @pytest.mark.asyncio
    async def test_request_scope_rolls_back_pending(self, store):
        """Transactions still open when the request ends should be rolled back."""
        async with request_scope() as opened:
            manager = store.transaction()
            tx = await manager.__aenter__()
            await store.put(await store.allocate_key("User"), {"n": 1})

        assert opened == [tx]
        assert tx.pending is False
        assert current_transaction() is None
        assert await store.query(Query(kind="User")) == []

        err = RuntimeError("request ended")
        await manager.__aexit__(RuntimeError, err, None)
