"""
Vector store implementations: in-memory, no-op and Redis (against a mocked client).
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from src.vector.index import IVectorStore, NullVectorStore, SimpleInMemoryVectorStore
from src.vector.redis_store import INDEX_KEY, RedisVectorStore


def test_vector_store_interface():
    assert isinstance(SimpleInMemoryVectorStore(), IVectorStore)
    assert isinstance(NullVectorStore(), IVectorStore)


@pytest.mark.asyncio
async def test_store_round_trip(store):
    vector = [0.25, -0.5, 1.0]
    assert await store.upsert("book-1", vector) is True
    assert await store.fetch("book-1") == vector


@pytest.mark.asyncio
async def test_upsert_overwrites(store):
    await store.upsert("book-1", [1.0, 0.0])
    await store.upsert("book-1", [0.0, 1.0])

    assert await store.fetch("book-1") == [0.0, 1.0]
    assert await store.enumerate_ids() == {"book-1"}


@pytest.mark.asyncio
async def test_store_copies_vectors(store):
    vector = [1.0, 2.0]
    await store.upsert("book-1", vector)
    vector[0] = 99.0

    fetched = await store.fetch("book-1")
    fetched[1] = 42.0

    assert await store.fetch("book-1") == [1.0, 2.0]


@pytest.mark.asyncio
async def test_delete_is_idempotent(store):
    await store.upsert("book-1", [1.0])

    assert await store.delete("book-1") is True
    assert await store.delete("book-1") is True
    assert await store.fetch("book-1") is None


@pytest.mark.asyncio
async def test_index_consistency(store):
    await store.upsert("a", [1.0])
    await store.upsert("b", [2.0])
    assert await store.enumerate_ids() == {"a", "b"}

    await store.delete("a")
    assert await store.enumerate_ids() == {"b"}


@pytest.mark.asyncio
async def test_fetch_missing_returns_none(store):
    assert await store.fetch("nope") is None


@pytest.mark.asyncio
async def test_clear(store):
    await store.upsert("a", [1.0])
    await store.clear()
    assert await store.enumerate_ids() == set()


@pytest.mark.asyncio
async def test_null_store_is_unavailable_and_empty():
    store = NullVectorStore()

    assert await store.is_available() is False
    assert await store.upsert("a", [1.0]) is False
    assert await store.fetch("a") is None
    assert await store.enumerate_ids() == set()


def make_redis_client():
    """Mock redis.asyncio client with a transactional pipeline."""
    client = MagicMock()
    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.__aexit__.return_value = False
    pipe.execute = AsyncMock(return_value=[1, 1])
    client.pipeline.return_value = pipe
    client.hget = AsyncMock(return_value=None)
    client.smembers = AsyncMock(return_value=set())
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client, pipe


@pytest.mark.asyncio
async def test_redis_upsert_writes_index_and_vector_in_one_transaction():
    client, pipe = make_redis_client()
    store = RedisVectorStore(client)

    assert await store.upsert("7", [0.1, 0.2]) is True

    client.pipeline.assert_called_once_with(transaction=True)
    pipe.sadd.assert_called_once_with(INDEX_KEY, "7")
    pipe.hset.assert_called_once_with("book:7", mapping={"embedding": json.dumps([0.1, 0.2])})
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_fetch_parses_json():
    client, _ = make_redis_client()
    client.hget = AsyncMock(return_value="[0.5, 0.25]")
    store = RedisVectorStore(client)

    assert await store.fetch("7") == [0.5, 0.25]
    client.hget.assert_awaited_once_with("book:7", "embedding")


@pytest.mark.asyncio
async def test_redis_fetch_missing_or_corrupt_returns_none():
    client, _ = make_redis_client()
    store = RedisVectorStore(client)
    assert await store.fetch("7") is None

    client.hget = AsyncMock(return_value="not json")
    assert await store.fetch("7") is None

    client.hget = AsyncMock(return_value='{"a": 1}')
    assert await store.fetch("7") is None


@pytest.mark.asyncio
async def test_redis_delete_removes_vector_and_membership():
    client, pipe = make_redis_client()
    store = RedisVectorStore(client)

    assert await store.delete("7") is True
    pipe.delete.assert_called_once_with("book:7")
    pipe.srem.assert_called_once_with(INDEX_KEY, "7")


@pytest.mark.asyncio
async def test_redis_enumerate_ids():
    client, _ = make_redis_client()
    client.smembers = AsyncMock(return_value={"1", "2"})
    store = RedisVectorStore(client)

    assert await store.enumerate_ids() == {"1", "2"}


@pytest.mark.asyncio
async def test_redis_errors_never_raise():
    client, pipe = make_redis_client()
    pipe.execute = AsyncMock(side_effect=RedisError("READONLY"))
    client.hget = AsyncMock(side_effect=RedisConnectionError("down"))
    client.smembers = AsyncMock(side_effect=RedisConnectionError("down"))
    client.ping = AsyncMock(side_effect=RedisConnectionError("down"))
    store = RedisVectorStore(client)

    assert await store.upsert("7", [1.0]) is False
    assert await store.delete("7") is False
    assert await store.fetch("7") is None
    assert await store.enumerate_ids() == set()
    assert await store.is_available() is False


@pytest.mark.asyncio
async def test_redis_is_available_on_ping():
    client, _ = make_redis_client()
    assert await RedisVectorStore(client).is_available() is True


@pytest.mark.asyncio
async def test_redis_close():
    client, _ = make_redis_client()
    await RedisVectorStore(client).close()
    client.aclose.assert_awaited_once()
