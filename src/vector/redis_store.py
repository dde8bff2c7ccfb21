"""
Redis-backed vector store.

Layout:
  book:{id}   hash, field "embedding" holds the vector as a JSON array
  book:index  set of every indexed id
"""

import asyncio
import json
from typing import Optional, Set

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from util.logging import logger
from .index import IVectorStore
from .types import EmbeddingVector

INDEX_KEY = "book:index"
EMBEDDING_FIELD = "embedding"

# Failures that mean "store not usable right now" rather than a bug
_STORE_ERRORS = (RedisError, OSError, asyncio.TimeoutError, ValueError, TypeError)


def _vector_key(record_id: str) -> str:
    return f"book:{record_id}"


class RedisVectorStore(IVectorStore):
    """IVectorStore over a `redis.asyncio` client."""

    name = "redis"

    def __init__(self, client: "aioredis.Redis", timeout: float = 2.0):
        """
        Args:
            client: async Redis client created with decode_responses=True
            timeout: seconds allowed per store round trip
        """
        self.client = client
        self.timeout = timeout

    @classmethod
    def from_url(cls, url: str, timeout: float = 2.0) -> "RedisVectorStore":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client, timeout=timeout)

    async def upsert(self, record_id: str, vector: EmbeddingVector) -> bool:
        payload = json.dumps([float(x) for x in vector])
        try:
            # MULTI/EXEC so readers never see the id without its vector
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.sadd(INDEX_KEY, record_id)
                pipe.hset(_vector_key(record_id), mapping={EMBEDDING_FIELD: payload})
                await asyncio.wait_for(pipe.execute(), self.timeout)
        except _STORE_ERRORS as e:
            logger.log_vector_operation("upsert", record_id, {"error": str(e)}, status="failed")
            return False

        logger.log_vector_operation("upsert", record_id, {"dimension": len(vector)})
        return True

    async def fetch(self, record_id: str) -> Optional[EmbeddingVector]:
        try:
            raw = await asyncio.wait_for(
                self.client.hget(_vector_key(record_id), EMBEDDING_FIELD), self.timeout
            )
            if raw is None:
                return None
            vector = json.loads(raw)
            if not isinstance(vector, list):
                raise ValueError(f"stored embedding is {type(vector).__name__}, not a list")
            return [float(x) for x in vector]
        except _STORE_ERRORS as e:
            logger.log_vector_operation("fetch", record_id, {"error": str(e)}, status="failed")
            return None

    async def delete(self, record_id: str) -> bool:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(_vector_key(record_id))
                pipe.srem(INDEX_KEY, record_id)
                await asyncio.wait_for(pipe.execute(), self.timeout)
        except _STORE_ERRORS as e:
            logger.log_vector_operation("delete", record_id, {"error": str(e)}, status="failed")
            return False

        logger.log_vector_operation("delete", record_id)
        return True

    async def enumerate_ids(self) -> Set[str]:
        try:
            members = await asyncio.wait_for(self.client.smembers(INDEX_KEY), self.timeout)
        except _STORE_ERRORS as e:
            logger.log_vector_operation("enumerate", INDEX_KEY, {"error": str(e)}, status="failed")
            return set()
        return {str(member) for member in members}

    async def is_available(self) -> bool:
        try:
            return bool(await asyncio.wait_for(self.client.ping(), self.timeout))
        except _STORE_ERRORS as e:
            logger.warning(f"Redis connection error: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
