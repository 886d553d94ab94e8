"""Redis implementation of CacheStore.

This repository is the durable cache backend. It keeps one hash per stored
query and a single index hash over the normalized query text, so a lookup
is two HGETs and never a scan.

Key layout (``prefix`` defaults to ``geminiCache``)::

    {prefix}:schema              schema version marker
    {prefix}:queries:next_id     INCR counter assigning entry ids
    {prefix}:queries:{id}        hash: geminiQuery, geminiAnswer, created_at
    {prefix}:queries:ids         list of ids in insertion order
    {prefix}:queryIndex          hash: normalized query -> id
"""

import asyncio
import logging
from datetime import datetime, timezone

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError, WatchError

from impact_cache.config import get_redis_client, settings
from impact_cache.dto import deserialize_result, serialize_result
from impact_cache.entities import AnalysisResult, CacheEntryEntity, normalize_input
from impact_cache.exceptions import CacheUnavailableError, MalformedCacheEntryError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"


class RedisCacheRepository:
    """Redis implementation using hashes and a query index.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    The client is opened lazily: every operation first awaits
    initialization, which creates the schema marker if it is missing.
    Concurrent first calls share one initialization.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis cache repository.

        Args:
            redis_client: Async Redis client instance. If None, one is created
                from settings on first use.
            key_prefix: Prefix for all keys. Defaults to settings.cache_key_prefix.
        """
        self._client = redis_client
        self._prefix = key_prefix or settings.cache_key_prefix
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def create(
        cls,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository with defaults.

        Args:
            redis_client: Async Redis client. If None, created from settings.
            key_prefix: Key prefix. If None, uses settings.

        Returns:
            Configured RedisCacheRepository
        """
        return cls(redis_client=redis_client, key_prefix=key_prefix)

    @property
    def _schema_key(self) -> str:
        return f"{self._prefix}:schema"

    @property
    def _counter_key(self) -> str:
        return f"{self._prefix}:queries:next_id"

    @property
    def _order_key(self) -> str:
        return f"{self._prefix}:queries:ids"

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}:queryIndex"

    def _record_key(self, entry_id: int | str) -> str:
        return f"{self._prefix}:queries:{entry_id}"

    async def _ensure_initialized(self) -> redis.Redis:
        """Open the client and create the schema marker if needed.

        Returns:
            The ready-to-use client

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        if self._initialized and self._client is not None:
            return self._client

        async with self._init_lock:
            if self._initialized and self._client is not None:
                return self._client

            if self._client is None:
                self._client = get_redis_client()

            try:
                created = await self._client.set(self._schema_key, SCHEMA_VERSION, nx=True)
                if created:
                    logger.info("Created cache schema %s (version %s)", self._prefix, SCHEMA_VERSION)
                else:
                    version = await self._client.get(self._schema_key)
                    if version != SCHEMA_VERSION:
                        logger.warning(
                            "Cache schema %s has version %s, expected %s",
                            self._prefix,
                            version,
                            SCHEMA_VERSION,
                        )
            except RedisError as e:
                raise CacheUnavailableError(f"Failed to open Redis cache: {e}") from e

            self._initialized = True
            return self._client

    async def store(self, description: str, result: AnalysisResult) -> None:
        """Store a cache entry in Redis.

        The record is written first, then claimed in one MULTI/EXEC block
        that sets the index entry and appends the id to the order list. If
        another writer claimed the normalized query first, the record is
        removed again so the index never points at a second copy.

        An existing entry whose record is missing or cannot be decoded does
        not count as stored: it is replaced by the new one.

        Args:
            description: The product description
            result: The analysis to cache

        Raises:
            CacheUnavailableError: If Redis cannot be written
        """
        client = await self._ensure_initialized()
        normalized = normalize_input(description)

        try:
            stale_id = await client.hget(self._index_key, normalized)
            if stale_id is not None:
                if await self._is_readable(client, stale_id):
                    logger.info("Analysis for %r already exists. Skipping save.", normalized)
                    return
                logger.warning("Replacing unreadable cache entry %s for %r", stale_id, normalized)

            entry_id = await client.incr(self._counter_key)
            record_key = self._record_key(entry_id)
            await client.hset(
                record_key,
                mapping={
                    "geminiQuery": normalized,
                    "geminiAnswer": serialize_result(result),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except RedisError as e:
            raise CacheUnavailableError(f"Failed to save analysis: {e}") from e

        try:
            claimed = await self._claim(client, normalized, entry_id, stale_id)
            if not claimed:
                await client.delete(record_key)
        except RedisError as e:
            await self._discard_unclaimed(client, normalized, entry_id)
            raise CacheUnavailableError(f"Failed to save analysis: {e}") from e

        if not claimed:
            logger.info("Analysis for %r was saved concurrently. Skipping save.", normalized)
            return

        logger.info("Saved analysis for: %r (id=%s)", normalized, entry_id)

    async def _is_readable(self, client: redis.Redis, entry_id: str) -> bool:
        answer = await client.hget(self._record_key(entry_id), "geminiAnswer")
        if answer is None:
            return False
        try:
            deserialize_result(answer)
        except ValidationError:
            return False
        return True

    async def _claim(
        self,
        client: redis.Redis,
        normalized: str,
        entry_id: int,
        stale_id: str | None,
    ) -> bool:
        """Point the index at ``entry_id`` and append it to the order list.

        The index hash is watched, so the claim only goes through while the
        query still maps to ``stale_id`` (None for an unclaimed query). A
        replaced entry is dropped from the order list and deleted in the
        same transaction.

        Returns:
            True if this entry now owns the query
        """
        while True:
            try:
                async with client.pipeline(transaction=True) as pipe:
                    await pipe.watch(self._index_key)
                    if await pipe.hget(self._index_key, normalized) != stale_id:
                        return False
                    pipe.multi()
                    pipe.hset(self._index_key, normalized, entry_id)
                    pipe.rpush(self._order_key, entry_id)
                    if stale_id is not None:
                        pipe.lrem(self._order_key, 0, stale_id)
                        pipe.delete(self._record_key(stale_id))
                    await pipe.execute()
                    return True
            except WatchError:
                logger.debug("Query index changed while claiming %r, retrying", normalized)

    async def _discard_unclaimed(self, client: redis.Redis, normalized: str, entry_id: int) -> None:
        # The claim may have been applied before the connection dropped.
        try:
            if await client.hget(self._index_key, normalized) != str(entry_id):
                await client.delete(self._record_key(entry_id))
        except RedisError as e:
            logger.warning("Could not remove unclaimed record %s: %s", entry_id, e)

    async def lookup(self, description: str) -> AnalysisResult | None:
        """Find the stored result via the query index.

        Args:
            description: The product description

        Returns:
            The cached AnalysisResult, or None if not found

        Raises:
            CacheUnavailableError: If Redis cannot be read
            MalformedCacheEntryError: If the stored answer cannot be decoded
        """
        client = await self._ensure_initialized()
        normalized = normalize_input(description)

        try:
            entry_id = await client.hget(self._index_key, normalized)
            if entry_id is None:
                return None
            answer = await client.hget(self._record_key(entry_id), "geminiAnswer")
        except RedisError as e:
            raise CacheUnavailableError(f"Failed to read analysis: {e}") from e

        if answer is None:
            logger.warning("Index points at missing record %s for %r", entry_id, normalized)
            return None

        try:
            return deserialize_result(answer)
        except ValidationError as e:
            raise MalformedCacheEntryError(normalized, str(e)) from e

    async def list_all(self) -> list[CacheEntryEntity]:
        """Return all entries in insertion order.

        Records that cannot be decoded are skipped with a warning.

        Returns:
            List of cache entries (oldest first)

        Raises:
            CacheUnavailableError: If Redis cannot be read
        """
        client = await self._ensure_initialized()

        try:
            ids = await client.lrange(self._order_key, 0, -1)
            pipe = client.pipeline(transaction=False)
            for entry_id in ids:
                pipe.hgetall(self._record_key(entry_id))
            rows = await pipe.execute() if ids else []
        except RedisError as e:
            raise CacheUnavailableError(f"Failed to list analyses: {e}") from e

        entries = []
        for entry_id, row in zip(ids, rows):
            if not row:
                continue
            try:
                entries.append(
                    CacheEntryEntity(
                        id=int(entry_id),
                        normalized_input=row["geminiQuery"],
                        result=deserialize_result(row["geminiAnswer"]),
                        created_at=datetime.fromisoformat(row["created_at"]),
                    )
                )
            except (KeyError, ValueError) as e:
                # pydantic.ValidationError is a ValueError
                logger.warning("Skipping malformed cache record %s: %s", entry_id, e)

        return entries

    async def count_all(self) -> int:
        """Count total entries in the cache.

        Returns:
            Total number of cached entries

        Raises:
            CacheUnavailableError: If Redis cannot be read
        """
        client = await self._ensure_initialized()
        try:
            return await client.hlen(self._index_key)
        except RedisError as e:
            raise CacheUnavailableError(f"Failed to count analyses: {e}") from e

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            client = await self._ensure_initialized()
            return bool(await client.ping())
        except (CacheUnavailableError, RedisError):
            return False

    async def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "redis",
            "key_prefix": self._prefix,
            "total_entries": await self.count_all(),
        }

    async def close(self) -> None:
        """Close the Redis connection pool.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._initialized = False
