"""Cache storage protocol.

Defines the interface for any cache storage backend that can store and
retrieve analysis results by normalized product description.

Implementations:
- In-memory list (process lifetime, default)
- Redis hashes with a query index (durable)
"""

from typing import Protocol, runtime_checkable

from impact_cache.entities import AnalysisResult, CacheEntryEntity


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Both ``store`` and ``lookup`` normalize their input with
    ``impact_cache.entities.normalize_input`` before touching storage.

    Example:
        ```python
        from impact_cache.protocols import CacheStore

        # Type check passes for any matching implementation
        repo: CacheStore = InMemoryCacheRepository()
        repo: CacheStore = RedisCacheRepository.create()
        ```
    """

    async def store(self, description: str, result: AnalysisResult) -> None:
        """Store a result for a description.

        The first write for a normalized description wins; later writes
        for the same normalized description are silently ignored.

        Args:
            description: The product description as entered by the user
            result: The analysis to cache

        Raises:
            CacheUnavailableError: If the backend cannot be written
        """
        ...

    async def lookup(self, description: str) -> AnalysisResult | None:
        """Find the stored result for a description.

        Args:
            description: The product description as entered by the user

        Returns:
            The cached AnalysisResult, or None if nothing is stored

        Raises:
            CacheUnavailableError: If the backend cannot be read
            MalformedCacheEntryError: If the stored entry cannot be decoded
        """
        ...

    async def list_all(self) -> list[CacheEntryEntity]:
        """Return every stored entry in insertion order.

        Returns:
            List of cache entries (oldest first)
        """
        ...

    async def count_all(self) -> int:
        """Count total entries in the cache.

        Returns:
            Total number of cached entries
        """
        ...

    async def health_check(self) -> bool:
        """Check if the backend is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...

    async def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...
