"""In-memory implementation of CacheStore.

Entries live in a plain list for the lifetime of the process. Nothing is
persisted; restarting the service empties the cache.
"""

import logging
from datetime import datetime, timezone

from impact_cache.entities import AnalysisResult, CacheEntryEntity, normalize_input

logger = logging.getLogger(__name__)


class InMemoryCacheRepository:
    """Process-lifetime list of cache entries.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Lookups scan the list for an exact match on the normalized input.
    The first write for a normalized input wins.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory cache."""
        self._entries: list[CacheEntryEntity] = []

    @classmethod
    def create(cls) -> "InMemoryCacheRepository":
        """Factory method to create InMemoryCacheRepository.

        Returns:
            Empty InMemoryCacheRepository
        """
        return cls()

    def _find(self, normalized: str) -> CacheEntryEntity | None:
        for entry in self._entries:
            if entry.normalized_input == normalized:
                return entry
        return None

    async def store(self, description: str, result: AnalysisResult) -> None:
        """Store a result unless the normalized description is already cached.

        Args:
            description: The product description
            result: The analysis to cache
        """
        normalized = normalize_input(description)
        if self._find(normalized) is not None:
            logger.info("Analysis for %r already exists. Skipping save.", normalized)
            return

        self._entries.append(
            CacheEntryEntity(
                id=len(self._entries) + 1,
                normalized_input=normalized,
                result=result,
                created_at=datetime.now(timezone.utc),
            )
        )
        logger.info("Saved analysis for: %r", normalized)

    async def lookup(self, description: str) -> AnalysisResult | None:
        """Find the stored result for a description.

        Args:
            description: The product description

        Returns:
            The cached AnalysisResult, or None if not found
        """
        entry = self._find(normalize_input(description))
        return entry.result if entry is not None else None

    async def list_all(self) -> list[CacheEntryEntity]:
        """Return all entries in insertion order."""
        return list(self._entries)

    async def count_all(self) -> int:
        """Count total entries in the cache."""
        return len(self._entries)

    async def health_check(self) -> bool:
        """The in-memory store is always reachable."""
        return True

    async def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "memory",
            "total_entries": len(self._entries),
        }
