"""Analysis service for core business logic.

This service resolves a product description to an environmental-impact
assessment by coordinating the cache (data access) and the analyzer
(external model).
"""

import asyncio
import logging

from impact_cache.config import settings
from impact_cache.entities import AnalysisResult, CacheEntryEntity, normalize_input
from impact_cache.exceptions import AnalysisFailedError, CacheError, InvalidDescriptionError
from impact_cache.models import AnalysisMetrics, AnalysisOutcome
from impact_cache.protocols import Analyzer, CacheStore

logger = logging.getLogger(__name__)


class AnalysisService:
    """Cache-then-analyzer orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - CacheStore: can be in-memory, Redis, etc.
    - Analyzer: can be Gemini, another model, or a test stub.

    Only analyzer failures are fatal. Cache failures on either the read
    or the write path are logged and absorbed.

    Example:
        ```python
        from impact_cache.repositories import GeminiAnalyzer, InMemoryCacheRepository
        from impact_cache.services import AnalysisService

        service = AnalysisService.create(
            cache=InMemoryCacheRepository.create(),
            analyzer=GeminiAnalyzer.create(),
        )
        outcome = await service.resolve("Plastic water bottle")
        ```
    """

    def __init__(
        self,
        cache: CacheStore,
        analyzer: Analyzer,
        coalesce_requests: bool | None = None,
    ) -> None:
        """Initialize the analysis service.

        Args:
            cache: Cache storage backend (required).
            analyzer: External analyzer (required).
            coalesce_requests: Share one analyzer call between concurrent
                misses for the same normalized description. Defaults to settings.
        """
        self._cache = cache
        self._analyzer = analyzer
        self._coalesce = settings.coalesce_requests if coalesce_requests is None else coalesce_requests
        self._in_flight: dict[str, asyncio.Future[AnalysisResult]] = {}
        self._metrics = AnalysisMetrics()

    @classmethod
    def create(
        cls,
        cache: CacheStore,
        analyzer: Analyzer,
        coalesce_requests: bool | None = None,
    ) -> "AnalysisService":
        """Factory method to create AnalysisService with defaults.

        Args:
            cache: Cache storage backend (required).
            analyzer: External analyzer (required).
            coalesce_requests: If None, uses settings.

        Returns:
            Configured AnalysisService instance
        """
        return cls(cache=cache, analyzer=analyzer, coalesce_requests=coalesce_requests)

    async def resolve(self, description: str) -> AnalysisOutcome:
        """Resolve a description to an analysis, using the cache when possible.

        Business logic:
        1. Look the description up in the cache (failures count as a miss)
        2. On a hit, return the cached result without calling the analyzer
        3. On a miss, call the analyzer (failures are fatal)
        4. Store the fresh result (failures are logged and ignored)

        Args:
            description: Free-text product description

        Returns:
            AnalysisOutcome with the result and whether it came from the cache

        Raises:
            InvalidDescriptionError: If the description is blank
            AnalysisFailedError: If the analyzer fails on a cache miss
        """
        if not description or not description.strip():
            raise InvalidDescriptionError("Product description must not be empty")

        cached = await self._lookup(description)
        if cached is not None:
            self._metrics.record_hit()
            logger.info("Found cached analysis for %r", normalize_input(description))
            return AnalysisOutcome(result=cached, cached=True)

        self._metrics.record_miss()

        if not self._coalesce:
            result = await self._analyze_and_store(description)
            return AnalysisOutcome(result=result, cached=False)

        key = normalize_input(description)
        future = self._in_flight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._analyze_and_store(description))
            self._in_flight[key] = future
            future.add_done_callback(lambda done: self._finish_in_flight(key, done))
        else:
            logger.info("Joining in-flight analysis for %r", key)

        result = await asyncio.shield(future)
        return AnalysisOutcome(result=result, cached=False)

    def _finish_in_flight(self, key: str, future: asyncio.Future[AnalysisResult]) -> None:
        self._in_flight.pop(key, None)
        # Mark the failure as retrieved; every waiter may have been cancelled.
        if not future.cancelled():
            future.exception()

    async def _lookup(self, description: str) -> AnalysisResult | None:
        try:
            return await self._cache.lookup(description)
        except CacheError as e:
            self._metrics.cache_errors += 1
            logger.warning("Storage error: %s", e)
            return None

    async def _analyze_and_store(self, description: str) -> AnalysisResult:
        self._metrics.analyzer_calls += 1
        try:
            result = await self._analyzer.analyze(description)
        except Exception as e:
            self._metrics.analyzer_failures += 1
            logger.error("Error during analysis: %s", e)
            raise AnalysisFailedError(str(e) or "Analysis failed") from e

        try:
            await self._cache.store(description, result)
        except CacheError as e:
            self._metrics.cache_errors += 1
            logger.warning("Failed to save to storage: %s", e)

        return result

    async def entries(self) -> list[CacheEntryEntity]:
        """Return every cached entry in insertion order.

        Returns:
            List of cache entries

        Raises:
            CacheError: If the cache backend cannot be read
        """
        return await self._cache.list_all()

    async def get_stats(self) -> dict:
        """Get service and cache statistics.

        Cache backend failures are reported as ``cache_available: False``
        instead of raising.

        Returns:
            Dictionary with request counters and backend stats
        """
        stats: dict = self._metrics.to_dict()
        try:
            stats.update(await self._cache.get_stats())
            stats["cache_available"] = True
        except CacheError as e:
            logger.warning("Failed to read cache stats: %s", e)
            stats["cache_available"] = False
        stats["analyzer_model"] = self._analyzer.model_name
        stats["coalesce_requests"] = self._coalesce
        return stats

    async def is_healthy(self) -> bool:
        """Check if the cache backend is healthy.

        Returns:
            True if the cache is reachable
        """
        return await self._cache.health_check()

    def reset_metrics(self) -> None:
        """Reset request counters."""
        self._metrics = AnalysisMetrics()

    @property
    def metrics(self) -> AnalysisMetrics:
        """Get the request counters."""
        return self._metrics

    @property
    def cache(self) -> CacheStore:
        """Get the underlying cache (for testing)."""
        return self._cache

    @property
    def analyzer(self) -> Analyzer:
        """Get the underlying analyzer (for testing)."""
        return self._analyzer
