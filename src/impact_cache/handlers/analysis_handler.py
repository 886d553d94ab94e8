"""HTTP handlers for analysis operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
``AnalysisFailedError`` is left to the application's exception handlers so
every endpoint reports it the same way.
"""

import time

from fastapi import HTTPException, status

from impact_cache.config import settings
from impact_cache.dto import (
    AnalysisResultPayload,
    AnalyzeRequest,
    AnalyzeResponse,
    CacheEntryItem,
    CacheStatsResponse,
    HealthCheckResponse,
    serialize_result,
)
from impact_cache.exceptions import CacheError
from impact_cache.services import AnalysisService


class AnalysisHandler:
    """HTTP handlers for analysis operations.

    This handler delegates business logic to AnalysisService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = AnalysisHandler(analysis_service=service)

        @app.post("/analyze", response_model=AnalyzeResponse)
        async def analyze(request: AnalyzeRequest):
            return await handler.analyze(request)
        ```
    """

    def __init__(self, analysis_service: AnalysisService) -> None:
        """Initialize the analysis handler.

        Args:
            analysis_service: The analysis service for business logic (required).
        """
        self._service = analysis_service

    async def analyze(self, request: AnalyzeRequest) -> AnalyzeResponse:
        """Handle POST /analyze requests.

        Args:
            request: The analyze request DTO

        Returns:
            AnalyzeResponse with the assessment and cache status

        Raises:
            AnalysisFailedError: If the analyzer fails on a cache miss
        """
        start_time = time.time()

        outcome = await self._service.resolve(request.description)

        lookup_time_ms = (time.time() - start_time) * 1000

        return AnalyzeResponse(
            description=request.description,
            cached=outcome.cached,
            result=AnalysisResultPayload.from_entity(outcome.result),
            lookup_time_ms=lookup_time_ms,
        )

    async def list_entries(self) -> list[CacheEntryItem]:
        """Handle GET /cache/entries requests.

        Returns:
            All cached entries in insertion order

        Raises:
            HTTPException: If the cache backend cannot be read
        """
        try:
            entries = await self._service.entries()
        except CacheError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to list cache entries: {e}",
            ) from e

        return [
            CacheEntryItem(
                id=entry.id,
                gemini_query=entry.normalized_input,
                gemini_answer=serialize_result(entry.result),
                created_at=entry.created_at,
            )
            for entry in entries
        ]

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Returns:
            CacheStatsResponse with cache statistics
        """
        stats = await self._service.get_stats()

        return CacheStatsResponse(
            backend=stats.get("backend", settings.cache_backend),
            total_entries=stats.get("total_entries", 0),
            total_requests=stats["total_requests"],
            cache_hits=stats["cache_hits"],
            cache_misses=stats["cache_misses"],
            hit_rate=stats["hit_rate"],
            analyzer_calls=stats["analyzer_calls"],
            analyzer_failures=stats["analyzer_failures"],
            cache_errors=stats["cache_errors"],
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with health status
        """
        is_healthy = await self._service.is_healthy()
        analyzer_available = await self._service.analyzer.is_available()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
            analyzer_available=analyzer_available,
        )
