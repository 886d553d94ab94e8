"""Impact Cache - Product environmental-impact analysis with a query cache.

This package provides a layered architecture for cached analysis:

Layers:
    - protocols: Interface contracts (CacheStore, Analyzer)
    - repositories: Data access implementations (in-memory, Redis, Gemini)
    - services: Business logic
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from impact_cache.repositories import GeminiAnalyzer, InMemoryCacheRepository
    from impact_cache.services import AnalysisService

    service = AnalysisService.create(
        cache=InMemoryCacheRepository.create(),
        analyzer=GeminiAnalyzer.create(),
    )
    outcome = await service.resolve("Plastic water bottle")
    ```

For HTTP API:
    ```python
    from impact_cache.api.app import app
    ```
"""

from impact_cache.config import get_redis_client, settings
from impact_cache.dto import AnalyzeRequest, AnalyzeResponse
from impact_cache.entities import AnalysisResult, CacheEntryEntity, ImpactMetric, normalize_input
from impact_cache.exceptions import (
    AnalysisFailedError,
    AnalyzerError,
    CacheError,
    CacheUnavailableError,
    MalformedCacheEntryError,
)
from impact_cache.handlers import AnalysisHandler
from impact_cache.protocols import Analyzer, CacheStore
from impact_cache.repositories import GeminiAnalyzer, InMemoryCacheRepository, RedisCacheRepository
from impact_cache.services import AnalysisService

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheStore",
    "Analyzer",
    # Services (business logic)
    "AnalysisService",
    # Handlers (HTTP)
    "AnalysisHandler",
    # Repositories (data access)
    "InMemoryCacheRepository",
    "RedisCacheRepository",
    "GeminiAnalyzer",
    # Entities (domain models)
    "AnalysisResult",
    "ImpactMetric",
    "CacheEntryEntity",
    "normalize_input",
    # Errors
    "CacheError",
    "CacheUnavailableError",
    "MalformedCacheEntryError",
    "AnalyzerError",
    "AnalysisFailedError",
    # DTOs (API contracts)
    "AnalyzeRequest",
    "AnalyzeResponse",
]
