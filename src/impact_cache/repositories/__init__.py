"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the Gemini API)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (in-memory -> Redis, Gemini -> another model)
- Unit testing with stub implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from impact_cache.protocols import Analyzer, CacheStore

from .gemini_analyzer import GeminiAnalyzer
from .memory_repository import InMemoryCacheRepository
from .redis_repository import RedisCacheRepository

__all__ = [
    "Analyzer",
    "CacheStore",
    "GeminiAnalyzer",
    "InMemoryCacheRepository",
    "RedisCacheRepository",
]
