"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (in-memory -> Redis, Gemini -> another model)
- Unit testing with stub implementations
- Clear separation of concerns

Usage:
    ```python
    from impact_cache.protocols import Analyzer, CacheStore

    # Type hints work with any implementation
    repo: CacheStore = InMemoryCacheRepository()  # works
    repo: CacheStore = RedisCacheRepository()     # also works
    ```
"""

from .analyzer import Analyzer
from .cache_store import CacheStore

__all__ = [
    "Analyzer",
    "CacheStore",
]
