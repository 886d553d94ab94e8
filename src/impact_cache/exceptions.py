"""Exception hierarchy for the impact cache.

Storage failures (``CacheError`` and subclasses) are non-fatal: the
analysis service logs them and carries on. ``AnalysisFailedError`` is the
only error that reaches API clients.
"""


class ImpactCacheError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CacheError(ImpactCacheError):
    """Base class for cache storage failures."""


class CacheUnavailableError(CacheError):
    """The cache backend could not be opened, read, or written."""


class MalformedCacheEntryError(CacheError):
    """A stored entry could not be deserialized into an AnalysisResult."""

    def __init__(self, normalized_input: str, reason: str) -> None:
        self.normalized_input = normalized_input
        super().__init__(f"Malformed cache entry for {normalized_input!r}: {reason}")


class AnalyzerError(ImpactCacheError):
    """The external analyzer rejected the request or returned malformed data."""


class AnalysisFailedError(ImpactCacheError):
    """Resolving a description failed and no cached result was available."""


class InvalidDescriptionError(ImpactCacheError, ValueError):
    """The product description is empty after trimming whitespace."""
