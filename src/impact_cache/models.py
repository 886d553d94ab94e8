from dataclasses import dataclass

from impact_cache.entities import AnalysisResult


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of resolving one description."""

    result: AnalysisResult
    cached: bool


@dataclass
class AnalysisMetrics:
    """Track request counters for the analysis service."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    analyzer_calls: int = 0
    analyzer_failures: int = 0
    cache_errors: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests

    def record_hit(self) -> None:
        """Record a cache hit."""
        self.total_requests += 1
        self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        self.total_requests += 1
        self.cache_misses += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "analyzer_calls": self.analyzer_calls,
            "analyzer_failures": self.analyzer_failures,
            "cache_errors": self.cache_errors,
        }
