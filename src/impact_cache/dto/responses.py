"""Response DTOs for API endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .analysis import AnalysisResultPayload


class AnalyzeResponse(BaseModel):
    """Response DTO for the analyze operation."""

    description: str = Field(..., description="The description as submitted")
    cached: bool = Field(..., description="Whether the result came from the cache")
    result: AnalysisResultPayload = Field(..., description="The environmental-impact assessment")
    lookup_time_ms: float = Field(..., description="Total time to resolve the request in milliseconds")


class CacheEntryItem(BaseModel):
    """Single stored query (in entries array)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Store-assigned identifier")
    gemini_query: str = Field(..., alias="geminiQuery", description="Normalized description")
    gemini_answer: str = Field(
        ...,
        alias="geminiAnswer",
        description="JSON-serialized analysis result",
    )
    created_at: datetime = Field(..., description="When the entry was cached")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    backend: str = Field(..., description="Cache backend name ('memory' or 'redis')")
    total_entries: int = Field(..., description="Total number of cached entries", ge=0)
    total_requests: int = Field(..., description="Resolve calls since startup", ge=0)
    cache_hits: int = Field(..., description="Requests answered from the cache", ge=0)
    cache_misses: int = Field(..., description="Requests that needed the analyzer", ge=0)
    hit_rate: float = Field(..., description="cache_hits / total_requests", ge=0.0, le=1.0)
    analyzer_calls: int = Field(..., description="Calls made to the analyzer", ge=0)
    analyzer_failures: int = Field(..., description="Analyzer calls that failed", ge=0)
    cache_errors: int = Field(..., description="Absorbed cache failures", ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    analyzer_available: bool | None = Field(
        None,
        description="Whether the analyzer is configured",
    )


class ErrorResponse(BaseModel):
    """Error body returned for failed requests."""

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")
