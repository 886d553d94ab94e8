"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .analysis import (
    AnalysisResultPayload,
    ImpactMetricPayload,
    deserialize_result,
    serialize_result,
)
from .requests import AnalyzeRequest
from .responses import (
    AnalyzeResponse,
    CacheEntryItem,
    CacheStatsResponse,
    ErrorResponse,
    HealthCheckResponse,
)

__all__ = [
    "AnalyzeRequest",
    "AnalyzeResponse",
    "AnalysisResultPayload",
    "ImpactMetricPayload",
    "CacheEntryItem",
    "CacheStatsResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "serialize_result",
    "deserialize_result",
]
