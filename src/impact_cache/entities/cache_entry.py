"""Cache entry domain entity."""

from dataclasses import dataclass
from datetime import datetime

from .analysis_result import AnalysisResult


def normalize_input(text: str) -> str:
    """Return the cache key for a product description.

    Surrounding whitespace is trimmed and the text lowercased. Two
    descriptions share a cache entry only if their normalized forms are
    exactly equal.
    """
    return text.strip().lower()


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached description-result pair.

    This is an internal representation used by services and repositories.
    For API contracts, use the DTO classes from the dto package.

    Attributes:
        id: Store-assigned identifier, distinct per entry
        normalized_input: The description after ``normalize_input``
        result: The stored analysis
        created_at: When this entry was written (UTC)
    """

    id: int
    normalized_input: str
    result: AnalysisResult
    created_at: datetime
