"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from impact_cache.services import AnalysisService

    # Using factory method (recommended)
    service = AnalysisService.create(cache=repo, analyzer=analyzer)

    # Or manual creation
    service = AnalysisService(cache=repo, analyzer=analyzer, coalesce_requests=True)
    ```
"""

from .analysis_service import AnalysisService

__all__ = [
    "AnalysisService",
]
