"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from impact_cache.config import configure_logging, settings
from impact_cache.handlers import AnalysisHandler
from impact_cache.protocols import Analyzer, CacheStore
from impact_cache.repositories import (
    GeminiAnalyzer,
    InMemoryCacheRepository,
    RedisCacheRepository,
)
from impact_cache.services import AnalysisService

logger = logging.getLogger(__name__)


def get_analysis_service(request: Request) -> AnalysisService:
    """Dependency injection for AnalysisService from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The AnalysisService instance from app.state

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "analysis_service", None)
    if service is None:
        raise RuntimeError("AnalysisService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> AnalysisHandler:
    """Dependency injection for AnalysisHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The AnalysisHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "analysis_handler", None)
    if handler is None:
        raise RuntimeError("AnalysisHandler not initialized. Check lifespan setup.")
    return handler


def build_cache_store(backend: str | None = None) -> CacheStore:
    """Create the cache backend named by ``backend`` (defaults to settings).

    Args:
        backend: "memory" or "redis"

    Returns:
        A CacheStore implementation
    """
    backend = backend or settings.cache_backend
    if backend == "redis":
        return RedisCacheRepository.create()
    if backend == "memory":
        return InMemoryCacheRepository.create()
    raise ValueError(f"Unknown cache backend: {backend!r}")


def make_lifespan(
    cache_store: CacheStore | None = None,
    analyzer: Analyzer | None = None,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Build the lifespan context manager for FastAPI app.

    Args:
        cache_store: Cache backend to use instead of the configured one.
        analyzer: Analyzer to use instead of Gemini.

    Returns:
        A lifespan function for ``FastAPI(lifespan=...)``
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize all layers and store them in app.state.

        1. Cache repository (data access) - created explicitly
        2. Analyzer (external model) - created explicitly
        3. Service (business logic) - stored in app.state.analysis_service
        4. Handler (HTTP endpoints) - stored in app.state.analysis_handler

        Cleanup:
            Closes network clients and removes all services from app.state
        """
        configure_logging()

        cache = cache_store if cache_store is not None else build_cache_store()
        model = analyzer if analyzer is not None else GeminiAnalyzer.create()

        analysis_service = AnalysisService.create(cache=cache, analyzer=model)
        analysis_handler = AnalysisHandler(analysis_service=analysis_service)

        app.state.analysis_service = analysis_service
        app.state.analysis_handler = analysis_handler
        app.state.cache_store = cache
        app.state.analyzer = model

        logger.info("Analysis service initialized")
        logger.info("Cache backend: %s", type(cache).__name__)
        logger.info("Analyzer model: %s", model.model_name)
        if not await model.is_available():
            logger.warning("Analyzer is not configured. Set GEMINI_API_KEY.")

        yield

        for resource in (model, cache):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

        del app.state.analysis_handler
        del app.state.analysis_service
        del app.state.cache_store
        del app.state.analyzer
        logger.info("Analysis service shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[AnalysisHandler, Depends(get_handler)]
ServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
