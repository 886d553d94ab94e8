from typing import Any

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from impact_cache.api.dependencies import HandlerDep, ServiceDep, make_lifespan
from impact_cache.api.exception_handlers import setup_exception_handlers
from impact_cache.config import settings
from impact_cache.dto import (
    AnalyzeRequest,
    AnalyzeResponse,
    CacheEntryItem,
    CacheStatsResponse,
    ErrorResponse,
    HealthCheckResponse,
)
from impact_cache.protocols import Analyzer, CacheStore

API_VERSION = "0.1.0"


def create_app(
    cache_store: CacheStore | None = None,
    analyzer: Analyzer | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        cache_store: Cache backend override (defaults to CACHE_BACKEND).
        analyzer: Analyzer override (defaults to Gemini).

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Product Impact Analysis API",
        description="Environmental-impact assessments from Gemini with a query cache",
        version=API_VERSION,
        lifespan=make_lifespan(cache_store=cache_store, analyzer=analyzer),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Product Impact Analysis API",
            "version": API_VERSION,
            "description": "Environmental-impact assessments from Gemini with a query cache",
            "endpoints": {
                "analyze": "/analyze",
                "entries": "/cache/entries",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post(
        "/analyze",
        response_model=AnalyzeResponse,
        responses={status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse}},
    )
    async def analyze(request: AnalyzeRequest, handler: HandlerDep) -> AnalyzeResponse:
        """
        Assess the environmental impact of a product.

        Cached results are returned without calling the analyzer.

        Args:
            request: Analyze request with the product description.

        Returns:
            The assessment and whether it came from the cache.
        """
        return await handler.analyze(request)

    @app.get("/cache/entries", response_model=list[CacheEntryItem])
    async def list_entries(handler: HandlerDep) -> list[CacheEntryItem]:
        """List every cached query in insertion order."""
        return await handler.list_entries()

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get cache and request statistics."""
        return await handler.get_stats()

    @app.post("/cache/stats/reset", response_model=dict[str, str])
    async def reset_stats(service: ServiceDep) -> dict[str, str]:
        """Reset request counters."""
        service.reset_metrics()
        return {"message": "Request counters reset"}

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "impact_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
