"""Exception handlers for the FastAPI application.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from impact_cache.exceptions import AnalysisFailedError, InvalidDescriptionError

logger = logging.getLogger(__name__)


async def analysis_failed_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report an analyzer failure as 502 Bad Gateway."""
    logger.error("Analysis failed for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "code": "ANALYSIS_FAILED"},
    )


async def invalid_description_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report a blank description as 422."""
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "code": "VALIDATION_ERROR"},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the package's exception handlers on ``app``."""
    app.add_exception_handler(AnalysisFailedError, analysis_failed_handler)
    app.add_exception_handler(InvalidDescriptionError, invalid_description_handler)
