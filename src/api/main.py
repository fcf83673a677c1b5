"""FastAPI application main module.

This module defines the main FastAPI application instance and core API endpoints
for the MitraRec recommendation service. It provides health check and metrics
endpoints and serves as the entry point for the API server.
"""

import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src import __version__
from src.api.config import get_settings
from src.api.logging_config import RequestLoggingMiddleware, setup_logging
from src.api.metrics import metrics_service
from src.api.routes import analytics, recommend
from src.recommender.exceptions import MitraRecException

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

# Create FastAPI application instance
app = FastAPI(
    title="MitraRec API",
    description="Marketplace product recommendations from browsing activity",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(analytics.router)


@app.exception_handler(MitraRecException)
async def mitrarec_exception_handler(request: Request, exc: MitraRecException) -> JSONResponse:
    """Render MitraRec errors as a JSON error body."""
    logger.warning(
        "Request failed with a handled error",
        extra={"path": str(request.url.path), "error": exc.message, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Invalid request parameters",
            "detail": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ``ctx`` may hold exception instances that are not JSON serializable
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".
    """
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Dict:
    """Counters and latency of recommendation requests since startup."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
