"""FastAPI application main module.

This module defines the main FastAPI application instance and core API
endpoints for the CartRec recommendation service. It provides health check
and metrics endpoints, registers error handlers and serves as the entry
point for the API server.
"""

import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cartrec import __version__
from cartrec.api.exceptions import CartRecException
from cartrec.api.logging_config import RequestLoggingMiddleware, setup_logging
from cartrec.api.metrics import metrics_service
from cartrec.api.routes import recommend
from cartrec.config import get_settings

# Configure module logger
logger = logging.getLogger(__name__)

setup_logging(get_settings().log_level)

# Create FastAPI application instance
app = FastAPI(
    title="CartRec API",
    description="Frequently-bought-together recommendations from association rules",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)


@app.exception_handler(CartRecException)
async def cartrec_exception_handler(
    request: Request, exc: CartRecException
) -> JSONResponse:
    """Render CartRec exceptions as a consistent JSON error body."""
    logger.warning(
        "Request failed with handled error",
        extra={
            "path": str(request.url.path),
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns a simple status response to verify the API is running.

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/metrics")
def get_metrics() -> Dict:
    """Recommendation call counters and latency statistics."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cartrec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
