"""
Global exception handler.

HTTPException subclasses from app.core.exceptions are rendered by FastAPI's
own handler; anything else reaching this point is a bug or an infrastructure
failure and is reported as a generic 500.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


async def invalid_transition_handler(request: Request, exc: Exception) -> JSONResponse:
    """Lifecycle table refused an event; the client acted on stale state."""
    logger.warning("Refused transition on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})
