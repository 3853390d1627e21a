"""
Success Response Interceptor Middleware.
Wraps successful JSON responses as {"success": true, "data": <body>} so
clients unwrap every endpoint the same way. Errors keep FastAPI's shape.
"""

from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.base import BaseHTTPMiddleware
import json


# Key for skipping the interceptor on specific routes
SKIP_INTERCEPTOR_KEY = "skip_interceptor"

# FastAPI's own documentation endpoints
DOC_PATHS = frozenset({"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"})


class SuccessResponseInterceptor(BaseHTTPMiddleware):
    """
    Wraps 2xx JSON responses. Routes marked with @skip_interceptor, non-JSON
    bodies and the docs pages pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.path in DOC_PATHS:
            return response
        if not (200 <= response.status_code < 300):
            return response
        if getattr(request.state, SKIP_INTERCEPTOR_KEY, False):
            return response
        if "application/json" not in response.headers.get("content-type", ""):
            return response

        body = b""
        async for chunk in response.body_iterator:
            body += chunk

        headers = dict(response.headers)
        try:
            original = json.loads(body.decode())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return Response(content=body, status_code=response.status_code, headers=headers)

        # Content-Length is recalculated for the wrapped body
        headers.pop("content-length", None)
        return JSONResponse(
            content={"success": True, "data": original},
            status_code=response.status_code,
            headers=headers,
        )


def skip_interceptor(func: Callable) -> Callable:
    """
    Return the endpoint's body as-is.

    Usage:
        @app.get("/health")
        @skip_interceptor
        async def health():
            return {"status": "ok"}
    """
    setattr(func, SKIP_INTERCEPTOR_KEY, True)
    return func


class CustomAPIRoute(APIRoute):
    """Copies the endpoint's skip flag onto request.state for the middleware."""

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def custom_route_handler(request: Request) -> Response:
            if getattr(self.endpoint, SKIP_INTERCEPTOR_KEY, False):
                setattr(request.state, SKIP_INTERCEPTOR_KEY, True)
            return await original_route_handler(request)

        return custom_route_handler
