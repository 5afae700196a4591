"""
HTTP method enforcement for the key server endpoints.

Each gated path accepts exactly one method. Any other method is answered with
405 before routing, so no core logic (key store reads, key decoding, signing)
runs for a disallowed request. Paths not listed here are left to the router.
"""

from typing import Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

GATED_METHODS: Dict[str, str] = {
    "/auth": "POST",
    "/.well-known/jwks.json": "GET",
}


def allowed_method(path: str) -> Optional[str]:
    """Return the single method allowed on a gated path, or None if not gated."""
    return GATED_METHODS.get(path)


def is_method_allowed(path: str, method: str) -> bool:
    allowed = allowed_method(path)
    return allowed is None or method.upper() == allowed


def method_not_allowed_response(allowed: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={
            "error": "method_not_allowed",
            "message": "Method Not Allowed",
        },
        headers={"Allow": allowed},
    )


class RequestGateMiddleware(BaseHTTPMiddleware):
    """Reject requests whose method is not the one designated for the path."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not is_method_allowed(path, request.method):
            return method_not_allowed_response(allowed_method(path))
        return await call_next(request)
