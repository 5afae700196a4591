"""
JWKS Key Server - FastAPI Application

Issues RS256 bearer tokens and publishes the public half of every currently
valid signing key at /.well-known/jwks.json.

Startup:
- Bring the key store schema to the latest Alembic revision
- Seed one valid and one already-expired signing key
- Only then accept requests (a seeding failure aborts startup)

Error handling:
- Disallowed methods on gated paths are answered with 405 by RequestGate
- Core failures (KeyServerError) are logged with their operation and time
  and returned as a generic 500 with no internal detail
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from keyserver.app.db.migrate import ensure_schema
from keyserver.app.routes import auth, health, jwks
from keyserver.app.security.request_gate import RequestGateMiddleware
from keyserver.app.services.clock import now_epoch
from keyserver.app.services.errors import KeyServerError, NoValidKeyError
from keyserver.app.services.key_generator import seed_keys
from keyserver.app.services.key_store import KeyStore, SQLiteKeyStore

logger = logging.getLogger(__name__)

GENERIC_ERROR_BODY = {
    "error": "internal_error",
    "message": "An unexpected error occurred",
}


def sanitize_error_detail(detail: Any) -> dict:
    """
    Keep dict details (built by our own code) and replace anything else with a
    generic message.
    """
    if isinstance(detail, dict):
        return detail

    return {
        "error": "request_error",
        "message": "An error occurred processing your request",
    }


def build_key_store() -> KeyStore:
    """Create the production key store on a migrated SQLite database."""
    ensure_schema()
    return SQLiteKeyStore()


def create_app(key_store: Optional[KeyStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        key_store: Store to seed and serve from. When omitted, a SQLite store
            is created at startup from KEYSERVER_DB_PATH.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = key_store if key_store is not None else build_key_store()

        # Seeding is a one-time barrier: KeyGenError/StorageError propagate
        # and the server never starts without keys.
        await asyncio.to_thread(seed_keys, store, now_epoch())

        app.state.key_store = store
        logger.info("Key server ready")
        yield

    app = FastAPI(
        title="JWKS Key Server",
        description="RS256 token issuance with JWKS key discovery",
        version="0.1.0",
        lifespan=lifespan,
        debug=False,
    )

    app.add_middleware(RequestGateMiddleware)

    @app.exception_handler(KeyServerError)
    async def key_server_error_handler(request: Request, exc: KeyServerError):
        """Log core failures server-side and return a generic 500."""
        at = exc.at if exc.at is not None else now_epoch()
        # NoValidKeyError is operational and logs as a warning.
        log = logger.warning if isinstance(exc, NoValidKeyError) else logger.error
        log(
            "Request failed: code=%s operation=%s path=%s at=%s",
            exc.code,
            exc.operation,
            request.url.path,
            at,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=GENERIC_ERROR_BODY,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=sanitize_error_detail(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all so stack traces never reach the client."""
        logger.exception("Unhandled exception on %s: %s", request.url.path, type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=GENERIC_ERROR_BODY,
        )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(jwks.router)

    return app


app = create_app()
