"""FastAPI application factory.

Both roles take domain events on /internal/events and enqueue tasks. Only the
worker role mounts the task handlers that talk to the bot and identity
services.
"""

import os
from typing import Literal

from fastapi import APIRouter, FastAPI, Request, Response

from supportly.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .routers import public, worker
from .routes import events

AppRole = Literal["public", "worker"]

ROLE_ROUTERS: dict[str, tuple[APIRouter, ...]] = {
    "public": (public.router, events.router),
    "worker": (public.router, events.router, worker.router),
}


def _install_correlation_middleware(app: FastAPI) -> None:
    """Bind X-Correlation-ID (or a fresh id) for the lifetime of each request."""

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response


def create_app(role: AppRole | None = None) -> FastAPI:
    """Create the app for a role.

    Args:
        role: "public" or "worker". If None, reads APP_ROLE (default "public").
              Unknown roles get the public routes only.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]

    app = FastAPI(title="Supportly", docs_url=None, redoc_url=None)
    _install_correlation_middleware(app)

    for router in ROLE_ROUTERS.get(role, ROLE_ROUTERS["public"]):
        app.include_router(router)

    return app
