"""Application factory and top-level wiring for the TicketDesk API.

Configuration, logging, the database schema, middleware, routers and error
handlers all meet here. ``create_app`` builds a fresh instance; the module
level ``app`` is what uvicorn serves.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.errors import (
    TicketDeskError,
    http_exception_handler,
    ticketdesk_error_handler,
    validation_exception_handler,
)
from .core.logging import configure_logging
from .db.migrate import init_db
from .middlewares import RequestIdMiddleware
from .routers import api_accounts, api_tickets, api_topics

logger = logging.getLogger("ticketdesk")


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by the server
    init_db()
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.APP_ENV)
    yield


def create_app() -> FastAPI:
    docs_url = None if settings.is_production else "/api/docs"
    app = FastAPI(
        title=settings.APP_NAME,
        description="REST API for managing support tickets",
        version=__version__,
        docs_url=docs_url,
        redoc_url=None,
        openapi_url=None if settings.is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestIdMiddleware)
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "x-account-sid", "x-api-key"],
        )

    app.add_exception_handler(TicketDeskError, ticketdesk_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Routers carry their own auth dependency; /health and /metrics stay public.
    app.include_router(api_accounts.router)
    app.include_router(api_topics.router)
    app.include_router(api_tickets.router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, bool]:
        return {"ok": True}

    Instrumentator().instrument(app).expose(app, include_in_schema=False)
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("ticketdesk.main:app", host=settings.HOST, port=settings.PORT)
