"""FastAPI application entry point for the search API.

Wiring only: logging, lifespan, exception handlers, rate limiting,
middleware and the v1 router. Settings are read inside create_app() so
tests can set the environment first.

Run with: uvicorn tasksearch.main:app
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tasksearch.api.v1 import api_router
from tasksearch.core.config import get_settings
from tasksearch.core.exception_handlers import register_exception_handlers
from tasksearch.core.lifespan import create_lifespan
from tasksearch.core.limiter import limiter
from tasksearch.middleware import RequestIDMiddleware, TimeoutMiddleware
from tasksearch.shared.telemetry.logging import setup_logging


def create_app() -> FastAPI:
    """Build the search API application."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # Last added runs outermost: timeout, then request id, then CORS
    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type", settings.request_id_header],
        expose_headers=[settings.request_id_header],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
