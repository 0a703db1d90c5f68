"""FastAPI application factory for the risk feed service.

Serve with the runner (``python -m src.main``) or directly with
``uvicorn --factory src.api.app:create_app``.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from src.api.routes import health_router, router
from src.config.settings import Settings, load_settings


logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the application.

    Args:
        settings: Configuration to serve with. If None, loads it from the
            environment.

    Returns:
        Configured FastAPI instance; settings are available on app.state.
    """
    if settings is None:
        settings = load_settings(validate=True)

    app = FastAPI(
        title="Guardian360 Risk Feed",
        version="1.0.0",
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.settings = settings

    # Middleware added last is outermost. CORS goes outermost so that 429
    # responses from the rate limiter still carry CORS headers.
    app.add_middleware(RateLimitMiddleware, limit=settings.rate_limit_per_minute)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(router)

    logger.info(f"Risk feed app created; allowed origins: {', '.join(settings.cors_origins)}")
    return app
