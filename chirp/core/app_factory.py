from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
service container) so tests can build an app around fake clients.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from chirp.api.routes import health_router, posts_router
from chirp.core.config import settings
from chirp.core.container import ServiceContainer, build_container
from chirp.core.exception_handlers import setup_exception_handlers
from chirp.core.logging import configure_logging
from chirp.core.middleware import request_id_middleware
from chirp.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    container: ServiceContainer = app.state.container
    await container.startup()
    logger.info("app.startup", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        await container.aclose()
        logger.info("app.shutdown")


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        container: Prebuilt service container; built from settings if omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Chirp API",
        description=(
            "Emoji-only microblogging backend. Lists the 100 most recent posts "
            "with their authors' public profiles and lets signed-in users "
            "create posts, limited to 3 per minute per user."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    app.state.container = container or build_container(settings)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(posts_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, public operations)
    apply_openapi_customizations(app)

    return app
