"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parseai import __version__
from parseai.api.auth import router as auth_router
from parseai.api.catalog import router as catalog_router
from parseai.api.flows import router as flows_router
from parseai.api.sessions import router as sessions_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting ParseAI API...")
    yield
    # Shutdown
    logger.info("Shutting down ParseAI API...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="ParseAI API",
        description=(
            "Chat with a large language model, optionally grounded in an uploaded "
            "document or image. Parses uploads, answers questions with the document "
            "as context, titles conversations and keeps per-user session history."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.include_router(auth_router)
    application.include_router(flows_router)
    application.include_router(catalog_router)
    application.include_router(sessions_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "parseai"}

    return application


app = create_app()
