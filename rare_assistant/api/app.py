"""FastAPI application hosting the assistant UI.

NiceGUI mounts onto this app; FastAPI owns the process lifecycle so open
event streams and shared HTTP clients are released on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rare_assistant.auth.token_cache import close_token_cache
from rare_assistant.chat.session import close_all_sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting Rare Disease Assistant...")
    yield
    logger.info("Shutting down Rare Disease Assistant...")
    await close_all_sessions()
    await close_token_cache()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Rare Disease Assistant",
        description=(
            "Chat client for AI-assisted rare disease analysis. Streams answers, "
            "reasoning steps and source citations from the analysis service."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "rare-assistant"}

    return application
