"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_server.config import RecipeServerSettings
from recipe_server.ollama import OllamaClient, OllamaNotice
from recipe_server.recipes import install_default_recipes
from recipe_server.routers import health, recipes, tools
from recipe_server.tools import ToolRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    Creates the Ollama client once at startup and stores it in app.state for
    reuse across all requests. The bundled recipes are copied into the
    recipes directory when that is enabled.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: RecipeServerSettings = app.state.settings

    if settings.install_default_recipes:
        created = install_default_recipes(settings.resolved_recipes_dir)
        if created:
            logger.info(
                f"Installed {len(created)} default recipes into {settings.resolved_recipes_dir}"
            )

    app.state.ollama_client = OllamaClient(
        host=settings.ollama_host, timeout=settings.ollama_timeout
    )
    app.state.ollama_notice = OllamaNotice()
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    # Check initial connectivity
    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    yield

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


def create_app(settings: RecipeServerSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional RecipeServerSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from recipe_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="recipe-server",
        description="Runs YAML prompt recipes against Ollama with tool-backed variables",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.tool_registry = ToolRegistry.defaults(settings)

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(recipes.router)
    app.include_router(tools.router)

    return app
