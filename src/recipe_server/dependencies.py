"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and services.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from recipe_server.config import RecipeServerSettings
from recipe_server.ollama import OllamaChatService, OllamaClient, OllamaNotice
from recipe_server.recipes import RecipeExecutor, RecipeRegistry
from recipe_server.tools import ToolRegistry


@lru_cache
def get_settings() -> RecipeServerSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the RECIPE_ prefix.

    Returns:
        RecipeServerSettings: The application configuration settings.
    """
    return RecipeServerSettings()


def get_ollama_client(request: Request) -> OllamaClient:
    """Get the Ollama client from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        OllamaClient: The Ollama client instance.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    if not hasattr(request.app.state, "ollama_client"):
        raise HTTPException(
            status_code=503,
            detail="Ollama client not initialized",
        )
    return request.app.state.ollama_client


def get_recipe_registry(request: Request) -> RecipeRegistry:
    """Get a RecipeRegistry for the configured recipes directory.

    Uses settings from app.state instead of the cached get_settings() so
    tests can use their own isolated settings.
    """
    settings = request.app.state.settings
    return RecipeRegistry(recipes_dir=settings.resolved_recipes_dir)


def get_tool_registry(request: Request) -> ToolRegistry:
    """Get the shared ToolRegistry created by the app factory."""
    return request.app.state.tool_registry


def build_recipe_executor(request: Request, model: str | None = None) -> RecipeExecutor:
    """Create a RecipeExecutor wired to the app's Ollama client and tools.

    Args:
        request: The FastAPI request object.
        model: Optional model name overriding the configured default.

    Returns:
        RecipeExecutor: A new executor for one run.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    settings = request.app.state.settings
    notice: OllamaNotice = request.app.state.ollama_notice
    chat = OllamaChatService(
        client=get_ollama_client(request),
        model=model or settings.model,
        notice=notice,
    )
    return RecipeExecutor(
        registry=get_recipe_registry(request),
        tools=get_tool_registry(request),
        chat=chat,
    )
