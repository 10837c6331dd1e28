"""Health check endpoint router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from recipe_server.dependencies import get_recipe_registry, get_tool_registry
from recipe_server.models.health import HealthResponse
from recipe_server.ollama import OllamaClient
from recipe_server.recipes import RecipeRegistry
from recipe_server.tools import ToolRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


async def _ollama_state(request: Request) -> tuple[bool | None, str | None]:
    client: OllamaClient | None = getattr(request.app.state, "ollama_client", None)
    if client is None:
        return None, None
    try:
        return await client.check_connection(), client.host
    except Exception as e:
        logger.warning(f"Ollama connectivity check failed: {e}")
        return False, client.host


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
    tools: Annotated[ToolRegistry, Depends(get_tool_registry)],
) -> HealthResponse:
    """Report whether recipes can run.

    Counts the valid recipes on disk and the registered tools, and checks
    the Ollama server when a client was created at startup.
    """
    ollama_connected, ollama_host = await _ollama_state(request)

    try:
        recipe_count: int | None = len(registry.list_recipes())
    except OSError as e:
        logger.warning(f"Cannot read recipes directory {registry.recipes_dir}: {e}")
        recipe_count = None

    healthy = ollama_connected is not False and recipe_count is not None
    return HealthResponse(
        status="ok" if healthy else "degraded",
        version="0.1.0",
        model=request.app.state.settings.model,
        recipes_dir=str(registry.recipes_dir),
        recipe_count=recipe_count,
        tool_count=len(tools.names()),
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
    )
