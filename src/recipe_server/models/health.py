"""Health check response model."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """What a client needs to know before running recipes.

    ``status`` is "degraded" when recipes cannot run right now: Ollama did
    not answer or the recipes directory could not be read.
    """

    status: Literal["ok", "degraded"] = Field(..., description="Overall service state")
    version: str = Field(..., description="Version of recipe-server")
    model: str = Field(..., description="Default model used for recipe runs")
    recipes_dir: str = Field(..., description="Directory recipe files are read from")
    recipe_count: int | None = Field(
        default=None,
        description="Number of valid recipes, None if the directory is unreadable",
    )
    tool_count: int = Field(..., description="Number of tools recipes may call")
    ollama_connected: bool | None = Field(
        default=None,
        description="Whether Ollama answered, None if no client is configured",
    )
    ollama_host: str | None = Field(default=None, description="Ollama host URL")
