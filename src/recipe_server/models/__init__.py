"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from recipe_server.models.health import HealthResponse
from recipe_server.models.recipes import (
    ContentDeltaEvent,
    CreateRecipeRequest,
    DoneEvent,
    ErrorEvent,
    RecipeCompleteEvent,
    RecipeListItem,
    RecipeListResponse,
    RecipeResponse,
    RunRecipeRequest,
    RunRecipeResponse,
    ToolInfo,
    ToolListResponse,
)

__all__ = [
    "ContentDeltaEvent",
    "CreateRecipeRequest",
    "DoneEvent",
    "ErrorEvent",
    "HealthResponse",
    "RecipeCompleteEvent",
    "RecipeListItem",
    "RecipeListResponse",
    "RecipeResponse",
    "RunRecipeRequest",
    "RunRecipeResponse",
    "ToolInfo",
    "ToolListResponse",
]
