"""Pydantic models for recipe API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecipeListItem(BaseModel):
    """Metadata for a recipe in list responses."""

    name: str = Field(..., description="Recipe name (file name without extension)")
    description: str | None = Field(None, description="What the recipe does")
    version: int = Field(..., description="Recipe schema version")
    allowed_tools: list[str] = Field(
        default_factory=list,
        description="Tools the recipe may call (empty means all tools)",
    )

    model_config = ConfigDict(from_attributes=True)


class RecipeListResponse(BaseModel):
    """Response model for listing all recipes."""

    recipes: list[RecipeListItem] = Field(
        default_factory=list,
        description="List of available recipes",
    )


class RecipeResponse(BaseModel):
    """Response model for a single recipe."""

    name: str = Field(..., description="Recipe name")
    content: str = Field(..., description="YAML source of the recipe")
    definition: dict[str, Any] = Field(..., description="Parsed recipe definition")


class CreateRecipeRequest(BaseModel):
    """Request model for creating a new recipe."""

    name: str = Field(..., description="Recipe name", min_length=1, max_length=100)
    content: str = Field(
        ...,
        description="YAML source of the recipe",
        min_length=1,
        max_length=50000,
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that the name is a plain file stem."""
        if "/" in v or "\\" in v:
            raise ValueError("Recipe name cannot contain path separators")
        if v.startswith("."):
            raise ValueError("Recipe name cannot start with a dot")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Validate that content is not just whitespace."""
        if not v.strip():
            raise ValueError("Content cannot be empty or whitespace only")
        return v


class RunRecipeRequest(BaseModel):
    """Request body for running a recipe.

    Used by both POST /api/v1/recipes/{name}/run (non-streaming)
    and POST /api/v1/recipes/{name}/run/stream (streaming).
    """

    args: list[str] = Field(
        default_factory=list,
        description="Positional arguments, available to templates as arg1, arg2, ...",
    )
    overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Variable values that take precedence over recipe defaults",
    )
    model: str | None = Field(
        default=None,
        description="Ollama model to use instead of the configured default",
    )

    model_config = ConfigDict(
        protected_namespaces=(),
        json_schema_extra={
            "examples": [
                {
                    "args": ["README.md"],
                    "overrides": {"format": "markdown"},
                    "model": None,
                }
            ]
        },
    )


class RunRecipeResponse(BaseModel):
    """Response body for the non-streaming run endpoint."""

    recipe: str = Field(description="Name of the recipe that ran")
    output: str = Field(description="Formatted model output")


class ContentDeltaEvent(BaseModel):
    """SSE event carrying one streamed token."""

    content: str


class RecipeCompleteEvent(BaseModel):
    """SSE event sent once the output is formatted and post-actions ran."""

    recipe: str
    output: str


class ErrorEvent(BaseModel):
    """SSE event sent when the run fails."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class DoneEvent(BaseModel):
    """SSE event marking the end of the stream."""

    recipe: str


class ToolInfo(BaseModel):
    """A tool available to recipes."""

    name: str
    description: str


class ToolListResponse(BaseModel):
    """Response model for listing tools."""

    tools: list[ToolInfo] = Field(default_factory=list)
