"""Recipe loading and execution.

This package contains the recipe definition models, the YAML-backed recipe
registry, the template renderer, the retry policy engine, the output
formatter and the executor that ties them together.
"""

from recipe_server.recipes.errors import (
    EmptyOutputError,
    EmptyStreamError,
    RecipeNotFoundError,
    RecipeValidationError,
)
from recipe_server.recipes.executor import (
    RecipeExecutor,
    RecipeResult,
    RunOptions,
    evaluate_condition,
)
from recipe_server.recipes.formatting import format_output
from recipe_server.recipes.registry import RecipeRegistry, install_default_recipes
from recipe_server.recipes.retry import (
    RECIPE_TRANSIENT_ERRORS,
    STREAMING_ERRORS,
    TOOL_TRANSIENT_ERRORS,
    RetryConfig,
    retry,
)
from recipe_server.recipes.template import render
from recipe_server.recipes.types import PostAction, RecipeDef, ToolCall

__all__ = [
    "EmptyOutputError",
    "EmptyStreamError",
    "PostAction",
    "RECIPE_TRANSIENT_ERRORS",
    "RecipeDef",
    "RecipeExecutor",
    "RecipeNotFoundError",
    "RecipeRegistry",
    "RecipeResult",
    "RecipeValidationError",
    "RetryConfig",
    "RunOptions",
    "STREAMING_ERRORS",
    "TOOL_TRANSIENT_ERRORS",
    "ToolCall",
    "evaluate_condition",
    "format_output",
    "install_default_recipes",
    "render",
    "retry",
]
