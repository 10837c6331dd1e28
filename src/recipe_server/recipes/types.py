"""Recipe definition models.

Recipes are loaded from YAML. Keys may be written in camelCase
(``allowedTools``, ``userTemplate``, ``postActions``) or snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolCall(BaseModel):
    """A tool invocation used to compute a variable or run a post-action.

    ``args`` may be a string, number, list, mapping or null and may contain
    ``{{placeholders}}`` that are rendered right before dispatch.
    """

    tool: str = Field(..., min_length=1)
    args: Any = None

    model_config = ConfigDict(frozen=True)


class PostAction(BaseModel):
    """A tool call that runs after the model output is formatted.

    The action fires when the rendered ``when`` expression is true. A missing
    expression means "true".
    """

    when_: str | None = Field(default=None, alias="when")
    call: ToolCall

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RecipeDef(BaseModel):
    """A declarative prompt task."""

    name: str = Field(..., min_length=1)
    version: int = 3
    description: str | None = None
    allowed_tools: list[str] = Field(default_factory=list, alias="allowedTools")
    vars: dict[str, ToolCall] = Field(default_factory=dict)
    system: str = ""
    user_template: str = Field(..., alias="userTemplate")
    post_actions: list[PostAction] = Field(default_factory=list, alias="postActions")
    defaults: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("defaults", mode="before")
    @classmethod
    def stringify_defaults(cls, v: Any) -> Any:
        """Coerce scalar default values (numbers, booleans) to strings."""
        if isinstance(v, dict):
            return {str(k): "" if val is None else str(val) for k, val in v.items()}
        return v
