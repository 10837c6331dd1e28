"""Tool discovery and dispatch layer.

This package provides the ``@tool`` decorator, the ``ToolRegistry`` that
recipes dispatch through, and the built-in git and filesystem tools.
"""

from recipe_server.tools.fs import FileTools
from recipe_server.tools.git import GitTools
from recipe_server.tools.registry import (
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistry,
    ToolSpec,
    tool,
)

__all__ = [
    "FileTools",
    "GitTools",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolSpec",
    "tool",
]
