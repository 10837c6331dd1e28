"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
"""

from recipe_server.routers import health, recipes, tools

__all__ = [
    "health",
    "recipes",
    "tools",
]
