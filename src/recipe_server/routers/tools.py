"""Tools router for listing the tools recipes can call."""

from typing import Annotated

from fastapi import APIRouter, Depends

from recipe_server.dependencies import get_tool_registry
from recipe_server.models.recipes import ToolInfo, ToolListResponse
from recipe_server.tools import ToolRegistry

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.get("", response_model=ToolListResponse, summary="List available tools")
async def list_tools(
    tools: Annotated[ToolRegistry, Depends(get_tool_registry)],
) -> ToolListResponse:
    """List every tool recipes may reference, with its description."""
    return ToolListResponse(
        tools=[
            ToolInfo(name=spec.name, description=spec.description)
            for spec in tools.describe()
        ]
    )
