"""Recipes router for managing and running recipes.

This module provides REST API endpoints for:
- Listing all recipes
- Getting a recipe's source and parsed definition
- Creating new recipes
- Deleting recipes
- Running a recipe, with a complete response or streamed via SSE
"""

import asyncio
import logging
from typing import Annotated

import httpx
import ollama
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sse_starlette.sse import EventSourceResponse

from recipe_server.dependencies import build_recipe_executor, get_recipe_registry
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
)
from recipe_server.recipes import (
    EmptyOutputError,
    EmptyStreamError,
    RecipeNotFoundError,
    RecipeRegistry,
    RecipeValidationError,
    RunOptions,
)
from recipe_server.tools import ToolExecutionError, ToolNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


def _classify_run_error(error: Exception) -> tuple[int, str]:
    """Map an exception raised by a recipe run to an HTTP status and error code."""
    match error:
        case RecipeNotFoundError():
            return status.HTTP_404_NOT_FOUND, "recipe_not_found"
        case RecipeValidationError():
            return 422, "invalid_recipe"
        case ToolNotFoundError():
            return status.HTTP_400_BAD_REQUEST, "tool_not_allowed"
        case ToolExecutionError():
            return status.HTTP_500_INTERNAL_SERVER_ERROR, "tool_failed"
        case EmptyOutputError() | EmptyStreamError():
            return status.HTTP_502_BAD_GATEWAY, "empty_output"
        case ollama.ResponseError() | ollama.RequestError():
            return status.HTTP_502_BAD_GATEWAY, "ollama_error"
        case httpx.ConnectError() | ConnectionError():
            return status.HTTP_502_BAD_GATEWAY, "ollama_unreachable"
        case ValueError():
            return status.HTTP_400_BAD_REQUEST, "invalid_request"
        case _:
            return status.HTTP_500_INTERNAL_SERVER_ERROR, "recipe_failed"


def _run_options(request_body: RunRecipeRequest, **kwargs) -> RunOptions:
    return RunOptions(
        overrides=dict(request_body.overrides),
        external_args=list(request_body.args),
        **kwargs,
    )


@router.get(
    "",
    response_model=RecipeListResponse,
    summary="List all recipes",
)
async def list_recipes(
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
) -> RecipeListResponse:
    """List all available recipes.

    Returns metadata for each recipe file in the recipes_dir, including:
    - name
    - description
    - version
    - allowed_tools

    Args:
        registry: Injected RecipeRegistry

    Returns:
        List of recipe metadata
    """
    try:
        recipes = [RecipeListItem(**r) for r in registry.list_recipes()]
        return RecipeListResponse(recipes=recipes)
    except OSError as e:
        logger.error(f"Failed to list recipes: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list recipes: {str(e)}",
        )


@router.get(
    "/{name}",
    response_model=RecipeResponse,
    summary="Get a recipe",
)
async def get_recipe(
    name: str,
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
) -> RecipeResponse:
    """Get the YAML source and parsed definition of a recipe.

    Raises:
        HTTPException: 404 if the recipe does not exist
        HTTPException: 422 if the recipe file is invalid
        HTTPException: 400 if the name is invalid
    """
    try:
        content = registry.get_source(name)
        definition = registry.load(name)
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RecipeValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return RecipeResponse(
        name=name,
        content=content,
        definition=definition.model_dump(by_alias=True),
    )


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new recipe",
)
async def create_recipe(
    request: CreateRecipeRequest,
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
) -> RecipeResponse:
    """Create a new recipe file from its YAML source.

    The source is validated before anything is written.

    Args:
        request: Recipe name and YAML content
        registry: Injected RecipeRegistry

    Returns:
        The stored recipe

    Raises:
        HTTPException: 422 if the YAML is not a valid recipe
        HTTPException: 400 if the name is invalid
        HTTPException: 409 if the recipe already exists
        HTTPException: 500 if the file cannot be written
    """
    try:
        definition = registry.create_recipe(request.name, request.content)
    except FileExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except RecipeValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OSError as e:
        logger.error(f"Failed to create recipe '{request.name}': {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create recipe: {str(e)}",
        )

    return RecipeResponse(
        name=request.name,
        content=request.content,
        definition=definition.model_dump(by_alias=True),
    )


@router.delete(
    "/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a recipe",
)
async def delete_recipe(
    name: str,
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
) -> None:
    """Delete a recipe file.

    Raises:
        HTTPException: 404 if the recipe does not exist
        HTTPException: 400 if the name is invalid
    """
    try:
        registry.delete_recipe(name)
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{name}/run", response_model=RunRecipeResponse)
async def run_recipe(
    name: str,
    request_body: RunRecipeRequest,
    request: Request,
) -> RunRecipeResponse:
    """Run a recipe and return the formatted output.

    Tool variables are resolved, the prompt is sent to Ollama, the reply is
    formatted and the recipe's post-actions are executed before responding.

    Args:
        name: Name of the recipe to run
        request_body: Positional arguments, overrides and model
        request: FastAPI request object

    Returns:
        RunRecipeResponse with the formatted output

    Raises:
        HTTPException: 404 if the recipe does not exist, 400 for disallowed
            tools or invalid input, 500 if a tool fails, 502 if Ollama fails
    """
    executor = build_recipe_executor(request, model=request_body.model)
    logger.info(f"Running recipe {name} with {len(request_body.args)} args")

    try:
        result = await executor.run(name, _run_options(request_body))
    except Exception as e:
        status_code, code = _classify_run_error(e)
        logger.error(f"Recipe {name} failed ({code}): {e}")
        raise HTTPException(
            status_code=status_code,
            detail={
                "error": {
                    "code": code,
                    "message": str(e),
                    "details": {"recipe": name},
                }
            },
        )

    logger.info(f"Recipe {name} produced {len(result.output)} characters")
    return RunRecipeResponse(recipe=result.name, output=result.output)


@router.post("/{name}/run/stream")
async def run_recipe_streaming(
    name: str,
    request_body: RunRecipeRequest,
    request: Request,
    registry: Annotated[RecipeRegistry, Depends(get_recipe_registry)],
) -> EventSourceResponse:
    """Run a recipe and stream the model output via Server-Sent Events (SSE).

    SSE Events:
        - content_delta: Each text chunk from the model
        - recipe_complete: Formatted output after post-actions ran
        - error: If the run fails
        - done: Stream is complete

    Raises:
        HTTPException: 404 if the recipe does not exist, 422 if it is invalid
    """
    try:
        registry.load(name)
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RecipeValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    executor = build_recipe_executor(request, model=request_body.model)
    logger.info(f"Starting streaming run of recipe {name}")

    async def event_generator():
        """Generate SSE events while the recipe runs."""
        tokens: asyncio.Queue[str | None] = asyncio.Queue()
        task = asyncio.create_task(
            executor.run(name, _run_options(request_body, on_token=tokens.put_nowait))
        )
        task.add_done_callback(lambda _: tokens.put_nowait(None))

        try:
            while True:
                token = await tokens.get()
                if token is None:
                    break

                if await request.is_disconnected():
                    logger.warning(f"Client disconnected while running recipe {name}")
                    return

                yield {
                    "event": "content_delta",
                    "data": ContentDeltaEvent(content=token).model_dump_json(),
                }

            result = await task

            yield {
                "event": "recipe_complete",
                "data": RecipeCompleteEvent(
                    recipe=result.name, output=result.output
                ).model_dump_json(),
            }
            yield {
                "event": "done",
                "data": DoneEvent(recipe=result.name).model_dump_json(),
            }

        except Exception as e:
            _, code = _classify_run_error(e)
            logger.error(f"Error during streaming run of recipe {name}: {e}")
            error_event = ErrorEvent(
                code=code,
                message=str(e),
                details={"recipe": name},
            )
            yield {
                "event": "error",
                "data": error_event.model_dump_json(),
            }

        finally:
            if not task.done():
                task.cancel()

    return EventSourceResponse(event_generator())
