"""CLI entry point for recipe-server.

This module provides the command-line interface for recipe-server. It can be
invoked as `recipe-server` (via the script entry point) or
`python -m recipe_server`. Without recipe flags it starts the HTTP server;
with `-r NAME [ARGS...]` it runs a single recipe and prints the output.
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from recipe_server import __version__, create_app
from recipe_server.config import RecipeServerSettings
from recipe_server.ollama import OllamaChatService, OllamaClient, OllamaNotice
from recipe_server.recipes import (
    RecipeExecutor,
    RecipeRegistry,
    RunOptions,
    install_default_recipes,
)
from recipe_server.tools import ToolRegistry

logger = logging.getLogger(__name__)


def parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Turn repeated ``key=value`` strings into an overrides dict.

    Raises:
        ValueError: If an assignment has no "=" or an empty key
    """
    overrides: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got '{assignment}'")
        overrides[key.strip()] = value
    return overrides


async def run_recipe_once(
    settings: RecipeServerSettings,
    name: str,
    external_args: list[str],
    overrides: dict[str, str],
) -> str:
    """Run one recipe outside the server and return its formatted output.

    Retries happen inside the executor, per tool dispatch and around the
    model call, so the run itself is attempted once.
    """
    registry = RecipeRegistry(recipes_dir=settings.resolved_recipes_dir)
    client = OllamaClient(
        host=settings.ollama_host, timeout=settings.ollama_timeout
    )
    notice = OllamaNotice()
    executor = RecipeExecutor(
        registry=registry,
        tools=ToolRegistry.defaults(settings),
        chat=OllamaChatService(client=client, model=settings.model, notice=notice),
    )
    options = RunOptions(overrides=overrides, external_args=external_args)

    try:
        result = await executor.run(name, options)
        return result.output
    finally:
        await client.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the recipe-server CLI."""
    parser = argparse.ArgumentParser(
        prog="recipe-server",
        description="Run YAML prompt recipes against Ollama, once or as an HTTP server",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"recipe-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via RECIPE_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via RECIPE_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via RECIPE_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Ollama model used for recipes (can be set via RECIPE_MODEL)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for all data (default: ., can be set via RECIPE_DATA_DIR)",
    )

    parser.add_argument(
        "--recipes-dir",
        type=str,
        default=None,
        help="Recipe directory relative to the data dir (default: recipes)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via RECIPE_LOG_LEVEL)",
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development (uvicorn --reload)",
    )

    parser.add_argument(
        "-r",
        "--recipe",
        nargs="+",
        metavar="NAME",
        default=None,
        help="Run recipe NAME once with the remaining values as arg1, arg2, ...",
    )

    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a recipe variable (repeatable)",
    )

    parser.add_argument(
        "--recipes",
        action="store_true",
        help="List available recipes and exit",
    )

    parser.add_argument(
        "--tools",
        action="store_true",
        help="List available tools and exit",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the recipe-server CLI.

    Parses command-line arguments, then either lists recipes or tools, runs
    a single recipe, or starts the uvicorn server with the FastAPI application.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.model is not None:
        settings_kwargs["model"] = args.model
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.recipes_dir is not None:
        settings_kwargs["recipes_dir"] = args.recipes_dir
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = RecipeServerSettings(**settings_kwargs)

    if args.recipes or args.tools or args.recipe:
        logging.basicConfig(
            level=settings.log_level,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
        if settings.install_default_recipes:
            install_default_recipes(settings.resolved_recipes_dir)

    if args.recipes:
        registry = RecipeRegistry(recipes_dir=settings.resolved_recipes_dir)
        for recipe in registry.list_recipes():
            if recipe["description"]:
                print(f"{recipe['name']}: {recipe['description']}")
            else:
                print(recipe["name"])
        return 0

    if args.tools:
        for spec in ToolRegistry.defaults(settings).describe():
            print(f"{spec.name}: {spec.description}")
        return 0

    if args.recipe:
        try:
            overrides = parse_assignments(args.assignments)
        except ValueError as e:
            parser.error(str(e))

        name, *external_args = args.recipe
        try:
            output = asyncio.run(
                run_recipe_once(settings, name, external_args, overrides)
            )
        except Exception as e:
            logger.error(f"Recipe '{name}' failed: {e}")
            return 1

        print(output)
        return 0

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=args.reload,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
