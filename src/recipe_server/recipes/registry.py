"""Recipe definition storage.

This module provides the RecipeRegistry class for loading and managing recipe
definitions stored as YAML files in the configured recipes_dir, and the
installer for the recipes bundled with the package.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any, TypedDict

import yaml
from pydantic import ValidationError

from recipe_server.recipes.errors import RecipeNotFoundError, RecipeValidationError
from recipe_server.recipes.types import RecipeDef

logger = logging.getLogger(__name__)

RECIPE_SUFFIXES = (".yml", ".yaml")

BUNDLED_RECIPES = ("gitcommit.yml", "summarize.yml")

# Largest recipe file accepted through the API
MAX_RECIPE_LENGTH = 50000


class RecipeMetadata(TypedDict):
    """Metadata for a recipe file."""

    name: str
    description: str | None
    version: int
    allowed_tools: list[str]


class RecipeRegistry:
    """Loads and manages recipe files on disk.

    A recipe named ``gitcommit`` lives in ``<recipes_dir>/gitcommit.yml``
    (``.yaml`` is accepted as well). Definitions are read fresh on every
    load; nothing is cached.
    """

    def __init__(self, recipes_dir: Path):
        """Initialize the RecipeRegistry.

        Args:
            recipes_dir: Path to the directory containing recipe files.
                         Will be created if it doesn't exist.
        """
        self.recipes_dir = recipes_dir
        self.recipes_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Recipes directory ready: {self.recipes_dir}")

    def load(self, name: str) -> RecipeDef:
        """Load and validate a recipe definition.

        Args:
            name: Recipe name without extension

        Returns:
            The parsed recipe

        Raises:
            RecipeNotFoundError: If no recipe with this name exists
            RecipeValidationError: If the file is not a valid recipe
        """
        return parse_recipe(self.get_source(name), source=name)

    def get_source(self, name: str) -> str:
        """Get the raw YAML of a recipe.

        Raises:
            RecipeNotFoundError: If no recipe with this name exists
            ValueError: If the name is invalid
        """
        self._validate_name(name)
        file_path = self._find(name)
        if file_path is None:
            raise RecipeNotFoundError(name)
        return file_path.read_text(encoding="utf-8")

    def list_recipes(self) -> list[RecipeMetadata]:
        """List all recipes with metadata, sorted by name.

        Files that fail to parse are skipped with a warning.
        """
        recipes: list[RecipeMetadata] = []
        seen: set[str] = set()

        for file_path in sorted(self.recipes_dir.iterdir()):
            if file_path.suffix not in RECIPE_SUFFIXES or file_path.stem in seen:
                continue
            try:
                recipe = parse_recipe(
                    file_path.read_text(encoding="utf-8"), source=file_path.stem
                )
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to read recipe file {file_path.name}: {e}")
                continue

            seen.add(file_path.stem)
            recipes.append(
                RecipeMetadata(
                    name=file_path.stem,
                    description=recipe.description,
                    version=recipe.version,
                    allowed_tools=list(recipe.allowed_tools),
                )
            )

        return recipes

    def create_recipe(self, name: str, content: str) -> RecipeDef:
        """Create a new recipe file.

        Args:
            name: Recipe name without extension
            content: YAML source of the recipe

        Returns:
            The parsed recipe

        Raises:
            ValueError: If the name or content is invalid
            FileExistsError: If a recipe with this name already exists
        """
        self._validate_name(name)
        if len(content) > MAX_RECIPE_LENGTH:
            raise ValueError(
                f"Content exceeds maximum length of {MAX_RECIPE_LENGTH:,} characters"
            )
        recipe = parse_recipe(content, source=name)

        if self._find(name) is not None:
            raise FileExistsError(f"Recipe '{name}' already exists")

        (self.recipes_dir / f"{name}.yml").write_text(content, encoding="utf-8")
        logger.info(f"Created recipe: {name}")
        return recipe

    def delete_recipe(self, name: str) -> None:
        """Delete a recipe file.

        Raises:
            RecipeNotFoundError: If no recipe with this name exists
            ValueError: If the name is invalid
        """
        self._validate_name(name)
        file_path = self._find(name)
        if file_path is None:
            raise RecipeNotFoundError(name)

        file_path.unlink()
        logger.info(f"Deleted recipe: {name}")

    def _find(self, name: str) -> Path | None:
        for suffix in RECIPE_SUFFIXES:
            file_path = self.recipes_dir / f"{name}{suffix}"
            if file_path.is_file():
                return file_path
        return None

    def _validate_name(self, name: str) -> None:
        if not name:
            raise ValueError("Recipe name cannot be empty")

        if "/" in name or "\\" in name:
            raise ValueError("Recipe name cannot contain path separators")

        if name.startswith("."):
            raise ValueError("Recipe name cannot start with a dot")


def parse_recipe(content: str, source: str = "<string>") -> RecipeDef:
    """Parse YAML source into a RecipeDef.

    A recipe without a ``name`` key takes the name of its file.

    Raises:
        RecipeValidationError: If the YAML is malformed or not a valid recipe
    """
    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RecipeValidationError(f"Recipe '{source}' is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise RecipeValidationError(f"Recipe '{source}' must be a YAML mapping")

    data.setdefault("name", source)
    try:
        return RecipeDef.model_validate(data)
    except ValidationError as e:
        raise RecipeValidationError(f"Recipe '{source}' is invalid: {e}") from e


def install_default_recipes(recipes_dir: Path) -> list[Path]:
    """Copy the bundled recipes into ``recipes_dir``.

    Existing files are never overwritten so user customizations survive.

    Returns:
        Paths of the recipe files that were created
    """
    recipes_dir.mkdir(parents=True, exist_ok=True)
    bundled = resources.files("recipe_server.recipes") / "templates"
    created: list[Path] = []

    for template_name in BUNDLED_RECIPES:
        target = recipes_dir / template_name
        if target.exists():
            continue
        try:
            content = (bundled / template_name).read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning(f"Could not load bundled recipe: {template_name}")
            continue
        target.write_text(content, encoding="utf-8")
        created.append(target)
        logger.debug(f"Created default recipe: {target}")

    return created
