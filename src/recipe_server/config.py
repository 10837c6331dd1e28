"""Configuration module for recipe-server using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecipeServerSettings(BaseSettings):
    """Main configuration settings for recipe-server.

    All settings can be overridden via environment variables with the RECIPE_ prefix.
    For example, RECIPE_OLLAMA_HOST will override the ollama_host setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    model: str = "llama3.2:latest"
    ollama_timeout: float | None = Field(default=300.0, gt=0)

    # Data directories (relative to data_dir)
    data_dir: str = "."
    recipes_dir: str = "recipes"
    install_default_recipes: bool = True

    # File tools
    tool_root: str = "~"
    file_max_kb: int = Field(default=100, ge=1)

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="RECIPE_")

    # --- Resolved paths (computed from data_dir + relative dirs) ---

    @property
    def resolved_recipes_dir(self) -> Path:
        """Get the full path to the recipes directory."""
        return Path(self.data_dir) / self.recipes_dir

    @property
    def resolved_tool_root(self) -> Path:
        """Get the absolute root directory that file tools may not escape."""
        return Path(self.tool_root).expanduser().resolve()
