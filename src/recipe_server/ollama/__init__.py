"""Ollama client wrapper and integration layer.

This package provides async client wrappers for communicating with the Ollama API.
All Ollama interactions are async and use streaming by default.
"""

from recipe_server.ollama.chat import OllamaChatService, OllamaNotice
from recipe_server.ollama.client import OllamaClient

__all__ = ["OllamaChatService", "OllamaClient", "OllamaNotice"]
