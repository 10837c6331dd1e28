"""recipe-server: YAML prompt recipes run against Ollama.

A recipe gathers context through tools (files, git), renders it into a
prompt, streams the model's reply and can act on the result. Recipes are
served over a REST API with SSE streaming, or run once from the command line.
"""

from recipe_server.app import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
