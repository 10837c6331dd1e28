"""Exception types raised while loading and running recipes."""


class RecipeNotFoundError(FileNotFoundError):
    """Raised when no recipe definition with the requested name exists."""

    def __init__(self, name: str):
        self.recipe_name = name
        super().__init__(
            f"Recipe '{name}' not found. Use '--recipes' to list all available recipes."
        )


class RecipeValidationError(ValueError):
    """Raised when a recipe file does not describe a valid recipe."""


class EmptyOutputError(ValueError):
    """Raised when the model produced nothing but whitespace."""

    def __init__(self, message: str = "Model returned empty output"):
        super().__init__(message)


class EmptyStreamError(RuntimeError):
    """Raised by the streaming layer when a response carried no content."""

    def __init__(self, message: str = "Received empty response from model"):
        super().__init__(message)
