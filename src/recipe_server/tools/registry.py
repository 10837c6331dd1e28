"""Name-based dispatch to tool methods.

Tools are plain methods on provider objects, marked with the ``@tool``
decorator. A ``ToolRegistry`` maps tool names to bound methods and may be
restricted to the whitelist declared by a recipe.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import UnionType
from typing import Any, TypeVar, Union, get_args, get_origin

from recipe_server.config import RecipeServerSettings

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_TOOL_ATTR = "__recipe_tool__"


@dataclass(frozen=True)
class ToolSpec:
    """Metadata attached to a tool method."""

    name: str
    description: str


class ToolNotFoundError(LookupError):
    """Raised when a tool is unknown or not allowed for the current recipe."""

    def __init__(self, name: str, available: Iterable[str]):
        self.tool_name = name
        self.available = sorted(available)
        super().__init__(
            f"Tool not found or not allowed: {name}. Available: {self.available}"
        )


class ToolExecutionError(RuntimeError):
    """Raised when a tool fails. The tool's own exception is the __cause__."""

    def __init__(self, name: str, error: BaseException):
        self.tool_name = name
        super().__init__(f"Tool '{name}' failed: {error}")


def tool(name: str | None = None, description: str = "") -> Callable[[F], F]:
    """Mark a method as a tool.

    Args:
        name: Tool name, defaults to the method name
        description: Human-readable description shown in tool listings
    """

    def decorator(func: F) -> F:
        setattr(
            func,
            _TOOL_ATTR,
            ToolSpec(name=name or func.__name__, description=inspect.cleandoc(description)),
        )
        return func

    return decorator


class ToolRegistry:
    """Registry of callable tools keyed by name."""

    def __init__(self, tools: dict[str, tuple[ToolSpec, Callable[..., Any]]]):
        self._tools = tools

    @classmethod
    def from_providers(
        cls, providers: Iterable[object], allow: Iterable[str] | None = None
    ) -> "ToolRegistry":
        """Collect every ``@tool`` method of the given provider objects.

        Args:
            providers: Objects whose decorated methods become tools
            allow: Optional whitelist of tool names; None or empty allows all
        """
        allowed = set(allow) if allow else None
        tools: dict[str, tuple[ToolSpec, Callable[..., Any]]] = {}
        for provider in providers:
            for attr_name in dir(type(provider)):
                spec = getattr(getattr(type(provider), attr_name), _TOOL_ATTR, None)
                if not isinstance(spec, ToolSpec):
                    continue
                if allowed is None or spec.name in allowed:
                    tools[spec.name] = (spec, getattr(provider, attr_name))
        return cls(tools)

    @classmethod
    def defaults(
        cls, settings: RecipeServerSettings, allow: Iterable[str] | None = None
    ) -> "ToolRegistry":
        """Create a registry with the built-in git and file tools."""
        from recipe_server.tools.fs import FileTools
        from recipe_server.tools.git import GitTools

        file_tools = FileTools(
            allowed_root=settings.resolved_tool_root,
            max_kb=settings.file_max_kb,
        )
        return cls.from_providers([GitTools(file_tools=file_tools), file_tools], allow)

    def restrict(self, allowed: Iterable[str]) -> "ToolRegistry":
        """Return a registry limited to ``allowed``. Empty means unrestricted."""
        allowed = set(allowed)
        if not allowed:
            return self
        logger.debug(f"Restricting tools to: {', '.join(sorted(allowed))}")
        return ToolRegistry(
            {name: entry for name, entry in self._tools.items() if name in allowed}
        )

    def names(self) -> list[str]:
        """Get the sorted names of all available tools."""
        return sorted(self._tools)

    def describe(self) -> list[ToolSpec]:
        """Get the specs of all available tools, sorted by name."""
        return [self._tools[name][0] for name in self.names()]

    async def invoke(self, name: str, args: Any = None) -> Any:
        """Invoke a tool by name.

        Argument shapes:
            - None: call with no arguments
            - list: passed whole when the tool takes a single list parameter,
              otherwise spread positionally
            - dict: passed as keyword arguments
            - anything else: passed as the single argument

        Raises:
            ToolNotFoundError: If the tool is unknown or not allowed
            ToolExecutionError: If the tool raised
        """
        entry = self._tools.get(name)
        if entry is None:
            raise ToolNotFoundError(name, self._tools)
        _, func = entry

        call_args, call_kwargs = _bind_arguments(func, args)
        logger.debug(f"Invoking tool '{name}' with args={call_args} kwargs={call_kwargs}")

        try:
            if inspect.iscoroutinefunction(func):
                return await func(*call_args, **call_kwargs)
            return await asyncio.to_thread(func, *call_args, **call_kwargs)
        except Exception as e:
            logger.error(f"Tool '{name}' failed: {e}")
            raise ToolExecutionError(name, e) from e


def _bind_arguments(func: Callable[..., Any], args: Any) -> tuple[list[Any], dict[str, Any]]:
    match args:
        case None:
            return [], {}
        case dict():
            return [], dict(args)
        case list() | tuple():
            if _takes_single_list(func):
                return [list(args)], {}
            return list(args), {}
        case _:
            return [args], {}


def _takes_single_list(func: Callable[..., Any]) -> bool:
    params = list(inspect.signature(func).parameters.values())
    if len(params) != 1:
        return False
    annotation = params[0].annotation
    if get_origin(annotation) in (Union, UnionType):
        candidates = get_args(annotation)
    else:
        candidates = (annotation,)
    return any(c is list or get_origin(c) is list for c in candidates)
