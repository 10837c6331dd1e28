"""Recipe execution engine.

Running a recipe goes through five stages:

1. Build the variable bag: defaults, then positional arguments (``arg1``,
   ``arg2``, ...), then caller overrides.
2. Resolve each declared variable by calling its tool, in declaration order,
   so later tool arguments can reference earlier results.
3. Render the system and user templates into a single prompt.
4. Stream the prompt through the chat collaborator and capture the reply.
5. Format the reply and fire the post-actions whose ``when`` holds.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from recipe_server.recipes.errors import EmptyOutputError
from recipe_server.recipes.formatting import format_output
from recipe_server.recipes.registry import RecipeRegistry
from recipe_server.recipes.retry import (
    RECIPE_TRANSIENT_ERRORS,
    TOOL_TRANSIENT_ERRORS,
    RetryConfig,
    retry,
)
from recipe_server.recipes.template import find_placeholder, neutralize, render, render_args
from recipe_server.recipes.types import RecipeDef, ToolCall
from recipe_server.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]


class ChatCollaborator(Protocol):
    """Streams a reply to a prompt, calling ``on_token`` for every delta."""

    async def chat(self, prompt: str, on_token: TokenCallback) -> str | None: ...


@dataclass
class RunOptions:
    """Caller-supplied options for a single recipe run.

    Attributes:
        overrides: Variable values that take precedence over defaults
        external_args: Positional arguments, exposed as arg1, arg2, ...
        on_token: Optional progress callback receiving every streamed token.
                  It runs inside the streaming loop and must not block.
    """

    overrides: dict[str, str] = field(default_factory=dict)
    external_args: list[str] = field(default_factory=list)
    on_token: TokenCallback | None = None


@dataclass(frozen=True)
class RecipeResult:
    """Outcome of a successful recipe run."""

    name: str
    prompt: str
    output: str


class RecipeExecutor:
    """Runs recipes against a tool registry and a chat collaborator."""

    def __init__(
        self,
        registry: RecipeRegistry,
        tools: ToolRegistry,
        chat: ChatCollaborator,
        chat_retry: RetryConfig | None = RECIPE_TRANSIENT_ERRORS,
        tool_retry: RetryConfig | None = TOOL_TRANSIENT_ERRORS,
    ):
        self.registry = registry
        self.tools = tools
        self.chat = chat
        self.chat_retry = chat_retry
        self.tool_retry = tool_retry

    async def run(self, name: str, options: RunOptions | None = None) -> RecipeResult:
        """Run the recipe called ``name``.

        Args:
            name: Recipe name, loaded fresh from the registry
            options: Overrides, positional arguments and token callback

        Returns:
            RecipeResult with the assembled prompt and the formatted output

        Raises:
            RecipeNotFoundError: If the recipe does not exist
            ToolNotFoundError: If a variable or post-action names an unknown
                               or disallowed tool
            ToolExecutionError: If a tool fails (after tool retries)
            EmptyOutputError: If the model output stays blank (after retries)
        """
        options = options or RunOptions()
        recipe = self.registry.load(name)
        tools = self.tools.restrict(recipe.allowed_tools)
        logger.info(f"Running recipe '{recipe.name}' with arguments {options.external_args}")

        variables = initial_variables(recipe, options)
        for var_name, call in recipe.vars.items():
            result = await self._resolve(tools, call, variables)
            variables[var_name] = "" if result is None else str(result)

        prompt = assemble_prompt(
            render(recipe.system, variables),
            render(recipe.user_template, variables),
        )
        leftover = find_placeholder(prompt)
        if leftover is not None:
            logger.debug(f"Neutralizing leftover placeholder '{leftover}' in prompt")
            prompt = neutralize(prompt)

        text = await self._generate(prompt, options.on_token)
        output = format_output(text, variables.get("format", "plain"))

        variables["output"] = output
        for action in recipe.post_actions:
            condition = render(action.when_ or "true", variables)
            if not evaluate_condition(condition):
                logger.debug(f"Skipping post-action '{action.call.tool}': {condition!r}")
                continue
            logger.info(f"Running post-action '{action.call.tool}'")
            await tools.invoke(action.call.tool, render_args(action.call.args, variables))

        logger.info(f"Recipe '{recipe.name}' finished: {len(output)} characters")
        return RecipeResult(name=recipe.name, prompt=prompt, output=output)

    async def _resolve(
        self, tools: ToolRegistry, call: ToolCall, variables: dict[str, str]
    ) -> object:
        args = render_args(call.args, variables)

        async def dispatch() -> object:
            return await tools.invoke(call.tool, args)

        if self.tool_retry is None:
            return await dispatch()
        return await retry(self.tool_retry, dispatch)

    async def _generate(self, prompt: str, on_token: TokenCallback | None) -> str:
        async def attempt() -> str:
            buffer: list[str] = []

            def collect(token: str) -> None:
                buffer.append(token)
                if on_token is not None:
                    on_token(token)

            returned = await self.chat.chat(prompt, collect)
            return reconcile_output(returned, "".join(buffer))

        if self.chat_retry is None:
            return await attempt()
        return await retry(self.chat_retry, attempt)


def initial_variables(recipe: RecipeDef, options: RunOptions) -> dict[str, str]:
    """Build the starting variable bag: defaults, positional args, overrides."""
    variables = dict(recipe.defaults)
    for index, value in enumerate(options.external_args, start=1):
        variables[f"arg{index}"] = value
    variables.update(options.overrides)
    return variables


def assemble_prompt(system: str, user: str) -> str:
    """Combine rendered system and user text into the single prompt sent out."""
    return f"SYSTEM:\n{system.strip()}\n\nUSER:\n{user.strip()}".strip()


def reconcile_output(returned: str | None, streamed: str) -> str:
    """Pick the final model text.

    The returned value wins unless it is missing or blank, in which case the
    streamed tokens are used.

    Raises:
        EmptyOutputError: If both are blank
    """
    if returned is not None and returned.strip():
        return returned.strip()
    text = streamed.strip()
    if not text:
        raise EmptyOutputError()
    return text


def evaluate_condition(expression: str) -> bool:
    """Evaluate a rendered post-action ``when`` expression.

    "true" and "false" (any case) are literals. Otherwise the expression is
    split on the first "==" and both sides are compared case-insensitively
    after trimming whitespace and surrounding quotes. Anything else is false.
    """
    text = expression.strip()
    if text.lower() == "true":
        return True
    if text.lower() == "false":
        return False

    left, sep, right = text.partition("==")
    if not sep:
        return False
    return _unquote(left).casefold() == _unquote(right).casefold()


def _unquote(value: str) -> str:
    return value.strip().strip("\"'")
