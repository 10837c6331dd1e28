"""Bounded retry with backoff and pluggable error classification.

The same engine wraps tool dispatch during variable resolution, the model call
of a recipe run, and each streaming request. Presets at the bottom of
this module classify the known transient failure shapes; every other error is
re-raised on its first occurrence.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import TracebackType
from typing import TypeVar

from recipe_server.recipes.errors import EmptyOutputError, EmptyStreamError
from recipe_server.tools.registry import ToolExecutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCondition = Callable[[BaseException], bool]
RetryCallback = Callable[[int, int, BaseException, float], None]


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for a single operation.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        initial_delay: Delay in seconds before the second attempt
        delay_increment: Seconds added to the delay for every further attempt
        backoff_multiplier: When set, the delay grows exponentially by this
                            factor instead of linearly by delay_increment
        retry_condition: Decides whether an error is retryable. None retries
                         every error.
        on_retry: Called as (attempt, max_attempts, error, delay) before sleeping
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    delay_increment: float = 0.0
    backoff_multiplier: float | None = None
    retry_condition: RetryCondition | None = None
    on_retry: RetryCallback | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay <= 0:
            raise ValueError("initial_delay must be positive")
        if self.delay_increment < 0:
            raise ValueError("delay_increment cannot be negative")
        if self.backoff_multiplier is not None and self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Get the delay to wait after the given (1-based) failed attempt."""
        if self.backoff_multiplier is not None:
            return self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        return self.initial_delay + (attempt - 1) * self.delay_increment

    def is_retryable(self, error: BaseException) -> bool:
        """Check whether the configured condition accepts ``error``."""
        if self.retry_condition is None:
            return True
        return self.retry_condition(error)


async def retry(config: RetryConfig, operation: Callable[[], Awaitable[T]]) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    Sleeping between attempts only suspends the calling task.

    Args:
        config: The retry policy
        operation: Zero-argument callable returning an awaitable

    Returns:
        The value of the first successful attempt

    Raises:
        Exception: The original error of the last attempt, unmodified
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= config.max_attempts or not config.is_retryable(e):
                raise
            delay = config.delay_for(attempt)
            if config.on_retry is not None:
                config.on_retry(attempt, config.max_attempts, e, delay)
            await asyncio.sleep(delay)
            attempt += 1


def _in_module(module_name: str, module_prefix: str) -> bool:
    return module_name == module_prefix or module_name.startswith(module_prefix + ".")


def _raised_within(
    error: BaseException, module_prefix: str, skip: tuple[str, ...] = ()
) -> bool:
    """Check whether a traceback frame of ``error`` belongs to a module.

    Frames of modules listed in ``skip`` are ignored.
    """
    tb: TracebackType | None = error.__traceback__
    while tb is not None:
        module_name = tb.tb_frame.f_globals.get("__name__", "")
        if _in_module(module_name, module_prefix) and not any(
            _in_module(module_name, skipped) for skipped in skip
        ):
            return True
        tb = tb.tb_next
    return False


def _defined_in(error: BaseException, module_prefix: str) -> bool:
    return _in_module(type(error).__module__, module_prefix)


def _is_null_dereference(error: BaseException) -> bool:
    """Check for the Python shape of a null-pointer failure."""
    return isinstance(error, (AttributeError, TypeError)) and "None" in str(error)


def _is_recipe_transient(error: BaseException) -> bool:
    if isinstance(error, EmptyOutputError):
        return True
    if _is_null_dereference(error) and _raised_within(error, "ollama"):
        return True
    return _defined_in(error, "ollama")


def _is_tool_transient(error: BaseException) -> bool:
    if not isinstance(error, ToolExecutionError):
        return False
    cause = error.__cause__
    return (
        cause is not None
        and _is_null_dereference(cause)
        and _raised_within(
            cause, "recipe_server.tools", skip=("recipe_server.tools.registry",)
        )
    )


def _is_streaming_transient(error: BaseException) -> bool:
    return (
        isinstance(error, EmptyStreamError)
        or "empty" in str(error).lower()
        or "stream" in type(error).__name__.lower()
        or _defined_in(error, "ollama")
    )


def _log_recipe_retry(
    attempt: int, max_attempts: int, error: BaseException, delay: float
) -> None:
    if isinstance(error, EmptyOutputError):
        message = "Model returned empty output"
    elif _is_null_dereference(error):
        message = "Ollama client internal error"
    else:
        message = f"Transient error: {error}"
    logger.warning(
        f"{message} (attempt {attempt}/{max_attempts}). Retrying in {delay:.1f}s..."
    )


def _log_tool_retry(
    attempt: int, max_attempts: int, error: BaseException, delay: float
) -> None:
    logger.warning(
        f"Tool layer error: {error} (attempt {attempt}/{max_attempts}). "
        f"Retrying in {delay:.1f}s..."
    )


def _log_streaming_retry(
    attempt: int, max_attempts: int, error: BaseException, delay: float
) -> None:
    logger.warning(
        f"Streaming error: {error} (attempt {attempt}/{max_attempts}). "
        f"Retrying in {delay:.1f}s..."
    )


RECIPE_TRANSIENT_ERRORS = RetryConfig(
    max_attempts=3,
    initial_delay=1.0,
    delay_increment=1.0,
    retry_condition=_is_recipe_transient,
    on_retry=_log_recipe_retry,
)

TOOL_TRANSIENT_ERRORS = RetryConfig(
    max_attempts=3,
    initial_delay=0.5,
    delay_increment=0.5,
    retry_condition=_is_tool_transient,
    on_retry=_log_tool_retry,
)

STREAMING_ERRORS = RetryConfig(
    max_attempts=2,
    initial_delay=1.0,
    delay_increment=0.5,
    retry_condition=_is_streaming_transient,
    on_retry=_log_streaming_retry,
)
