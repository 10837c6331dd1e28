"""Unit tests for the retry policy engine and its presets."""

from unittest.mock import AsyncMock, patch

import pytest

from recipe_server.recipes.errors import EmptyOutputError, EmptyStreamError
from recipe_server.recipes.retry import (
    RECIPE_TRANSIENT_ERRORS,
    STREAMING_ERRORS,
    TOOL_TRANSIENT_ERRORS,
    RetryConfig,
    retry,
)
from recipe_server.tools.fs import FileTools
from recipe_server.tools.registry import ToolExecutionError, ToolRegistry, tool


class FlakyOperation:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures: int, error: Exception, value: str = "ok"):
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


@pytest.fixture
def no_sleep():
    """Replace asyncio.sleep inside the retry module."""
    with patch("recipe_server.recipes.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


@pytest.mark.asyncio
async def test_retry_succeeds_after_two_failures(no_sleep):
    """Test that two failures then success yields the value and two callbacks."""
    callbacks = []
    config = RetryConfig(
        max_attempts=3,
        initial_delay=0.01,
        on_retry=lambda *args: callbacks.append(args),
    )
    operation = FlakyOperation(failures=2, error=RuntimeError("flaky"))

    result = await retry(config, operation)

    assert result == "ok"
    assert operation.calls == 3
    assert len(callbacks) == 2
    assert [c[0] for c in callbacks] == [1, 2]
    assert all(c[1] == 3 for c in callbacks)
    assert all(c[3] > 0 for c in callbacks)
    assert no_sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_non_retryable_error_attempted_once(no_sleep):
    """Test that an error rejected by the condition is raised unmodified."""
    error = KeyError("permanent")
    config = RetryConfig(
        max_attempts=5,
        initial_delay=0.01,
        retry_condition=lambda e: isinstance(e, RuntimeError),
    )
    operation = FlakyOperation(failures=10, error=error)

    with pytest.raises(KeyError) as exc_info:
        await retry(config, operation)

    assert exc_info.value is error
    assert operation.calls == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_exhaustion_raises_last_error(no_sleep):
    """Test that the last error propagates after max_attempts."""
    error = RuntimeError("still broken")
    config = RetryConfig(max_attempts=3, initial_delay=0.01)
    operation = FlakyOperation(failures=10, error=error)

    with pytest.raises(RuntimeError, match="still broken") as exc_info:
        await retry(config, operation)

    assert exc_info.value is error
    assert operation.calls == 3
    assert no_sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_single_attempt_never_sleeps(no_sleep):
    """Test that max_attempts=1 runs the operation exactly once."""
    operation = FlakyOperation(failures=1, error=RuntimeError("once"))

    with pytest.raises(RuntimeError):
        await retry(RetryConfig(max_attempts=1), operation)

    assert operation.calls == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_really_sleeps_briefly():
    """Test the engine end to end with a tiny real delay."""
    operation = FlakyOperation(failures=1, error=RuntimeError("blip"), value="done")

    result = await retry(RetryConfig(max_attempts=2, initial_delay=0.001), operation)

    assert result == "done"


def test_delay_linear_increment():
    """Test the linear delay schedule."""
    config = RetryConfig(initial_delay=1.0, delay_increment=0.5)

    assert config.delay_for(1) == 1.0
    assert config.delay_for(2) == 1.5
    assert config.delay_for(3) == 2.0


def test_delay_exponential_backoff():
    """Test that a multiplier switches to exponential backoff."""
    config = RetryConfig(initial_delay=0.5, backoff_multiplier=2.0)

    assert config.delay_for(1) == 0.5
    assert config.delay_for(2) == 1.0
    assert config.delay_for(3) == 2.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"initial_delay": 0},
        {"delay_increment": -1.0},
        {"backoff_multiplier": 0.5},
    ],
)
def test_config_validation(kwargs):
    """Test that invalid policies are rejected."""
    with pytest.raises(ValueError):
        RetryConfig(**kwargs)


def test_recipe_preset_classification():
    """Test which errors the recipe-level preset retries."""
    assert RECIPE_TRANSIENT_ERRORS.is_retryable(EmptyOutputError())
    assert not RECIPE_TRANSIENT_ERRORS.is_retryable(ValueError("bad input"))
    assert not RECIPE_TRANSIENT_ERRORS.is_retryable(FileNotFoundError("missing"))


def test_recipe_preset_retries_ollama_errors():
    """Test that errors defined by the ollama library are transient."""
    import ollama

    assert RECIPE_TRANSIENT_ERRORS.is_retryable(ollama.ResponseError("overloaded"))


def test_tool_preset_requires_null_dereference_in_tool_layer():
    """Test that only internal tool-layer failures are retried."""
    try:
        try:
            raise AttributeError("'NoneType' object has no attribute 'read'")
        except AttributeError as cause:
            raise ToolExecutionError("read_text", cause) from cause
    except ToolExecutionError as e:
        outside_tools = e

    assert not TOOL_TRANSIENT_ERRORS.is_retryable(outside_tools)
    assert not TOOL_TRANSIENT_ERRORS.is_retryable(RuntimeError("plain"))


class OutsideTools:
    """Tool provider living outside the built-in tools package."""

    @tool(name="upper")
    def upper(self) -> str:
        value = None
        return value.upper()


async def _tool_error(registry: ToolRegistry, name: str, args=None) -> ToolExecutionError:
    with pytest.raises(ToolExecutionError) as exc_info:
        await registry.invoke(name, args)
    return exc_info.value


@pytest.mark.asyncio
async def test_tool_preset_retries_builtin_tool_null_failure(tmp_path):
    """Test that a None failure inside a built-in tool is transient."""
    registry = ToolRegistry.from_providers([FileTools(allowed_root=tmp_path, cwd=tmp_path)])

    error = await _tool_error(registry, "read_text", {"path": None})

    assert isinstance(error.__cause__, TypeError)
    assert TOOL_TRANSIENT_ERRORS.is_retryable(error)


@pytest.mark.asyncio
async def test_tool_preset_ignores_tools_defined_elsewhere():
    """Test that dispatching through the registry alone does not make an error transient."""
    registry = ToolRegistry.from_providers([OutsideTools()])

    error = await _tool_error(registry, "upper")

    assert isinstance(error.__cause__, AttributeError)
    assert not TOOL_TRANSIENT_ERRORS.is_retryable(error)


@pytest.mark.asyncio
async def test_tool_preset_ignores_builtin_non_null_failure(tmp_path):
    """Test that ordinary tool errors such as a missing file are not retried."""
    registry = ToolRegistry.from_providers([FileTools(allowed_root=tmp_path, cwd=tmp_path)])

    error = await _tool_error(registry, "read_text", {"path": "missing.txt"})

    assert not TOOL_TRANSIENT_ERRORS.is_retryable(error)


def test_streaming_preset_classification():
    """Test which errors the streaming preset retries."""
    assert STREAMING_ERRORS.is_retryable(EmptyStreamError())
    assert STREAMING_ERRORS.is_retryable(RuntimeError("Received empty response"))
    assert not STREAMING_ERRORS.is_retryable(ValueError("unrelated"))


def test_presets_use_positive_delays():
    """Test that every preset waits a positive time between attempts."""
    for config in (RECIPE_TRANSIENT_ERRORS, TOOL_TRANSIENT_ERRORS, STREAMING_ERRORS):
        assert config.max_attempts > 1
        assert all(config.delay_for(a) > 0 for a in range(1, config.max_attempts))
