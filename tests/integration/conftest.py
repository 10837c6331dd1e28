"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that ensure
proper test isolation and mocking for API endpoint tests.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_ollama_client():
    """Mock OllamaClient for all integration tests.

    This fixture patches the OllamaClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    """
    with patch("recipe_server.app.OllamaClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True

        mock_client_class.return_value = mock_instance

        yield mock_instance


@pytest.fixture
def stream_reply(mock_ollama_client):
    """Make the mocked client stream the given text chunks as one reply."""

    def configure(*parts: str) -> list[dict]:
        calls: list[dict] = []

        async def mock_chat_stream(*args, **kwargs):
            calls.append(kwargs)
            for index, part in enumerate(parts):
                yield {
                    "model": kwargs.get("model"),
                    "message": {"role": "assistant", "content": part},
                    "done": index == len(parts) - 1,
                }

        mock_ollama_client.chat_stream = mock_chat_stream
        return calls

    return configure


@pytest.fixture
def recipes_dir(test_settings):
    """The recipes directory of the test app, created on demand."""
    path = test_settings.resolved_recipes_dir
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def sse_events():
    """Return a parser turning an SSE response body into {event, data} dicts."""

    def parse(text: str) -> list[dict]:
        events = []
        # Normalize line endings and split by double newline
        normalized_text = text.replace("\r\n", "\n")
        for block in normalized_text.strip().split("\n\n"):
            if not block.strip():
                continue
            event_type = None
            event_data = None
            for part in block.split("\n"):
                if part.startswith("event:"):
                    event_type = part.split(":", 1)[1].strip()
                elif part.startswith("data:"):
                    event_data = part.split(":", 1)[1].strip()
            if event_type and event_data:
                events.append({"event": event_type, "data": json.loads(event_data)})
        return events

    return parse
