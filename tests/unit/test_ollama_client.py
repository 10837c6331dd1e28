"""Unit tests for the OllamaClient wrapper."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from recipe_server.ollama import OllamaClient


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("recipe_server.ollama.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def ollama_client(mock_ollama_async_client):
    """Create an OllamaClient with mocked AsyncClient."""
    return OllamaClient(host="http://localhost:11434")


def test_client_initialization():
    """Test that the host is passed through to ollama.AsyncClient."""
    with patch("recipe_server.ollama.client.ollama.AsyncClient") as mock_class:
        client = OllamaClient(host="http://test:11434")

    assert client.host == "http://test:11434"
    mock_class.assert_called_once_with(host="http://test:11434", timeout=None)


@pytest.mark.asyncio
async def test_check_connection_success(ollama_client, mock_ollama_async_client):
    """Test successful connection check."""
    mock_ollama_async_client.list.return_value = {"models": []}

    assert await ollama_client.check_connection() is True
    mock_ollama_async_client.list.assert_called_once()


@pytest.mark.asyncio
async def test_check_connection_failure(ollama_client, mock_ollama_async_client):
    """Test connection check when Ollama is unreachable."""
    mock_ollama_async_client.list.side_effect = Exception("Connection refused")

    assert await ollama_client.check_connection() is False


async def _aiter(items):
    for item in items:
        yield item


@pytest.mark.asyncio
async def test_chat_stream_normalizes_chunks(ollama_client, mock_ollama_async_client):
    """Test that model objects and dicts are both yielded as dicts."""
    model_chunk = MagicMock()
    model_chunk.model_dump.return_value = {
        "message": {"role": "assistant", "content": "Hi"},
        "done": False,
    }
    dict_chunk = {"message": {"role": "assistant", "content": "!"}, "done": True}
    mock_ollama_async_client.chat.return_value = _aiter([model_chunk, dict_chunk])

    chunks = [
        c
        async for c in ollama_client.chat_stream(
            model="llama3.2:latest",
            messages=[{"role": "user", "content": "Hello"}],
        )
    ]

    assert [c["message"]["content"] for c in chunks] == ["Hi", "!"]
    mock_ollama_async_client.chat.assert_awaited_once_with(
        model="llama3.2:latest",
        messages=[{"role": "user", "content": "Hello"}],
        stream=True,
        options=None,
    )


@pytest.mark.asyncio
async def test_chat_stream_propagates_errors(ollama_client, mock_ollama_async_client):
    """Test that API failures are re-raised."""
    mock_ollama_async_client.chat.side_effect = RuntimeError("model not found")

    with pytest.raises(RuntimeError, match="model not found"):
        async for _ in ollama_client.chat_stream(model="missing", messages=[]):
            pass


def test_client_passes_timeout():
    """Test that the request timeout reaches ollama.AsyncClient."""
    with patch("recipe_server.ollama.client.ollama.AsyncClient") as mock_class:
        client = OllamaClient(host="http://test:11434", timeout=30.0)

    assert client.timeout == 30.0
    mock_class.assert_called_once_with(host="http://test:11434", timeout=30.0)


@pytest.mark.asyncio
async def test_close_releases_http_client(ollama_client, mock_ollama_async_client):
    """Test that close() closes the underlying httpx client."""
    mock_ollama_async_client._client = MagicMock()
    mock_ollama_async_client._client.aclose = AsyncMock()

    await ollama_client.close()

    mock_ollama_async_client._client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_closes_ollama_http_pool():
    """Test close() against a real ollama.AsyncClient so an upstream rename fails loudly."""
    client = OllamaClient(host="http://localhost:11434")
    http_client = client._client._client
    assert isinstance(http_client, httpx.AsyncClient)
    assert not http_client.is_closed

    await client.close()

    assert http_client.is_closed
