"""Async Ollama client wrapper.

One ``OllamaClient`` is created per process (or per CLI run) and shared by
every recipe run. It exposes only what recipes need: a connectivity check
and a streaming chat call that yields plain dict chunks.
"""

import logging
from typing import Any, AsyncIterator

import ollama

logger = logging.getLogger(__name__)


def _chunk_to_dict(chunk: Any) -> dict[str, Any]:
    if isinstance(chunk, dict):
        return chunk
    if hasattr(chunk, "model_dump"):
        return chunk.model_dump()
    return vars(chunk)


class OllamaClient:
    """Streaming chat access to an Ollama server.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        timeout: Request timeout in seconds, None to wait forever
    """

    def __init__(self, host: str, timeout: float | None = None) -> None:
        self.host = host
        self.timeout = timeout
        self._client = ollama.AsyncClient(host=host, timeout=timeout)
        logger.info(f"OllamaClient initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Return True if the Ollama server answers, False otherwise."""
        try:
            await self._client.list()
        except Exception as e:
            logger.warning(f"Ollama at {self.host} is not reachable: {e}")
            return False
        logger.debug(f"Ollama at {self.host} is reachable")
        return True

    async def chat_stream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream a chat completion.

        Args:
            model: Model name, e.g. "llama3.2:latest"
            messages: Ollama chat messages, ``[{"role": ..., "content": ...}]``
            options: Model parameters passed through unchanged

        Yields:
            dict: One chunk per delta, with ``message.content`` and ``done``
        """
        logger.debug(f"Chat stream to {model} with {len(messages)} message(s)")
        count = 0
        try:
            stream = await self._client.chat(
                model=model,
                messages=messages,
                stream=True,
                options=options,
            )
            async for chunk in stream:
                count += 1
                yield _chunk_to_dict(chunk)
        except Exception as e:
            logger.error(f"Chat stream to {model} failed after {count} chunk(s): {e}")
            raise
        logger.debug(f"Chat stream to {model} finished with {count} chunk(s)")

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        http_client = getattr(self._client, "_client", None)
        if http_client is not None:
            await http_client.aclose()
        logger.debug("OllamaClient closed")
