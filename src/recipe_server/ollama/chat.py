"""Single-prompt streaming chat on top of OllamaClient.

Recipes talk to the model through ``OllamaChatService.chat(prompt, on_token)``:
the prompt goes out as one user message, every content delta is handed to
``on_token`` as it arrives, and the complete text is returned at the end.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from recipe_server.ollama.client import OllamaClient
from recipe_server.recipes.errors import EmptyStreamError
from recipe_server.recipes.retry import STREAMING_ERRORS, RetryConfig, retry

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]


@dataclass
class OllamaNotice:
    """Tracks whether the "Ollama must be running" hint was already shown.

    One instance is shared by every chat service created for the process so
    the hint is logged once, not on every failed request.
    """

    shown: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def show_once(self, host: str) -> bool:
        """Log the hint unless it was logged before. Returns True if logged."""
        with self._lock:
            if self.shown:
                return False
            self.shown = True
        logger.warning(
            f"Could not reach Ollama at {host}. Recipes need a running Ollama "
            "server with the configured model pulled (see https://ollama.com)."
        )
        return True


class OllamaChatService:
    """Chat collaborator backed by a streaming Ollama chat call."""

    def __init__(
        self,
        client: OllamaClient,
        model: str,
        notice: OllamaNotice,
        options: dict[str, Any] | None = None,
        retry_config: RetryConfig | None = STREAMING_ERRORS,
    ):
        self.client = client
        self.model = model
        self.notice = notice
        self.options = options
        self.retry_config = retry_config

    async def chat(self, prompt: str, on_token: TokenCallback) -> str:
        """Send ``prompt`` and stream the answer.

        Args:
            prompt: The complete prompt text
            on_token: Called with each content delta

        Returns:
            The complete response text

        Raises:
            EmptyStreamError: If the model streamed no content
        """

        async def attempt() -> str:
            return await self._stream_once(prompt, on_token)

        if self.retry_config is None:
            return await attempt()
        return await retry(self.retry_config, attempt)

    async def _stream_once(self, prompt: str, on_token: TokenCallback) -> str:
        parts: list[str] = []
        try:
            async for chunk in self.client.chat_stream(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                options=self.options,
            ):
                content = (chunk.get("message") or {}).get("content") or ""
                if content:
                    parts.append(content)
                    on_token(content)
                if chunk.get("done"):
                    break
        except (httpx.ConnectError, ConnectionError):
            self.notice.show_once(self.client.host)
            raise

        result = "".join(parts)
        if not result.strip():
            raise EmptyStreamError()

        logger.debug(f"Streamed {len(result)} characters from {self.model}")
        return result
