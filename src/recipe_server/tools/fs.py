"""Local filesystem tools."""

import logging
from pathlib import Path

from recipe_server.tools.registry import tool

logger = logging.getLogger(__name__)


class FileTools:
    """Read and write text files below an allowed root directory.

    Relative paths are resolved against ``cwd`` and "~" expands to the home
    directory. Any path that resolves outside ``allowed_root`` is rejected.
    """

    def __init__(
        self,
        allowed_root: Path | None = None,
        cwd: Path | None = None,
        max_kb: int = 100,
    ):
        self.allowed_root = (allowed_root or Path.home()).expanduser().resolve()
        self.cwd = (cwd or Path.cwd()).resolve()
        self.max_kb = max(1, max_kb)

    def _resolve(self, raw: str) -> Path:
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self.cwd / path
        path = path.resolve()
        if not path.is_relative_to(self.allowed_root):
            raise ValueError(f"Path escapes allowed root: {path}")
        return path

    @tool(
        name="read_text",
        description="""
        Read a small UTF-8 text file and return its content.
        Params: path (string). Rejects binary files and files larger than the
        configured limit.
        """,
    )
    def read_text(self, path: str) -> str:
        file_path = self._resolve(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Not a regular file: {path}")

        size = file_path.stat().st_size
        if size > self.max_kb * 1024:
            raise ValueError(f"File too large: {path} is larger than {self.max_kb} KB")

        data = file_path.read_bytes()
        if _looks_binary(data):
            raise ValueError(f"File appears to be binary: {path}")

        logger.debug(f"Read {size} bytes from {file_path}")
        return data.decode("utf-8", errors="replace")

    @tool(name="write_file", description="Write a text file to path, creating parent directories.")
    def write_file(self, path: str, content: str) -> str:
        file_path = self._resolve(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {len(content)} characters to {file_path}")
        return f"wrote:\n{file_path}"


def _looks_binary(data: bytes, sample_size: int = 8000) -> bool:
    sample = data[:sample_size]
    if b"\x00" in sample:
        return True
    if not sample:
        return False
    control = sum(1 for b in sample if b < 9 or 13 < b < 32)
    return control / len(sample) > 0.3
