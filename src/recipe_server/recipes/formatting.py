"""Output formatting for recipe results."""

ANSI_HEADER = "\x1b[1;36m"
ANSI_RESET = "\x1b[0m"

_FENCE_PREFIXES = ("```markdown", "```md", "```")


def strip_fences(text: str) -> str:
    """Remove a leading markdown fence marker and a trailing fence, then trim."""
    clean = text.strip()
    for prefix in _FENCE_PREFIXES:
        clean = clean.removeprefix(prefix)
    return clean.removesuffix("```").strip()


def format_output(text: str, mode: str | None = "plain") -> str:
    """Format raw model output for presentation.

    Args:
        text: The model's reply
        mode: "markdown"/"md", "ansi" or anything else for plain text
              (case-insensitive)

    Returns:
        The formatted text
    """
    text = text.strip()
    mode = (mode or "plain").lower()

    if mode in ("markdown", "md"):
        return f"```markdown\n{strip_fences(text)}\n```"

    if mode == "ansi":
        if not text:
            return text
        header, *rest = text.split("\n")
        return "\n".join([f"{ANSI_HEADER}{header}{ANSI_RESET}", *rest])

    return strip_fences(text)
