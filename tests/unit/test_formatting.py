"""Unit tests for recipe output formatting."""

import pytest

from recipe_server.recipes.formatting import (
    ANSI_HEADER,
    ANSI_RESET,
    format_output,
    strip_fences,
)


def test_plain_strips_md_fence():
    """Test that plain mode removes a ```md fence."""
    assert format_output("```md\nHello\n```", "plain") == "Hello"


@pytest.mark.parametrize(
    "text",
    [
        "```markdown\nHello\n```",
        "```\nHello\n```",
        "  Hello  ",
        "Hello\n```",
    ],
)
def test_strip_fences_variants(text):
    """Test every supported fence shape."""
    assert strip_fences(text) == "Hello"


def test_plain_is_default_mode():
    """Test that a missing mode behaves like plain."""
    assert format_output("```\nbody\n```") == "body"
    assert format_output("```\nbody\n```", None) == "body"


def test_unknown_mode_behaves_like_plain():
    """Test that unrecognized modes fall back to plain."""
    assert format_output("```\nbody\n```", "html") == "body"


def test_markdown_rewraps():
    """Test that markdown mode normalizes the fence."""
    assert format_output("The answer", "markdown") == "```markdown\nThe answer\n```"
    assert (
        format_output("```md\n# Title\n\ntext\n```", "md")
        == "```markdown\n# Title\n\ntext\n```"
    )


def test_mode_is_case_insensitive():
    """Test that the mode name ignores case."""
    assert format_output("x", "MarkDown") == "```markdown\nx\n```"


def test_ansi_wraps_first_line_only():
    """Test that ansi mode highlights the first line and keeps the rest."""
    result = format_output("Title\nBody", "ansi")

    first, second = result.split("\n")
    assert first == f"{ANSI_HEADER}Title{ANSI_RESET}"
    assert second == "Body"


def test_ansi_empty_input_unchanged():
    """Test that empty input stays empty in ansi mode."""
    assert format_output("", "ansi") == ""
