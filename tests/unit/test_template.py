"""Unit tests for the recipe template renderer."""

from recipe_server.recipes.template import (
    ZERO_WIDTH_SPACE,
    find_placeholder,
    neutralize,
    render,
    render_args,
)


def test_render_known_key():
    """Test that a present key is substituted."""
    assert render("{{a}}", {"a": "x"}) == "x"


def test_render_missing_key_uses_fallback():
    """Test that a missing key falls back to the inline default."""
    assert render("{{a|fallback}}", {}) == "fallback"


def test_render_missing_key_without_fallback_is_empty():
    """Test that unknown keys without fallback collapse to an empty string."""
    assert render("{{a}}", {}) == ""
    assert render("before {{a}} after", {}) == "before  after"


def test_render_trims_key_and_fallback():
    """Test that whitespace around key and fallback is ignored."""
    assert render("{{ a }}", {"a": "x"}) == "x"
    assert render("{{ missing | five bullet points }}", {}) == "five bullet points"


def test_render_present_key_wins_over_fallback():
    """Test that the variable value takes precedence over the fallback."""
    assert render("{{length|5}}", {"length": "3"}) == "3"


def test_render_empty_value_is_kept():
    """Test that an empty string value is used rather than the fallback."""
    assert render("{{a|fallback}}", {"a": ""}) == ""


def test_render_multiple_placeholders():
    """Test several placeholders in one template."""
    template = "Branch {{branch}} has {{count|no}} changes"
    assert render(template, {"branch": "main"}) == "Branch main has no changes"


def test_render_is_single_pass():
    """Test that substituted text containing braces is not expanded again."""
    variables = {"a": "{{b}}", "b": "boom"}

    once = render("{{a}}", variables)

    assert once == "{{b}}"
    assert render(once, variables) == "boom"


def test_render_fallback_with_braces_is_not_expanded():
    """Test that a fallback value is inserted literally."""
    assert render("{{a|{x}", {"x": "nope"}) == "{{a|{x}"
    assert render("{{a|[x]}}", {"x": "nope"}) == "[x]"


def test_render_leaves_text_without_placeholders():
    """Test that ordinary text and single braces pass through unchanged."""
    text = "def f(): return {'k': 1}"
    assert render(text, {"k": "v"}) == text


def test_find_placeholder():
    """Test detection of leftover double-brace text."""
    assert find_placeholder("no braces here") is None
    assert find_placeholder("value: {{name}} and {{other}}") == "name"


def test_neutralize_breaks_braces():
    """Test that every double brace gets a zero-width space inserted."""
    result = neutralize("{{x}} and {{y}}")

    assert "{{" not in result
    assert "}}" not in result
    assert result == (
        f"{{{ZERO_WIDTH_SPACE}{{x}}{ZERO_WIDTH_SPACE}}} and "
        f"{{{ZERO_WIDTH_SPACE}{{y}}{ZERO_WIDTH_SPACE}}}"
    )
    assert find_placeholder(result) is None


def test_render_args_string():
    """Test that string arguments are rendered."""
    assert render_args("{{arg1}}", {"arg1": "README.md"}) == "README.md"


def test_render_args_nested_structures():
    """Test that lists and mappings are rendered recursively."""
    args = {
        "message": "{{output}}",
        "paths": ["{{arg1}}", "static"],
        "options": {"signoff": "{{signoff|false}}"},
    }

    result = render_args(args, {"output": "feat: add x", "arg1": "a.py"})

    assert result == {
        "message": "feat: add x",
        "paths": ["a.py", "static"],
        "options": {"signoff": "false"},
    }


def test_render_args_non_string_scalars_unchanged():
    """Test that numbers, booleans and None pass through untouched."""
    assert render_args(None, {}) is None
    assert render_args(3, {}) == 3
    assert render_args(True, {}) is True
    assert render_args([1, None, "{{a}}"], {"a": "x"}) == [1, None, "x"]
