"""Minimal ``{{name|fallback}}`` templating used by recipes.

Substitution is a single left-to-right pass: text produced by a substitution
is never scanned again, so a variable whose value contains ``{{x}}`` is left
as literal text.
"""

import re
from collections.abc import Mapping
from typing import Any, TypeAlias

ArgValue: TypeAlias = (
    str | int | float | bool | list["ArgValue"] | dict[str, "ArgValue"] | None
)

_PLACEHOLDER = re.compile(r"\{\{([^}|]+)(?:\|([^}]+))?}}")
_LEFTOVER = re.compile(r"\{\{([^}]+)}}")

ZERO_WIDTH_SPACE = "\u200b"


def render(template: str, variables: Mapping[str, str]) -> str:
    """Replace every placeholder in ``template`` with its value.

    Args:
        template: Text containing ``{{key}}`` or ``{{key|fallback}}`` placeholders
        variables: Variable values keyed by name

    Returns:
        The rendered text. Unknown keys without a fallback render as "".
    """

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1).strip()
        if key in variables:
            return variables[key]
        fallback = match.group(2)
        return fallback.strip() if fallback is not None else ""

    return _PLACEHOLDER.sub(substitute, template)


def find_placeholder(text: str) -> str | None:
    """Return the name inside the first ``{{...}}`` left in ``text``, if any."""
    match = _LEFTOVER.search(text)
    return match.group(1) if match else None


def neutralize(text: str) -> str:
    """Break up every ``{{`` and ``}}`` with a zero-width space."""
    return text.replace("{{", "{" + ZERO_WIDTH_SPACE + "{").replace(
        "}}", "}" + ZERO_WIDTH_SPACE + "}"
    )


def render_args(args: ArgValue, variables: Mapping[str, str]) -> Any:
    """Render tool-call arguments recursively against ``variables``.

    Strings are rendered, lists and mappings are rendered element by element,
    and every other value (numbers, booleans, None) is returned unchanged.
    """
    match args:
        case str():
            return render(args, variables)
        case list() | tuple():
            return [render_args(item, variables) for item in args]
        case dict():
            return {key: render_args(value, variables) for key, value in args.items()}
        case _:
            return args
