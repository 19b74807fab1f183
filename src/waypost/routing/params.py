"""Route pattern parsing and placeholder rules.

Patterns use ``{name}`` and ``{name:rule}`` placeholders. A rule is the
name of a registered pattern matcher (``{id:number}``) or a raw regex
fragment (``{id:[0-9]{4}}``).
"""

from collections.abc import Mapping
from dataclasses import dataclass

from waypost.errors import ConfigurationError

# Default fragment for an untyped placeholder: one path segment
DEFAULT_FRAGMENT = r"[^/]+"

# Built-in named rules, usable as {param:name}
PATTERN_MATCHERS: dict[str, str] = {
    "number": r"[0-9]+",
    "word": r"[a-zA-Z]+",
    "alphanum_dash": r"[a-zA-Z0-9_-]+",
    "slug": r"[a-z0-9-]+",
    "uuid": r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
}


@dataclass(frozen=True, slots=True)
class PatternPart:
    """A parsed piece of a route pattern.

    Literal:      ``/users/``   (is_param=False)
    Placeholder:  ``{id}``      (is_param=True, name="id", rule=None)
    Typed:        ``{id:number}`` (is_param=True, name="id", rule="number")
    """

    value: str
    is_param: bool = False
    name: str | None = None
    rule: str | None = None


def parse_pattern(pattern: str) -> list[PatternPart]:
    """Split a route pattern into literal text and placeholders.

    Braces nest, so regex quantifiers survive inside a placeholder::

        "/users/{id}"           -> [PatternPart("/users/"), PatternPart("{id}", True, "id")]
        "/p/{code:[a-z]{3}}"    -> [..., PatternPart("{code:[a-z]{3}}", True, "code", "[a-z]{3}")]

    Raises ``ConfigurationError`` for unbalanced braces, empty or repeated
    placeholder names.
    """
    parts: list[PatternPart] = []
    seen: set[str] = set()
    literal_start = 0
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "}":
            msg = f"Unbalanced '}}' at position {i} in route pattern {pattern!r}"
            raise ConfigurationError(msg)
        if char != "{":
            i += 1
            continue

        if i > literal_start:
            parts.append(PatternPart(pattern[literal_start:i]))

        depth = 0
        end = i
        while end < len(pattern):
            if pattern[end] == "{":
                depth += 1
            elif pattern[end] == "}":
                depth -= 1
                if depth == 0:
                    break
            end += 1
        if depth != 0:
            msg = f"Unclosed placeholder at position {i} in route pattern {pattern!r}"
            raise ConfigurationError(msg)

        inner = pattern[i + 1 : end]
        name, sep, rule = inner.partition(":")
        name = name.strip()
        if not name.isidentifier():
            msg = f"Invalid placeholder name {name!r} in route pattern {pattern!r}"
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Placeholder {name!r} appears twice in route pattern {pattern!r}"
            raise ConfigurationError(msg)
        seen.add(name)

        parts.append(
            PatternPart(
                value=pattern[i : end + 1],
                is_param=True,
                name=name,
                rule=rule.strip() if sep else None,
            )
        )
        i = end + 1
        literal_start = i

    if literal_start < len(pattern):
        parts.append(PatternPart(pattern[literal_start:]))
    return parts


def rule_fragment(rule: str | None, matchers: Mapping[str, str]) -> str:
    """Resolve a placeholder rule to a regex fragment.

    Unknown rule names are used verbatim as regex fragments.
    """
    if rule is None or rule == "":
        return DEFAULT_FRAGMENT
    return matchers.get(rule, rule)
