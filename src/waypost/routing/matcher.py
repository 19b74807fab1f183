"""Compiled pattern matcher.

Routes are compiled once, when a Dispatcher is created, into an
immutable lookup structure: a dict for static paths and an ordered list
of regexes for patterns with placeholders.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from waypost.errors import ConfigurationError
from waypost.routing.params import PATTERN_MATCHERS, parse_pattern, rule_fragment
from waypost.routing.route import Found, MatchResult, MethodMismatch, NotMatched, Route


def normalize_path(path: str, *, strip_trailing_slash: bool = True) -> str:
    """Normalize a request path or a route pattern for matching."""
    if not path:
        return "/"
    if strip_trailing_slash and len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def compile_pattern(
    pattern: str, matchers: Mapping[str, str]
) -> tuple[re.Pattern[str] | None, tuple[str, ...]]:
    """Compile a route pattern into a regex and its ordered parameter names.

    Returns ``(None, ())`` for static patterns, which match by string equality.
    """
    parts = parse_pattern(pattern)
    if not any(part.is_param for part in parts):
        return None, ()

    chunks: list[str] = []
    names: list[str] = []
    for part in parts:
        if part.is_param:
            assert part.name is not None
            chunks.append(f"(?P<{part.name}>{rule_fragment(part.rule, matchers)})")
            names.append(part.name)
        else:
            chunks.append(re.escape(part.value))
    try:
        regex = re.compile("".join(chunks))
    except re.error as exc:
        msg = f"Route pattern {pattern!r} compiles to an invalid regex: {exc}"
        raise ConfigurationError(msg) from exc
    return regex, tuple(names)


@dataclass(frozen=True, slots=True)
class _CompiledPattern:
    """All routes sharing one pattern, keyed by method in registration order."""

    pattern: str
    regex: re.Pattern[str] | None
    param_names: tuple[str, ...]
    routes_by_method: Mapping[str, Route]


class PatternMatcher:
    """Matches ``(method, path)`` against a compiled route table.

    Usage::

        matcher = PatternMatcher(routes, {"number": "[0-9]+"})
        result = matcher.match("GET", "/users/42")

    ``match`` never raises; it returns ``Found``, ``MethodMismatch`` or
    ``NotMatched``. Static patterns are tried before patterns with
    placeholders; within each group, registration order wins.
    """

    __slots__ = ("_head_fallback", "_static", "_strip_trailing_slash", "_variable")

    def __init__(
        self,
        routes: Iterable[Route],
        matchers: Mapping[str, str] | None = None,
        *,
        strip_trailing_slash: bool = True,
        head_fallback: bool = True,
    ) -> None:
        rules = {**PATTERN_MATCHERS, **(matchers or {})}
        self._strip_trailing_slash = strip_trailing_slash
        self._head_fallback = head_fallback

        by_pattern: dict[str, dict[str, Route]] = {}
        for route in routes:
            key = normalize_path(route.pattern, strip_trailing_slash=strip_trailing_slash)
            by_pattern.setdefault(key, {})[route.method] = route

        static: dict[str, _CompiledPattern] = {}
        variable: list[_CompiledPattern] = []
        for key, methods in by_pattern.items():
            regex, names = compile_pattern(key, rules)
            compiled = _CompiledPattern(
                pattern=key,
                regex=regex,
                param_names=names,
                routes_by_method=MappingProxyType(methods),
            )
            if regex is None:
                static[key] = compiled
            else:
                variable.append(compiled)

        self._static: Mapping[str, _CompiledPattern] = MappingProxyType(static)
        self._variable = tuple(variable)

    @property
    def routes(self) -> list[Route]:
        """All compiled routes, static patterns first."""
        result: list[Route] = []
        for compiled in (*self._static.values(), *self._variable):
            result.extend(compiled.routes_by_method.values())
        return result

    def match(self, method: str, path: str) -> MatchResult:
        """Match a request method and path against the compiled routes."""
        method = method.upper()
        path = normalize_path(path, strip_trailing_slash=self._strip_trailing_slash)

        candidates: list[tuple[_CompiledPattern, dict[str, str]]] = []
        static = self._static.get(path)
        if static is not None:
            candidates.append((static, {}))
        for compiled in self._variable:
            assert compiled.regex is not None
            m = compiled.regex.fullmatch(path)
            if m is not None:
                params = {name: m.group(name) for name in compiled.param_names}
                candidates.append((compiled, params))

        for compiled, params in candidates:
            route = compiled.routes_by_method.get(method)
            if route is not None:
                return Found(route=route, path_params=params)

        if method == "HEAD" and self._head_fallback:
            for compiled, params in candidates:
                route = compiled.routes_by_method.get("GET")
                if route is not None:
                    return Found(route=route, path_params=params)

        allowed: list[str] = []
        for compiled, _ in candidates:
            for allowed_method in compiled.routes_by_method:
                if allowed_method not in allowed:
                    allowed.append(allowed_method)
        if allowed:
            return MethodMismatch(allowed=tuple(allowed))
        return NotMatched()
