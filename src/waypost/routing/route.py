"""Route, handler references, and match results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

from waypost._internal.types import Handler
from waypost.errors import HTTPError

if TYPE_CHECKING:
    from waypost.strategy.protocol import Strategy

METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class ClassMethodRef(NamedTuple):
    """A ``"ClassName::method_name"`` handler, resolved lazily at dispatch time.

    A tuple, so it compares equal to ``("ClassName", "method_name")``.
    ``method_name`` is empty when the string named no method.
    """

    class_name: str
    method_name: str

    @classmethod
    def parse(cls, value: str) -> ClassMethodRef:
        class_name, _, method_name = value.partition("::")
        return cls(class_name.strip(), method_name.strip())

    def __str__(self) -> str:
        return f"{self.class_name}::{self.method_name}"


# A handler is either directly callable or named by class and method
HandlerRef = Handler | ClassMethodRef


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created by ``RouteCollection``; ``strategy`` is ``None`` when the route
    uses whatever default is in effect at dispatch time.
    """

    method: str
    pattern: str
    handler: HandlerRef
    strategy: Strategy | None = None

    @property
    def is_class_based(self) -> bool:
        return isinstance(self.handler, ClassMethodRef)


# -- Match results --


@dataclass(frozen=True, slots=True)
class Found:
    """A route matched both path and method."""

    route: Route
    path_params: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class MethodMismatch:
    """The path has routes, none of them for the requested method."""

    allowed: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NotMatched:
    """No route pattern matches the path."""


MatchResult = Found | MethodMismatch | NotMatched


@dataclass(frozen=True, slots=True)
class Completed:
    """Dispatch produced a value for the caller."""

    value: Any


@dataclass(frozen=True, slots=True)
class DomainError:
    """A handler raised an ``HTTPError`` that the strategy may render."""

    error: HTTPError


DispatchOutcome = Completed | DomainError
