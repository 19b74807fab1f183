"""Strategy protocol: how a route's arguments and responses are built.

A strategy is a stateless policy object shared by many routes. The
dispatcher asks it five questions:

1. ``resolve_arguments``: what to pass to the handler
2. ``build_response``: how to turn the return value into a response
3. ``build_not_found_response``: what a 404 looks like
4. ``build_method_not_allowed_response``: what a 405 looks like
5. ``build_exception_response``: what an ``HTTPError`` raised by the handler looks like

The three ``build_*_response`` error hooks either return a response or
raise the error they were given, which then reaches the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from waypost._internal.types import PathParams
from waypost.errors import HTTPError, MethodNotAllowed, NotFound
from waypost.http.request import Request
from waypost.routing.route import HandlerRef


@dataclass(frozen=True, slots=True)
class Arguments:
    """Arguments for one handler call.

    With ``by_name`` set, the dispatcher passes ``kwargs`` to the resolver,
    which binds them against the handler's declared parameters and drops
    the rest. Otherwise the handler is called as ``handler(*args, **kwargs)``.
    """

    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    by_name: bool = False


@runtime_checkable
class Strategy(Protocol):
    """The five capabilities every built-in strategy implements."""

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments: ...

    def build_response(self, value: Any) -> Any: ...

    def build_not_found_response(self, error: NotFound) -> Any: ...

    def build_method_not_allowed_response(self, error: MethodNotAllowed) -> Any: ...

    def build_exception_response(self, error: HTTPError) -> Any: ...


def is_custom(strategy: object) -> bool:
    """True for strategies that take over the whole call through ``dispatch``."""
    return callable(getattr(strategy, "dispatch", None))
