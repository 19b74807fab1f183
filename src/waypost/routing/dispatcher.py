"""Dispatcher: match, resolve, invoke, and build the response.

States of one ``dispatch`` call::

    Matching -> ArgumentResolution -> Invocation -> ResponseBuilding -> Done
        |                                  |
        +-> NotFound / MethodNotAllowed    +-> HTTPError (domain error)

Matching and invocation report their outcome as values (``MatchResult``,
``DispatchOutcome``). Only ``dispatch`` decides, through the effective
strategy, whether an outcome becomes a response or an exception.
"""

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from waypost._internal.types import PathParams
from waypost.config import RouterConfig
from waypost.container import Container, HandlerResolver
from waypost.errors import HandlerResolutionError, HTTPError, MethodNotAllowed, NotFound
from waypost.http.request import Request
from waypost.routing.matcher import PatternMatcher
from waypost.routing.route import (
    ClassMethodRef,
    Completed,
    DispatchOutcome,
    DomainError,
    Found,
    HandlerRef,
    MethodMismatch,
    NotMatched,
    Route,
)
from waypost.strategy import STRATEGIES, BaseStrategy, Strategy, is_custom

logger = logging.getLogger("waypost.dispatch")

_RAISE_ERRORS = BaseStrategy()


class Dispatcher:
    """An immutable, compiled route table.

    Created by ``RouteCollection.get_dispatcher()``. Holds no per-request
    state, so one instance can serve concurrent requests.
    """

    __slots__ = ("_matcher", "_resolver", "_strategy")

    def __init__(
        self,
        routes: Iterable[Route],
        *,
        matchers: Mapping[str, str] | None = None,
        strategy: Strategy | None = None,
        resolver: HandlerResolver | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        config = config or RouterConfig()
        self._matcher = PatternMatcher(
            routes,
            matchers,
            strip_trailing_slash=config.strip_trailing_slash,
            head_fallback=config.head_fallback,
        )
        self._strategy = strategy
        self._resolver: HandlerResolver = resolver if resolver is not None else Container()

    @property
    def routes(self) -> list[Route]:
        return self._matcher.routes

    @property
    def default_strategy(self) -> Strategy:
        """The collection default, or the passthrough fallback."""
        return self._strategy or STRATEGIES["passthrough"]

    def strategy_for(self, route: Route) -> Strategy:
        """Route strategy, else collection default, else passthrough."""
        return route.strategy or self.default_strategy

    def dispatch(self, method: str, path: str, request: Request | None = None) -> Any:
        """Dispatch one request and return the strategy-built response.

        Raises whatever the effective strategy does not convert: ``NotFound``,
        ``MethodNotAllowed`` and ``HTTPError`` for non-restful strategies,
        and always ``HandlerResolutionError``, ``ResponseBuildError`` and any
        non-HTTP exception raised by the handler.
        """
        result = self._matcher.match(method, path)

        match result:
            case NotMatched():
                logger.debug("404 %s %s", method, path)
                return self._error_strategy().build_not_found_response(NotFound())
            case MethodMismatch(allowed=allowed):
                logger.debug("405 %s %s (allowed: %s)", method, path, ", ".join(allowed))
                return self._error_strategy().build_method_not_allowed_response(
                    MethodNotAllowed(allowed)
                )
            case Found(route=route, path_params=path_params):
                pass

        strategy = self.strategy_for(route)
        logger.debug("%s %s -> %s via %r", method, path, route.pattern, strategy)

        if is_custom(strategy):
            return strategy.dispatch(route.handler, dict(path_params))

        handler = self._resolve_handler(route.handler)
        request = self._request_for(method, path, request).with_path_params(path_params)

        match self._invoke(handler, route.handler, path_params, request, strategy):
            case DomainError(error=error):
                logger.debug("%d %s %s: %s", error.status, method, path, error.detail)
                return strategy.build_exception_response(error)
            case Completed(value=value):
                return strategy.build_response(value)

    # -- Pipeline steps --

    def _error_strategy(self) -> Strategy:
        """Strategy that renders 404 and 405.

        A custom strategy that only implements ``dispatch`` leaves both as
        exceptions, like ``BaseStrategy``.
        """
        strategy = self.default_strategy
        if is_custom(strategy) and not isinstance(strategy, Strategy):
            return _RAISE_ERRORS
        return strategy

    def _resolve_handler(self, ref: HandlerRef) -> Callable[..., Any]:
        """Resolve a ``ClassMethodRef`` through the resolver.

        ``LookupError`` and ``ImportError`` from a third-party resolver mean
        the handler is missing. Anything else raised while building the
        controller is the controller's own error and propagates.
        """
        if not isinstance(ref, ClassMethodRef):
            return ref
        try:
            return self._resolver.resolve(ref)
        except HandlerResolutionError:
            raise
        except (LookupError, ImportError) as exc:
            msg = f"Cannot resolve handler {ref}: method {ref.method_name!r} is unavailable"
            raise HandlerResolutionError(msg) from exc

    def _request_for(self, method: str, path: str, request: Request | None) -> Request:
        """Explicit request, else one registered in the container, else a bare one."""
        if request is not None:
            return request
        if self._resolver.has(Request):
            return self._resolver.get(Request)
        return Request.create(method, path)

    def _invoke(
        self,
        handler: Callable[..., Any],
        ref: HandlerRef,
        path_params: PathParams,
        request: Request,
        strategy: Strategy,
    ) -> DispatchOutcome:
        arguments = strategy.resolve_arguments(ref, path_params, request)
        try:
            if arguments.by_name:
                if arguments.args:
                    handler = functools.partial(handler, *arguments.args)
                value = self._resolver.call(handler, dict(arguments.kwargs))
            else:
                value = handler(*arguments.args, **arguments.kwargs)
        except HTTPError as exc:
            return DomainError(exc)
        return Completed(value)

    def __repr__(self) -> str:
        return f"Dispatcher(routes={len(self.routes)}, strategy={self._strategy!r})"
