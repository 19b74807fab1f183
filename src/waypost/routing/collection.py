"""Route registration.

A RouteCollection is mutable during application wiring. Each call to
``get_dispatcher()`` takes a snapshot: later registrations never leak
into an existing Dispatcher.
"""

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from waypost.config import RouterConfig
from waypost.container import Container, HandlerResolver
from waypost.errors import ConfigurationError, InvalidHandlerError
from waypost.routing.dispatcher import Dispatcher
from waypost.routing.params import PATTERN_MATCHERS, parse_pattern
from waypost.routing.route import METHODS, ClassMethodRef, HandlerRef, Route
from waypost.strategy import Strategy, get_strategy, is_custom

logger = logging.getLogger("waypost.routing")

_STRATEGY_HOOKS = (
    "resolve_arguments",
    "build_response",
    "build_not_found_response",
    "build_method_not_allowed_response",
    "build_exception_response",
)


def as_handler_ref(handler: Any) -> HandlerRef:
    """Validate a route handler and normalize it to a ``HandlerRef``.

    Strings are parsed as ``"ClassName::method_name"``; callables are kept.
    Anything else raises ``InvalidHandlerError``.
    """
    if isinstance(handler, ClassMethodRef):
        return handler
    if isinstance(handler, str):
        if not handler.strip():
            msg = "Route handler string must not be empty"
            raise InvalidHandlerError(msg)
        return ClassMethodRef.parse(handler)
    if callable(handler):
        return handler
    msg = (
        "Route handler must be callable or a 'ClassName::method' string, "
        f"got {type(handler).__name__}"
    )
    raise InvalidHandlerError(msg)


def as_strategy(strategy: Strategy | str | None) -> Strategy | None:
    """Accept a strategy object, a built-in strategy name, or ``None``."""
    if strategy is None:
        return None
    if isinstance(strategy, str):
        return get_strategy(strategy)
    if is_custom(strategy) or all(
        callable(getattr(strategy, hook, None)) for hook in _STRATEGY_HOOKS
    ):
        return strategy
    msg = f"{type(strategy).__name__} does not implement the strategy hooks or dispatch()"
    raise ConfigurationError(msg)


class RouteCollection:
    """Collects routes, pattern matchers, and the default strategy.

    Usage::

        collection = RouteCollection(container)
        collection.set_strategy("restful")
        collection.add_pattern_matcher("hex", "[0-9a-f]+")
        collection.get("/users/{id:number}", "UserController::show")
        collection.post("/users", create_user, strategy="request_response")

        dispatcher = collection.get_dispatcher()
        response = dispatcher.dispatch("GET", "/users/42")

    Registering the same method and pattern twice replaces the first
    route in place.
    """

    __slots__ = ("_config", "_matchers", "_resolver", "_routes", "_strategy")

    def __init__(
        self,
        container: HandlerResolver | None = None,
        *,
        config: RouterConfig | None = None,
    ) -> None:
        self._config = config or RouterConfig()
        self._resolver: HandlerResolver = container if container is not None else Container()
        self._routes: dict[tuple[str, str], Route] = {}
        self._matchers: dict[str, str] = dict(PATTERN_MATCHERS)
        self._strategy: Strategy | None = None

        for name, fragment in self._config.pattern_matchers:
            self.add_pattern_matcher(name, fragment)
        if self._config.strategy is not None:
            self.set_strategy(self._config.strategy)

    # -- Registration --

    def add_route(
        self,
        method: str,
        pattern: str,
        handler: Any,
        strategy: Strategy | str | None = None,
    ) -> Route:
        """Register *handler* for *method* requests matching *pattern*."""
        method = method.upper() if isinstance(method, str) else method
        if method not in METHODS:
            msg = f"Unsupported HTTP method {method!r}. Expected one of: {', '.join(METHODS)}"
            raise ConfigurationError(msg)
        if not isinstance(pattern, str) or not pattern:
            msg = f"Route pattern must be a non-empty string, got {pattern!r}"
            raise ConfigurationError(msg)
        parse_pattern(pattern)

        route = Route(
            method=method,
            pattern=pattern,
            handler=as_handler_ref(handler),
            strategy=as_strategy(strategy),
        )
        key = (method, pattern)
        if key in self._routes:
            logger.debug("replacing route %s %s", method, pattern)
        self._routes[key] = route
        return route

    def get(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("GET", pattern, handler, strategy)

    def post(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("POST", pattern, handler, strategy)

    def put(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("PUT", pattern, handler, strategy)

    def patch(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("PATCH", pattern, handler, strategy)

    def delete(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("DELETE", pattern, handler, strategy)

    def head(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("HEAD", pattern, handler, strategy)

    def options(self, pattern: str, handler: Any, strategy: Strategy | str | None = None) -> Route:
        return self.add_route("OPTIONS", pattern, handler, strategy)

    def route(
        self,
        pattern: str,
        methods: Iterable[str] = ("GET",),
        *,
        strategy: Strategy | str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of ``add_route`` for one or more methods.

        ::

            @collection.route("/users/{id}", methods=["GET", "HEAD"])
            def show_user(id):
                ...
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            for method in methods:
                self.add_route(method, pattern, func, strategy)
            return func

        return decorator

    # -- Strategy and matchers --

    def set_strategy(self, strategy: Strategy | str | None) -> None:
        """Set the default for routes registered without their own strategy.

        Resolved at dispatch time, so it applies to routes registered
        before and after this call alike.
        """
        self._strategy = as_strategy(strategy)

    @property
    def strategy(self) -> Strategy | None:
        return self._strategy

    def add_pattern_matcher(self, name: str, regex: str) -> None:
        """Make ``{param:name}`` shorthand for ``{param:regex}``."""
        if not name or not name.isidentifier():
            msg = f"Pattern matcher name must be an identifier, got {name!r}"
            raise ConfigurationError(msg)
        try:
            re.compile(regex)
        except re.error as exc:
            msg = f"Pattern matcher {name!r} is not a valid regex: {exc}"
            raise ConfigurationError(msg) from exc
        self._matchers[name] = regex

    def get_pattern_matchers(self) -> dict[str, str]:
        """All placeholder rules, built-in and added, as ``name -> regex``."""
        return dict(self._matchers)

    # -- Introspection --

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes in registration order."""
        return tuple(self._routes.values())

    @property
    def container(self) -> HandlerResolver:
        return self._resolver

    @property
    def config(self) -> RouterConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._routes)

    # -- Snapshot --

    def get_dispatcher(self) -> Dispatcher:
        """Compile the current routes into an immutable Dispatcher."""
        return Dispatcher(
            self.routes,
            matchers=self._matchers,
            strategy=self._strategy,
            resolver=self._resolver,
            config=self._config,
        )
