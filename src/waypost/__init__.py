"""Waypost: strategy-driven HTTP route dispatch.

Match a method and path to a handler, call it with arguments chosen by a
strategy, and let the same strategy turn the result (or the error) into
a response.

Basic usage::

    from waypost import RouteCollection

    collection = RouteCollection()
    collection.set_strategy("uri")

    @collection.route("/hello/{name}")
    def hello(name):
        return f"Hello, {name}!"

    dispatcher = collection.get_dispatcher()
    response = dispatcher.dispatch("GET", "/hello/world")
    assert response.text == "Hello, world!"
"""

from importlib import import_module

__version__ = "0.1.0-dev"

# Public name -> defining module; resolved on first attribute access
_LAZY_IMPORTS: dict[str, str] = {
    # Routing
    "RouteCollection": "waypost.routing.collection",
    "Dispatcher": "waypost.routing.dispatcher",
    "PatternMatcher": "waypost.routing.matcher",
    "Route": "waypost.routing.route",
    "ClassMethodRef": "waypost.routing.route",
    "RouterConfig": "waypost.config",
    # Strategies
    "Strategy": "waypost.strategy",
    "CustomStrategy": "waypost.strategy",
    "PassthroughStrategy": "waypost.strategy",
    "RestfulStrategy": "waypost.strategy",
    "UriStrategy": "waypost.strategy",
    "MethodArgumentStrategy": "waypost.strategy",
    "RequestResponseStrategy": "waypost.strategy",
    # Container
    "Container": "waypost.container",
    "HandlerResolver": "waypost.container",
    "ServiceProvider": "waypost.container",
    # HTTP
    "Request": "waypost.http.request",
    "Response": "waypost.http.response",
    "JSONResponse": "waypost.http.response",
    # Errors
    "WaypostError": "waypost.errors",
    "ConfigurationError": "waypost.errors",
    "InvalidHandlerError": "waypost.errors",
    "HandlerResolutionError": "waypost.errors",
    "ResponseBuildError": "waypost.errors",
    "HTTPError": "waypost.errors",
    "NotFound": "waypost.errors",
    "MethodNotAllowed": "waypost.errors",
    "NotFoundError": "waypost.errors",
    "MethodNotAllowedError": "waypost.errors",
}

__all__ = [
    "ClassMethodRef",
    "ConfigurationError",
    "Container",
    "CustomStrategy",
    "Dispatcher",
    "HTTPError",
    "HandlerResolutionError",
    "HandlerResolver",
    "InvalidHandlerError",
    "JSONResponse",
    "MethodArgumentStrategy",
    "MethodNotAllowed",
    "MethodNotAllowedError",
    "NotFound",
    "NotFoundError",
    "PassthroughStrategy",
    "PatternMatcher",
    "Request",
    "RequestResponseStrategy",
    "Response",
    "ResponseBuildError",
    "RestfulStrategy",
    "Route",
    "RouteCollection",
    "RouterConfig",
    "ServiceProvider",
    "Strategy",
    "UriStrategy",
    "WaypostError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import waypost`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)
