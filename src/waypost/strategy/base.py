"""Base strategies shared by the built-in variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from waypost._internal.types import PathParams
from waypost.errors import HTTPError, MethodNotAllowed, NotFound, ResponseBuildError
from waypost.http.request import Request
from waypost.http.response import Response
from waypost.routing.route import HandlerRef
from waypost.strategy.protocol import Arguments


class BaseStrategy:
    """Default behaviour: 404, 405 and ``HTTPError`` reach the caller as exceptions.

    Subclasses override the hooks they want to change.
    """

    __slots__ = ()

    name: str = "base"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        return Arguments(kwargs=dict(path_params), by_name=True)

    def build_response(self, value: Any) -> Any:
        return value

    def build_not_found_response(self, error: NotFound) -> Any:
        raise error

    def build_method_not_allowed_response(self, error: MethodNotAllowed) -> Any:
        raise error

    def build_exception_response(self, error: HTTPError) -> Any:
        raise error

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PassthroughStrategy(BaseStrategy):
    """Fallback when neither the route nor the collection names a strategy.

    Binds ``request`` and path parameters by name and returns the
    handler's value untouched.
    """

    __slots__ = ()

    name = "passthrough"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        return Arguments(kwargs={"request": request, **path_params}, by_name=True)


class CustomStrategy(BaseStrategy, ABC):
    """A strategy that takes over handler resolution and invocation.

    ``dispatch`` receives the raw handler reference (a callable or a
    ``ClassMethodRef``) and the path parameters; whatever it returns is
    handed back from ``Dispatcher.dispatch`` unmodified.
    """

    __slots__ = ()

    name = "custom"

    @abstractmethod
    def dispatch(self, handler: HandlerRef, path_params: PathParams) -> Any: ...


def text_response(value: Any, strategy: str) -> Response:
    """Wrap a plain return value in a text response.

    ``None`` becomes an empty body; strings, bytes, numbers and objects
    with their own ``__str__`` become the body. Anything else is a
    ``ResponseBuildError``.
    """
    if isinstance(value, Response):
        return value
    if value is None:
        return Response()
    if isinstance(value, (str, bytes)):
        return Response(body=value)
    if isinstance(value, (int, float)) or type(value).__str__ is not object.__str__:
        return Response(body=str(value))
    msg = f"{strategy} cannot build a response from a {type(value).__name__} return value"
    raise ResponseBuildError(msg)
