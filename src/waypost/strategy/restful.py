"""Restful strategy: JSON in, JSON out, errors rendered as JSON."""

from __future__ import annotations

from typing import Any

from waypost._internal.types import PathParams
from waypost.errors import HTTPError, MethodNotAllowed, NotFound, ResponseBuildError
from waypost.http.request import Request
from waypost.http.response import JSONResponse, Response
from waypost.routing.route import ClassMethodRef, HandlerRef
from waypost.strategy.base import BaseStrategy
from waypost.strategy.protocol import Arguments


def error_response(error: HTTPError) -> JSONResponse:
    """Render an ``HTTPError`` as ``{"status_code": ..., "message": ...}``."""
    return JSONResponse.from_data(
        error.as_dict(),
        status=error.status,
        headers=dict(error.headers),
    )


class RestfulStrategy(BaseStrategy):
    """Handlers receive the request and return a ``Response``, ``dict`` or ``list``.

    Callables are called as ``handler(request)``. Class-based handlers get
    ``request`` and the path parameters bound by name.

    404, 405 and every ``HTTPError`` raised by a handler become JSON
    error responses instead of exceptions.
    """

    __slots__ = ()

    name = "restful"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        if isinstance(handler, ClassMethodRef):
            return Arguments(kwargs={"request": request, **path_params}, by_name=True)
        return Arguments(args=(request,))

    def build_response(self, value: Any) -> Response:
        if isinstance(value, Response):
            return value
        if isinstance(value, (dict, list, tuple)):
            return JSONResponse.from_data(value)
        msg = (
            "RestfulStrategy handlers must return a Response, dict or list, "
            f"got {type(value).__name__}"
        )
        raise ResponseBuildError(msg)

    def build_not_found_response(self, error: NotFound) -> Response:
        return error_response(error)

    def build_method_not_allowed_response(self, error: MethodNotAllowed) -> Response:
        return error_response(error)

    def build_exception_response(self, error: HTTPError) -> Response:
        return error_response(error)
