"""Request/response strategy: handlers transform a response they are given."""

from __future__ import annotations

from typing import Any

from waypost._internal.types import PathParams
from waypost.errors import ResponseBuildError
from waypost.http.request import Request
from waypost.http.response import Response
from waypost.routing.route import HandlerRef
from waypost.strategy.base import BaseStrategy
from waypost.strategy.protocol import Arguments


class RequestResponseStrategy(BaseStrategy):
    """Handlers are called as ``handler(request, response)``.

    Path parameters are available as ``request.path_params``. The handler
    must return a ``Response``, typically the one it was given after
    ``.with_*()`` transformations.
    """

    __slots__ = ()

    name = "request_response"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        return Arguments(args=(request, Response()))

    def build_response(self, value: Any) -> Response:
        if isinstance(value, Response):
            return value
        msg = (
            "RequestResponseStrategy handlers must return a Response, "
            f"got {type(value).__name__}"
        )
        raise ResponseBuildError(msg)
