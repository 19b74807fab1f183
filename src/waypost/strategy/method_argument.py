"""Method-argument strategy: path parameters bound by parameter name."""

from __future__ import annotations

from typing import Any

from waypost._internal.types import PathParams
from waypost.http.request import Request
from waypost.http.response import Response
from waypost.routing.route import HandlerRef
from waypost.strategy.base import BaseStrategy, text_response
from waypost.strategy.protocol import Arguments


class MethodArgumentStrategy(BaseStrategy):
    """``/hello/{name}`` calls ``handler(name="world")``.

    Binding goes through the resolver, so parameters that are not path
    parameters are filled from the container or their defaults.
    """

    __slots__ = ()

    name = "method_argument"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        return Arguments(kwargs=dict(path_params), by_name=True)

    def build_response(self, value: Any) -> Response:
        return text_response(value, type(self).__name__)
