"""URI strategy: path parameters become positional arguments."""

from __future__ import annotations

from typing import Any

from waypost._internal.types import PathParams
from waypost.http.request import Request
from waypost.http.response import Response
from waypost.routing.route import HandlerRef
from waypost.strategy.base import BaseStrategy, text_response
from waypost.strategy.protocol import Arguments


class UriStrategy(BaseStrategy):
    """``/route/{id}/{name}`` calls ``handler("2", "phil")``.

    Values stay strings, in the order the placeholders appear in the
    pattern. Plain return values are wrapped in a text response.
    """

    __slots__ = ()

    name = "uri"

    def resolve_arguments(
        self, handler: HandlerRef, path_params: PathParams, request: Request
    ) -> Arguments:
        return Arguments(args=tuple(path_params.values()))

    def build_response(self, value: Any) -> Response:
        return text_response(value, type(self).__name__)
