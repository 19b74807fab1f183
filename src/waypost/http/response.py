"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    def with_body(self, body: str | bytes) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=body)

    # -- Header lookup --

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name* (case-insensitive), or *default*."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


def encode_json(data: Any) -> str:
    """Compact JSON encoding used by every JSON response body."""
    return json_module.dumps(data, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class JSONResponse(Response):
    """A ``Response`` whose body is JSON.

    Build one from data with ``from_data``; the status-specific subclasses
    below carry their status code as the default::

        Created.from_data({"id": 7}, headers={"Location": "/users/7"})
    """

    body: str | bytes = "{}"
    content_type: str = "application/json"

    @classmethod
    def from_data(
        cls,
        data: Any,
        *,
        status: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> JSONResponse:
        """Encode *data* as the body of a new response of this class."""
        response = cls(body=encode_json(data), headers=tuple((headers or {}).items()))
        if status is not None:
            response = replace(response, status=status)
        return response

    def json(self) -> Any:
        """Decode the body."""
        return json_module.loads(self.body_bytes) if self.body else None


@dataclass(frozen=True, slots=True)
class Ok(JSONResponse):
    """200 OK."""

    status: int = 200


@dataclass(frozen=True, slots=True)
class Created(JSONResponse):
    """201 Created."""

    status: int = 201


@dataclass(frozen=True, slots=True)
class Accepted(JSONResponse):
    """202 Accepted."""

    status: int = 202


@dataclass(frozen=True, slots=True)
class NoContent(JSONResponse):
    """204 No Content. Empty body by default."""

    body: str | bytes = ""
    status: int = 204


@dataclass(frozen=True, slots=True)
class ResetContent(JSONResponse):
    """205 Reset Content."""

    body: str | bytes = ""
    status: int = 205


@dataclass(frozen=True, slots=True)
class PartialContent(JSONResponse):
    """206 Partial Content."""

    status: int = 206
