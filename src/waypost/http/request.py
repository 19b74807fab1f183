"""Immutable HTTP request.

Frozen metadata plus the already-read body. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from waypost.http.headers import Headers
from waypost.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    The dispatcher hands handlers a copy carrying the matched
    ``path_params``; the request passed in is never modified.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    path_params: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Full request URL (path + query string)."""
        qs = self.query.query_string
        if qs:
            return f"{self.path}?{qs}"
        return self.path

    # -- Body access --

    def text(self) -> str:
        """The body as text (UTF-8)."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        """Return a copy of this request carrying matched path parameters."""
        return replace(self, path_params=dict(path_params))

    # -- Factories --

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query_string: bytes | str = b"",
        body: bytes | str = b"",
    ) -> Request:
        """Build a request from plain values.

        Used by the dispatcher when the caller supplies no request, and in tests.
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(
            method=method.upper(),
            path=path,
            headers=Headers(headers or {}),
            query=QueryParams(query_string),
            body=body,
        )

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> Request:
        """Create a Request from a WSGI environ.

        Reads ``CONTENT_LENGTH`` bytes from ``wsgi.input`` when present.
        """
        pairs: list[tuple[str, str]] = []
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                pairs.append((key[5:].replace("_", "-").lower(), value))
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                pairs.append((key.replace("_", "-").lower(), value))

        body = b""
        stream = environ.get("wsgi.input")
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        if stream is not None and length > 0:
            body = stream.read(length)

        server = None
        if environ.get("SERVER_NAME"):
            server = (environ["SERVER_NAME"], int(environ.get("SERVER_PORT") or 0))
        client = None
        if environ.get("REMOTE_ADDR"):
            client = (environ["REMOTE_ADDR"], int(environ.get("REMOTE_PORT") or 0))

        protocol = environ.get("SERVER_PROTOCOL", "HTTP/1.1")
        return cls(
            method=environ.get("REQUEST_METHOD", "GET").upper(),
            path=environ.get("PATH_INFO") or "/",
            headers=Headers(pairs),
            query=QueryParams(environ.get("QUERY_STRING", "")),
            body=body,
            http_version=protocol.partition("/")[2] or "1.1",
            server=server,
            client=client,
        )
