"""Waypost exception hierarchy.

Shared across RouteCollection, Dispatcher, strategies, and the container
so every module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any, ClassVar


class WaypostError(Exception):
    """Base for all waypost-specific errors."""


class ConfigurationError(WaypostError):
    """Raised when a route, pattern, or config value is invalid.

    Raised at registration or compile time, never during dispatch.
    """


class InvalidHandlerError(WaypostError, RuntimeError):
    """A route was registered with a handler that cannot be invoked."""


class HandlerResolutionError(WaypostError, RuntimeError):
    """A class-based handler, its method, or one of its arguments could not be resolved."""


class ResponseBuildError(WaypostError, RuntimeError):
    """The active strategy cannot turn a handler's return value into a Response."""


@dataclass(frozen=True, slots=True)
class HTTPError(WaypostError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher or by handlers. Strategies that render errors
    (``RestfulStrategy``) turn it into a JSON response; the others let it
    propagate to the caller.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not 300 <= self.status <= 599:
            msg = f"HTTP error status must be 3xx-5xx, got {self.status}"
            raise ValueError(msg)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def message(self) -> str:
        """The human-readable message, without the status code.

        ``str()`` prefixes the status (``"404: Not Found"``); ``message`` is
        just ``"Not Found"``.
        """
        return self.detail or str(self.status)

    def as_dict(self) -> dict[str, Any]:
        """Body used for structured error responses."""
        return {"status_code": self.status, "message": self.message}


class _StatusError(HTTPError):
    """An ``HTTPError`` whose status code is fixed by the subclass."""

    status_code: ClassVar[int] = 500
    default_detail: ClassVar[str] = ""

    def __init__(self, detail: str = "", headers: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(
            status=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFound(_StatusError):  # noqa: N818
    """404: no route matched the request path."""

    status_code = 404
    default_detail = "Not Found"


class MethodNotAllowed(_StatusError):  # noqa: N818
    """405: the path has routes, but not for this HTTP method.

    ``allowed`` keeps the order in which the methods were registered and the
    ``Allow`` header lists them in that order.
    """

    status_code = 405
    default_detail = "Method Not Allowed"

    def __init__(self, allowed: tuple[str, ...] = (), detail: str = "") -> None:
        allowed = tuple(allowed)
        super().__init__(detail, headers=(("Allow", ", ".join(allowed)),))
        object.__setattr__(self, "allowed", allowed)


class BadRequest(_StatusError):  # noqa: N818
    status_code = 400
    default_detail = "Bad Request"


class Unauthorized(_StatusError):  # noqa: N818
    status_code = 401
    default_detail = "Unauthorized"


class Forbidden(_StatusError):  # noqa: N818
    status_code = 403
    default_detail = "Forbidden"


class NotAcceptable(_StatusError):  # noqa: N818
    status_code = 406
    default_detail = "Not Acceptable"


class Conflict(_StatusError):  # noqa: N818
    """409: the request conflicts with the current state of the resource."""

    status_code = 409
    default_detail = "Conflict"


class Gone(_StatusError):  # noqa: N818
    status_code = 410
    default_detail = "Gone"


class LengthRequired(_StatusError):  # noqa: N818
    status_code = 411
    default_detail = "Length Required"


class PreconditionFailed(_StatusError):  # noqa: N818
    status_code = 412
    default_detail = "Precondition Failed"


class UnsupportedMediaType(_StatusError):  # noqa: N818
    status_code = 415
    default_detail = "Unsupported Media Type"


class ExpectationFailed(_StatusError):  # noqa: N818
    status_code = 417
    default_detail = "Expectation Failed"


class ImATeapot(_StatusError):  # noqa: N818
    status_code = 418
    default_detail = "I'm a teapot"


class UnprocessableEntity(_StatusError):  # noqa: N818
    """422: the body is well-formed but fails validation."""

    status_code = 422
    default_detail = "Unprocessable Entity"


class PreconditionRequired(_StatusError):  # noqa: N818
    status_code = 428
    default_detail = "Precondition Required"


class TooManyRequests(_StatusError):  # noqa: N818
    status_code = 429
    default_detail = "Too Many Requests"


# Long-form names for the two routing errors
NotFoundError = NotFound
MethodNotAllowedError = MethodNotAllowed
