"""Shared type aliases used across waypost modules."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

# Route handler: user-defined callable with variable signature
Handler: TypeAlias = Callable[..., Any]

# Path parameters extracted by the matcher, in pattern-declaration order
PathParams: TypeAlias = Mapping[str, str]

# Container key: a type or a service name
ServiceKey: TypeAlias = type | str
