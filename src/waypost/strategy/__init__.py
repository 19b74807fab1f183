"""Strategies: pluggable argument and response policies for routes.

Built-ins can be referenced by name anywhere a strategy is accepted::

    collection.set_strategy("restful")
"""

from waypost.errors import ConfigurationError
from waypost.strategy.base import BaseStrategy, CustomStrategy, PassthroughStrategy
from waypost.strategy.method_argument import MethodArgumentStrategy
from waypost.strategy.protocol import Arguments, Strategy, is_custom
from waypost.strategy.request_response import RequestResponseStrategy
from waypost.strategy.restful import RestfulStrategy
from waypost.strategy.uri import UriStrategy

# Strategies are stateless, so one shared instance per name is enough
STRATEGIES: dict[str, BaseStrategy] = {
    s.name: s
    for s in (
        PassthroughStrategy(),
        RestfulStrategy(),
        UriStrategy(),
        MethodArgumentStrategy(),
        RequestResponseStrategy(),
    )
}


def get_strategy(name: str) -> BaseStrategy:
    """Return the shared built-in strategy registered under *name*.

    Raises ``ConfigurationError`` for unknown names.
    """
    try:
        return STRATEGIES[name]
    except KeyError:
        known = ", ".join(sorted(STRATEGIES))
        msg = f"Unknown strategy {name!r}. Known strategies: {known}"
        raise ConfigurationError(msg) from None


__all__ = [
    "STRATEGIES",
    "Arguments",
    "BaseStrategy",
    "CustomStrategy",
    "MethodArgumentStrategy",
    "PassthroughStrategy",
    "RequestResponseStrategy",
    "RestfulStrategy",
    "Strategy",
    "UriStrategy",
    "get_strategy",
    "is_custom",
]
