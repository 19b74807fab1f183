"""Router configuration.

RouterConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Route collection configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(strategy="restful", pattern_matchers=(("hex", "[0-9a-f]+"),))
    """

    # Name of the collection-wide default strategy ("restful", "uri", ...)
    strategy: str | None = None

    # Extra placeholder rules, applied after the built-in ones
    pattern_matchers: tuple[tuple[str, str], ...] = ()

    # Matching
    strip_trailing_slash: bool = True
    head_fallback: bool = True  # HEAD falls back to the GET route of the same path
