"""Case-insensitive request headers.

WSGI and plain-value callers hand over text, so names and values are
kept as ``str``. Lookups go through an index keyed by the lowercased
name; the original pairs are kept for ``items_all``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

HeaderPairs = Mapping[str, str] | Iterable[tuple[str, str]]


class Headers(Mapping[str, str]):
    """Read-only headers. ``headers["content-type"]`` gives the first value.

    Repeated headers keep every value; ``get_list`` returns them in the
    order they arrived.
    """

    __slots__ = ("_index", "_pairs")

    def __init__(self, pairs: HeaderPairs = ()) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        frozen = tuple((str(name), str(value)) for name, value in items)
        index: dict[str, list[str]] = {}
        for name, value in frozen:
            index.setdefault(name.lower(), []).append(value)
        object.__setattr__(self, "_pairs", frozen)
        object.__setattr__(self, "_index", index)

    def __getitem__(self, key: str) -> str:
        return self._index[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({list(self._pairs)!r})"

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Headers are read-only"
        raise AttributeError(msg)

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._index.get(key.lower())
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*."""
        return list(self._index.get(key.lower(), ()))

    def items_all(self) -> tuple[tuple[str, str], ...]:
        """All pairs, duplicates included, with their original name casing."""
        return self._pairs
