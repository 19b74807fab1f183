"""Parsed query string."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Read-only query parameters.

    ``params["tag"]`` is the first value; ``get_list("tag")`` is all of
    them. Blank values (``?flag=``) are kept as ``""``.
    """

    __slots__ = ("_index", "_query_string")

    def __init__(self, query_string: bytes | str = "") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        index: dict[str, list[str]] = {}
        for key, value in parse_qsl(query_string, keep_blank_values=True):
            index.setdefault(key, []).append(value)
        object.__setattr__(self, "_query_string", query_string)
        object.__setattr__(self, "_index", index)

    def __getitem__(self, key: str) -> str:
        return self._index[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"QueryParams({self._query_string!r})"

    def __setattr__(self, name: str, value: object) -> None:
        msg = "QueryParams are read-only"
        raise AttributeError(msg)

    @property
    def query_string(self) -> str:
        """The undecoded query string, without the leading ``?``."""
        return self._query_string

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._index.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._index.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """The first value as an ``int``; *default* when missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default
