"""Immutable query string parameters."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Parsed query string, first value wins on ``[]``.

    Blank values are kept: ``?demo`` and ``?demo=`` both yield
    ``{"demo": ""}``, which demo-mode detection reads as "on".

    ``get_list`` returns every value for a repeated name.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: str | bytes = "") -> None:
        raw = query_string.decode("latin-1") if isinstance(query_string, bytes) else query_string
        raw = raw.removeprefix("?")
        data: dict[str, list[str]] = {}
        for name, value in parse_qsl(raw, keep_blank_values=True):
            data.setdefault(name, []).append(value)
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_data", data)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "QueryParams is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    def __str__(self) -> str:
        return self._raw

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, ()))

    def to_dict(self) -> dict[str, str | list[str]]:
        """Plain dict: single values as strings, repeated names as lists."""
        return {k: v[0] if len(v) == 1 else list(v) for k, v in self._data.items()}
