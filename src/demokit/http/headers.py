"""Immutable, case-insensitive request headers.

Accepts whatever the caller has at hand: a mapping, ``(name, value)``
pairs as ``str`` or ``bytes`` (the ASGI form), or another ``Headers``.
Names are lower-cased once at construction; lookups are then plain
string comparisons.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import TypeAlias

HeaderPairs: TypeAlias = Iterable[tuple[str | bytes, str | bytes]]


def _text(value: str | bytes) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


class Headers(Mapping[str, str]):
    """Read-only header multimap.

    ``headers["accept"]`` returns the first value; ``get_list`` returns all
    of them (repeated ``Cookie`` or ``Set-Cookie`` lines)::

        headers = Headers({"Content-Type": "application/json"})
        headers["content-type"]  # "application/json"
    """

    __slots__ = ("_pairs",)

    def __init__(self, source: "Mapping[str, str] | HeaderPairs | None" = None) -> None:
        if source is None:
            pairs: tuple[tuple[str, str], ...] = ()
        elif isinstance(source, Headers):
            pairs = source._pairs
        elif isinstance(source, Mapping):
            pairs = tuple((_text(k).lower(), _text(v)) for k, v in source.items())
        else:
            pairs = tuple((_text(k).lower(), _text(v)) for k, v in source)
        object.__setattr__(self, "_pairs", pairs)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Headers is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._pairs:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name == wanted for name, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        return f"Headers({list(self._pairs)!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return every value for *key*, in arrival order."""
        wanted = key.lower()
        return [value for name, value in self._pairs if name == wanted]

    def pairs(self) -> tuple[tuple[str, str], ...]:
        """All ``(lower-cased name, value)`` pairs, duplicates included."""
        return self._pairs

    def to_asgi(self) -> list[tuple[bytes, bytes]]:
        """Encode back to the ASGI ``[(name, value), ...]`` byte form."""
        return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in self._pairs]
