"""Pattern segments and the compiled Pattern.

A fixture key compiles once, at registration, into a ``Pattern``: an
ordered tuple of segments. Each segment is one of:

    Literal(value)        exact (strict) equality
    Param(name)           captures any scalar under ``name``
    Wildcard              ``*``; remainder of a path/procedure, or one tuple element
    ObjectPattern(fields) a plain-object tuple element whose declared fields match

All segment types are frozen and hashable, so two keys that compile to
the same pattern compare equal. The registry relies on that for stable
in-place replacement.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal as _Lit, TypeAlias

KeyKind: TypeAlias = _Lit["path", "procedure", "tuple"]

KEY_KINDS: frozenset[str] = frozenset({"path", "procedure", "tuple"})

# Separator used to split and re-join string keys of each kind
SEPARATORS: dict[str, str] = {"path": "/", "procedure": "."}


@dataclass(frozen=True, slots=True, eq=False)
class Literal:
    """Matches an identifier element equal to ``value``.

    ``value`` is a scalar (``str``, ``int``, ``float``, ``bool``, ``None``)
    or, inside object patterns and tuple keys, a frozen nested value
    produced by ``freeze``. Equality and hashing go through ``exact_key``,
    so ``Literal(True)`` and ``Literal(1)`` are different segments.
    """

    value: Any

    @property
    def plain(self) -> Any:
        """The value as plain Python data, nested literals thawed back to lists and dicts."""
        return _thaw(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return exact_key(self.value) == exact_key(other.value)

    def __hash__(self) -> int:
        return hash(exact_key(self.value))


@dataclass(frozen=True, slots=True)
class Param:
    """Captures the scalar at this position under ``name``."""

    name: str


@dataclass(frozen=True, slots=True)
class _WildcardType:
    """The ``*`` segment. Use the ``WILDCARD`` singleton."""

    def __repr__(self) -> str:
        return "Wildcard"


Wildcard = _WildcardType
WILDCARD = _WildcardType()


@dataclass(frozen=True, slots=True)
class ObjectPattern:
    """Matches a mapping element whose declared fields all match.

    Extra fields on the identifier side are ignored. Field order is
    irrelevant to equality: ``fields`` is kept sorted by name.
    """

    fields: tuple[tuple[str, "Segment"], ...]

    def __iter__(self) -> Iterator[tuple[str, "Segment"]]:
        return iter(self.fields)


Segment: TypeAlias = Literal | Param | _WildcardType | ObjectPattern


@dataclass(frozen=True, slots=True)
class Pattern:
    """A compiled fixture key.

    ``source`` is the raw key as registered (kept for display and removal
    by key). ``method`` is set only for path keys written as
    ``"POST /users"``; it restricts which verb the entry answers.
    """

    kind: KeyKind
    segments: tuple[Segment, ...]
    source: Any = field(default=None, compare=False)
    method: str | None = None

    @property
    def is_exact(self) -> bool:
        """True when every segment is a literal (eligible for O(1) lookup)."""
        return all(isinstance(seg, Literal) for seg in self.segments)

    @property
    def param_names(self) -> tuple[str, ...]:
        """Parameter names in the order they appear, objects included."""
        names: list[str] = []
        _collect_params(self.segments, names)
        return tuple(names)

    def literal_key(self) -> tuple[Any, ...]:
        """Hashable lookup key for exact patterns.

        Only meaningful when ``is_exact`` is true.
        """
        return tuple(exact_key(seg.value) for seg in self.segments if isinstance(seg, Literal))

    def __str__(self) -> str:
        if isinstance(self.source, str) and self.kind != "tuple":
            return self.source
        return repr(self.source)


def _collect_params(segments: Any, names: list[str]) -> None:
    for seg in segments:
        if isinstance(seg, Param):
            names.append(seg.name)
        elif isinstance(seg, ObjectPattern):
            _collect_params((value for _, value in seg.fields), names)


# -- Strict values --


class _Frozen(tuple):
    """Tagged tuple used to make nested values hashable under strict equality."""

    __slots__ = ()


def freeze(value: Any) -> Any:
    """Return a hashable, comparable stand-in for a nested literal value.

    Lists and tuples become tagged tuples; dicts become tagged tuples of
    sorted items. Nested scalars keep their type tag, so ``[1]`` and
    ``[True]`` freeze differently.
    """
    if isinstance(value, dict):
        return _Frozen(("dict", tuple(sorted((str(k), freeze(v)) for k, v in value.items()))))
    if isinstance(value, (list, tuple)):
        return _Frozen(("list", tuple(freeze(v) for v in value)))
    return _Frozen(("scalar", exact_key(value)))


def exact_key(value: Any) -> Any:
    """Type-tagged hashable form of *value* for the exact-match map.

    ``True``, ``1`` and ``1.0`` hash identically in Python; tagging keeps
    booleans apart from numbers so the map honors strict equality.
    """
    if isinstance(value, _Frozen):
        return ("frozen", value)
    if isinstance(value, bool):
        return ("bool", value)
    if value is None:
        return ("none", None)
    if isinstance(value, (int, float)):
        return ("num", value)
    if isinstance(value, str):
        return ("str", value)
    if isinstance(value, (list, tuple, dict)):
        return ("frozen", freeze(value))
    return ("object", id(value))


def strict_equal(expected: Any, actual: Any) -> bool:
    """Strict equality: booleans never equal numbers, containers compare deeply."""
    if isinstance(expected, _Frozen):
        return strict_equal(_thaw(expected), actual)
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected is actual
    if expected is None or actual is None:
        return expected is None and actual is None
    if isinstance(expected, dict):
        if not isinstance(actual, dict) or expected.keys() != actual.keys():
            return False
        return all(strict_equal(expected[k], actual[k]) for k in expected)
    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)) or len(expected) != len(actual):
            return False
        return all(strict_equal(e, a) for e, a in zip(expected, actual, strict=True))
    if isinstance(expected, str) or isinstance(actual, str):
        return isinstance(expected, str) and isinstance(actual, str) and expected == actual
    return type(expected) in (int, float) and type(actual) in (int, float) and expected == actual


def _thaw(value: Any) -> Any:
    if isinstance(value, _Frozen):
        tag, payload = value
        if tag == "dict":
            return {k: _thaw(v) for k, v in payload}
        if tag == "list":
            return [_thaw(v) for v in payload]
        return payload[1]
    return value


def is_scalar(value: Any) -> bool:
    """True for values a ``Param`` may capture."""
    return value is None or isinstance(value, (str, int, float, bool))
