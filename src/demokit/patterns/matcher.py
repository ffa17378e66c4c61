"""Structural matching of compiled patterns against request identifiers.

``match(pattern, identifier)`` is pure: it never mutates its inputs and
never raises for a non-matching identifier. Walks are linear over the
pre-compiled segments; wildcards never back-track.

Identifiers are normalized per kind by ``to_identifier``::

    to_identifier("path", "/users/42?tab=posts")  # ("users", "42")
    to_identifier("procedure", "user.get")        # ("user", "get")
    to_identifier("tuple", ["users", {"page": 2}])  # ("users", {"page": 2})
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any
from urllib.parse import unquote

from demokit.patterns.compiler import parse_procedure
from demokit.patterns.segments import (
    KeyKind,
    Literal,
    ObjectPattern,
    Param,
    Pattern,
    Segment,
    _WildcardType,
    is_scalar,
    strict_equal,
)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of one match. Unmatched results never carry params."""

    matched: bool
    params: dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = MatchResult(matched=False)


class DecodedPath(str):
    """A URL path that is already percent-decoded.

    ASGI's ``scope["path"]`` and ``httpx.URL.path`` are both decoded.
    Wrapping them keeps ``to_identifier`` from decoding a second time and
    from treating a decoded ``?`` or ``#`` as the start of a query.
    """

    __slots__ = ()


def to_identifier(kind: KeyKind, raw: Any) -> tuple[Any, ...]:
    """Normalize a native call key into the element tuple a pattern walks.

    Raw path strings drop any query string or fragment and percent-decode
    each segment. A ``DecodedPath`` is only split. Already-normalized
    tuples pass through.

    Raises:
        TypeError: If *raw* cannot be an identifier of *kind*.
    """
    if isinstance(raw, tuple) and kind != "tuple":
        return raw
    if kind == "path":
        if not isinstance(raw, str):
            msg = f"path identifiers must be strings, not {type(raw).__name__}"
            raise TypeError(msg)
        if isinstance(raw, DecodedPath):
            return tuple(part for part in raw.split("/") if part)
        path = raw.split("?", 1)[0].split("#", 1)[0]
        return tuple(unquote(part) for part in path.split("/") if part)
    if kind == "procedure":
        if not isinstance(raw, str):
            msg = f"procedure identifiers must be strings, not {type(raw).__name__}"
            raise TypeError(msg)
        return tuple(raw.split("."))
    if isinstance(raw, (list, tuple)):
        return tuple(raw)
    if isinstance(raw, str):
        return (raw,)
    msg = f"tuple identifiers must be lists, tuples or strings, not {type(raw).__name__}"
    raise TypeError(msg)


def match(pattern: Pattern, identifier: Any) -> MatchResult:
    """Match *identifier* against *pattern*.

    *identifier* may be raw (a path string, a procedure string, a list key)
    or the tuple returned by ``to_identifier``.
    """
    elements = to_identifier(pattern.kind, identifier)
    segments = pattern.segments

    # Fast path: literal-only patterns are a strict element-wise comparison
    if pattern.is_exact:
        if len(segments) != len(elements):
            return NO_MATCH
        for seg, element in zip(segments, elements, strict=True):
            if not strict_equal(seg.value, element):  # type: ignore[union-attr]
                return NO_MATCH
        return MatchResult(matched=True)

    captures: dict[str, Any] = {}

    if segments and isinstance(segments[-1], _WildcardType):
        # Trailing wildcard: consumes one or more remaining elements
        head = segments[:-1]
        if len(elements) <= len(head):
            return NO_MATCH
        if _walk(head, elements[: len(head)], captures):
            return MatchResult(matched=True, params=captures)
        return NO_MATCH

    if pattern.kind != "tuple" and segments and isinstance(segments[0], _WildcardType):
        # Leading wildcard: suffix test, consumes one or more leading elements
        tail = segments[1:]
        if len(elements) <= len(tail):
            return NO_MATCH
        if _walk(tail, elements[len(elements) - len(tail) :], captures):
            return MatchResult(matched=True, params=captures)
        return NO_MATCH

    if len(segments) != len(elements):
        return NO_MATCH
    if _walk(segments, elements, captures):
        return MatchResult(matched=True, params=captures)
    return NO_MATCH


def match_procedure(path: str, glob: str) -> bool:
    """True if procedure *path* matches the *glob* (``"user.*"``, ``"*.get"``, ``"*"``)."""
    return match(_compiled_glob(glob), path).matched


@lru_cache(maxsize=256)
def _compiled_glob(glob: str) -> Pattern:
    return parse_procedure(glob)


# -- Walk --


def _walk(segments: tuple[Segment, ...], elements: tuple[Any, ...], captures: dict[str, Any]) -> bool:
    return all(_match_element(seg, element, captures) for seg, element in zip(segments, elements, strict=True))


def _match_element(seg: Segment, element: Any, captures: dict[str, Any]) -> bool:
    if isinstance(seg, Literal):
        return strict_equal(seg.value, element)
    if isinstance(seg, Param):
        return is_scalar(element) and _capture(captures, seg.name, element)
    if isinstance(seg, ObjectPattern):
        return _match_object(seg, element, captures)
    # Wildcard inside a tuple key or object field: any single value
    return True


def _match_object(seg: ObjectPattern, element: Any, captures: dict[str, Any]) -> bool:
    if not isinstance(element, Mapping):
        return False
    for name, field_seg in seg.fields:
        if name not in element:
            return False
        if not _match_element(field_seg, element[name], captures):
            return False
    return True


def _capture(captures: dict[str, Any], name: str, value: Any) -> bool:
    if name in captures and not strict_equal(captures[name], value):
        return False
    captures[name] = value
    return True
