"""Fixture key compiler.

Turns a raw fixture key into an immutable ``Pattern`` once, at
registration time. Three key kinds are understood::

    "path"       "/users/:id"       -> [Literal("users"), Param("id")]
                 "POST /users"      -> [Literal("users")], method="POST"
                 "/files/*"         -> [Literal("files"), Wildcard]
    "procedure"  "user.*"           -> [Literal("user"), Wildcard]
                 "*.get"            -> [Wildcard, Literal("get")]
    "tuple"      ["users", ":id"]   -> [Literal("users"), Param("id")]
                 ["todos", {"status": ":status"}]
                                    -> [Literal("todos"),
                                        ObjectPattern((("status", Param("status")),))]
                 '["users", ":id"]' -> same as the list form (JSON string)

Malformed keys raise ``CompileError`` instead of degrading to a literal
match.
"""

import json
import re
from typing import Any
from urllib.parse import unquote

from demokit.errors import CompileError
from demokit.patterns.segments import (
    KEY_KINDS,
    WILDCARD,
    KeyKind,
    Literal,
    ObjectPattern,
    Param,
    Pattern,
    Segment,
    _WildcardType,
    freeze,
)

_PARAM_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_METHOD_PREFIX = re.compile(r"(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\s+(.*)", re.IGNORECASE)

_SEGMENT_TYPES = (Literal, Param, _WildcardType, ObjectPattern)


def compile_pattern(key: Any, kind: KeyKind = "path") -> Pattern:
    """Compile a raw fixture key of the given *kind* into a ``Pattern``.

    An already-compiled ``Pattern`` of the same kind is returned as-is.

    Raises:
        CompileError: If the key is malformed for its kind.
    """
    if kind not in KEY_KINDS:
        raise CompileError(key, f"unknown key kind {kind!r}")
    if isinstance(key, Pattern):
        if key.kind != kind:
            raise CompileError(key, f"pattern is a {key.kind!r} pattern, expected {kind!r}")
        return key
    if kind == "path":
        return parse_path(key)
    if kind == "procedure":
        return parse_procedure(key)
    return parse_tuple(key)


def parse_path(key: Any) -> Pattern:
    """Compile a URL-path key, with an optional leading HTTP verb.

    Leading, trailing and doubled slashes are ignored; ``"/"`` compiles to
    the empty pattern.
    """
    if not isinstance(key, str):
        raise CompileError(key, "path keys must be strings")

    text = key.strip()
    method: str | None = None
    prefixed = _METHOD_PREFIX.fullmatch(text)
    if prefixed is not None:
        method = prefixed.group(1).upper()
        text = prefixed.group(2).strip()
        if not text.startswith("/"):
            raise CompileError(key, "path must start with '/' after the method")

    segments = [_path_segment(part, key) for part in text.split("/") if part]
    return _finish("path", segments, key, method=method)


def _path_segment(part: str, key: Any) -> Segment:
    # Params and wildcards are recognized on the raw text; only literals decode
    segment = _string_segment(part, key)
    if isinstance(segment, Literal):
        return Literal(unquote(part))
    return segment


def parse_procedure(key: Any) -> Pattern:
    """Compile a dot-notation procedure key such as ``"user.get"`` or ``"user.*"``."""
    if not isinstance(key, str):
        raise CompileError(key, "procedure keys must be strings")
    text = key.strip()
    if not text:
        raise CompileError(key, "procedure key is empty")

    parts = text.split(".")
    if any(not part for part in parts):
        raise CompileError(key, "procedure key has an empty segment")
    segments = [_string_segment(part, key) for part in parts]
    return _finish("procedure", segments, key)


def parse_tuple(key: Any) -> Pattern:
    """Compile an array-style key (list, tuple, or JSON array string)."""
    if isinstance(key, str):
        elements = parse_pattern_string(key)
    elif isinstance(key, (list, tuple)):
        elements = list(key)
    else:
        raise CompileError(key, f"tuple keys must be lists, tuples or strings, not {type(key).__name__}")

    segments = [_element_segment(element, key) for element in elements]
    return _finish("tuple", segments, key)


def parse_pattern_string(text: str) -> list[Any]:
    """Parse the string form of an array key.

    ``'["users", ":id"]'`` parses as JSON; any string that does not start
    with ``[`` is a one-element key::

        parse_pattern_string('["users", ":id"]')  # ["users", ":id"]
        parse_pattern_string("/api/users")        # ["/api/users"]
    """
    if not text.startswith("["):
        return [text]
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CompileError(text, f"invalid JSON array key ({exc.msg})") from None
    if not isinstance(parsed, list):
        raise CompileError(text, "JSON key must be an array")
    return parsed


# -- Segments --


def _string_segment(part: str, key: Any) -> Segment:
    if part == "*":
        return WILDCARD
    if part.startswith(":"):
        name = part[1:]
        if not name:
            raise CompileError(key, "parameter with an empty name")
        if _PARAM_NAME.fullmatch(name) is None:
            raise CompileError(key, f"invalid parameter name {name!r}")
        return Param(name)
    return Literal(part)


def _element_segment(element: Any, key: Any) -> Segment:
    if isinstance(element, _SEGMENT_TYPES):
        return element
    if isinstance(element, str):
        return _string_segment(element, key)
    if isinstance(element, dict):
        return _object_segment(element, key)
    if element is None or isinstance(element, (bool, int, float)):
        return Literal(element)
    if isinstance(element, (list, tuple)):
        return Literal(freeze(element))
    raise CompileError(key, f"unsupported segment type {type(element).__name__}")


def _object_segment(obj: dict[Any, Any], key: Any) -> ObjectPattern:
    fields: list[tuple[str, Segment]] = []
    for name, value in obj.items():
        if not isinstance(name, str):
            raise CompileError(key, f"object field names must be strings, got {name!r}")
        fields.append((name, _element_segment(value, key)))
    fields.sort(key=lambda item: item[0])
    return ObjectPattern(tuple(fields))


def _finish(
    kind: KeyKind,
    segments: list[Segment],
    key: Any,
    *,
    method: str | None = None,
) -> Pattern:
    if kind != "tuple":
        _check_wildcards(segments, key)
    pattern = Pattern(kind=kind, segments=tuple(segments), source=key, method=method)

    seen: set[str] = set()
    for name in pattern.param_names:
        if name in seen:
            raise CompileError(key, f"duplicate parameter name {name!r}")
        seen.add(name)
    return pattern


def _check_wildcards(segments: list[Segment], key: Any) -> None:
    """Path/procedure wildcards anchor a prefix or a suffix, never the middle."""
    positions = [i for i, seg in enumerate(segments) if isinstance(seg, _WildcardType)]
    if not positions:
        return
    if len(positions) > 1:
        raise CompileError(key, "only one wildcard is allowed")
    if positions[0] not in (0, len(segments) - 1):
        raise CompileError(key, "wildcard must be the first or last segment")
