"""Patterns — fixture keys compiled once, matched in a single linear walk.

Keys are compiled at registration time; a malformed key raises
``CompileError`` then and there instead of never matching at request time.
"""

from demokit.patterns.compiler import compile_pattern, parse_path, parse_procedure, parse_tuple
from demokit.patterns.matcher import (
    NO_MATCH,
    DecodedPath,
    MatchResult,
    match,
    match_procedure,
    to_identifier,
)
from demokit.patterns.segments import (
    WILDCARD,
    KeyKind,
    Literal,
    ObjectPattern,
    Param,
    Pattern,
    Segment,
    Wildcard,
)

__all__ = [
    "NO_MATCH",
    "WILDCARD",
    "DecodedPath",
    "KeyKind",
    "Literal",
    "MatchResult",
    "ObjectPattern",
    "Param",
    "Pattern",
    "Segment",
    "Wildcard",
    "compile_pattern",
    "match",
    "match_procedure",
    "parse_path",
    "parse_procedure",
    "parse_tuple",
    "to_identifier",
]
