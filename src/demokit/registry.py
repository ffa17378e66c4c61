"""Fixture registry — ordered, copy-on-write collection of compiled fixtures.

Entries keep registration order: on ambiguity the first-registered
pattern wins. Lookups try an exact-match map first (patterns made only
of literals), then scan the remaining patterns in order::

    registry = FixtureRegistry("path")
    registry.set("/users/:id", lambda ctx: {"id": ctx.params["id"]})
    registry.set("/users/me", {"id": "me"})

    registry.find("/users/me").handler    # the static {"id": "me"}
    registry.find("/users/42").params     # {"id": "42"}

Thread safety:
    Every mutation builds a new immutable snapshot and swaps it in under
    a ``threading.Lock``. Readers take whatever snapshot is current and
    never lock, so an in-flight lookup always sees a consistent table.
"""

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from demokit.errors import CompileError, ConfigurationError
from demokit.handlers import Handler, MethodHandlers, as_handler
from demokit.patterns.compiler import compile_pattern
from demokit.patterns.matcher import MatchResult, match, to_identifier
from demokit.patterns.segments import KEY_KINDS, KeyKind, Pattern, exact_key

logger = logging.getLogger("demokit.registry")


@dataclass(frozen=True, slots=True)
class FixtureEntry:
    """One registered fixture: a compiled pattern and what it answers with.

    Exactly one of ``handler`` and ``methods`` is set. ``methods`` marks a
    method-keyed fixture, declared by the caller through ``set_methods``.
    """

    pattern: Pattern
    handler: Handler | None = None
    methods: MethodHandlers | None = None

    @property
    def is_method_keyed(self) -> bool:
        return self.methods is not None

    def handler_for(self, method: str | None) -> Handler | None:
        """Resolve the handler for *method*.

        Plain entries answer every verb. Method-keyed entries answer only
        their declared verbs; a call with no verb gets nothing.
        """
        if self.methods is None:
            return self.handler
        if method is None:
            return None
        return self.methods.get(method)


@dataclass(frozen=True, slots=True)
class FixtureMatch:
    """A successful lookup: the entry, its resolved handler, and captures."""

    entry: FixtureEntry
    handler: Handler
    result: MatchResult

    @property
    def pattern(self) -> Pattern:
        return self.entry.pattern

    @property
    def params(self) -> dict[str, Any]:
        return self.result.params


@dataclass(frozen=True, slots=True)
class _Snapshot:
    entries: tuple[FixtureEntry, ...] = ()
    # literal_key -> indices into entries, in registration order
    exact: Mapping[tuple[Any, ...], tuple[int, ...]] = field(default_factory=lambda: MappingProxyType({}))


def _build_snapshot(entries: list[FixtureEntry]) -> _Snapshot:
    exact: dict[tuple[Any, ...], tuple[int, ...]] = {}
    for index, entry in enumerate(entries):
        if entry.pattern.is_exact:
            key = entry.pattern.literal_key()
            exact[key] = (*exact.get(key, ()), index)
    return _Snapshot(entries=tuple(entries), exact=MappingProxyType(exact))


class FixtureRegistry:
    """Ordered fixtures of a single key kind.

    ``kind`` is ``"path"``, ``"procedure"`` or ``"tuple"`` and decides how
    both fixture keys and call identifiers are interpreted. *fixtures* is
    an optional initial mapping (or iterable of pairs) registered in
    order; ``MethodHandlers`` values register as method-keyed entries.

    Raises:
        CompileError: If any initial key is malformed.
    """

    __slots__ = ("_kind", "_lock", "_snapshot")

    def __init__(
        self,
        kind: KeyKind = "path",
        fixtures: Mapping[Any, Any] | Iterable[tuple[Any, Any]] | None = None,
    ) -> None:
        if kind not in KEY_KINDS:
            msg = f"Unknown key kind {kind!r}; expected one of {sorted(KEY_KINDS)}"
            raise ConfigurationError(msg)
        self._kind: KeyKind = kind
        self._lock = threading.Lock()
        self._snapshot = _Snapshot()
        if fixtures is not None:
            self.update(fixtures)

    @property
    def kind(self) -> KeyKind:
        return self._kind

    # -- Mutation --

    def set(self, key: Any, handler: Any) -> Pattern:
        """Register *handler* for *key*, returning the compiled pattern.

        A ``MethodHandlers`` value registers a method-keyed entry. Replacing
        a fixture whose key compiles to the same pattern keeps the
        original position in the scan order.
        """
        pattern = compile_pattern(key, self._kind)
        if isinstance(handler, MethodHandlers):
            entry = FixtureEntry(pattern=pattern, methods=handler)
        else:
            entry = FixtureEntry(pattern=pattern, handler=as_handler(handler))
        self._store(entry)
        return pattern

    def set_methods(self, key: Any, handlers: MethodHandlers | Mapping[str, Any]) -> Pattern:
        """Register a method-keyed fixture (``{"POST": ..., "PUT": ...}``).

        Raises:
            ConfigurationError: If a verb is not POST, PUT, PATCH or DELETE.
        """
        methods = handlers if isinstance(handlers, MethodHandlers) else MethodHandlers(handlers)
        pattern = compile_pattern(key, self._kind)
        self._store(FixtureEntry(pattern=pattern, methods=methods))
        return pattern

    def update(self, fixtures: Mapping[Any, Any] | Iterable[tuple[Any, Any]]) -> None:
        """Register several fixtures in iteration order.

        Every key is compiled before anything is stored, so one malformed
        key leaves the registry untouched.
        """
        items = fixtures.items() if isinstance(fixtures, Mapping) else fixtures
        staged: list[FixtureEntry] = []
        for key, value in items:
            pattern = compile_pattern(key, self._kind)
            if isinstance(value, MethodHandlers):
                staged.append(FixtureEntry(pattern=pattern, methods=value))
            else:
                staged.append(FixtureEntry(pattern=pattern, handler=as_handler(value)))
        with self._lock:
            entries = list(self._snapshot.entries)
            for entry in staged:
                _upsert(entries, entry)
            self._snapshot = _build_snapshot(entries)
        logger.debug("Registered %d %s fixture(s)", len(staged), self._kind)

    def remove(self, key: Any) -> bool:
        """Remove the fixture registered under *key*. Returns ``True`` if found."""
        pattern = compile_pattern(key, self._kind)
        with self._lock:
            entries = [e for e in self._snapshot.entries if e.pattern != pattern]
            if len(entries) == len(self._snapshot.entries):
                return False
            self._snapshot = _build_snapshot(entries)
        logger.debug("Removed %s fixture %s", self._kind, pattern)
        return True

    def clear(self) -> None:
        """Remove every fixture."""
        with self._lock:
            self._snapshot = _Snapshot()
        logger.debug("Cleared %s fixtures", self._kind)

    def _store(self, entry: FixtureEntry) -> None:
        with self._lock:
            entries = list(self._snapshot.entries)
            replaced = _upsert(entries, entry)
            self._snapshot = _build_snapshot(entries)
        logger.debug(
            "%s %s fixture %s",
            "Replaced" if replaced else "Registered",
            self._kind,
            entry.pattern,
        )

    # -- Lookup --

    def find(self, identifier: Any) -> FixtureMatch | None:
        """First fixture matching *identifier*, ignoring HTTP verbs.

        Method-keyed entries and verb-prefixed path keys are skipped: they
        only answer ``find_for_method``.
        """
        return self._lookup(identifier, method=None)

    def find_for_method(self, identifier: Any, method: str) -> FixtureMatch | None:
        """First fixture matching *identifier*, resolved for *method*.

        If the first structurally matching entry has no handler for
        *method*, the result is ``None`` ("no fixture"), not the next entry.
        """
        return self._lookup(identifier, method=method.upper())

    def _lookup(self, identifier: Any, method: str | None) -> FixtureMatch | None:
        snapshot = self._snapshot
        if not snapshot.entries:
            return None
        elements = to_identifier(self._kind, identifier)

        # Exact patterns win over the ordered scan, whatever their position
        for index in snapshot.exact.get(tuple(exact_key(element) for element in elements), ()):
            entry = snapshot.entries[index]
            if _answers(entry, method):
                result = match(entry.pattern, elements)
                if result.matched:
                    return _resolve(entry, result, method)

        for entry in snapshot.entries:
            if not _answers(entry, method):
                continue
            result = match(entry.pattern, elements)
            if result.matched:
                return _resolve(entry, result, method)
        return None

    # -- Introspection --

    @property
    def entries(self) -> tuple[FixtureEntry, ...]:
        """Current entries in registration order."""
        return self._snapshot.entries

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        return tuple(entry.pattern for entry in self._snapshot.entries)

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    def __iter__(self) -> Iterator[FixtureEntry]:
        return iter(self._snapshot.entries)

    def __contains__(self, key: object) -> bool:
        try:
            pattern = compile_pattern(key, self._kind)
        except CompileError:
            return False
        return any(entry.pattern == pattern for entry in self._snapshot.entries)

    def __repr__(self) -> str:
        return f"FixtureRegistry({self._kind!r}, {len(self)} fixture(s))"


def _upsert(entries: list[FixtureEntry], entry: FixtureEntry) -> bool:
    for index, existing in enumerate(entries):
        if existing.pattern == entry.pattern:
            entries[index] = entry
            return True
    entries.append(entry)
    return False


def _answers(entry: FixtureEntry, method: str | None) -> bool:
    """Whether *entry* takes part in a lookup for *method* at all."""
    pinned = entry.pattern.method
    if method is None:
        return pinned is None and not entry.is_method_keyed
    return pinned is None or pinned == method


def _resolve(entry: FixtureEntry, result: MatchResult, method: str | None) -> FixtureMatch | None:
    handler = entry.handler_for(method)
    if handler is None:
        logger.debug("Fixture %s has no handler for %s", entry.pattern, method)
        return None
    return FixtureMatch(entry=entry, handler=handler, result=result)
