"""Fixture handlers and the handler executor.

A fixture handler is one of three tagged variants, decided once at
registration time::

    Static(value)   returned as-is
    Sync(fn)        called with the match context
    Async(fn)       called with the match context and awaited

``as_handler`` picks the variant for a raw value (coroutine functions
become ``Async``, other callables ``Sync``, anything else ``Static``).
A static payload that is itself callable must be wrapped in ``Static``
explicitly.

Method-keyed fixtures for mutation calls are declared with
``MethodHandlers``; the registry never guesses from a payload's shape.
"""

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeAlias

from demokit._internal.invoke import invoke, is_async_callable
from demokit.errors import ConfigurationError

# Verbs a method-keyed fixture may answer. Reads (GET) are never method-keyed.
MUTATION_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class Static:
    """A fixed payload."""

    value: Any


@dataclass(frozen=True, slots=True)
class Sync:
    """A plain function of the match context."""

    fn: Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class Async:
    """A coroutine function of the match context."""

    fn: Callable[[Any], Awaitable[Any]]


Handler: TypeAlias = Static | Sync | Async


def as_handler(value: Any) -> Handler:
    """Coerce a raw fixture value into a ``Handler`` variant.

    Raises:
        ConfigurationError: If *value* is a ``MethodHandlers`` map, which is
            registered through ``FixtureRegistry.set_methods`` instead.
    """
    if isinstance(value, (Static, Sync, Async)):
        return value
    if isinstance(value, MethodHandlers):
        msg = "MethodHandlers is not a single handler; register it with set_methods()"
        raise ConfigurationError(msg)
    if is_async_callable(value):
        return Async(value)
    if callable(value):
        return Sync(value)
    return Static(value)


async def execute(handler: Handler, context: Any) -> Any:
    """Run *handler* against *context* and return its result.

    Exceptions raised by the fixture function propagate unchanged.
    """
    match handler:
        case Static(value=value):
            return value
        case Sync(fn=fn):
            # A sync function may still hand back an awaitable
            return await invoke(fn, context)
        case Async(fn=fn):
            return await fn(context)
    msg = f"not a fixture handler: {handler!r}"
    raise TypeError(msg)


def describe(handler: "Handler | MethodHandlers") -> str:
    """Short label for tables and log records: ``static``, ``async``, ``methods(PUT)``."""
    match handler:
        case MethodHandlers():
            return f"methods({', '.join(sorted(handler.methods))})"
        case Static():
            return "static"
        case Sync():
            return "sync"
        case Async():
            return "async"
    return type(handler).__name__


class MethodHandlers:
    """A fixture keyed by HTTP verb, for action and mutation call sites.

    Construct from a mapping, keywords, or both::

        MethodHandlers({"POST": create_user})
        MethodHandlers(PUT=update_user, DELETE={"ok": True})

    Verbs are case-insensitive and limited to ``POST``, ``PUT``, ``PATCH``
    and ``DELETE``. A verb with no handler means "no fixture" for that
    verb, so the caller falls through to the real implementation.
    """

    __slots__ = ("_handlers",)

    def __init__(self, handlers: Mapping[str, Any] | None = None, /, **verbs: Any) -> None:
        normalized: dict[str, Handler] = {}
        for verb, value in {**(handlers or {}), **verbs}.items():
            method = verb.upper()
            if method not in MUTATION_METHODS:
                allowed = ", ".join(sorted(MUTATION_METHODS))
                msg = f"Method-keyed fixtures accept {allowed}; got {verb!r}"
                raise ConfigurationError(msg)
            normalized[method] = as_handler(value)
        if not normalized:
            msg = "MethodHandlers needs at least one verb"
            raise ConfigurationError(msg)
        self._handlers: Mapping[str, Handler] = MappingProxyType(normalized)

    @property
    def methods(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def get(self, method: str) -> Handler | None:
        """Handler for *method*, or ``None`` when the verb has no fixture."""
        return self._handlers.get(method.upper())

    def __contains__(self, method: object) -> bool:
        return isinstance(method, str) and method.upper() in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MethodHandlers):
            return NotImplemented
        return dict(self._handlers) == dict(other._handlers)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MethodHandlers({', '.join(sorted(self._handlers))})"
