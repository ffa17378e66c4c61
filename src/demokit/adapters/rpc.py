"""RPC links for dot-notation procedures (tRPC-style).

A link is ``async link(op, next) -> OperationResult``; ``compose_links``
chains links in front of a terminal transport. The demo link answers
operations from procedure fixtures and forwards everything else::

    fixtures = normalize_fixtures({
        "user": {
            "get": lambda ctx: {"id": ctx.input["id"], "name": "Demo"},
            "list": [{"id": 1}],
        },
        "post.*": [],
    })
    call = compose_links([demo_link(fixtures, is_enabled=switch)], http_terminal)
    await call(Operation("user.get", {"id": 7}))

Fixture keys are procedure patterns: exact paths, ``"user.*"`` (prefix)
or ``"*.get"`` (suffix). ``include``/``exclude`` take the same globs;
exclude wins, and an empty include means every procedure.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from demokit.config import InterceptorConfig
from demokit.context import ProcedureContext, ProcedureType
from demokit.demo_mode import DemoSwitch
from demokit.errors import ConfigurationError
from demokit.handlers import Async, MethodHandlers, Static, Sync
from demokit.interceptor import Interceptor, Predicate
from demokit.patterns.compiler import parse_procedure
from demokit.patterns.matcher import match_procedure
from demokit.registry import FixtureEntry, FixtureMatch, FixtureRegistry

logger = logging.getLogger("demokit.adapters")


@dataclass(frozen=True, slots=True)
class Operation:
    """One procedure call travelling down a link chain."""

    path: str
    input: Any = None
    type: ProcedureType = "query"
    id: int = 0
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """What a link chain produces for an operation."""

    data: Any


Next: TypeAlias = Callable[[Operation], Awaitable[OperationResult]]
Link: TypeAlias = Callable[[Operation, Next], Awaitable[OperationResult]]


def compose_links(links: Sequence[Link], terminal: Next) -> Next:
    """Chain *links* in order in front of *terminal*.

    The first link sees the operation first; each link's ``next`` is the
    rest of the chain.
    """
    call = terminal
    for link in reversed(links):
        call = _bind(link, call)
    return call


def _bind(link: Link, next_call: Next) -> Next:
    async def call(op: Operation) -> OperationResult:
        return await link(op, next_call)

    return call


# -- Fixture maps --


def _is_leaf(value: Any) -> bool:
    if isinstance(value, (Static, Sync, Async, MethodHandlers)) or callable(value):
        return True
    if not isinstance(value, Mapping):
        return True
    # A dict of plain values is a static payload, not a namespace
    return not any(
        callable(v) or isinstance(v, (Mapping, list, tuple, Static, Sync, Async)) for v in value.values()
    )


def normalize_fixtures(fixtures: Mapping[str, Any] | None) -> dict[str, Any]:
    """Flatten a nested fixture map into dotted procedure paths.

    ``{"user": {"get": fn}}`` becomes ``{"user.get": fn}``. A nested dict
    counts as a namespace when any of its values is a function, a list,
    a dict or a handler; otherwise it is a static payload. Already-dotted
    keys pass through.
    """
    flat: dict[str, Any] = {}

    def walk(node: Mapping[str, Any], prefix: str) -> None:
        for name, value in node.items():
            path = f"{prefix}.{name}" if prefix else name
            if _is_leaf(value):
                flat[path] = value
            else:
                walk(value, path)

    walk(fixtures or {}, "")
    return flat


def should_intercept(path: str, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> bool:
    """Whether a procedure is eligible for fixtures under *include*/*exclude* globs."""
    if any(match_procedure(path, glob) for glob in exclude):
        return False
    include = tuple(include)
    if include:
        return any(match_procedure(path, glob) for glob in include)
    return True


def filter_fixtures(
    fixtures: Mapping[str, Any],
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> dict[str, Any]:
    """Keep the fixtures whose path passes ``should_intercept``."""
    include, exclude = tuple(include), tuple(exclude)
    return {path: value for path, value in fixtures.items() if should_intercept(path, include, exclude)}


def merge_fixtures(*maps: Mapping[str, Any]) -> dict[str, Any]:
    """Merge fixture maps left to right; later maps win."""
    merged: dict[str, Any] = {}
    for fixture_map in maps:
        merged.update(fixture_map)
    return merged


def fixture_paths(fixtures: Mapping[str, Any] | FixtureRegistry) -> list[str]:
    """Registered procedure keys, in order."""
    if isinstance(fixtures, FixtureRegistry):
        return [str(pattern) for pattern in fixtures.patterns]
    return list(fixtures)


def _as_procedure_registry(fixtures: FixtureRegistry | Mapping[str, Any] | None) -> FixtureRegistry:
    if isinstance(fixtures, FixtureRegistry):
        if fixtures.kind != "procedure":
            msg = f"RPC fixtures need a 'procedure' registry, got {fixtures.kind!r}"
            raise ConfigurationError(msg)
        return fixtures
    return FixtureRegistry("procedure", normalize_fixtures(fixtures))


def _check_globs(globs: Iterable[str]) -> tuple[str, ...]:
    checked = tuple(globs)
    for glob in checked:
        parse_procedure(glob)
    return checked


# -- Links --


def demo_link(
    fixtures: FixtureRegistry | Mapping[str, Any] | None = None,
    *,
    is_enabled: Predicate = False,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    config: InterceptorConfig | None = None,
) -> Link:
    """A link that answers operations from procedure fixtures.

    Nested fixture maps are flattened with ``normalize_fixtures``.

    Raises:
        CompileError: If a fixture key or an include/exclude glob is malformed.
    """
    interceptor = Interceptor(
        _as_procedure_registry(fixtures), kind="procedure", is_enabled=is_enabled, config=config
    )
    include, exclude = _check_globs(include), _check_globs(exclude)

    async def link(op: Operation, next_call: Next) -> OperationResult:
        if not should_intercept(op.path, include, exclude):
            logger.debug("Procedure %s excluded from fixtures", op.path)
            return await next_call(op)

        def build_context(found: FixtureMatch) -> ProcedureContext:
            return ProcedureContext(path=op.path, input=op.input, type=op.type, params=dict(found.params))

        async def forward() -> OperationResult:
            return await next_call(op)

        result = await interceptor.intercept(op.path, forward, build_context)
        return result if isinstance(result, OperationResult) else OperationResult(result)

    return link


class DemoLink:
    """A demo link with its own switch and mutable fixtures.

    Use ``link`` in a chain; flip demo mode and edit fixtures at runtime.
    """

    __slots__ = ("link", "registry", "switch")

    def __init__(
        self,
        fixtures: FixtureRegistry | Mapping[str, Any] | None = None,
        *,
        enabled: bool = False,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        config: InterceptorConfig | None = None,
    ) -> None:
        self.registry = _as_procedure_registry(fixtures)
        self.switch = DemoSwitch(enabled)
        self.link = demo_link(
            self.registry, is_enabled=self.switch, include=include, exclude=exclude, config=config
        )

    def enable(self) -> None:
        self.switch.enable()

    def disable(self) -> None:
        self.switch.disable()

    def toggle(self) -> bool:
        return self.switch.toggle()

    def is_enabled(self) -> bool:
        return self.switch.is_enabled()

    def set_fixture(self, path: str, fixture: Any) -> None:
        self.registry.set(path, fixture)

    def remove_fixture(self, path: str) -> bool:
        return self.registry.remove(path)

    def get_fixtures(self) -> tuple[FixtureEntry, ...]:
        return self.registry.entries

    def clear_fixtures(self) -> None:
        self.registry.clear()

    def __repr__(self) -> str:
        return f"DemoLink(enabled={self.switch.enabled}, fixtures={len(self.registry)})"
