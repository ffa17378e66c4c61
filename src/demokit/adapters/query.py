"""Query functions and mutations keyed by tuple query keys.

A query function receives the query key and returns data. The demo
version looks the key up among tuple fixtures::

    fixtures = {
        ("users",): [{"id": 1}],
        ("users", ":id"): lambda ctx: {"id": ctx.params["id"]},
        ("todos", {"status": ":status"}): todos_by_status,
    }
    query_fn = demo_query_fn(fixtures, is_enabled=switch, fallback=fetch_from_api)
    await query_fn(["users", 42])   # {"id": 42}

Without a fallback, a miss (or demo mode being off) raises
``FixtureNotFound``. ``DemoQueryClient`` bundles a registry, a
``DemoSwitch`` and the query function for runtime toggling.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import replace
from functools import wraps
from typing import Any, TypeAlias

from demokit._internal.invoke import invoke, invoke_hook
from demokit.config import InterceptorConfig
from demokit.context import MutationContext, QueryContext
from demokit.demo_mode import DemoSwitch
from demokit.errors import ConfigurationError
from demokit.handlers import Static
from demokit.interceptor import Interceptor, Predicate
from demokit.patterns.matcher import to_identifier
from demokit.patterns.segments import Literal, Pattern
from demokit.registry import FixtureEntry, FixtureMatch, FixtureRegistry

logger = logging.getLogger("demokit.adapters")

QueryFixtures: TypeAlias = FixtureRegistry | Mapping[Any, Any] | Iterable[tuple[Any, Any]]
QueryFn: TypeAlias = Callable[[Any], Awaitable[Any]]


def as_tuple_registry(fixtures: QueryFixtures | None) -> FixtureRegistry:
    """Use *fixtures* as-is if it is a tuple-kind registry, else build one."""
    if isinstance(fixtures, FixtureRegistry):
        if fixtures.kind != "tuple":
            msg = f"Query fixtures need a 'tuple' registry, got {fixtures.kind!r}"
            raise ConfigurationError(msg)
        return fixtures
    return FixtureRegistry("tuple", fixtures)


def demo_query_fn(
    fixtures: QueryFixtures,
    *,
    is_enabled: Predicate = False,
    fallback: Callable[[Any], Any] | None = None,
    config: InterceptorConfig | None = None,
) -> QueryFn:
    """Build a query function answering from *fixtures* in demo mode.

    *fallback* is the real query function, called with the original key.
    """
    interceptor = Interceptor(
        as_tuple_registry(fixtures), kind="query", is_enabled=is_enabled, config=config
    )

    async def query_fn(query_key: Any) -> Any:
        key = to_identifier("tuple", query_key)

        def build_context(found: FixtureMatch) -> QueryContext:
            return QueryContext(query_key=key, params=dict(found.params), match=found.result)

        real = None if fallback is None else (lambda: invoke(fallback, query_key))
        return await interceptor.intercept(key, real, build_context)

    return query_fn


def demo_mutation(
    mutation_fn: Callable[[Any], Any],
    *,
    fixture: Any = None,
    is_enabled: Predicate = False,
    name: str | None = None,
    mutation_key: Iterable[Any] | None = None,
    config: InterceptorConfig | None = None,
) -> Callable[[Any], Awaitable[Any]]:
    """Wrap a mutation function so demo calls get *fixture* instead.

    ``fixture=None`` means "no fixture": demo calls log a warning and run
    the real mutation. Wrap a literal ``None`` payload as ``Static(None)``.
    """
    label = name or getattr(mutation_fn, "__name__", None) or "mutation"
    key = tuple(mutation_key) if mutation_key is not None else None
    registry = FixtureRegistry("tuple")
    if fixture is not None:
        registry.set([label], fixture)

    cfg = config or InterceptorConfig()
    user_on_missing = cfg.on_missing

    async def warn_missing(kind: str, identifier: Any) -> None:
        logger.warning("No mutation fixture for %r; running the real mutation", label)
        await invoke_hook(user_on_missing, kind, identifier)

    interceptor = Interceptor(
        registry,
        kind="mutation",
        is_enabled=is_enabled,
        config=replace(cfg, on_missing=warn_missing),
    )

    @wraps(mutation_fn)
    async def wrapped(variables: Any = None) -> Any:
        def build_context(found: FixtureMatch) -> MutationContext:
            return MutationContext(variables=variables, name=label, mutation_key=key)

        return await interceptor.intercept(
            (label,), lambda: invoke(mutation_fn, variables), build_context
        )

    return wrapped


class DemoQueryClient:
    """Query fixtures plus an in-process demo switch.

    ``query_fn`` is the function to install as the default query function
    of a cache client. Fixtures can be changed while the client is in use.
    """

    __slots__ = ("config", "query_fn", "registry", "switch")

    def __init__(
        self,
        fixtures: QueryFixtures | None = None,
        *,
        enabled: bool = False,
        fallback: Callable[[Any], Any] | None = None,
        config: InterceptorConfig | None = None,
        switch: DemoSwitch | None = None,
    ) -> None:
        self.registry = as_tuple_registry(fixtures)
        self.switch = switch or DemoSwitch(enabled)
        self.config = config or InterceptorConfig()
        self.query_fn = demo_query_fn(
            self.registry, is_enabled=self.switch, fallback=fallback, config=self.config
        )

    # -- Demo mode --

    def enable(self) -> None:
        self.switch.enable()

    def disable(self) -> None:
        self.switch.disable()

    def toggle(self) -> bool:
        return self.switch.toggle()

    def is_enabled(self) -> bool:
        return self.switch.is_enabled()

    # -- Fixtures --

    def set_fixture(self, key: Any, fixture: Any) -> Pattern:
        return self.registry.set(key, fixture)

    def remove_fixture(self, key: Any) -> bool:
        return self.registry.remove(key)

    def clear_fixtures(self) -> None:
        self.registry.clear()

    def get_fixtures(self) -> tuple[FixtureEntry, ...]:
        return self.registry.entries

    def static_fixtures(self) -> list[tuple[tuple[Any, ...], Any]]:
        """``(query_key, data)`` for every parameter-free static fixture.

        These are the entries a cache can be pre-populated with when demo
        mode turns on.
        """
        seeded: list[tuple[tuple[Any, ...], Any]] = []
        for entry in self.registry.entries:
            if entry.pattern.is_exact and isinstance(entry.handler, Static):
                key = tuple(seg.plain for seg in entry.pattern.segments if isinstance(seg, Literal))
                seeded.append((key, entry.handler.value))
        return seeded

    # -- Mutations --

    def mutation(
        self,
        mutation_fn: Callable[[Any], Any],
        *,
        fixture: Any = None,
        name: str | None = None,
        mutation_key: Iterable[Any] | None = None,
    ) -> Callable[[Any], Awaitable[Any]]:
        """``demo_mutation`` sharing this client's switch and config."""
        return demo_mutation(
            mutation_fn,
            fixture=fixture,
            is_enabled=self.switch,
            name=name,
            mutation_key=mutation_key,
            config=self.config,
        )

    async def fetch(self, query_key: Any) -> Any:
        """Run the query function for *query_key*."""
        return await self.query_fn(query_key)

    def __repr__(self) -> str:
        return f"DemoQueryClient(enabled={self.switch.enabled}, fixtures={len(self.registry)})"
