"""Interceptor — the per-call decision shared by every adapter.

One call through ``Interceptor.intercept`` goes::

    demo mode off               -> real()
    no fixture (or no verb)     -> on_missing(kind, identifier); real()
    fixture                     -> context = build_context(match)
                                   sleep(delay); on_demo(context)
                                   execute(handler, context)

The registry is read fresh on every call, so fixtures registered at
runtime apply from the next call on. A fixture's exception reaches the
caller unchanged; it never triggers the fallback.

Cancellation:
    The delay and the fixture run inside the caller's task. Cancelling
    that task (a cancel scope, a timeout, a dropped request) interrupts
    them exactly as it would interrupt the real call.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

import anyio

from demokit._internal.invoke import invoke, invoke_hook
from demokit.config import InterceptorConfig
from demokit.errors import FixtureNotFound
from demokit.handlers import execute
from demokit.registry import FixtureMatch, FixtureRegistry

logger = logging.getLogger("demokit.interceptor")

# Demo-mode predicate: a constant, or a (possibly async) function of the call
Predicate: TypeAlias = bool | Callable[..., bool | Awaitable[bool]]

# Deferred real call; None when the call site has nothing to fall back to
RealCall: TypeAlias = Callable[[], Any] | None

# Builds the handler context from the winning match
ContextBuilder: TypeAlias = Callable[[FixtureMatch], Any]


class Interceptor:
    """Decides, per call, between a fixture and the real implementation.

    Args:
        registry: Fixtures consulted on every call. Shared by reference.
        kind: Label passed to ``on_missing`` and used in log records
            (``"loader"``, ``"action"``, ``"query"``, ``"procedure"``...).
            Defaults to the registry's key kind.
        is_enabled: Demo-mode predicate. A bool, or a sync/async callable
            invoked with the call's ``predicate_args``.
        config: Delay and side-channel hooks.
    """

    __slots__ = ("_is_enabled", "config", "kind", "registry")

    def __init__(
        self,
        registry: FixtureRegistry,
        *,
        kind: str | None = None,
        is_enabled: Predicate = True,
        config: InterceptorConfig | None = None,
    ) -> None:
        self.registry = registry
        self.kind = kind or registry.kind
        self._is_enabled = is_enabled
        self.config = config or InterceptorConfig()

    async def is_active(self, *predicate_args: Any) -> bool:
        """Evaluate the demo-mode predicate for one call."""
        if isinstance(self._is_enabled, bool):
            return self._is_enabled
        return bool(await invoke(self._is_enabled, *predicate_args))

    def resolve(self, identifier: Any, method: str | None = None) -> FixtureMatch | None:
        """Registry lookup, verb-aware when *method* is given."""
        if method is None:
            return self.registry.find(identifier)
        return self.registry.find_for_method(identifier, method)

    async def intercept(
        self,
        identifier: Any,
        real: RealCall,
        build_context: ContextBuilder,
        *,
        method: str | None = None,
        predicate_args: tuple[Any, ...] = (),
    ) -> Any:
        """Answer one call with a fixture or with ``real()``.

        Raises:
            FixtureNotFound: If no fixture applies and *real* is ``None``.
        """
        if not await self.is_active(*predicate_args):
            return await self.fall_back(identifier, real)

        found = self.resolve(identifier, method)
        if found is None:
            logger.debug("No %s fixture for %r (method=%s)", self.kind, identifier, method)
            await invoke_hook(self.config.on_missing, self.kind, identifier)
            return await self.fall_back(identifier, real)

        logger.debug("Serving %s fixture %s for %r", self.kind, found.pattern, identifier)
        context = await invoke(build_context, found)
        if self.config.delay > 0:
            await anyio.sleep(self.config.delay)
        await invoke_hook(self.config.on_demo, context)
        return await execute(found.handler, context)

    async def fall_back(self, identifier: Any, real: RealCall) -> Any:
        """Run the real call, or raise ``FixtureNotFound`` when there is none."""
        if real is None:
            raise FixtureNotFound(identifier)
        return await invoke(real)

    def __repr__(self) -> str:
        return f"Interceptor({self.kind!r}, {self.registry!r})"
