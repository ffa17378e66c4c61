"""Route loaders and actions.

A loader or action is any callable taking ``RouteArgs`` (sync or async).
Wrap one call site::

    user_loader = demo_loader(load_user, fixture={"id": "1", "name": "Demo"},
                              is_enabled=demo_mode_checker())

or a whole route table, matching request paths against fixture keys::

    demo = DemoRoutes(
        loaders={"/users/:id": lambda ctx: {"id": ctx.params["id"]}},
        actions={"/users/:id": MethodHandlers(PUT=update_user, DELETE={"ok": True})},
        is_enabled=demo_mode_checker(),
    )
    routes = demo.wrap(routes)

Loaders are matched as ``GET``; actions by the request's verb. Router
params are merged with the pattern's captures (captures win).
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from functools import wraps
from typing import Any, TypeAlias

from demokit._internal.invoke import invoke
from demokit.config import InterceptorConfig
from demokit.context import ActionContext, LoaderContext
from demokit.handlers import MethodHandlers
from demokit.http.request import Request
from demokit.interceptor import Interceptor, Predicate
from demokit.patterns.matcher import DecodedPath
from demokit.registry import FixtureMatch, FixtureRegistry

logger = logging.getLogger("demokit.adapters")

RouteFunction: TypeAlias = Callable[["RouteArgs"], Any]


@dataclass(frozen=True, slots=True)
class RouteArgs:
    """What the router hands a loader or action."""

    request: Request
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RouteDef:
    """One entry of a (possibly nested) route table.

    A relative ``path`` is joined onto its parent's; an absolute one
    stands on its own. Index and layout routes leave ``path`` unset.
    """

    path: str | None = None
    loader: RouteFunction | None = None
    action: RouteFunction | None = None
    children: tuple["RouteDef", ...] = ()
    name: str | None = None


def join_route_path(parent: str, child: str | None) -> str:
    """Full path of a child route: ``join_route_path("/users", ":id")`` -> ``"/users/:id"``."""
    if not child:
        return parent or "/"
    if child.startswith("/"):
        return child
    if not parent or parent == "/":
        return f"/{child}"
    return f"{parent.rstrip('/')}/{child}"


# -- Single call sites --


def _catch_all(fixture: Any) -> FixtureRegistry:
    registry = FixtureRegistry("path")
    # "/" answers the root path; "*" every other path
    registry.set("/", fixture)
    registry.set("*", fixture)
    return registry


def demo_loader(
    loader: RouteFunction,
    *,
    fixture: Any,
    is_enabled: Predicate = False,
    config: InterceptorConfig | None = None,
) -> Callable[[RouteArgs], Any]:
    """Wrap one loader so demo requests get *fixture* instead.

    The predicate is called with the ``Request``.
    """
    interceptor = Interceptor(_catch_all(fixture), kind="loader", is_enabled=is_enabled, config=config)
    return _wrap_loader(loader, interceptor, route=None, pattern_as_path=False)


def demo_action(
    action: RouteFunction,
    *,
    fixture: Any,
    is_enabled: Predicate = False,
    config: InterceptorConfig | None = None,
) -> Callable[[RouteArgs], Any]:
    """Wrap one action. *fixture* may be a ``MethodHandlers``.

    A verb missing from a ``MethodHandlers`` fixture runs the real action.
    """
    interceptor = Interceptor(_catch_all(fixture), kind="action", is_enabled=is_enabled, config=config)
    return _wrap_action(action, interceptor, route=None, pattern_as_path=False)


def with_demo_loader(
    *,
    fixture: Any,
    is_enabled: Predicate = False,
    config: InterceptorConfig | None = None,
) -> Callable[[RouteFunction], Callable[[RouteArgs], Any]]:
    """Decorator form of ``demo_loader``::

    @with_demo_loader(fixture=[{"id": 1}], is_enabled=switch)
    async def list_users(args: RouteArgs): ...
    """

    def decorator(loader: RouteFunction) -> Callable[[RouteArgs], Any]:
        return demo_loader(loader, fixture=fixture, is_enabled=is_enabled, config=config)

    return decorator


def with_demo_action(
    *,
    fixture: Any,
    is_enabled: Predicate = False,
    config: InterceptorConfig | None = None,
) -> Callable[[RouteFunction], Callable[[RouteArgs], Any]]:
    """Decorator form of ``demo_action``."""

    def decorator(action: RouteFunction) -> Callable[[RouteArgs], Any]:
        return demo_action(action, fixture=fixture, is_enabled=is_enabled, config=config)

    return decorator


# -- Shared wrapping --


def _merged_params(args: RouteArgs, found: FixtureMatch) -> dict[str, Any]:
    return {**args.params, **found.params}


def _wrap_loader(
    loader: RouteFunction,
    interceptor: Interceptor,
    *,
    route: str | None,
    pattern_as_path: bool,
) -> Callable[[RouteArgs], Any]:
    @wraps(loader)
    async def wrapped(args: RouteArgs) -> Any:
        request = args.request

        def build_context(found: FixtureMatch) -> LoaderContext:
            return LoaderContext(
                params=_merged_params(args, found),
                request=request,
                path=str(found.pattern) if pattern_as_path else request.path,
                route=route,
            )

        return await interceptor.intercept(
            DecodedPath(request.path),
            lambda: invoke(loader, args),
            build_context,
            method="GET",
            predicate_args=(request,),
        )

    return wrapped


def _wrap_action(
    action: RouteFunction,
    interceptor: Interceptor,
    *,
    route: str | None,
    pattern_as_path: bool,
) -> Callable[[RouteArgs], Any]:
    @wraps(action)
    async def wrapped(args: RouteArgs) -> Any:
        request = args.request

        async def build_context(found: FixtureMatch) -> ActionContext:
            form_data = await request.form() if request.is_form else None
            return ActionContext(
                params=_merged_params(args, found),
                request=request,
                path=str(found.pattern) if pattern_as_path else request.path,
                method=request.method,
                form_data=form_data,
                route=route,
            )

        return await interceptor.intercept(
            DecodedPath(request.path),
            lambda: invoke(action, args),
            build_context,
            method=request.method,
            predicate_args=(request,),
        )

    return wrapped


# -- Route tables --


class DemoRoutes:
    """Loader and action fixtures for a whole route table.

    Both registries are read on every call, so fixtures set after
    ``wrap()`` apply from the next request on. The two interceptors share
    one predicate and one config.
    """

    __slots__ = ("actions", "config", "loaders", "_action_interceptor", "_loader_interceptor")

    def __init__(
        self,
        loaders: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        actions: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        is_enabled: Predicate = False,
        config: InterceptorConfig | None = None,
    ) -> None:
        self.config = config or InterceptorConfig()
        self.loaders = FixtureRegistry("path", loaders)
        self.actions = FixtureRegistry("path", actions)
        self._loader_interceptor = Interceptor(
            self.loaders, kind="loader", is_enabled=is_enabled, config=self.config
        )
        self._action_interceptor = Interceptor(
            self.actions, kind="action", is_enabled=is_enabled, config=self.config
        )

    # -- Fixture management --

    def set_loader(self, path: str, fixture: Any) -> None:
        self.loaders.set(path, fixture)

    def set_action(self, path: str, fixture: Any) -> None:
        """Register an action fixture; pass a ``MethodHandlers`` to key it by verb."""
        self.actions.set(path, fixture)

    def set_action_methods(self, path: str, handlers: MethodHandlers | Mapping[str, Any]) -> None:
        self.actions.set_methods(path, handlers)

    def remove_loader(self, path: str) -> bool:
        return self.loaders.remove(path)

    def remove_action(self, path: str) -> bool:
        return self.actions.remove(path)

    def clear(self) -> None:
        """Remove every loader and action fixture."""
        self.loaders.clear()
        self.actions.clear()

    # -- Wrapping --

    def wrap_loader(self, loader: RouteFunction, *, route: str | None = None) -> Callable[[RouteArgs], Any]:
        return _wrap_loader(loader, self._loader_interceptor, route=route, pattern_as_path=True)

    def wrap_action(self, action: RouteFunction, *, route: str | None = None) -> Callable[[RouteArgs], Any]:
        return _wrap_action(action, self._action_interceptor, route=route, pattern_as_path=True)

    def wrap(self, routes: Iterable[RouteDef], parent: str = "") -> list[RouteDef]:
        """Return a copy of *routes* with every loader and action wrapped.

        Children are wrapped recursively; routes without a loader or action
        are copied unchanged apart from their children.
        """
        wrapped: list[RouteDef] = []
        for route in routes:
            full_path = join_route_path(parent, route.path)
            loader = route.loader and self.wrap_loader(route.loader, route=full_path)
            action = route.action and self.wrap_action(route.action, route=full_path)
            children = tuple(self.wrap(route.children, full_path))
            wrapped.append(replace(route, loader=loader, action=action, children=children))
        logger.debug("Wrapped %d route(s) under %r", len(wrapped), parent or "/")
        return wrapped

    def __repr__(self) -> str:
        return f"DemoRoutes(loaders={len(self.loaders)}, actions={len(self.actions)})"
