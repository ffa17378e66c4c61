"""SWR-style fetchers and fetcher middleware.

Keys are strings, lists, or callables returning either (``None`` means
"not ready, do not fetch"). A string key is a one-element tuple key, so
fixtures can be written as plain strings or as JSON-array strings::

    fixtures = {
        "/api/users": [{"id": 1}],
        '["/api/users", ":id"]': lambda ctx: {"id": ctx.params["id"]},
    }
    fetcher = demo_fetcher(fixtures, is_enabled=switch, fallback=http_get)

``demo_middleware`` wraps whatever fetcher the next layer was given,
leaving calls without a key (or without a fetcher) untouched.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

from demokit._internal.invoke import invoke
from demokit.adapters.query import QueryFixtures, as_tuple_registry
from demokit.config import InterceptorConfig
from demokit.context import KeyContext
from demokit.interceptor import Interceptor, Predicate
from demokit.registry import FixtureMatch

Fetcher: TypeAlias = Callable[..., Any]
UseNext: TypeAlias = Callable[[Any, Fetcher | None, Any], Any]
Middleware: TypeAlias = Callable[[UseNext], Callable[[Any, Fetcher | None, Any], Any]]


def normalize_key(key: Any) -> tuple[Any, ...] | None:
    """Resolve and normalize an SWR key.

    Callables are called first. ``None``, ``False`` and ``""`` mean no
    key. Strings become one-element tuples; lists and tuples are copied
    into a tuple as-is.

    Raises:
        TypeError: For any other key type.
    """
    resolved = key() if callable(key) else key
    if resolved is None or resolved is False or resolved == "":
        return None
    if isinstance(resolved, str):
        return (resolved,)
    if isinstance(resolved, (list, tuple)):
        return tuple(resolved)
    msg = f"SWR keys must be strings, lists or tuples, not {type(resolved).__name__}"
    raise TypeError(msg)


def _key_context(key: Any, normalized: tuple[Any, ...]) -> Callable[[FixtureMatch], KeyContext]:
    def build(found: FixtureMatch) -> KeyContext:
        return KeyContext(
            key=key,
            normalized_key=normalized,
            params=dict(found.params),
            match=found.result,
        )

    return build


def demo_fetcher(
    fixtures: QueryFixtures,
    *,
    is_enabled: Predicate = False,
    fallback: Fetcher | None = None,
    config: InterceptorConfig | None = None,
) -> Callable[[Any], Awaitable[Any]]:
    """A fetcher answering from *fixtures* in demo mode.

    Without *fallback*, a miss (or demo mode being off) raises
    ``FixtureNotFound``.
    """
    interceptor = Interceptor(
        as_tuple_registry(fixtures), kind="fetcher", is_enabled=is_enabled, config=config
    )

    async def fetcher(key: Any) -> Any:
        normalized = normalize_key(key)
        real = None if fallback is None else (lambda: invoke(fallback, key))
        if normalized is None:
            return await interceptor.fall_back(key, real)
        return await interceptor.intercept(normalized, real, _key_context(key, normalized))

    return fetcher


def demo_middleware(
    fixtures: QueryFixtures,
    *,
    is_enabled: Predicate = False,
    config: InterceptorConfig | None = None,
) -> Middleware:
    """Fetcher middleware: ``middleware(use_next)(key, fetcher, config)``.

    The fetcher handed to ``use_next`` is replaced by one that serves
    fixtures in demo mode and calls the original otherwise.
    """
    interceptor = Interceptor(
        as_tuple_registry(fixtures), kind="fetcher", is_enabled=is_enabled, config=config
    )

    def middleware(use_next: UseNext) -> Callable[[Any, Fetcher | None, Any], Any]:
        def hook(key: Any, fetcher: Fetcher | None, options: Any) -> Any:
            if fetcher is None:
                return use_next(key, None, options)
            original = fetcher

            async def extended(*args: Any) -> Any:
                normalized = normalize_key(key)
                if normalized is None:
                    return await invoke(original, *args)
                return await interceptor.intercept(
                    normalized,
                    lambda: invoke(original, *args),
                    _key_context(key, normalized),
                )

            return use_next(key, extended, options)

        return hook

    return middleware
