"""Invoke helpers — call sync or async user callables uniformly.

Real loaders, actions, query functions, fetchers, demo-mode predicates and
side-channel hooks can all be ``def`` or ``async def``. Any code that calls
one of them goes through this module so the sync/async check lives in
exactly one place.

Usage::

    from demokit._internal.invoke import invoke

    result = await invoke(loader, args)
"""

import inspect
from typing import Any


async def invoke(fn: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *fn* and await the result if it is awaitable."""
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def invoke_hook(hook: Any, *args: Any) -> None:
    """Call an optional observability hook, discarding its result."""
    if hook is None:
        return
    await invoke(hook, *args)


def is_async_callable(fn: Any) -> bool:
    """True for coroutine functions, including partials and async ``__call__``."""
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)  # noqa: B004
    return call is not None and inspect.iscoroutinefunction(call)
