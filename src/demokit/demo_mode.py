"""Demo-mode resolution — the predicates interceptors consult.

Two ways to decide whether a call is a demo call:

- Per request, from the request itself (``is_demo_mode``): query
  parameter, then cookie, then header, then environment variable. The
  first source that is present decides; ``"true"`` and ``"1"`` mean on.
- In process, from a ``DemoSwitch`` flipped by setup code or UI controls.

Both plug into an ``Interceptor`` as its ``is_enabled`` predicate::

    routes = DemoRoutes(loaders={...}, is_enabled=demo_mode_checker())
    client = DemoQueryClient(fixtures={...}, switch=DemoSwitch(enabled=True))
"""

import logging
import os
import threading
from collections.abc import Callable, Mapping
from typing import Any

from demokit._internal.invoke import is_async_callable
from demokit.config import DemoModeConfig
from demokit.errors import ConfigurationError
from demokit.http.cookies import SetCookie
from demokit.http.request import Request

logger = logging.getLogger("demokit.demo_mode")

_ON_VALUES = frozenset({"true", "1"})


def is_demo_mode(
    request: Request,
    config: DemoModeConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Whether *request* asked for demo mode.

    An empty query value (``?demo`` or ``?demo=``) counts as on, so the
    flag can be added to a URL by hand. An empty environment variable is
    treated as unset. *environ* defaults to ``os.environ``.
    """
    cfg = config or DemoModeConfig()

    query_value = request.query.get(cfg.query_param)
    if query_value is not None:
        return query_value in _ON_VALUES or query_value == ""

    cookie_value = request.cookies.get(cfg.cookie_name)
    if cookie_value is not None:
        return cookie_value in _ON_VALUES

    header_value = request.headers.get(cfg.header_name)
    if header_value is not None:
        return header_value in _ON_VALUES

    env_value = (os.environ if environ is None else environ).get(cfg.env_var)
    if env_value:
        return env_value in _ON_VALUES
    return False


def demo_mode_checker(config: DemoModeConfig | None = None) -> Callable[[Request], bool]:
    """A request-aware predicate bound to *config*."""
    cfg = config or DemoModeConfig()

    def check(request: Request) -> bool:
        return is_demo_mode(request, cfg)

    return check


def demo_mode_cookie(enabled: bool, config: DemoModeConfig | None = None) -> SetCookie:
    """``Set-Cookie`` directive that turns demo mode on or off for a browser.

    The cookie is readable from client scripts so the UI can show the mode.
    """
    cfg = config or DemoModeConfig()
    return SetCookie(
        name=cfg.cookie_name,
        value="true" if enabled else "false",
        max_age=cfg.cookie_max_age,
        path=cfg.cookie_path,
        secure=cfg.cookie_secure,
        httponly=False,
        samesite=cfg.cookie_samesite,
    )


def clear_demo_mode_cookie(config: DemoModeConfig | None = None) -> SetCookie:
    """``Set-Cookie`` directive that deletes the demo-mode cookie."""
    cfg = config or DemoModeConfig()
    return SetCookie(
        name=cfg.cookie_name,
        value="",
        max_age=0,
        path=cfg.cookie_path,
        httponly=False,
        samesite="",
    )


class DemoSwitch:
    """In-process demo-mode flag.

    Callable with any arguments so it can stand in for a request-aware
    predicate. ``on_enable``/``on_disable`` fire on actual transitions
    only; flipping to the current state is a no-op. Both hooks must be
    plain functions; passing a coroutine function raises
    ``ConfigurationError``.
    """

    __slots__ = ("_enabled", "_lock", "on_disable", "on_enable")

    def __init__(
        self,
        enabled: bool = False,
        *,
        on_enable: Callable[[], Any] | None = None,
        on_disable: Callable[[], Any] | None = None,
    ) -> None:
        self._enabled = enabled
        self._lock = threading.Lock()
        self.on_enable = _sync_hook("on_enable", on_enable)
        self.on_disable = _sync_hook("on_disable", on_disable)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self.set(True)

    def disable(self) -> None:
        self.set(False)

    def toggle(self) -> bool:
        """Flip the flag and return the new state."""
        with self._lock:
            self._enabled = not self._enabled
            new_state = self._enabled
        self._announce(new_state)
        return new_state

    def set(self, enabled: bool) -> None:
        with self._lock:
            if self._enabled == enabled:
                return
            self._enabled = enabled
        self._announce(enabled)

    def _announce(self, enabled: bool) -> None:
        logger.debug("Demo mode %s", "enabled" if enabled else "disabled")
        hook = self.on_enable if enabled else self.on_disable
        if hook is not None:
            hook()

    def __call__(self, *args: Any, **kwargs: Any) -> bool:
        return self._enabled

    def __bool__(self) -> bool:
        return self._enabled

    def __repr__(self) -> str:
        return f"DemoSwitch(enabled={self._enabled})"


def _sync_hook(name: str, hook: Callable[[], Any] | None) -> Callable[[], Any] | None:
    # Hooks run synchronously inside enable()/disable()
    if hook is not None and is_async_callable(hook):
        msg = f"DemoSwitch {name} must be a plain function, not a coroutine function"
        raise ConfigurationError(msg)
    return hook
