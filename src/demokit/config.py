"""Interceptor and demo-mode configuration.

Both configs are frozen dataclasses: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from demokit.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class InterceptorConfig:
    """Per-interceptor behavior. Override what you need::

        config = InterceptorConfig(delay=0.2, on_missing=report_missing)

    ``on_missing(kind, identifier)`` fires when demo mode is on but no
    fixture (or no fixture for the active verb) exists. ``on_demo(context)``
    fires right before a fixture runs. Return values are ignored.
    """

    # Simulated latency in seconds
    delay: float = 0.0

    # Side-channel hooks
    on_missing: Callable[[str, Any], Any] | None = None
    on_demo: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if self.delay < 0:
            msg = f"delay must be >= 0 seconds, got {self.delay!r}"
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class DemoModeConfig:
    """Where ``is_demo_mode`` looks for the demo flag, in priority order.

    Query parameter, then cookie, then header, then environment variable.
    The cookie fields also drive ``demo_mode_cookie``.
    """

    query_param: str = "demo"
    cookie_name: str = "demokit-demo-mode"
    header_name: str = "x-demokit-demo-mode"
    env_var: str = "DEMOKIT_DEMO_MODE"

    # Cookie written by demo_mode_cookie()
    cookie_max_age: int = 60 * 60 * 24 * 7  # 7 days
    cookie_path: str = "/"
    cookie_samesite: str = "lax"
    cookie_secure: bool = False
