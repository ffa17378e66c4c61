"""Demokit exception hierarchy.

Shared across the pattern compiler, the registry, the interceptor, and
every adapter so setup code and call sites raise and catch the same types.

Fixture handlers are never wrapped: whatever a handler raises reaches the
caller unchanged.
"""

from typing import Any


class DemoKitError(Exception):
    """Base for all demokit-specific errors."""


class ConfigurationError(DemoKitError):
    """Raised when setup is invalid.

    Typically raised at registration or construction time: a bad delay,
    an unknown HTTP verb in a method-keyed fixture, or a missing optional
    dependency.
    """


class CompileError(ConfigurationError):
    """A fixture key could not be compiled into a pattern.

    Raised synchronously by ``compile_pattern`` (and therefore by every
    registry ``set``) so a misconfigured fixture fails at setup instead of
    silently never matching.
    """

    def __init__(self, key: Any, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid fixture key {key!r}: {reason}")


class FixtureNotFound(DemoKitError):  # noqa: N818 — mirrors NotFound naming
    """A fetcher had no fixture and no real function to fall back to.

    Only raised by adapters that can be built without a fallback
    (``demo_query_fn``, ``demo_fetcher``). Wrappers around a real
    function always fall back instead.
    """

    def __init__(self, identifier: Any, detail: str = "") -> None:
        self.identifier = identifier
        super().__init__(detail or f"No fixture found for {identifier!r}")
