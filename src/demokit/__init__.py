"""DemoKit — serve fixtures in place of real calls while an app is in demo mode.

Register fixtures under keys (paths, dotted procedures or array keys),
wrap a call site, and flip demo mode on::

    from demokit import DemoSwitch, FixtureRegistry, Interceptor

    switch = DemoSwitch()
    registry = FixtureRegistry("path", {
        "/users/:id": lambda ctx: {"id": ctx.params["id"], "name": "Demo"},
    })

Framework-shaped adapters live in ``demokit.adapters``: route loaders and
actions, query functions, SWR-style fetchers, RPC links, and an ``httpx``
transport (``pip install demokit[http]``).
"""

__version__ = "0.1.0"
__all__ = [
    "ActionContext",
    "Async",
    "CompileError",
    "ConfigurationError",
    "DemoKitError",
    "DemoModeConfig",
    "DemoSwitch",
    "FixtureMatch",
    "FixtureNotFound",
    "FixtureRegistry",
    "HttpContext",
    "Interceptor",
    "InterceptorConfig",
    "KeyContext",
    "LoaderContext",
    "MatchResult",
    "MethodHandlers",
    "MutationContext",
    "Pattern",
    "ProcedureContext",
    "QueryContext",
    "Request",
    "SessionState",
    "Static",
    "Sync",
    "compile_pattern",
    "is_demo_mode",
    "match",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "ActionContext": "demokit.context",
    "Async": "demokit.handlers",
    "CompileError": "demokit.errors",
    "ConfigurationError": "demokit.errors",
    "DemoKitError": "demokit.errors",
    "DemoModeConfig": "demokit.config",
    "DemoSwitch": "demokit.demo_mode",
    "FixtureMatch": "demokit.registry",
    "FixtureNotFound": "demokit.errors",
    "FixtureRegistry": "demokit.registry",
    "HttpContext": "demokit.context",
    "Interceptor": "demokit.interceptor",
    "InterceptorConfig": "demokit.config",
    "KeyContext": "demokit.context",
    "LoaderContext": "demokit.context",
    "MatchResult": "demokit.patterns.matcher",
    "MethodHandlers": "demokit.handlers",
    "MutationContext": "demokit.context",
    "Pattern": "demokit.patterns.segments",
    "ProcedureContext": "demokit.context",
    "QueryContext": "demokit.context",
    "Request": "demokit.http.request",
    "SessionState": "demokit.context",
    "Static": "demokit.handlers",
    "Sync": "demokit.handlers",
    "compile_pattern": "demokit.patterns.compiler",
    "is_demo_mode": "demokit.demo_mode",
    "match": "demokit.patterns.matcher",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import demokit`` fast while providing a clean top-level API.
    """
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_path), name)
