"""Registry import resolution — ``"module:attribute"`` strings to registries.

Shared by ``demokit fixtures`` and ``demokit match``.
"""

import importlib
from typing import Any

from demokit.registry import FixtureRegistry


def resolve_registry(import_string: str) -> FixtureRegistry:
    """Resolve an import string to a ``FixtureRegistry``.

    Accepts ``"module:attribute"``; the attribute may be dotted
    (``"myapp.demo:routes.loaders"``) and defaults to ``"fixtures"``.
    Factory functions are called. Objects that own a registry (a query
    client, a demo link, a transport) resolve to their ``registry``.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist.
        TypeError: If the target is not (and does not hold) a registry.
    """
    module_path, _, attr_path = import_string.partition(":")
    if not attr_path:
        attr_path = "fixtures"

    obj: Any = importlib.import_module(module_path)
    for attr_name in attr_path.split("."):
        obj = getattr(obj, attr_name)

    if callable(obj) and not isinstance(obj, FixtureRegistry):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    registry = getattr(obj, "registry", obj)
    if not isinstance(registry, FixtureRegistry):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a FixtureRegistry"
        raise TypeError(msg)
    return registry
