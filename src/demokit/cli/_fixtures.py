"""``demokit fixtures`` and ``demokit match``.

Both resolve an import string to a registry. ``fixtures`` prints one row
per entry in scan order; ``match`` runs a lookup and prints the winner.
"""

import argparse
import json
import sys

from demokit.cli._resolve import resolve_registry
from demokit.errors import CompileError
from demokit.handlers import describe
from demokit.patterns.compiler import parse_pattern_string
from demokit.registry import FixtureEntry, FixtureRegistry


def _load(target: str) -> FixtureRegistry:
    try:
        return resolve_registry(target)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def _shape(entry: FixtureEntry) -> str:
    pattern = entry.pattern
    if pattern.is_exact:
        return "exact"
    if pattern.param_names:
        return "params"
    return "wildcard"


def _handler_label(entry: FixtureEntry) -> str:
    if entry.methods is not None:
        return describe(entry.methods)
    return describe(entry.handler)


def run_fixtures(args: argparse.Namespace) -> None:
    """Print a PATTERN / MATCH / HANDLER table for ``args.target``."""
    registry = _load(args.target)
    if not len(registry):
        print(f"No {registry.kind} fixtures registered.")
        return

    rows = [(str(entry.pattern), _shape(entry), _handler_label(entry)) for entry in registry]

    max_pattern = max(max(len(r[0]) for r in rows), 7)  # "PATTERN" header
    max_shape = max(max(len(r[1]) for r in rows), 5)  # "MATCH" header

    fmt = f"{{:<{max_pattern}}}  {{:<{max_shape}}}  {{}}"
    print(fmt.format("PATTERN", "MATCH", "HANDLER"))
    sep_len = max_pattern + max_shape + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for pattern, shape, handler in rows:
        print(fmt.format(pattern, shape, handler))


def run_match(args: argparse.Namespace) -> None:
    """Look ``args.identifier`` up and print the answering fixture.

    Exits with status 1 when nothing answers.
    """
    registry = _load(args.target)
    identifier = args.identifier
    try:
        if registry.kind == "tuple":
            identifier = parse_pattern_string(identifier)
        found = (
            registry.find(identifier)
            if args.method is None
            else registry.find_for_method(identifier, args.method)
        )
    except (CompileError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if found is None:
        verb = f" {args.method.upper()}" if args.method else ""
        print(f"No fixture for{verb} {args.identifier}")
        raise SystemExit(1)

    print(f"pattern: {found.pattern}")
    print(f"handler: {describe(found.handler)}")
    print(f"params:  {json.dumps(found.params, default=repr, sort_keys=True)}")
