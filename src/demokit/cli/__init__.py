"""DemoKit CLI — inspect fixture registries from the command line.

Entry point registered as ``demokit`` in ``pyproject.toml``::

    [project.scripts]
    demokit = "demokit.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``demokit`` command."""
    parser = argparse.ArgumentParser(
        prog="demokit",
        description="DemoKit: serve fixtures in place of real calls while in demo mode.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- demokit fixtures -------------------------------------------------
    fixtures_parser = subparsers.add_parser("fixtures", help="List registered fixtures")
    fixtures_parser.add_argument(
        "target",
        help="Import string (e.g. myapp.demo:fixtures, myapp.demo:routes.loaders)",
    )

    # -- demokit match ----------------------------------------------------
    match_parser = subparsers.add_parser("match", help="Show which fixture answers an identifier")
    match_parser.add_argument("target", help="Import string of the registry")
    match_parser.add_argument(
        "identifier",
        help='Path, dotted procedure, or JSON array key (e.g. \'["users", 42]\')',
    )
    match_parser.add_argument(
        "--method",
        default=None,
        help="HTTP verb for method-aware lookups (e.g. POST)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "fixtures":
        from demokit.cli._fixtures import run_fixtures

        run_fixtures(args)
    elif args.command == "match":
        from demokit.cli._fixtures import run_match

        run_match(args)
