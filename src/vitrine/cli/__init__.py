"""Vitrine CLI.

Entry point registered as ``vitrine`` in ``pyproject.toml``::

    [project.scripts]
    vitrine = "vitrine.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``vitrine`` command."""
    parser = argparse.ArgumentParser(
        prog="vitrine",
        description="Vitrine: route registry and active-record data layer.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- vitrine routes ---------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument(
        "router",
        help="Import string (e.g. myapp.routes:router)",
    )
    routes_parser.add_argument(
        "--method",
        default=None,
        help="Only list routes for this HTTP method",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from vitrine.cli._routes import run_routes

        run_routes(args)
