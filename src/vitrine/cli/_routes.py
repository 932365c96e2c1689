"""``vitrine routes``: print the route table of a Router."""

import argparse
import sys

from vitrine.cli._resolve import resolve_router
from vitrine.routing import Route

_HEADERS = ("METHOD", "PATH", "HANDLER", "MIDDLEWARE")


def format_routes(routes: list[Route]) -> list[str]:
    """Render routes as aligned table lines, header and separator first."""
    rows = [
        (route.method, route.pattern, str(route.handler), ", ".join(route.middleware))
        for route in routes
    ]
    widths = [max([len(h), *(len(r[i]) for r in rows)]) for i, h in enumerate(_HEADERS)]

    def line(cells: tuple[str, ...]) -> str:
        return "  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)).rstrip()

    lines = [line(_HEADERS), "-" * min(sum(widths) + 6, 80)]
    lines.extend(line(row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.router`` and print its routes in registration order."""
    try:
        router = resolve_router(args.router)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = router.routes
    if args.method:
        routes = [r for r in routes if r.method == args.method.upper()]

    if not routes:
        print("No routes registered.")
        return

    for text in format_routes(routes):
        print(text)
