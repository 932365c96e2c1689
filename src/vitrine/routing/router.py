"""Route registry with first-match resolution and reverse routing.

Routes are registered during startup, partitioned by HTTP method and kept
in registration order. ``compile()`` freezes the registry; afterwards it
is read-only and safe to share between concurrent requests.
"""

import logging
import threading
from collections.abc import Sequence
from urllib.parse import unquote

from vitrine.errors import ConfigurationError, NotFound
from vitrine.routing.params import normalize_path
from vitrine.routing.route import HandlerId, Route, RouteMatch

logger = logging.getLogger("vitrine.routing")

METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


def _handler_id(handler: HandlerId | str) -> HandlerId:
    if isinstance(handler, HandlerId):
        return handler
    return HandlerId.parse(handler)


class Router:
    """Registry of routes, resolved by linear scan in registration order.

    The first route whose pattern accepts the path wins. There is no
    specificity ranking, so register static routes before the
    parameterised routes that could shadow them.

    Usage::

        router = Router()
        router.get("/produtos", "Produtos")
        router.get("/produtos/{id}", "Produtos", "show", middleware=("auth",))
        router.compile()

        match = router.match("GET", "/produtos/42")
        match.handler   # HandlerId("Produtos", "show")
        match.params    # {"id": "42"}

        router.url_for("Produtos.show", 42)   # "/produtos/42"
    """

    __slots__ = ("_compiled", "_lock", "_tables")

    def __init__(self) -> None:
        # method -> {pattern: Route}; dict order is registration order
        self._tables: dict[str, dict[str, Route]] = {method: {} for method in METHODS}
        self._lock = threading.Lock()
        self._compiled = False

    # -- Registration --

    def register(
        self,
        method: str,
        pattern: str,
        handler: HandlerId | str,
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        """Register a route. Must be called before ``compile()``.

        Re-registering the same method and pattern replaces the earlier
        route in its original position.
        """
        method = method.upper()
        if method not in self._tables:
            msg = f"Unsupported HTTP method {method!r}. Supported: {', '.join(METHODS)}"
            raise ConfigurationError(msg)

        route = Route(
            method=method,
            pattern=pattern,
            handler=_handler_id(handler),
            middleware=tuple(middleware),
        )
        with self._lock:
            self._ensure_mutable()
            table = self._tables[method]
            if route.pattern in table:
                logger.debug("Route %s %s re-registered, replacing", method, route.pattern)
            table[route.pattern] = route

        logger.debug("Registered %s %s -> %s", method, route.pattern, route.handler)
        return route

    def get(
        self,
        pattern: str,
        controller: str,
        action: str = "index",
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        return self.register("GET", pattern, HandlerId(controller, action), middleware=middleware)

    def post(
        self,
        pattern: str,
        controller: str,
        action: str = "index",
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        return self.register("POST", pattern, HandlerId(controller, action), middleware=middleware)

    def put(
        self,
        pattern: str,
        controller: str,
        action: str = "index",
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        return self.register("PUT", pattern, HandlerId(controller, action), middleware=middleware)

    def patch(
        self,
        pattern: str,
        controller: str,
        action: str = "index",
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        return self.register(
            "PATCH", pattern, HandlerId(controller, action), middleware=middleware
        )

    def delete(
        self,
        pattern: str,
        controller: str,
        action: str = "index",
        *,
        middleware: Sequence[str] = (),
    ) -> Route:
        return self.register(
            "DELETE", pattern, HandlerId(controller, action), middleware=middleware
        )

    def add_middleware(self, method: str, pattern: str, *middleware: str) -> Route:
        """Append middleware ids to an already registered route."""
        method = method.upper()
        pattern = normalize_path(pattern)
        with self._lock:
            self._ensure_mutable()
            table = self._tables.get(method, {})
            if pattern not in table:
                msg = f"No {method} route registered for {pattern!r}."
                raise ConfigurationError(msg)
            route = table[pattern].with_middleware(*middleware)
            table[pattern] = route
        return route

    def _ensure_mutable(self) -> None:
        if self._compiled:
            msg = "Cannot register routes after compilation."
            raise RuntimeError(msg)

    def compile(self) -> None:
        """Freeze the registry. No more routes can be added."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes, grouped by method in registration order."""
        return [route for table in self._tables.values() for route in table.values()]

    # -- Resolution --

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve a request method and path to a route.

        Returns a ``RouteMatch`` carrying the route and its captured values.
        Raises ``NotFound`` if no route for *method* accepts *path*.
        """
        path = normalize_path(unquote(path))
        for route in self._tables.get(method.upper(), {}).values():
            params = route.match(path)
            if params is not None:
                return RouteMatch(route=route, params=params)

        raise NotFound(f"No route matches {method} {path!r}")

    def reverse(
        self,
        handler: HandlerId | str,
        method: str = "GET",
        values: Sequence[object] = (),
    ) -> RouteMatch:
        """Find the route for *handler* that takes exactly ``len(values)`` parameters.

        Values are assigned to the route's placeholders positionally.
        Raises ``NotFound`` if no such route is registered for *method*.
        """
        handler = _handler_id(handler)
        for route in self._tables.get(method.upper(), {}).values():
            if route.handler == handler and len(route.param_names) == len(values):
                params = dict(zip(route.param_names, map(str, values), strict=True))
                return RouteMatch(route=route, params=params)

        raise NotFound(f"No {method} route for {handler} with {len(values)} parameter(s)")

    def url_for(self, handler: HandlerId | str, *values: object, method: str = "GET") -> str:
        """Build the URL of *handler* filled with *values*.

        ::

            router.url_for("Produtos.show", 42)   # "/produtos/42"
        """
        return self.reverse(handler, method, values).route.url(values)
