"""Vitrine exception hierarchy.

Shared by the router and the data layer so that controllers and the
dispatcher raise and catch the same types.
"""

from dataclasses import dataclass


class VitrineError(Exception):
    """Base for all vitrine-specific errors."""


class ConfigurationError(VitrineError):
    """Raised when a route, model or query is declared incorrectly.

    Always a programming error: an unknown column in a predicate or write
    payload, an unsupported comparator, a malformed route pattern.
    Never retried.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(VitrineError):
    """An error that maps directly to an HTTP status code.

    Raised by the router. The dispatcher branches on these to build the
    matching response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request, or no route reverses a handler."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
