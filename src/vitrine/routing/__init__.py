"""Ordered route registry with forward and reverse resolution.

Routes are registered at startup and the registry is frozen before it
serves traffic.
"""

from vitrine.routing.route import HandlerId, Route, RouteMatch
from vitrine.routing.router import METHODS, Router

__all__ = [
    "METHODS",
    "HandlerId",
    "Route",
    "RouteMatch",
    "Router",
]
