"""HandlerId, Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from urllib.parse import quote

from vitrine.errors import ConfigurationError
from vitrine.routing.params import PLACEHOLDER, compile_pattern, normalize_path, parse_param_names


@dataclass(frozen=True, slots=True)
class HandlerId:
    """Controller + action pair a route dispatches to.

    ``str(HandlerId("Produtos", "show"))`` is ``"Produtos.show"``.
    """

    controller: str
    action: str = "index"

    @classmethod
    def parse(cls, value: str) -> HandlerId:
        """Build from the dotted ``Controller.action`` form."""
        controller, _, action = value.rpartition(".")
        if not controller:
            return cls(controller=action)
        return cls(controller=controller, action=action)

    def __str__(self) -> str:
        return f"{self.controller}.{self.action}"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    The matcher is compiled once here, so resolution never recompiles a
    pattern.
    """

    method: str
    pattern: str
    handler: HandlerId
    middleware: tuple[str, ...] = ()
    param_names: tuple[str, ...] = field(init=False)
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern = normalize_path(self.pattern)
        object.__setattr__(self, "pattern", pattern)
        object.__setattr__(self, "param_names", parse_param_names(pattern))
        object.__setattr__(self, "regex", compile_pattern(pattern))

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path* and return the captured values keyed by name."""
        m = self.regex.match(path)
        if m is None:
            return None
        return dict(zip(self.param_names, m.groups(), strict=True))

    def url(self, values: Mapping[str, object] | Sequence[object] = ()) -> str:
        """Build a concrete URL by substituting every placeholder.

        *values* is either a mapping keyed by placeholder name or a
        sequence assigned positionally, which must supply exactly one value
        per placeholder. Values are percent-encoded.

        ::

            route.url({"id": 42})   # "/produtos/42"
            route.url(["tênis"])    # "/produtos/t%C3%AAnis"
        """
        if not isinstance(values, Mapping):
            if len(values) > len(self.param_names):
                msg = (
                    f"Route {self.pattern!r} takes {len(self.param_names)} value(s), "
                    f"got {len(values)}."
                )
                raise ConfigurationError(msg)
            values = dict(zip(self.param_names, values, strict=False))

        missing = [name for name in self.param_names if name not in values]
        if missing:
            msg = f"Route {self.pattern!r} needs a value for {', '.join(missing)}."
            raise ConfigurationError(msg)

        return PLACEHOLDER.sub(lambda m: quote(str(values[m.group(1)]), safe=""), self.pattern)

    def with_middleware(self, *middleware: str) -> Route:
        """Return a copy with *middleware* ids appended."""
        return replace(self, middleware=(*self.middleware, *middleware))


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route resolution."""

    route: Route
    params: dict[str, str]

    @property
    def handler(self) -> HandlerId:
        return self.route.handler

    @property
    def middleware(self) -> tuple[str, ...]:
        return self.route.middleware
