"""Offset pagination results.

``Model.page()`` counts the matching rows, fetches one page and wraps both
in a ``Page``::

    page = await Produto(db).where("estoque", "<", 10).page(per_page=15, page=2)
    page.items          # list[Produto]
    page.last_page      # ceil(total / per_page)
    page.info()         # "Exibindo 16 a 30 de 42 registros"
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of results plus the numbers a listing needs around it."""

    items: Sequence[T]
    total: int
    per_page: int = 15
    current_page: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_page", max(1, self.per_page))
        object.__setattr__(self, "current_page", max(1, self.current_page))

    @property
    def last_page(self) -> int:
        return math.ceil(self.total / self.per_page)

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    @property
    def first_item(self) -> int:
        """1-based position of the first item on this page."""
        return (self.current_page - 1) * self.per_page + 1

    @property
    def last_item(self) -> int:
        """1-based position of the last item on this page."""
        return min(self.current_page * self.per_page, self.total)

    def info(self) -> str:
        if self.total == 0:
            return "Nenhum registro encontrado"
        return f"Exibindo {self.first_item} a {self.last_item} de {self.total} registros"

    def to_dict(self, data: Sequence[Any] | None = None) -> dict[str, Any]:
        """API-friendly summary. *data* replaces ``items`` (e.g. serialised rows)."""
        return {
            "current_page": self.current_page,
            "data": list(self.items if data is None else data),
            "from": self.first_item,
            "to": self.last_item,
            "last_page": self.last_page,
            "per_page": self.per_page,
            "total": self.total,
            "next_page_url": f"?page={self.current_page + 1}" if self.has_more_pages else None,
            "prev_page_url": f"?page={self.current_page - 1}" if self.current_page > 1 else None,
        }
