"""SQL compilation for the active-record layer.

Turns predicates, pagination state and write payloads into parameterised
SQL. Values are always bound; only identifiers that ``Model`` has already
checked against its column whitelist, and comparators from
``COMPARATORS``, are spliced into the statement text.

Usage::

    q = SelectQuery(
        "produtos",
        ("id", "nome", "estoque"),
        predicates=(Predicate("AND", "estoque", "<", 10),),
        limit=15,
    )
    q.sql     # "SELECT id, nome, estoque FROM produtos WHERE estoque < ? LIMIT 15"
    q.params  # (10,)

Placeholders follow the dialect: ``?`` for SQLite, ``$1 .. $n`` for
PostgreSQL.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

COMPARATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"})


@dataclass(frozen=True, slots=True)
class Predicate:
    """One WHERE condition: ``<op> <column> <comparator> <value>``.

    ``op`` is ``"AND"`` or ``"OR"``. The first predicate of a clause has
    its op dropped, whichever method added it.
    """

    op: str
    column: str
    comparator: str
    value: Any


@dataclass(frozen=True, slots=True)
class Statement:
    """Compiled SQL and its bound parameters, in order."""

    sql: str
    params: tuple[Any, ...] = ()


class _Binder:
    """Collects bound values and hands out dialect placeholders."""

    __slots__ = ("_dialect", "values")

    def __init__(self, dialect: str) -> None:
        self._dialect = dialect
        self.values: list[Any] = []

    def bind(self, value: Any) -> str:
        self.values.append(value)
        if self._dialect == "postgresql":
            return f"${len(self.values)}"
        return "?"


def _where(
    predicates: tuple[Predicate, ...],
    soft_delete_column: str | None,
    binder: _Binder,
) -> str:
    conditions: list[str] = []
    for i, p in enumerate(predicates):
        op = f"{p.op} " if i else ""
        conditions.append(f"{op}{p.column} {p.comparator} {binder.bind(p.value)}")
    clause = " ".join(conditions)

    if soft_delete_column:
        # Parenthesised so OR predicates can't escape the soft-delete filter
        if clause:
            return f" WHERE ({soft_delete_column} IS NULL) AND ({clause})"
        return f" WHERE {soft_delete_column} IS NULL"
    if clause:
        return f" WHERE {clause}"
    return ""


@dataclass(frozen=True, slots=True)
class SelectQuery:
    """A compiled-on-demand SELECT.

    ``order_by`` holds ``(column, direction)`` pairs, emitted in order
    before ``LIMIT``. ``limit`` and ``offset`` are emitted only when positive.
    """

    table: str
    columns: tuple[str, ...]
    predicates: tuple[Predicate, ...] = ()
    limit: int = 0
    offset: int = 0
    soft_delete_column: str | None = None
    dialect: str = "sqlite"
    order_by: tuple[tuple[str, str], ...] = ()

    def compile(self) -> Statement:
        binder = _Binder(self.dialect)
        sql = f"SELECT {', '.join(self.columns)} FROM {self.table}"
        sql += _where(self.predicates, self.soft_delete_column, binder)
        if self.order_by:
            terms = ", ".join(f"{column} {direction}" for column, direction in self.order_by)
            sql += f" ORDER BY {terms}"
        if self.limit > 0:
            sql += f" LIMIT {self.limit}"
        elif self.offset > 0 and self.dialect == "sqlite":
            # SQLite only accepts OFFSET after a LIMIT; -1 means unbounded
            sql += " LIMIT -1"
        if self.offset > 0:
            sql += f" OFFSET {self.offset}"
        return Statement(sql, tuple(binder.values))

    def count(self) -> Statement:
        """``SELECT COUNT(*)`` over the same WHERE clause, ignoring ordering and pagination."""
        binder = _Binder(self.dialect)
        sql = f"SELECT COUNT(*) FROM {self.table}"
        sql += _where(self.predicates, self.soft_delete_column, binder)
        return Statement(sql, tuple(binder.values))

    @property
    def sql(self) -> str:
        return self.compile().sql

    @property
    def params(self) -> tuple[Any, ...]:
        return self.compile().params


def insert_statement(table: str, data: Mapping[str, Any], *, dialect: str = "sqlite") -> Statement:
    """``INSERT INTO <table> (<cols>) VALUES (<placeholders>)``."""
    if not data:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES")
    binder = _Binder(dialect)
    placeholders = ", ".join(binder.bind(value) for value in data.values())
    sql = f"INSERT INTO {table} ({', '.join(data)}) VALUES ({placeholders})"
    return Statement(sql, tuple(binder.values))


def update_statement(
    table: str,
    data: Mapping[str, Any],
    *,
    primary_key: str,
    key: Any,
    dialect: str = "sqlite",
) -> Statement:
    """``UPDATE <table> SET <col> = ?, ... WHERE <primary_key> = ?``."""
    binder = _Binder(dialect)
    assignments = ", ".join(f"{column} = {binder.bind(value)}" for column, value in data.items())
    sql = f"UPDATE {table} SET {assignments} WHERE {primary_key} = {binder.bind(key)}"
    return Statement(sql, tuple(binder.values))


def delete_statement(
    table: str, *, primary_key: str, key: Any, dialect: str = "sqlite"
) -> Statement:
    """``DELETE FROM <table> WHERE <primary_key> = ?``."""
    binder = _Binder(dialect)
    sql = f"DELETE FROM {table} WHERE {primary_key} = {binder.bind(key)}"
    return Statement(sql, tuple(binder.values))
