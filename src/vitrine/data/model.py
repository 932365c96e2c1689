"""Active-record entities.

A ``Model`` subclass maps one table. An instance is one row: it holds the
row's attributes, knows whether the row exists in storage, and builds the
queries that read and write it.

Declaring an entity::

    class Produto(Model):
        table = "produtos"
        columns = ("nome", "preco", "estoque")
        soft_delete = True

Using it::

    produto = Produto(db)
    await produto.save({"nome": "Caneca", "preco": 19.9, "estoque": 5})
    produto.is_persisted        # True
    produto["id"]               # generated key

    baratos = await Produto(db).where("preco", "<", 20).paginate(15, 1).all()

    produto = await Produto.open(db, 42)
    await produto.delete()      # soft delete: row hidden, still persisted

Column whitelist:
    Every column name that reaches SQL text (predicates, attribute
    writes, insert and update payloads) is checked against the entity's
    whitelist first. Unknown names raise ``ConfigurationError``.

Predicates are one-shot:
    ``where()`` / ``or_where()`` accumulate conditions for the *next*
    ``select()``. Building that query drains them, so a second
    ``all()`` with no new ``where()`` is unfiltered (apart from the
    soft-delete filter). ``count()`` reads them without draining.

Lifecycle::

    Transient --save() insert--> Persisted
    Transient --load(key) hit--> Persisted
    Persisted --delete() hard--> Transient
    Persisted --delete() soft--> Persisted (row excluded from selects)

Instances are request-local builders: create one per logical operation
and never share it between concurrent tasks.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, ClassVar, Self

from vitrine.data.database import Database
from vitrine.data.errors import RecordNotFound
from vitrine.data.pagination import Page
from vitrine.data.query import (
    COMPARATORS,
    Predicate,
    SelectQuery,
    delete_statement,
    insert_statement,
    update_statement,
)
from vitrine.errors import ConfigurationError

logger = logging.getLogger("vitrine.data")


@dataclass(frozen=True, slots=True)
class AuditColumns:
    """Names of the creation and last-modification timestamp columns."""

    created: str = "criacao_data"
    updated: str = "alteracao_data"


class Model:
    """Base class for active-record entities.

    Subclasses set ``table`` and ``columns``; the remaining class
    attributes switch on optional behaviour:

    - ``primary_key``: identity column, always usable in predicates.
    - ``soft_delete`` / ``soft_delete_column``: ``delete()`` stamps the
      column instead of removing the row, and every select skips rows
      where it is set.
    - ``audit`` / ``audit_columns``: adds both timestamp columns to the
      whitelist and stamps ``updated`` on every update. ``created`` is
      written by the caller on insert.
    """

    table: ClassVar[str] = ""
    columns: ClassVar[tuple[str, ...]] = ()
    primary_key: ClassVar[str] = "id"
    soft_delete: ClassVar[bool] = False
    soft_delete_column: ClassVar[str] = "exclusao_data"
    audit: ClassVar[bool] = False
    audit_columns: ClassVar[AuditColumns] = AuditColumns()

    __slots__ = (
        "_attributes",
        "_db",
        "_limit",
        "_offset",
        "_order",
        "_persisted",
        "_predicates",
        "_whitelist",
    )

    def __init__(self, db: Database, /, **attributes: Any) -> None:
        if not self.table:
            msg = f"{type(self).__name__} must declare a table name."
            raise ConfigurationError(msg)

        self._db = db
        self._whitelist = self._build_whitelist()
        self._attributes: dict[str, Any] = {}
        self._persisted = False
        self._predicates: list[Predicate] = []
        self._limit = 0
        self._offset = 0
        self._order: list[tuple[str, str]] = []

        for name, value in attributes.items():
            self.set(name, value)

    @classmethod
    def _build_whitelist(cls) -> tuple[str, ...]:
        names = list(cls.columns)
        if cls.audit:
            names += [cls.audit_columns.created, cls.audit_columns.updated]
        if cls.soft_delete:
            names.append(cls.soft_delete_column)
        return tuple(dict.fromkeys(names))

    # -- Loading --

    @classmethod
    async def open(cls, db: Database, key: Any = None) -> Self:
        """Build an entity, loading row *key* when given.

        The entity stays transient if *key* is ``None`` or matches no row.
        """
        entity = cls(db)
        if key is not None:
            await entity.load(key)
        return entity

    @classmethod
    async def find_or_fail(cls, db: Database, key: Any) -> Self:
        """Like ``open()`` but raises ``RecordNotFound`` when no row matches."""
        entity = cls(db)
        if not await entity.load(key):
            raise RecordNotFound(cls.table, key)
        return entity

    async def load(self, key: Any) -> bool:
        """Hydrate from the row whose primary key is *key*.

        Ignores pending predicates and pagination; soft-deleted rows are
        not found. Returns ``False`` and leaves the entity untouched when
        no row matches.
        """
        query = SelectQuery(
            self.table,
            self._selected_columns(),
            predicates=(Predicate("AND", self.primary_key, "=", key),),
            soft_delete_column=self._soft_delete_filter(),
            dialect=self._db.driver,
        )
        stmt = query.compile()
        row = await self._db.fetch_one(stmt.sql, *stmt.params)
        if row is None:
            return False
        self._attributes = self._filter_row(row)
        self._persisted = True
        return True

    # -- Attributes --

    def _check_column(self, column: str) -> None:
        if column != self.primary_key and column not in self._whitelist:
            msg = f"Column {column!r} does not exist on table {self.table!r}."
            raise ConfigurationError(msg)

    def set(self, name: str, value: Any) -> Self:
        """Set one attribute. Raises ``ConfigurationError`` for unknown columns."""
        self._check_column(name)
        self._attributes[name] = value
        return self

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> Any:
        if name != self.primary_key and name not in self._whitelist:
            raise KeyError(name)
        return self._attributes.get(name)

    @property
    def attributes(self) -> dict[str, Any]:
        """A copy of the current attribute values."""
        return dict(self._attributes)

    @property
    def key(self) -> Any:
        """Primary key value, ``None`` while transient."""
        return self._attributes.get(self.primary_key)

    @property
    def is_persisted(self) -> bool:
        """Whether the row exists in storage.

        A soft-deleted entity still reports ``True``: its row exists but is
        excluded from selects.
        """
        return self._persisted

    @property
    def whitelist(self) -> tuple[str, ...]:
        return self._whitelist

    def __repr__(self) -> str:
        state = "persisted" if self._persisted else "transient"
        return f"<{type(self).__name__} {self.table} {state} {self._attributes!r}>"

    # -- Query building --

    def where(self, column: str, comparator: str, value: Any) -> Self:
        """Add an ``AND`` condition for the next query."""
        return self._add_predicate("AND", column, comparator, value)

    def or_where(self, column: str, comparator: str, value: Any) -> Self:
        """Add an ``OR`` condition for the next query."""
        return self._add_predicate("OR", column, comparator, value)

    def _add_predicate(self, op: str, column: str, comparator: str, value: Any) -> Self:
        self._check_column(column)
        normalized = " ".join(comparator.split()).upper()
        if normalized not in COMPARATORS:
            supported = ", ".join(sorted(COMPARATORS))
            msg = f"Unsupported comparator {comparator!r}. Supported: {supported}"
            raise ConfigurationError(msg)
        self._predicates.append(Predicate(op, column, normalized, value))
        return self

    def limit(self, n: int) -> Self:
        """Cap the rows returned. ``0`` removes the cap."""
        self._limit = max(0, int(n))
        return self

    def offset(self, n: int) -> Self:
        self._offset = max(0, int(n))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> Self:
        """Sort by *column*; later calls add tie-breakers.

        *direction* is ``ASC`` or ``DESC`` in any case. Ordering a column
        again replaces its direction in place. Like ``limit()``, ordering
        stays on the entity across queries.
        """
        self._check_column(column)
        normalized = direction.strip().upper()
        if normalized not in ("ASC", "DESC"):
            msg = f"Unsupported sort direction {direction!r}. Supported: ASC, DESC"
            raise ConfigurationError(msg)
        for i, (existing, _) in enumerate(self._order):
            if existing == column:
                self._order[i] = (column, normalized)
                return self
        self._order.append((column, normalized))
        return self

    def paginate(self, per_page: int = 15, page: int = 1) -> Self:
        """Shorthand for ``limit(per_page).offset((page - 1) * per_page)``."""
        per_page = max(1, int(per_page))
        page = max(1, int(page))
        return self.limit(per_page).offset((page - 1) * per_page)

    def _selected_columns(self) -> tuple[str, ...]:
        return (self.primary_key, *(c for c in self._whitelist if c != self.primary_key))

    def _soft_delete_filter(self) -> str | None:
        return self.soft_delete_column if self.soft_delete else None

    def _query(self, predicates: tuple[Predicate, ...]) -> SelectQuery:
        return SelectQuery(
            self.table,
            self._selected_columns(),
            predicates=predicates,
            limit=self._limit,
            offset=self._offset,
            soft_delete_column=self._soft_delete_filter(),
            dialect=self._db.driver,
            order_by=tuple(self._order),
        )

    def _drain(self) -> tuple[Predicate, ...]:
        predicates = tuple(self._predicates)
        self._predicates.clear()
        return predicates

    # -- Reading --

    async def select(self) -> list[dict[str, Any]]:
        """Run the pending query and return raw rows.

        Pending predicates are drained as soon as the SQL is built, even if
        the query then fails.
        """
        stmt = self._query(self._drain()).compile()
        return await self._db.fetch(stmt.sql, *stmt.params)

    async def all(self) -> list[Self]:
        """Run the pending query and return one persisted entity per row."""
        return [self._hydrate(row) for row in await self.select()]

    async def get(self) -> Self | None:
        """Run the pending query and return the first entity, or ``None``."""
        stmt = replace(self._query(self._drain()), limit=1).compile()
        row = await self._db.fetch_one(stmt.sql, *stmt.params)
        if row is None:
            return None
        return self._hydrate(row)

    async def count(self) -> int:
        """Count rows matching the pending predicates without draining them."""
        stmt = self._query(tuple(self._predicates)).count()
        total = await self._db.fetch_val(stmt.sql, *stmt.params)
        return int(total or 0)

    async def page(self, per_page: int = 15, page: int = 1) -> Page[Self]:
        """Count, paginate and fetch in one go."""
        total = await self.count()
        items = await self.paginate(per_page, page).all()
        return Page(items=items, total=total, per_page=per_page, current_page=page)

    def _filter_row(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in row.items() if k == self.primary_key or k in self._whitelist}

    def _hydrate(self, row: Mapping[str, Any]) -> Self:
        entity = type(self)(self._db)
        entity._attributes = self._filter_row(row)
        entity._persisted = True
        return entity

    # -- Writing --

    async def save(self, data: Mapping[str, Any] | None = None) -> Self:
        """Merge *data* over the attributes and write the row.

        Updates when the entity is persisted, inserts otherwise.
        """
        payload = {**self._attributes, **(data or {})}
        if self._persisted:
            return await self._update(payload)
        return await self._insert(payload)

    async def _insert(self, data: Mapping[str, Any]) -> Self:
        for column in data:
            self._check_column(column)
        row = {k: v for k, v in data.items() if not (k == self.primary_key and v is None)}

        stmt = insert_statement(self.table, row, dialect=self._db.driver)
        key = await self._db.execute_insert(stmt.sql, *stmt.params, returning=self.primary_key)

        self._attributes = row
        if key is not None:
            self._attributes[self.primary_key] = key
        self._persisted = True
        logger.debug("Inserted %s %s=%r", self.table, self.primary_key, self.key)
        return self

    async def _update(self, data: Mapping[str, Any]) -> Self:
        data = dict(data)
        if self.audit:
            data[self.audit_columns.updated] = self._now()
        for column in data:
            self._check_column(column)

        changes = {k: v for k, v in data.items() if k != self.primary_key}
        if changes:
            stmt = update_statement(
                self.table,
                changes,
                primary_key=self.primary_key,
                key=self.key,
                dialect=self._db.driver,
            )
            await self._db.execute(stmt.sql, *stmt.params)

        self._attributes.update(data)
        logger.debug("Updated %s %s=%r", self.table, self.primary_key, self.key)
        return self

    async def delete(self) -> bool:
        """Delete the row. Returns ``False`` when the entity is transient.

        With ``soft_delete`` the row is stamped and stays persisted;
        otherwise it is removed and the entity becomes transient.
        """
        if not self._persisted:
            return False

        if self.soft_delete:
            await self._update({self.soft_delete_column: self._now()})
            return True

        stmt = delete_statement(
            self.table, primary_key=self.primary_key, key=self.key, dialect=self._db.driver
        )
        await self._db.execute(stmt.sql, *stmt.params)
        logger.debug("Deleted %s %s=%r", self.table, self.primary_key, self.key)
        self._attributes.pop(self.primary_key, None)
        self._persisted = False
        return True

    def _now(self) -> Any:
        """Current UTC time in the form the driver stores timestamps."""
        now = datetime.now(UTC).replace(microsecond=0, tzinfo=None)
        if self._db.driver == "sqlite":
            return now.strftime("%Y-%m-%d %H:%M:%S")
        return now
