"""SQLite driver for ``Database``: stdlib sqlite3 behind anyio worker threads.

Each query runs start to finish (execute, fetch, row conversion) inside a
single worker-thread call and comes back as plain dicts, the same shape
the asyncpg branch produces. The connection is opened with
``autocommit=True``; ``Database.transaction()`` turns that off for the
duration of a block.
"""

import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import anyio.to_thread


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    return anyio.to_thread.run_sync(func, *args)


def _as_dicts(cursor: sqlite3.Cursor, rows: list[Any]) -> list[dict[str, Any]]:
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


@dataclass(frozen=True, slots=True)
class WriteResult:
    """What a write statement reports back."""

    rowcount: int
    lastrowid: int | None


class SQLiteConnection:
    """One sqlite3 connection, driven from async code.

    Opened with ``check_same_thread=False`` because consecutive calls may
    land on different worker threads. ``Database`` holds an ``anyio.Lock``
    around every use, so calls never overlap.
    """

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def autocommit(self) -> bool:
        return bool(self._conn.autocommit)

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.autocommit = value

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        def run() -> list[dict[str, Any]]:
            cursor = self._conn.execute(sql, params)
            return _as_dicts(cursor, cursor.fetchall())

        return await _run_sync(run)

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        def run() -> dict[str, Any] | None:
            cursor = self._conn.execute(sql, params)
            row = cursor.fetchone()
            return None if row is None else _as_dicts(cursor, [row])[0]

        return await _run_sync(run)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> WriteResult:
        def run() -> WriteResult:
            cursor = self._conn.execute(sql, params)
            return WriteResult(rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)

        return await _run_sync(run)

    async def executescript(self, sql: str) -> None:
        # Commits any pending transaction first and ignores autocommit
        await _run_sync(self._conn.executescript, sql)

    async def commit(self) -> None:
        await _run_sync(self._conn.commit)

    async def rollback(self) -> None:
        await _run_sync(self._conn.rollback)

    async def close(self) -> None:
        await _run_sync(self._conn.close)


async def connect(path: str) -> SQLiteConnection:
    """Open *path* in autocommit mode with WAL journaling and foreign keys on."""

    def run() -> sqlite3.Connection:
        conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    return SQLiteConnection(await _run_sync(run))
