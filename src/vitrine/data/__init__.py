"""Async data access for vitrine: a database handle and active-record entities.

Basic usage::

    from vitrine.data import Database, Model

    class Produto(Model):
        table = "produtos"
        columns = ("nome", "preco", "estoque")

    db = Database("sqlite:///app.db")

    produto = await Produto(db).save({"nome": "Caneca", "preco": 19.9, "estoque": 5})
    em_falta = await Produto(db).where("estoque", "=", 0).all()

Requires ``asyncpg`` for PostgreSQL::

    pip install vitrine[pg]
"""

from vitrine.data.database import Database
from vitrine.data.errors import (
    DataError,
    DriverNotInstalledError,
    PersistenceError,
    RecordNotFound,
)
from vitrine.data.model import AuditColumns, Model
from vitrine.data.pagination import Page
from vitrine.data.query import Predicate, SelectQuery, Statement

__all__ = [
    "AuditColumns",
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "Model",
    "Page",
    "PersistenceError",
    "Predicate",
    "RecordNotFound",
    "SelectQuery",
    "Statement",
]
