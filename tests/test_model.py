"""Tests for vitrine.data.model: active-record entities over SQLite."""

import re

import pytest

from vitrine.data import Database, Model, Page, PersistenceError, RecordNotFound
from vitrine.errors import ConfigurationError

# -- Test models --


class Produto(Model):
    table = "produtos"
    columns = ("nome", "preco", "estoque")


class ProdutoArquivavel(Produto):
    soft_delete = True


class ProdutoAuditado(Produto):
    audit = True


# -- Fixtures --


@pytest.fixture
def offline_db() -> Database:
    """A handle that is never connected; building entities needs no I/O."""
    return Database("sqlite:///:memory:")


@pytest.fixture
async def db(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'loja.db'}")
    await db.execute_script(
        "CREATE TABLE produtos ("
        "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
        "  nome TEXT,"
        "  preco REAL,"
        "  estoque INTEGER,"
        "  criacao_data TEXT,"
        "  alteracao_data TEXT,"
        "  exclusao_data TEXT"
        ");"
    )
    yield db
    await db.disconnect()


@pytest.fixture
async def seeded_db(db):
    """Four produtos with estoque 2, 5, 50 and 100 (ids 1-4)."""
    for nome, estoque in (("Caneca", 2), ("Boné", 5), ("Camiseta", 50), ("Adesivo", 100)):
        await db.execute(
            "INSERT INTO produtos (nome, preco, estoque) VALUES (?, ?, ?)", nome, 10.0, estoque
        )
    return db


def _names(entities: list[Model]) -> list[str]:
    return sorted(e["nome"] for e in entities)


# =============================================================================
# Declaration and attributes
# =============================================================================


class TestDeclaration:
    def test_table_required(self, offline_db) -> None:
        class Sem(Model):
            columns = ("a",)

        with pytest.raises(ConfigurationError, match="must declare a table"):
            Sem(offline_db)

    def test_whitelist(self, offline_db) -> None:
        assert Produto(offline_db).whitelist == ("nome", "preco", "estoque")

    def test_whitelist_soft_delete(self, offline_db) -> None:
        whitelist = ProdutoArquivavel(offline_db).whitelist
        assert whitelist == ("nome", "preco", "estoque", "exclusao_data")

    def test_whitelist_audit(self, offline_db) -> None:
        assert ProdutoAuditado(offline_db).whitelist == (
            "nome",
            "preco",
            "estoque",
            "criacao_data",
            "alteracao_data",
        )

    def test_new_entity_is_transient(self, offline_db) -> None:
        produto = Produto(offline_db)
        assert produto.is_persisted is False
        assert produto.key is None
        assert produto.attributes == {}


class TestAttributes:
    def test_constructor_kwargs(self, offline_db) -> None:
        produto = Produto(offline_db, nome="Caneca", estoque=3)
        assert produto.attributes == {"nome": "Caneca", "estoque": 3}

    def test_set_and_get(self, offline_db) -> None:
        produto = Produto(offline_db)
        produto["nome"] = "Caneca"
        assert produto.set("estoque", 3) is produto
        assert produto["nome"] == "Caneca"
        assert produto["estoque"] == 3

    def test_unset_column_reads_none(self, offline_db) -> None:
        assert Produto(offline_db)["preco"] is None

    def test_primary_key_settable(self, offline_db) -> None:
        produto = Produto(offline_db)
        produto["id"] = 9
        assert produto.key == 9

    def test_set_unknown_column(self, offline_db) -> None:
        produto = Produto(offline_db)
        with pytest.raises(ConfigurationError, match="Column 'cor' does not exist"):
            produto["cor"] = "azul"
        assert produto.attributes == {}

    def test_constructor_unknown_column(self, offline_db) -> None:
        with pytest.raises(ConfigurationError):
            Produto(offline_db, cor="azul")

    def test_get_unknown_column(self, offline_db) -> None:
        with pytest.raises(KeyError):
            Produto(offline_db)["cor"]

    def test_attributes_is_a_copy(self, offline_db) -> None:
        produto = Produto(offline_db, nome="Caneca")
        produto.attributes["nome"] = "Outro"
        assert produto["nome"] == "Caneca"


# =============================================================================
# Writing
# =============================================================================


class TestInsert:
    async def test_save_new(self, db) -> None:
        produto = Produto(db)
        result = await produto.save({"nome": "X", "preco": 9.9, "estoque": 5})

        assert result is produto
        assert produto.is_persisted is True
        assert isinstance(produto.attributes["id"], int)
        assert produto.attributes["id"] > 0

    async def test_row_written(self, db) -> None:
        produto = await Produto(db, nome="Caneca").save({"estoque": 5})
        row = await db.fetch_one("SELECT nome, estoque FROM produtos WHERE id = ?", produto.key)
        assert row == {"nome": "Caneca", "estoque": 5}

    async def test_none_primary_key_dropped(self, db) -> None:
        produto = await Produto(db).save({"id": None, "nome": "Caneca"})
        assert produto.key == 1

    async def test_unknown_column_rejected(self, db) -> None:
        with pytest.raises(ConfigurationError):
            await Produto(db).save({"nome": "Caneca", "cor": "azul"})
        assert await db.fetch_val("SELECT COUNT(*) FROM produtos") == 0

    async def test_audit_created_is_caller_supplied(self, db) -> None:
        produto = await ProdutoAuditado(db).save(
            {"nome": "Caneca", "criacao_data": "2024-01-01 00:00:00"}
        )
        assert produto["criacao_data"] == "2024-01-01 00:00:00"
        assert produto["alteracao_data"] is None


class TestUpdate:
    async def test_save_persisted_updates(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 1)
        await produto.save({"estoque": 0})

        assert produto["estoque"] == 0
        row = await seeded_db.fetch_one("SELECT estoque FROM produtos WHERE id = 1")
        assert row == {"estoque": 0}

    async def test_update_does_not_touch_other_rows(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 1)
        await produto.save({"nome": "Caneca Grande"})
        assert await seeded_db.fetch_val("SELECT nome FROM produtos WHERE id = 2") == "Boné"

    async def test_setter_then_save(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 2)
        produto["preco"] = 25.5
        await produto.save()
        assert await seeded_db.fetch_val("SELECT preco FROM produtos WHERE id = 2") == 25.5

    async def test_unknown_column_rejected(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 1)
        with pytest.raises(ConfigurationError):
            await produto.save({"cor": "azul"})

    async def test_audit_stamps_updated(self, seeded_db) -> None:
        produto = await ProdutoAuditado.open(seeded_db, 1)
        await produto.save({"estoque": 3})

        stamp = produto["alteracao_data"]
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", stamp)
        row = await seeded_db.fetch_one("SELECT alteracao_data FROM produtos WHERE id = 1")
        assert row == {"alteracao_data": stamp}


class TestDelete:
    async def test_transient_returns_false(self, db) -> None:
        assert await Produto(db).delete() is False

    async def test_hard_delete(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 1)
        assert await produto.delete() is True

        assert produto.is_persisted is False
        assert produto.key is None
        assert await seeded_db.fetch_one("SELECT * FROM produtos WHERE id = 1") is None

    async def test_soft_delete(self, seeded_db) -> None:
        produto = ProdutoArquivavel(seeded_db)
        assert await produto.load(1) is True
        assert await produto.delete() is True

        assert await ProdutoArquivavel(seeded_db).where("id", "=", 1).all() == []
        assert produto.is_persisted is True

    async def test_soft_delete_keeps_row(self, seeded_db) -> None:
        produto = await ProdutoArquivavel.open(seeded_db, 1)
        await produto.delete()

        row = await seeded_db.fetch_one("SELECT exclusao_data FROM produtos WHERE id = 1")
        assert row is not None
        assert row["exclusao_data"] is not None
        assert produto["exclusao_data"] == row["exclusao_data"]

    async def test_soft_deleted_row_not_loadable(self, seeded_db) -> None:
        await (await ProdutoArquivavel.open(seeded_db, 1)).delete()
        assert (await ProdutoArquivavel.open(seeded_db, 1)).is_persisted is False

    async def test_or_predicate_cannot_reach_soft_deleted_rows(self, seeded_db) -> None:
        await (await ProdutoArquivavel.open(seeded_db, 1)).delete()
        found = (
            await ProdutoArquivavel(seeded_db)
            .where("estoque", "<", 3)
            .or_where("estoque", ">", 60)
            .all()
        )
        assert _names(found) == ["Adesivo"]


# =============================================================================
# Loading and querying
# =============================================================================


class TestLoad:
    async def test_open(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 2)
        assert produto.is_persisted is True
        assert produto.attributes == {"id": 2, "nome": "Boné", "preco": 10.0, "estoque": 5}

    async def test_open_without_key(self, seeded_db) -> None:
        assert (await Produto.open(seeded_db)).is_persisted is False

    async def test_open_missing(self, seeded_db) -> None:
        produto = await Produto.open(seeded_db, 99)
        assert produto.is_persisted is False
        assert produto.attributes == {}

    async def test_load_missing_returns_false(self, seeded_db) -> None:
        assert await Produto(seeded_db).load(99) is False

    async def test_load_ignores_pending_predicates(self, seeded_db) -> None:
        produto = Produto(seeded_db).where("estoque", ">", 1000)
        assert await produto.load(1) is True
        assert len(await produto.all()) == 0

    async def test_find_or_fail(self, seeded_db) -> None:
        produto = await Produto.find_or_fail(seeded_db, 3)
        assert produto["nome"] == "Camiseta"

    async def test_find_or_fail_missing(self, seeded_db) -> None:
        with pytest.raises(RecordNotFound) as exc_info:
            await Produto.find_or_fail(seeded_db, 99)
        assert exc_info.value.table == "produtos"
        assert exc_info.value.key == 99


class TestSelect:
    async def test_all(self, seeded_db) -> None:
        produtos = await Produto(seeded_db).all()
        assert _names(produtos) == ["Adesivo", "Boné", "Camiseta", "Caneca"]
        assert all(p.is_persisted for p in produtos)
        assert all(isinstance(p, Produto) for p in produtos)

    async def test_select_returns_rows(self, seeded_db) -> None:
        rows = await Produto(seeded_db).where("id", "=", 1).select()
        assert rows == [{"id": 1, "nome": "Caneca", "preco": 10.0, "estoque": 2}]

    async def test_where(self, seeded_db) -> None:
        produtos = await Produto(seeded_db).where("estoque", "<", 10).all()
        assert _names(produtos) == ["Boné", "Caneca"]

    async def test_where_chain(self, seeded_db) -> None:
        produtos = (
            await Produto(seeded_db).where("estoque", ">", 1).where("estoque", "<", 3).all()
        )
        assert _names(produtos) == ["Caneca"]

    async def test_or_where(self, seeded_db) -> None:
        produtos = (
            await Produto(seeded_db).where("estoque", "<", 3).or_where("estoque", ">", 60).all()
        )
        assert _names(produtos) == ["Adesivo", "Caneca"]

    async def test_like_comparator_normalized(self, seeded_db) -> None:
        produtos = await Produto(seeded_db).where("nome", " not   like ", "Ca%").all()
        assert _names(produtos) == ["Adesivo", "Boné"]

    async def test_unknown_column_in_predicate(self, seeded_db) -> None:
        with pytest.raises(ConfigurationError):
            Produto(seeded_db).where("cor", "=", "azul")

    async def test_unsupported_comparator(self, seeded_db) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported comparator"):
            Produto(seeded_db).where("estoque", "= 1 OR 1 =", 1)

    async def test_get(self, seeded_db) -> None:
        produto = await Produto(seeded_db).where("nome", "=", "Boné").get()
        assert produto is not None
        assert produto.key == 2

    async def test_get_none(self, seeded_db) -> None:
        assert await Produto(seeded_db).where("nome", "=", "Nada").get() is None

    async def test_limit_offset(self, seeded_db) -> None:
        produtos = await Produto(seeded_db).where("id", ">", 0).limit(2).offset(1).all()
        assert len(produtos) == 2

    async def test_offset_only(self, seeded_db) -> None:
        assert len(await Produto(seeded_db).offset(3).all()) == 1

    async def test_paginate(self, seeded_db) -> None:
        entity = Produto(seeded_db)
        assert len(await entity.paginate(3, 1).all()) == 3
        assert len(await entity.paginate(3, 2).all()) == 1

    async def test_paginate_floors_page(self, seeded_db) -> None:
        assert len(await Produto(seeded_db).paginate(3, 0).all()) == 3


class TestOneShotPredicates:
    async def test_predicates_drained_by_all(self, seeded_db) -> None:
        entity = Produto(seeded_db)
        low = await entity.where("estoque", "<", 10).paginate(15, 1).all()
        everything = await entity.all()

        assert len(low) == 2
        assert len(everything) == 4

    async def test_predicates_drained_by_get(self, seeded_db) -> None:
        entity = Produto(seeded_db)
        await entity.where("nome", "=", "Nada").get()
        assert len(await entity.all()) == 4

    async def test_predicates_drained_on_failure(self, seeded_db) -> None:
        await seeded_db.execute("ALTER TABLE produtos RENAME COLUMN estoque TO quantidade")
        entity = Produto(seeded_db).where("nome", "=", "Caneca")
        with pytest.raises(PersistenceError):
            await entity.select()
        assert entity._predicates == []

    async def test_count_does_not_drain(self, seeded_db) -> None:
        entity = Produto(seeded_db).where("estoque", "<", 10)
        assert await entity.count() == 2
        assert len(await entity.all()) == 2


class TestCountAndPage:
    async def test_count_all(self, seeded_db) -> None:
        assert await Produto(seeded_db).count() == 4

    async def test_count_excludes_soft_deleted(self, seeded_db) -> None:
        await (await ProdutoArquivavel.open(seeded_db, 1)).delete()
        assert await ProdutoArquivavel(seeded_db).count() == 3

    async def test_page(self, seeded_db) -> None:
        page = await Produto(seeded_db).page(per_page=3, page=2)

        assert isinstance(page, Page)
        assert len(page.items) == 1
        assert page.total == 4
        assert page.last_page == 2
        assert page.has_more_pages is False
        assert page.info() == "Exibindo 4 a 4 de 4 registros"

    async def test_page_with_predicates(self, seeded_db) -> None:
        page = await Produto(seeded_db).where("estoque", "<", 60).page(per_page=2)
        assert page.total == 3
        assert len(page.items) == 2
        assert page.has_more_pages is True


class TestOrderBy:
    async def test_descending(self, seeded_db) -> None:
        produtos = await Produto(seeded_db).order_by("estoque", "DESC").all()
        assert [p["nome"] for p in produtos] == ["Adesivo", "Camiseta", "Boné", "Caneca"]

    async def test_direction_case_and_default(self, seeded_db) -> None:
        ascending = await Produto(seeded_db).order_by("nome").all()
        lowered = await Produto(seeded_db).order_by("nome", " asc ").all()
        expected = ["Adesivo", "Boné", "Camiseta", "Caneca"]
        assert [p["nome"] for p in ascending] == expected
        assert [p["nome"] for p in lowered] == expected

    async def test_tie_breaker(self, seeded_db) -> None:
        await seeded_db.execute("UPDATE produtos SET estoque = 5 WHERE nome = 'Adesivo'")
        produtos = await Produto(seeded_db).order_by("estoque").order_by("id", "DESC").all()
        assert [p.key for p in produtos] == [1, 4, 2, 3]

    async def test_reordering_column_replaces_direction(self, seeded_db) -> None:
        entity = Produto(seeded_db).order_by("estoque").order_by("estoque", "DESC")
        assert entity._query(()).sql.endswith("ORDER BY estoque DESC")

    async def test_get_respects_order(self, seeded_db) -> None:
        produto = await Produto(seeded_db).order_by("estoque", "DESC").get()
        assert produto is not None
        assert produto["nome"] == "Adesivo"

    async def test_pages_are_disjoint_and_ordered(self, seeded_db) -> None:
        entity = Produto(seeded_db).order_by("estoque", "DESC")
        first = await entity.page(per_page=2, page=1)
        second = await entity.page(per_page=2, page=2)

        assert [p["nome"] for p in first.items] == ["Adesivo", "Camiseta"]
        assert [p["nome"] for p in second.items] == ["Boné", "Caneca"]
        assert first.total == second.total == 4

    async def test_order_survives_drained_predicates(self, seeded_db) -> None:
        entity = Produto(seeded_db).order_by("estoque")
        await entity.where("estoque", ">", 10).all()
        assert [p["nome"] for p in await entity.all()][0] == "Caneca"

    def test_invalid_direction(self, offline_db) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported sort direction"):
            Produto(offline_db).order_by("nome", "SIDEWAYS")

    def test_direction_cannot_inject_sql(self, offline_db) -> None:
        with pytest.raises(ConfigurationError):
            Produto(offline_db).order_by("nome", "ASC; DROP TABLE produtos")

    def test_unknown_column(self, offline_db) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            Produto(offline_db).order_by("segredo")

    def test_primary_key_allowed(self, offline_db) -> None:
        entity = Produto(offline_db).order_by("id", "desc")
        assert entity._query(()).sql.endswith("ORDER BY id DESC")
