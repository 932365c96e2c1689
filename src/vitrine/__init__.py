"""Vitrine: route registry and active-record data layer for small storefront apps.

Basic usage::

    from vitrine import Router

    router = Router()
    router.get("/produtos", "Produtos")
    router.get("/produtos/{id}", "Produtos", "show")
    router.compile()

    match = router.match("GET", "/produtos/42")

Data access::

    from vitrine import Database, Model

    class Produto(Model):
        table = "produtos"
        columns = ("nome", "preco", "estoque")

    db = Database("sqlite:///app.db")
    produtos = await Produto(db).where("estoque", ">", 0).all()

PostgreSQL support needs ``pip install vitrine[pg]``.
"""

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "ConfigurationError",
    "Database",
    "HTTPError",
    "HandlerId",
    "Model",
    "NotFound",
    "Route",
    "RouteMatch",
    "Router",
    "VitrineError",
    "configure_logging",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import vitrine`` fast while providing a clean top-level API.
    """
    if name in ("Router", "Route", "RouteMatch", "HandlerId"):
        from vitrine import routing as _routing

        return getattr(_routing, name)

    if name in ("AppConfig", "configure_logging"):
        from vitrine import config as _config

        return getattr(_config, name)

    if name in ("Database", "Model"):
        from vitrine import data as _data

        return getattr(_data, name)

    if name in ("VitrineError", "ConfigurationError", "HTTPError", "NotFound"):
        from vitrine import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
