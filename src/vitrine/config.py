"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation and autocompletable.
``AppConfig.from_env()`` builds one from layered ``.env`` files and the
process environment.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from vitrine.data.database import Database
from vitrine.errors import ConfigurationError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, database_url="sqlite:///dev.db")
    """

    env: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///app.db"
    database_pool_size: int = 5
    database_echo: bool = False

    # Logging
    log_level: str = "info"
    log_format: str = "text"  # "text" or "json"

    @classmethod
    def from_env(
        cls,
        base_path: str | Path = ".",
        env: str | None = None,
        *,
        prefix: str = "VITRINE_",
    ) -> AppConfig:
        """Build a config from ``.env`` files plus the process environment.

        Files are read from *base_path* in this order, later ones winning::

            .env  .env.local  .env.<env>  .env.<env>.local

        Real environment variables override every file. Keys are the field
        names upper-cased behind *prefix* (``VITRINE_DATABASE_URL``).
        """
        base = Path(base_path)
        env = env or os.environ.get(f"{prefix}ENV", "development")

        values: dict[str, str | None] = {}
        for name in (".env", ".env.local", f".env.{env}", f".env.{env}.local"):
            path = base / name
            if path.is_file():
                values.update(dotenv_values(path))
        values.update(os.environ)

        overrides: dict[str, Any] = {"env": env}
        for f in fields(cls):
            raw = values.get(f"{prefix}{f.name.upper()}")
            if f.name == "env" or raw is None:
                continue
            overrides[f.name] = _coerce(f.name, raw, type(f.default))
        return cls(**overrides)

    def database(self) -> Database:
        """Build the ``Database`` this config describes."""
        return Database(
            self.database_url,
            pool_size=self.database_pool_size,
            echo=self.database_echo,
        )


def _coerce(name: str, raw: str, target: type) -> Any:
    if target is bool:
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        msg = f"Invalid boolean for {name}: {raw!r}"
        raise ConfigurationError(msg)
    if target is int:
        try:
            return int(raw)
        except ValueError:
            msg = f"Invalid integer for {name}: {raw!r}"
            raise ConfigurationError(msg) from None
    return raw


class _JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach a stream handler to the ``vitrine`` logger.

    Replaces handlers from a previous call, so it is safe to call again
    after reloading config.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level: {config.log_level!r}"
        raise ConfigurationError(msg)
    if config.log_format not in ("text", "json"):
        msg = f"Unknown log format: {config.log_format!r}. Use 'text' or 'json'."
        raise ConfigurationError(msg)

    handler = logging.StreamHandler()
    if config.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))

    logger = logging.getLogger("vitrine")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if config.debug else level)
    return logger
