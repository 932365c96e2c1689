"""Data layer error hierarchy."""

from vitrine.errors import VitrineError


class DataError(VitrineError):
    """Base for all vitrine.data errors."""


class DriverNotInstalledError(DataError):
    """Raised when the required database driver is not installed."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class PersistenceError(DataError):
    """Raised when a storage operation fails.

    The driver exception is chained as ``__cause__`` untouched.
    """


class RecordNotFound(DataError):  # noqa: N818
    """Raised by ``Model.find_or_fail`` when no row has the given id."""

    def __init__(self, table: str, key: object) -> None:
        self.table = table
        self.key = key
        super().__init__(f"No row in {table!r} with primary key {key!r}")
