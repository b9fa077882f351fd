"""
Custom error classes for the client ledger.

Hierarchy:
    LedgerError
    ├── DataAccessError
    │   ├── ClientNotFoundError
    │   └── SyncError
    ├── StorageError
    ├── InvalidArgument
    └── ConfigError
"""


class LedgerError(Exception):
    """Base exception for all client ledger errors."""

    def __init__(self, message: str, code: str = "UNKNOWN", details: dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


def remote_message(exc: BaseException) -> str:
    """Message text of an exception raised by the remote service client."""
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


# --- Relational data service ---

class DataAccessError(LedgerError):
    """A call to the remote relational data service failed."""

    def __init__(self, message: str, table: str = None, code: str = "DATA_ACCESS_FAILED"):
        super().__init__(message, code=code, details={"table": table})
        self.table = table


class ClientNotFoundError(DataAccessError):
    """An update matched no monthly row."""

    def __init__(self, table: str, row_id: str, year: int):
        super().__init__(
            f"No client with id {row_id!r} for {year} in {table}",
            table=table, code="CLIENT_NOT_FOUND",
        )
        self.details.update({"id": row_id, "year": year})


class SyncError(DataAccessError):
    """Global table synchronization failed after a monthly write succeeded."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(
            f"Global sync failed for client {name!r}: {remote_message(cause)}",
            table="clients", code="GLOBAL_SYNC_FAILED",
        )
        self.details["name"] = name


# --- Object storage ---

class StorageError(LedgerError):
    """A call to the remote object-storage service failed."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message, code="STORAGE_FAILED", details={"path": path})
        self.path = path


# --- Caller errors ---

class InvalidArgument(LedgerError):
    """A caller-supplied argument violates a precondition."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, code="INVALID_ARGUMENT", details={"field": field})


class ConfigError(LedgerError):
    """Missing or invalid configuration."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")
