"""Services package."""

from expense_ledger.services.storage import (
    CorruptDataError,
    JsonFileLedgerStore,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "CorruptDataError",
    "JsonFileLedgerStore",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
]
