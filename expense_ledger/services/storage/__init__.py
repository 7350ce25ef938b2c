"""
Storage Services Package

Provides the abstract ledger storage interface and its JSON file
implementation. The interface is what the recurrence engine, the
projector and the facade depend on.
"""

from expense_ledger.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from expense_ledger.services.storage.json_file import JsonFileLedgerStore
from expense_ledger.services.storage.locking import ReadWriteLock
from expense_ledger.services.storage.state import LedgerState

__all__ = [
    # Interface
    "LedgerStorageInterface",
    "LedgerState",
    # Exceptions
    "CorruptDataError",
    "NotFoundError",
    "StorageError",
    # JSON file implementation
    "JsonFileLedgerStore",
    "ReadWriteLock",
]
