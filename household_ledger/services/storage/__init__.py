"""
Storage Services Package

Provides abstract interfaces and the in-memory implementation used as the
reference adapter.
"""

from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    VersionConflictError,
)
from household_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "VersionConflictError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
]
