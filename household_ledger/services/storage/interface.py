"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the in-memory store for a real database later
2. Keep the money engine free of any persistence concern
3. Make the optimistic version check a storage contract, not a caller habit

The interface is intentionally simple - we're not building a full ORM.
Just the operations the edit flow needs.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from household_ledger.models.audit import LedgerEvent
from household_ledger.models.ledger import ExpenditureEntry, SpendingLedgerLine


class LedgerStorageInterface(ABC):
    """
    Abstract interface for entry and aggregate-line storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_entry(self, entry_id: UUID) -> Optional[ExpenditureEntry]:
        """
        Retrieve an entry by its ID.

        Returns:
            The entry if found, None otherwise
        """
        pass

    @abstractmethod
    async def save_entry(self, entry: ExpenditureEntry) -> bool:
        """
        Insert or replace an entry as given, outside any version check.
        Ledger flows write entries through ``commit_lines`` instead.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_entry(self, entry_id: UUID) -> bool:
        """
        Delete an entry by ID.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    @abstractmethod
    async def list_lines(self, target_year_month: str) -> list[SpendingLedgerLine]:
        """
        Get every aggregate line of one month, as currently stored.

        Each returned line carries the version it was read with.
        """
        pass

    @abstractmethod
    async def commit_lines(
        self,
        added: list[SpendingLedgerLine],
        updated: list[SpendingLedgerLine],
        saved_entries: Sequence[ExpenditureEntry] = (),
        deleted_entries: Sequence[ExpenditureEntry] = (),
    ) -> list[SpendingLedgerLine]:
        """
        Write new and patched aggregate lines, plus the entries that moved
        them, in one atomic step.

        Every updated line must still carry the stored version; an added
        line must not exist yet. The same holds for entries: a saved entry
        with version 0 must not exist yet, any other saved or deleted entry
        must match the stored version. Otherwise nothing is written.

        Args:
            added: Lines created by this change
            updated: Lines patched by this change
            saved_entries: Entries to insert or replace (stored with version + 1)
            deleted_entries: Entries to remove

        Returns:
            The written lines with their new versions

        Raises:
            VersionConflictError: If another writer got there first
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: LedgerEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[LedgerEvent]:
        """Get all events of one ledger operation, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[LedgerEvent]:
        """Get all events for a specific entry or ledger line."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[LedgerEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class VersionConflictError(StorageError):
    """A stored line changed between read and write."""
    pass
